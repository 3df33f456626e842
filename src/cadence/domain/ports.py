"""
Ports (interfaces) for item/state storage and session persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime

from .models import ItemStatus, LearningItem, ReviewLogEntry, ReviewState, SavedSession


class ItemStore(ABC):
    """
    Port for learning items, their review states and the review log.

    Implementations:
        - InMemoryItemStore: dict-backed, used by tests and embedding hosts.
        - SqliteItemStore: a local SQLite database.
    """

    @abstractmethod
    async def list_items(
        self, user_id: str, item_ids: Iterable[str] | None = None
    ) -> list[LearningItem]:
        """
        List the user's items, newest first.

        Args:
            user_id: Owner of the items.
            item_ids: If given, only items with these IDs are returned;
                IDs that no longer exist are silently absent.
        """
        pass

    @abstractmethod
    async def get_review_states(
        self, user_id: str, item_ids: Iterable[str]
    ) -> list[ReviewState]:
        """
        Fetch review states for the given items.

        Items that were never rated have no state and are absent from the result.
        """
        pass

    @abstractmethod
    async def upsert_review_state(self, user_id: str, state: ReviewState) -> ReviewState:
        """
        Insert (when `state.id` is None) or update a review state keyed by item.

        Returns:
            The stored state, with `id` assigned on insert.
        """
        pass

    @abstractmethod
    async def append_review_log(self, entry: ReviewLogEntry) -> None:
        """Append an immutable review log entry."""
        pass

    @abstractmethod
    async def list_review_logs(
        self,
        user_id: str,
        since: datetime,
        until: datetime | None = None,
        previous_status: ItemStatus | None = None,
    ) -> list[ReviewLogEntry]:
        """
        Query log entries reviewed in [since, until), optionally filtered by the
        status the item had before the rating.
        """
        pass


class SessionStore(ABC):
    """
    Port for the persisted review sitting: a single small blob.

    Implementations:
        - InMemorySessionStore: process-local.
        - JsonFileSessionStore: a JSON file on disk.
    """

    @abstractmethod
    async def get(self) -> SavedSession | None:
        """Return the saved session, or None if nothing is stored."""
        pass

    @abstractmethod
    async def set(self, session: SavedSession) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass
