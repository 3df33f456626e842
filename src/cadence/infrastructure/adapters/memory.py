"""
In-memory adapters for the item store and session store.

Used by tests and by hosts that keep their own persistence elsewhere.
"""

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from cadence.application.id_service import generate_review_state_id
from cadence.domain.models import ItemStatus, LearningItem, ReviewLogEntry, ReviewState, SavedSession
from cadence.domain.ports import ItemStore, SessionStore


class InMemoryItemStore(ItemStore):
    """Dict-backed ItemStore. Items are listed newest first by insertion order."""

    def __init__(self):
        self._items: dict[str, dict[str, LearningItem]] = {}
        self._states: dict[str, dict[str, ReviewState]] = {}
        self.logs: list[ReviewLogEntry] = []

    def add_item(self, user_id: str, item: LearningItem | str) -> LearningItem:
        if isinstance(item, str):
            item = LearningItem(id=item)
        self._items.setdefault(user_id, {})[item.id] = item
        return item

    def remove_item(self, user_id: str, item_id: str) -> None:
        self._items.get(user_id, {}).pop(item_id, None)

    async def list_items(
        self, user_id: str, item_ids: Iterable[str] | None = None
    ) -> list[LearningItem]:
        items = list(reversed(self._items.get(user_id, {}).values()))
        if item_ids is None:
            return items
        wanted = set(item_ids)
        return [item for item in items if item.id in wanted]

    async def get_review_states(
        self, user_id: str, item_ids: Iterable[str]
    ) -> list[ReviewState]:
        states = self._states.get(user_id, {})
        return [states[item_id] for item_id in item_ids if item_id in states]

    async def upsert_review_state(self, user_id: str, state: ReviewState) -> ReviewState:
        if state.id is None:
            state = replace(state, id=generate_review_state_id())
        self._states.setdefault(user_id, {})[state.item_id] = state
        return state

    async def append_review_log(self, entry: ReviewLogEntry) -> None:
        self.logs.append(entry)

    async def list_review_logs(
        self,
        user_id: str,
        since: datetime,
        until: datetime | None = None,
        previous_status: ItemStatus | None = None,
    ) -> list[ReviewLogEntry]:
        return [
            entry
            for entry in self.logs
            if entry.user_id == user_id
            and entry.reviewed_at >= since
            and (until is None or entry.reviewed_at < until)
            and (previous_status is None or entry.previous_status == previous_status)
        ]


class InMemorySessionStore(SessionStore):
    def __init__(self, session: SavedSession | None = None):
        self.session = session

    async def get(self) -> SavedSession | None:
        return self.session

    async def set(self, session: SavedSession) -> None:
        self.session = session

    async def clear(self) -> None:
        self.session = None
