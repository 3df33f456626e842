"""
Daily new-item quota.

Caps how many never-reviewed items may enter sittings within one local
calendar day. An item counts as introduced when a logged rating had previous
status `new`; repeated ratings of the same item count once.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TypeVar

from cadence.application.utils.clock import start_of_local_day
from cadence.domain.constants import DEFAULT_NEW_ITEMS_PER_DAY
from cadence.domain.models import ItemStatus
from cadence.domain.ports import ItemStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class NewItemQuota:
    """
    Remaining allowance of new items for today.

    Attributes:
        limit: Configured per-day limit (0 = unlimited).
        introduced_today: Distinct items already introduced since local midnight.
        remaining: Items that may still be introduced; None when unlimited.
    """

    limit: int
    introduced_today: int
    remaining: int | None

    @classmethod
    def from_count(cls, limit: int, introduced_today: int) -> "NewItemQuota":
        if limit < 0:
            raise ValueError("new-item limit must be >= 0")
        if limit == 0:
            return cls(limit=0, introduced_today=introduced_today, remaining=None)
        return cls(
            limit=limit,
            introduced_today=introduced_today,
            remaining=max(0, limit - introduced_today),
        )

    @classmethod
    def closed(cls, limit: int) -> "NewItemQuota":
        """Zero allowance, used when today's count cannot be determined."""
        return cls(limit=limit, introduced_today=0, remaining=0)

    @property
    def unlimited(self) -> bool:
        return self.remaining is None

    def apply(self, items: Sequence[T]) -> list[T]:
        """Take as many items from the front as the quota allows."""
        if self.remaining is None:
            return list(items)
        return list(items[: self.remaining])


async def count_introduced_today(store: ItemStore, user_id: str, now: datetime) -> int:
    """Count distinct items whose first rating happened since local midnight."""
    logs = await store.list_review_logs(
        user_id,
        since=start_of_local_day(now),
        previous_status=ItemStatus.NEW,
    )
    return len({entry.item_id for entry in logs})


class DailyQuotaTracker:
    """
    Computes today's new-item allowance for a user.

    Fails safe: if today's count cannot be read, the quota is zero so the
    configured limit is never exceeded.
    """

    def __init__(self, store: ItemStore, limit: int = DEFAULT_NEW_ITEMS_PER_DAY):
        if limit < 0:
            raise ValueError("new-item limit must be >= 0")
        self._store = store
        self.limit = limit

    async def remaining(self, user_id: str, now: datetime) -> NewItemQuota:
        if self.limit == 0:
            return NewItemQuota.from_count(0, 0)

        try:
            introduced = await count_introduced_today(self._store, user_id, now)
        except Exception as e:
            logger.error(f"Failed to count today's new items for {user_id}; quota closed: {e}")
            return NewItemQuota.closed(self.limit)

        quota = NewItemQuota.from_count(self.limit, introduced)
        logger.debug(
            f"New-item quota for {user_id}: {quota.remaining} of {self.limit} "
            f"({introduced} introduced today)"
        )
        return quota
