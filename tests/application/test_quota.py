"""Tests for the daily new-item quota."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from cadence.application.quota import DailyQuotaTracker, NewItemQuota, count_introduced_today
from cadence.domain.constants import ALGORITHM_VERSION
from cadence.domain.models import ItemStatus, Rating, ReviewLogEntry, ReviewSnapshot


def _log(user_id, item_id, reviewed_at, previous_status=ItemStatus.NEW, n=0):
    snap = ReviewSnapshot(status=previous_status, interval_days=0, ease_factor=2.5, due_at=None)
    return ReviewLogEntry(
        id=f"rl_{item_id}_{n}",
        user_id=user_id,
        item_id=item_id,
        rating=Rating.GOOD,
        previous=snap,
        new=ReviewSnapshot(ItemStatus.REVIEW, 3, 2.5, reviewed_at + timedelta(days=3)),
        algorithm_version=ALGORITHM_VERSION,
        reviewed_at=reviewed_at,
    )


class TestNewItemQuota:
    def test_remaining_is_limit_minus_introduced(self):
        quota = NewItemQuota.from_count(5, 3)
        assert quota.remaining == 2
        assert not quota.unlimited

    def test_zero_limit_is_unlimited(self):
        quota = NewItemQuota.from_count(0, 40)
        assert quota.unlimited
        assert quota.remaining is None

    def test_never_negative(self):
        assert NewItemQuota.from_count(5, 9).remaining == 0

    def test_apply_slices_front(self):
        assert NewItemQuota.from_count(5, 3).apply(["a", "b", "c"]) == ["a", "b"]
        assert NewItemQuota.from_count(0, 3).apply(["a", "b", "c"]) == ["a", "b", "c"]
        assert NewItemQuota.closed(10).apply(["a"]) == []

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            NewItemQuota.from_count(-1, 0)


class TestCounting:
    @pytest.mark.asyncio
    async def test_counts_distinct_items_since_midnight(self, store, user_id, now):
        store.logs.extend(
            [
                _log(user_id, "a", now - timedelta(hours=1)),
                _log(user_id, "a", now - timedelta(minutes=5), n=1),
                _log(user_id, "b", now - timedelta(minutes=1)),
                _log(user_id, "c", now - timedelta(days=2)),
                _log(user_id, "d", now - timedelta(minutes=2), ItemStatus.REVIEW),
                _log("someone-else", "e", now - timedelta(minutes=2)),
            ]
        )

        assert await count_introduced_today(store, user_id, now) == 2

    @pytest.mark.asyncio
    async def test_tracker_uses_todays_count(self, store, user_id, now):
        store.logs.extend(
            [_log(user_id, item, now - timedelta(minutes=10)) for item in ("a", "b", "c")]
        )
        quota = await DailyQuotaTracker(store, limit=5).remaining(user_id, now)

        assert quota.introduced_today == 3
        assert quota.remaining == 2

    @pytest.mark.asyncio
    async def test_unlimited_skips_the_query(self, user_id, now):
        mock_store = AsyncMock()
        quota = await DailyQuotaTracker(mock_store, limit=0).remaining(user_id, now)

        assert quota.unlimited
        mock_store.list_review_logs.assert_not_called()

    @pytest.mark.asyncio
    async def test_read_failure_closes_quota(self, user_id, now):
        mock_store = AsyncMock()
        mock_store.list_review_logs.side_effect = ConnectionError("db down")

        quota = await DailyQuotaTracker(mock_store, limit=10).remaining(user_id, now)

        assert quota.remaining == 0
        assert quota.limit == 10
