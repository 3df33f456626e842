from datetime import timedelta

import pytest

from cadence.domain.constants import ALGORITHM_VERSION
from cadence.domain.models import ItemStatus, Rating, ReviewLogEntry, ReviewState
from cadence.infrastructure.adapters.sqlite_store import SqliteItemStore


@pytest.fixture
def db(tmp_path):
    return SqliteItemStore(tmp_path / "nested" / "cadence.db")


def _entry(user_id, item_id, reviewed_at, previous, new, n=0):
    return ReviewLogEntry(
        id=f"rl_{item_id}_{n}",
        user_id=user_id,
        item_id=item_id,
        rating=Rating.GOOD,
        previous=previous.snapshot(),
        new=new.snapshot(),
        algorithm_version=ALGORITHM_VERSION,
        reviewed_at=reviewed_at,
        review_state_id=new.id,
    )


class TestItems:
    @pytest.mark.asyncio
    async def test_newest_first_and_idempotent_add(self, db, user_id, now):
        assert db.add_items(user_id, ["old"], now=now - timedelta(days=1)) == 1
        assert db.add_items(user_id, ["new", "old"], now=now) == 1

        items = await db.list_items(user_id)

        assert [item.id for item in items] == ["new", "old"]
        assert items[0].created_at == now

    @pytest.mark.asyncio
    async def test_filtered_listing(self, db, user_id, now):
        db.add_items(user_id, ["a", "b", "c"], now=now)
        db.add_items("other", ["z"], now=now)

        items = await db.list_items(user_id, ["a", "c", "z", "missing"])

        assert sorted(item.id for item in items) == ["a", "c"]
        assert await db.list_items(user_id, []) == []

    @pytest.mark.asyncio
    async def test_remove(self, db, user_id, now):
        db.add_items(user_id, ["a", "b"], now=now)
        db.remove_item(user_id, "a")
        assert [item.id for item in await db.list_items(user_id)] == ["b"]


class TestReviewStates:
    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_round_trips(self, db, user_id, now):
        state = ReviewState(
            item_id="a",
            interval_days=3.0,
            status=ItemStatus.REVIEW,
            due_at=now + timedelta(days=3),
            review_count=1,
            streak=1,
            last_reviewed_at=now,
        )

        saved = await db.upsert_review_state(user_id, state)
        [loaded] = await db.get_review_states(user_id, ["a", "b"])

        assert saved.id is not None
        assert loaded == saved

    @pytest.mark.asyncio
    async def test_update_keeps_one_row_per_item(self, db, user_id, make_state):
        first = await db.upsert_review_state(user_id, make_state("a"))
        await db.upsert_review_state(user_id, make_state("a", interval_days=25.0))

        states = await db.get_review_states(user_id, ["a"])

        assert len(states) == 1
        assert states[0].id == first.id
        assert states[0].interval_days == 25.0

    @pytest.mark.asyncio
    async def test_concurrent_insert_keeps_existing_row_id(self, db, user_id, make_state):
        first = await db.upsert_review_state(user_id, make_state("a", id=None))
        second = await db.upsert_review_state(user_id, make_state("a", id=None, streak=2))

        assert second.id == first.id

    @pytest.mark.asyncio
    async def test_states_are_per_user(self, db, user_id, make_state):
        await db.upsert_review_state("other", make_state("a", id="rs_other"))
        assert await db.get_review_states(user_id, ["a"]) == []


class TestReviewLog:
    @pytest.mark.asyncio
    async def test_append_and_filter(self, db, user_id, now, make_state):
        new = make_state("a")
        fresh = ReviewState(item_id="a")
        await db.append_review_log(_entry(user_id, "a", now - timedelta(hours=1), fresh, new))
        await db.append_review_log(_entry(user_id, "a", now, new, new, n=1))
        await db.append_review_log(_entry(user_id, "b", now - timedelta(days=3), fresh, new))

        today = await db.list_review_logs(user_id, since=now - timedelta(hours=2))
        introduced = await db.list_review_logs(
            user_id, since=now - timedelta(hours=2), previous_status=ItemStatus.NEW
        )
        window = await db.list_review_logs(
            user_id, since=now - timedelta(days=4), until=now - timedelta(days=1)
        )

        assert [e.id for e in today] == ["rl_a_0", "rl_a_1"]
        assert [e.id for e in introduced] == ["rl_a_0"]
        assert [e.item_id for e in window] == ["b"]

    @pytest.mark.asyncio
    async def test_entry_round_trips(self, db, user_id, now, make_state):
        entry = _entry(user_id, "a", now, ReviewState(item_id="a"), make_state("a"))
        await db.append_review_log(entry)

        [loaded] = await db.list_review_logs(user_id, since=now - timedelta(minutes=1))

        assert loaded == entry
        assert loaded.previous_status == ItemStatus.NEW
