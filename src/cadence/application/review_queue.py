"""
Review queue manager for one review sitting.

Drives a sitting through INIT -> (restore | fetch) -> ACTIVE -> COMPLETE:
1. Restore a same-day persisted session, dropping items that no longer exist
2. Otherwise fetch due items plus new items capped by the daily quota, shuffled
3. Apply ratings one at a time, persisting state, log and queue position
"""

import logging
import random
from datetime import datetime
from enum import Enum

from cadence.application.config import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from cadence.application.id_service import generate_review_log_id
from cadence.application.intervals import preview_intervals
from cadence.application.quota import DailyQuotaTracker, NewItemQuota
from cadence.application.scheduling import apply_rating, initial_state
from cadence.application.utils.clock import Clock, is_same_local_day, utcnow
from cadence.domain.constants import ALGORITHM_VERSION, DEFAULT_NEW_ITEMS_PER_DAY
from cadence.domain.errors import NoCurrentItemError, ReviewPersistenceError
from cadence.domain.models import (
    ItemStatus,
    Rating,
    RatingOutcome,
    ReviewLogEntry,
    ReviewState,
    SavedSession,
)
from cadence.domain.ports import ItemStore, SessionStore

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    INIT = "init"
    ACTIVE = "active"
    COMPLETE = "complete"


class ReviewQueueManager:
    """
    Orchestrates one review sitting for a user.

    Collaborators are injected so the same manager works against in-memory,
    SQLite or remote stores. Calls must not overlap: each rating finishes its
    persistence before the next one is submitted.
    """

    def __init__(
        self,
        store: ItemStore,
        session_store: SessionStore,
        user_id: str,
        *,
        new_items_per_day: int = DEFAULT_NEW_ITEMS_PER_DAY,
        scheduler_config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
        clock: Clock = utcnow,
        rng: random.Random | None = None,
    ):
        """
        Args:
            store: Item/state store (port).
            session_store: Blob store for the resumable queue position.
            user_id: Whose items are reviewed.
            new_items_per_day: Daily cap on new items; 0 means unlimited.
            scheduler_config: Algorithm tunables.
            clock: Returns the current aware timestamp.
            rng: Source for the queue shuffle.
        """
        self._store = store
        self._sessions = session_store
        self.user_id = user_id
        self.new_items_per_day = new_items_per_day
        self.config = scheduler_config
        self._clock = clock
        self._rng = rng or random.Random()
        self._quota_tracker = DailyQuotaTracker(store, new_items_per_day)

        self.phase = SessionPhase.INIT
        self._queue: list[str] = []
        self._cursor = 0
        self._states: dict[str, ReviewState] = {}
        self._started_at: datetime | None = None

        self.total_new_items = 0
        self.new_items_available_today = 0
        self.again_item_ids: set[str] = set()
        self.quota: NewItemQuota | None = None

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def queue(self) -> list[str]:
        return list(self._queue)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def total_items(self) -> int:
        return len(self._queue)

    @property
    def reviewed_count(self) -> int:
        return self._cursor

    @property
    def is_complete(self) -> bool:
        return self.phase == SessionPhase.COMPLETE

    @property
    def current_item_id(self) -> str | None:
        if self.phase != SessionPhase.ACTIVE or self._cursor >= len(self._queue):
            return None
        return self._queue[self._cursor]

    @property
    def current_state(self) -> ReviewState | None:
        """Review state of the current item; None if it has never been rated."""
        item_id = self.current_item_id
        return self._states.get(item_id) if item_id else None

    def state_for(self, item_id: str) -> ReviewState | None:
        return self._states.get(item_id)

    def preview(self) -> dict[Rating, str] | None:
        """Interval labels each rating would give the current item."""
        item_id = self.current_item_id
        if item_id is None:
            return None
        state = self._states.get(item_id) or initial_state(item_id, self.config)
        return preview_intervals(state, self.config, self._clock())

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load(self, force_refresh: bool = False) -> SessionPhase:
        """
        Resume today's sitting if possible, else build a fresh one.
        """
        now = self._clock()

        if not force_refresh:
            saved = await self._read_session()
            if saved is not None:
                if not is_same_local_day(saved.timestamp, now):
                    logger.info(f"Discarding session from {saved.timestamp.isoformat()}")
                elif await self._restore(saved):
                    return self.phase

        await self._fetch(now)
        return self.phase

    async def restart(self) -> SessionPhase:
        """Drop saved progress and build a fresh sitting."""
        return await self.load(force_refresh=True)

    async def start_new_items_session(self, ignore_limit: bool = False) -> SessionPhase:
        """
        Build a sitting of never-reviewed items only.

        With `ignore_limit`, today's quota is bypassed but items are still
        batched by the configured per-day value (all of them if that is 0).
        """
        await self._fetch(self._clock(), new_only=True, ignore_limit=ignore_limit)
        return self.phase

    async def _restore(self, saved: SavedSession) -> bool:
        if not saved.item_ids:
            return False

        try:
            items = await self._store.list_items(self.user_id, saved.item_ids)
            existing = {item.id for item in items}
            states = await self._store.get_review_states(self.user_id, sorted(existing))
        except Exception as e:
            logger.warning(f"Session restore failed, fetching fresh queue: {e}")
            return False

        # Suspended since the session was saved: dropped like a deleted item
        suspended = {state.item_id for state in states if state.status == ItemStatus.SUSPENDED}
        live = existing - suspended
        states = [state for state in states if state.item_id in live]

        queue = [item_id for item_id in saved.item_ids if item_id in live]
        if not queue:
            return False

        removed_before = sum(1 for item_id in saved.item_ids[: saved.cursor] if item_id not in live)
        cursor = max(0, saved.cursor - removed_before)
        if cursor >= len(queue):
            return False

        self._reset()
        self._queue = queue
        self._cursor = cursor
        self._states = {state.item_id: state for state in states}
        self._started_at = saved.timestamp

        new_in_queue = sum(1 for item_id in queue if item_id not in self._states)
        self.total_new_items = new_in_queue
        self.new_items_available_today = new_in_queue
        self.phase = SessionPhase.ACTIVE

        removed = len(saved.item_ids) - len(queue)
        if removed:
            logger.info(f"Restored session without {removed} deleted or suspended item(s)")
            await self._save_session()

        logger.info(f"Resumed review session at {cursor}/{len(queue)}")
        return True

    async def _fetch(self, now: datetime, new_only: bool = False, ignore_limit: bool = False):
        await self._clear_session()
        self._reset()

        try:
            items = await self._store.list_items(self.user_id)
            item_ids = [item.id for item in items]
            states = await self._store.get_review_states(self.user_id, item_ids) if item_ids else []
        except Exception as e:
            logger.error(f"Failed to fetch review items for {self.user_id}: {e}")
            self.phase = SessionPhase.COMPLETE
            return

        state_map = {state.item_id: state for state in states}
        new_ids = [item_id for item_id in item_ids if item_id not in state_map]
        due_ids = (
            []
            if new_only
            else [item_id for item_id in item_ids if item_id in state_map and state_map[item_id].is_due(now)]
        )
        self.total_new_items = len(new_ids)

        if ignore_limit:
            batch = self.new_items_per_day or len(new_ids)
            selected = new_ids[:batch]
            self.new_items_available_today = len(new_ids)
        else:
            self.quota = await self._quota_tracker.remaining(self.user_id, now)
            selected = self.quota.apply(new_ids)
            self.new_items_available_today = len(selected)

        queue = due_ids + selected
        self._rng.shuffle(queue)

        self._queue = queue
        self._states = {item_id: state_map[item_id] for item_id in queue if item_id in state_map}
        self._started_at = now

        logger.info(
            f"Built review queue for {self.user_id}: {len(due_ids)} due, "
            f"{len(selected)} new of {len(new_ids)}"
        )

        if queue:
            self.phase = SessionPhase.ACTIVE
            await self._save_session()
        else:
            self.phase = SessionPhase.COMPLETE

    def _reset(self):
        self.phase = SessionPhase.INIT
        self._queue = []
        self._cursor = 0
        self._states = {}
        self._started_at = None
        self.total_new_items = 0
        self.new_items_available_today = 0
        self.again_item_ids = set()
        self.quota = None

    # ------------------------------------------------------------------
    # Active sitting
    # ------------------------------------------------------------------

    def _require_current(self) -> str:
        item_id = self.current_item_id
        if item_id is None:
            raise NoCurrentItemError(f"No current item (phase={self.phase.value})")
        return item_id

    async def submit_rating(self, rating: Rating | str) -> RatingOutcome:
        """
        Rate the current item and advance the sitting.

        `again` sends the item to the back of the queue with the cursor left
        in place; every other rating moves the cursor forward by one.

        Raises:
            UnknownRatingError: rating is not again/hard/good/easy.
            NoCurrentItemError: the sitting is not active.
            ReviewPersistenceError: the state write failed; nothing changed.
        """
        rating = Rating.parse(rating)
        item_id = self._require_current()
        now = self._clock()

        previous = self._states.get(item_id) or initial_state(item_id, self.config)
        updated = apply_rating(previous, rating, self.config, now)

        try:
            saved = await self._store.upsert_review_state(self.user_id, updated)
        except Exception as e:
            logger.error(f"Failed to save review state for {item_id}: {e}")
            raise ReviewPersistenceError(item_id, e) from e

        outcome = RatingOutcome(
            item_id=item_id, rating=rating, previous_state=previous, new_state=saved
        )

        entry = ReviewLogEntry(
            id=generate_review_log_id(),
            user_id=self.user_id,
            item_id=item_id,
            rating=rating,
            previous=previous.snapshot(),
            new=saved.snapshot(),
            algorithm_version=ALGORITHM_VERSION,
            reviewed_at=now,
            review_state_id=saved.id,
        )
        try:
            await self._store.append_review_log(entry)
        except Exception as e:
            logger.warning(f"Failed to log review of {item_id}: {e}")
            outcome.warnings.append(f"review log not saved: {e}")

        self._states[item_id] = saved
        if previous.status == ItemStatus.NEW and not previous.is_persisted:
            self.new_items_available_today = max(0, self.new_items_available_today - 1)

        if rating == Rating.AGAIN:
            self._move_current_to_end()
            self.again_item_ids.add(item_id)
            outcome.requeued = True
        else:
            self._cursor += 1

        if self._cursor >= len(self._queue):
            self.phase = SessionPhase.COMPLETE
            outcome.completed = True
            await self._clear_session()
            logger.info(f"Review session complete ({len(self._queue)} items)")
        else:
            await self._save_session()

        return outcome

    async def skip(self) -> None:
        """Defer the current item to the end of the queue without scoring it."""
        self._require_current()
        self._move_current_to_end()
        await self._save_session()

    def _move_current_to_end(self):
        self._queue.append(self._queue.pop(self._cursor))

    # ------------------------------------------------------------------
    # Session persistence
    # ------------------------------------------------------------------

    async def _read_session(self) -> SavedSession | None:
        try:
            return await self._sessions.get()
        except Exception as e:
            logger.warning(f"Could not read saved session: {e}")
            return None

    async def _save_session(self):
        session = SavedSession(
            item_ids=list(self._queue),
            cursor=self._cursor,
            timestamp=self._started_at or self._clock(),
        )
        try:
            await self._sessions.set(session)
        except Exception as e:
            logger.warning(f"Could not persist session; progress is in memory only: {e}")

    async def _clear_session(self):
        try:
            await self._sessions.clear()
        except Exception as e:
            logger.warning(f"Could not clear saved session: {e}")

