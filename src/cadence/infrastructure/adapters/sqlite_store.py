"""
SQLite Item Store: infrastructure adapter for a local database.

Implements ItemStore with the standard library sqlite3 module. Timestamps are
stored as ISO-8601 strings in UTC so lexical and chronological order agree.
"""

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from cadence.application.id_service import generate_review_state_id
from cadence.domain.models import (
    ItemStatus,
    LearningItem,
    Rating,
    ReviewLogEntry,
    ReviewSnapshot,
    ReviewState,
)
from cadence.domain.ports import ItemStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS items (
    user_id TEXT NOT NULL,
    id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    PRIMARY KEY (user_id, id)
);
CREATE TABLE IF NOT EXISTS review_states (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    item_id TEXT NOT NULL,
    status TEXT NOT NULL,
    interval_days REAL NOT NULL,
    ease_factor REAL NOT NULL,
    due_at TEXT,
    review_count INTEGER NOT NULL DEFAULT 0,
    lapse_count INTEGER NOT NULL DEFAULT 0,
    streak INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    UNIQUE (user_id, item_id)
);
CREATE TABLE IF NOT EXISTS review_logs (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    item_id TEXT NOT NULL,
    review_state_id TEXT,
    review_mode TEXT NOT NULL,
    rating TEXT NOT NULL,
    previous_status TEXT NOT NULL,
    previous_interval REAL NOT NULL,
    previous_ease REAL NOT NULL,
    previous_due TEXT,
    new_status TEXT NOT NULL,
    new_interval REAL NOT NULL,
    new_ease REAL NOT NULL,
    new_due TEXT,
    algorithm_version TEXT NOT NULL,
    reviewed_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_review_logs_user_time
    ON review_logs (user_id, reviewed_at);
"""


def _to_db(moment: datetime | None) -> str | None:
    if moment is None:
        return None
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


class SqliteItemStore(ItemStore):
    """
    Stores items, review states and the review log in one SQLite file.

    Each call opens its own connection; the database is created on first use.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def add_items(self, user_id: str, item_ids: Iterable[str], now: datetime | None = None) -> int:
        """Register items; existing IDs are left untouched. Returns how many were new."""
        created = _to_db(now or datetime.now(timezone.utc))
        with self._connect() as conn:
            before = conn.total_changes
            conn.executemany(
                "INSERT OR IGNORE INTO items (user_id, id, created_at) VALUES (?, ?, ?)",
                [(user_id, item_id, created) for item_id in item_ids],
            )
            added = conn.total_changes - before
        logger.debug(f"Registered {added} new item(s) for {user_id}")
        return added

    def remove_item(self, user_id: str, item_id: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM items WHERE user_id = ? AND id = ?", (user_id, item_id))

    async def list_items(
        self, user_id: str, item_ids: Iterable[str] | None = None
    ) -> list[LearningItem]:
        query = "SELECT id, created_at FROM items WHERE user_id = ?"
        params: list = [user_id]
        if item_ids is not None:
            ids = list(item_ids)
            if not ids:
                return []
            query += f" AND id IN ({','.join('?' for _ in ids)})"
            params.extend(ids)
        query += " ORDER BY created_at DESC, rowid DESC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [LearningItem(id=row["id"], created_at=_from_db(row["created_at"])) for row in rows]

    # ------------------------------------------------------------------
    # Review states
    # ------------------------------------------------------------------

    async def get_review_states(
        self, user_id: str, item_ids: Iterable[str]
    ) -> list[ReviewState]:
        ids = list(item_ids)
        if not ids:
            return []
        query = (
            "SELECT * FROM review_states "
            f"WHERE user_id = ? AND item_id IN ({','.join('?' for _ in ids)})"
        )
        with self._connect() as conn:
            rows = conn.execute(query, [user_id, *ids]).fetchall()
        return [self._row_to_state(row) for row in rows]

    async def upsert_review_state(self, user_id: str, state: ReviewState) -> ReviewState:
        if state.id is None:
            state = replace(state, id=generate_review_state_id())

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO review_states (
                    id, user_id, item_id, status, interval_days, ease_factor, due_at,
                    review_count, lapse_count, streak, last_reviewed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (user_id, item_id) DO UPDATE SET
                    status = excluded.status,
                    interval_days = excluded.interval_days,
                    ease_factor = excluded.ease_factor,
                    due_at = excluded.due_at,
                    review_count = excluded.review_count,
                    lapse_count = excluded.lapse_count,
                    streak = excluded.streak,
                    last_reviewed_at = excluded.last_reviewed_at
                """,
                (
                    state.id,
                    user_id,
                    state.item_id,
                    state.status.value,
                    state.interval_days,
                    state.ease_factor,
                    _to_db(state.due_at),
                    state.review_count,
                    state.lapse_count,
                    state.streak,
                    _to_db(state.last_reviewed_at),
                ),
            )
            # Another sitting may have inserted this item first; keep its row id
            row = conn.execute(
                "SELECT id FROM review_states WHERE user_id = ? AND item_id = ?",
                (user_id, state.item_id),
            ).fetchone()

        if row and row["id"] != state.id:
            state = replace(state, id=row["id"])
        return state

    @staticmethod
    def _row_to_state(row: sqlite3.Row) -> ReviewState:
        return ReviewState(
            id=row["id"],
            item_id=row["item_id"],
            status=ItemStatus(row["status"]),
            interval_days=row["interval_days"],
            ease_factor=row["ease_factor"],
            due_at=_from_db(row["due_at"]),
            review_count=row["review_count"],
            lapse_count=row["lapse_count"],
            streak=row["streak"],
            last_reviewed_at=_from_db(row["last_reviewed_at"]),
        )

    # ------------------------------------------------------------------
    # Review log
    # ------------------------------------------------------------------

    async def append_review_log(self, entry: ReviewLogEntry) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO review_logs (
                    id, user_id, item_id, review_state_id, review_mode, rating,
                    previous_status, previous_interval, previous_ease, previous_due,
                    new_status, new_interval, new_ease, new_due,
                    algorithm_version, reviewed_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.user_id,
                    entry.item_id,
                    entry.review_state_id,
                    entry.review_mode,
                    entry.rating.value,
                    entry.previous.status.value,
                    entry.previous.interval_days,
                    entry.previous.ease_factor,
                    _to_db(entry.previous.due_at),
                    entry.new.status.value,
                    entry.new.interval_days,
                    entry.new.ease_factor,
                    _to_db(entry.new.due_at),
                    entry.algorithm_version,
                    _to_db(entry.reviewed_at),
                ),
            )

    async def list_review_logs(
        self,
        user_id: str,
        since: datetime,
        until: datetime | None = None,
        previous_status: ItemStatus | None = None,
    ) -> list[ReviewLogEntry]:
        query = "SELECT * FROM review_logs WHERE user_id = ? AND reviewed_at >= ?"
        params: list = [user_id, _to_db(since)]
        if until is not None:
            query += " AND reviewed_at < ?"
            params.append(_to_db(until))
        if previous_status is not None:
            query += " AND previous_status = ?"
            params.append(previous_status.value)
        query += " ORDER BY reviewed_at ASC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            ReviewLogEntry(
                id=row["id"],
                user_id=row["user_id"],
                item_id=row["item_id"],
                rating=Rating(row["rating"]),
                previous=ReviewSnapshot(
                    status=ItemStatus(row["previous_status"]),
                    interval_days=row["previous_interval"],
                    ease_factor=row["previous_ease"],
                    due_at=_from_db(row["previous_due"]),
                ),
                new=ReviewSnapshot(
                    status=ItemStatus(row["new_status"]),
                    interval_days=row["new_interval"],
                    ease_factor=row["new_ease"],
                    due_at=_from_db(row["new_due"]),
                ),
                algorithm_version=row["algorithm_version"],
                reviewed_at=_from_db(row["reviewed_at"]),
                review_state_id=row["review_state_id"],
                review_mode=row["review_mode"],
            )
            for row in rows
        ]
