"""
Review Queue Factory
Centralizes wiring of stores and the queue manager from configuration.
"""

import random

from cadence.application.config import AppConfig
from cadence.application.review_queue import ReviewQueueManager
from cadence.domain.ports import ItemStore, SessionStore
from cadence.infrastructure.adapters.json_session import JsonFileSessionStore
from cadence.infrastructure.adapters.sqlite_store import SqliteItemStore


def get_item_store(config: AppConfig) -> SqliteItemStore:
    return SqliteItemStore(config.db_path or config.data_dir / "cadence.db")


def get_session_store(config: AppConfig) -> JsonFileSessionStore:
    return JsonFileSessionStore(config.session_path or config.data_dir / "session.json")


def get_review_queue(
    config: AppConfig,
    store: ItemStore | None = None,
    session_store: SessionStore | None = None,
) -> ReviewQueueManager:
    """
    Returns a ReviewQueueManager for the configured user.

    Explicit stores take precedence over the configured SQLite/JSON ones.
    """
    return ReviewQueueManager(
        store or get_item_store(config),
        session_store or get_session_store(config),
        config.user_id,
        new_items_per_day=config.new_items_per_day,
        scheduler_config=config.scheduler,
        rng=random.Random(config.seed) if config.seed is not None else None,
    )
