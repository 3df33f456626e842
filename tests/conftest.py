import logging
import random
from datetime import datetime, timedelta

import pytest

from cadence.application.review_queue import ReviewQueueManager
from cadence.domain.models import ItemStatus, ReviewState
from cadence.infrastructure.adapters.memory import InMemoryItemStore, InMemorySessionStore

# Local noon keeps "same calendar day" checks stable in every timezone
NOW = datetime(2026, 3, 10, 12, 0, 0).astimezone()

USER = "user-1"


def _review_state(item_id: str, *, days_until_due: float = -1, **kwargs) -> ReviewState:
    """A graduated review-phase state, due `days_until_due` from NOW."""
    defaults = dict(
        interval_days=10.0,
        ease_factor=2.5,
        status=ItemStatus.REVIEW,
        due_at=NOW + timedelta(days=days_until_due),
        review_count=3,
        id=f"rs_{item_id}",
    )
    defaults.update(kwargs)
    return ReviewState(item_id=item_id, **defaults)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def user_id():
    return USER


@pytest.fixture
def make_state():
    return _review_state


@pytest.fixture
def store():
    return InMemoryItemStore()


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def make_manager(store, session_store):
    """Build a manager over the shared in-memory stores with a fixed clock."""

    def _make(**kwargs) -> ReviewQueueManager:
        kwargs.setdefault("clock", lambda: NOW)
        kwargs.setdefault("rng", random.Random(7))
        return ReviewQueueManager(store, session_store, USER, **kwargs)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config/logs
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def reset_cadence_logger():
    """Drop handlers installed by setup_logging so they don't outlive the test's streams."""
    yield
    logger = logging.getLogger("cadence")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
