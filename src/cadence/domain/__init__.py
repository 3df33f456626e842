# Domain Package
from .errors import (
    CadenceError,
    InvalidTransitionError,
    NoCurrentItemError,
    ReviewPersistenceError,
    SessionCorruptError,
    UnknownRatingError,
)
from .models import (
    ItemStatus,
    LearningItem,
    Rating,
    RatingOutcome,
    ReviewLogEntry,
    ReviewSnapshot,
    ReviewState,
    SavedSession,
    ScheduleResult,
)
from .ports import ItemStore, SessionStore

__all__ = [
    "CadenceError",
    "InvalidTransitionError",
    "NoCurrentItemError",
    "ReviewPersistenceError",
    "SessionCorruptError",
    "UnknownRatingError",
    "ItemStatus",
    "LearningItem",
    "Rating",
    "RatingOutcome",
    "ReviewLogEntry",
    "ReviewSnapshot",
    "ReviewState",
    "SavedSession",
    "ScheduleResult",
    "ItemStore",
    "SessionStore",
]
