"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies beyond
pydantic, which is used only for the persisted session blob.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_INITIAL_EASE, REVIEW_MODE_STANDARD
from .errors import UnknownRatingError


class Rating(str, Enum):
    """Recall-quality rating, declared worst to best."""

    AGAIN = "again"
    HARD = "hard"
    GOOD = "good"
    EASY = "easy"

    @classmethod
    def parse(cls, value: "Rating | str") -> "Rating":
        """Coerce a rating or its string value; anything else is a caller error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnknownRatingError(value) from None


class ItemStatus(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"
    SUSPENDED = "suspended"

    @property
    def in_learning_phase(self) -> bool:
        return self in (ItemStatus.LEARNING, ItemStatus.RELEARNING)


@dataclass(frozen=True)
class LearningItem:
    """
    A learning item as seen by the scheduler.

    Content is owned by the item store; only the identifier matters here.
    """

    id: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class ReviewState:
    """
    Per user x item scheduling state.

    Attributes:
        item_id: The item this state belongs to.
        interval_days: Current interval in days (0 for never-reviewed items).
        ease_factor: Growth multiplier for successful recalls.
        status: Lifecycle status.
        due_at: When the item should next be shown (None while new).
        review_count: Total ratings applied.
        lapse_count: Total `again` ratings applied.
        streak: Consecutive non-`again` ratings.
        last_reviewed_at: Timestamp of the latest rating.
        id: Store-assigned identifier; None until first persisted.
    """

    item_id: str
    interval_days: float = 0.0
    ease_factor: float = DEFAULT_INITIAL_EASE
    status: ItemStatus = ItemStatus.NEW
    due_at: datetime | None = None
    review_count: int = 0
    lapse_count: int = 0
    streak: int = 0
    last_reviewed_at: datetime | None = None
    id: str | None = None

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    def is_due(self, now: datetime) -> bool:
        """Whether a previously reviewed item should be shown at `now`."""
        if self.status in (ItemStatus.NEW, ItemStatus.SUSPENDED):
            return False
        return self.due_at is not None and self.due_at <= now

    def snapshot(self) -> "ReviewSnapshot":
        return ReviewSnapshot(
            status=self.status,
            interval_days=self.interval_days,
            ease_factor=self.ease_factor,
            due_at=self.due_at,
        )

    def with_id(self, state_id: str) -> "ReviewState":
        return replace(self, id=state_id)


@dataclass(frozen=True)
class ScheduleResult:
    """Output of the scheduling algorithm for one rating."""

    interval_days: float
    ease_factor: float
    due_at: datetime
    status: ItemStatus


@dataclass(frozen=True)
class ReviewSnapshot:
    """The scheduling-relevant slice of a ReviewState at one point in time."""

    status: ItemStatus
    interval_days: float
    ease_factor: float
    due_at: datetime | None


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    Immutable record of one rating event.

    Append-only; used for audit and for counting items introduced today.
    """

    id: str
    user_id: str
    item_id: str
    rating: Rating
    previous: ReviewSnapshot
    new: ReviewSnapshot
    algorithm_version: str
    reviewed_at: datetime
    review_state_id: str | None = None
    review_mode: str = REVIEW_MODE_STANDARD

    @property
    def previous_status(self) -> ItemStatus:
        return self.previous.status


class SavedSession(BaseModel):
    """
    Persisted position of a review sitting.

    Serialized as a small JSON blob by the session store.
    """

    model_config = ConfigDict(frozen=True)

    item_ids: list[str] = Field(default_factory=list)
    cursor: int = Field(default=0, ge=0)
    timestamp: datetime


@dataclass
class RatingOutcome:
    """Result of submitting a rating in a sitting."""

    item_id: str
    rating: Rating
    previous_state: ReviewState
    new_state: ReviewState
    requeued: bool = False
    completed: bool = False
    warnings: list[str] = field(default_factory=list)
