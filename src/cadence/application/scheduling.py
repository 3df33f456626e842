"""
SM-2 style scheduling algorithm.

Pure computation: given the previous review state and a rating, derive the
next interval, ease, status and due time. No I/O; deterministic for a fixed
config and clock reading.

Phases:
1. New items take a fixed interval per rating (ease cannot be estimated yet)
2. Learning/relearning items graduate on fixed intervals, ease untouched
3. Review items grow by ease; `again` lapses them back to relearning
"""

from dataclasses import replace
from datetime import datetime, timedelta

from cadence.application.config import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from cadence.application.utils.clock import utcnow
from cadence.domain.constants import MIN_REVIEW_INTERVAL_DAYS
from cadence.domain.errors import InvalidTransitionError
from cadence.domain.models import ItemStatus, Rating, ReviewState, ScheduleResult


def initial_state(item_id: str, config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG) -> ReviewState:
    """Default state for an item that has never been rated."""
    return ReviewState(
        item_id=item_id,
        interval_days=0.0,
        ease_factor=config.initial_ease,
        status=ItemStatus.NEW,
    )


def next_state(
    previous: ReviewState | None,
    rating: Rating | str,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
    now: datetime | None = None,
) -> ScheduleResult:
    """
    Calculate the next review parameters for one rating.

    Args:
        previous: Current state, or None for an item that was never rated.
        rating: again/hard/good/easy (enum or string value).
        config: Algorithm tunables.
        now: Clock reading the due time is computed from (defaults to UTC now).

    Returns:
        ScheduleResult with interval_days, ease_factor, due_at and status.

    Raises:
        UnknownRatingError: rating is not one of the four values.
        InvalidTransitionError: the item is suspended.
    """
    rating = Rating.parse(rating)
    now = now or utcnow()

    interval = previous.interval_days if previous else 0.0
    ease = previous.ease_factor if previous else config.initial_ease
    status = previous.status if previous else ItemStatus.NEW

    if status == ItemStatus.SUSPENDED:
        raise InvalidTransitionError(
            f"Item {previous.item_id if previous else '?'} is suspended and cannot be rated"
        )

    if status == ItemStatus.NEW or interval == 0:
        new_interval = config.new_item_intervals[rating]
        if rating == Rating.AGAIN:
            new_status = ItemStatus.LEARNING
            ease = ease + config.ease_bonus.again
        else:
            new_status = ItemStatus.REVIEW

    elif status.in_learning_phase:
        new_interval = config.graduation_intervals[rating]
        new_status = status if rating == Rating.AGAIN else ItemStatus.REVIEW

    else:
        ease = max(config.minimum_ease, ease + config.ease_bonus[rating])
        new_interval, new_status = _review_interval(interval, ease, rating, config)

    new_interval = max(0.0, min(new_interval, config.max_interval_days))
    ease = max(config.minimum_ease, ease)

    return ScheduleResult(
        interval_days=new_interval,
        ease_factor=ease,
        due_at=now + timedelta(days=new_interval),
        status=new_status,
    )


def _review_interval(
    interval: float, ease: float, rating: Rating, config: SchedulerConfig
) -> tuple[float, ItemStatus]:
    if rating == Rating.AGAIN:
        return config.new_item_intervals.again, ItemStatus.RELEARNING
    if rating == Rating.HARD:
        grown = interval * config.interval_multiplier.hard
    elif rating == Rating.GOOD:
        grown = interval * ease
    else:
        grown = interval * ease * config.interval_multiplier.easy
    return max(grown, MIN_REVIEW_INTERVAL_DAYS), ItemStatus.REVIEW


def apply_rating(
    previous: ReviewState,
    rating: Rating | str,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
    now: datetime | None = None,
) -> ReviewState:
    """
    Produce the full successor ReviewState, including counters.

    review_count always grows; `again` counts a lapse and breaks the streak.
    """
    rating = Rating.parse(rating)
    now = now or utcnow()
    result = next_state(previous, rating, config, now)
    missed = rating == Rating.AGAIN

    return replace(
        previous,
        interval_days=result.interval_days,
        ease_factor=result.ease_factor,
        status=result.status,
        due_at=result.due_at,
        review_count=previous.review_count + 1,
        lapse_count=previous.lapse_count + (1 if missed else 0),
        streak=0 if missed else previous.streak + 1,
        last_reviewed_at=now,
    )
