"""Human-readable interval labels and side-effect-free rating previews."""

import math
from datetime import datetime

from cadence.application.config import DEFAULT_SCHEDULER_CONFIG, SchedulerConfig
from cadence.application.scheduling import next_state
from cadence.application.utils.clock import local_day, utcnow
from cadence.domain.constants import (
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    DAYS_PER_YEAR,
    MINUTES_PER_DAY,
)
from cadence.domain.models import Rating, ReviewState


def _round(value: float) -> int:
    # Half-up, so 2.5 days reads as "3d" rather than banker's "2d"
    return math.floor(value + 0.5)


def format_interval(days: float) -> str:
    """
    Convert an interval in days to a short label.

    Returns "<1m", "10m", "6h", "3d", "2w", "4mo" or "1.5y".
    """
    minutes = days * MINUTES_PER_DAY
    if minutes < 1:
        return "<1m"
    if minutes < 60:
        return f"{_round(minutes)}m"

    hours = minutes / 60
    if hours < 24:
        return f"{_round(hours)}h"

    if days < DAYS_PER_WEEK:
        return f"{_round(days)}d"

    weeks = days / DAYS_PER_WEEK
    if weeks < 4:
        return f"{_round(weeks)}w"

    months = days / DAYS_PER_MONTH
    if months < 12:
        return f"{_round(months)}mo"

    return f"{days / DAYS_PER_YEAR:.1f}y"


def preview_intervals(
    state: ReviewState | None,
    config: SchedulerConfig = DEFAULT_SCHEDULER_CONFIG,
    now: datetime | None = None,
) -> dict[Rating, str]:
    """
    Show what each rating would yield, e.g.
    {again: "10m", hard: "1d", good: "3d", easy: "1w"}.

    Nothing is persisted and `state` is left untouched.
    """
    now = now or utcnow()
    return {
        rating: format_interval(next_state(state, rating, config, now).interval_days)
        for rating in Rating
    }


def _plural(count: int, unit: str) -> str:
    return f"in {count} {unit}" if count == 1 else f"in {count} {unit}s"


def relative_due_label(due_at: datetime | None, now: datetime | None = None) -> str:
    """
    Relative due date on local calendar days: "new", "due", "today",
    "tomorrow", "in 3 days", "in 2 weeks", "in 1 month", "in 2 years".
    """
    if due_at is None:
        return "new"

    now = now or utcnow()
    diff_days = (local_day(due_at) - local_day(now)).days

    if diff_days < 0:
        return "due"
    if diff_days == 0:
        return "today"
    if diff_days == 1:
        return "tomorrow"
    if diff_days < DAYS_PER_WEEK:
        return f"in {diff_days} days"

    weeks = _round(diff_days / DAYS_PER_WEEK)
    if weeks < 4:
        return _plural(weeks, "week")

    months = _round(diff_days / DAYS_PER_MONTH)
    if months < 12:
        return _plural(months, "month")

    return _plural(_round(diff_days / DAYS_PER_YEAR), "year")
