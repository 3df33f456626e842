"""Stable identifiers for review states and review log entries."""

from ulid import ULID

from cadence.domain.constants import REVIEW_LOG_ID_PREFIX, REVIEW_STATE_ID_PREFIX


def generate_review_state_id() -> str:
    """Generate a review-state ID using ULID."""
    return f"{REVIEW_STATE_ID_PREFIX}{ULID()}"


def generate_review_log_id() -> str:
    """Generate a review-log ID; ULIDs sort by creation time."""
    return f"{REVIEW_LOG_ID_PREFIX}{ULID()}"
