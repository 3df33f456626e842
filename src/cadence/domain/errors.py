"""Exception types raised by the scheduler core."""


class CadenceError(Exception):
    """Base class for all scheduler errors."""


class UnknownRatingError(CadenceError, ValueError):
    """A rating value outside again/hard/good/easy was submitted."""

    def __init__(self, rating: object):
        super().__init__(f"Unknown rating: {rating!r}")
        self.rating = rating


class InvalidTransitionError(CadenceError, ValueError):
    """A rating was applied to an item whose status has no outgoing transitions."""


class NoCurrentItemError(CadenceError):
    """The review sitting has no current item (not loaded, empty, or complete)."""


class ReviewPersistenceError(CadenceError):
    """
    Writing the updated review state failed.

    The rating did not take effect: queue and cursor are unchanged and the
    caller should retry or tell the user.
    """

    def __init__(self, item_id: str, cause: BaseException):
        super().__init__(f"Failed to persist review state for item {item_id}: {cause}")
        self.item_id = item_id


class SessionCorruptError(CadenceError):
    """A persisted session blob could not be decoded."""
