"""cadence: spaced-repetition review scheduler."""

from cadence.consts import VERSION

__version__ = VERSION
