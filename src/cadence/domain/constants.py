"""Centralized constants for the cadence scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Algorithm ----------
ALGORITHM_VERSION = "sm2-basic-1.0"

DEFAULT_INITIAL_EASE = 2.5
DEFAULT_MINIMUM_EASE = 1.3
DEFAULT_MAX_INTERVAL_DAYS = 365.0

# Ten minutes, expressed in days
LAPSE_INTERVAL_DAYS = 0.00694

# Review-phase intervals never drop below one day
MIN_REVIEW_INTERVAL_DAYS = 1.0

# ---------- Time ----------
SECONDS_PER_DAY = 86400
MINUTES_PER_DAY = 24 * 60
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365

# ---------- Daily Quota ----------
DEFAULT_NEW_ITEMS_PER_DAY = 10

# ---------- Review Log ----------
REVIEW_MODE_STANDARD = "standard"

# ---------- Identifiers ----------
REVIEW_STATE_ID_PREFIX = "rs_"
REVIEW_LOG_ID_PREFIX = "rl_"
