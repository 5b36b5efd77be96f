"""Quota limit configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class QuotaLimits:
    """Per-user limits for verse generation.

    Daily counters reset at midnight in QUOTA_TIMEZONE (UTC by default).
    """

    # Verse generations per user per calendar day
    DAILY_LIMIT: int = 10

    # Verse generations per user per clock hour
    HOURLY_LIMIT: int = 10

    # Length of one rate-limit window, in seconds
    RATE_WINDOW_SECONDS: int = 3600

    # Past entries forwarded to the model with each request
    MAX_HISTORY_SIZE: int = 100

    # Warning threshold (log warning at this %)
    WARNING_THRESHOLD: float = 0.8

    # Usage counters expire after this many days
    USAGE_TTL_DAYS: int = 7
