"""Shared utilities for QTune Lambda functions."""

from .config import Config
from .db import DynamoDBClient
from .exceptions import (
    ConfigurationError,
    DomainError,
    ModerationBlockedError,
    NetworkError,
    NotFoundError,
    QTuneError,
    RateLimitedError,
    UnauthorizedError,
    UnknownError,
    ValidationFailedError,
    VerseParseError,
)
from .history import HistoryList, HistoryStore, truncate_history
from .rate_limiter import RateLimiter
from .models import (
    GeneratedVerse,
    HistoryEntry,
    QuietTimeDraft,
    Verse,
)
from .usage_counter import DailyUsage, DailyUsageCounter

__all__ = [
    # Config
    "Config",
    # Database
    "DynamoDBClient",
    # Exceptions
    "ConfigurationError",
    "DomainError",
    "ModerationBlockedError",
    "NetworkError",
    "NotFoundError",
    "QTuneError",
    "RateLimitedError",
    "UnauthorizedError",
    "UnknownError",
    "ValidationFailedError",
    "VerseParseError",
    # History and quota
    "DailyUsage",
    "DailyUsageCounter",
    "HistoryList",
    "HistoryStore",
    "RateLimiter",
    "truncate_history",
    # Models
    "GeneratedVerse",
    "HistoryEntry",
    "QuietTimeDraft",
    "Verse",
]
