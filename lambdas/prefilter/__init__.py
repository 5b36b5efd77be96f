"""Input pre-filtering and validation."""

from .models import (
    BLOCK_CODES,
    Hint,
    PreFilterConfig,
    PreFilterResult,
    PreFilterVerdict,
    RuleCode,
    Severity,
    VerdictKind,
)
from .service import grapheme_len, normalize, pre_filter
from .validator import (
    ContainsForbiddenContentError,
    ContainsSpamError,
    InputValidationError,
    InputValidator,
    TooLongError,
    TooShortError,
)

__all__ = [
    # Models
    "BLOCK_CODES",
    "Hint",
    "PreFilterConfig",
    "PreFilterResult",
    "PreFilterVerdict",
    "RuleCode",
    "Severity",
    "VerdictKind",
    # Filtering
    "grapheme_len",
    "normalize",
    "pre_filter",
    # Validation
    "ContainsForbiddenContentError",
    "ContainsSpamError",
    "InputValidationError",
    "InputValidator",
    "TooLongError",
    "TooShortError",
]
