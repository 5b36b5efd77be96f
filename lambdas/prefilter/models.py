"""Models for client-side input pre-filtering."""

from dataclasses import dataclass, field
from enum import Enum


class RuleCode(str, Enum):
    """Codes emitted by pre-filter rules."""

    EMPTY_AFTER_NORMALIZE = "empty_after_normalize"
    ONLY_CONTROL_CHARS = "only_control_chars"
    LEN_TOO_SHORT = "len_too_short"
    LEN_EXCEEDED = "len_exceeded"
    REPEAT_COLLAPSED = "repeat_collapsed"
    NEWLINES_COLLAPSED = "newlines_collapsed"
    TOKEN_REPEAT = "token_repeat"
    MEANINGLESS_REPETITION = "meaningless_repetition"
    URL_OR_CONTACT = "url_or_contact_detected"
    GIBBERISH_OR_SYMBOLS = "gibberish_or_symbols"
    UNSUPPORTED_LANG = "unsupported_lang_hint"


class Severity(str, Enum):
    """How a rule code affects the verdict."""

    BLOCK = "block"
    REVIEW = "review"
    INFO = "info"


RULE_SEVERITY: dict[RuleCode, Severity] = {
    RuleCode.EMPTY_AFTER_NORMALIZE: Severity.BLOCK,
    RuleCode.ONLY_CONTROL_CHARS: Severity.BLOCK,
    RuleCode.LEN_TOO_SHORT: Severity.BLOCK,
    RuleCode.LEN_EXCEEDED: Severity.BLOCK,
    RuleCode.REPEAT_COLLAPSED: Severity.INFO,
    RuleCode.NEWLINES_COLLAPSED: Severity.INFO,
    RuleCode.TOKEN_REPEAT: Severity.REVIEW,
    RuleCode.MEANINGLESS_REPETITION: Severity.REVIEW,
    RuleCode.URL_OR_CONTACT: Severity.REVIEW,
    RuleCode.GIBBERISH_OR_SYMBOLS: Severity.REVIEW,
    RuleCode.UNSUPPORTED_LANG: Severity.REVIEW,
}

BLOCK_CODES = frozenset(
    code.value for code, severity in RULE_SEVERITY.items() if severity is Severity.BLOCK
)

# User-facing messages for blocking codes
BLOCK_MESSAGES: dict[str, str] = {
    RuleCode.EMPTY_AFTER_NORMALIZE.value: "내용을 입력해주세요",
    RuleCode.ONLY_CONTROL_CHARS.value: "사용할 수 없는 문자만 입력되었습니다",
    RuleCode.LEN_TOO_SHORT.value: "조금 더 길게 입력해주세요",
    RuleCode.LEN_EXCEEDED.value: "입력이 너무 깁니다",
}


@dataclass(frozen=True)
class PreFilterConfig:
    """Pre-filter policy.

    Lengths are counted in user-perceived characters (grapheme clusters).
    """

    min_len: int = 1
    max_len: int = 500
    reduce_repeat_threshold: int = 4
    """Runs of one character at least this long collapse to two.

    Newline runs collapse to ``min(2, max_newlines)``.
    """

    max_newlines: int = 2
    """Longest allowed run of consecutive newlines."""

    max_same_token_repeat: int = 10
    """Consecutive repeats of one token at which it is collapsed and flagged."""

    def __post_init__(self) -> None:
        if self.min_len < 0:
            raise ValueError("min_len must be non-negative")
        if self.max_len < max(self.min_len, 1):
            raise ValueError("max_len must be at least min_len and positive")
        if self.reduce_repeat_threshold < 2:
            raise ValueError("reduce_repeat_threshold must be at least 2")
        if self.max_newlines < 1:
            raise ValueError("max_newlines must be at least 1")
        if self.max_same_token_repeat < 2:
            raise ValueError("max_same_token_repeat must be at least 2")

    @classmethod
    def default(cls) -> "PreFilterConfig":
        return cls()


class VerdictKind(str, Enum):
    ALLOW = "allow"
    NEEDS_REVIEW = "needs_review"
    BLOCK = "block"


@dataclass(frozen=True)
class PreFilterVerdict:
    """Outcome of pre-filtering one input."""

    kind: VerdictKind
    code: str | None = None

    @classmethod
    def allow(cls) -> "PreFilterVerdict":
        return cls(VerdictKind.ALLOW)

    @classmethod
    def needs_review(cls, code: str) -> "PreFilterVerdict":
        return cls(VerdictKind.NEEDS_REVIEW, code)

    @classmethod
    def block(cls, code: str) -> "PreFilterVerdict":
        return cls(VerdictKind.BLOCK, code)

    @property
    def can_proceed(self) -> bool:
        """Whether the text may be sent to the server."""
        return self.kind is not VerdictKind.BLOCK


@dataclass(frozen=True)
class Hint:
    """UI hint; ``span`` is a (start, end) index range into the normalized text."""

    message_key: str
    span: tuple[int, int] | None = None


@dataclass(frozen=True)
class PreFilterResult:
    """Normalized text, verdict and the hints and codes collected on the way."""

    normalized_text: str
    verdict: PreFilterVerdict
    hints: tuple[Hint, ...] = field(default_factory=tuple)
    codes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_blocked(self) -> bool:
        return self.verdict.kind is VerdictKind.BLOCK

    @property
    def needs_warning(self) -> bool:
        return self.verdict.kind is VerdictKind.NEEDS_REVIEW