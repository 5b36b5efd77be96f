"""Text normalization and screening before a prompt is sent upstream.

Steps run in a fixed order:

1. strip control and zero-width characters, normalize whitespace, trim
2. length bounds (in grapheme clusters)
3. collapse same-character runs
4. cap consecutive newlines
5. collapse repeated tokens
6. flag inputs that were mostly repetition
7. flag URLs, phone numbers and messenger contacts
8. flag inputs made mostly of symbols or emoji
9. flag inputs written mostly outside Korean and English

Steps 3-5 are repeated until the text stops changing, so normalizing an
already normalized text is a no-op.
"""

import unicodedata
from itertools import groupby

import regex
from aws_lambda_powertools import Logger

from .models import (
    RULE_SEVERITY,
    Hint,
    PreFilterConfig,
    PreFilterResult,
    PreFilterVerdict,
    RuleCode,
    Severity,
)

logger = Logger(child=True)

# C0 controls except \t \n \r, plus C1 controls
CONTROL_CHARS = regex.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

# U+200D is kept: it joins multi-codepoint emoji into one grapheme
ZERO_WIDTH_CHARS = regex.compile("[\u200b\u200c\u2060\ufeff]")

HORIZONTAL_SPACE = regex.compile(r"[^\S\n]+")
SPACE_AROUND_NEWLINE = regex.compile(r" ?\n ?")
GRAPHEME = regex.compile(r"\X")

URL_PATTERNS = [
    regex.compile(r"https?://\S+", regex.IGNORECASE),
    regex.compile(r"www\.\S+", regex.IGNORECASE),
    regex.compile(r"\b[a-zA-Z0-9.-]+\.(?:com|net|org|kr|co\.kr|io|app)\b", regex.IGNORECASE),
]

PHONE_PATTERNS = [
    regex.compile(r"01[0-9]-?\d{3,4}-?\d{4}"),
    regex.compile(r"\b\d{2,4}-\d{3,4}-\d{4}\b"),
]

CONTACT_PATTERNS = [
    regex.compile(r"카톡|카카오|텔레그램|오픈채팅"),
    regex.compile(r"\b(?:kakao(?:talk)?|telegram|line\s*id)\b", regex.IGNORECASE),
]

HINT_KEYS: dict[RuleCode, str] = {
    RuleCode.EMPTY_AFTER_NORMALIZE: "error.empty_input",
    RuleCode.ONLY_CONTROL_CHARS: "error.invalid_characters",
    RuleCode.LEN_TOO_SHORT: "error.too_short",
    RuleCode.LEN_EXCEEDED: "error.too_long",
    RuleCode.REPEAT_COLLAPSED: "info.repeat_collapsed",
    RuleCode.NEWLINES_COLLAPSED: "info.newlines_collapsed",
    RuleCode.TOKEN_REPEAT: "warning.repeated_tokens",
    RuleCode.MEANINGLESS_REPETITION: "warning.meaningless_repetition",
    RuleCode.URL_OR_CONTACT: "warning.url_or_contact",
    RuleCode.GIBBERISH_OR_SYMBOLS: "warning.mostly_symbols",
    RuleCode.UNSUPPORTED_LANG: "warning.unsupported_language",
}

# Flagged when collapsing leaves less than a fifth of the text
MEANINGLESS_RATIO = 5

SYMBOL_RATIO_THRESHOLD = 0.8

# Hangul syllables, Hangul jamo and compatibility jamo
HANGUL = regex.compile(r"[\uac00-\ud7af\u1100-\u11ff\u3130-\u318f]")
LATIN = regex.compile(r"[A-Za-z]")
SUPPORTED_LANG_RATIO = 0.1


def graphemes(text: str) -> list[str]:
    """Split text into user-perceived characters."""
    return GRAPHEME.findall(text)


def grapheme_len(text: str) -> int:
    return len(graphemes(text))


def _clean(text: str) -> str:
    """Step 1: character cleanup and whitespace normalization."""
    text = CONTROL_CHARS.sub("", text)
    text = ZERO_WIDTH_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = HORIZONTAL_SPACE.sub(" ", text)
    text = SPACE_AROUND_NEWLINE.sub("\n", text)
    return text.strip()


def _collapse_char_runs(text: str, threshold: int) -> str:
    pieces: list[str] = []
    for char, run in groupby(graphemes(text)):
        count = len(list(run))
        # Whitespace runs are handled by the newline rule
        if count >= threshold and not char.isspace():
            count = 2
        pieces.append(char * count)
    return "".join(pieces)


def _cap_newlines(text: str, max_newlines: int, threshold: int) -> str:
    """Cap newline runs at ``max_newlines``; runs at the repeat threshold drop to two."""

    def cap(match) -> str:
        count = len(match.group())
        if count >= threshold:
            count = min(2, max_newlines)
        return "\n" * min(count, max_newlines)

    return regex.sub(r"\n{2,}", cap, text)


def _collapse_token_repeats(text: str, max_repeat: int) -> str:
    keep = min(3, max_repeat - 1)

    # Short units repeated without separators, e.g. "ㅋㅎㅋㅎㅋㅎ..."
    unit_pattern = regex.compile(r"(\X{1,3}?)\1{%d,}" % (max_repeat - 1))
    text = unit_pattern.sub(lambda m: m.group(1) * keep, text)

    # Whole words repeated with spaces, e.g. "amen amen amen ..."
    lines = []
    for line in text.split("\n"):
        words: list[str] = []
        for word, run in groupby(line.split(" ")):
            count = len(list(run))
            if count >= max_repeat:
                count = keep
            words.extend([word] * count)
        lines.append(" ".join(words))
    return "\n".join(lines)


def _collapse(text: str, config: PreFilterConfig) -> tuple[str, list[RuleCode]]:
    """Steps 3-5, repeated to a fixed point."""
    fired: list[RuleCode] = []

    def mark(code: RuleCode) -> None:
        if code not in fired:
            fired.append(code)

    while True:
        before = text

        collapsed = _collapse_char_runs(text, config.reduce_repeat_threshold)
        if collapsed != text:
            mark(RuleCode.REPEAT_COLLAPSED)
            text = collapsed

        capped = _cap_newlines(text, config.max_newlines, config.reduce_repeat_threshold)
        if capped != text:
            mark(RuleCode.NEWLINES_COLLAPSED)
            text = capped

        deduped = _collapse_token_repeats(text, config.max_same_token_repeat)
        if deduped != text:
            mark(RuleCode.TOKEN_REPEAT)
            text = deduped

        if text == before:
            return text, fired


def _find_contact(text: str) -> tuple[int, int] | None:
    for pattern in URL_PATTERNS + PHONE_PATTERNS + CONTACT_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.span()
    return None


def _is_mostly_symbols(text: str) -> bool:
    visible = [g for g in graphemes(text) if not g.isspace()]
    if not visible:
        return False
    symbols = sum(1 for g in visible if unicodedata.category(g[0])[0] in ("S", "P"))
    return symbols / len(visible) > SYMBOL_RATIO_THRESHOLD


def _is_unsupported_language(text: str) -> bool:
    """Letters are present but Hangul and Latin make up under a tenth of the text."""
    visible = [g for g in graphemes(text) if not g.isspace()]
    if not any(unicodedata.category(g[0]).startswith("L") for g in visible):
        return False
    supported = sum(1 for g in visible if HANGUL.match(g) or LATIN.match(g))
    return supported / len(visible) < SUPPORTED_LANG_RATIO


def _verdict(codes: list[RuleCode]) -> PreFilterVerdict:
    for code in codes:
        if RULE_SEVERITY[code] is Severity.BLOCK:
            return PreFilterVerdict.block(code.value)
    for code in codes:
        if RULE_SEVERITY[code] is Severity.REVIEW:
            return PreFilterVerdict.needs_review(code.value)
    return PreFilterVerdict.allow()


def _result(
    text: str, codes: list[RuleCode], spans: dict[RuleCode, tuple[int, int]]
) -> PreFilterResult:
    return PreFilterResult(
        normalized_text=text,
        verdict=_verdict(codes),
        hints=tuple(Hint(HINT_KEYS[code], spans.get(code)) for code in codes),
        codes=tuple(code.value for code in codes),
    )


def pre_filter(text: str, config: PreFilterConfig | None = None) -> PreFilterResult:
    """Normalize and screen raw input text.

    Pure function of its arguments.

    Args:
        text: Raw text typed by the user
        config: Filter policy. Defaults to ``PreFilterConfig()``.

    Returns:
        PreFilterResult with the normalized text, verdict, hints and codes
    """
    config = config or PreFilterConfig.default()
    codes: list[RuleCode] = []
    spans: dict[RuleCode, tuple[int, int]] = {}

    cleaned = _clean(text)
    if not cleaned:
        if CONTROL_CHARS.search(text):
            codes.append(RuleCode.ONLY_CONTROL_CHARS)
        else:
            codes.append(RuleCode.EMPTY_AFTER_NORMALIZE)
        return _result("", codes, spans)

    # Oversized input is judged on its raw size, before whitespace collapsing
    length = grapheme_len(cleaned)
    if length < config.min_len:
        codes.append(RuleCode.LEN_TOO_SHORT)
    elif grapheme_len(text) > config.max_len:
        codes.append(RuleCode.LEN_EXCEEDED)

    normalized, fired = _collapse(cleaned, config)
    codes.extend(fired)

    if grapheme_len(normalized) * MEANINGLESS_RATIO < length:
        codes.append(RuleCode.MEANINGLESS_REPETITION)

    contact_span = _find_contact(normalized)
    if contact_span is not None:
        codes.append(RuleCode.URL_OR_CONTACT)
        spans[RuleCode.URL_OR_CONTACT] = contact_span

    if _is_mostly_symbols(normalized):
        codes.append(RuleCode.GIBBERISH_OR_SYMBOLS)

    if _is_unsupported_language(normalized):
        codes.append(RuleCode.UNSUPPORTED_LANG)

    result = _result(normalized, codes, spans)
    if codes:
        logger.debug(
            "Pre-filter rules fired",
            extra={"codes": list(result.codes), "verdict": result.verdict.kind.value},
        )
    return result


def normalize(text: str, config: PreFilterConfig | None = None) -> str:
    """Return only the normalized text of ``pre_filter``."""
    return pre_filter(text, config).normalized_text
