"""Tests for the input pre-filter."""

from itertools import groupby

import pytest

from prefilter import (
    BLOCK_CODES,
    PreFilterConfig,
    PreFilterVerdict,
    RuleCode,
    VerdictKind,
    grapheme_len,
    normalize,
    pre_filter,
)
from prefilter.service import graphemes

FAMILY_EMOJI = "\U0001F468\u200d\U0001F469\u200d\U0001F467"

SAMPLES = [
    "aaaaa",
    "오늘 너무 힘들어요ㅠㅠㅠㅠㅠㅠ",
    "amen " * 12,
    "ㅋㅎ" * 10,
    "첫 줄\n\n\n\n\n둘째 줄",
    "  hello \t  world \r\n\r\n\r\n again  ",
    "https://spam.example.com 연락주세요 010-1234-5678",
    "😭😭😭😭😭 왜 이럴까요",
    FAMILY_EMOJI * 6,
    "a a a a a a a a a a a",
    "!!!!????....",
]


class TestPreFilterConfig:
    """Tests for PreFilterConfig."""

    def test_defaults(self):
        """Default policy values."""
        config = PreFilterConfig.default()
        assert config.min_len == 1
        assert config.max_len == 500
        assert config.reduce_repeat_threshold == 4
        assert config.max_newlines == 2
        assert config.max_same_token_repeat == 10

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_len": -1},
            {"min_len": 10, "max_len": 5},
            {"max_len": 0},
            {"reduce_repeat_threshold": 1},
            {"max_newlines": 0},
            {"max_same_token_repeat": 1},
        ],
    )
    def test_rejects_invalid_values(self, kwargs):
        """Nonsensical policies are rejected."""
        with pytest.raises(ValueError):
            PreFilterConfig(**kwargs)

    def test_is_immutable(self):
        """Configs cannot be mutated after construction."""
        config = PreFilterConfig()
        with pytest.raises(AttributeError):
            config.max_len = 10


class TestVerdict:
    """Tests for PreFilterVerdict."""

    def test_constructors(self):
        """Each variant carries its code."""
        assert PreFilterVerdict.allow().kind is VerdictKind.ALLOW
        assert PreFilterVerdict.allow().code is None
        assert PreFilterVerdict.needs_review("token_repeat").code == "token_repeat"
        assert PreFilterVerdict.block("len_exceeded").kind is VerdictKind.BLOCK

    def test_can_proceed(self):
        """Only blocked verdicts stop the request."""
        assert PreFilterVerdict.allow().can_proceed
        assert PreFilterVerdict.needs_review("x").can_proceed
        assert not PreFilterVerdict.block("x").can_proceed

    def test_block_codes(self):
        """Length and emptiness rules are the blocking ones."""
        assert BLOCK_CODES == {
            "empty_after_normalize",
            "only_control_chars",
            "len_too_short",
            "len_exceeded",
        }


class TestNormalization:
    """Tests for step 1 cleanup."""

    def test_whitespace(self):
        """Horizontal whitespace collapses and edges are trimmed."""
        assert normalize("  hello \t  world  ") == "hello world"

    def test_line_endings(self):
        """CRLF and CR become LF, without spaces around them."""
        assert normalize("a \r\n b\rc") == "a\nb\nc"

    def test_zero_width_removed(self):
        """Zero-width characters are dropped."""
        assert normalize("hel\u200blo\u2060\ufeff") == "hello"

    def test_zero_width_joiner_kept(self):
        """ZWJ sequences stay one grapheme."""
        result = pre_filter(f"가족 {FAMILY_EMOJI}")
        assert FAMILY_EMOJI in result.normalized_text
        assert grapheme_len(FAMILY_EMOJI) == 1

    def test_control_chars_removed(self):
        """Control characters are stripped from otherwise valid text."""
        assert normalize("he\x00llo\x7f") == "hello"

    def test_empty_input_blocks(self):
        """Empty-after-trim input is a length violation."""
        result = pre_filter("   \n\t  ")
        assert result.is_blocked
        assert result.verdict.code == "empty_after_normalize"
        assert result.normalized_text == ""

    def test_only_control_chars_blocks(self):
        """Input made only of control characters has its own code."""
        result = pre_filter("\x00\x01\x1b")
        assert result.is_blocked
        assert result.codes == ("only_control_chars",)
        assert result.hints[0].message_key == "error.invalid_characters"


class TestLengthRules:
    """Tests for step 2 length bounds."""

    def test_exceeded_blocks(self):
        """600 'a' characters are blocked as too long."""
        result = pre_filter("a" * 600)
        assert result.is_blocked
        assert result.verdict.code == "len_exceeded"
        assert "len_exceeded" in result.codes

    def test_too_short_blocks(self):
        """Shorter than min_len never allows."""
        result = pre_filter("abc", PreFilterConfig(min_len=5))
        assert result.verdict == PreFilterVerdict.block("len_too_short")

    def test_length_counts_graphemes(self):
        """A ZWJ emoji counts as one character."""
        config = PreFilterConfig(min_len=1, max_len=3)
        assert not pre_filter(FAMILY_EMOJI * 3, config).is_blocked
        assert pre_filter(FAMILY_EMOJI * 4, config).is_blocked

    def test_exact_bounds_pass(self):
        """Lengths equal to the bounds are accepted."""
        config = PreFilterConfig(min_len=3, max_len=5)
        assert not pre_filter("abc", config).is_blocked
        assert not pre_filter("abcde", config).is_blocked

    @pytest.mark.parametrize("text", ["a b c d e f g", "hello world!", "ㅋ" * 30])
    def test_over_max_always_blocks(self, text):
        """Anything longer than max_len blocks, even if collapsing would shrink it."""
        result = pre_filter(text, PreFilterConfig(max_len=10))
        assert result.verdict.kind is VerdictKind.BLOCK
        assert result.verdict.code == "len_exceeded"


class TestCollapseRules:
    """Tests for steps 3-5."""

    def test_repeat_collapsed(self):
        """'aaaaa' becomes 'aa' with an informational code."""
        result = pre_filter("aaaaa")
        assert result.normalized_text == "aa"
        assert "repeat_collapsed" in result.codes
        assert result.verdict.kind is VerdictKind.ALLOW

    def test_short_runs_kept(self):
        """Runs below the threshold are untouched."""
        result = pre_filter("aaa")
        assert result.normalized_text == "aaa"
        assert result.codes == ()

    def test_emoji_runs_collapse_by_grapheme(self):
        """Repeated emoji collapse without splitting them."""
        result = pre_filter(FAMILY_EMOJI * 6 + " 사랑해요")
        assert result.normalized_text == FAMILY_EMOJI * 2 + " 사랑해요"

    def test_newlines_capped(self):
        """Newline runs are capped at max_newlines."""
        result = pre_filter("첫 줄\n\n\n\n\n둘째 줄")
        assert result.normalized_text == "첫 줄\n\n둘째 줄"
        assert result.codes == ("newlines_collapsed",)
        assert result.verdict.kind is VerdictKind.ALLOW

    def test_long_newline_run_collapses_with_higher_cap(self):
        """A newline run at the repeat threshold drops to two even if more are allowed."""
        result = pre_filter("a\n\n\n\n\nb", PreFilterConfig(max_newlines=3))
        assert result.normalized_text == "a\n\nb"
        assert result.codes == ("newlines_collapsed",)

    def test_short_newline_run_kept_under_cap(self):
        """Below the threshold, runs up to max_newlines are kept."""
        result = pre_filter("a\n\n\nb", PreFilterConfig(max_newlines=3))
        assert result.normalized_text == "a\n\n\nb"
        assert result.codes == ()

    def test_single_newline_cap(self):
        """With max_newlines=1 every run collapses to one newline."""
        result = pre_filter("a\n\n\n\n\nb", PreFilterConfig(max_newlines=1))
        assert result.normalized_text == "a\nb"

    def test_word_repeat(self):
        """A word repeated ten times collapses to three and needs review."""
        result = pre_filter("amen " * 12)
        assert result.normalized_text == "amen amen amen"
        assert result.verdict == PreFilterVerdict.needs_review("token_repeat")

    def test_word_repeat_below_limit(self):
        """Nine repeats are left alone."""
        result = pre_filter(" ".join(["amen"] * 9))
        assert "token_repeat" not in result.codes

    def test_unit_repeat_without_spaces(self):
        """Short units repeated without separators collapse too."""
        result = pre_filter("ㅋㅎ" * 10)
        assert result.normalized_text == "ㅋㅎ" * 3
        assert "token_repeat" in result.codes

    def test_meaningless_repetition(self):
        """Text that was almost all repetition is flagged."""
        result = pre_filter("ㅋ" * 100)
        assert result.normalized_text == "ㅋㅋ"
        assert result.codes == ("repeat_collapsed", "meaningless_repetition")
        assert result.verdict == PreFilterVerdict.needs_review("meaningless_repetition")

    def test_collapse_hint_keys(self):
        """Every code gets a matching hint, in order."""
        result = pre_filter("ㅠㅠㅠㅠㅠ\n\n\n\n힘들어요")
        assert [hint.message_key for hint in result.hints] == [
            "info.repeat_collapsed",
            "info.newlines_collapsed",
        ]


class TestContentRules:
    """Tests for steps 7-8."""

    def test_url_flagged_with_span(self):
        """URLs need review and the hint points at them."""
        result = pre_filter("오늘 힘들어요 https://spam.example.com 연락주세요")
        assert result.verdict == PreFilterVerdict.needs_review("url_or_contact_detected")

        hint = result.hints[-1]
        start, end = hint.span
        assert result.normalized_text[start:end].startswith("https://")

    def test_phone_number_flagged(self):
        """Phone numbers are treated as contact info."""
        result = pre_filter("010-1234-5678로 연락주세요")
        assert RuleCode.URL_OR_CONTACT.value in result.codes

    def test_messenger_flagged(self):
        """Messenger handles are treated as contact info."""
        assert "url_or_contact_detected" in pre_filter("카톡 아이디 알려주세요").codes
        assert "url_or_contact_detected" in pre_filter("add me on Telegram").codes

    def test_plain_text_not_flagged(self):
        """Ordinary sentences pass untouched."""
        result = pre_filter("요즘 마음이 불안하고 잠이 안 와요")
        assert result.verdict.kind is VerdictKind.ALLOW
        assert result.codes == ()
        assert result.hints == ()

    def test_mostly_symbols_flagged(self):
        """Input that is nearly all emoji or punctuation needs review."""
        result = pre_filter("🙏😭💔✨?!")
        assert result.verdict == PreFilterVerdict.needs_review("gibberish_or_symbols")

    def test_some_emoji_allowed(self):
        """A few emoji in a sentence are fine."""
        result = pre_filter("감사한 하루였어요 🙏")
        assert "gibberish_or_symbols" not in result.codes

    @pytest.mark.parametrize(
        "text",
        ["今日はとても疲れました", "Сегодня мне очень грустно", "Σήμερα είμαι πολύ λυπημένος"],
    )
    def test_unsupported_language_flagged(self, text):
        """Text mostly outside Korean and English needs review."""
        result = pre_filter(text)
        assert result.verdict == PreFilterVerdict.needs_review("unsupported_lang_hint")
        assert result.hints[-1].message_key == "warning.unsupported_language"

    @pytest.mark.parametrize(
        "text", ["오늘 너무 힘들어요", "I feel lonely today", "ㅠㅠ 힘들다 so tired"]
    )
    def test_korean_and_english_not_flagged(self, text):
        """Korean, English and a mix of both are supported."""
        assert "unsupported_lang_hint" not in pre_filter(text).codes

    def test_symbols_are_not_a_language(self):
        """Input without letters is left to the symbol rule."""
        result = pre_filter("🙏😭💔✨?!")
        assert "unsupported_lang_hint" not in result.codes


class TestProperties:
    """Tests for pre-filter invariants."""

    @pytest.mark.parametrize("text", SAMPLES)
    def test_normalize_is_idempotent(self, text):
        """normalize(normalize(t)) == normalize(t)."""
        once = normalize(text)
        assert normalize(once) == once

    @pytest.mark.parametrize("text", SAMPLES)
    def test_no_long_runs_remain(self, text):
        """No non-space run reaches the collapse threshold afterwards."""
        result = pre_filter(text)
        if "repeat_collapsed" not in result.codes:
            return
        for char, run in groupby(graphemes(result.normalized_text)):
            if not char.isspace():
                assert len(list(run)) < PreFilterConfig().reduce_repeat_threshold

    @pytest.mark.parametrize("max_newlines", [1, 2, 3, 5, 10])
    @pytest.mark.parametrize("run", [4, 5, 8, 12])
    @pytest.mark.parametrize("char", ["\n", "a", "ㅠ"])
    def test_runs_at_threshold_end_at_most_two(self, char, run, max_newlines):
        """Any run that reached the threshold is at most two long, whatever the newline cap."""
        config = PreFilterConfig(max_newlines=max_newlines)
        result = pre_filter(f"시작{char * run}끝", config)
        longest = max(
            len(list(group))
            for grapheme, group in groupby(graphemes(result.normalized_text))
            if grapheme == char
        )
        assert longest <= 2
        assert normalize(result.normalized_text, config) == result.normalized_text

    @pytest.mark.parametrize("min_len", [2, 5, 20])
    def test_short_never_allows(self, min_len):
        """Below min_len the verdict is never allow."""
        result = pre_filter("a" * (min_len - 1), PreFilterConfig(min_len=min_len))
        assert result.verdict.kind is not VerdictKind.ALLOW

    def test_pure(self):
        """Same input, same output."""
        assert pre_filter("ㅠㅠㅠㅠ 힘들어") == pre_filter("ㅠㅠㅠㅠ 힘들어")
