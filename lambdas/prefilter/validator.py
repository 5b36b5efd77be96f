"""Mood/note input validation."""

import regex

from shared.exceptions import ValidationFailedError

from .service import grapheme_len


class InputValidationError(ValidationFailedError):
    """Base class for mood/note validation failures."""


class TooShortError(InputValidationError):
    def __init__(self, min_length: int) -> None:
        self.min_length = min_length
        super().__init__(f"최소 {min_length}자 이상 입력해주세요", code="too_short")


class TooLongError(InputValidationError):
    def __init__(self, max_length: int) -> None:
        self.max_length = max_length
        super().__init__(f"최대 {max_length}자까지 입력할 수 있습니다", code="too_long")


class ContainsSpamError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("링크가 너무 많이 포함되어 있습니다", code="contains_spam")


class ContainsForbiddenContentError(InputValidationError):
    def __init__(self) -> None:
        super().__init__("사용할 수 없는 표현이 포함되어 있습니다", code="contains_forbidden_content")


class InputValidator:
    """Validates the combined mood and note text.

    Lengths are counted in grapheme clusters.
    """

    MIN_LENGTH = 2
    MAX_LENGTH = 500

    # Three or more links are treated as spam
    SPAM_URL_COUNT = 3
    URL_PATTERN = regex.compile(r"https?://[\w\-.]+", regex.IGNORECASE)

    FORBIDDEN_KEYWORDS: tuple[str, ...] = ("test_forbidden", "spam_keyword")

    @classmethod
    def combine(cls, mood: str, note: str | None = None) -> str:
        return " ".join(part for part in (mood, note) if part is not None)

    @classmethod
    def validate(cls, mood: str, note: str | None = None) -> None:
        """Validate user input.

        Args:
            mood: The user's mood/situation text
            note: Optional additional note

        Raises:
            TooShortError: Combined text shorter than MIN_LENGTH
            TooLongError: Combined text longer than MAX_LENGTH
            ContainsSpamError: SPAM_URL_COUNT or more URLs
            ContainsForbiddenContentError: A forbidden keyword appears
        """
        text = cls.combine(mood, note)
        length = grapheme_len(text)

        if length < cls.MIN_LENGTH:
            raise TooShortError(min_length=cls.MIN_LENGTH)
        if length > cls.MAX_LENGTH:
            raise TooLongError(max_length=cls.MAX_LENGTH)

        if len(cls.URL_PATTERN.findall(text)) >= cls.SPAM_URL_COUNT:
            raise ContainsSpamError()

        lowered = text.lower()
        for keyword in cls.FORBIDDEN_KEYWORDS:
            if keyword in lowered:
                raise ContainsForbiddenContentError()
