"""Pydantic models for the verse proxy API."""

from pydantic import BaseModel, Field, model_validator

from shared.models import GeneratedVerse, HistoryEntry


class RecommendRequest(BaseModel):
    """Request body for POST /verses/recommend."""

    mood: str = Field(..., min_length=1, max_length=2000)
    note: str | None = Field(default=None, max_length=2000)
    locale: str = Field(default="ko_KR", pattern=r"^[a-z]{2}(_[A-Z]{2})?$")


class VerseReply(BaseModel):
    """Structured reply the model is asked to produce.

    Either ``verse_ref`` or all of ``book``/``chapter``/``verse`` must be set.
    """

    verse_ref: str | None = None
    book: str | None = None
    chapter: int | None = Field(default=None, ge=1)
    verse: int | None = Field(default=None, ge=1)
    text: str = Field(..., min_length=1)
    translation: str = Field(default="NIV", min_length=1)
    reason: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def require_reference(self) -> "VerseReply":
        """Reject replies without any usable reference."""
        has_parts = self.book and self.chapter and self.verse
        if not self.verse_ref and not has_parts:
            raise ValueError("verse_ref or book/chapter/verse is required")
        return self


class RecommendResponse(BaseModel):
    """Response body for a successful recommendation."""

    verse: GeneratedVerse
    reference: str
    localized_reference: str
    remaining: int = Field(..., ge=0)
    review_codes: list[str] = Field(default_factory=list)


class UsageResponse(BaseModel):
    """Response body for GET /usage."""

    day_key: str
    request_count: int
    limit: int
    remaining: int


class HistoryResponse(BaseModel):
    """Response body for GET /history, oldest entry first."""

    entries: list[HistoryEntry]
    max_size: int


class ExplainRequest(BaseModel):
    """Request body for POST /verses/explain."""

    english_text: str = Field(..., min_length=1, max_length=2000)
    verse_ref: str = Field(..., min_length=1, max_length=60)
    mood: str = Field(..., min_length=1, max_length=2000)
    note: str | None = Field(default=None, max_length=2000)


class VerseExplanation(BaseModel):
    """Korean rendering of a verse and why it fits.

    ``korean`` is the Korean reference, a newline, then the paraphrase.
    """

    korean: str = Field(..., min_length=1)
    rationale: str = Field(..., min_length=1)

    @property
    def korean_reference(self) -> str:
        return self.korean.split("\n", 1)[0].strip().rstrip(".")

    @property
    def paraphrase(self) -> str:
        parts = self.korean.split("\n", 1)
        return parts[1].strip() if len(parts) == 2 else ""


class ExplainResponse(BaseModel):
    """Response body for a successful explanation."""

    korean: str
    rationale: str
    korean_reference: str
    paraphrase: str
    remaining: int = Field(..., ge=0)
