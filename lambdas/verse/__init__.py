"""Verse recommendation proxy."""

from .claude_client import ClaudeClient
from .generator import (
    ClaudeVerseGenerator,
    MockVerseGenerator,
    VerseExplainer,
    VerseGenerator,
)
from .models import (
    ExplainRequest,
    ExplainResponse,
    HistoryResponse,
    RecommendRequest,
    RecommendResponse,
    UsageResponse,
    VerseExplanation,
    VerseReply,
)
from .moderation import ModerationReport, ModerationVerdict, Moderator, PatternModerator
from .parser import parse_explanation_response, parse_verse_ref, parse_verse_response
from .service import VerseService

__all__ = [
    "ClaudeClient",
    "ClaudeVerseGenerator",
    "ExplainRequest",
    "ExplainResponse",
    "HistoryResponse",
    "MockVerseGenerator",
    "ModerationReport",
    "ModerationVerdict",
    "Moderator",
    "PatternModerator",
    "RecommendRequest",
    "RecommendResponse",
    "UsageResponse",
    "VerseExplainer",
    "VerseExplanation",
    "VerseGenerator",
    "VerseReply",
    "VerseService",
    "parse_explanation_response",
    "parse_verse_ref",
    "parse_verse_response",
]
