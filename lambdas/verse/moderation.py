"""Server-side content moderation of pre-filtered input.

Runs after the pre-filter and before any quota is spent:

- ``blocked``: the request stops with ModerationBlockedError
- ``needs_review``: the request goes ahead with a safe-mode prompt
- ``allowed``: the request goes ahead unchanged
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from aws_lambda_powertools import Logger

logger = Logger(child=True)


class ModerationVerdict(str, Enum):
    ALLOWED = "allowed"
    NEEDS_REVIEW = "needs_review"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class ModerationReport:
    """Moderation outcome for one input."""

    verdict: ModerationVerdict
    reason: str = ""
    categories: tuple[str, ...] = field(default_factory=tuple)
    confidence: float = 1.0

    @property
    def can_proceed(self) -> bool:
        return self.verdict is not ModerationVerdict.BLOCKED


ALLOWED_REPORT = ModerationReport(ModerationVerdict.ALLOWED)


class Moderator(Protocol):
    """Anything that judges normalized input text."""

    def analyze(self, text: str) -> ModerationReport: ...


# Attempts to steer the model away from its instructions
INJECTION_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)",
        r"disregard\s+(all\s+)?(previous|prior|above)\s+(instructions|prompts|rules)",
        r"(reveal|print|show)\s+(your\s+)?(system\s+)?prompt",
        r"you\s+are\s+now\s+(in\s+)?(\w+\s+)?mode",
        r"(이전|위의?)\s*(지시|명령|규칙)[을를]?\s*(모두\s*)?무시",
        r"시스템\s*프롬프트",
    ]
]

HATE_PATTERNS = [
    re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)
    for word in ("nigger", "faggot", "kike", "chink", "spic")
]

# Distress is not blocked; the reply is steered toward care instead
SELF_HARM_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [
        r"죽고\s*싶",
        r"자살",
        r"자해",
        r"사라지고\s*싶",
        r"\bkill\s+myself\b",
        r"\bsuicid(e|al)\b",
        r"\bend\s+my\s+life\b",
        r"\bself[-\s]?harm\b",
    ]
]

PROFANITY_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in [r"씨발|시발|ㅅㅂ", r"병신|ㅂㅅ", r"개새끼", r"\bfuck", r"\bshit\b"]
]


class PatternModerator:
    """Keyword and pattern based moderator.

    Blocking categories are checked first; the first match wins.
    """

    BLOCKING = (
        ("prompt_injection", INJECTION_PATTERNS),
        ("hate", HATE_PATTERNS),
    )
    REVIEW = (
        ("self_harm", SELF_HARM_PATTERNS),
        ("profanity", PROFANITY_PATTERNS),
    )

    def analyze(self, text: str) -> ModerationReport:
        """Judge one normalized input.

        Args:
            text: Pre-filtered user text

        Returns:
            ModerationReport with the verdict and matched categories
        """
        for category, patterns in self.BLOCKING:
            if any(pattern.search(text) for pattern in patterns):
                logger.info("Input blocked by moderation", extra={"category": category})
                return ModerationReport(
                    ModerationVerdict.BLOCKED, reason=category, categories=(category,)
                )

        matched = tuple(
            category
            for category, patterns in self.REVIEW
            if any(pattern.search(text) for pattern in patterns)
        )
        if matched:
            logger.info("Input flagged by moderation", extra={"categories": list(matched)})
            return ModerationReport(
                ModerationVerdict.NEEDS_REVIEW, reason=matched[0], categories=matched
            )

        return ALLOWED_REPORT
