"""Verse generator backends."""

from typing import Protocol

import anthropic
from aws_lambda_powertools import Logger

from shared.exceptions import NetworkError
from shared.models import GeneratedVerse, Verse

from .claude_client import ClaudeClient
from .models import VerseExplanation
from .parser import parse_explanation_response, parse_verse_response
from .prompts import EXPLAIN_SYSTEM_PROMPT, SYSTEM_PROMPT

logger = Logger(child=True)


class VerseGenerator(Protocol):
    """Anything that turns a prompt into one recommended verse."""

    def generate(self, prompt: str) -> GeneratedVerse: ...


class VerseExplainer(Protocol):
    """Anything that turns an explain prompt into a Korean explanation."""

    def explain(self, prompt: str) -> VerseExplanation: ...


class ClaudeVerseGenerator:
    """Generates verses and explanations with the Claude Messages API."""

    def __init__(
        self,
        client: ClaudeClient,
        system_prompt: str = SYSTEM_PROMPT,
        explain_system_prompt: str = EXPLAIN_SYSTEM_PROMPT,
    ):
        self.client = client
        self.system_prompt = system_prompt
        self.explain_system_prompt = explain_system_prompt

    def _send(self, system_prompt: str, prompt: str) -> str:
        try:
            return self.client.send(system_prompt, prompt).text
        except anthropic.RateLimitError as e:
            logger.warning("Claude API rate limit exceeded")
            raise NetworkError("Upstream rate limit exceeded") from e
        except anthropic.APIConnectionError as e:
            logger.error(f"Claude API connection error: {e}")
            raise NetworkError("Could not reach upstream model") from e
        except anthropic.APIStatusError as e:
            logger.error(f"Claude API error: {e.status_code} - {e.message}")
            raise NetworkError(f"Upstream model error ({e.status_code})") from e

    def generate(self, prompt: str) -> GeneratedVerse:
        """Send a built prompt upstream and parse the reply.

        Args:
            prompt: Prompt text, including any history context

        Returns:
            Parsed verse recommendation

        Raises:
            NetworkError: If the provider call fails
            VerseParseError: If the reply has no usable verse
        """
        return parse_verse_response(self._send(self.system_prompt, prompt))

    def explain(self, prompt: str) -> VerseExplanation:
        """Ask for a Korean paraphrase and rationale of one verse.

        Raises:
            NetworkError: If the provider call fails
            VerseParseError: If the reply has no usable explanation
        """
        return parse_explanation_response(self._send(self.explain_system_prompt, prompt))


DEFAULT_MOCK_VERSE = GeneratedVerse(
    verse=Verse(
        book="Philippians",
        chapter=4,
        verse=13,
        text="I can do all this through him who gives me strength.",
        translation="NIV",
    ),
    reason="어떤 상황에서도 주님이 힘을 주신다는 약속을 기억하세요.",
)

DEFAULT_MOCK_EXPLANATION = VerseExplanation(
    korean="빌립보서 4:13\n그리스도께서 저에게 힘을 주시기에, 저는 모든 것을 해낼 수 있습니다.",
    rationale="지친 마음에 주님이 주시는 힘을 떠올리게 하는 말씀입니다.",
)


class MockVerseGenerator:
    """Returns a fixed verse or explanation and records the prompts it was given."""

    def __init__(
        self,
        verse: GeneratedVerse | None = None,
        error: Exception | None = None,
        explanation: VerseExplanation | None = None,
    ):
        self.verse = verse or DEFAULT_MOCK_VERSE
        self.explanation = explanation or DEFAULT_MOCK_EXPLANATION
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> GeneratedVerse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.verse

    def explain(self, prompt: str) -> VerseExplanation:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.explanation
