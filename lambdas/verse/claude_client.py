"""Claude API client for verse recommendations."""

from dataclasses import dataclass

import anthropic
from aws_lambda_powertools import Logger

logger = Logger(child=True)


@dataclass
class ClaudeResponse:
    """Model reply text with usage stats."""

    text: str
    input_tokens: int
    output_tokens: int


class ClaudeClient:
    """Wrapper for the Claude Messages API with prompt caching."""

    MODEL = "claude-3-haiku-20240307"
    MAX_TOKENS = 512

    def __init__(self, api_key: str, model: str | None = None):
        """Initialize Claude client.

        Args:
            api_key: Anthropic API key
            model: Optional model override
        """
        self.client = anthropic.Anthropic(api_key=api_key)
        self.model = model or self.MODEL

    def send(self, system_prompt: str, prompt: str) -> ClaudeResponse:
        """Send one prompt, return the reply with usage stats.

        Uses prompt caching on system_prompt.

        Args:
            system_prompt: Static instructions (cacheable)
            prompt: User input plus history context

        Returns:
            ClaudeResponse with text and token usage

        Raises:
            anthropic.APIError: On any provider failure
        """
        response = self.client.messages.create(
            model=self.model,
            max_tokens=self.MAX_TOKENS,
            system=[
                {
                    "type": "text",
                    "text": system_prompt,
                    "cache_control": {"type": "ephemeral"},
                }
            ],
            messages=[{"role": "user", "content": prompt}],
        )

        usage = response.usage
        cache_read = getattr(usage, "cache_read_input_tokens", 0) or 0

        logger.info(
            "Claude API usage",
            extra={
                "model": self.model,
                "input_tokens": usage.input_tokens,
                "output_tokens": usage.output_tokens,
                "cache_read_input_tokens": cache_read,
            },
        )

        return ClaudeResponse(
            text=response.content[0].text,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
