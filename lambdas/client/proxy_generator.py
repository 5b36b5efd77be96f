"""Verse generator that calls the verse proxy Lambda."""

import json
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError
from pydantic import ValidationError

from shared.exceptions import (
    DomainError,
    ModerationBlockedError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    UnknownError,
    ValidationFailedError,
    VerseParseError,
)
from shared.models import GeneratedVerse
from verse.models import ExplainRequest, ExplainResponse, RecommendResponse

logger = Logger(child=True)

RECOMMEND_PATH = "/verses/recommend"
EXPLAIN_PATH = "/verses/explain"


class ProxyVerseGenerator:
    """Production generator: the upstream credential stays on the proxy.

    Each call is one synchronous Lambda invocation carrying an API Gateway
    proxy event. Non-2xx replies become ``DomainError`` subclasses.
    """

    def __init__(
        self,
        function_name: str,
        user_id: str,
        locale: str = "ko_KR",
        lambda_client: Any = None,
    ) -> None:
        """Initialize generator.

        Args:
            function_name: Name or ARN of the verse proxy function
            user_id: Caller ID sent as X-User-Id
            locale: Locale for the reply language
            lambda_client: Optional boto3 Lambda client
        """
        self.function_name = function_name
        self.user_id = user_id
        self.locale = locale
        self.lambda_client = lambda_client or boto3.client("lambda")
        self.remaining: int | None = None
        self.review_codes: list[str] = []

    def _build_event(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return {
            "httpMethod": "POST",
            "path": path,
            "resource": path,
            "headers": {"Content-Type": "application/json", "X-User-Id": self.user_id},
            "queryStringParameters": None,
            "pathParameters": None,
            "body": json.dumps(body),
            "isBase64Encoded": False,
            "requestContext": {"httpMethod": "POST", "path": path},
        }

    def _invoke(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.lambda_client.invoke(
                FunctionName=self.function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(self._build_event(path, body)).encode("utf-8"),
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            logger.error(f"Proxy invoke failed: {error_code} - {e}")
            raise NetworkError(f"Proxy invoke failed ({error_code})") from e

        payload = json.loads(response["Payload"].read() or b"{}")
        if response.get("FunctionError"):
            logger.error(
                "Proxy function error",
                extra={"function_error": response["FunctionError"], "payload": payload},
            )
            raise NetworkError("Proxy function failed")
        return payload

    def generate(self, prompt: str) -> GeneratedVerse:
        """Ask the proxy for a verse.

        Args:
            prompt: Pre-filtered user text

        Returns:
            The recommended verse

        Raises:
            DomainError: Mapped from the proxy's status code
        """
        payload = self._invoke(RECOMMEND_PATH, {"mood": prompt, "locale": self.locale})
        body = _checked_body(payload, RECOMMEND_PATH)

        try:
            recommended = RecommendResponse.model_validate(body)
        except ValidationError as e:
            raise VerseParseError("Proxy reply is not a verse", raw=payload.get("body")) from e

        self.remaining = recommended.remaining
        self.review_codes = recommended.review_codes
        return recommended.verse

    def explain_verse(
        self,
        english_text: str,
        verse_ref: str,
        mood: str,
        note: str | None = None,
    ) -> ExplainResponse:
        """Ask the proxy for a Korean rendering of a recommended verse.

        Raises:
            DomainError: Mapped from the proxy's status code
        """
        request = ExplainRequest(
            english_text=english_text, verse_ref=verse_ref, mood=mood, note=note
        )
        payload = self._invoke(EXPLAIN_PATH, request.model_dump(exclude_none=True))
        body = _checked_body(payload, EXPLAIN_PATH)

        try:
            explained = ExplainResponse.model_validate(body)
        except ValidationError as e:
            raise VerseParseError(
                "Proxy reply is not an explanation", raw=payload.get("body")
            ) from e

        self.remaining = explained.remaining
        return explained


def _checked_body(payload: dict[str, Any], path: str) -> dict[str, Any]:
    """Decode the reply body, raising the mapped error for non-200 replies."""
    status_code = int(payload.get("statusCode", 500))
    body = _load_body(payload.get("body"))
    if status_code != 200:
        raise error_from_status(status_code, body, path)
    return body


def _load_body(raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        return {"message": raw}
    return body if isinstance(body, dict) else {}


def error_from_status(
    status_code: int, body: dict[str, Any], path: str = RECOMMEND_PATH
) -> DomainError:
    """Map a proxy error reply to a domain error.

    Args:
        status_code: HTTP status from the proxy
        body: Decoded JSON error body
        path: Route that was called

    Returns:
        The matching DomainError
    """
    message = body.get("message") or f"Proxy returned {status_code}"
    error = body.get("error")

    if status_code == 400:
        if error == "moderation_blocked":
            return ModerationBlockedError(body.get("reason") or message)
        return ValidationFailedError(message, code=body.get("code"))
    if status_code in (401, 403):
        return UnauthorizedError(message)
    if status_code == 404:
        return NotFoundError("Route", path)
    if status_code == 429:
        return RateLimitedError(
            message,
            limit=body.get("limit"),
            retry_after=body.get("retry_after"),
            scope=body.get("scope", "daily"),
        )
    if status_code >= 500:
        return NetworkError(message)
    return UnknownError(message)
