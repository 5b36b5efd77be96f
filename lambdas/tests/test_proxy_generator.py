"""Tests for the proxy-backed verse generator."""

import io
import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from client.proxy_generator import ProxyVerseGenerator, error_from_status
from shared.exceptions import (
    ModerationBlockedError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    UnauthorizedError,
    UnknownError,
    ValidationFailedError,
    VerseParseError,
)

SUCCESS_BODY = {
    "verse": {
        "verse": {
            "book": "Matthew",
            "chapter": 11,
            "verse": 28,
            "text": "Come to me, all you who are weary and burdened, and I will give you rest.",
            "translation": "NIV",
        },
        "reason": "지친 마음에 쉼을 약속하신 말씀입니다.",
    },
    "reference": "Matthew 11:28",
    "localized_reference": "Matthew 11:28",
    "remaining": 4,
    "review_codes": [],
}


def lambda_reply(status_code: int, body: dict | str | None, function_error: str | None = None):
    """Build a boto3 Lambda invoke response."""
    payload = {
        "statusCode": status_code,
        "body": body if isinstance(body, str) or body is None else json.dumps(body),
    }
    reply = {"StatusCode": 200, "Payload": io.BytesIO(json.dumps(payload).encode("utf-8"))}
    if function_error:
        reply["FunctionError"] = function_error
    return reply


@pytest.fixture
def lambda_client():
    """Create a mock boto3 Lambda client."""
    return MagicMock()


@pytest.fixture
def generator(lambda_client):
    """Create a generator for a fixed user."""
    return ProxyVerseGenerator("qtune-verse-proxy", "user-123", lambda_client=lambda_client)


class TestProxyVerseGenerator:
    """Tests for ProxyVerseGenerator.generate."""

    def test_success(self, generator, lambda_client):
        """A 200 reply becomes a GeneratedVerse."""
        lambda_client.invoke.return_value = lambda_reply(200, SUCCESS_BODY)

        result = generator.generate("지쳤어요")

        assert result.verse.reference == "Matthew 11:28"
        assert result.reason == "지친 마음에 쉼을 약속하신 말씀입니다."
        assert generator.remaining == 4

    def test_sends_api_gateway_event(self, generator, lambda_client):
        """The invocation carries the user and prompt."""
        lambda_client.invoke.return_value = lambda_reply(200, SUCCESS_BODY)

        generator.generate("지쳤어요")

        kwargs = lambda_client.invoke.call_args.kwargs
        assert kwargs["FunctionName"] == "qtune-verse-proxy"
        assert kwargs["InvocationType"] == "RequestResponse"
        event = json.loads(kwargs["Payload"])
        assert event["httpMethod"] == "POST"
        assert event["path"] == "/verses/recommend"
        assert event["headers"]["X-User-Id"] == "user-123"
        assert json.loads(event["body"]) == {"mood": "지쳤어요", "locale": "ko_KR"}

    def test_rate_limited(self, generator, lambda_client):
        """429 replies raise RateLimitedError with the reset time."""
        lambda_client.invoke.return_value = lambda_reply(
            429,
            {
                "error": "limit_reached",
                "message": "요청이 너무 많습니다",
                "limit": 10,
                "retry_after": "2026-03-02T00:00:00+09:00",
            },
        )

        with pytest.raises(RateLimitedError) as exc_info:
            generator.generate("감사해요")

        assert exc_info.value.limit == 10
        assert exc_info.value.retry_after == "2026-03-02T00:00:00+09:00"

    def test_invoke_failure(self, generator, lambda_client):
        """Transport errors become NetworkError."""
        lambda_client.invoke.side_effect = ClientError(
            {"Error": {"Code": "TooManyRequestsException", "Message": "slow down"}},
            "Invoke",
        )

        with pytest.raises(NetworkError):
            generator.generate("감사해요")

    def test_function_error(self, generator, lambda_client):
        """Unhandled proxy crashes become NetworkError."""
        lambda_client.invoke.return_value = lambda_reply(500, None, function_error="Unhandled")

        with pytest.raises(NetworkError):
            generator.generate("감사해요")

    def test_malformed_success_body(self, generator, lambda_client):
        """A 200 without a verse is a parse error."""
        lambda_client.invoke.return_value = lambda_reply(200, {"unexpected": True})

        with pytest.raises(VerseParseError):
            generator.generate("감사해요")


EXPLAIN_BODY = {
    "korean": "마태복음 11:28\n수고하고 무거운 짐 진 사람은 모두 내게 오십시오.",
    "rationale": "쉼을 약속하신 말씀입니다.",
    "korean_reference": "마태복음 11:28",
    "paraphrase": "수고하고 무거운 짐 진 사람은 모두 내게 오십시오.",
    "remaining": 3,
}


class TestExplainVerse:
    """Tests for ProxyVerseGenerator.explain_verse."""

    def test_success(self, generator, lambda_client):
        """A 200 reply becomes an ExplainResponse and updates the quota."""
        lambda_client.invoke.return_value = lambda_reply(200, EXPLAIN_BODY)

        result = generator.explain_verse(
            "Come to me, all you who are weary.", "Matthew 11:28", "지쳤어요"
        )

        assert result.korean_reference == "마태복음 11:28"
        assert generator.remaining == 3

        event = json.loads(lambda_client.invoke.call_args.kwargs["Payload"])
        assert event["path"] == "/verses/explain"
        assert json.loads(event["body"]) == {
            "english_text": "Come to me, all you who are weary.",
            "verse_ref": "Matthew 11:28",
            "mood": "지쳤어요",
        }

    def test_hourly_limit(self, generator, lambda_client):
        """429 replies keep their scope."""
        lambda_client.invoke.return_value = lambda_reply(
            429, {"error": "limit_reached", "limit": 10, "scope": "hourly"}
        )

        with pytest.raises(RateLimitedError) as exc_info:
            generator.explain_verse("text", "Matthew 11:28", "지쳤어요")

        assert exc_info.value.scope == "hourly"

    def test_malformed_success_body(self, generator, lambda_client):
        lambda_client.invoke.return_value = lambda_reply(200, {"korean": "마태복음 11:28"})

        with pytest.raises(VerseParseError):
            generator.explain_verse("text", "Matthew 11:28", "지쳤어요")


class TestErrorFromStatus:
    """Tests for error_from_status mapping."""

    def test_validation(self):
        """400 maps to ValidationFailedError with the code."""
        error = error_from_status(400, {"message": "입력이 너무 깁니다", "code": "len_exceeded"})
        assert isinstance(error, ValidationFailedError)
        assert error.code == "len_exceeded"
        assert error.user_message == "입력이 너무 깁니다"

    def test_moderation(self):
        """400 with moderation_blocked maps to ModerationBlockedError."""
        error = error_from_status(
            400,
            {"error": "moderation_blocked", "message": "부적절한 내용", "reason": "hate"},
        )
        assert isinstance(error, ModerationBlockedError)
        assert error.reason == "hate"
        assert error.user_message == "부적절한 내용이 포함되어 있습니다: 혐오 표현"

    def test_hourly_scope(self):
        """The limit scope survives the round trip."""
        error = error_from_status(429, {"limit": 10, "scope": "hourly"})
        assert isinstance(error, RateLimitedError)
        assert error.scope == "hourly"
        assert error_from_status(429, {}).scope == "daily"

    def test_not_found_names_route(self):
        error = error_from_status(404, {}, "/verses/explain")
        assert isinstance(error, NotFoundError)
        assert error.resource_id == "/verses/explain"

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, UnauthorizedError),
            (403, UnauthorizedError),
            (404, NotFoundError),
            (429, RateLimitedError),
            (500, NetworkError),
            (502, NetworkError),
            (503, NetworkError),
            (418, UnknownError),
        ],
    )
    def test_status_mapping(self, status, expected):
        """Each status family maps to its domain error."""
        assert isinstance(error_from_status(status, {}), expected)

    def test_default_message(self):
        """Missing messages fall back to the status."""
        assert "503" in error_from_status(503, {}).message
