"""Verse proxy Lambda handler."""

import json
from typing import Any

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.event_handler import (
    APIGatewayRestResolver,
    CORSConfig,
    Response,
)
from aws_lambda_powertools.event_handler.exceptions import (
    BadRequestError,
    UnauthorizedError,
)
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from prefilter import BLOCK_CODES
from shared.config import get_config
from shared.db import DynamoDBClient
from shared.exceptions import (
    DomainError,
    ModerationBlockedError,
    NetworkError,
    RateLimitedError,
    ValidationFailedError,
    VerseParseError,
)
from shared.history import HistoryStore
from shared.rate_limiter import RateLimiter
from shared.secrets import get_claude_api_key
from shared.usage_counter import DailyUsageCounter
from shared.utils import extract_user_id
from verse.claude_client import ClaudeClient
from verse.generator import ClaudeVerseGenerator
from verse.models import ExplainRequest, RecommendRequest
from verse.service import VerseService

logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace="QTune")

cors_config = CORSConfig(
    allow_origin="*",
    allow_headers=["Content-Type", "X-User-ID", "X-User-Id"],
    max_age=300,
)
app = APIGatewayRestResolver(cors=cors_config)

# Initialize service lazily
_service: VerseService | None = None

MAX_HISTORY_PAGE = 100


def get_service() -> VerseService:
    """Get or create the verse service instance."""
    global _service
    if _service is None:
        config = get_config()
        counter = DailyUsageCounter(
            config.table_name,
            limit=config.daily_limit,
            tz_name=config.quota_timezone,
        )
        history_store = HistoryStore(
            DynamoDBClient(config.table_name), max_size=config.max_history_size
        )
        client = ClaudeClient(
            get_claude_api_key(config.claude_api_key_param), model=config.claude_model
        )
        _service = VerseService(
            counter,
            history_store,
            ClaudeVerseGenerator(client),
            max_history_size=config.max_history_size,
            rate_limiter=RateLimiter(config.table_name),
            hourly_limit=config.hourly_limit,
        )
    return _service


def reset_service() -> None:
    """Reset the service instance (for testing)."""
    global _service
    _service = None


def get_user_id() -> str:
    """Extract and validate user ID from headers.

    Raises:
        UnauthorizedError: If header is missing or empty
    """
    user_id = extract_user_id(app.current_event.headers)
    if not user_id:
        raise UnauthorizedError("Missing or invalid X-User-ID header")
    return user_id


def error_response(status_code: int, error: str, exc: DomainError, **extra: Any) -> Response:
    """Build a JSON error body with the user-facing message."""
    return Response(
        status_code=status_code,
        content_type="application/json",
        body=json.dumps(
            {
                "error": error,
                "message": exc.user_message,
                "retryable": exc.is_retryable,
                **extra,
            },
            ensure_ascii=False,
        ),
    )


def domain_error_response(exc: DomainError) -> Response:
    """Map a service error to its status code, counting the ones we track."""
    if isinstance(exc, ValidationFailedError):
        if exc.code in BLOCK_CODES:
            logger.info("Input blocked by pre-filter", extra={"code": exc.code})
            metrics.add_metric(name="PreFilterBlocks", unit=MetricUnit.Count, value=1)
        return error_response(400, "validation_failed", exc, code=exc.code)
    if isinstance(exc, ModerationBlockedError):
        metrics.add_metric(name="ModerationBlocks", unit=MetricUnit.Count, value=1)
        return error_response(400, "moderation_blocked", exc, reason=exc.reason)
    if isinstance(exc, RateLimitedError):
        metric = "HourlyLimitHits" if exc.scope == "hourly" else "DailyLimitHits"
        metrics.add_metric(name=metric, unit=MetricUnit.Count, value=1)
        return error_response(
            429,
            "limit_reached",
            exc,
            limit=exc.limit,
            retry_after=exc.retry_after,
            scope=exc.scope,
        )
    if isinstance(exc, VerseParseError):
        logger.warning("Unparseable model reply", extra={"error": exc.message})
        metrics.add_metric(name="UpstreamFailures", unit=MetricUnit.Count, value=1)
        return error_response(502, "bad_upstream_reply", exc)
    if isinstance(exc, NetworkError):
        metrics.add_metric(name="UpstreamFailures", unit=MetricUnit.Count, value=1)
        return error_response(503, "upstream_unavailable", exc)

    logger.exception("Unhandled domain error")
    return error_response(500, "unknown_error", exc)


@app.post("/verses/recommend")
@tracer.capture_method
def recommend_verse() -> Response:
    """Recommend a verse for the caller's mood.

    Returns:
        200 response with the verse, its reason and the remaining quota
    """
    user_id = get_user_id()

    try:
        body = app.current_event.json_body or {}
        request = RecommendRequest(**body)
    except ValidationError as e:
        error_msg = e.errors()[0].get("msg", "Invalid request")
        raise BadRequestError(error_msg) from None

    try:
        response = get_service().recommend(user_id, request)
    except DomainError as e:
        return domain_error_response(e)

    metrics.add_metric(name="VersesRecommended", unit=MetricUnit.Count, value=1)
    return Response(
        status_code=200,
        content_type="application/json",
        body=response.model_dump_json(),
    )


@app.post("/verses/explain")
@tracer.capture_method
def explain_verse() -> Response:
    """Render a recommended verse in Korean for the caller's mood.

    Returns:
        200 response with the Korean reference, paraphrase and rationale
    """
    user_id = get_user_id()

    try:
        body = app.current_event.json_body or {}
        request = ExplainRequest(**body)
    except ValidationError as e:
        error_msg = e.errors()[0].get("msg", "Invalid request")
        raise BadRequestError(error_msg) from None

    try:
        response = get_service().explain(user_id, request)
    except DomainError as e:
        return domain_error_response(e)

    metrics.add_metric(name="VersesExplained", unit=MetricUnit.Count, value=1)
    return Response(
        status_code=200,
        content_type="application/json",
        body=response.model_dump_json(),
    )


@app.get("/usage")
@tracer.capture_method
def get_usage() -> dict[str, Any]:
    """Get today's request count and remaining quota."""
    user_id = get_user_id()
    return get_service().get_usage(user_id).model_dump()


@app.get("/history")
@tracer.capture_method
def get_history() -> Response:
    """Get the caller's most recent recommendations.

    Returns:
        200 response with entries, oldest first
    """
    user_id = get_user_id()

    params = app.current_event.query_string_parameters or {}
    limit_str = params.get("limit", "20")

    try:
        limit = max(min(int(limit_str), MAX_HISTORY_PAGE), 1)
    except ValueError:
        limit = 20

    history = get_service().get_history(user_id, limit)

    return Response(
        status_code=200,
        content_type="application/json",
        body=history.model_dump_json(),
    )


@app.delete("/history")
@tracer.capture_method
def clear_history() -> Response:
    """Delete the caller's history.

    Returns:
        204 response (no content)
    """
    user_id = get_user_id()
    get_service().clear_history(user_id)
    return Response(
        status_code=204,
        content_type="application/json",
        body=None,
    )


@logger.inject_lambda_context
@tracer.capture_lambda_handler
@metrics.log_metrics
def lambda_handler(event: dict[str, Any], context: LambdaContext) -> dict[str, Any]:
    """Main Lambda entry point."""
    return app.resolve(event, context)
