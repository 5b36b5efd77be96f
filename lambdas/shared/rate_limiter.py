"""Fixed-window request rate limiting."""

import os
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from .exceptions import RateLimitedError
from .quota_limits import QuotaLimits
from .utils import get_ttl_epoch

logger = Logger(child=True)


def window_start(now: datetime, window_seconds: int) -> datetime:
    """Start of the fixed window that contains ``now`` (UTC)."""
    epoch = int(now.timestamp())
    return datetime.fromtimestamp(epoch - epoch % window_seconds, UTC)


class RateLimiter:
    """Counts requests per key in fixed windows, e.g. one clock hour.

    Like the daily counter, check and increment are one conditional
    ``update_item`` so the last slot in a window is taken only once.
    """

    def __init__(self, table_name: str | None = None, scope: str = "hourly"):
        """Initialize limiter.

        Args:
            table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
            scope: Label carried by the RateLimitedError this limiter raises
        """
        self.scope = scope
        self.table_name = table_name or os.environ.get("TABLE_NAME", "")
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(self.table_name)

    def check_and_consume(
        self,
        key: str,
        max_requests: int,
        window_seconds: int = QuotaLimits.RATE_WINDOW_SECONDS,
        now: datetime | None = None,
    ) -> int:
        """Take one slot for ``key`` in the current window.

        Args:
            key: Limit key, e.g. "generate_verse:<user_id>"
            max_requests: Slots per window
            window_seconds: Window length
            now: Reference instant. Defaults to the current time.

        Returns:
            Requests counted in this window, including this one

        Raises:
            RateLimitedError: If the window is already full
        """
        now = now or datetime.now(UTC)
        start = window_start(now, window_seconds)

        try:
            response = self.table.update_item(
                Key={"PK": f"RATE#{key}", "SK": f"WINDOW#{start.isoformat()}"},
                UpdateExpression="""
                    SET request_count = if_not_exists(request_count, :zero) + :one,
                        #ttl_attr = :ttl
                """,
                ConditionExpression=(
                    "attribute_not_exists(request_count) OR request_count < :max"
                ),
                ExpressionAttributeNames={"#ttl_attr": "ttl"},
                ExpressionAttributeValues={
                    ":zero": Decimal("0"),
                    ":one": Decimal("1"),
                    ":max": Decimal(str(max_requests)),
                    ":ttl": get_ttl_epoch(days=1),
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                logger.error(
                    "Failed to update rate limit window",
                    extra={"error": str(e), "key": key},
                )
                raise
            logger.warning(
                "Rate limit exceeded",
                extra={"key": key, "window": start.isoformat(), "max": max_requests},
            )
            raise RateLimitedError(
                f"Limit of {max_requests} requests per {window_seconds}s reached",
                limit=max_requests,
                retry_after=(start + timedelta(seconds=window_seconds)).isoformat(),
                scope=self.scope,
            ) from None

        return int(response["Attributes"]["request_count"])
