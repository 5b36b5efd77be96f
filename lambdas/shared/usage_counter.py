"""Per-user daily request counting for verse generation."""

import os
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from .exceptions import RateLimitedError
from .quota_limits import QuotaLimits
from .utils import get_day_key, get_next_reset, get_ttl_epoch

logger = Logger(child=True)


@dataclass
class DailyUsage:
    """A user's request count for one calendar day."""

    user_id: str
    day_key: str
    request_count: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(self.limit - self.request_count, 0)

    @property
    def exhausted(self) -> bool:
        return self.request_count >= self.limit


def usage_keys(user_id: str, day_key: str) -> dict[str, str]:
    """DynamoDB key of a user's counter for a day."""
    return {"PK": f"USAGE#{user_id}", "SK": f"DATE#{day_key}"}


class DailyUsageCounter:
    """Tracks per-user daily request counts in DynamoDB.

    The increment and the limit comparison happen in one conditional
    update, so concurrent requests from the same user cannot both take
    the last slot.
    """

    def __init__(
        self,
        table_name: str | None = None,
        limit: int = QuotaLimits.DAILY_LIMIT,
        tz_name: str = "UTC",
    ):
        """Initialize counter.

        Args:
            table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
            limit: Maximum requests per user per day
            tz_name: Time zone whose midnight resets the counter
        """
        self.table_name = table_name or os.environ.get("TABLE_NAME", "")
        self.limit = limit
        self.tz_name = tz_name
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(self.table_name)

    def get_usage(self, user_id: str, now: datetime | None = None) -> DailyUsage:
        """Read today's usage without changing it.

        Args:
            user_id: Caller ID
            now: Reference instant. Defaults to the current time.

        Returns:
            DailyUsage for the day containing ``now``
        """
        day_key = get_day_key(self.tz_name, now)
        response = self.table.get_item(Key=usage_keys(user_id, day_key))
        item = response.get("Item", {})
        return DailyUsage(
            user_id=user_id,
            day_key=day_key,
            request_count=int(item.get("request_count", 0)),
            limit=self.limit,
        )

    def consume(self, user_id: str, now: datetime | None = None) -> DailyUsage:
        """Take one request slot for today.

        Args:
            user_id: Caller ID
            now: Reference instant. Defaults to the current time.

        Returns:
            DailyUsage after the increment

        Raises:
            RateLimitedError: If the user already reached the daily limit
        """
        day_key = get_day_key(self.tz_name, now)

        try:
            response = self.table.update_item(
                Key=usage_keys(user_id, day_key),
                UpdateExpression="""
                    SET request_count = if_not_exists(request_count, :zero) + :one,
                        updated_at = :now,
                        #ttl_attr = :ttl
                """,
                ConditionExpression=(
                    "attribute_not_exists(request_count) OR request_count < :limit"
                ),
                ExpressionAttributeNames={"#ttl_attr": "ttl"},
                ExpressionAttributeValues={
                    ":zero": Decimal("0"),
                    ":one": Decimal("1"),
                    ":limit": Decimal(str(self.limit)),
                    ":now": datetime.now(UTC).isoformat(),
                    ":ttl": get_ttl_epoch(days=QuotaLimits.USAGE_TTL_DAYS),
                },
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if e.response["Error"]["Code"] != "ConditionalCheckFailedException":
                logger.error(
                    "Failed to update usage counter",
                    extra={"error": str(e), "user_id": user_id},
                )
                raise
            logger.warning(
                "Daily limit exceeded",
                extra={"user_id": user_id, "day_key": day_key, "limit": self.limit},
            )
            raise RateLimitedError(
                f"Daily limit of {self.limit} requests reached",
                limit=self.limit,
                retry_after=get_next_reset(self.tz_name, now).isoformat(),
            ) from None

        count = int(response["Attributes"]["request_count"])
        logger.info(
            "Usage recorded",
            extra={
                "user_id": user_id,
                "day_key": day_key,
                "request_count": count,
                "limit": self.limit,
            },
        )
        if count >= self.limit * QuotaLimits.WARNING_THRESHOLD:
            logger.warning(
                "Approaching daily limit",
                extra={"user_id": user_id, "request_count": count, "limit": self.limit},
            )
        return DailyUsage(
            user_id=user_id, day_key=day_key, request_count=count, limit=self.limit
        )
