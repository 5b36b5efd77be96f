"""Utility functions for QTune Lambda handlers."""
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import ConfigurationError


def utc_now() -> str:
    """Get current UTC timestamp in ISO format.

    Returns:
        ISO formatted timestamp string
    """
    return datetime.now(UTC).isoformat()


def extract_user_id(headers: dict[str, str] | None) -> str | None:
    """Extract user ID from request headers.

    Looks for the X-User-Id header (case-insensitive).

    Args:
        headers: Request headers dict

    Returns:
        User ID string or None if not found
    """
    # Headers may be case-insensitive
    for key, value in (headers or {}).items():
        if key.lower() == "x-user-id":
            return value.strip() if value else None
    return None


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA time zone name.

    Raises:
        ConfigurationError: If the zone is unknown
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(
            f"Unknown time zone: {tz_name}", config_key="QUOTA_TIMEZONE"
        ) from None


def get_day_key(tz_name: str = "UTC", now: datetime | None = None) -> str:
    """Get the calendar day key (YYYY-MM-DD) in the given time zone.

    Args:
        tz_name: IANA time zone name
        now: Reference instant. Defaults to the current time.

    Returns:
        Day key string
    """
    now = now or datetime.now(UTC)
    return now.astimezone(get_zone(tz_name)).strftime("%Y-%m-%d")


def get_next_reset(tz_name: str = "UTC", now: datetime | None = None) -> datetime:
    """Get the next local midnight, when daily counters roll over."""
    now = now or datetime.now(UTC)
    local = now.astimezone(get_zone(tz_name))
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1)


def get_ttl_epoch(days: int) -> int:
    """Get TTL epoch timestamp for auto-deletion."""
    future = datetime.now(UTC) + timedelta(days=days)
    return int(future.timestamp())
