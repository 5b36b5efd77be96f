"""Environment configuration for Lambda functions."""
import os
from dataclasses import dataclass

from .exceptions import ConfigurationError
from .quota_limits import QuotaLimits

DEFAULT_DAILY_LIMIT = QuotaLimits.DAILY_LIMIT
DEFAULT_HOURLY_LIMIT = QuotaLimits.HOURLY_LIMIT
DEFAULT_MAX_HISTORY_SIZE = QuotaLimits.MAX_HISTORY_SIZE
DEFAULT_QUOTA_TIMEZONE = "UTC"


def _int_from_env(key: str, default: int) -> int:
    raw = os.environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{key} must be an integer, got {raw!r}", config_key=key
        ) from None
    if value < 1:
        raise ConfigurationError(f"{key} must be positive", config_key=key)
    return value


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    table_name: str
    environment: str
    claude_api_key_param: str | None
    log_level: str
    daily_limit: int = DEFAULT_DAILY_LIMIT
    hourly_limit: int = DEFAULT_HOURLY_LIMIT
    max_history_size: int = DEFAULT_MAX_HISTORY_SIZE
    quota_timezone: str = DEFAULT_QUOTA_TIMEZONE
    claude_model: str | None = None

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Returns:
            Config instance with values from environment

        Raises:
            ConfigurationError: If required environment variables are missing
                or malformed
        """
        table_name = os.environ.get("TABLE_NAME")
        if not table_name:
            raise ConfigurationError(
                "TABLE_NAME environment variable is required",
                config_key="TABLE_NAME",
            )

        return cls(
            table_name=table_name,
            environment=os.environ.get("ENVIRONMENT", "dev"),
            claude_api_key_param=os.environ.get("CLAUDE_API_KEY_PARAM"),
            log_level=os.environ.get("POWERTOOLS_LOG_LEVEL", "INFO"),
            daily_limit=_int_from_env("DAILY_LIMIT", DEFAULT_DAILY_LIMIT),
            hourly_limit=_int_from_env("HOURLY_LIMIT", DEFAULT_HOURLY_LIMIT),
            max_history_size=_int_from_env("MAX_HISTORY_SIZE", DEFAULT_MAX_HISTORY_SIZE),
            quota_timezone=os.environ.get("QUOTA_TIMEZONE", DEFAULT_QUOTA_TIMEZONE),
            claude_model=os.environ.get("CLAUDE_MODEL") or None,
        )


def get_config() -> Config:
    """Get cached configuration instance.

    Returns:
        Config instance (cached after first call)
    """
    if not hasattr(get_config, "_config"):
        get_config._config = Config.from_env()
    return get_config._config


def reset_config() -> None:
    """Drop the cached configuration (for testing)."""
    if hasattr(get_config, "_config"):
        del get_config._config
