"""Custom exceptions for QTune."""


class QTuneError(Exception):
    """Base exception for all QTune errors."""

    def __init__(self, message: str = "An error occurred") -> None:
        """Initialize exception with message.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(self.message)


class DomainError(QTuneError):
    """Error surfaced to the user with a display message."""

    user_message = "알 수 없는 오류가 발생했습니다"
    is_retryable = False


class ValidationFailedError(DomainError):
    """Input failed validation or pre-filtering."""

    def __init__(self, message: str, code: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Validation error message shown to the user
            code: Optional rule code that triggered the failure
        """
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return self.message


class ModerationBlockedError(DomainError):
    """Content was rejected by moderation."""

    REASON_LABELS = {
        "prompt_injection": "허용되지 않는 요청",
        "hate": "혐오 표현",
    }

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Content blocked: {reason}")

    @property
    def user_message(self) -> str:  # type: ignore[override]
        label = self.REASON_LABELS.get(self.reason, self.reason)
        return f"부적절한 내용이 포함되어 있습니다: {label}"


class UnauthorizedError(DomainError):
    """Caller is not authenticated."""

    user_message = "로그인이 필요합니다"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Resource not found."""

    user_message = "요청하신 항목을 찾을 수 없습니다"

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "Draft", "History")
            resource_id: ID of the missing resource
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type} '{resource_id}' not found")


class RateLimitedError(DomainError):
    """Daily or hourly request limit reached."""

    user_message = "요청이 너무 많습니다. 잠시 후 다시 시도해주세요"
    is_retryable = True

    def __init__(
        self,
        message: str = "Daily limit exceeded",
        limit: int | None = None,
        retry_after: str | None = None,
        scope: str = "daily",
    ) -> None:
        """Initialize rate limit error.

        Args:
            message: Error message
            limit: The limit that was hit
            retry_after: ISO timestamp when the quota resets
            scope: Which limit was hit, "daily" or "hourly"
        """
        self.limit = limit
        self.retry_after = retry_after
        self.scope = scope
        super().__init__(message)


class NetworkError(DomainError):
    """Upstream provider or transport failure."""

    is_retryable = True

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return f"네트워크 오류: {self.message}"


class VerseParseError(NetworkError):
    """Upstream reply could not be turned into a verse."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        self.raw = raw
        super().__init__(message)


class UnknownError(DomainError):
    """Unclassified failure."""


class ConfigurationError(QTuneError):
    """Configuration or environment error."""

    def __init__(self, message: str, config_key: str | None = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Optional configuration key that caused the error
        """
        self.config_key = config_key
        super().__init__(message)
