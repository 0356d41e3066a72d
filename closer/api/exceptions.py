"""API exception hierarchy for consistent error handling.

All API exceptions inherit from CloserAPIError, which provides
status_code and error_code attributes used by the global exception
handler to generate consistent error responses.
"""

from closer.api.models.errors import ErrorCode
from closer.ratelimit import RateLimitResult


class CloserAPIError(Exception):
    """Base exception for all API errors."""

    status_code: int = 500
    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(CloserAPIError):
    status_code = 400
    error_code = ErrorCode.INVALID_REQUEST


class ConversationNotFoundError(CloserAPIError):
    """Raised when a conversation id doesn't exist."""

    status_code = 404
    error_code = ErrorCode.CONVERSATION_NOT_FOUND


class RateLimitExceededError(CloserAPIError):
    """Raised when an inbound message is rejected by the rate limiter."""

    status_code = 429
    error_code = ErrorCode.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str, result: RateLimitResult) -> None:
        super().__init__(message)
        self.reason = result.reason.value if result.reason else None
        self.remaining = result.remaining


class LLMProviderError(CloserAPIError):
    """Raised when the reply generator fails or is unavailable."""

    status_code = 502
    error_code = ErrorCode.LLM_ERROR


class StoreUnavailableError(CloserAPIError):
    status_code = 503
    error_code = ErrorCode.STORE_UNAVAILABLE
