"""
TenderRAG Unified Error Classification System.

This module provides a hierarchy of exceptions for handling the failures that
can occur while ingesting documents and answering context searches.

Error Categories:
-----------------
1. Retryable Errors: Transient failures that may succeed on retry
   - Rate limiting (HTTP 429)
   - Service unavailable (HTTP 503)
   - Timeouts

2. Permanent Errors: Failures that won't succeed on retry
   - Authentication errors (HTTP 401/403)
   - Invalid parameters (HTTP 400)
   - Configuration errors (e.g. chunk overlap >= chunk size)

3. Domain Errors
   - ProviderError: the embedding provider failed
   - StoreError: the chunk store failed
   - SearchError: a search could not be answered because the store failed

Usage:
------
    from tenderrag.errors import ProviderError, StoreError, SearchError

    try:
        results = await engine.search("aanbestedingsprocedure", scope)
    except SearchError as e:
        logger.error(f"Context search failed: {e}")
"""

from typing import Any


class TenderRAGError(Exception):
    """
    Base exception for all TenderRAG errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error (optional)
        original_error: The underlying exception that caused this error (optional)
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def __str__(self) -> str:
        base = self.message
        if self.details:
            base += f" | Details: {self.details}"
        if self.original_error:
            base += f" | Caused by: {type(self.original_error).__name__}: {self.original_error}"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "details": self.details,
            "original_error": str(self.original_error) if self.original_error else None
        }


# =============================================================================
# Retryable Errors - Transient failures that may succeed on retry
# =============================================================================

class RetryableError(TenderRAGError):
    """
    Base class for errors that may succeed on retry.

    Attributes:
        retry_after: Suggested wait time before retry (seconds), if known
    """

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, details, original_error)
        self.retry_after = retry_after


class RateLimitError(RetryableError):
    """
    Raised when API rate limit is exceeded (HTTP 429).

    The retry_after attribute contains the recommended wait time from the
    Retry-After header, if provided by the server.
    """

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, retry_after, details, original_error)


class ServiceUnavailableError(RetryableError):
    """Raised when service is temporarily unavailable (HTTP 503)."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable",
        retry_after: float | None = None,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, retry_after, details, original_error)


class TimeoutError(RetryableError):
    """
    Raised when a call exceeded its time limit.

    Attributes:
        timeout: The timeout value that was exceeded (seconds)
    """

    def __init__(
        self,
        message: str = "Request timed out",
        timeout: float | None = None,
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        details = details or {}
        details["timeout"] = timeout
        super().__init__(message, retry_after=None, details=details, original_error=original_error)
        self.timeout = timeout


# =============================================================================
# Permanent Errors - Failures that won't succeed on retry
# =============================================================================

class PermanentError(TenderRAGError):
    """
    Base class for errors that will not succeed on retry.

    Retrying these errors is wasteful and may trigger rate limiting.
    """
    pass


class AuthenticationError(PermanentError):
    """Raised when authentication fails (HTTP 401/403)."""

    def __init__(
        self,
        message: str = "Authentication failed",
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, details, original_error)


class InvalidRequestError(PermanentError):
    """Raised when request parameters are invalid (HTTP 400)."""

    def __init__(
        self,
        message: str = "Invalid request parameters",
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, details, original_error)


class ConfigurationError(PermanentError):
    """Raised when there's a configuration problem."""

    def __init__(
        self,
        message: str = "Configuration error",
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, details, original_error)


class InvalidConfig(ConfigurationError, ValueError):
    """
    Raised when chunking parameters contradict each other.

    Fatal to the call and never retried. Also a ValueError so callers that
    validate plain arguments can catch it generically.
    """
    pass


class QuotaExceededError(PermanentError):
    """
    Raised when account quota is exceeded.

    Unlike RateLimitError, this indicates the account has exhausted its
    allocation and requires action like upgrading the plan.
    """

    def __init__(
        self,
        message: str = "Account quota exceeded",
        details: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message, details, original_error)


# =============================================================================
# Domain-Specific Errors
# =============================================================================

class ProviderError(TenderRAGError):
    """Raised when the embedding provider fails (timeout, quota, malformed response)."""
    pass


class ProviderRateLimitError(ProviderError, RateLimitError):
    """Embedding provider answered HTTP 429."""
    pass


class ProviderUnavailableError(ProviderError, ServiceUnavailableError):
    """Embedding provider is down or answered with a 5xx status."""
    pass


class ProviderTimeoutError(ProviderError, TimeoutError):
    """Embedding call did not finish within its timeout."""
    pass


class ProviderAuthError(ProviderError, AuthenticationError):
    """Embedding provider rejected the API key."""
    pass


class ProviderQuotaError(ProviderError, QuotaExceededError):
    """Embedding account quota is exhausted."""
    pass


class MalformedResponseError(ProviderError, InvalidRequestError):
    """Embedding provider rejected the input or returned an unreadable body."""
    pass


class ProviderNotConfiguredError(ProviderError, ConfigurationError):
    """No API key or endpoint is configured for the embedding provider."""
    pass


class StoreError(TenderRAGError):
    """Raised when a chunk store read or write fails."""
    pass


class SearchError(TenderRAGError):
    """Raised when a search cannot be answered because the chunk store failed."""
    pass


# =============================================================================
# Helper Functions
# =============================================================================

def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Args:
        error: The exception to check

    Returns:
        True if the error is an instance of RetryableError
    """
    return isinstance(error, RetryableError)


def _retry_after(headers: dict | None) -> float | None:
    headers = headers or {}
    value = headers.get("Retry-After") or headers.get("retry-after")
    if value is None:
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def classify_provider_http_error(
    status_code: int,
    message: str = "",
    headers: dict | None = None
) -> ProviderError:
    """
    Classify an embedding provider HTTP failure into a ProviderError subclass.

    Quota exhaustion is reported by most providers as 402, or as 429 with a
    quota message; both are permanent.

    Example:
        if response.status_code >= 400:
            raise classify_provider_http_error(
                response.status_code,
                response.text,
                dict(response.headers)
            )
    """
    retry_after = _retry_after(headers)
    details = {"status_code": status_code}
    lowered = message.lower()

    if status_code == 402 or (status_code == 429 and "quota" in lowered):
        return ProviderQuotaError(message or "Embedding quota exceeded", details)
    if status_code == 429:
        return ProviderRateLimitError(message or "Embedding rate limit exceeded", retry_after, details)
    if status_code in (401, 403):
        return ProviderAuthError(message or "Embedding provider rejected credentials", details)
    if status_code in (400, 413, 422):
        return MalformedResponseError(message or "Embedding provider rejected the input", details)
    if status_code >= 500:
        return ProviderUnavailableError(
            message or f"Embedding provider error (HTTP {status_code})", retry_after, details
        )
    return ProviderError(message or f"Embedding provider HTTP error {status_code}", details)
