"""
Error handling framework with specific exception types and retry logic
for GitHub search and cache operations.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNKNOWN_ERROR_MESSAGE = "Unknown error"


class ErrorSeverity(Enum):
    """Error severity levels for proper escalation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors for better handling strategies."""

    VALIDATION = "validation"
    NETWORK = "network"
    FILESYSTEM = "filesystem"
    AUTHENTICATION = "authentication"
    CONFIGURATION = "configuration"
    EXTERNAL_SERVICE = "external_service"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Context information for errors."""

    operation: str
    component: str
    scope: Optional[str] = None
    additional_data: Optional[Dict[str, Any]] = None


class PullkeError(Exception):
    """Base exception for all pullke errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context
        self.cause = cause
        self.user_message = user_message or self._generate_user_message()
        self.timestamp = time.time()

    def _generate_user_message(self) -> str:
        """Generate a user-friendly error message."""
        if self.category == ErrorCategory.VALIDATION:
            return "Invalid input provided. Please check your request and try again."
        elif self.category == ErrorCategory.NETWORK:
            return "Network error occurred. Please check your connection and try again."
        elif self.category == ErrorCategory.AUTHENTICATION:
            return "GitHub authentication failed. Run: gh auth login"
        elif self.category == ErrorCategory.CONFIGURATION:
            return "Configuration is incomplete. Please check your settings."
        elif self.category == ErrorCategory.EXTERNAL_SERVICE:
            return "GitHub search failed. Please try again later."
        else:
            return "An unexpected error occurred. Please try again later."

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.timestamp,
            "context": {
                "operation": self.context.operation if self.context else None,
                "component": self.context.component if self.context else None,
                "scope": self.context.scope if self.context else None,
                "additional_data": self.context.additional_data if self.context else None,
            },
            "cause": str(self.cause) if self.cause else None,
        }


class AuthenticationError(PullkeError):
    """Raised when a GitHub token cannot be obtained or is rejected."""

    def __init__(self, message: str = "GitHub authentication failed", **kwargs):
        kwargs.setdefault("category", ErrorCategory.AUTHENTICATION)
        kwargs.setdefault("severity", ErrorSeverity.HIGH)
        super().__init__(message, **kwargs)


class ConfigurationError(PullkeError):
    """Raised when a required setting is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        self.field = field
        kwargs.setdefault("category", ErrorCategory.CONFIGURATION)
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        kwargs.setdefault("user_message", message)
        super().__init__(message, **kwargs)


class CacheError(PullkeError):
    """Raised when the on-disk cache cannot be read or written."""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        self.key = key
        kwargs.setdefault("category", ErrorCategory.FILESYSTEM)
        kwargs.setdefault("severity", ErrorSeverity.LOW)
        kwargs.setdefault(
            "context",
            ErrorContext(operation="cache_operation", component="cache", additional_data={"key": key}),
        )
        super().__init__(message, **kwargs)


# Retry logic


@dataclass
class RetryConfig:
    """Configuration for retry logic."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True


class RetryableError(PullkeError):
    """Base class for errors that can be retried."""

    def __init__(self, message: str, retryable: bool = True, **kwargs):
        self.retryable = retryable
        super().__init__(message, **kwargs)


class RemoteSearchError(RetryableError):
    """Raised when the GitHub search API rejects a query or fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
        **kwargs,
    ):
        self.status_code = status_code
        kwargs.setdefault("category", ErrorCategory.EXTERNAL_SERVICE)
        kwargs.setdefault("severity", ErrorSeverity.MEDIUM)
        super().__init__(message, retryable=retryable, **kwargs)


async def retry_async(
    func: Callable[..., Awaitable[T]],
    config: RetryConfig = RetryConfig(),
    retryable_exceptions: tuple = (RetryableError,),
    *args,
    **kwargs,
) -> T:
    """
    Retry an async function with exponential backoff.

    Errors that carry ``retryable=False`` are raised immediately.

    Args:
        func: The async function to retry
        config: Retry configuration
        retryable_exceptions: Tuple of exception types that should trigger retry
        *args, **kwargs: Arguments to pass to the function

    Returns:
        The result of the function call

    Raises:
        The last exception if all retry attempts fail
    """
    last_exception = None

    for attempt in range(config.max_attempts):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if not getattr(e, "retryable", True):
                raise

            last_exception = e

            if attempt == config.max_attempts - 1:
                logger.error(
                    f"Function {func.__name__} failed after {config.max_attempts} attempts: {e}"
                )
                break

            delay = min(config.base_delay * (config.exponential_base**attempt), config.max_delay)

            if config.jitter:
                import secrets

                delay *= 0.5 + secrets.SystemRandom().random() * 0.5

            logger.warning(
                f"Function {func.__name__} failed (attempt {attempt + 1}/{config.max_attempts}), retrying in {delay:.2f}s: {e}"
            )
            await asyncio.sleep(delay)

    if last_exception is not None:
        raise last_exception
    else:
        raise RuntimeError(f"Function {func.__name__} failed with no retry attempts")


def error_message(error: BaseException) -> str:
    """Normalize an exception into the string reported in a search result."""
    if isinstance(error, ConfigurationError):
        return error.user_message
    if isinstance(error, PullkeError):
        return error.message or UNKNOWN_ERROR_MESSAGE
    return str(error) or UNKNOWN_ERROR_MESSAGE
