"""
Error handling utilities for the HealthKart Deal Alert system.

This module defines the error taxonomy shared by every component, the
retry and timeout wrappers used around the two network dependencies
(the catalog API and the Telegram Bot API), and the mapping from error
kinds to HTTP status codes used by the API layer.
"""

import asyncio
import random
import re
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import aiohttp

from .logging import get_logger

T = TypeVar("T")

logger = get_logger("error_handling")


class ErrorKind(Enum):
    """Error kinds for classification."""

    CONFIGURATION = "configuration"
    CATALOG_FETCH = "catalog_fetch"
    DATA_PARSING = "data_parsing"
    NOTIFICATION = "notification"
    TIMEOUT = "timeout"
    RETRY_EXHAUSTED = "retry_exhausted"


class DealAlertError(Exception):
    """
    Tagged error raised by all components.

    The ``kind`` identifies the variant and ``details`` carries only the
    fields relevant to it. Instances are built through the factory
    functions below rather than directly.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        self.timestamp = datetime.now()

    @property
    def status_code(self) -> Optional[int]:
        return self.details.get("status_code")

    @property
    def attempts(self) -> Optional[int]:
        return self.details.get("attempts")

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.details.get("last_error")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logs and API responses."""
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": sanitize_error_message(self.message),
            "timestamp": self.timestamp.isoformat(),
        }
        for key, value in self.details.items():
            if key in ("invalid_data", "last_error"):
                continue
            data[key] = value
        if self.last_error is not None:
            data["last_error"] = sanitize_error_message(str(self.last_error))
        return data

    def __repr__(self) -> str:
        return f"DealAlertError(kind={self.kind.value!r}, message={self.message!r})"


def configuration_error(message: str, config_key: Optional[str] = None) -> DealAlertError:
    """Missing or invalid setting; fatal at startup."""
    details = {"config_key": config_key} if config_key else {}
    return DealAlertError(ErrorKind.CONFIGURATION, message, details)


def catalog_error(
    message: str,
    status_code: Optional[int] = None,
    endpoint: Optional[str] = None,
    retryable: Optional[bool] = None,
) -> DealAlertError:
    """
    HTTP or envelope failure from the catalog API.

    Retryability defaults to the status code: network failures (no status),
    rate limiting (429) and server errors (5xx) are retried.
    """
    if retryable is None:
        retryable = is_retryable_status(status_code)
    return DealAlertError(
        ErrorKind.CATALOG_FETCH,
        message,
        {"status_code": status_code, "endpoint": endpoint},
        retryable=retryable,
    )


def parsing_error(message: str, invalid_data: Any = None) -> DealAlertError:
    """A raw record (or batch) failed validation or mapping."""
    return DealAlertError(ErrorKind.DATA_PARSING, message, {"invalid_data": invalid_data})


def notification_error(
    message: str,
    chat_id: Optional[str] = None,
    error_code: Optional[str] = None,
    retryable: bool = True,
) -> DealAlertError:
    """Telegram delivery failure."""
    return DealAlertError(
        ErrorKind.NOTIFICATION,
        message,
        {"chat_id": chat_id, "error_code": error_code},
        retryable=retryable,
    )


def timeout_error(operation: str, timeout: float) -> DealAlertError:
    return DealAlertError(
        ErrorKind.TIMEOUT,
        f"{operation} timed out after {timeout:g}s",
        {"timeout": timeout, "operation": operation},
        retryable=True,
    )


def retry_exhausted_error(
    operation: str, attempts: int, last_error: Optional[BaseException]
) -> DealAlertError:
    return DealAlertError(
        ErrorKind.RETRY_EXHAUSTED,
        f"{operation} failed after {attempts} attempts: {last_error}",
        {"attempts": attempts, "last_error": last_error},
    )


def is_retryable_status(status_code: Optional[int]) -> bool:
    """Network failures, 429 and 5xx are transient."""
    if status_code is None:
        return True
    return status_code == 429 or status_code >= 500


def is_retryable(error: BaseException) -> bool:
    """Decide whether an operation failing with ``error`` may be retried."""
    if isinstance(error, DealAlertError):
        return error.retryable
    if isinstance(error, aiohttp.ClientResponseError):
        return is_retryable_status(error.status)
    if isinstance(error, (aiohttp.ClientError, asyncio.TimeoutError)):
        return True
    return False


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        backoff_multiplier: float = 2.0,
        max_delay: float = 30.0,
        jitter: float = 1.0,
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.backoff_multiplier = backoff_multiplier
        self.max_delay = max_delay
        self.jitter = jitter

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds before the attempt following ``attempt`` (1-based)."""
        delay = self.base_delay * (self.backoff_multiplier ** (attempt - 1))
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return min(delay, self.max_delay)

    def __repr__(self) -> str:
        return (
            f"RetryConfig(max_retries={self.max_retries}, base_delay={self.base_delay}, "
            f"backoff_multiplier={self.backoff_multiplier}, max_delay={self.max_delay})"
        )


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retry_config: Optional[RetryConfig] = None,
    operation_name: str = "operation",
) -> T:
    """
    Run ``operation`` with bounded retries and exponential backoff.

    Args:
        operation: Zero-argument callable returning a fresh awaitable per attempt
        retry_config: Retry configuration (defaults to ``RetryConfig()``)
        operation_name: Name used in log messages and errors

    Returns:
        The operation's result

    Raises:
        DealAlertError: RETRY_EXHAUSTED after the final failed attempt
        Exception: Any non-retryable error, unchanged, on the attempt it occurs
    """
    config = retry_config or RetryConfig()
    max_attempts = config.max_retries + 1
    last_error: Optional[BaseException] = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = await operation()
            if attempt > 1:
                logger.info(
                    f"{operation_name} succeeded on attempt {attempt}",
                    extra={"attempt": attempt},
                )
            return result

        except Exception as e:
            last_error = e

            if not is_retryable(e):
                logger.warning(
                    f"{operation_name} failed with non-retryable error",
                    extra={"attempt": attempt, "error": sanitize_error_message(str(e))},
                )
                raise

            if attempt == max_attempts:
                break

            delay = config.get_delay(attempt)
            logger.warning(
                f"Retrying {operation_name} in {delay:.2f} seconds",
                extra={
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "error": sanitize_error_message(str(e)),
                },
            )
            await asyncio.sleep(delay)

    logger.error(
        f"{operation_name} failed after {max_attempts} attempts",
        extra={"error": sanitize_error_message(str(last_error))},
    )
    raise retry_exhausted_error(operation_name, max_attempts, last_error) from last_error


async def with_timeout(
    awaitable: Awaitable[T], timeout: float, operation_name: str = "operation"
) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise timeout_error(operation_name, timeout) from e


def _error_chain(error: BaseException):
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        if isinstance(current, DealAlertError) and current.last_error is not None:
            nxt = current.last_error
        else:
            nxt = current.__cause__
        current = nxt


def http_status_for(error: BaseException) -> int:
    """Map an error to the HTTP status code returned by the API."""
    chain = list(_error_chain(error))

    for item in chain:
        if isinstance(item, DealAlertError) and item.kind == ErrorKind.TIMEOUT:
            return 504
        if isinstance(item, asyncio.TimeoutError):
            return 504

    for item in chain:
        if not isinstance(item, DealAlertError) or item.kind == ErrorKind.RETRY_EXHAUSTED:
            continue
        if item.kind == ErrorKind.CONFIGURATION:
            return 500
        if item.kind == ErrorKind.CATALOG_FETCH:
            upstream = _first_upstream_status(chain)
            if upstream is not None and upstream >= 500:
                return upstream
            return 502
        if item.kind == ErrorKind.NOTIFICATION:
            return 502
        if item.kind == ErrorKind.DATA_PARSING:
            return 422

    return 500


def _first_upstream_status(chain) -> Optional[int]:
    for item in chain:
        if isinstance(item, DealAlertError) and item.status_code is not None:
            return item.status_code
    return None


_SENSITIVE_PATTERNS = [
    (re.compile(r"(token|password|key|secret)=[^&\s]+", re.IGNORECASE), r"\1=***"),
    (re.compile(r"bot\d+:[\w-]+"), "bot***"),
]


def sanitize_error_message(message: str) -> str:
    """Mask credentials that may appear in error messages or URLs."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        message = pattern.sub(replacement, message)
    return message
