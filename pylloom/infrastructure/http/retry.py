"""
Retry logic - Infrastructure component for handling request failures.
Implements exponential backoff with jitter.
"""

from __future__ import annotations
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, TypeVar

import requests


T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: float = 0.1
    retryable_status_codes: List[int] = None

    def __post_init__(self):
        if self.retryable_status_codes is None:
            # HTTP 5xx server errors, 408 timeout, 429 rate limit
            self.retryable_status_codes = [500, 502, 503, 504, 429, 408]

    @classmethod
    def disabled(cls) -> RetryConfig:
        return cls(max_retries=0)


class RetryPolicy:
    """Runs an operation, retrying transient failures with exponential backoff."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        self._config = config or RetryConfig()
        self._logger = logger or logging.getLogger(__name__)

    def execute(
        self,
        operation: Callable[[], T],
        retry_result: Optional[Callable[[T], bool]] = None,
        discard: Optional[Callable[[T], None]] = None
    ) -> T:
        """Execute operation with exponential backoff retry logic.

        retry_result, when given, inspects a successful return value and
        asks for another attempt (e.g. a 503 response); discard releases a
        result that is being retried. The final attempt's result is always
        returned.
        """
        last_exception: Optional[Exception] = None

        for attempt in range(self._config.max_retries + 1):
            try:
                result = operation()
            except Exception as e:
                last_exception = e

                if not self._should_retry(e, attempt):
                    self._logger.error(f"Final attempt {attempt + 1} failed: {e}")
                    break

                self._logger.debug(f"Attempt {attempt + 1} failed: {e}")
                self._sleep(attempt)
                continue

            if retry_result is not None and retry_result(result):
                if attempt >= self._config.max_retries:
                    self._logger.error(f"Final attempt {attempt + 1} returned a retryable result")
                    return result
                self._logger.debug(f"Attempt {attempt + 1} returned a retryable result")
                if discard is not None:
                    discard(result)
                self._sleep(attempt)
                continue

            return result

        # All retries exhausted
        raise last_exception or RuntimeError("Retry logic failed")

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self._config.retryable_status_codes

    def get_delay(self, attempt: int) -> float:
        """Delay before the next attempt: exponential backoff plus jitter."""
        delay = min(
            self._config.base_delay * (2 ** attempt),
            self._config.max_delay
        )
        # Jitter spreads out clients retrying at the same moment
        return delay + random.uniform(0, self._config.jitter * delay)

    def _sleep(self, attempt: int) -> None:
        total_delay = self.get_delay(attempt)
        self._logger.debug(f"Retrying in {total_delay:.2f}s...")
        time.sleep(total_delay)

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if the exception warrants a retry."""
        if attempt >= self._config.max_retries:
            return False

        code = self._extract_status_code(exception)
        if code is not None:
            return self.is_retryable_status(code)

        retryable_exceptions = (
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
            ConnectionError,
            TimeoutError,
        )
        return isinstance(exception, retryable_exceptions)

    def _extract_status_code(self, exception: Exception) -> Optional[int]:
        """Extract HTTP status code from exception if available."""
        for attr_name in ['status_code', 'code']:
            value: Any = getattr(exception, attr_name, None)
            if value is not None:
                try:
                    return int(value)
                except (ValueError, TypeError):
                    continue

        response = getattr(exception, 'response', None)
        if response is not None and getattr(response, 'status_code', None) is not None:
            try:
                return int(response.status_code)
            except (ValueError, TypeError):
                pass

        return None
