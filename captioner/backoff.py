"""Retry wrapper shared by every call to the external speech and chat services."""

import logging
import time
from typing import Any, Callable

from .exceptions import TransientServiceError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


def is_transient_service_error(error: BaseException) -> bool:
    """Default classifier: rate limits, 5xx and network failures are worth retrying."""
    return isinstance(error, TransientServiceError)


class BackoffExecutor:
    """
    Runs an operation, retrying transient failures with exponential backoff.

    The delay before retry number n (1-based) is ``base_delay * 2 ** n``, so with
    the default settings the waits are 2, 4, 8 and 16 seconds. Once
    ``max_attempts`` calls have failed transiently the last error is raised.
    Errors the classifier rejects are raised straight away.
    """

    def __init__(
        self,
        is_transient: Callable[[BaseException], bool] = is_transient_service_error,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.is_transient = is_transient
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the `attempt`-th transient failure."""
        return self.base_delay * (2 ** attempt)

    def with_classifier(self, is_transient: Callable[[BaseException], bool]) -> "BackoffExecutor":
        """Same retry policy, different error classification."""
        return BackoffExecutor(
            is_transient=is_transient,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self._sleep
        )

    def execute(self, operation: Callable[..., Any], *args: Any, description: str = "request", **kwargs: Any) -> Any:
        """
        Calls ``operation(*args, **kwargs)`` under the retry policy.

        Args:
            operation: The callable to run.
            description: Short label used in log messages.

        Returns:
            Whatever the operation returns.

        Raises:
            Exception: The terminal error, or the last transient one once the
                       attempt ceiling is reached.
        """
        attempt = 0
        while True:
            try:
                return operation(*args, **kwargs)
            except Exception as e:
                if not self.is_transient(e):
                    raise
                attempt += 1
                if attempt >= self.max_attempts:
                    logger.error(f"{description} failed after {attempt} attempts: {e}")
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"{description} failed (attempt {attempt}/{self.max_attempts}): {e}. Retrying in {delay:.1f}s..."
                )
                self._sleep(delay)
