"""Bounded retry with exponential backoff for async operations."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from movie_uploader.exceptions import UploadCancelled
from movie_uploader.upload.cancellation import CancellationToken, cancellable_sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryCallback = Callable[[int, Exception, float], None]


class RetryPolicy:
    """Retry an async operation with exponential backoff.

    An operation is attempted at most ``max_retries + 1`` times. After each
    failed attempt that still has a retry left the policy waits ``delay``
    seconds and doubles it, optionally capped at ``max_delay``. When every
    attempt has failed the error of the last attempt is raised unchanged.
    """

    BACKOFF_FACTOR = 2

    def __init__(
        self,
        max_retries: int = 3,
        initial_delay: float = 1.0,
        max_delay: float | None = None,
    ) -> None:
        """Initialize the retry policy.

        Args:
            max_retries: Retries after the first attempt.
            initial_delay: Delay before the first retry, in seconds.
            max_delay: Upper bound for a single delay; None for no cap.
        """
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay

    def _next_delay(self, delay: float) -> float:
        delay *= self.BACKOFF_FACTOR
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: int | None = None,
        initial_delay: float | None = None,
        on_retry: RetryCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the retries are exhausted.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            max_retries: Overrides the policy's retry count for this call.
            initial_delay: Overrides the policy's first delay for this call.
            on_retry: Called as ``on_retry(attempt, error, delay)`` before each
                backoff sleep. Errors raised by it are logged and ignored.
            cancel_token: Interrupts backoff sleeps when cancelled.

        Returns:
            The result of the first successful attempt.

        Raises:
            Exception: The error of the final attempt.
            UploadCancelled: If cancelled; never retried.
        """
        retries = self.max_retries if max_retries is None else max_retries
        delay = self.initial_delay if initial_delay is None else initial_delay
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)

        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except UploadCancelled:
                raise
            except Exception as e:
                if attempt > retries:
                    raise

                logger.warning(
                    f"Attempt {attempt} failed, retrying in {delay:.2f}s: {e}"
                )
                if on_retry is not None:
                    try:
                        on_retry(attempt, e, delay)
                    except Exception:
                        logger.exception("Retry callback raised; ignoring")

                await cancellable_sleep(delay, cancel_token)
                delay = self._next_delay(delay)
