"""Bounded retry with exponential backoff around the fetcher."""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from crawlerview.constants import (
    DEFAULT_MAX_RETRIES,
    EXPONENTIAL_BACKOFF_BASE,
    INITIAL_BACKOFF_DELAY_SECONDS,
)
from crawlerview.exceptions import FetchError, RetryCancelledError
from crawlerview.fetcher import ResilientFetcher
from crawlerview.models import AttemptOutcome, RetryAttempt, RetryOutcome

logger = logging.getLogger(__name__)


class RetryCoordinator:
    """Retries network failures with exponential backoff; never retries delivered HTTP errors.

    The backoff wait is interruptible: ``cancel()`` wakes a pending wait and
    the coordinator raises RetryCancelledError instead of retrying.
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = INITIAL_BACKOFF_DELAY_SECONDS,
        wait: Optional[Callable[[float], bool]] = None,
    ):
        """Initialize the coordinator.

        Args:
            fetcher: Fetcher used for each attempt
            max_retries: Default maximum number of attempts
            backoff_base: Delay before the second attempt; doubles afterwards
            wait: Callable taking a delay in seconds and returning True if the
                wait was cancelled. Defaults to an internal cancellable event.
        """
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.fetcher = fetcher
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._cancelled = threading.Event()
        self._wait = wait or self._cancelled.wait

    def backoff_delay(self, attempt: int) -> float:
        """Delay after a failed attempt (1-based): 1s, 2s, 4s... for the default base."""
        return self.backoff_base * (EXPONENTIAL_BACKOFF_BASE ** (attempt - 1))

    def cancel(self) -> None:
        """Interrupt any pending or future backoff wait."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def fetch_with_retry(
        self, url: str, user_agent: str, max_retries: Optional[int] = None
    ) -> RetryOutcome:
        """Fetch with the retry policy.

        Args:
            url: URL to fetch
            user_agent: User-Agent header value
            max_retries: Maximum attempts (defaults to the coordinator's value)

        Returns:
            RetryOutcome with the last FetchResult and every attempt made

        Raises:
            FetchError: Terminal fetch failure, with ``attempts`` set to the trace
            ValueError: If ``max_retries`` is below 1
        """
        if max_retries is None:
            max_retries = self.max_retries
        elif max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        attempts: list[RetryAttempt] = []

        for attempt in range(1, max_retries + 1):
            started = time.monotonic()
            timestamp = datetime.now()
            try:
                result = self.fetcher.fetch(url, user_agent)
            except FetchError as e:
                attempts.append(RetryAttempt(
                    attempt=attempt,
                    outcome=AttemptOutcome.NETWORK_ERROR,
                    message=e.message,
                    elapsed=time.monotonic() - started,
                    timestamp=timestamp,
                ))
                if not e.retryable or attempt >= max_retries:
                    e.attempts = tuple(attempts)
                    logger.warning(f"Giving up on {url} after {attempt} attempt(s): {e.message}")
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"Attempt {attempt}/{max_retries} for {url} failed ({e.message}); "
                    f"retrying in {delay:g}s"
                )
                self._backoff(delay, attempts)
                continue

            elapsed = time.monotonic() - started
            status = result.status_code

            if status >= 400:
                # The server answered; asking again won't change its decision
                attempts.append(RetryAttempt(
                    attempt=attempt,
                    outcome=AttemptOutcome.HTTP_ERROR,
                    status_code=status,
                    elapsed=elapsed,
                    timestamp=timestamp,
                ))
                return RetryOutcome(result=result, attempts=tuple(attempts))

            attempts.append(RetryAttempt(
                attempt=attempt,
                outcome=AttemptOutcome.SUCCESS,
                status_code=status,
                elapsed=elapsed,
                timestamp=timestamp,
            ))
            if status == 200 or attempt >= max_retries:
                return RetryOutcome(result=result, attempts=tuple(attempts))

            # Only reachable for statuses like a redirect without Location; intent unclear
            delay = self.backoff_delay(attempt)
            logger.warning(
                f"Attempt {attempt}/{max_retries} for {url} returned unexpected status {status}; "
                f"retrying in {delay:g}s"
            )
            self._backoff(delay, attempts)

        # max_retries >= 1 guarantees a return or raise inside the loop
        raise AssertionError("unreachable")

    def _backoff(self, delay: float, attempts: list[RetryAttempt]) -> None:
        if self._wait(delay):
            error = RetryCancelledError("Retry cancelled during backoff")
            error.attempts = tuple(attempts)
            raise error
