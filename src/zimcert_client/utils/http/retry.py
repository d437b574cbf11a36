"""Retry engine for logical requests.

This module owns the attempt loop of a logical request. It retries
transient failures (network errors, timeouts and the statuses 408,
429, 500, 502, 503 and 504) with exponential backoff, surfaces every
other failure on first occurrence, and honours caller cancellation
both while an attempt is in flight and while waiting between attempts.

Backoff is deterministic by default: the delay before retry ``k`` is
``base_delay * 2**k``. Jitter is opt-in.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ...exceptions import ClassifiedError
from ..errors import ErrorKind
from .cancellation import CancellationToken
from .classifier import cancelled
from .request import AttemptMetadata, RequestOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff for one logical request.

    :param max_retries: Retries after the first attempt
    :param base_delay: Base delay in seconds for exponential backoff
    :param retry_delay: Fixed delay in seconds replacing the backoff
    :param max_delay: Optional cap on a computed delay
    :param jitter: Multiply delays by a random factor in [0.8, 1.2]
    :param respect_retry_after: Wait at least the server's Retry-After
    """

    max_retries: int = 3
    base_delay: float = 1.0
    retry_delay: Optional[float] = None
    max_delay: Optional[float] = None
    jitter: bool = False
    respect_retry_after: bool = True

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must not be negative")

    @property
    def max_attempts(self) -> int:
        """Total attempts including the first."""
        return self.max_retries + 1

    def compute_delay(self, retry: int) -> float:
        """Delay in seconds before retry number ``retry`` (1-based).

        :param retry: Retry number; attempt index of the retried attempt
        :type retry: int
        :return: Delay in seconds
        :rtype: float
        """
        if self.retry_delay is not None:
            delay = self.retry_delay
        else:
            delay = self.base_delay * (2**retry)
            if self.max_delay is not None:
                delay = min(delay, self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.8, 1.2)
        return delay

    def delay_for(self, retry: int, error: Optional[ClassifiedError]) -> float:
        """Delay before a retry, taking the server's Retry-After into account."""
        delay = self.compute_delay(retry)
        if self.respect_retry_after and error is not None and error.retry_after:
            delay = max(delay, error.retry_after)
        return delay

    @classmethod
    def from_options(cls, options: RequestOptions, settings: Any) -> "RetryPolicy":
        """Resolve the policy for a call from its options and the settings.

        ``retries=False`` and ``retries=0`` both disable retry;
        ``retries=True`` and ``retries=None`` use the configured default.

        :param options: Per-call options
        :type options: RequestOptions
        :param settings: Client settings providing defaults
        :type settings: ClientSettings
        :return: Resolved policy
        :rtype: RetryPolicy
        """
        retries = options.retries
        if retries is None or retries is True:
            max_retries = settings.max_retries
        elif retries is False:
            max_retries = 0
        else:
            max_retries = max(0, int(retries))

        return cls(
            max_retries=max_retries,
            base_delay=settings.retry_base_delay,
            retry_delay=options.retry_delay,
            max_delay=settings.retry_max_delay,
            jitter=settings.retry_jitter,
            respect_retry_after=settings.respect_retry_after,
        )


class RetryEngine:
    """Runs the attempt loop of one logical request.

    Attempts are strictly sequential. The engine suspends between
    attempts with the injected ``sleep`` so other logical requests keep
    running, and races both the attempt and the backoff against the
    caller's cancellation token.

    :param policy: Retry budget and backoff
    :type policy: RetryPolicy
    :param sleep: Awaitable sleep function, ``asyncio.sleep`` by default
    :type sleep: Callable[[float], Awaitable[Any]]
    """

    def __init__(
        self,
        policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.policy = policy
        self._sleep = sleep

    async def run(
        self,
        attempt_fn: Callable[[AttemptMetadata], Awaitable[T]],
        *,
        correlation_id: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> T:
        """Run attempts until success, a permanent failure or exhaustion.

        :param attempt_fn: Performs one attempt; raises ClassifiedError on failure
        :param correlation_id: Id shared by every attempt
        :param cancel_token: Optional caller cancellation token
        :return: Result of the first successful attempt
        :raises ClassifiedError: The permanent, cancelled or last error
        """
        last_error: Optional[ClassifiedError] = None
        delay = 0.0

        for index in range(self.policy.max_attempts):
            if index > 0:
                delay = self.policy.delay_for(index, last_error)
                logger.info(
                    f"Retry {index}/{self.policy.max_retries} for {correlation_id} "
                    f"after {delay:.2f}s ({last_error.kind.value})"
                )
                if delay > 0:
                    await self._guard(self._sleep(delay), cancel_token)

            if cancel_token is not None and cancel_token.cancelled:
                raise cancelled(cancel_token.reason)

            attempt = AttemptMetadata(
                index=index,
                issued_at=time.monotonic(),
                delay=delay,
                correlation_id=correlation_id,
            )
            try:
                result = await self._guard(attempt_fn(attempt), cancel_token)
            except ClassifiedError as e:
                if e.kind is ErrorKind.CANCELLED:
                    raise
                last_error = e
                if not e.is_retryable:
                    logger.debug(
                        f"{correlation_id}: {e.kind.value} is not retryable, giving up"
                    )
                    raise
                continue

            if index > 0:
                logger.info(f"Success after {index + 1} attempts for {correlation_id}")
            return result

        logger.info(
            f"Giving up on {correlation_id} after {self.policy.max_attempts} attempts"
        )
        if last_error is None:
            raise RuntimeError(f"No attempt was made for {correlation_id}")
        raise last_error

    async def _guard(
        self, awaitable: Awaitable[T], cancel_token: Optional[CancellationToken]
    ) -> T:
        """Await ``awaitable`` unless the token fires first.

        When the token fires, the pending work is cancelled and its
        outcome discarded, even if it completed in the same tick.
        """
        if cancel_token is None:
            return await awaitable
        if cancel_token.cancelled:
            _close(awaitable)
            raise cancelled(cancel_token.reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if cancel_token.cancelled:
            await _discard(task)
            raise cancelled(cancel_token.reason)
        return task.result()


def _close(awaitable: Awaitable[Any]) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()


async def _discard(task: "asyncio.Future[Any]") -> None:
    """Cancel a superseded attempt and drop its outcome."""
    if not task.done():
        task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except ClassifiedError as e:
        logger.debug(f"Discarding outcome of cancelled attempt: {e.kind.value}")
