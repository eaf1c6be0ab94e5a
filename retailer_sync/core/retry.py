# retailer_sync/core/retry.py
"""
Bounded retry with exponential backoff, shared by the catalog accessor and the
correction applier.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from retailer_sync.core.exceptions import ShopifyTransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    max_retries: retries after the first attempt (so max_retries + 1 calls in total)
    base_delay: seconds before the first retry; doubles on each further retry
    jitter: upper bound of a random extra delay added to every wait
    retry_on: exception types considered transient
    """
    max_retries: int = 3
    base_delay: float = 1.0
    jitter: float = 0.0
    retry_on: Tuple[Type[BaseException], ...] = (ShopifyTransportError,)

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        delay = self.base_delay * (2 ** (attempt - 1))
        if self.jitter > 0:
            delay += random.uniform(0, self.jitter)
        return delay

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.INVENTORY_MAX_RETRIES,
            base_delay=settings.INVENTORY_RETRY_BASE_DELAY,
            jitter=settings.INVENTORY_RETRY_JITTER,
        )


NO_RETRY = RetryPolicy(max_retries=0, base_delay=0.0)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "request",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await ``fn()`` until it succeeds, retrying only the exception types listed in
    ``policy.retry_on``. Anything else propagates on the first failure; the last
    transient error propagates once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except policy.retry_on as e:
            if attempt >= policy.max_retries:
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {e}")
                raise
            attempt += 1
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{description} failed ({e}); retry {attempt}/{policy.max_retries} in {delay:.2f}s"
            )
            await sleep(delay)
