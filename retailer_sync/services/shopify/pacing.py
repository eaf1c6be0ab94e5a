# retailer_sync/services/shopify/pacing.py

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class RequestPacer:
    """
    Self-imposed pacing for one Shopify store.

    One instance belongs to one client (and therefore one store); there is no
    process-wide state, so several stores can be driven side by side without
    interfering with each other's budgets.

    Three things are enforced before a request is released:
    - at most ``max_concurrent`` requests in flight
    - at least ``1 / requests_per_second`` seconds between request starts
    - when Shopify's cost-based throttle status is known (from
      ``extensions.cost.throttleStatus``), enough points to keep a safety buffer
    """

    def __init__(
        self,
        requests_per_second: float = 2.0,
        max_concurrent: int = 10,
        safety_buffer_percentage: float = 0.25,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = 1.0 / requests_per_second if requests_per_second > 0 else 0.0
        self.max_concurrent = max_concurrent
        self.safety_buffer_percentage = safety_buffer_percentage
        self._clock = clock
        self._sleep = sleep
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None

        # Unknown until the first response tells us otherwise
        self.max_available_points: Optional[float] = None
        self.currently_available_points: Optional[float] = None
        self.restore_rate: float = 50.0

    @property
    def safety_buffer_points(self) -> float:
        if self.max_available_points is None:
            return 0.0
        return self.max_available_points * self.safety_buffer_percentage

    @asynccontextmanager
    async def slot(self, estimated_cost: int = 10):
        async with self._semaphore:
            await self._wait_turn(estimated_cost)
            yield

    async def _wait_turn(self, estimated_cost: int):
        async with self._lock:
            wait_time = 0.0

            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                wait_time = max(wait_time, self.min_interval - elapsed)

            if self.currently_available_points is not None:
                required = estimated_cost + self.safety_buffer_points
                if self.currently_available_points < required:
                    points_needed = required - self.currently_available_points
                    throttle_wait = points_needed / self.restore_rate if self.restore_rate > 0 else 10.0
                    logger.info(
                        f"Throttle budget low ({self.currently_available_points:.0f} points, need ~{required:.0f}); "
                        f"waiting {throttle_wait:.2f}s"
                    )
                    wait_time = max(wait_time, throttle_wait)
                    # Optimistic: Shopify corrects us on the next response
                    self.currently_available_points = min(
                        self.max_available_points or required,
                        self.currently_available_points + self.restore_rate * throttle_wait,
                    )

            if wait_time > 0:
                await self._sleep(wait_time)
            self._last_request_at = self._clock()

    def update_throttle_status(self, extensions: Optional[Dict[str, Any]]):
        if not extensions or "cost" not in extensions:
            return
        try:
            throttle = extensions["cost"]["throttleStatus"]
            self.max_available_points = float(throttle["maximumAvailable"])
            self.currently_available_points = float(throttle["currentlyAvailable"])
            self.restore_rate = float(throttle["restoreRate"])
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Ignoring unexpected cost extension: {extensions.get('cost')}")

    def note_throttled(self):
        """A 429 or THROTTLED error: treat the budget as exhausted until told otherwise."""
        self.currently_available_points = 0.0
