"""Implementation of the rate limiters.

Controls the frequency of outgoing requests to stay inside the remote
quota window. Two strategies:

- ``AdaptiveRateLimiter``: sliding window of request timestamps plus an
  extra per-call delay that grows on rate-limit failures and decays on
  success.
- ``TokenBucketRateLimiter``: continuously refilled pool of permits, one
  consumed per call; knows nothing about remote failures.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, TypeVar

from sheetsguard.domain.events.api_events import ApiCallDeferred, dispatch_event
from sheetsguard.domain.models.policies import AdaptiveLimiterConfig, TokenBucketConfig
from sheetsguard.infrastructure.resilience.error_classifier import is_rate_limit_failure

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUCCESS_RATE_GROWTH = 1.05
SUCCESS_RATE_BACKOFF = 0.5


class AdaptiveRateLimiter:
    """Sliding window limiter with an adaptive extra delay."""

    def __init__(self, config: Optional[AdaptiveLimiterConfig] = None):
        """Initializes the adaptive limiter.

        Args:
            config: Window size, request cap and delay tuning; defaults to the
                Sheets API quota (90 requests / 100 seconds).
        """
        self.config = config or AdaptiveLimiterConfig()
        self.success_rate = 1.0
        self.base_delay_ms = 0.0
        self.request_times: Deque[float] = deque()
        self._lock = asyncio.Lock()
        logger.info(
            f"AdaptiveRateLimiter initialized: {self.config.max_requests_per_window} requests / "
            f"{self.config.window_seconds} seconds"
        )

    def _cleanup_timestamps(self, now: float) -> None:
        """Removes timestamps that have left the window."""
        window_start = now - self.config.window_seconds
        while self.request_times and self.request_times[0] <= window_start:
            self.request_times.popleft()

    async def _wait_for_slot(self, endpoint: Optional[str]) -> None:
        """Blocks until the window has room, then records this request."""
        while True:
            async with self._lock:
                now = time.monotonic()
                self._cleanup_timestamps(now)
                if len(self.request_times) < self.config.max_requests_per_window:
                    self.request_times.append(now)
                    return
                oldest = self.request_times[0]
                wait_time = oldest + self.config.window_seconds - now
                wait_time = max(0.0, wait_time) + self.config.safety_margin_ms / 1000

            logger.debug(f"Rate limit window full. Waiting for {wait_time:.2f} seconds.")
            dispatch_event(ApiCallDeferred(endpoint=endpoint, wait_time_seconds=wait_time, reason="window_full"))
            await asyncio.sleep(wait_time)
            # Loop again to re-check condition after waiting

    def current_delay_ms(self) -> float:
        """The extra delay applied before the next call."""
        return self.base_delay_ms

    def _on_success(self) -> None:
        self.success_rate = min(1.0, self.success_rate * SUCCESS_RATE_GROWTH)
        self.base_delay_ms = max(0.0, self.base_delay_ms - self.config.delay_decay_ms)

    def _on_rate_limited(self) -> None:
        self.success_rate *= SUCCESS_RATE_BACKOFF
        self.base_delay_ms = min(self.config.max_delay_ms, self.base_delay_ms + self.config.delay_step_ms)
        logger.warning(
            f"Rate limited by remote service. success_rate={self.success_rate:.3f}, "
            f"delay now {self.base_delay_ms:.0f}ms"
        )

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Runs ``func`` once the window and the adaptive delay allow it.

        Failures are always re-raised; only rate-limit failures change the
        limiter state.
        """
        await self._wait_for_slot(endpoint_name)

        delay_ms = self.base_delay_ms
        if delay_ms > 0:
            dispatch_event(ApiCallDeferred(
                endpoint=endpoint_name, wait_time_seconds=delay_ms / 1000, reason="adaptive_delay"
            ))
            await asyncio.sleep(delay_ms / 1000)

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            if is_rate_limit_failure(e):
                self._on_rate_limited()
            raise
        self._on_success()
        return result

    def get_stats(self) -> Dict[str, float]:
        """Current window occupancy, success-rate estimate and extra delay."""
        self._cleanup_timestamps(time.monotonic())
        return {
            "requests_in_window": len(self.request_times),
            "success_rate": self.success_rate,
            "base_delay_ms": self.base_delay_ms,
        }

    def reset(self) -> None:
        """Forgets the window and restores the optimistic defaults."""
        self.success_rate = 1.0
        self.base_delay_ms = 0.0
        self.request_times.clear()
        logger.debug("AdaptiveRateLimiter reset.")


class TokenBucketRateLimiter:
    """Simple token bucket rate limiter for predictable rate limiting."""

    def __init__(self, config: Optional[TokenBucketConfig] = None):
        self.config = config or TokenBucketConfig()
        self.max_tokens = float(self.config.max_tokens)
        self.refill_rate = float(self.config.refill_rate)
        self.tokens = self.max_tokens
        self.last_refill = time.monotonic()
        logger.info(
            f"TokenBucketRateLimiter initialized: capacity={self.max_tokens}, "
            f"refill={self.refill_rate} tokens/s"
        )

    def _refilled(self, now: float) -> float:
        elapsed = max(0.0, now - self.last_refill)
        return min(self.max_tokens, self.tokens + elapsed * self.refill_rate)

    def _refill(self) -> None:
        now = time.monotonic()
        self.tokens = self._refilled(now)
        self.last_refill = now

    async def acquire(self, tokens: float = 1) -> None:
        """Blocks until ``tokens`` permits are available, then consumes them.

        Raises:
            ValueError: If more tokens are requested than the bucket can hold,
                which could never be satisfied.
        """
        if tokens <= 0:
            raise ValueError("tokens must be positive.")
        if tokens > self.max_tokens:
            raise ValueError(f"Cannot acquire {tokens} tokens from a bucket of {self.max_tokens}.")

        while True:
            self._refill()
            if self.tokens >= tokens:
                self.tokens -= tokens
                return
            wait_time = (tokens - self.tokens) / self.refill_rate
            logger.debug(f"Token bucket empty. Waiting for {wait_time:.3f} seconds.")
            dispatch_event(ApiCallDeferred(endpoint=None, wait_time_seconds=wait_time, reason="no_tokens"))
            await asyncio.sleep(wait_time)
            # Loop again to re-check after waiting; another task may have taken the tokens.

    def get_available_tokens(self) -> float:
        """Tokens available right now. Does not modify the bucket."""
        return self._refilled(time.monotonic())

    def get_stats(self) -> Dict[str, float]:
        return {
            "available_tokens": self.get_available_tokens(),
            "max_tokens": self.max_tokens,
            "refill_rate": self.refill_rate,
        }

    def reset(self) -> None:
        """Refills the bucket to capacity."""
        self.tokens = self.max_tokens
        self.last_refill = time.monotonic()
        logger.debug("TokenBucketRateLimiter reset.")
