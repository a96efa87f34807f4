"""Value Objects describing how the resilience layer behaves.

All of them are configured once at client construction and read-only
thereafter. Validation happens here, in ``__post_init__``, and nowhere else.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff configuration for the retry engine."""
    max_attempts: int = 3
    initial_delay_ms: float = 1000
    max_delay_ms: float = 10000

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.initial_delay_ms < 0 or self.max_delay_ms < 0:
            raise ValueError("Retry delays must be non-negative.")

    def backoff_ms(self, attempt_index: int) -> float:
        """Base delay (without jitter) after the zero-based attempt ``attempt_index``."""
        return min(self.initial_delay_ms * (2 ** attempt_index), self.max_delay_ms)


@dataclass(frozen=True)
class CacheConfig:
    """TTL and capacity of the in-memory response cache."""
    ttl_seconds: float = 60
    max_entries: int = 100

    def __post_init__(self) -> None:
        if self.ttl_seconds < 0:
            raise ValueError("ttl_seconds must be non-negative.")
        if self.max_entries < 1:
            raise ValueError("max_entries must be at least 1.")


@dataclass(frozen=True)
class TokenBucketConfig:
    """Capacity and refill rate (tokens per second) of a token bucket."""
    max_tokens: float = 100
    refill_rate: float = 1.0

    def __post_init__(self) -> None:
        if self.max_tokens <= 0 or self.refill_rate <= 0:
            raise ValueError("max_tokens and refill_rate must be positive.")


@dataclass(frozen=True)
class AdaptiveLimiterConfig:
    """Tuning of the adaptive limiter.

    The defaults follow the Sheets API quota: 100 requests per 100 seconds,
    kept at 90 to leave headroom.
    """
    window_seconds: float = 100
    max_requests_per_window: int = 90
    safety_margin_ms: float = 100
    delay_step_ms: float = 200
    delay_decay_ms: float = 10
    max_delay_ms: float = 1000

    def __post_init__(self) -> None:
        if self.window_seconds <= 0 or self.max_requests_per_window <= 0:
            raise ValueError("window_seconds and max_requests_per_window must be positive.")
        if min(self.safety_margin_ms, self.delay_step_ms, self.delay_decay_ms, self.max_delay_ms) < 0:
            raise ValueError("Adaptive limiter delays must be non-negative.")
