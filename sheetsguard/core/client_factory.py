"""Composes the decorator stack around a transport.

Layers are wrapped bottom-up, so a call travels
Metrics -> RateLimiter -> Cache -> Retry -> Transport. Every layer is
optional except retry.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sheetsguard.domain.interfaces.cache import CacheService
from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.policies import (
    AdaptiveLimiterConfig,
    CacheConfig,
    RetryPolicy,
    TokenBucketConfig,
)
from sheetsguard.infrastructure.cache.cached_client import CachedSheetsClient
from sheetsguard.infrastructure.monitoring.metrics import MetricsCollector, PerformanceMonitor
from sheetsguard.infrastructure.monitoring.metrics_client import MetricsSheetsClient
from sheetsguard.infrastructure.resilience.api_retry import RetryingSheetsClient
from sheetsguard.infrastructure.resilience.rate_limited_client import (
    AdaptiveRateLimitedClient,
    TokenBucketRateLimitedClient,
)
from sheetsguard.infrastructure.resilience.rate_limiter import (
    AdaptiveRateLimiter,
    TokenBucketRateLimiter,
)

logger = logging.getLogger(__name__)

RateLimiter = Union[AdaptiveRateLimiter, TokenBucketRateLimiter]


@dataclass
class ClientStack:
    """The outermost client plus handles to each layer's manual controls."""
    client: SheetsClient
    cache: Optional[CacheService] = None
    rate_limiter: Optional[RateLimiter] = None
    metrics: Optional[MetricsCollector] = None
    performance: Optional[PerformanceMonitor] = None


def build_client_stack(
    transport: SheetsClient,
    retry_policy: Optional[RetryPolicy] = None,
    cache_config: Optional[CacheConfig] = None,
    use_cache: bool = True,
    rate_limit_strategy: str = "adaptive",
    token_bucket_config: Optional[TokenBucketConfig] = None,
    adaptive_config: Optional[AdaptiveLimiterConfig] = None,
    use_metrics: bool = True,
) -> ClientStack:
    """Wraps ``transport`` in the configured decorators.

    Args:
        transport: The innermost client performing the remote calls.
        retry_policy: Policy for the retry engine.
        cache_config: TTL and capacity for the response cache.
        use_cache: Whether to add the cache layer.
        rate_limit_strategy: 'adaptive', 'token_bucket' or 'none'.
        token_bucket_config: Bucket settings for the 'token_bucket' strategy.
        adaptive_config: Window settings for the 'adaptive' strategy.
        use_metrics: Whether to add the metrics layer (outermost).

    Raises:
        ValueError: If ``rate_limit_strategy`` is unknown.
    """
    stack = ClientStack(client=RetryingSheetsClient(transport, retry_policy))
    layers = ["retry"]

    if use_cache:
        cached = CachedSheetsClient(stack.client, config=cache_config)
        stack.client, stack.cache = cached, cached.cache
        layers.append("cache")

    if rate_limit_strategy == "adaptive":
        limited = AdaptiveRateLimitedClient(stack.client, config=adaptive_config)
    elif rate_limit_strategy == "token_bucket":
        limited = TokenBucketRateLimitedClient(stack.client, config=token_bucket_config)
    elif rate_limit_strategy == "none":
        limited = None
    else:
        raise ValueError(f"Unknown rate limit strategy: {rate_limit_strategy}")
    if limited is not None:
        stack.client, stack.rate_limiter = limited, limited.limiter
        layers.append(rate_limit_strategy)

    if use_metrics:
        measured = MetricsSheetsClient(stack.client)
        stack.client, stack.metrics, stack.performance = measured, measured.metrics, measured.performance
        layers.append("metrics")

    logger.info(f"Client stack built (inner to outer): {' -> '.join(layers)}")
    return stack
