from unittest.mock import AsyncMock, MagicMock

import pytest

from sheetsguard.domain.models.common import SHEETS_OPERATIONS
from sheetsguard.domain.models.policies import TokenBucketConfig
from sheetsguard.infrastructure.resilience.rate_limited_client import (
    AdaptiveRateLimitedClient,
    TokenBucketRateLimitedClient,
)
from sheetsguard.infrastructure.resilience.rate_limiter import (
    AdaptiveRateLimiter,
    TokenBucketRateLimiter,
)


async def test_adaptive_client_routes_through_limiter(fake_transport):
    limiter = AdaptiveRateLimiter()
    client = AdaptiveRateLimitedClient(fake_transport, limiter=limiter)
    await client.write("s1", "A1", [[1]])
    await client.read("s1", "A1")
    assert client.limiter is limiter
    assert limiter.get_stats()["requests_in_window"] == 2


async def test_adaptive_client_passes_endpoint_name(fake_transport):
    limiter = MagicMock(spec=AdaptiveRateLimiter)
    limiter.execute = AsyncMock(return_value={})
    client = AdaptiveRateLimitedClient(fake_transport, limiter=limiter)
    await client.get_metadata("s1")
    limiter.execute.assert_awaited_once_with(fake_transport.get_metadata, "s1", endpoint_name="get_metadata")


async def test_token_bucket_client_takes_one_token_per_call(fake_transport):
    client = TokenBucketRateLimitedClient(fake_transport, config=TokenBucketConfig(max_tokens=10, refill_rate=0.001))
    await client.batch_read("s1", ["A1", "B1"])
    await client.batch_clear("s1", ["A1"])
    assert client.limiter.get_available_tokens() == pytest.approx(8, abs=0.01)
    assert fake_transport.call_count() == 2


async def test_token_bucket_client_does_not_call_transport_on_invalid_bucket(fake_transport):
    limiter = MagicMock(spec=TokenBucketRateLimiter)
    limiter.acquire = AsyncMock(side_effect=ValueError("bad"))
    client = TokenBucketRateLimitedClient(fake_transport, limiter=limiter)
    with pytest.raises(ValueError):
        await client.read("s1", "A1")
    assert fake_transport.call_count() == 0


def test_clients_implement_every_operation(fake_transport):
    for client in (AdaptiveRateLimitedClient(fake_transport), TokenBucketRateLimitedClient(fake_transport)):
        for name in SHEETS_OPERATIONS:
            assert callable(getattr(client, name))
