"""Metrics snapshots exposed by the monitoring decorators."""

from dataclasses import dataclass, field
from typing import Dict, TypedDict

from sheetsguard.domain.models.errors import ErrorCode


@dataclass
class Metrics:
    """Aggregated counters for calls made through one metrics-wrapped client."""
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    retry_count: int = 0
    average_latency: float = 0.0  # ms, over the latency window
    rate_limit_hits: int = 0
    errors_by_code: Dict[ErrorCode, int] = field(default_factory=dict)
    requests_by_method: Dict[str, int] = field(default_factory=dict)


class MetricsSummary(TypedDict):
    total_requests: int
    success_rate: float
    average_latency: float
    rate_limit_hits: int
    uptime_seconds: float
    requests_per_second: float


class OperationStats(TypedDict):
    count: int
    average: float
    min: float
    max: float
