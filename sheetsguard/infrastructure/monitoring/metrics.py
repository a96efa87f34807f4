"""Request metrics and per-operation performance statistics.

``MetricsCollector`` aggregates outcome counters, retry counts, error codes
and a sliding-window latency average for every call recorded through it.
``PerformanceMonitor`` keeps count/avg/min/max durations per operation name.
Both are owned by the instance that created them; there is no global
registry.
"""

import copy
import logging
import time
from collections import deque
from typing import Any, Deque, Dict, Optional

from sheetsguard.domain.models.metrics import Metrics, MetricsSummary, OperationStats
from sheetsguard.infrastructure.resilience.error_classifier import RATE_LIMIT_CODE, extract_code

logger = logging.getLogger(__name__)

DEFAULT_MAX_LATENCY_SAMPLES = 100
UNKNOWN_ERROR_CODE = "unknown"


class MetricsCollector:
    """Aggregates latency, error and throughput statistics."""

    def __init__(self, max_latency_samples: int = DEFAULT_MAX_LATENCY_SAMPLES):
        if max_latency_samples < 1:
            raise ValueError("max_latency_samples must be at least 1.")
        self.max_latency_samples = max_latency_samples
        self._metrics = Metrics()
        self._latencies: Deque[float] = deque(maxlen=max_latency_samples)
        self._start_time = time.monotonic()

    def record_request(
        self,
        method: str,
        duration_ms: float,
        success: bool,
        retries: int = 0,
        error: Optional[BaseException] = None,
    ) -> None:
        """Folds one finished call into the counters."""
        m = self._metrics
        m.total_requests += 1
        m.requests_by_method[method] = m.requests_by_method.get(method, 0) + 1

        if success:
            m.successful_requests += 1
        else:
            m.failed_requests += 1
            if error is not None:
                code = extract_code(error)
                if code is None:
                    code = UNKNOWN_ERROR_CODE
                m.errors_by_code[code] = m.errors_by_code.get(code, 0) + 1
                if code == RATE_LIMIT_CODE:
                    m.rate_limit_hits += 1

        m.retry_count += max(0, retries)

        # deque(maxlen=...) drops the oldest sample once the window is full.
        self._latencies.append(duration_ms)
        m.average_latency = sum(self._latencies) / len(self._latencies)

    def record_rate_limit_hit(self) -> None:
        self._metrics.rate_limit_hits += 1

    def get_metrics(self) -> Metrics:
        """A copy of the current counters; mutating it does not affect the collector."""
        return copy.deepcopy(self._metrics)

    def get_summary(self) -> MetricsSummary:
        """Derived rates, recomputed from the live counters on every call."""
        m = self._metrics
        uptime_seconds = time.monotonic() - self._start_time
        success_rate = m.successful_requests / m.total_requests if m.total_requests else 0.0
        requests_per_second = m.total_requests / uptime_seconds if uptime_seconds > 0 else 0.0
        return MetricsSummary(
            total_requests=m.total_requests,
            success_rate=success_rate,
            average_latency=m.average_latency,
            rate_limit_hits=m.rate_limit_hits,
            uptime_seconds=uptime_seconds,
            requests_per_second=requests_per_second,
        )

    def reset(self) -> None:
        self._metrics = Metrics()
        self._latencies.clear()
        self._start_time = time.monotonic()
        logger.debug("Metrics reset.")


class PerformanceMonitor:
    """Tracks count and min/avg/max duration per named operation."""

    def __init__(self):
        self._operations: Dict[str, Dict[str, Any]] = {}

    def record(self, operation: str, duration_ms: float) -> None:
        current = self._operations.setdefault(
            operation,
            {"count": 0, "total": 0.0, "min": float("inf"), "max": 0.0},
        )
        current["count"] += 1
        current["total"] += duration_ms
        current["min"] = min(current["min"], duration_ms)
        current["max"] = max(current["max"], duration_ms)

    @staticmethod
    def _to_stats(raw: Dict[str, Any]) -> OperationStats:
        return OperationStats(
            count=raw["count"],
            average=raw["total"] / raw["count"],
            min=raw["min"],
            max=raw["max"],
        )

    def get_stats(self, operation: str) -> Optional[OperationStats]:
        raw = self._operations.get(operation)
        if raw is None:
            return None
        return self._to_stats(raw)

    def get_all_stats(self) -> Dict[str, OperationStats]:
        return {name: self._to_stats(raw) for name, raw in self._operations.items()}

    def reset(self) -> None:
        self._operations.clear()
