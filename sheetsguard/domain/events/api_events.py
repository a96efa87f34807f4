"""Domain Events related to API calls and resilience.

Examples include events for when calls are deferred, retried, fail, or succeed.
They are dispatched through ``dispatch_event``, which currently logs them.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger(__name__)


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


# --- Specific API Events ---

@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when an API call succeeds."""
    endpoint: str
    latency_ms: float
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively (after retries)."""
    endpoint: str
    error_code: Any
    error_category: str
    error_message: str
    attempts: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when an API call is deferred due to rate limiting."""
    endpoint: Optional[str]
    wait_time_seconds: float
    reason: str  # 'window_full', 'adaptive_delay', 'no_tokens'
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a retry is scheduled for a failed API call."""
    endpoint: str
    attempt_number: int
    delay_seconds: float
    error_code: Any = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class CacheInvalidated(DomainEvent):
    """Event triggered when a write-shaped call invalidates cached reads."""
    pattern: str
    removed: int
    timestamp: float = field(default_factory=time.time)


def dispatch_event(event: DomainEvent) -> None:
    """Publishes a domain event. Events are only logged for now."""
    logger.debug(f"EVENT: {event}")
