"""Event-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Events and breadcrumbs are plain dicts: they are merged key by key, copied
# shallowly between processors and must stay JSON-friendly for transports.
Event = dict[str, Any]
Breadcrumb = dict[str, Any]

INTERNAL_HINT_KEY = "__faultline__"


class Severity(str, Enum):
    """Event severity levels."""

    FATAL = "fatal"
    ERROR = "error"
    WARNING = "warning"
    LOG = "log"
    INFO = "info"
    DEBUG = "debug"
    CRITICAL = "critical"


class Outcome(str, Enum):
    """Reasons an event was not delivered."""

    BEFORE_SEND = "before_send"
    EVENT_PROCESSOR = "event_processor"
    NETWORK_ERROR = "network_error"
    QUEUE_OVERFLOW = "queue_overflow"
    RATELIMIT_BACKOFF = "ratelimit_backoff"
    SAMPLE_RATE = "sample_rate"


class EventStatus(str, Enum):
    """Delivery status reported by a transport."""

    UNKNOWN = "unknown"
    SKIPPED = "skipped"
    SUCCESS = "success"
    RATE_LIMIT = "rate_limit"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class EventHint:
    """Side information travelling with an event through the pipeline."""

    event_id: str | None = None
    original_exception: Any = None
    synthetic_exception: BaseException | None = None
    capture_context: Any = None  # mapping, Scope or callable(scope)
    mechanism: dict[str, Any] | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_internal(self) -> bool:
        """Whether this hint marks a diagnostic capture made by the SDK itself."""
        return self.data.get(INTERNAL_HINT_KEY) is True


@dataclass
class TransportResponse:
    """Result of handing a payload to a transport."""

    status: EventStatus
    reason: str | None = None
