"""Core data models for faultline."""

from .event import (
    INTERNAL_HINT_KEY,
    Breadcrumb,
    Event,
    EventHint,
    EventStatus,
    Outcome,
    Severity,
    TransportResponse,
)
from .native import DOMError, DOMException, ErrorEvent, JSError, PlatformEvent
from .session import SessionContext, SessionStatus
from .stacktrace import UNKNOWN_FUNCTION, StackFrame, StackTrace

__all__ = [
    # Events
    "Event",
    "Breadcrumb",
    "EventHint",
    "EventStatus",
    "Outcome",
    "Severity",
    "TransportResponse",
    "INTERNAL_HINT_KEY",
    # Native errors
    "JSError",
    "ErrorEvent",
    "DOMError",
    "DOMException",
    "PlatformEvent",
    # Sessions
    "SessionContext",
    "SessionStatus",
    # Stack traces
    "StackFrame",
    "StackTrace",
    "UNKNOWN_FUNCTION",
]
