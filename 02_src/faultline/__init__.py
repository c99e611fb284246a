"""faultline: in-process error and session telemetry."""

from .client import Client, DefaultBackend, InboundFilters, NoopTransport
from .config import ClientOptions, load_options
from .dsn import Dsn, make_dsn
from .errors import FaultlineError, SyntheticException
from .hub import (
    Hub,
    Scope,
    Session,
    add_global_event_processor,
    get_current_hub,
    make_main,
)
from .models import (
    EventHint,
    EventStatus,
    Outcome,
    SessionStatus,
    Severity,
    TransportResponse,
)
from .sdk import (
    add_breadcrumb,
    capture_event,
    capture_exception,
    capture_message,
    close,
    configure_scope,
    end_session,
    flush,
    init,
    last_event_id,
    set_context,
    set_extra,
    set_extras,
    set_tag,
    set_tags,
    set_user,
    start_session,
    with_scope,
)

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "init",
    "capture_exception",
    "capture_message",
    "capture_event",
    "add_breadcrumb",
    "configure_scope",
    "with_scope",
    "set_user",
    "set_tag",
    "set_tags",
    "set_extra",
    "set_extras",
    "set_context",
    "start_session",
    "end_session",
    "last_event_id",
    "flush",
    "close",
    # Components
    "Client",
    "DefaultBackend",
    "NoopTransport",
    "InboundFilters",
    "Hub",
    "Scope",
    "Session",
    "add_global_event_processor",
    "get_current_hub",
    "make_main",
    # Config and errors
    "ClientOptions",
    "load_options",
    "Dsn",
    "make_dsn",
    "FaultlineError",
    "SyntheticException",
    # Models
    "EventHint",
    "EventStatus",
    "Outcome",
    "SessionStatus",
    "Severity",
    "TransportResponse",
]
