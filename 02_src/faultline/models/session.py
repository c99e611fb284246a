"""Session-related data models."""

from enum import Enum
from typing import Any, TypedDict


class SessionStatus(str, Enum):
    """Health of a usage period. Anything but OK is terminal."""

    OK = "ok"
    EXITED = "exited"
    CRASHED = "crashed"


class SessionContext(TypedDict, total=False):
    """Partial session state accepted by ``Session.update``."""

    sid: str
    did: str
    user: dict[str, Any] | None
    timestamp: float
    started: float
    duration: float
    status: SessionStatus | str
    errors: int
    release: str
    environment: str
    user_agent: str
    ip_address: str
    init: bool
    ignore_duration: bool
