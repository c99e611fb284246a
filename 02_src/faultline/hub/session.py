"""Session implementation: health tracking for a usage period."""

from datetime import datetime, timezone
from typing import Any

from ..models import SessionContext, SessionStatus
from ..utils import drop_none_values, timestamp_in_seconds, uuid4

SID_LENGTH = 32


class Session:
    """Health record of a usage period (ok, exited or crashed).

    ``timestamp`` and ``started`` are seconds since the UNIX epoch.
    """

    def __init__(self, context: SessionContext | None = None):
        starting_time = timestamp_in_seconds()
        self.sid: str = uuid4()
        self.did: str | None = None
        self.timestamp: float = starting_time
        self.started: float = starting_time
        self.duration: float | None = 0
        self.status: SessionStatus = SessionStatus.OK
        self.errors: int = 0
        self.release: str | None = None
        self.environment: str | None = None
        self.user_agent: str | None = None
        self.ip_address: str | None = None
        self.init: bool = True
        self.ignore_duration: bool = False

        if context:
            self.update(context)

    def update(self, context: SessionContext | None = None) -> None:
        """
        Apply a partial context.

        ip address, user agent and distinct id keep their first value;
        status, errors, release and environment take the latest one. The
        timestamp is refreshed and the duration recomputed on every call.
        """
        context = context or {}

        user = context.get("user")
        if user:
            if not self.ip_address and user.get("ip_address"):
                self.ip_address = user["ip_address"]
            if not self.did and not context.get("did"):
                self.did = user.get("id") or user.get("email") or user.get("username")

        self.timestamp = context.get("timestamp") or timestamp_in_seconds()

        if context.get("ignore_duration"):
            self.ignore_duration = True
        if context.get("sid"):
            sid = context["sid"]
            self.sid = sid if len(sid) == SID_LENGTH else uuid4()
        if context.get("init") is not None:
            self.init = context["init"]
        if not self.did and context.get("did"):
            self.did = str(context["did"])
        if isinstance(context.get("started"), (int, float)):
            self.started = context["started"]

        if self.ignore_duration:
            self.duration = None
        elif isinstance(context.get("duration"), (int, float)):
            self.duration = max(context["duration"], 0)
        else:
            self.duration = max(self.timestamp - self.started, 0)

        if context.get("release"):
            self.release = context["release"]
        if context.get("environment"):
            self.environment = context["environment"]
        if not self.ip_address and context.get("ip_address"):
            self.ip_address = context["ip_address"]
        if not self.user_agent and context.get("user_agent"):
            self.user_agent = context["user_agent"]
        if isinstance(context.get("errors"), int):
            self.errors = context["errors"]
        if context.get("status"):
            self.status = SessionStatus(context["status"])

    def close(self, status: SessionStatus | str | None = None) -> None:
        """End the session: explicit status, else ok -> exited, else just refresh."""
        if status:
            self.update({"status": status})
        elif self.status is SessionStatus.OK:
            self.update({"status": SessionStatus.EXITED})
        else:
            self.update()

    def to_json(self) -> dict[str, Any]:
        """Wire shape handed to transports."""
        return drop_none_values(
            {
                "sid": str(self.sid),
                "init": self.init,
                "started": _to_iso(self.started),
                "timestamp": _to_iso(self.timestamp),
                "status": self.status.value,
                "errors": self.errors,
                "did": str(self.did) if isinstance(self.did, (str, int)) else None,
                "duration": self.duration,
                "attrs": {
                    "release": self.release,
                    "environment": self.environment,
                    "ip_address": self.ip_address,
                    "user_agent": self.user_agent,
                },
            }
        )

    def __repr__(self) -> str:
        return f"Session(sid={self.sid!r}, status={self.status.value!r}, errors={self.errors})"


def _to_iso(seconds: float) -> str:
    milliseconds = int(seconds * 1000)
    moment = datetime.fromtimestamp(milliseconds / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
