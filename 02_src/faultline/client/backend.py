"""Backend: builds events from raw input and hands them to the transport."""

from typing import Any, Protocol

from .. import eventbuilder
from ..config import ClientOptions
from ..logging_config import get_logger
from ..models import Event, EventHint, Severity
from .transport import ITransport, NoopTransport

logger = get_logger(__name__)


class IBackend(Protocol):
    """Platform capability set consumed by the client."""

    async def event_from_exception(self, exception: Any, hint: EventHint | None = None) -> Event:
        """Build an event from a captured exception."""
        ...

    async def event_from_message(
        self, message: str, level: Severity = Severity.INFO, hint: EventHint | None = None
    ) -> Event:
        """Build an event from a captured message."""
        ...

    async def send_event(self, event: Event) -> None:
        """Deliver an event."""
        ...

    async def send_session(self, session: dict[str, Any]) -> None:
        """Deliver a serialized session."""
        ...

    def get_transport(self) -> ITransport:
        """The transport in use."""
        ...


class DefaultBackend:
    """Backend for plain Python processes.

    Events are built by ``faultline.eventbuilder``. Delivery failures are
    logged here and never reach the client pipeline.
    """

    def __init__(self, options: ClientOptions):
        self._options = options
        if not options.dsn:
            logger.warning("No DSN provided, backend will not do anything.")
        self._transport = self._setup_transport()

    def _setup_transport(self) -> ITransport:
        if not self._options.dsn or self._options.transport is None:
            return NoopTransport()
        return self._options.transport(self._options)

    async def event_from_exception(self, exception: Any, hint: EventHint | None = None) -> Event:
        return await eventbuilder.event_from_exception(self._options, exception, hint)

    async def event_from_message(
        self, message: str, level: Severity = Severity.INFO, hint: EventHint | None = None
    ) -> Event:
        return await eventbuilder.event_from_message(self._options, message, level, hint)

    async def send_event(self, event: Event) -> None:
        try:
            await self._transport.send_event(event)
        except Exception as e:
            logger.error("Error while sending event: %s", e)

    async def send_session(self, session: dict[str, Any]) -> None:
        if not hasattr(self._transport, "send_session"):
            logger.warning("Dropping session because custom transport doesn't implement send_session")
            return
        try:
            await self._transport.send_session(session)
        except Exception as e:
            logger.error("Error while sending session: %s", e)

    def get_transport(self) -> ITransport:
        return self._transport
