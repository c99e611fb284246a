"""Transport protocol and the no-op transport."""

from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import Event, EventStatus, Outcome, TransportResponse

logger = get_logger(__name__)


class ITransport(Protocol):
    """Delivery boundary. Owns durability, retries and rate limits."""

    async def send_event(self, event: Event) -> TransportResponse:
        """Deliver an event."""
        ...

    async def send_session(self, session: dict[str, Any]) -> TransportResponse:
        """Deliver a serialized session."""
        ...

    async def close(self, timeout: float | None = None) -> bool:
        """Drain pending deliveries; False when the timeout elapsed first."""
        ...

    def record_lost_event(self, outcome: Outcome, category: str) -> None:
        """Count an item that was not delivered."""
        ...


class NoopTransport:
    """Transport used when no DSN or no transport factory is configured."""

    async def send_event(self, event: Event) -> TransportResponse:
        return TransportResponse(
            status=EventStatus.SKIPPED,
            reason="NoopTransport: Event has been skipped because no Dsn is configured.",
        )

    async def send_session(self, session: dict[str, Any]) -> TransportResponse:
        return TransportResponse(status=EventStatus.SKIPPED)

    async def close(self, timeout: float | None = None) -> bool:
        return True

    def record_lost_event(self, outcome: Outcome, category: str) -> None:
        logger.debug("Lost %s: %s", category, outcome.value)
