"""Hub implementation: the layer stack of client and scope."""

import dataclasses
from dataclasses import dataclass
from typing import Any, Callable, Protocol, TypeVar

from ..config import DEFAULT_ENVIRONMENT, ClientOptions
from ..errors import SyntheticException
from ..logging_config import get_logger
from ..models import Breadcrumb, Event, EventHint, SessionContext, SessionStatus, Severity
from ..utils import timestamp_in_seconds, uuid4
from .processors import EventProcessorRegistry
from .scope import Scope
from .session import Session

logger = get_logger(__name__)

T = TypeVar("T")


class IClient(Protocol):
    """What the hub needs from a client."""

    def capture_exception(
        self, exception: Any, hint: EventHint | None = None, scope: Scope | None = None
    ) -> str | None:
        """Capture an exception; returns the event id or None."""
        ...

    def capture_message(
        self,
        message: str,
        level: Severity | None = None,
        hint: EventHint | None = None,
        scope: Scope | None = None,
    ) -> str | None:
        """Capture a message; returns the event id or None."""
        ...

    def capture_event(
        self, event: Event, hint: EventHint | None = None, scope: Scope | None = None
    ) -> str | None:
        """Capture a prepared event; returns the event id or None."""
        ...

    def capture_session(self, session: Session) -> None:
        """Send a session update."""
        ...

    def get_options(self) -> ClientOptions:
        """Client options."""
        ...

    def setup_integrations(self) -> None:
        """Install configured integrations."""
        ...

    async def flush(self, timeout: float | None = None) -> bool:
        """Wait for in-flight captures."""
        ...

    async def close(self, timeout: float | None = None) -> bool:
        """Flush and disable."""
        ...


@dataclass
class Layer:
    """One entry of the hub stack."""

    client: IClient | None
    scope: Scope


class Hub:
    """Routes capture calls to the client bound on top of the stack.

    The stack always keeps its bottom layer.
    """

    def __init__(
        self,
        client: IClient | None = None,
        scope: Scope | None = None,
        processors: EventProcessorRegistry | None = None,
    ):
        self._last_event_id: str | None = None
        self._stack: list[Layer] = [Layer(client=None, scope=scope or Scope(processors=processors))]
        if client is not None:
            self.bind_client(client)

    # Stack management

    def bind_client(self, client: IClient | None = None) -> None:
        """Replace the client of the top layer and install its integrations."""
        top = self.get_stack_top()
        top.client = client
        if client is not None:
            client.setup_integrations()

    def get_client(self) -> IClient | None:
        return self.get_stack_top().client

    def get_scope(self) -> Scope:
        return self.get_stack_top().scope

    def get_stack(self) -> list[Layer]:
        return self._stack

    def get_stack_top(self) -> Layer:
        return self._stack[-1]

    def push_scope(self) -> Scope:
        """Push a layer with a clone of the current scope and return the clone."""
        scope = Scope.clone(self.get_scope())
        self._stack.append(Layer(client=self.get_client(), scope=scope))
        return scope

    def pop_scope(self) -> bool:
        """Remove the top layer. The bottom layer is never removed."""
        if len(self._stack) <= 1:
            return False
        self._stack.pop()
        return True

    def with_scope(self, callback: Callable[[Scope], T]) -> T:
        """Run ``callback`` with a pushed scope, popping it on every exit path."""
        scope = self.push_scope()
        try:
            return callback(scope)
        finally:
            self.pop_scope()

    def configure_scope(self, callback: Callable[[Scope], None]) -> None:
        """Mutate the current scope when a client is bound."""
        top = self.get_stack_top()
        if top.client is not None:
            callback(top.scope)

    def run(self, callback: Callable[["Hub"], T]) -> T:
        """Run ``callback`` with this hub as the main hub."""
        old_hub = make_main(self)
        try:
            return callback(self)
        finally:
            make_main(old_hub)

    # Capturing

    def capture_exception(self, exception: Any, hint: EventHint | None = None) -> str:
        """Capture an exception on the top client. Always returns the new event id."""
        event_id = self._last_event_id = uuid4()
        if hint is None:
            hint = EventHint(original_exception=exception, synthetic_exception=SyntheticException())
        self._invoke_client(
            "capture_exception", exception, dataclasses.replace(hint, event_id=event_id)
        )
        return event_id

    def capture_message(
        self,
        message: str,
        level: Severity | None = None,
        hint: EventHint | None = None,
    ) -> str:
        """Capture a message on the top client. Always returns the new event id."""
        event_id = self._last_event_id = uuid4()
        if hint is None:
            hint = EventHint(original_exception=message, synthetic_exception=SyntheticException(message))
        self._invoke_client(
            "capture_message", message, level, dataclasses.replace(hint, event_id=event_id)
        )
        return event_id

    def capture_event(self, event: Event, hint: EventHint | None = None) -> str:
        """Capture a prepared event. Transactions leave ``last_event_id`` alone."""
        event_id = uuid4()
        if event.get("type") != "transaction":
            self._last_event_id = event_id
        self._invoke_client(
            "capture_event", event, dataclasses.replace(hint or EventHint(), event_id=event_id)
        )
        return event_id

    def last_event_id(self) -> str | None:
        return self._last_event_id

    def add_breadcrumb(self, breadcrumb: Breadcrumb, hint: dict[str, Any] | None = None) -> None:
        """Record a breadcrumb through the client's ``before_breadcrumb`` hook."""
        top = self.get_stack_top()
        if top.client is None:
            return

        options = top.client.get_options()
        max_breadcrumbs = options.max_breadcrumbs
        if max_breadcrumbs <= 0:
            return

        merged = {"timestamp": timestamp_in_seconds(), **breadcrumb}
        final = options.before_breadcrumb(merged, hint) if options.before_breadcrumb else merged
        if final is None:
            return

        top.scope.add_breadcrumb(final, max_breadcrumbs)

    # Scope proxies

    def set_user(self, user: dict[str, Any] | None) -> None:
        self.get_scope().set_user(user)

    def set_tags(self, tags: dict[str, Any]) -> None:
        self.get_scope().set_tags(tags)

    def set_tag(self, key: str, value: Any) -> None:
        self.get_scope().set_tag(key, value)

    def set_extras(self, extras: dict[str, Any]) -> None:
        self.get_scope().set_extras(extras)

    def set_extra(self, key: str, extra: Any) -> None:
        self.get_scope().set_extra(key, extra)

    def set_context(self, name: str, context: dict[str, Any] | None) -> None:
        self.get_scope().set_context(name, context)

    def get_integration(self, name: str) -> Any:
        client = self.get_client()
        if client is None or not hasattr(client, "get_integration"):
            return None
        return client.get_integration(name)

    # Sessions

    def start_session(self, context: SessionContext | None = None) -> Session:
        """
        Start a session on the current scope.

        An ok session already held by the scope is marked exited and its
        update sent before the new session replaces it.
        """
        client = self.get_client()
        scope = self.get_scope()
        options = client.get_options() if client is not None else None

        seed: SessionContext = {"environment": DEFAULT_ENVIRONMENT}
        if options is not None:
            if options.release:
                seed["release"] = options.release
            if options.environment:
                seed["environment"] = options.environment
            if options.user_agent:
                seed["user_agent"] = options.user_agent
        if scope.get_user():
            seed["user"] = scope.get_user()

        session = Session({**seed, **(context or {})})

        current = scope.get_session()
        if current is not None and current.status is SessionStatus.OK:
            current.update({"status": SessionStatus.EXITED})
        self.end_session()

        scope.set_session(session)
        return session

    def end_session(self) -> None:
        """Close the active session, send it, and detach it from the scope."""
        scope = self.get_scope()
        session = scope.get_session()
        if session is not None:
            session.close()
        self._send_session_update()
        scope.set_session()

    def capture_session(self, end_session: bool = False) -> None:
        """Send the current session, ending it first when asked."""
        if end_session:
            self.end_session()
            return
        self._send_session_update()

    def _send_session_update(self) -> None:
        top = self.get_stack_top()
        session = top.scope.get_session()
        if session is not None and top.client is not None:
            top.client.capture_session(session)

    def _invoke_client(self, method: str, *args: Any) -> None:
        top = self.get_stack_top()
        if top.client is not None and hasattr(top.client, method):
            getattr(top.client, method)(*args, top.scope)


# Process-wide hub handle, created on first use
_main_hub: Hub | None = None


def get_current_hub() -> Hub:
    """Get the process-wide hub."""
    global _main_hub
    if _main_hub is None:
        _main_hub = Hub()
    return _main_hub


def make_main(hub: Hub | None) -> Hub | None:
    """Install ``hub`` as the process-wide hub and return the previous one."""
    global _main_hub
    old_hub = _main_hub
    _main_hub = hub
    return old_hub
