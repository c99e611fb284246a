"""SDK entry points: ``init`` and module-level functions on the current hub."""

from typing import Any, Callable, TypeVar

from .client import Client
from .config import ClientOptions
from .errors import SyntheticException
from .hub import Hub, Scope, Session, get_current_hub
from .logging_config import get_logger, set_debug
from .models import Breadcrumb, Event, EventHint, SessionContext, Severity

logger = get_logger(__name__)

T = TypeVar("T")


def init(options: ClientOptions | None = None, **kwargs: Any) -> Client:
    """
    Create a client and bind it to the current hub.

    Args:
        options: Prepared options (see ``faultline.config.load_options``).
        **kwargs: Option values; applied on top of ``options`` when both are given.

    Returns:
        The bound client.
    """
    if options is None:
        options = ClientOptions(**kwargs)
    elif kwargs:
        options = options.model_copy(update=kwargs)

    set_debug(options.debug)

    hub = get_current_hub()
    if options.initial_scope:
        hub.get_scope().update(options.initial_scope)

    client = Client(options)
    hub.bind_client(client)
    logger.info("faultline initialised (enabled=%s)", client.get_dsn() is not None and options.enabled)

    if options.auto_session_tracking:
        start_session_tracking(hub)

    return client


def start_session_tracking(hub: Hub) -> None:
    """Start a duration-less session for the process and send it."""
    hub.start_session({"ignore_duration": True})
    hub.capture_session()


def capture_exception(exception: Any, capture_context: Any = None) -> str:
    """Capture an exception on the current hub and return its event id."""
    hint = EventHint(
        original_exception=exception,
        synthetic_exception=SyntheticException(),
        capture_context=capture_context,
    )
    return get_current_hub().capture_exception(exception, hint)


def capture_message(
    message: str,
    level: Severity | None = None,
    capture_context: Any = None,
) -> str:
    """Capture a message on the current hub and return its event id."""
    hint = EventHint(
        original_exception=message,
        synthetic_exception=SyntheticException(message),
        capture_context=capture_context,
    )
    return get_current_hub().capture_message(message, level, hint)


def capture_event(event: Event, hint: EventHint | None = None) -> str:
    return get_current_hub().capture_event(event, hint)


def add_breadcrumb(breadcrumb: Breadcrumb, hint: dict[str, Any] | None = None) -> None:
    get_current_hub().add_breadcrumb(breadcrumb, hint)


def configure_scope(callback: Callable[[Scope], None]) -> None:
    get_current_hub().configure_scope(callback)


def with_scope(callback: Callable[[Scope], T]) -> T:
    return get_current_hub().with_scope(callback)


def set_user(user: dict[str, Any] | None) -> None:
    get_current_hub().set_user(user)


def set_tag(key: str, value: Any) -> None:
    get_current_hub().set_tag(key, value)


def set_tags(tags: dict[str, Any]) -> None:
    get_current_hub().set_tags(tags)


def set_extra(key: str, extra: Any) -> None:
    get_current_hub().set_extra(key, extra)


def set_extras(extras: dict[str, Any]) -> None:
    get_current_hub().set_extras(extras)


def set_context(name: str, context: dict[str, Any] | None) -> None:
    get_current_hub().set_context(name, context)


def start_session(context: SessionContext | None = None) -> Session:
    return get_current_hub().start_session(context)


def end_session() -> None:
    get_current_hub().end_session()


def last_event_id() -> str | None:
    return get_current_hub().last_event_id()


async def flush(timeout: float | None = None) -> bool:
    """Wait for pending events. False when there is no client or the timeout hit."""
    client = get_current_hub().get_client()
    if client is None:
        logger.warning("Cannot flush events. No client defined.")
        return False
    return await client.flush(timeout)


async def close(timeout: float | None = None) -> bool:
    """Flush pending events and disable the client."""
    client = get_current_hub().get_client()
    if client is None:
        logger.warning("Cannot flush events and disable SDK. No client defined.")
        return False
    return await client.close(timeout)
