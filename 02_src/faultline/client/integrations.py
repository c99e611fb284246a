"""Integrations: named setup hooks installed once per processor registry."""

import re
from typing import Any, Callable, Pattern, Protocol, Sequence, Union

from ..config import ClientOptions
from ..hub import EventProcessor, EventProcessorRegistry, Hub, get_current_hub
from ..logging_config import get_logger
from ..models import Event, EventHint

logger = get_logger(__name__)

UrlPattern = Union[str, Pattern[str]]

# Message browsers report for cross-origin scripts they cannot read
DEFAULT_IGNORE_ERRORS: list[UrlPattern] = [
    re.compile(r"^Script error\.?$"),
    re.compile(r"^Javascript error: Script error\.? on line 0$"),
]


class Integration(Protocol):
    """A named hook installed when a client is bound to a hub."""

    name: str

    def setup_once(
        self,
        add_global_event_processor: Callable[[EventProcessor], None],
        get_current_hub: Callable[[], Hub],
    ) -> None:
        """Install hooks. Runs at most once per registry for a given name."""
        ...


class InboundFilters:
    """Drops events by error message, internal origin or top frame url."""

    name = "InboundFilters"

    def __init__(
        self,
        ignore_errors: Sequence[UrlPattern] | None = None,
        deny_urls: Sequence[UrlPattern] | None = None,
        allow_urls: Sequence[UrlPattern] | None = None,
        ignore_internal: bool = True,
    ):
        self.ignore_errors = [*(ignore_errors or []), *DEFAULT_IGNORE_ERRORS]
        self.deny_urls = list(deny_urls or [])
        self.allow_urls = list(allow_urls or [])
        self.ignore_internal = ignore_internal

    def setup_once(
        self,
        add_global_event_processor: Callable[[EventProcessor], None],
        get_current_hub: Callable[[], Hub],
    ) -> None:
        def inbound_filters(event: Event, hint: EventHint | None) -> Event | None:
            # The options of the integration bound to the current client apply
            integration = get_current_hub().get_integration(self.name)
            if integration is None:
                return event
            return None if integration.should_drop(event) else event

        add_global_event_processor(inbound_filters)

    def should_drop(self, event: Event) -> bool:
        """Whether any filter rejects the event."""
        if self.ignore_internal and _is_internal_error(event):
            logger.warning("Event dropped due to being internal faultline error: %s", _event_label(event))
            return True
        if self._is_ignored_error(event):
            logger.warning(
                "Event dropped due to being matched by `ignore_errors` option: %s", _event_label(event)
            )
            return True

        url = _event_filter_url(event)
        if url and self.deny_urls and _matches_any(url, self.deny_urls):
            logger.warning("Event dropped due to being matched by `deny_urls` option: %s", url)
            return True
        if url and self.allow_urls and not _matches_any(url, self.allow_urls):
            logger.warning("Event dropped due to not being matched by `allow_urls` option: %s", url)
            return True
        return False

    def _is_ignored_error(self, event: Event) -> bool:
        if event.get("type") == "transaction":
            return False
        return any(
            _matches_any(message, self.ignore_errors) for message in _possible_event_messages(event)
        )


def get_integrations_to_setup(options: ClientOptions) -> list[Any]:
    """Default integrations overridden by user ones with the same name."""
    defaults = [InboundFilters()] if options.default_integrations else []
    by_name = {integration.name: integration for integration in defaults}
    for integration in options.integrations:
        by_name[integration.name] = integration
    return list(by_name.values())


def setup_integrations(
    options: ClientOptions,
    registry: EventProcessorRegistry,
) -> dict[str, Any]:
    """
    Install the configured integrations.

    Args:
        options: Client options naming the integrations.
        registry: Registry receiving the integrations' global processors.

    Returns:
        Integrations by name, including ones installed earlier.
    """
    integrations: dict[str, Any] = {}
    for integration in get_integrations_to_setup(options):
        integrations[integration.name] = integration
        if integration.name in registry.installed_integrations:
            continue
        integration.setup_once(registry.add, get_current_hub)
        registry.installed_integrations.add(integration.name)
        logger.info("Integration installed: %s", integration.name)
    return integrations


def _matches_any(value: str, patterns: Sequence[UrlPattern]) -> bool:
    for pattern in patterns:
        if isinstance(pattern, str):
            if pattern in value:
                return True
        elif pattern.search(value):
            return True
    return False


def _possible_event_messages(event: Event) -> list[str]:
    if event.get("message"):
        return [event["message"]]

    try:
        exception = event["exception"]["values"][-1]
    except (KeyError, IndexError, TypeError):
        logger.debug("Cannot extract message for event %s", event.get("event_id"))
        return []

    type_ = exception.get("type", "")
    value = exception.get("value", "")
    return [value, f"{type_}: {value}"]


def _is_internal_error(event: Event) -> bool:
    try:
        return event["exception"]["values"][0]["type"] == "FaultlineError"
    except (KeyError, IndexError, TypeError):
        return False


def _event_filter_url(event: Event) -> str | None:
    try:
        stacktrace = event.get("stacktrace") or event["exception"]["values"][0]["stacktrace"]
        frames = stacktrace["frames"]
    except (KeyError, IndexError, TypeError):
        return None
    return frames[-1].get("filename") if frames else None


def _event_label(event: Event) -> str:
    messages = _possible_event_messages(event)
    return messages[-1] if messages else "<unknown>"
