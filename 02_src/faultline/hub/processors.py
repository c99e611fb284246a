"""Event processor types and the process-wide processor registry."""

from typing import Any, Awaitable, Callable, Union

from ..models import Event, EventHint

EventProcessorResult = Union[Event, None, Awaitable[Union[Event, None]]]
EventProcessor = Callable[[Event, Union[EventHint, None]], EventProcessorResult]


class EventProcessorRegistry:
    """Append-only list of processors that run before any scope's own ones.

    One registry lives for the whole process (see ``get_global_event_processors``);
    scopes and hubs take it as a constructor argument so tests and embedders
    can hand in their own.
    """

    def __init__(self) -> None:
        self._processors: list[EventProcessor] = []
        # Names of integrations whose setup_once already ran against this registry
        self.installed_integrations: set[str] = set()

    def add(self, processor: EventProcessor) -> None:
        """Register a processor."""
        self._processors.append(processor)

    def all(self) -> list[EventProcessor]:
        """Snapshot of registered processors, in registration order."""
        return list(self._processors)

    def __len__(self) -> int:
        return len(self._processors)


# Global registry instance, created on first use
_registry: EventProcessorRegistry | None = None


def get_global_event_processors() -> EventProcessorRegistry:
    """Get the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = EventProcessorRegistry()
    return _registry


def add_global_event_processor(processor: Callable[..., Any]) -> None:
    """Register a processor on the process-wide registry."""
    get_global_event_processors().add(processor)
