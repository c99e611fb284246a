"""Scope implementation: contextual state merged into captured events."""

from typing import Any, Callable, Mapping, Protocol

from ..config import DEFAULT_MAX_BREADCRUMBS
from ..logging_config import get_logger
from ..models import Breadcrumb, Event, EventHint, Severity
from ..utils import resolve, timestamp_in_seconds
from .processors import EventProcessor, EventProcessorRegistry, get_global_event_processors
from .session import Session

logger = get_logger(__name__)

ScopeListener = Callable[["Scope"], None]
CaptureContext = Any  # Scope, mapping or callable(scope)


class ISpan(Protocol):
    """The part of a tracing span the scope needs."""

    transaction: Any

    def get_trace_context(self) -> dict[str, Any]:
        """Trace context injected as ``contexts.trace``."""
        ...


class Scope:
    """Holds additional event information that is merged into captured events.

    Collections are owned by the scope and copied on clone; user, span and
    session are shared by reference.
    """

    def __init__(self, processors: EventProcessorRegistry | None = None):
        self._notifying_listeners = False
        self._scope_listeners: list[ScopeListener] = []
        self._event_processors: list[EventProcessor] = []
        self._breadcrumbs: list[Breadcrumb] = []
        self._user: dict[str, Any] = {}
        self._tags: dict[str, Any] = {}
        self._extra: dict[str, Any] = {}
        self._contexts: dict[str, Any] = {}
        self._fingerprint: list[str] | None = None
        self._level: Severity | None = None
        self._transaction_name: str | None = None
        self._span: ISpan | None = None
        self._session: Session | None = None
        self._sdk_processing_metadata: dict[str, Any] = {}
        self._processors = processors

    @classmethod
    def clone(cls, scope: "Scope | None" = None) -> "Scope":
        """Copy a scope. Without an argument, return an empty one."""
        if scope is None:
            return cls()

        new_scope = cls(processors=scope._processors)
        new_scope._breadcrumbs = list(scope._breadcrumbs)
        new_scope._tags = dict(scope._tags)
        new_scope._extra = dict(scope._extra)
        new_scope._contexts = dict(scope._contexts)
        new_scope._user = scope._user
        new_scope._level = scope._level
        new_scope._span = scope._span
        new_scope._session = scope._session
        new_scope._transaction_name = scope._transaction_name
        new_scope._fingerprint = scope._fingerprint
        new_scope._event_processors = list(scope._event_processors)
        new_scope._sdk_processing_metadata = dict(scope._sdk_processing_metadata)
        return new_scope

    @property
    def processors(self) -> EventProcessorRegistry:
        """Registry whose processors run before this scope's own."""
        if self._processors is None:
            return get_global_event_processors()
        return self._processors

    def add_scope_listener(self, callback: ScopeListener) -> None:
        """Call ``callback(scope)`` after every change."""
        self._scope_listeners.append(callback)

    def add_event_processor(self, callback: EventProcessor) -> "Scope":
        """Append an event processor; returns self for chaining."""
        self._event_processors.append(callback)
        return self

    def set_user(self, user: dict[str, Any] | None) -> "Scope":
        self._user = user or {}
        if self._session:
            self._session.update({"user": user})
        self._notify_scope_listeners()
        return self

    def get_user(self) -> dict[str, Any]:
        return self._user

    def set_tags(self, tags: Mapping[str, Any]) -> "Scope":
        self._tags = {**self._tags, **tags}
        self._notify_scope_listeners()
        return self

    def set_tag(self, key: str, value: Any) -> "Scope":
        self._tags = {**self._tags, key: value}
        self._notify_scope_listeners()
        return self

    def set_extras(self, extras: Mapping[str, Any]) -> "Scope":
        self._extra = {**self._extra, **extras}
        self._notify_scope_listeners()
        return self

    def set_extra(self, key: str, extra: Any) -> "Scope":
        self._extra = {**self._extra, key: extra}
        self._notify_scope_listeners()
        return self

    def set_fingerprint(self, fingerprint: list[str]) -> "Scope":
        self._fingerprint = fingerprint
        self._notify_scope_listeners()
        return self

    def set_level(self, level: Severity | str) -> "Scope":
        self._level = Severity(level)
        self._notify_scope_listeners()
        return self

    def set_transaction_name(self, name: str | None = None) -> "Scope":
        self._transaction_name = name
        self._notify_scope_listeners()
        return self

    def set_context(self, key: str, context: dict[str, Any] | None) -> "Scope":
        """Set a named context; None removes it."""
        if context is None:
            self._contexts.pop(key, None)
        else:
            self._contexts = {**self._contexts, key: context}
        self._notify_scope_listeners()
        return self

    def set_span(self, span: ISpan | None = None) -> "Scope":
        self._span = span
        self._notify_scope_listeners()
        return self

    def get_span(self) -> ISpan | None:
        return self._span

    def get_transaction(self) -> Any:
        span = self._span
        return span.transaction if span is not None else None

    def set_session(self, session: Session | None = None) -> "Scope":
        if not session:
            self._session = None
        else:
            self._session = session
        self._notify_scope_listeners()
        return self

    def get_session(self) -> Session | None:
        return self._session

    def set_sdk_processing_metadata(self, new_data: Mapping[str, Any]) -> "Scope":
        self._sdk_processing_metadata = {**self._sdk_processing_metadata, **new_data}
        return self

    def update(self, capture_context: CaptureContext = None) -> "Scope":
        """
        Merge a capture context into this scope.

        Args:
            capture_context: Another Scope, a mapping with tags, extra,
                contexts, user, level and fingerprint keys, or a callable
                receiving this scope. A callable's result replaces this
                scope only when it is itself a Scope.

        Returns:
            The updated scope.
        """
        if not capture_context:
            return self

        if callable(capture_context) and not isinstance(capture_context, Scope):
            updated = capture_context(self)
            return updated if isinstance(updated, Scope) else self

        if isinstance(capture_context, Scope):
            self._tags = {**self._tags, **capture_context._tags}
            self._extra = {**self._extra, **capture_context._extra}
            self._contexts = {**self._contexts, **capture_context._contexts}
            if capture_context._user:
                self._user = capture_context._user
            if capture_context._level:
                self._level = capture_context._level
            if capture_context._fingerprint:
                self._fingerprint = capture_context._fingerprint
        elif isinstance(capture_context, Mapping):
            self._tags = {**self._tags, **(capture_context.get("tags") or {})}
            self._extra = {**self._extra, **(capture_context.get("extra") or {})}
            self._contexts = {**self._contexts, **(capture_context.get("contexts") or {})}
            if capture_context.get("user"):
                self._user = capture_context["user"]
            if capture_context.get("level"):
                self._level = Severity(capture_context["level"])
            if capture_context.get("fingerprint"):
                self._fingerprint = list(capture_context["fingerprint"])

        return self

    def clear(self) -> "Scope":
        """Drop all contextual data (processors and listeners stay)."""
        self._breadcrumbs = []
        self._tags = {}
        self._extra = {}
        self._user = {}
        self._contexts = {}
        self._level = None
        self._transaction_name = None
        self._fingerprint = None
        self._span = None
        self._session = None
        self._notify_scope_listeners()
        return self

    def add_breadcrumb(self, breadcrumb: Breadcrumb, max_breadcrumbs: int | None = None) -> "Scope":
        """Record a breadcrumb, keeping only the newest ``max_breadcrumbs``."""
        limit = DEFAULT_MAX_BREADCRUMBS if max_breadcrumbs is None else max_breadcrumbs
        if limit <= 0:
            return self

        merged = {"timestamp": timestamp_in_seconds(), **breadcrumb}
        self._breadcrumbs = [*self._breadcrumbs, merged][-limit:]
        self._notify_scope_listeners()
        return self

    def clear_breadcrumbs(self) -> "Scope":
        self._breadcrumbs = []
        self._notify_scope_listeners()
        return self

    async def apply_to_event(self, event: Event, hint: EventHint | None = None) -> Event | None:
        """
        Merge scope data into an event and run the event processor chain.

        Event values win over scope values for tags, extra, user and
        contexts. Scope level and transaction name overwrite the event's.

        Returns:
            The processed event, or None when a processor dropped it.
        """
        if self._extra:
            event["extra"] = {**self._extra, **(event.get("extra") or {})}
        if self._tags:
            event["tags"] = {**self._tags, **(event.get("tags") or {})}
        if self._user:
            event["user"] = {**self._user, **(event.get("user") or {})}
        if self._contexts:
            event["contexts"] = {**self._contexts, **(event.get("contexts") or {})}
        if self._level:
            event["level"] = self._level.value
        if self._transaction_name:
            event["transaction"] = self._transaction_name

        # The event's own contexts still override the span's trace context
        if self._span is not None:
            event["contexts"] = {"trace": self._span.get_trace_context(), **(event.get("contexts") or {})}
            transaction_name = getattr(self.get_transaction(), "name", None)
            if transaction_name:
                event["tags"] = {"transaction": transaction_name, **(event.get("tags") or {})}

        self._apply_fingerprint(event)

        breadcrumbs = [*(event.get("breadcrumbs") or []), *self._breadcrumbs]
        if breadcrumbs:
            event["breadcrumbs"] = breadcrumbs
        else:
            event.pop("breadcrumbs", None)

        event["sdk_processing_metadata"] = dict(self._sdk_processing_metadata)

        processors = [*self.processors.all(), *self._event_processors]
        return await self._notify_event_processors(processors, event, hint)

    async def _notify_event_processors(
        self,
        processors: list[EventProcessor],
        event: Event,
        hint: EventHint | None,
    ) -> Event | None:
        """Run processors in sequence; stop at the first None."""
        current: Event | None = event
        for processor in processors:
            current = await resolve(processor(dict(current), hint))
            if current is None:
                logger.debug(
                    "Event processor %s dropped event",
                    getattr(processor, "__name__", repr(processor)),
                )
                return None
        return current

    def _notify_scope_listeners(self) -> None:
        if self._notifying_listeners:
            return
        self._notifying_listeners = True
        try:
            for callback in self._scope_listeners:
                callback(self)
        finally:
            self._notifying_listeners = False

    def _apply_fingerprint(self, event: Event) -> None:
        fingerprint = event.get("fingerprint")
        merged = [fingerprint] if isinstance(fingerprint, str) else list(fingerprint or [])
        if self._fingerprint:
            merged.extend(self._fingerprint)

        seen: list[str] = []
        for entry in merged:
            value = str(entry)
            if value not in seen:
                seen.append(value)

        if seen:
            event["fingerprint"] = seen
        else:
            event.pop("fingerprint", None)
