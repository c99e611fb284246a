"""Client: the event processing pipeline."""

import asyncio
import inspect
import random
import time
from typing import Any, Awaitable

from ..config import DEFAULT_ENVIRONMENT, ClientOptions
from ..dsn import Dsn, make_dsn
from ..errors import FaultlineError
from ..hub import EventProcessorRegistry, Scope, Session, get_global_event_processors
from ..logging_config import get_logger
from ..models import (
    INTERNAL_HINT_KEY,
    Event,
    EventHint,
    Outcome,
    SessionStatus,
    Severity,
)
from ..utils import (
    check_or_set_already_caught,
    is_plain_object,
    normalize,
    timestamp_in_seconds,
    truncate,
    uuid4,
)
from .backend import DefaultBackend, IBackend
from .integrations import setup_integrations
from .transport import ITransport

logger = get_logger(__name__)

ALREADY_SEEN_ERROR = "Not capturing exception because it's already been captured."

# Poll interval while waiting for in-flight captures
FLUSH_TICK = 0.001


class Client:
    """Turns captured values into events and hands them to the backend.

    Capture calls are fire-and-forget: inside a running event loop the
    pipeline is scheduled as a task, outside of one it runs to completion
    before the call returns. Either way the in-flight counter tracks it
    until it settles.
    """

    def __init__(
        self,
        options: ClientOptions,
        backend: IBackend | None = None,
        processors: EventProcessorRegistry | None = None,
    ):
        self._options = options
        self._backend = backend or DefaultBackend(options)
        self._processors = processors
        self._dsn: Dsn | None = make_dsn(options.dsn) if options.dsn else None
        self._integrations: dict[str, Any] = {}
        self._integrations_initialized = False
        self._num_processing = 0
        self._tasks: set[asyncio.Task] = set()

    # Capturing

    def capture_exception(
        self, exception: Any, hint: EventHint | None = None, scope: Scope | None = None
    ) -> str | None:
        """Capture an exception. Returns the hint's event id, if any."""
        if check_or_set_already_caught(exception):
            logger.debug(ALREADY_SEEN_ERROR)
            return None

        self._process(self._capture_exception(exception, hint, scope))
        return hint.event_id if hint else None

    def capture_message(
        self,
        message: Any,
        level: Severity | None = None,
        hint: EventHint | None = None,
        scope: Scope | None = None,
    ) -> str | None:
        """Capture a message. Non-string values go through exception building."""
        self._process(self._capture_message(message, level, hint, scope))
        return hint.event_id if hint else None

    def capture_event(
        self, event: Event, hint: EventHint | None = None, scope: Scope | None = None
    ) -> str | None:
        """Capture a ready-made event."""
        if hint and hint.original_exception is not None:
            if check_or_set_already_caught(hint.original_exception):
                logger.debug(ALREADY_SEEN_ERROR)
                return None

        self._process(self._capture_event(event, hint, scope))
        return hint.event_id if hint else None

    def capture_session(self, session: Session) -> None:
        """Send a session update, then mark the session as no longer initial."""
        if not self._is_enabled():
            logger.warning("SDK not enabled, will not capture session.")
            return

        if not isinstance(session.release, str):
            logger.warning("Discarded session because of missing or non-string release")
            return

        self._process(self._backend.send_session(session.to_json()))
        session.update({"init": False})

    # Accessors

    def get_options(self) -> ClientOptions:
        return self._options

    def get_dsn(self) -> Dsn | None:
        return self._dsn

    def get_transport(self) -> ITransport:
        return self._backend.get_transport()

    def get_integration(self, name: str) -> Any:
        integration = self._integrations.get(name)
        if integration is None:
            logger.debug("Cannot retrieve integration %s from the current client", name)
        return integration

    def setup_integrations(self) -> None:
        """Install integrations once, and only when enabled."""
        if self._is_enabled() and not self._integrations_initialized:
            registry = self._processors or get_global_event_processors()
            self._integrations = setup_integrations(self._options, registry)
            self._integrations_initialized = True

    # Shutdown

    async def flush(self, timeout: float | None = None) -> bool:
        """
        Wait for in-flight captures, then drain the transport.

        Args:
            timeout: Maximum seconds to wait. None waits until done.

        Returns:
            False when the deadline passed before everything settled.
        """
        client_finished = await self._is_client_done_processing(timeout)
        transport_flushed = await self.get_transport().close(timeout)
        return client_finished and transport_flushed

    async def close(self, timeout: float | None = None) -> bool:
        """Flush with the shutdown timeout by default, then disable the client."""
        if timeout is None:
            timeout = self._options.shutdown_timeout
        result = await self.flush(timeout)
        self._options.enabled = False
        return result

    async def _is_client_done_processing(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else time.monotonic() + timeout
        while self._num_processing > 0:
            if deadline is not None and time.monotonic() >= deadline:
                return False
            await asyncio.sleep(FLUSH_TICK)
        return True

    # Pipeline

    async def _capture_exception(
        self, exception: Any, hint: EventHint | None, scope: Scope | None
    ) -> str | None:
        event = await self._backend.event_from_exception(exception, hint)
        return await self._capture_event(event, hint, scope)

    async def _capture_message(
        self, message: Any, level: Severity | None, hint: EventHint | None, scope: Scope | None
    ) -> str | None:
        if isinstance(message, str):
            event = await self._backend.event_from_message(message, level or Severity.INFO, hint)
        else:
            event = await self._backend.event_from_exception(message, hint)
        return await self._capture_event(event, hint, scope)

    async def _capture_event(
        self, event: Event, hint: EventHint | None = None, scope: Scope | None = None
    ) -> str | None:
        """Run the pipeline; domain errors are logged and yield None."""
        try:
            final_event = await self._process_event(event, hint, scope)
        except FaultlineError as e:
            logger.error("%s", e)
            return None
        return final_event["event_id"]

    async def _process_event(
        self, event: Event, hint: EventHint | None = None, scope: Scope | None = None
    ) -> Event:
        """
        Process an event and send it.

        Order: enabled check, sampling, scope and processors, before_send,
        session bookkeeping, dispatch.

        Raises:
            FaultlineError: When the event was not sent. Unexpected errors are
                captured as an internal event first and then wrapped.
        """
        if not self._is_enabled():
            raise FaultlineError("SDK not enabled, will not capture event.")

        is_transaction = event.get("type") == "transaction"
        is_internal = hint is not None and hint.is_internal
        sample_rate = self._options.sample_rate

        # A draw equal to the rate is dropped too, so a rate of 0 never sends
        if not is_transaction and sample_rate is not None and random.random() >= sample_rate:
            self._record_lost_event(Outcome.SAMPLE_RATE, "event")
            raise FaultlineError(
                "Discarding event because it's not included in the random sample "
                f"(sampling rate = {sample_rate})"
            )

        try:
            prepared = await self._prepare_event(event, scope, hint)
            if prepared is None:
                self._record_lost_event(Outcome.EVENT_PROCESSOR, event.get("type") or "event")
                raise FaultlineError("An event processor returned None, will not send event.")

            before_send = self._options.before_send
            if is_internal or is_transaction or before_send is None:
                processed = prepared
            else:
                processed = await _ensure_before_send_rv(before_send(prepared, hint))

            if processed is None:
                self._record_lost_event(Outcome.BEFORE_SEND, event.get("type") or "event")
                raise FaultlineError("`before_send` returned None, will not send event.")

            session = scope.get_session() if scope is not None else None
            if not is_transaction and session is not None:
                self._update_session_from_event(session, processed)

            processed.pop("sdk_processing_metadata", None)
            await self._backend.send_event(processed)
            return processed
        except FaultlineError:
            raise
        except Exception as e:
            # A fault while processing an internal event is not captured again
            if not is_internal:
                self.capture_exception(
                    e, EventHint(data={INTERNAL_HINT_KEY: True}, original_exception=e)
                )
            raise FaultlineError(
                "Event processing pipeline threw an error, original event will not be sent. "
                f"Details have been sent as a new event.\nReason: {e}"
            ) from e

    async def _prepare_event(
        self, event: Event, scope: Scope | None = None, hint: EventHint | None = None
    ) -> Event | None:
        """Add ids, client options, integrations and scope data to a copy of the event."""
        hint_event_id = hint.event_id if hint else None
        prepared: Event = {
            **event,
            "event_id": event.get("event_id") or hint_event_id or uuid4(),
            "timestamp": event.get("timestamp") or timestamp_in_seconds(),
        }

        self._apply_client_options(prepared)
        self._apply_integrations_metadata(prepared)

        # A capture context only applies to this one event
        final_scope = scope
        if hint and hint.capture_context:
            final_scope = Scope.clone(final_scope).update(hint.capture_context)

        result: Event | None = prepared
        if final_scope is not None:
            result = await final_scope.apply_to_event(prepared, hint)

        depth = self._options.normalize_depth
        if result is not None and depth > 0:
            return self._normalize_event(result, depth)
        return result

    def _apply_client_options(self, event: Event) -> None:
        options = self._options
        max_value_length = options.max_value_length

        if "environment" not in event:
            event["environment"] = options.environment or DEFAULT_ENVIRONMENT
        if event.get("release") is None and options.release is not None:
            event["release"] = options.release
        if event.get("dist") is None and options.dist is not None:
            event["dist"] = options.dist

        if event.get("message"):
            event["message"] = truncate(event["message"], max_value_length)

        values = (event.get("exception") or {}).get("values")
        if values and values[0].get("value"):
            values[0]["value"] = truncate(values[0]["value"], max_value_length)

        request = event.get("request")
        if request and request.get("url"):
            request["url"] = truncate(request["url"], max_value_length)

    def _apply_integrations_metadata(self, event: Event) -> None:
        names = list(self._integrations)
        if names:
            sdk = dict(event.get("sdk") or {})
            sdk["integrations"] = [*(sdk.get("integrations") or []), *names]
            event["sdk"] = sdk

    def _normalize_event(self, event: Event, depth: int) -> Event:
        normalized = dict(event)
        if event.get("breadcrumbs"):
            normalized["breadcrumbs"] = [
                {**b, "data": normalize(b["data"], depth)} if b.get("data") else b
                for b in event["breadcrumbs"]
            ]
        for key in ("user", "contexts", "extra"):
            if event.get(key):
                normalized[key] = normalize(event[key], depth)

        # Trace context stays exact
        trace = (event.get("contexts") or {}).get("trace")
        if trace:
            normalized["contexts"]["trace"] = trace
        return normalized

    def _update_session_from_event(self, session: Session, event: Event) -> None:
        crashed = False
        errored = False
        exceptions = (event.get("exception") or {}).get("values")

        if exceptions:
            errored = True
            for exception in exceptions:
                mechanism = exception.get("mechanism")
                if mechanism and mechanism.get("handled") is False:
                    crashed = True
                    break

        # Send only on the first error of an ok session, or when it crashes
        non_terminal = session.status is SessionStatus.OK
        if (non_terminal and session.errors == 0) or (non_terminal and crashed):
            update: dict[str, Any] = {"errors": session.errors or int(errored or crashed)}
            if crashed:
                update["status"] = SessionStatus.CRASHED
            session.update(update)
            self.capture_session(session)

    def _record_lost_event(self, outcome: Outcome, category: str) -> None:
        transport = self.get_transport()
        if hasattr(transport, "record_lost_event"):
            transport.record_lost_event(outcome, category)

    def _is_enabled(self) -> bool:
        return self._options.enabled is not False and self._dsn is not None

    # Scheduling

    def _process(self, awaitable: Awaitable[Any]) -> None:
        """Run a capture in the background and count it until it settles."""
        self._num_processing += 1
        tracked = self._tracked(awaitable)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._drain(tracked))
            return

        task = loop.create_task(tracked)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _tracked(self, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except Exception as e:
            logger.error("Error while processing capture: %s", e, exc_info=True)
            return None
        finally:
            self._num_processing -= 1

    async def _drain(self, awaitable: Awaitable[Any]) -> Any:
        """Await a capture plus every capture it scheduled on this loop."""
        result = await awaitable
        loop = asyncio.get_running_loop()
        pending = [task for task in self._tasks if task.get_loop() is loop]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._tasks if task.get_loop() is loop and not task.done()]
        return result


async def _ensure_before_send_rv(rv: Any) -> Event | None:
    """Validate what ``before_send`` returned, awaiting it first if needed."""
    null_err = "`before_send` must return None or a valid event."
    if inspect.isawaitable(rv):
        try:
            rv = await rv
        except Exception as e:
            raise FaultlineError(f"`before_send` rejected with {e}") from e
    if not (is_plain_object(rv) or rv is None):
        raise FaultlineError(null_err)
    return rv
