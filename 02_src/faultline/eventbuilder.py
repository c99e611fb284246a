"""Building canonical events from captured values."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import ClientOptions
from .models import (
    UNKNOWN_FUNCTION,
    DOMError,
    DOMException,
    ErrorEvent,
    Event,
    EventHint,
    JSError,
    PlatformEvent,
    Severity,
    StackFrame,
    StackTrace,
)
from .stacktrace import compute_stack_trace
from .utils import (
    add_exception_mechanism,
    add_exception_type_value,
    extract_exception_keys_for_message,
    is_plain_object,
    normalize_to_size,
)

STACKTRACE_LIMIT = 50

# Names of SDK capture calls; only the innermost frame is ever trimmed
_CAPTURE_FUNCTIONS = ("capture_exception", "capture_message", "capture_event")


class InputKind(str, Enum):
    """What a captured value turned out to be."""

    ERROR_EVENT = "error_event"
    DOM_ERROR = "dom_error"
    NATIVE_ERROR = "native_error"
    PLAIN_OBJECT = "plain_object"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedInput:
    """A captured value tagged with its kind.

    For ERROR_EVENT, ``value`` is the wrapped error, not the wrapper.
    """

    kind: InputKind
    value: Any


def classify_input(value: Any) -> ClassifiedInput:
    """Classify a captured value. The first matching kind wins."""
    if isinstance(value, ErrorEvent) and value.error is not None:
        return ClassifiedInput(InputKind.ERROR_EVENT, value.error)
    if isinstance(value, (DOMError, DOMException)):
        return ClassifiedInput(InputKind.DOM_ERROR, value)
    if isinstance(value, (BaseException, JSError)):
        return ClassifiedInput(InputKind.NATIVE_ERROR, value)
    if is_plain_object(value) or isinstance(value, (PlatformEvent, ErrorEvent)):
        return ClassifiedInput(InputKind.PLAIN_OBJECT, value)
    return ClassifiedInput(InputKind.OTHER, value)


async def event_from_exception(
    options: ClientOptions, exception: Any, hint: EventHint | None = None
) -> Event:
    """Create an event from any value passed to ``capture_exception``."""
    hint = hint or EventHint()
    event = event_from_unknown_input(
        exception,
        hint.synthetic_exception,
        attach_stacktrace=options.attach_stacktrace,
    )
    add_exception_mechanism(event, hint.mechanism)
    event["level"] = Severity.ERROR.value
    if hint.event_id:
        event["event_id"] = hint.event_id
    return event


async def event_from_message(
    options: ClientOptions,
    message: str,
    level: Severity = Severity.INFO,
    hint: EventHint | None = None,
) -> Event:
    """Create a plain message event, never an exception event."""
    hint = hint or EventHint()
    event = event_from_string(
        message,
        hint.synthetic_exception,
        attach_stacktrace=options.attach_stacktrace,
    )
    event["level"] = Severity(level).value
    if hint.event_id:
        event["event_id"] = hint.event_id
    return event


def event_from_unknown_input(
    exception: Any,
    synthetic_exception: BaseException | None = None,
    attach_stacktrace: bool = False,
    is_rejection: bool = False,
) -> Event:
    """Dispatch on the kind of the captured value and build its event."""
    classified = classify_input(exception)

    if classified.kind in (InputKind.ERROR_EVENT, InputKind.NATIVE_ERROR):
        return event_from_stacktrace(compute_stack_trace(classified.value))

    if classified.kind is InputKind.DOM_ERROR:
        return _event_from_dom_error(classified.value, synthetic_exception, attach_stacktrace)

    if classified.kind is InputKind.PLAIN_OBJECT:
        # Grouping by top-level keys beats a new group per key/value change
        event = event_from_plain_object(classified.value, synthetic_exception, is_rejection)
        add_exception_mechanism(event, {"synthetic": True})
        return event

    text = str(exception)
    event = event_from_string(text, synthetic_exception, attach_stacktrace=attach_stacktrace)
    add_exception_type_value(event, text)
    add_exception_mechanism(event, {"synthetic": True})
    return event


def event_from_string(
    message: str,
    synthetic_exception: BaseException | None = None,
    attach_stacktrace: bool = False,
) -> Event:
    """Create a message event, with call-site frames when asked for."""
    event: Event = {"message": message}

    if attach_stacktrace and synthetic_exception is not None:
        stacktrace = compute_stack_trace(synthetic_exception)
        event["stacktrace"] = {"frames": prepare_frames_for_event(stacktrace.frames)}

    return event


def event_from_stacktrace(stacktrace: StackTrace) -> Event:
    """Wrap a decoded stack trace into a single-exception event."""
    exception: dict[str, Any] = {"type": stacktrace.name, "value": stacktrace.message}

    frames = prepare_frames_for_event(stacktrace.frames)
    if frames:
        exception["stacktrace"] = {"frames": frames}

    if exception["type"] is None:
        if exception["value"] == "":
            exception["value"] = "Unrecoverable error caught"
        del exception["type"]

    return {"exception": {"values": [exception]}}


def event_from_plain_object(
    value: Any,
    synthetic_exception: BaseException | None = None,
    is_rejection: bool = False,
) -> Event:
    """Create an event describing a non-error value by its keys."""
    if isinstance(value, (PlatformEvent, ErrorEvent)):
        type_ = type(value).__name__
    else:
        type_ = "UnhandledRejection" if is_rejection else "Error"

    what = "promise rejection" if is_rejection else "exception"
    keys = extract_exception_keys_for_message(value)

    exception: dict[str, Any] = {
        "type": type_,
        "value": f"Non-Error {what} captured with keys: {keys}",
    }
    if synthetic_exception is not None:
        frames = prepare_frames_for_event(compute_stack_trace(synthetic_exception).frames)
        if frames:
            exception["stacktrace"] = {"frames": frames}

    return {
        "exception": {"values": [exception]},
        "extra": {"__serialized__": normalize_to_size(value)},
    }


def prepare_frames_for_event(frames: list[StackFrame]) -> list[dict[str, Any]]:
    """
    Convert decoded frames to event frames.

    Args:
        frames: Decoded frames, innermost first.

    Returns:
        Event frames, oldest first, without a leading capture call frame and
        limited to STACKTRACE_LIMIT entries.
    """
    local_frames = list(frames)
    if local_frames and _is_capture_frame(local_frames[0]):
        local_frames = local_frames[1:]

    if not local_frames:
        return []

    fallback_url = local_frames[0].url
    prepared = []
    for frame in local_frames[:STACKTRACE_LIMIT]:
        entry: dict[str, Any] = {
            "filename": frame.url or fallback_url,
            "function": frame.func or UNKNOWN_FUNCTION,
            "in_app": True,
        }
        if frame.line is not None:
            entry["lineno"] = frame.line
        if frame.column is not None:
            entry["colno"] = frame.column
        prepared.append(entry)

    prepared.reverse()
    return prepared


def _is_capture_frame(frame: StackFrame) -> bool:
    # Exact name match, optionally qualified (``Hub.capture_exception``)
    func = (frame.func or "").rsplit(".", 1)[-1]
    return func in _CAPTURE_FUNCTIONS


def _event_from_dom_error(
    dom_error: DOMError | DOMException,
    synthetic_exception: BaseException | None,
    attach_stacktrace: bool,
) -> Event:
    if dom_error.stack is not None:
        event = event_from_stacktrace(compute_stack_trace(dom_error))
    else:
        fallback = "DOMError" if isinstance(dom_error, DOMError) else "DOMException"
        name = dom_error.name or fallback
        message = f"{name}: {dom_error.message}" if dom_error.message else name
        event = event_from_string(message, synthetic_exception, attach_stacktrace=attach_stacktrace)
        add_exception_type_value(event, message)

    if dom_error.code is not None:
        event["tags"] = {**event.get("tags", {}), "DOMException.code": str(dom_error.code)}

    return event
