"""Tests for event building."""

import pytest

from faultline.config import ClientOptions
from faultline.errors import SyntheticException
from faultline.eventbuilder import (
    STACKTRACE_LIMIT,
    InputKind,
    classify_input,
    event_from_exception,
    event_from_message,
    event_from_stacktrace,
    event_from_unknown_input,
    prepare_frames_for_event,
)
from faultline.models import (
    DOMError,
    DOMException,
    ErrorEvent,
    EventHint,
    JSError,
    PlatformEvent,
    StackFrame,
    StackTrace,
)


class TestClassifyInput:
    """Tests for input classification."""

    def test_error_event_with_error_is_unwrapped(self, js_type_error):
        """Test that the wrapped error is what gets decoded."""
        classified = classify_input(ErrorEvent(message="Uncaught", error=js_type_error))
        assert classified.kind is InputKind.ERROR_EVENT
        assert classified.value is js_type_error

    def test_error_event_without_error_is_plain_object(self):
        """Test an error event carrying nothing."""
        assert classify_input(ErrorEvent(message="Script error.")).kind is InputKind.PLAIN_OBJECT

    def test_dom_errors(self):
        """Test DOM error values."""
        assert classify_input(DOMError(name="X")).kind is InputKind.DOM_ERROR
        assert classify_input(DOMException(name="X")).kind is InputKind.DOM_ERROR

    def test_native_errors(self, js_type_error):
        """Test Python exceptions and engine errors."""
        assert classify_input(ValueError("x")).kind is InputKind.NATIVE_ERROR
        assert classify_input(js_type_error).kind is InputKind.NATIVE_ERROR

    def test_plain_objects(self):
        """Test dicts and platform events."""
        assert classify_input({"a": 1}).kind is InputKind.PLAIN_OBJECT
        assert classify_input(PlatformEvent(type="click")).kind is InputKind.PLAIN_OBJECT

    def test_everything_else(self):
        """Test the fallback kind."""
        assert classify_input(42).kind is InputKind.OTHER
        assert classify_input("oops").kind is InputKind.OTHER


class TestEventFromException:
    """Tests for event_from_exception."""

    @pytest.mark.asyncio
    async def test_type_error_with_two_frames(self, js_type_error):
        """Test the canonical event for a native TypeError."""
        event = await event_from_exception(ClientOptions(), js_type_error, EventHint(event_id="abc"))

        exception = event["exception"]["values"][0]
        assert exception["type"] == "TypeError"
        assert exception["value"] == "x is not a function"
        assert len(exception["stacktrace"]["frames"]) == 2
        assert exception["mechanism"]["handled"] is True
        assert exception["mechanism"]["type"] == "generic"
        assert event["level"] == "error"
        assert event["event_id"] == "abc"

    @pytest.mark.asyncio
    async def test_frames_are_oldest_first(self, js_type_error):
        """Test that event frames put the innermost frame last."""
        event = await event_from_exception(ClientOptions(), js_type_error)

        frames = event["exception"]["values"][0]["stacktrace"]["frames"]
        assert frames[0]["function"] == "HTMLButtonElement.dispatch"
        assert frames[-1] == {
            "filename": "http://example.com/static/app.js",
            "function": "handleClick",
            "lineno": 10,
            "colno": 15,
            "in_app": True,
        }

    @pytest.mark.asyncio
    async def test_error_event_wrapper(self, js_type_error):
        """Test that an error event is decoded through its nested error."""
        event = await event_from_exception(
            ClientOptions(), ErrorEvent(message="Uncaught TypeError", error=js_type_error)
        )
        assert event["exception"]["values"][0]["type"] == "TypeError"

    @pytest.mark.asyncio
    async def test_hint_mechanism_is_merged(self, js_type_error):
        """Test that a hint mechanism overrides the default one."""
        hint = EventHint(mechanism={"type": "onerror", "handled": False})
        event = await event_from_exception(ClientOptions(), js_type_error, hint)

        assert event["exception"]["values"][0]["mechanism"] == {"type": "onerror", "handled": False}

    @pytest.mark.asyncio
    async def test_python_exception(self):
        """Test a raised Python exception."""
        try:
            raise ValueError("bad input")
        except ValueError as e:
            event = await event_from_exception(ClientOptions(), e)

        exception = event["exception"]["values"][0]
        assert exception["type"] == "ValueError"
        assert exception["value"] == "bad input"
        assert exception["stacktrace"]["frames"][-1]["function"] == "test_python_exception"


class TestUnknownInput:
    """Tests for the non-error branches of event_from_unknown_input."""

    def test_dom_exception_without_stack(self):
        """Test that DOM exceptions become a message with their code as a tag."""
        event = event_from_unknown_input(DOMException(name="NotFoundError", message="node missing", code=8))

        assert event["message"] == "NotFoundError: node missing"
        assert event["exception"]["values"][0]["value"] == "NotFoundError: node missing"
        assert event["tags"] == {"DOMException.code": "8"}

    def test_dom_error_name_fallback(self):
        """Test the fixed name used when a DOM error has none."""
        event = event_from_unknown_input(DOMError())
        assert event["message"] == "DOMError"

    def test_dom_exception_with_stack(self, js_type_error):
        """Test that a DOM exception with a native stack is decoded."""
        dom = DOMException(name="AbortError", message="aborted", stack=js_type_error.stack)
        event = event_from_unknown_input(dom)

        exception = event["exception"]["values"][0]
        assert exception["type"] == "AbortError"
        assert len(exception["stacktrace"]["frames"]) == 2

    def test_plain_object(self):
        """Test that plain objects are described by their keys."""
        event = event_from_unknown_input({"status": 500, "body": "nope"})

        exception = event["exception"]["values"][0]
        assert exception["type"] == "Error"
        assert exception["value"] == "Non-Error exception captured with keys: body, status"
        assert exception["mechanism"]["synthetic"] is True
        assert event["extra"]["__serialized__"] == {"status": 500, "body": "nope"}

    def test_plain_object_rejection(self):
        """Test rejections of plain objects."""
        event = event_from_unknown_input({}, is_rejection=True)

        exception = event["exception"]["values"][0]
        assert exception["type"] == "UnhandledRejection"
        assert exception["value"] == (
            "Non-Error promise rejection captured with keys: [object has no keys]"
        )

    def test_platform_event(self):
        """Test that platform events are typed by their class."""
        event = event_from_unknown_input(PlatformEvent(type="unhandledrejection"))

        exception = event["exception"]["values"][0]
        assert exception["type"] == "PlatformEvent"
        assert exception["value"] == (
            "Non-Error exception captured with keys: current_target, detail, target, type"
        )

    def test_plain_object_with_synthetic_frames(self):
        """Test that the call site frames are attached to plain objects."""
        event = event_from_unknown_input({"a": 1}, SyntheticException())
        frames = event["exception"]["values"][0]["stacktrace"]["frames"]
        assert frames[-1]["function"] == "test_plain_object_with_synthetic_frames"

    def test_fallback_stringifies(self):
        """Test that any other value becomes a synthetic message event."""
        event = event_from_unknown_input(42)

        assert event["message"] == "42"
        exception = event["exception"]["values"][0]
        assert exception["type"] == "Error"
        assert exception["value"] == "42"
        assert exception["mechanism"] == {"type": "generic", "handled": True, "synthetic": True}


class TestEventFromMessage:
    """Tests for event_from_message."""

    @pytest.mark.asyncio
    async def test_plain_message(self):
        """Test that messages never carry exception info."""
        event = await event_from_message(ClientOptions(), "hello")

        assert event == {"message": "hello", "level": "info"}

    @pytest.mark.asyncio
    async def test_attaches_frames_when_enabled(self):
        """Test that call-site frames are attached with attach_stacktrace."""
        hint = EventHint(synthetic_exception=SyntheticException("hello"))
        event = await event_from_message(ClientOptions(attach_stacktrace=True), "hello", "warning", hint)

        assert "exception" not in event
        assert event["level"] == "warning"
        assert event["stacktrace"]["frames"][-1]["function"] == "test_attaches_frames_when_enabled"

    @pytest.mark.asyncio
    async def test_no_frames_by_default(self):
        """Test that frames are not attached by default."""
        hint = EventHint(synthetic_exception=SyntheticException("hello"))
        event = await event_from_message(ClientOptions(), "hello", hint=hint)

        assert "stacktrace" not in event


class TestPrepareFrames:
    """Tests for frame conversion."""

    def test_trims_capture_frames_and_fills_url(self):
        """Test capture call trimming and url fallback."""
        frames = [
            StackFrame(url="sdk.py", func="capture_exception", line=1),
            StackFrame(url="app.py", func="handler", line=10),
            StackFrame(url=None, func="main", line=20, column=3),
        ]

        assert prepare_frames_for_event(frames) == [
            {"filename": "app.py", "function": "main", "lineno": 20, "colno": 3, "in_app": True},
            {"filename": "app.py", "function": "handler", "lineno": 10, "in_app": True},
        ]

    def test_trims_at_most_one_capture_frame(self):
        """Test that only the innermost capture call frame is dropped."""
        frames = [
            StackFrame(url="hub.py", func="Hub.capture_message", line=1),
            StackFrame(url="sdk.py", func="capture_message", line=2),
            StackFrame(url="app.py", func="main", line=3),
        ]

        assert [f["function"] for f in prepare_frames_for_event(frames)] == ["main", "capture_message"]

    def test_keeps_user_frames_named_like_capture(self):
        """Test that user functions containing a capture name are kept."""
        frames = [
            StackFrame(url="app.py", func="retry_capture_exception_upload", line=5),
            StackFrame(url="app.py", func="main", line=9),
        ]

        assert [f["function"] for f in prepare_frames_for_event(frames)] == [
            "main",
            "retry_capture_exception_upload",
        ]

    def test_limits_frame_count(self):
        """Test the frame limit."""
        frames = [StackFrame(url="a.py", func=f"f{i}", line=i) for i in range(STACKTRACE_LIMIT + 10)]

        prepared = prepare_frames_for_event(frames)

        assert len(prepared) == STACKTRACE_LIMIT
        assert prepared[-1]["function"] == "f0"

    def test_unrecoverable_error(self):
        """Test the placeholder for nameless, messageless stacks."""
        event = event_from_stacktrace(StackTrace(name=None, message=""))
        assert event == {"exception": {"values": [{"value": "Unrecoverable error caught"}]}}
