"""Decoding native error values into structured stack traces."""

import dataclasses
import re
import traceback
from collections.abc import Mapping
from typing import Any

from ..logging_config import get_logger
from ..models import UNKNOWN_FUNCTION, StackFrame, StackTrace
from .grammars import STACK_GRAMMARS, STACKTRACE_GRAMMARS

logger = get_logger(__name__)

NO_ERROR_MESSAGE = "No error message"

# Minified framework errors are all thrown from one generic invariant helper,
# whose frame says nothing about the failure.
REACT_MINIFIED = re.compile(r"Minified React error #\d+;", re.IGNORECASE)


def compute_stack_trace(error: Any) -> StackTrace:
    """
    Decode a native error into a StackTrace.

    Strategies are tried in order: the legacy ``stacktrace`` text, the
    ``stack`` text, then the Python traceback. The first one producing frames
    wins. This function never raises; when nothing can be decoded the result
    has no frames and ``failed`` set.

    Args:
        error: A Python exception, a JSError or any object/mapping carrying
               ``name``, ``message``, ``stack`` or ``stacktrace``.

    Returns:
        StackTrace with frames innermost first.
    """
    pop_size = _pop_size(error)

    for strategy in (_from_stacktrace_prop, _from_stack_prop, _from_python_traceback):
        try:
            stack = strategy(error)
        except Exception:
            logger.debug("Stack trace strategy %s failed", strategy.__name__, exc_info=True)
            continue
        if stack is not None:
            return _pop_frames(stack, pop_size)

    try:
        return StackTrace(
            name=error_name(error),
            message=extract_message(error),
            frames=[],
            failed=True,
        )
    except Exception:
        logger.debug("Could not describe undecodable error", exc_info=True)
        return StackTrace(name=None, message=NO_ERROR_MESSAGE, frames=[], failed=True)


def error_name(error: Any) -> str | None:
    """Exception class name for Python exceptions, the ``name`` property otherwise."""
    if isinstance(error, BaseException):
        return type(error).__name__
    name = _get(error, "name")
    return name if name is None else str(name)


def extract_message(error: Any) -> str:
    """Best-effort message of a native error.

    A message that is itself an event-like object wrapping an error surfaces
    the wrapped error's message.
    """
    message = _raw_message(error)
    if not message:
        return NO_ERROR_MESSAGE

    if not isinstance(message, str):
        nested = _get(message, "error")
        nested_message = _get(nested, "message") if nested is not None else None
        if isinstance(nested_message, str):
            return nested_message
        return str(message)

    return message


def _get(value: Any, name: str) -> Any:
    if value is None:
        return None
    if isinstance(value, Mapping):
        return value.get(name)
    return getattr(value, name, None)


def _raw_message(error: Any) -> Any:
    if isinstance(error, BaseException):
        if len(error.args) == 1:
            return error.args[0]
        return str(error) if error.args else None
    return _get(error, "message")


def _pop_size(error: Any) -> int:
    try:
        frames_to_pop = _get(error, "frames_to_pop")
        if isinstance(frames_to_pop, int) and not isinstance(frames_to_pop, bool):
            return frames_to_pop
        message = _raw_message(error)
        if message is not None and REACT_MINIFIED.search(str(message)):
            return 1
    except Exception:
        logger.debug("Could not determine frames to pop", exc_info=True)
    return 0


def _pop_frames(stack: StackTrace, pop_size: int) -> StackTrace:
    if pop_size <= 0:
        return stack
    return dataclasses.replace(stack, frames=stack.frames[pop_size:])


def _finish_frame(frame: StackFrame) -> StackFrame:
    if not frame.func and frame.line is not None:
        frame.func = UNKNOWN_FUNCTION
    return frame


def _from_stacktrace_prop(error: Any) -> StackTrace | None:
    # Read before ``stack``: Opera 10 corrupts ``stacktrace`` once ``stack`` is accessed.
    stacktrace = _get(error, "stacktrace")
    if not stacktrace or not isinstance(stacktrace, str):
        return None

    lines = stacktrace.split("\n")
    frames = []
    for index in range(0, len(lines), 2):
        for grammar in STACKTRACE_GRAMMARS:
            frame = grammar(lines[index])
            if frame is not None:
                frames.append(_finish_frame(frame))
                break

    if not frames:
        return None

    return StackTrace(name=error_name(error), message=extract_message(error), frames=frames)


def _from_stack_prop(error: Any) -> StackTrace | None:
    stack = _get(error, "stack")
    if not stack or not isinstance(stack, str):
        return None

    column_number = _get(error, "column_number")
    frames = []
    for index, line in enumerate(stack.split("\n")):
        for grammar in STACK_GRAMMARS:
            frame = grammar(line, index, column_number)
            if frame is not None:
                frames.append(_finish_frame(frame))
                break

    if not frames:
        return None

    return StackTrace(name=error_name(error), message=extract_message(error), frames=frames)


def _from_python_traceback(error: Any) -> StackTrace | None:
    if not isinstance(error, BaseException):
        return None

    summary = getattr(error, "call_stack", None)
    if summary is None:
        if error.__traceback__ is None:
            return None
        summary = traceback.extract_tb(error.__traceback__)

    frames = []
    # Tracebacks list the outermost call first
    for entry in reversed(summary):
        colno = getattr(entry, "colno", None)
        frames.append(
            StackFrame(
                url=entry.filename,
                func=entry.name or UNKNOWN_FUNCTION,
                args=[],
                line=entry.lineno,
                column=colno + 1 if colno is not None else None,
            )
        )

    if not frames:
        return None

    return StackTrace(name=error_name(error), message=extract_message(error), frames=frames)
