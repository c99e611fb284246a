"""Error-like values forwarded by platform adapters.

Python exceptions are captured as they are. These shapes cover values that
originate in another runtime (a browser, a JS worker) and reach the SDK as
data: the adapter builds one of them and hands it to ``capture_exception``.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class JSError:
    """An engine-native error with its textual stack."""

    name: str | None = "Error"
    message: Any = None  # usually str, sometimes a wrapped event-like object
    stack: str | None = None
    stacktrace: str | None = None  # legacy Opera property
    frames_to_pop: int | None = None
    column_number: int | None = None  # SpiderMonkey, 0-based


@dataclass
class ErrorEvent:
    """A browser-style error event that may wrap the real error."""

    message: str = ""
    error: Any = None
    filename: str | None = None
    lineno: int | None = None
    colno: int | None = None


@dataclass
class DOMError:
    """Legacy DOMError value."""

    name: str | None = None
    message: str | None = None
    code: int | None = None
    stack: str | None = None


@dataclass
class DOMException:
    """DOMException value, treated like DOMError when it has no stack."""

    name: str | None = None
    message: str | None = None
    code: int | None = None
    stack: str | None = None


@dataclass
class PlatformEvent:
    """A generic platform event (e.g. an unhandled rejection payload)."""

    type: str
    target: Any = None
    current_target: Any = None
    detail: Any = None
