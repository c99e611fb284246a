"""Decoded stack trace data models."""

from dataclasses import dataclass, field

UNKNOWN_FUNCTION = "?"


@dataclass
class StackFrame:
    """A single decoded frame."""

    url: str | None
    func: str | None = UNKNOWN_FUNCTION
    args: list[str] = field(default_factory=list)
    line: int | None = None
    column: int | None = None


@dataclass
class StackTrace:
    """A decoded stack trace, innermost frame first."""

    name: str | None
    message: str
    frames: list[StackFrame] = field(default_factory=list)
    failed: bool = False
