"""Small helpers shared across the SDK."""

import inspect
import time
import uuid
from typing import Any

from ..models import Event

_CAPTURED_ATTR = "__faultline_captured__"


def uuid4() -> str:
    """Return a 32-character hex identifier."""
    return uuid.uuid4().hex


def timestamp_in_seconds() -> float:
    """Seconds since the UNIX epoch."""
    return time.time()


def truncate(value: str, max_length: int = 0) -> str:
    """Cut a string to max_length characters and mark it with an ellipsis.

    A max_length of 0 disables truncation.
    """
    if not isinstance(value, str) or max_length == 0 or len(value) <= max_length:
        return value
    return f"{value[:max_length]}..."


def is_plain_object(value: Any) -> bool:
    """Whether a value is event-shaped, i.e. a plain dict."""
    return isinstance(value, dict)


async def resolve(value: Any) -> Any:
    """Await a value if it is awaitable, otherwise return it as is."""
    if inspect.isawaitable(value):
        return await value
    return value


def drop_none_values(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively remove keys whose value is None."""
    result = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = drop_none_values(value)
        result[key] = value
    return result


def add_exception_type_value(
    event: Event, value: str | None = None, type_: str | None = None
) -> None:
    """Ensure the first exception entry exists and has a type and value."""
    exception = event.setdefault("exception", {})
    values = exception.setdefault("values", [])
    if not values:
        values.append({})
    first = values[0]
    if not first.get("value"):
        first["value"] = value or ""
    if not first.get("type"):
        first["type"] = type_ or "Error"


def add_exception_mechanism(event: Event, mechanism: dict[str, Any] | None = None) -> None:
    """Stamp the first exception entry with a mechanism.

    Defaults to ``{"type": "generic", "handled": True}``; an existing
    mechanism and then the given one are layered on top.
    """
    values = (event.get("exception") or {}).get("values")
    if not values:
        return

    first = values[0]
    current = first.get("mechanism") or {}
    merged = {"type": "generic", "handled": True, **current, **(mechanism or {})}
    if mechanism and "data" in mechanism:
        merged["data"] = {**current.get("data", {}), **mechanism["data"]}
    first["mechanism"] = merged


def check_or_set_already_caught(exception: Any) -> bool:
    """Tag an exception value as captured; report whether it already was.

    Best effort: values that refuse attributes (str, dict, ...) are never
    considered captured.
    """
    if getattr(exception, _CAPTURED_ATTR, False):
        return True

    try:
        setattr(exception, _CAPTURED_ATTR, True)
    except (AttributeError, TypeError):
        pass
    return False
