"""Bounding arbitrary values so they can be serialized safely."""

import dataclasses
import inspect
import json
import math
from collections.abc import Mapping
from typing import Any

from .misc import truncate

MAX_SERIALIZED_SIZE = 100 * 1024
MAX_KEYS_MESSAGE_LENGTH = 40

CIRCULAR = "[Circular ~]"
MAX_PROPERTIES = "[MaxProperties ~]"


def normalize(value: Any, depth: float = math.inf, max_breadth: float = math.inf) -> Any:
    """
    Turn a value into a JSON-safe structure.

    Args:
        value: Anything.
        depth: How many container levels to keep. Deeper containers are
               replaced with "[Object]" / "[Array]".
        max_breadth: How many items to keep per container.

    Returns:
        Plain dicts, lists, strings, numbers, bools and None only.
    """
    return _walk(value, depth, max_breadth, set())


def normalize_to_size(
    value: Any, depth: int = 3, max_size: int = MAX_SERIALIZED_SIZE
) -> Any:
    """Normalize a value, lowering depth until its JSON fits into max_size bytes."""
    serialized = normalize(value, depth)
    if depth > 0 and _json_size(serialized) > max_size:
        return normalize_to_size(value, depth - 1, max_size)
    return serialized


def walk_source(value: Any) -> dict[str, Any] | list[Any] | None:
    """Return the children of a container-like value, or None for leaves."""
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, BaseException):
        source = {"name": type(value).__name__, "message": str(value)}
        for key, item in vars(value).items():
            if not key.startswith("_"):
                source[key] = item
        return source
    return None


def extract_exception_keys_for_message(
    value: Any, max_length: int = MAX_KEYS_MESSAGE_LENGTH
) -> str:
    """Summarize an object by its sorted top-level keys, fitted to max_length."""
    source = walk_source(value)
    keys = sorted(source.keys()) if isinstance(source, dict) else []

    if not keys:
        return "[object has no keys]"

    if len(keys[0]) >= max_length:
        return truncate(keys[0], max_length)

    for included in range(len(keys), 0, -1):
        serialized = ", ".join(keys[:included])
        if len(serialized) > max_length:
            continue
        if included == len(keys):
            return serialized
        return truncate(serialized, max_length)

    return ""


def _walk(value: Any, depth: float, max_breadth: float, memo: set[int]) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value

    if isinstance(value, float):
        if math.isnan(value):
            return "[NaN]"
        if math.isinf(value):
            return "[Infinity]" if value > 0 else "[-Infinity]"
        return value

    if isinstance(value, type):
        return f"[Class: {value.__name__}]"

    if inspect.isroutine(value):
        return f"[Function: {getattr(value, '__name__', '<anonymous>')}]"

    source = walk_source(value)
    if source is None:
        return _safe_repr(value)

    if depth <= 0:
        return "[Array]" if isinstance(source, list) else "[Object]"

    if id(value) in memo:
        return CIRCULAR

    memo.add(id(value))
    try:
        if isinstance(source, list):
            items = []
            for index, item in enumerate(source):
                if index >= max_breadth:
                    items.append(MAX_PROPERTIES)
                    break
                items.append(_walk(item, depth - 1, max_breadth, memo))
            return items

        normalized = {}
        for index, (key, item) in enumerate(source.items()):
            if index >= max_breadth:
                normalized[key] = MAX_PROPERTIES
                break
            normalized[key] = _walk(item, depth - 1, max_breadth, memo)
        return normalized
    finally:
        memo.discard(id(value))


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception:
        return f"<broken repr of {type(value).__name__}>"


def _json_size(value: Any) -> int:
    return len(json.dumps(value, default=str).encode("utf-8"))
