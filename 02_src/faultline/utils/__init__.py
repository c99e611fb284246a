"""Utils module."""

from .misc import (
    add_exception_mechanism,
    add_exception_type_value,
    check_or_set_already_caught,
    drop_none_values,
    is_plain_object,
    resolve,
    timestamp_in_seconds,
    truncate,
    uuid4,
)
from .normalize import (
    extract_exception_keys_for_message,
    normalize,
    normalize_to_size,
    walk_source,
)

__all__ = [
    "add_exception_mechanism",
    "add_exception_type_value",
    "check_or_set_already_caught",
    "drop_none_values",
    "extract_exception_keys_for_message",
    "is_plain_object",
    "normalize",
    "normalize_to_size",
    "resolve",
    "timestamp_in_seconds",
    "truncate",
    "uuid4",
    "walk_source",
]
