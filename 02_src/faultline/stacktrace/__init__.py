"""Stack trace decoding module."""

from .decoder import NO_ERROR_MESSAGE, compute_stack_trace, error_name, extract_message
from .grammars import (
    STACK_GRAMMARS,
    STACKTRACE_GRAMMARS,
    extract_safari_extension_details,
    match_chrome,
    match_gecko,
    match_opera_newer,
    match_opera_older,
    match_winjs,
)

__all__ = [
    "compute_stack_trace",
    "error_name",
    "extract_message",
    "NO_ERROR_MESSAGE",
    "STACK_GRAMMARS",
    "STACKTRACE_GRAMMARS",
    "extract_safari_extension_details",
    "match_chrome",
    "match_gecko",
    "match_opera_newer",
    "match_opera_older",
    "match_winjs",
]
