"""Hub module: context propagation and session tracking."""

from .hub import Hub, IClient, Layer, get_current_hub, make_main
from .processors import (
    EventProcessor,
    EventProcessorRegistry,
    add_global_event_processor,
    get_global_event_processors,
)
from .scope import ISpan, Scope
from .session import Session

__all__ = [
    "Hub",
    "IClient",
    "Layer",
    "get_current_hub",
    "make_main",
    "EventProcessor",
    "EventProcessorRegistry",
    "add_global_event_processor",
    "get_global_event_processors",
    "ISpan",
    "Scope",
    "Session",
]
