"""Client module: event pipeline, backend, transports and integrations."""

from .backend import DefaultBackend, IBackend
from .client import Client
from .integrations import (
    DEFAULT_IGNORE_ERRORS,
    InboundFilters,
    Integration,
    get_integrations_to_setup,
    setup_integrations,
)
from .transport import ITransport, NoopTransport

__all__ = [
    "Client",
    "DefaultBackend",
    "IBackend",
    "ITransport",
    "NoopTransport",
    "Integration",
    "InboundFilters",
    "DEFAULT_IGNORE_ERRORS",
    "get_integrations_to_setup",
    "setup_integrations",
]
