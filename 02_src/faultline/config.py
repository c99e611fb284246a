"""Client options and project-level path helpers."""

import os
from pathlib import Path
from typing import Any, Callable, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "faultline.log"
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_ENVIRONMENT = "production"
DEFAULT_MAX_VALUE_LENGTH = 250
DEFAULT_NORMALIZE_DEPTH = 3
DEFAULT_MAX_BREADCRUMBS = 100
MAX_BREADCRUMBS = 100


PathLike = Union[str, Path]


class ClientOptions(BaseModel):
    """Options accepted by the client and the ``init`` entry point."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    dsn: str | None = None
    enabled: bool = True
    debug: bool = False

    release: str | None = None
    environment: str | None = None
    dist: str | None = None

    sample_rate: float | None = Field(default=None, ge=0.0, le=1.0)
    max_value_length: int = Field(default=DEFAULT_MAX_VALUE_LENGTH, ge=0)
    normalize_depth: int = Field(default=DEFAULT_NORMALIZE_DEPTH, ge=0)
    max_breadcrumbs: int = Field(default=DEFAULT_MAX_BREADCRUMBS, ge=0, le=MAX_BREADCRUMBS)
    attach_stacktrace: bool = False

    # (event, hint) -> event | None | awaitable of either
    before_send: Callable[..., Any] | None = None
    # (breadcrumb, hint) -> breadcrumb | None
    before_breadcrumb: Callable[..., Any] | None = None

    integrations: list[Any] = Field(default_factory=list)
    default_integrations: bool = True
    initial_scope: dict[str, Any] | None = None

    auto_session_tracking: bool = True
    user_agent: str | None = None

    # (ClientOptions) -> transport
    transport: Callable[..., Any] | None = None
    shutdown_timeout: float = Field(default=2.0, ge=0.0)


_ENV_FIELDS = {
    "dsn": "FAULTLINE_DSN",
    "enabled": "FAULTLINE_ENABLED",
    "debug": "FAULTLINE_DEBUG",
    "release": "FAULTLINE_RELEASE",
    "environment": "FAULTLINE_ENVIRONMENT",
    "dist": "FAULTLINE_DIST",
    "sample_rate": "FAULTLINE_SAMPLE_RATE",
    "max_value_length": "FAULTLINE_MAX_VALUE_LENGTH",
    "normalize_depth": "FAULTLINE_NORMALIZE_DEPTH",
    "attach_stacktrace": "FAULTLINE_ATTACH_STACKTRACE",
}


def load_options(env_file: PathLike | None = None, **overrides: Any) -> ClientOptions:
    """
    Build ClientOptions from the environment.

    Args:
        env_file: Optional .env file to load first. Defaults to PROJECT_ROOT/.env.
                  Variables already present in the environment win.
        **overrides: Explicit option values, applied last.

    Returns:
        Validated ClientOptions
    """
    load_dotenv(env_file or DEFAULT_ENV_FILE)

    values: dict[str, Any] = {}
    for field_name, env_name in _ENV_FIELDS.items():
        raw = os.getenv(env_name)
        if raw:
            values[field_name] = raw

    values.update(overrides)
    return ClientOptions(**values)
