"""DSN parsing and validation."""

import re
from dataclasses import dataclass

from .errors import FaultlineError

DSN_REGEX = re.compile(r"^(?:(\w+):)//(?:(\w+)(?::(\w+))?@)([\w.-]+)(?::(\d+))?/(.+)")

VALID_PROTOCOLS = ("http", "https")


@dataclass(frozen=True)
class Dsn:
    """Components of a DSN, identifying the ingestion endpoint and project."""

    protocol: str
    public_key: str
    host: str
    project_id: str
    password: str = ""
    port: str = ""
    path: str = ""

    def to_string(self, with_password: bool = False) -> str:
        """Render the DSN. The password is left out unless asked for."""
        credentials = self.public_key
        if with_password and self.password:
            credentials = f"{credentials}:{self.password}"
        port = f":{self.port}" if self.port else ""
        path = f"{self.path}/" if self.path else ""
        return f"{self.protocol}://{credentials}@{self.host}{port}/{path}{self.project_id}"

    def __str__(self) -> str:
        return self.to_string()


def make_dsn(value: "str | Dsn") -> Dsn:
    """Parse and validate a DSN.

    Raises:
        FaultlineError: if the value is not a usable DSN.
    """
    dsn = value if isinstance(value, Dsn) else _dsn_from_string(value)
    _validate(dsn)
    return dsn


def _dsn_from_string(value: str) -> Dsn:
    match = DSN_REGEX.match(value or "")
    if not match:
        raise FaultlineError("Invalid Dsn")

    protocol, public_key, password, host, port, last_path = match.groups()
    path = ""
    project_id = last_path

    segments = project_id.split("/")
    if len(segments) > 1:
        path = "/".join(segments[:-1])
        project_id = segments[-1]

    project_match = re.match(r"^\d+", project_id)
    if project_match:
        project_id = project_match.group(0)

    return Dsn(
        protocol=protocol,
        public_key=public_key or "",
        host=host,
        project_id=project_id,
        password=password or "",
        port=port or "",
        path=path,
    )


def _validate(dsn: Dsn) -> None:
    for component in ("protocol", "public_key", "host", "project_id"):
        if not getattr(dsn, component):
            raise FaultlineError(f"Invalid Dsn: {component} missing")

    if not dsn.project_id.isdigit():
        raise FaultlineError(f"Invalid Dsn: Invalid projectId {dsn.project_id}")

    if dsn.protocol not in VALID_PROTOCOLS:
        raise FaultlineError(f"Invalid Dsn: Invalid protocol {dsn.protocol}")

    if dsn.port and not dsn.port.isdigit():
        raise FaultlineError(f"Invalid Dsn: Invalid port {dsn.port}")
