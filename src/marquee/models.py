"""Centralized Pydantic models and type aliases for marquee."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated, ClassVar, Literal, TypeAlias

import httpx
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

from marquee.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_HOST,
    DEFAULT_ROOT_DIR,
    ROOT_DIR_ENV_VAR,
    WILDCARD_HOSTS,
)
from marquee.utils import ensure_dir


# === Identity and State Location ===


class ApplicationIdentity(BaseModel):
    """The name a hosted app is managed under.

    One identity maps to one state directory and, by convention, at most one
    live instance.
    """

    name: str

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Application name must not be empty")
        if "/" in value or "\\" in value or value in (".", ".."):
            raise ValueError(f"Invalid application name: {value!r}")
        return value


def resolve_root(root: Path | str | None = None) -> Path:
    """Resolve the state root: explicit value, then $MARQUEE_ROOT, then ~/.marquee.

    The result is always absolute; daemons run with `/` as working directory.
    """
    if root is None:
        root = os.environ.get(ROOT_DIR_ENV_VAR) or DEFAULT_ROOT_DIR
    return Path(root).expanduser().resolve()


class StateDirectory(BaseModel):
    """Per-application directory holding the PID, URL and log files."""

    root: Path
    app_name: str

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @classmethod
    def for_identity(
        cls, identity: ApplicationIdentity, root: Path | str | None = None
    ) -> StateDirectory:
        return cls(root=resolve_root(root), app_name=identity.name)

    @property
    def app_dir(self) -> Path:
        return self.root / self.app_name

    @property
    def pid_path(self) -> Path:
        return self.app_dir / f"{self.app_name}.pid"

    @property
    def url_path(self) -> Path:
        return self.app_dir / f"{self.app_name}.url"

    @property
    def log_path(self) -> Path:
        return self.app_dir / f"{self.app_name}.log"

    def ensure(self) -> Path:
        """Create the app directory (recursively) if missing and return it."""
        ensure_dir(self.app_dir)
        return self.app_dir


# === Network ===


def _require_host(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Host must not be empty")
    return value


HostName = Annotated[str, AfterValidator(_require_host)]


def _format_host(host: str) -> str:
    return f"[{host}]" if ":" in host else host


class ListenEndpoint(BaseModel):
    """The host/port pair a server instance listens on."""

    host: HostName
    port: int = Field(ge=1, le=65535)

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @property
    def url(self) -> str:
        """URL recorded on disk, built from the bind host as given."""
        return f"http://{_format_host(self.host)}:{self.port}"

    @property
    def connect_host(self) -> str:
        """Host to connect to; wildcard bind addresses map to loopback."""
        return WILDCARD_HOSTS.get(self.host, self.host)

    @property
    def probe_url(self) -> str:
        return f"http://{_format_host(self.connect_host)}:{self.port}"

    @classmethod
    def from_url(cls, url: str) -> ListenEndpoint:
        """Parse a recorded `http://host:port` URL.

        Raises:
            ValueError: If the URL has no host or port.
        """
        try:
            parsed = httpx.URL(url.strip())
        except httpx.InvalidURL as e:
            raise ValueError(f"Invalid URL {url!r}: {e}") from e
        if not parsed.host:
            raise ValueError(f"URL {url!r} must include a host")
        # httpx normalizes away the scheme's default port.
        port = parsed.port or {"http": 80, "https": 443}.get(parsed.scheme)
        if port is None:
            raise ValueError(f"URL {url!r} must include a port")
        return cls(host=parsed.host, port=port)


# === Configuration ===


class RunConfiguration(BaseModel):
    """Options recognized by the runner, as supplied by the CLI.

    All default values are defined here and should not be repeated elsewhere.
    """

    host: HostName = DEFAULT_HOST
    port: int | None = Field(default=None, ge=1, le=65535)
    environment: str = DEFAULT_ENVIRONMENT
    foreground: bool = False
    skip_launch: bool = False
    debug: bool = False

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)


# === Persisted State ===


class InstanceRecord(BaseModel):
    """The PID/URL pair persisted for an instance. Either half may be missing."""

    pid: int | None = None
    url: str | None = None

    @property
    def complete(self) -> bool:
        return self.pid is not None and self.url is not None


class StatusReport(BaseModel):
    """What `status` knows about an app, from its state files alone."""

    app_name: str
    running: bool
    pid: int | None = None
    url: str | None = None
    state_dir: Path


# === Lifecycle Outcomes ===


class Started(BaseModel):
    """The server ran in this process and has stopped."""

    kind: Literal["started"] = "started"
    url: str
    pid: int

    exit_code: ClassVar[int] = 0


class DelegatedToExisting(BaseModel):
    """A live instance already owned the recorded URL; nothing was started."""

    kind: Literal["delegated"] = "delegated"
    url: str

    exit_code: ClassVar[int] = 0


class Failed(BaseModel):
    """Startup could not complete."""

    kind: Literal["failed"] = "failed"
    reason: str

    exit_code: ClassVar[int] = 1


LifecycleOutcome: TypeAlias = Started | DelegatedToExisting | Failed
