"""Server capability: run a hosted app on host:port and stop it on request."""

from __future__ import annotations

import contextlib
from collections.abc import Generator
from typing import Any, Protocol

import uvicorn
from typing_extensions import override

from marquee.runner.logging import RunnerLogComponent, get_logger

logger = get_logger(RunnerLogComponent.SERVER)


class ServerHandle(Protocol):
    """A server that has been configured for one endpoint.

    Implementations may also offer `stop_immediately()`; SignalRelay prefers
    it over `stop()` when present.
    """

    def serve(self) -> None: ...

    def stop(self) -> None: ...


class ServerCapability(Protocol):
    name: str

    def run(self, handler: Any, host: str, port: int) -> ServerHandle: ...


class _RelayedServer(uvicorn.Server):
    """uvicorn.Server that leaves signal handling to the runner."""

    @override
    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


class UvicornHandle:
    """Handle over a uvicorn server bound to one host/port."""

    def __init__(self, server: uvicorn.Server):
        self.server: uvicorn.Server = server

    def serve(self) -> None:
        """Block until the server exits."""
        self.server.run()

    def stop(self) -> None:
        """Ask the server to finish in-flight requests and exit."""
        self.server.should_exit = True

    def stop_immediately(self) -> None:
        """Exit without waiting for open connections or background tasks.

        uvicorn also skips the lifespan shutdown on a forced exit, so the
        hosted app's shutdown handlers do not run and uvicorn may log
        "ASGI 'lifespan' protocol appears unsupported." Use `stop()` when
        those handlers matter.
        """
        self.server.force_exit = True
        self.server.should_exit = True


class UvicornServer:
    """ServerCapability backed by uvicorn (ASGI, or WSGI via `interface`)."""

    name: str = "uvicorn"

    def __init__(self, *, interface: str = "auto", log_level: str = "info"):
        self.interface: str = interface
        self.log_level: str = log_level

    def run(self, handler: Any, host: str, port: int) -> UvicornHandle:
        """Configure uvicorn for `handler` (an app object or "module:attr")."""
        config = uvicorn.Config(
            app=handler,
            host=host,
            port=port,
            interface=self.interface,  # type: ignore[arg-type]
            log_level=self.log_level,
            log_config=None,
        )
        logger.debug(f"Configured {self.name} for {host}:{port}")
        return UvicornHandle(_RelayedServer(config))
