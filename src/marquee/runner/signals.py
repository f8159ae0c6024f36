"""Relaying the termination signal to the running server."""

from __future__ import annotations

import signal
from types import FrameType
from typing import Any, Callable

from marquee.constants import STOP_SIGNAL
from marquee.runner.logging import RunnerLogComponent, get_logger
from marquee.runner.server import ServerHandle
from marquee.runner.state import StateStore

logger = get_logger(RunnerLogComponent.SIGNALS)


class SignalRelay:
    """Stops the server and removes the PID file when the stop signal arrives.

    The server's immediate stop is used when it has one. For uvicorn that
    skips the hosted app's lifespan shutdown handlers; see
    `UvicornHandle.stop_immediately`.

    The handler only flips the server's exit flags and unlinks a file, so it
    is safe to run from signal context. It never re-raises.
    """

    def __init__(
        self,
        server: ServerHandle,
        store: StateStore,
        *,
        app_name: str = "app",
        signum: int = STOP_SIGNAL,
    ):
        self.server: ServerHandle = server
        self.store: StateStore = store
        self.app_name: str = app_name
        self.signum: int = signum
        self._previous: Callable[[int, FrameType | None], Any] | int | None = None
        self._installed: bool = False

    def install(self) -> SignalRelay:
        self._previous = signal.signal(self.signum, self.handle)
        self._installed = True
        return self

    def uninstall(self) -> None:
        if not self._installed:
            return
        signal.signal(
            self.signum,
            self._previous if self._previous is not None else signal.SIG_DFL,
        )
        self._installed = False

    def handle(self, signum: int, frame: FrameType | None) -> None:
        stop_immediately = getattr(self.server, "stop_immediately", None)
        if callable(stop_immediately):
            stop_immediately()
        else:
            self.server.stop()
        logger.info(f"{self.app_name} received INT ... stopping")
        self.store.delete_pid()


def install_handler(
    server: ServerHandle, store: StateStore, *, app_name: str = "app"
) -> SignalRelay:
    """Install a SignalRelay for `server` and return it."""
    return SignalRelay(server, store, app_name=app_name).install()
