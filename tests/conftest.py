"""Shared fakes for runner collaborators."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from marquee.models import ListenEndpoint, StateDirectory
from marquee.runner.probe import PortProber
from marquee.runner.state import StateStore


class FakeProber(PortProber):
    """Prober whose answers come from a set of occupied ports."""

    def __init__(self, occupied: set[int] | None = None):
        super().__init__(timeout=0.1)
        self.occupied: set[int] = set(occupied or ())
        self.probed: list[str] = []

    def is_free(self, url: str) -> bool:
        self.probed.append(url)
        return ListenEndpoint.from_url(url).port not in self.occupied


class FakeHandle:
    def __init__(self, on_serve: Callable[[FakeHandle], None] | None = None):
        self.on_serve = on_serve
        self.served = False
        self.stopped = False
        self.stopped_immediately = False

    def serve(self) -> None:
        self.served = True
        if self.on_serve is not None:
            self.on_serve(self)

    def stop(self) -> None:
        self.stopped = True

    def stop_immediately(self) -> None:
        self.stopped_immediately = True


class FakeServer:
    name = "fake"

    def __init__(self, on_serve: Callable[[FakeHandle], None] | None = None):
        self.on_serve = on_serve
        self.calls: list[tuple[object, str, int]] = []
        self.handle: FakeHandle | None = None

    def run(self, handler: object, host: str, port: int) -> FakeHandle:
        self.calls.append((handler, host, port))
        self.handle = FakeHandle(self.on_serve)
        return self.handle


class FakeBrowser:
    def __init__(self) -> None:
        self.opened: list[str] = []

    def open(self, url: str) -> None:
        self.opened.append(url)


class FakeDaemonizer:
    """Records the detach request and plays the child side only."""

    def __init__(self, store: StateStore, child_pid: int = 424242):
        self.store = store
        self.child_pid = child_pid
        self.calls: list[tuple[Path, ListenEndpoint]] = []

    def detach(self, log_path: Path, endpoint: ListenEndpoint) -> int:
        self.calls.append((log_path, endpoint))
        self.store.write_pid(self.child_pid)
        return self.child_pid


@pytest.fixture
def state_dir(tmp_path: Path) -> StateDirectory:
    directory = StateDirectory(root=tmp_path, app_name="demo")
    directory.ensure()
    return directory


@pytest.fixture
def store(state_dir: StateDirectory) -> StateStore:
    return StateStore(state_dir)


@pytest.fixture(autouse=True)
def _no_atexit(monkeypatch: pytest.MonkeyPatch) -> list[Callable[[], None]]:
    """Keep exit hooks registered by the code under test out of the test session."""
    registered: list[Callable[[], None]] = []
    monkeypatch.setattr("atexit.register", registered.append)
    return registered


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so caplog keeps seeing marquee records."""
    yield
    for name in ("marquee", "uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
