"""Detaching the runner from its terminal.

Two implementations, bound once at import time:
- POSIX: fork, let the parent exit, start a new session in the child and
  point stdio at the log file.
- Windows (no fork): relaunch the same command as a detached process in a
  new process group with `--foreground --no-launch --port <port>` appended,
  then exit the parent.

Either way the parent's exit is unconditional (code 0) and never retried.
"""

from __future__ import annotations

import atexit
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Protocol

from marquee.models import ListenEndpoint
from marquee.runner.logging import RunnerLogComponent, get_logger
from marquee.runner.state import StateStore

logger = get_logger(RunnerLogComponent.DAEMON)


class DaemonizerProtocol(Protocol):
    def detach(self, log_path: Path, endpoint: ListenEndpoint) -> int: ...


class _BaseDaemonizer:
    def __init__(self, store: StateStore):
        self.store: StateStore = store

    def _record_pid(self, pid: int) -> int:
        self.store.write_pid(pid)
        # Last resort; a forced kill skips it.
        atexit.register(self.store.delete_pid)
        return pid

    @staticmethod
    def _flush_std_streams() -> None:
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (AttributeError, ValueError, OSError):
                pass


class ForkDaemonizer(_BaseDaemonizer):
    """Classic fork-based detachment."""

    def detach(self, log_path: Path, endpoint: ListenEndpoint) -> int:
        """Fork into the background and return the child's PID (in the child).

        The parent process exits inside this call.
        """
        logger.debug(f"Parent Process: {os.getpid()}")
        self._flush_std_streams()
        if os.fork() > 0:
            os._exit(0)

        os.setsid()
        logger.debug(f"Child Process: {os.getpid()}")
        os.chdir("/")
        os.umask(0)
        self._redirect_streams(log_path)
        return self._record_pid(os.getpid())

    def _redirect_streams(self, log_path: Path) -> None:
        """stdin reads from the log file; stdout and stderr append to it."""
        log_path.touch()
        self._flush_std_streams()
        with open(log_path, "rb") as log_in, open(log_path, "ab") as log_out:
            os.dup2(log_in.fileno(), 0)
            os.dup2(log_out.fileno(), 1)
            os.dup2(log_out.fileno(), 2)


class SpawnDaemonizer(_BaseDaemonizer):
    """Detachment by relaunching the command as an independent process."""

    def __init__(self, store: StateStore, argv: list[str] | None = None):
        super().__init__(store)
        self.argv: list[str] = argv if argv is not None else [sys.executable, *sys.argv]

    def child_command(self, endpoint: ListenEndpoint) -> list[str]:
        # Click keeps the last value of a repeated option, so the chosen port wins.
        return [
            *self.argv,
            "--foreground",
            "--no-launch",
            "--port",
            str(endpoint.port),
        ]

    def detach(self, log_path: Path, endpoint: ListenEndpoint) -> int:
        """Launch the detached child, record its PID, and exit the parent."""
        popen_kwargs: dict[str, Any] = {}
        if os.name == "nt":
            popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP  # type: ignore[attr-defined]
        else:
            popen_kwargs["start_new_session"] = True

        log_path.touch()
        logger.debug(f"Parent Process: {os.getpid()}")
        with open(log_path, "ab") as log_fh:
            proc = subprocess.Popen(
                self.child_command(endpoint),
                stdin=subprocess.DEVNULL,
                stdout=log_fh,
                stderr=log_fh,
                cwd=Path(log_path).anchor or None,
                **popen_kwargs,
            )
        logger.debug(f"Child Process: {proc.pid}")
        self.store.write_pid(proc.pid)
        self._flush_std_streams()
        os._exit(0)


Daemonizer: type[ForkDaemonizer] | type[SpawnDaemonizer] = (
    ForkDaemonizer if hasattr(os, "fork") else SpawnDaemonizer
)
