"""PID and URL bookkeeping for a running instance."""

from __future__ import annotations

from pathlib import Path

from marquee.models import InstanceRecord, StateDirectory
from marquee.runner.logging import RunnerLogComponent, get_logger

logger = get_logger(RunnerLogComponent.STATE)


class StateStore:
    """Reads and writes the PID and URL files under a StateDirectory.

    Writes truncate and replace. Reads of a missing file return None.
    """

    def __init__(self, state_dir: StateDirectory):
        self.state_dir: StateDirectory = state_dir

    @property
    def pid_path(self) -> Path:
        return self.state_dir.pid_path

    @property
    def url_path(self) -> Path:
        return self.state_dir.url_path

    @property
    def log_path(self) -> Path:
        return self.state_dir.log_path

    def read_pid(self) -> int | None:
        if not self.pid_path.exists():
            return None
        raw = self.pid_path.read_text(encoding="utf-8").strip()
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring corrupt PID file {self.pid_path}: {raw!r}")
            return None

    def read_url(self) -> str | None:
        if not self.url_path.exists():
            return None
        url = self.url_path.read_text(encoding="utf-8").strip()
        return url or None

    def read_record(self) -> InstanceRecord:
        return InstanceRecord(pid=self.read_pid(), url=self.read_url())

    def write_url(self, url: str) -> None:
        self.url_path.write_text(url, encoding="utf-8")
        logger.debug(f"Wrote {url} to {self.url_path}")

    def write_pid(self, pid: int) -> None:
        self.pid_path.write_text(str(pid), encoding="utf-8")
        logger.debug(f"Wrote pid {pid} to {self.pid_path}")

    def delete_pid(self) -> None:
        """Remove the PID file. Does nothing if it is already gone."""
        self.pid_path.unlink(missing_ok=True)
