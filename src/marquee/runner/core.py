"""Runner lifecycle - single source of truth for starting, stopping and inspecting an app.

Startup sequence:
    Init -> (Duplicate-Detected | Allocating) -> Bound
         -> (Daemonized | Foregrounded) -> Running -> Stopped

- Init: create the state directory.
- Duplicate-Detected: a live instance owns the recorded URL; open the browser
  there and return without touching the PID/URL files or binding a port.
- Allocating: pick the port; exhaustion is fatal.
- Bound: persist the URL, open the browser (unless suppressed).
- Daemonized / Foregrounded: persist the PID either way.
- Running: serve with the SignalRelay installed, until signaled.
- Stopped: remove the PID file.

The runner never exits the process itself (the daemonizing parent aside); it
returns a LifecycleOutcome and leaves the exit code to the caller.
"""

from __future__ import annotations

import atexit
import os
from pathlib import Path
from typing import Any

import psutil

from marquee.constants import (
    DEFAULT_PORT,
    ENVIRONMENT_ENV_VAR,
    KILL_SIGNAL,
    MAX_PORT,
    WINDOWS,
)
from marquee.models import (
    ApplicationIdentity,
    DelegatedToExisting,
    Failed,
    LifecycleOutcome,
    ListenEndpoint,
    RunConfiguration,
    Started,
    StateDirectory,
    StatusReport,
)
from marquee.runner.browser import BrowserLauncher, BrowserLauncherProtocol
from marquee.runner.daemon import Daemonizer, DaemonizerProtocol
from marquee.runner.errors import PortExhausted, ServerStartupFailure
from marquee.runner.guard import InstanceGuard
from marquee.runner.logging import RunnerLogComponent, get_logger
from marquee.runner.ports import PortAllocator
from marquee.runner.probe import PortProber
from marquee.runner.server import ServerCapability, UvicornServer
from marquee.runner.signals import install_handler
from marquee.runner.state import StateStore

logger = get_logger(RunnerLogComponent.CORE)


class Runner:
    """Runs one named app as a single instance per state directory.

    All collaborators can be injected; by default the runner probes with
    httpx, serves with uvicorn, daemonizes with the platform's Daemonizer and
    opens the system browser.
    """

    def __init__(
        self,
        app: Any,
        app_name: str,
        config: RunConfiguration | None = None,
        *,
        root: Path | str | None = None,
        server: ServerCapability | None = None,
        prober: PortProber | None = None,
        daemonizer: DaemonizerProtocol | None = None,
        browser: BrowserLauncherProtocol | None = None,
        base_port: int = DEFAULT_PORT,
        max_port: int = MAX_PORT,
    ):
        self.app: Any = app
        self.identity: ApplicationIdentity = ApplicationIdentity(name=app_name)
        self.config: RunConfiguration = config or RunConfiguration()
        self.state_dir: StateDirectory = StateDirectory.for_identity(
            self.identity, root
        )
        self.store: StateStore = StateStore(self.state_dir)
        self.prober: PortProber = prober or PortProber()
        self.guard: InstanceGuard = InstanceGuard(self.store, self.prober)
        self.allocator: PortAllocator = PortAllocator(
            self.prober, app_name=self.app_name, max_port=max_port
        )
        self.daemonizer: DaemonizerProtocol = daemonizer or Daemonizer(self.store)
        self.server: ServerCapability = server or UvicornServer()
        self.browser: BrowserLauncherProtocol = browser or BrowserLauncher()
        self.base_port: int = base_port
        self.endpoint: ListenEndpoint | None = None

    @property
    def app_name(self) -> str:
        return self.identity.name

    # === Startup ===

    def start(self) -> LifecycleOutcome:
        """Run the full startup sequence and serve until stopped."""
        self.state_dir.ensure()

        if WINDOWS:
            logger.info("Running with Windows Settings")
        logger.info(f"Starting {self.app_name}")

        running = self.guard.detect_running()
        if running is not None:
            logger.warning(f"{self.app_name} is already running at {running.url}")
            self.launch(running.url)
            return DelegatedToExisting(url=running.url)

        try:
            port = self.allocator.allocate(
                self.config.port, self.base_port, self.config.host
            )
        except PortExhausted as e:
            logger.error(f"Could not start {self.app_name}: {e}")
            return Failed(reason=str(e))

        self.endpoint = ListenEndpoint(host=self.config.host, port=port)
        self.store.write_url(self.endpoint.url)
        self.launch(self.endpoint.url)

        if self.config.foreground:
            pid = os.getpid()
            self.store.write_pid(pid)
            atexit.register(self.store.delete_pid)
        else:
            pid = self.daemonizer.detach(self.state_dir.log_path, self.endpoint)

        try:
            self.run()
        except SystemExit as e:
            # uvicorn exits with status 1 when it cannot bind.
            if e.code in (None, 0):
                raise
            return self._startup_failed(RuntimeError(f"server exited with status {e.code}"))
        except Exception as e:
            return self._startup_failed(e)

        self.store.delete_pid()
        return Started(url=self.endpoint.url, pid=pid)

    def _startup_failed(self, cause: BaseException) -> Failed:
        failure = ServerStartupFailure(self.app_name, cause)
        logger.warning(str(failure))
        self.store.delete_pid()
        return Failed(reason=str(failure))

    def run(self) -> None:
        """Serve the app on the chosen endpoint until the stop signal arrives."""
        if self.endpoint is None:
            raise RuntimeError("run() called before a port was allocated")

        os.environ[ENVIRONMENT_ENV_VAR] = self.config.environment
        handle = self.server.run(self.app, self.endpoint.host, self.endpoint.port)
        logger.info(
            f"{self.app_name} running at {self.endpoint.url} ({self.server.name})"
        )
        relay = install_handler(handle, self.store, app_name=self.app_name)
        try:
            handle.serve()
        finally:
            relay.uninstall()

    def launch(self, url: str) -> None:
        if self.config.skip_launch:
            return
        self.browser.open(url)

    # === Control ===

    def kill(self) -> bool:
        """Send the stop signal to the recorded PID. Returns True if sent."""
        pid = self.store.read_pid()
        if pid is None:
            logger.warning(f"pid not found at {self.store.pid_path} : no PID recorded")
            return False

        logger.warning(f"Sending INT to {pid}")
        try:
            psutil.Process(pid).send_signal(KILL_SIGNAL)
        except (psutil.Error, OSError) as e:
            logger.warning(f"pid not found at {self.store.pid_path} : {e}")
            return False
        return True

    def status(self) -> StatusReport:
        """Report what the state files say. Performs no liveness probing."""
        record = self.store.read_record()
        report = StatusReport(
            app_name=self.app_name,
            running=record.pid is not None,
            pid=record.pid,
            url=record.url,
            state_dir=self.state_dir.app_dir,
        )

        if report.running:
            logger.info(f"{self.app_name} running")
            logger.info(f"PID {report.pid}")
            if report.url is not None:
                logger.info(f"URL {report.url}")
        else:
            logger.info(f"{self.app_name} not running!")
        return report
