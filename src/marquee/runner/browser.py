"""Opening the app in a browser without blocking the runner."""

from __future__ import annotations

import os
import subprocess
import sys
from typing import Any, Protocol

from marquee.constants import BROWSER_LAUNCH_DELAY
from marquee.models import ListenEndpoint
from marquee.runner.logging import RunnerLogComponent, get_logger

logger = get_logger(RunnerLogComponent.BROWSER)

_LAUNCH_SCRIPT = "import sys, time, webbrowser; time.sleep(float(sys.argv[2])); webbrowser.open(sys.argv[1])"


class BrowserLauncherProtocol(Protocol):
    def open(self, url: str) -> None: ...


def browsable_url(url: str) -> str:
    """Point wildcard bind addresses at localhost so a browser can reach them."""
    try:
        endpoint = ListenEndpoint.from_url(url)
    except ValueError:
        return url
    if endpoint.connect_host != endpoint.host:
        return f"http://localhost:{endpoint.port}"
    return url


class BrowserLauncher:
    """Fire-and-forget browser launch.

    The browser is opened from a detached helper interpreter after a short
    delay, so it outlives a daemonizing parent and the server has time to bind.
    """

    def __init__(self, delay: float = BROWSER_LAUNCH_DELAY):
        self.delay: float = delay

    def open(self, url: str) -> None:
        target = browsable_url(url)
        popen_kwargs: dict[str, Any] = {}
        if os.name == "nt":
            popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP  # type: ignore[attr-defined]
        else:
            popen_kwargs["start_new_session"] = True

        try:
            subprocess.Popen(
                [sys.executable, "-c", _LAUNCH_SCRIPT, target, str(self.delay)],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **popen_kwargs,
            )
        except OSError as e:
            logger.warning(f"Could not launch a browser for {target}: {e}")
            return
        logger.debug(f"Launching browser for {target}")
