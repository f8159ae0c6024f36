"""Logging for the runner: one named logger per lifecycle component."""

from __future__ import annotations

import logging
from enum import Enum

from marquee.utils import PrefixedLogHandler

ROOT_LOGGER_NAME = "marquee"


class RunnerLogComponent(str, Enum):
    """Where a log originated (used for fine-grained filtering)."""

    CORE = "core"
    STATE = "state"
    PROBE = "probe"
    GUARD = "guard"
    PORTS = "ports"
    DAEMON = "daemon"
    SIGNALS = "signals"
    SERVER = "server"
    BROWSER = "browser"


def get_logger(component: RunnerLogComponent) -> logging.Logger:
    """Get the logger for a runner component (do not call stdlib logging directly)."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.runner.{component.value}")


def configure_logging(app_name: str, *, debug: bool = False) -> None:
    """Send marquee and uvicorn logs to the console, prefixed with the app name.

    Safe to call more than once; handlers are replaced, not stacked.
    """
    level = logging.DEBUG if debug else logging.INFO

    for name in (ROOT_LOGGER_NAME, "uvicorn", "uvicorn.error", "uvicorn.access"):
        logger = logging.getLogger(name)
        logger.setLevel(level if name == ROOT_LOGGER_NAME else logging.INFO)
        logger.handlers.clear()
        handler = PrefixedLogHandler(prefix=app_name, color="bright_blue", width=12)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
