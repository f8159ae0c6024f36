"""Errors raised by the runner.

Recoverable conditions (a stale state file, an occupied explicit port, a
missing PID on kill, a duplicate instance) are logged where they happen and
never raised. Only the fatal ones live here.
"""

from __future__ import annotations


class MarqueeError(Exception):
    """Base class for runner errors."""


class PortExhausted(MarqueeError):
    """No free port between the base port and the search ceiling."""

    def __init__(self, host: str, start: int, ceiling: int):
        self.host: str = host
        self.start: int = start
        self.ceiling: int = ceiling
        super().__init__(f"No free port on {host} in range {start}-{ceiling}")


class ServerStartupFailure(MarqueeError):
    """The server capability raised while entering the running phase."""

    def __init__(self, app_name: str, cause: BaseException):
        self.app_name: str = app_name
        self.cause: BaseException = cause
        super().__init__(f"There was an error starting {app_name}: {cause}")
