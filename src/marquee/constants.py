"""Global constants for marquee."""

import os
import signal

WINDOWS = os.name == "nt"

# Port search

DEFAULT_PORT = 5678
MAX_PORT = 65535

# Hosts

DEFAULT_HOST = "localhost" if WINDOWS else "0.0.0.0"
# Wildcard bind addresses are not connectable everywhere; probes and
# browsers are pointed at the loopback equivalent instead.
WILDCARD_HOSTS = {"0.0.0.0": "127.0.0.1", "::": "::1"}

# State directory

DEFAULT_ROOT_DIR = "~/.marquee"
ROOT_DIR_ENV_VAR = "MARQUEE_ROOT"

# Hosted app environment

DEFAULT_ENVIRONMENT = "development"
ENVIRONMENT_ENV_VAR = "MARQUEE_ENV"

# Timeouts (seconds)

PROBE_TIMEOUT = 2.0
BROWSER_LAUNCH_DELAY = 2.0

# Signals: SIGINT on POSIX; Windows consoles only deliver CTRL_BREAK_EVENT
# across process groups, which arrives as SIGBREAK.
if WINDOWS:
    STOP_SIGNAL = signal.SIGBREAK  # type: ignore[attr-defined]
    KILL_SIGNAL = signal.CTRL_BREAK_EVENT  # type: ignore[attr-defined]
else:
    STOP_SIGNAL = signal.SIGINT
    KILL_SIGNAL = signal.SIGINT
