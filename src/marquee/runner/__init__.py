"""Process lifecycle for a hosted app: single instance, port, daemon, signals."""

from marquee.runner.core import Runner
from marquee.runner.daemon import Daemonizer, ForkDaemonizer, SpawnDaemonizer
from marquee.runner.errors import MarqueeError, PortExhausted, ServerStartupFailure
from marquee.runner.guard import InstanceGuard
from marquee.runner.ports import PortAllocator
from marquee.runner.probe import PortProber
from marquee.runner.server import UvicornServer
from marquee.runner.signals import SignalRelay
from marquee.runner.state import StateStore

__all__ = [
    "Daemonizer",
    "ForkDaemonizer",
    "InstanceGuard",
    "MarqueeError",
    "PortAllocator",
    "PortExhausted",
    "PortProber",
    "Runner",
    "ServerStartupFailure",
    "SignalRelay",
    "SpawnDaemonizer",
    "StateStore",
    "UvicornServer",
]
