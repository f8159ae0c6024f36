"""Command line entry points for marquee-hosted apps."""

from marquee.cli.run import create_cli, execute, run

__all__ = [
    "create_cli",
    "execute",
    "run",
]
