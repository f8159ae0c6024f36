"""`--version` option shared by marquee CLIs."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as package_version
from typing import Callable

from typer import Exit

from marquee import __version__
from marquee.utils import console


def version_lines(app_name: str | None = None, app_version: str | None = None) -> list[str]:
    lines: list[str] = []
    if app_name and app_version:
        lines.append(f"{app_name} {app_version}")
    try:
        lines.append(f"uvicorn {package_version('uvicorn')}")
    except PackageNotFoundError:
        pass
    lines.append(f"marquee {__version__}")
    return lines


def version_callback(
    app_name: str | None = None, app_version: str | None = None
) -> Callable[[bool], None]:
    """Build an eager option callback that prints versions and exits."""

    def _callback(value: bool) -> None:
        if not value:
            return
        for line in version_lines(app_name, app_version):
            console.print(line, highlight=False)
        raise Exit()

    return _callback
