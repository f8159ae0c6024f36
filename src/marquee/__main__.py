"""`marquee` command: serve any ASGI/WSGI app as a single background instance."""

import os
import sys
from pathlib import Path
from typing import Annotated

from typer import Argument, Exit, Option, Typer
from uvicorn.importer import ImportFromStringError, import_from_string

from marquee.cli.run import (
    DebugOption,
    EnvOption,
    ForegroundOption,
    HostOption,
    KillOption,
    NoLaunchOption,
    PortOption,
    RootOption,
    StatusOption,
    execute,
)
from marquee.cli.version import version_callback
from marquee.constants import DEFAULT_ENVIRONMENT, ENVIRONMENT_ENV_VAR
from marquee.utils import console

app = Typer(
    name="marquee",
    help="Run a local web app in the background, one instance per name.",
    add_completion=False,
)


def _default_name(app_path: str) -> str:
    module = app_path.split(":", 1)[0]
    return module.rsplit(".", 1)[-1].replace("_", "-")


@app.command(help="Serve APP (module:attribute) under NAME.")
def serve(
    app_path: Annotated[str, Argument(metavar="APP", help="Import string, e.g. mypkg.web:app")],
    name: Annotated[
        str | None,
        Option("--name", "-n", help="Instance name (default: last module segment)"),
    ] = None,
    app_dir: Annotated[
        Path,
        Option("--app-dir", help="Directory added to sys.path before importing APP"),
    ] = Path("."),
    host: HostOption = None,
    port: PortOption = None,
    environment: EnvOption = None,
    foreground: ForegroundOption = False,
    no_launch: NoLaunchOption = False,
    kill: KillOption = False,
    status: StatusOption = False,
    debug: DebugOption = False,
    root: RootOption = None,
    show_version: Annotated[
        bool,
        Option("--version", help="Show version", is_eager=True, callback=version_callback()),
    ] = False,
) -> None:
    app_name = name or _default_name(app_path)

    hosted_app = None
    if not (kill or status):
        # Import before daemonizing: the daemon's working directory is `/`.
        # The hosted app may read MARQUEE_ENV at module level.
        os.environ[ENVIRONMENT_ENV_VAR] = environment or DEFAULT_ENVIRONMENT
        sys.path.insert(0, str(app_dir.resolve()))
        try:
            hosted_app = import_from_string(app_path)
        except ImportFromStringError as e:
            console.print(f"[red]❌ Could not import {app_path}: {e}[/red]")
            raise Exit(code=1)

    execute(
        hosted_app,
        app_name,
        host=host,
        port=port,
        environment=environment,
        foreground=foreground,
        skip_launch=no_launch,
        kill=kill,
        status=status,
        debug=debug,
        root=root,
    )


if __name__ == "__main__":
    app()
