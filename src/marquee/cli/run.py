"""Command line for a hosted app: start, kill, status."""

from pathlib import Path
from typing import Annotated, Any, Callable

from pydantic import ValidationError
from typer import Exit, Option, Typer

from marquee.cli.version import version_callback
from marquee.constants import DEFAULT_ENVIRONMENT, DEFAULT_HOST, DEFAULT_PORT
from marquee.models import RunConfiguration
from marquee.runner.core import Runner
from marquee.runner.logging import configure_logging
from marquee.utils import console

RunnerFactory = Callable[..., Runner]

HostOption = Annotated[
    str | None, Option("--host", "-o", help=f"listen on HOST (default: {DEFAULT_HOST})")
]
PortOption = Annotated[
    int | None,
    Option(
        "--port",
        "-p",
        min=1,
        max=65535,
        help=f"use PORT (default: first free port from {DEFAULT_PORT})",
    ),
]
EnvOption = Annotated[
    str | None,
    Option(
        "--env",
        "-e",
        help=f"use ENVIRONMENT for defaults (default: {DEFAULT_ENVIRONMENT})",
    ),
]
ForegroundOption = Annotated[
    bool, Option("--foreground", "-F", help="don't daemonize, run in the foreground")
]
NoLaunchOption = Annotated[
    bool, Option("--no-launch", "-L", help="don't launch the browser")
]
KillOption = Annotated[
    bool, Option("--kill", "-K", help="kill the running process and exit")
]
StatusOption = Annotated[
    bool,
    Option("--status", "-S", help="display the current running PID and URL then quit"),
]
DebugOption = Annotated[
    bool, Option("--debug", "-d", help="raise the log level to debug (default: info)")
]
RootOption = Annotated[
    Path | None,
    Option(
        "--root",
        help="directory holding per-app state (default: $MARQUEE_ROOT or ~/.marquee)",
    ),
]


def execute(
    app: Any,
    app_name: str,
    *,
    host: str | None = None,
    port: int | None = None,
    environment: str | None = None,
    foreground: bool = False,
    skip_launch: bool = False,
    kill: bool = False,
    status: bool = False,
    debug: bool = False,
    root: Path | None = None,
    runner_factory: RunnerFactory = Runner,
) -> None:
    """Run one CLI invocation against the runner and translate the outcome.

    Raises:
        Exit: With code 1 when the options are invalid or startup failed.
    """
    configure_logging(app_name, debug=debug)

    default_config = RunConfiguration()
    try:
        config = RunConfiguration(
            host=host if host is not None else default_config.host,
            port=port,
            environment=environment if environment is not None else default_config.environment,
            foreground=foreground,
            skip_launch=skip_launch,
            debug=debug,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]❌ Invalid {field}: {error['msg']}[/red]")
        raise Exit(code=1)
    runner = runner_factory(app, app_name, config, root=root)

    if kill:
        runner.kill()
        return
    if status:
        runner.status()
        return

    outcome = runner.start()
    if outcome.exit_code != 0:
        raise Exit(code=outcome.exit_code)


def create_cli(
    app: Any,
    app_name: str,
    version: str | None = None,
    *,
    runner_factory: RunnerFactory = Runner,
) -> Typer:
    """Build the command line for a hosted app.

    Args:
        app: ASGI/WSGI app (or "module:attr" import string) to serve
        app_name: Name the app's state directory and log lines are keyed by
        version: App version shown by --version
        runner_factory: Runner constructor (tests inject collaborators here)
    """
    cli = Typer(
        name=app_name,
        help=f"Run {app_name} as a single background instance.",
        add_completion=False,
    )

    @cli.command(help=f"Start {app_name}, or control a running instance.")
    def main(
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
            Option(
                "--version",
                help="Show version",
                is_eager=True,
                callback=version_callback(app_name, version),
            ),
        ] = False,
    ) -> None:
        execute(
            app,
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
            runner_factory=runner_factory,
        )

    return cli


def run(app: Any, app_name: str, version: str | None = None, args: list[str] | None = None) -> None:
    """Parse `args` (default: sys.argv) and run `app` under `app_name`."""
    create_cli(app, app_name, version)(args=args)
