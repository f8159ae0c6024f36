import logging
import time
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from typing_extensions import override

# Configure console to handle encoding errors gracefully on Windows.
# soft_wrap keeps long log lines intact once stdout is redirected to a log file.
console = Console(legacy_windows=False, soft_wrap=True)


def ensure_dir(path: Path) -> None:
    """Create directory if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)


def format_timestamp(created: float | None = None) -> str:
    """Format a unix timestamp as local time with milliseconds."""
    current_time = created if created is not None else time.time()
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(current_time))
    milliseconds = int((current_time % 1) * 1000)
    return f"{timestamp}.{milliseconds:03d}"


def print_with_prefix(
    prefix: str,
    text: str,
    color: str,
    width: int = 10,
    created: float | None = None,
):
    """Print text with a colored prefix.

    Args:
        prefix: The prefix text to display
        text: The main text to display
        color: The color for the prefix
        width: The width to pad the prefix to (default: 10)
        created: Timestamp to show instead of the current time
    """
    timestamp_with_ms = format_timestamp(created)

    escaped_prefix = escape(f"[{prefix}]")
    padded_prefix = escaped_prefix.ljust(width)

    # Handle multi-line text by adding prefix to each line
    for line in text.split("\n"):
        console.print(
            f"[dim]{timestamp_with_ms}[/dim] | [{color}]{padded_prefix}[/] | {escape(line)}"
        )


class PrefixedLogHandler(logging.Handler):
    """A logging handler that uses print_with_prefix to output log messages."""

    def __init__(self, prefix: str, color: str, width: int = 10):
        super().__init__()
        self.prefix: str = prefix
        self.color: str = color
        self.width: int = width

    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            # Determine color based on log level
            color = self.color
            if record.levelno >= logging.ERROR:
                color = "red"
            elif record.levelno >= logging.WARNING:
                color = "yellow"

            print_with_prefix(
                self.prefix, msg, color, width=self.width, created=record.created
            )
        except Exception:
            self.handleError(record)
