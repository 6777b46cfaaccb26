"""Typer application and CLI entry point for opennow.

This module wires together the top-level Typer application and registers
the built-in commands (``preview``, ``login``, ``providers``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
maps :class:`~opennow.exceptions.OpennowError` to its exit code, and
writes a crash log for anything unexpected.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from opennow import __version__
from opennow.commands.config import config_app
from opennow.commands.login import login_command, preview_command, providers_command
from opennow.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="opennow",
    help="OAuth2 PKCE login helper for OpenNOW.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("preview")(preview_command)
app.command("login")(login_command)
app.command("providers")(providers_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"opennow {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~opennow.output.OutputManager` from the
    CLI flags and routes the ``opennow`` logger to stderr.
    """
    from opennow.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    configure_logging(output)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to the data directory and return its path."""
    from opennow.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point invoked by the ``opennow`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app(args=argv)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from opennow.exceptions import OpennowError
        from opennow.output import error

        if isinstance(exc, OpennowError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
