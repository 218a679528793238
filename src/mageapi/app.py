"""Typer application and CLI entry point for mageapi.

This module wires the top-level Typer application, registers the built-in
sub-commands (``call``, ``cache``, ``profile``), and sets up output and
logging from the global flags.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~mageapi.exceptions.MageApiError` exits with
its own code; any other exception is written to a crash log under the data
directory.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from mageapi import __version__
from mageapi.commands.cache import cache_app
from mageapi.commands.call import call_command
from mageapi.commands.profile import profile_app
from mageapi.config import get_data_dir
from mageapi.exceptions import MageApiError
from mageapi.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED
from mageapi.output import OutputFormat, OutputManager, error, set_output

app = typer.Typer(
    name="mageapi",
    help="OAuth-signed client for the Magento REST API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"mageapi {__version__}")
        raise typer.Exit()


def configure_logging(output: OutputManager, verbose: bool) -> None:
    """Route the ``mageapi`` logger to stderr through Rich.

    DEBUG with ``--verbose``, WARNING otherwise. Calling it again replaces
    the previously installed handler.
    """
    logger = logging.getLogger("mageapi")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=output.stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Profile name to use."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~mageapi.output.OutputManager`, attaches the
    logging handler, and stores shared options in ``ctx.obj``.
    """
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output, verbose)

    ctx.ensure_object(dict)
    ctx.obj["profile"] = profile
    ctx.obj["no_cache"] = no_cache
    ctx.obj["force"] = force
    ctx.obj["verbose"] = verbose


app.command("call")(call_command)
app.add_typer(cache_app, name="cache", help="Inspect and clean the response cache.")
app.add_typer(profile_app, name="profile", help="Manage store profiles.")


def _on_interrupt(signum: int, frame: Any) -> None:  # noqa: ANN401
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _write_crash_log() -> Path:
    """Dump the traceback being handled, with version and argv, under the data dir."""
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    path = get_data_dir() / f"crash-{stamp}.log"
    header = f"mageapi {__version__}\nargv: {' '.join(sys.argv)}\n\n"
    path.write_text(header + traceback.format_exc(), encoding="utf-8")
    return path


def main() -> None:
    """Console-script entry point.

    Errors that escape a command are reported on stderr: a
    :class:`~mageapi.exceptions.MageApiError` exits with its own code, and
    anything else leaves a crash log behind and exits with 1.
    """
    signal.signal(signal.SIGINT, _on_interrupt)
    try:
        app()
    except MageApiError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        _on_interrupt(signal.SIGINT, None)
    except Exception:
        error(f"Unexpected error. Debug log: {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
