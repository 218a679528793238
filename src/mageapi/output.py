"""Terminal output for mageapi: data on stdout, diagnostics on stderr.

API payloads, tables and JSON go to stdout so they can be piped; every
status line, warning, error and hint goes to stderr. The format follows the
``--json`` / ``--plain`` flags, or the terminal when neither is given (Rich
on an interactive colour TTY, plain text otherwise). ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` all switch colour off.

Magento search endpoints answer with ``{"items": [...], "total_count": N,
"search_criteria": {...}}``. Outside JSON mode the ``items`` are printed as
a table rather than a nested dump.

:class:`OutputManager` is built in :func:`~mageapi.app.main_callback` and
installed with :func:`set_output`; the module-level helpers forward to it.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# level -> (plain prefix, Rich style, shown when quiet)
_LEVELS: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", False),
    "success": ("", "green", False),
    "warning": ("Warning: ", "yellow", True),
    "error": ("Error: ", "bold red", True),
    "suggest": ("→ ", "dim", False),
    "debug": ("[debug] ", "dim", False),
}


def search_result_items(data: Any) -> Optional[list[dict[str, Any]]]:
    """Return the ``items`` of a Magento search result, or ``None`` for any other payload."""
    if not isinstance(data, dict) or "total_count" not in data:
        return None
    items = data.get("items")
    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        return None
    return items


def _columns(items: list[dict[str, Any]]) -> list[str]:
    columns: list[str] = []
    for item in items:
        for key in item:
            if key not in columns:
                columns.append(key)
    return columns


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


class OutputManager:
    """Renders data and diagnostics for one CLI invocation.

    Args:
        format: Requested format; ``AUTO`` is resolved against the terminal.
        no_color: Turn off colour and markup.
        quiet: Drop info, success and suggestion lines.
        verbose: Show debug lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        if format == OutputFormat.AUTO:
            interactive = _is_tty() and not self._no_color
            format = OutputFormat.RICH if interactive else OutputFormat.PLAIN
        self._format = format
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        """Console bound to stderr; the CLI attaches its logging handler here."""
        return self._stderr

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Print an API payload.

        JSON mode re-emits it as indented JSON (a string that is not JSON
        passes through untouched). Search results become a table in the
        other modes; anything else is dumped as highlighted JSON (Rich) or
        ``key<TAB>value`` lines (plain).
        """
        if self._format == OutputFormat.JSON:
            self.print_data(_as_json_text(data))
            return

        items = search_result_items(data)
        if items is not None:
            columns = _columns(items)
            rows = [[_cell(item.get(c)) for c in columns] for item in items]
            self.print_table(columns, rows, title=f"{data['total_count']} total")
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self.print_data(line)
        elif isinstance(data, (dict, list)):
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data), markup=False)

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print rows as a Rich table, a JSON array of objects, or TSV with a header line."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return
        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        self._diagnostic("info", message)

    def success(self, message: str) -> None:
        self._diagnostic("success", message)

    def warning(self, message: str) -> None:
        self._diagnostic("warning", message)

    def error(self, message: str) -> None:
        self._diagnostic("error", message)

    def suggest(self, message: str) -> None:
        self._diagnostic("suggest", message)

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic("debug", message)

    def _diagnostic(self, level: str, message: str) -> None:
        prefix, style, keep_when_quiet = _LEVELS[level]
        if self._quiet and not keep_when_quiet:
            return
        line = f"{prefix}{message}"
        if self._no_color:
            print(line, file=sys.stderr, flush=True)
        elif style:
            self._stderr.print(line, style=style, markup=False, highlight=False)
        else:
            self._stderr.print(line, markup=False, highlight=False)


def _as_json_text(data: Any) -> str:
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except ValueError:
            return data
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{_cell(value)}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(_cell(v) for v in item.values()) if isinstance(item, dict) else _cell(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
