"""Built-in CLI sub-commands for mageapi.

* :mod:`~mageapi.commands.call` -- send one signed request.
* :mod:`~mageapi.commands.cache` -- inspect and clean the response cache.
* :mod:`~mageapi.commands.profile` -- manage store profiles.

``call`` is a plain callback registered on the root app; ``cache`` and
``profile`` export :class:`typer.Typer` sub-applications.
"""

from __future__ import annotations

from typing import NoReturn

import typer

from mageapi.exceptions import MageApiError
from mageapi.output import error


def fail(exc: MageApiError) -> NoReturn:
    """Report *exc* on stderr and exit with its code."""
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)
