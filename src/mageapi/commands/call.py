"""The ``call`` command -- send one signed request to the active profile's store.

Example::

    mageapi call GET /V1/products -P 'searchCriteria[pageSize]=5'
    mageapi call POST /V1/categories --body '{"category": {"name": "Sale"}}'
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from mageapi.client import MagentoClient
from mageapi.client.response import format_api_result
from mageapi.commands import fail
from mageapi.config import resolve_profile
from mageapi.exceptions import InvalidUsageError, MageApiError
from mageapi.exit_codes import EXIT_REQUEST_FAILED
from mageapi.models import HTTPMethod
from mageapi.output import debug


def parse_params(raw: list[str]) -> dict[str, Any]:
    """Turn ``name=value`` strings into a parameter mapping.

    A name given more than once becomes a list, sent as ``name[0]``, ``name[1]``, ...

    Raises:
        InvalidUsageError: If an item has no ``=``.
    """
    params: dict[str, Any] = {}
    for item in raw:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise InvalidUsageError(f"Invalid parameter '{item}' (expected name=value)")
        if name not in params:
            params[name] = value
        elif isinstance(params[name], list):
            params[name].append(value)
        else:
            params[name] = [params[name], value]
    return params


def parse_body(body: Optional[str]) -> Any:
    """Decode the ``--body`` option as JSON.

    Raises:
        InvalidUsageError: If the text is not valid JSON.
    """
    if body is None:
        return None
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"--body is not valid JSON: {exc}") from exc


def call_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method: GET, POST, PUT or DELETE."),
    url: str = typer.Argument(help="Path relative to the profile's base URL, or an absolute URL."),
    param: list[str] = typer.Option(
        [], "--param", "-P", help="Query parameter as name=value (repeatable)."
    ),
    body: Optional[str] = typer.Option(None, "--body", "-d", help="JSON request body."),
) -> None:
    """Send one OAuth-signed request and print the result.

    Exits with code 5 when the API answers with anything but HTTP 200 or
    the request could not be sent.
    """
    obj = ctx.obj or {}
    try:
        verb = HTTPMethod.parse(method)
        params = parse_params(param)
        payload = parse_body(body)
        profile = resolve_profile(obj.get("profile"))
        debug(f"Using profile: {profile.name}")
        client = MagentoClient.from_profile(profile, use_cache=not obj.get("no_cache", False))
        with client:
            result = client.call(verb, url, body=payload, params=params or None)
    except MageApiError as exc:
        fail(exc)

    format_api_result(result)
    if result.error:
        raise typer.Exit(code=EXIT_REQUEST_FAILED)
