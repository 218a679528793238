"""Response helpers -- body extraction and CLI rendering of results.

:func:`extract_response_data` turns an :class:`httpx.Response` into the
``result`` value of an :class:`~mageapi.models.ApiResult`, and
:func:`format_api_result` renders an ``ApiResult`` through the global
output manager (status to stderr, data to stdout).
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from mageapi.models import ApiResult
from mageapi.output import get_output


def extract_response_data(response: httpx.Response) -> Any:
    """Return the decoded JSON body, or the raw text when it is not JSON.

    An empty body yields an empty string.
    """
    try:
        return json.loads(response.content)
    except (ValueError, UnicodeDecodeError):
        return response.text


def format_api_result(result: ApiResult) -> None:
    """Print *result*: a one-line status to stderr, the payload to stdout."""
    output = get_output()
    if result.error:
        output.error("Request failed")
    else:
        output.success("OK")

    if result.result is not None and result.result != "":
        output.format_response(result.result)
