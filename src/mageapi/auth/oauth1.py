"""OAuth 1.0a request signing with HMAC-SHA256.

This module builds the ``Authorization`` header Magento expects from an
integration: the six protocol fields (consumer key, nonce, signature
method, timestamp, token, version) are merged with the request's query
parameters, sorted, folded into the canonical base string, and signed
with ``HMAC-SHA256(consumer_secret & token_secret)``.

Everything here is pure computation. The only sources of variation are
the clock and the random byte source handed to :class:`OAuth1Signer`,
which tests replace with fixed values.

Example::

    signer = OAuth1Signer(credentials)
    header = signer.authorization_header(
        "GET", "https://shop.example.com/rest/V1/products",
        {"searchCriteria": {"pageSize": 10}},
    )

See Also:
    :class:`~mageapi.client.MagentoClient` -- attaches the header to
    every outgoing request.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import os
import random
import re
import time
from collections.abc import Callable, Mapping
from typing import Any, Optional, Union
from urllib.parse import quote

from mageapi.exceptions import SigningError
from mageapi.models import Credentials, HTTPMethod

logger = logging.getLogger(__name__)

SIGNATURE_METHOD = "HMAC-SHA256"
OAUTH_VERSION = "1.0"
NONCE_BYTES = 16

RESERVED_PARAMETERS = frozenset(
    {
        "oauth_consumer_key",
        "oauth_nonce",
        "oauth_signature_method",
        "oauth_timestamp",
        "oauth_token",
        "oauth_version",
        "oauth_signature",
    }
)
"""Protocol field names a caller may not use as query parameters."""

ParamValue = Union[str, list[str]]

_DIGITS = re.compile(r"(\d+)")


# ------------------------------------------------------------------ #
# Encoding helpers
# ------------------------------------------------------------------ #


def percent_encode(value: Any) -> str:
    """Percent-encode *value* per RFC 3986.

    Only the unreserved characters ``A-Z a-z 0-9 - . _ ~`` are left as-is;
    in particular ``~`` is never turned into ``%7E``.
    """
    return quote(str(value), safe="~")


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _flatten_nested(prefix: str, value: Any, out: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            _flatten_nested(f"{prefix}[{key}]", item, out)
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _flatten_nested(f"{prefix}[{index}]", item, out)
    else:
        out.append((prefix, _scalar(value)))


def flatten_params(params: Optional[Mapping[str, Any]]) -> list[tuple[str, str]]:
    """Flatten query parameters into ``(name, value)`` string pairs.

    Mappings and lists use bracket notation at every level, the way
    Magento's ``searchCriteria`` parameters are written::

        {"searchCriteria": {"filter_groups": [{"filters": [{"field": "sku"}]}]}}
        -> [("searchCriteria[filter_groups][0][filters][0][field]", "sku")]

        {"ids": ["1", "2"]} -> [("ids[0]", "1"), ("ids[1]", "2")]

    ``None`` values are left out entirely.
    """
    pairs: list[tuple[str, str]] = []
    if not params:
        return pairs
    for name, value in params.items():
        _flatten_nested(str(name), value, pairs)
    return pairs


def build_query_string(params: Optional[Mapping[str, Any]]) -> str:
    """Render *params* as a percent-encoded query string (without ``?``)."""
    return "&".join(
        f"{percent_encode(name)}={percent_encode(value)}"
        for name, value in flatten_params(params)
    )


# ------------------------------------------------------------------ #
# Canonical ordering
# ------------------------------------------------------------------ #


def natural_key(value: str) -> tuple[list[Union[int, str]], str]:
    """Sort key comparing digit runs numerically (``p2`` before ``p10``).

    The raw string is the tie-breaker, so ``"01"`` and ``"1"`` still have
    a stable byte-wise order.
    """
    parts: list[Union[int, str]] = [
        int(chunk) if index % 2 else chunk
        for index, chunk in enumerate(_DIGITS.split(value))
    ]
    return parts, value


def byte_value_ordered_query(params: Mapping[str, ParamValue]) -> str:
    """Join *params* as ``key=value`` pairs in canonical order.

    Names are sorted with :func:`natural_key`. A name holding a list of
    values is emitted once per value, values sorted the same way.
    """
    pieces: list[str] = []
    for name in sorted(params, key=natural_key):
        value = params[name]
        if isinstance(value, list):
            for item in sorted(value, key=natural_key):
                pieces.append(f"{name}={item}")
        else:
            pieces.append(f"{name}={value}")
    return "&".join(pieces)


def base_string(method: str, url: str, params: Mapping[str, ParamValue]) -> str:
    """Build the canonical signature base string ``METHOD&url&params``."""
    return "&".join(
        [method, percent_encode(url), percent_encode(byte_value_ordered_query(params))]
    )


def hmac_sha256_signature(base: str, consumer_secret: str, token_secret: str) -> str:
    """Return ``base64(HMAC-SHA256(base, consumer_secret & token_secret))``.

    The secrets are joined as-is, without percent-encoding, which is what
    Magento's verifier reproduces.
    """
    key = f"{consumer_secret}&{token_secret}".encode("utf-8")
    digest = hmac.new(key, base.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


# ------------------------------------------------------------------ #
# Signer
# ------------------------------------------------------------------ #


class OAuth1Signer:
    """Produce OAuth 1.0a ``Authorization`` header values for one set of credentials.

    Args:
        credentials: Integration credentials.
        clock: Returns the current Unix time in seconds.
        random_bytes: Returns *n* cryptographically secure random bytes.

    Example::

        signer = OAuth1Signer(creds, clock=lambda: 1700000000,
                              random_bytes=lambda n: b"\\x00" * n)
        value = signer.sign("GET", "https://shop/rest/V1/store/storeViews")
    """

    def __init__(
        self,
        credentials: Credentials,
        clock: Callable[[], float] = time.time,
        random_bytes: Callable[[int], bytes] = os.urandom,
    ) -> None:
        self._credentials = credentials
        self._clock = clock
        self._random_bytes = random_bytes

    def nonce(self) -> str:
        """Return a fresh hex nonce.

        Falls back to an md5 of time, PID and :func:`random.random` when the
        secure source is unavailable, and logs a warning since that weakens
        replay protection.
        """
        try:
            return self._random_bytes(NONCE_BYTES).hex()
        except (NotImplementedError, OSError) as exc:
            logger.warning(
                "Secure random source unavailable (%s); using a weaker pseudo-random nonce",
                exc,
            )
            seed = f"{time.time_ns()}{os.getpid()}{random.random()}"
            return hashlib.md5(seed.encode("ascii")).hexdigest()

    def oauth_parameters(
        self, params: Optional[Mapping[str, Any]] = None
    ) -> dict[str, ParamValue]:
        """Build the unsigned parameter set: protocol fields plus encoded query parameters.

        Raises:
            SigningError: If a query parameter is named like a protocol field.
        """
        oauth: dict[str, ParamValue] = {
            "oauth_consumer_key": self._credentials.consumer_key,
            "oauth_nonce": self.nonce(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(int(self._clock())),
            "oauth_token": self._credentials.access_token,
            "oauth_version": OAUTH_VERSION,
        }
        for name, value in flatten_params(params):
            if name in RESERVED_PARAMETERS:
                raise SigningError(f"Query parameter '{name}' collides with an OAuth protocol field")
            key = percent_encode(name)
            encoded = percent_encode(value)
            existing = oauth.get(key)
            if existing is None:
                oauth[key] = encoded
            elif isinstance(existing, list):
                existing.append(encoded)
            else:
                oauth[key] = [existing, encoded]
        return oauth

    def signature(self, method: str, url: str, oauth: Mapping[str, ParamValue]) -> str:
        """Sign an already-built parameter set."""
        base = base_string(method, url, oauth)
        return hmac_sha256_signature(
            base,
            self._credentials.consumer_secret,
            self._credentials.access_token_secret,
        )

    def sign(
        self,
        method: str | HTTPMethod,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return the header value (without the ``OAuth`` prefix) for one request.

        Args:
            method: HTTP method, any case.
            url: Absolute request URL without its query string.
            params: Query parameters that will be sent with the request.
        """
        verb = HTTPMethod.parse(method).value
        oauth = self.oauth_parameters(params)
        oauth["oauth_signature"] = self.signature(verb, url, oauth)
        return _header_value(oauth)

    def authorization_header(
        self,
        method: str | HTTPMethod,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return the complete ``Authorization`` header value, ``OAuth`` prefix included."""
        return f"OAuth {self.sign(method, url, params)}"


def _header_value(oauth: Mapping[str, ParamValue]) -> str:
    pairs: list[str] = []
    for name, value in oauth.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            pairs.append(f'{name}="{percent_encode(item)}"')
    return ",".join(pairs)
