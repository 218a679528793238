"""Synchronous Magento REST client with OAuth signing and GET caching.

This module provides :class:`MagentoClient`. It wraps :class:`httpx.Client`
and layers on:

- **Request signing** -- every request carries an
  ``Authorization: OAuth ...`` header from
  :class:`~mageapi.auth.oauth1.OAuth1Signer`.
- **Response caching** -- successful GET results are stored in an optional
  :class:`~mageapi.cache.CacheStore` under a SHA-1 fingerprint of the call.
- **Result normalisation** -- every call returns an
  :class:`~mageapi.models.ApiResult`. Transport failures and non-200
  statuses come back as ``error=True`` instead of raising.

There is no retry and no timeout beyond the one handed to httpx; a timeout
surfaces as a transport failure.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from mageapi.auth.oauth1 import OAuth1Signer, build_query_string
from mageapi.cache import CacheStore
from mageapi.client.response import extract_response_data
from mageapi.config import load_credentials
from mageapi.models import ApiResult, Credentials, HTTPMethod, Profile

logger = logging.getLogger(__name__)


def fingerprint(method: str, url: str, body: Any, params: Any) -> str:
    """Return a stable SHA-1 over the call's method, URL, body and params.

    Mapping keys are sorted so that insertion order does not matter.
    """
    canonical = json.dumps(
        [method, url, body, params],
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()


class MagentoClient:
    """OAuth-signed HTTP client for a Magento REST API.

    Must be used as a context manager so that the underlying transport is
    opened and closed.

    Args:
        credentials: Integration credentials used to sign requests.
        cache: Optional store for successful GET results.
        base_url: Prefix for relative URLs, e.g.
            ``https://shop.example.com/rest/default``.
        timeout: Transport timeout in seconds.
        verify_ssl: Verify TLS certificates.
        signer: Signer override (tests inject one with a fixed clock and nonce).
        transport: httpx transport override (e.g. :class:`httpx.MockTransport`).

    Example::

        with MagentoClient(creds, base_url="https://shop/rest/default") as client:
            result = client.get("/V1/orders", {"searchCriteria": {"pageSize": 5}})
    """

    def __init__(
        self,
        credentials: Credentials,
        cache: Optional[CacheStore] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        verify_ssl: bool = True,
        signer: Optional[OAuth1Signer] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._signer = signer or OAuth1Signer(credentials)
        self._cache = cache
        self._base_url = (base_url or "").rstrip("/")
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        use_cache: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> MagentoClient:
        """Build a client from a stored profile.

        Credentials are resolved from the profile's sources, and the cache
        is opened from its ``cache`` section unless disabled.
        """
        cache: Optional[CacheStore] = None
        if use_cache and profile.cache.enabled:
            cache = CacheStore.from_config(profile.cache)
        return cls(
            load_credentials(profile),
            cache=cache,
            base_url=profile.base_url,
            timeout=profile.request.timeout,
            verify_ssl=profile.request.verify_ssl,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> MagentoClient:
        self._client = httpx.Client(
            timeout=self._timeout,
            verify=self._verify_ssl,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def call(
        self,
        method: str | HTTPMethod,
        url: str,
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> ApiResult:
        """Sign and send one request, consulting the cache for GET.

        Args:
            method: GET, POST, PUT or DELETE (any case).
            url: Absolute URL, or a path appended to ``base_url``.
            body: JSON-serialisable payload; sent only when non-empty.
            params: Query parameters; nested mappings use bracket notation.

        Returns:
            An :class:`~mageapi.models.ApiResult`. ``error`` is ``True`` when
            no response was obtained or the status was not 200.

        Raises:
            InvalidUsageError: On an unsupported method.
            SigningError: If a query parameter collides with an OAuth field.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        verb = HTTPMethod.parse(method)
        target = self._resolve_url(url)

        key: Optional[str] = None
        if verb is HTTPMethod.GET and self._cache is not None:
            key = fingerprint(verb.value, target, body, params)
            cached = self._cache.get(key)
            if cached is not None:
                try:
                    hit = ApiResult.model_validate(cached)
                except ValidationError:
                    logger.warning("Cached result for %s %s is malformed; refetching", verb.value, target)
                    self._cache.delete(key)
                else:
                    logger.debug("Cache hit: %s %s", verb.value, target)
                    return hit

        headers = {
            "Authorization": self._signer.authorization_header(verb, target, params),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        query = build_query_string(params)
        wire_url = f"{target}?{query}" if query else target
        content = json.dumps(body).encode("utf-8") if body else None

        logger.debug("%s %s", verb.value, wire_url)
        try:
            response = self._client.request(
                verb.value, wire_url, headers=headers, content=content
            )
        except httpx.HTTPError as exc:
            logger.warning("Transport failure for %s %s: %s", verb.value, target, exc)
            return ApiResult(error=True, result=str(exc) or exc.__class__.__name__)

        result = ApiResult(
            error=response.status_code != 200,
            result=extract_response_data(response),
        )
        if result.error:
            logger.debug("HTTP %s for %s %s", response.status_code, verb.value, target)
        elif key is not None and self._cache is not None:
            self._cache.set(key, result.model_dump(mode="json"))
        return result

    def get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> ApiResult:
        """Send a GET request with query *params*."""
        return self.call(HTTPMethod.GET, url, params=params)

    def delete(self, url: str, params: Optional[Mapping[str, Any]] = None) -> ApiResult:
        """Send a DELETE request with query *params*."""
        return self.call(HTTPMethod.DELETE, url, params=params)

    def post(self, url: str, body: Any = None) -> ApiResult:
        """Send a POST request with a JSON *body*."""
        return self.call(HTTPMethod.POST, url, body=body)

    def put(self, url: str, body: Any = None) -> ApiResult:
        """Send a PUT request with a JSON *body*."""
        return self.call(HTTPMethod.PUT, url, body=body)

    def get_cache(self) -> Optional[CacheStore]:
        """Return the configured cache store, if any."""
        return self._cache

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _resolve_url(self, url: str) -> str:
        if "://" in url or not self._base_url:
            return url
        return f"{self._base_url}/{url.lstrip('/')}"
