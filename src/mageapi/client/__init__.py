"""HTTP client module for mageapi.

Provides :class:`MagentoClient`, a blocking client backed by
:class:`httpx.Client` that signs every request with OAuth 1.0a, caches
successful GET results, and normalises every outcome into an
:class:`~mageapi.models.ApiResult`.

Example::

    from mageapi.client import MagentoClient

    with MagentoClient(credentials, base_url=base_url) as client:
        result = client.get("/V1/store/storeViews")
"""

from mageapi.client.client import MagentoClient, fingerprint

__all__ = ["MagentoClient", "fingerprint"]
