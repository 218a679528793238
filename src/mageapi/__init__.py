"""mageapi -- OAuth 1.0a signed client for the Magento REST API.

This package talks to a Magento admin REST API using integration
credentials (consumer key/secret plus access token/secret). Every request
carries an HMAC-SHA256 OAuth signature, and GET results can be memoised in
a small file-backed cache with per-entry expiry.

Typical usage::

    from mageapi import CacheStore, Credentials, MagentoClient

    credentials = Credentials(
        consumer_key="ck", consumer_secret="cs",
        access_token="at", access_token_secret="ats",
    )
    with MagentoClient(credentials, cache=CacheStore(cache_path="var/cache"),
                       base_url="https://shop.example.com/rest/default") as client:
        result = client.get("/V1/products", {"searchCriteria": {"pageSize": 10}})
        if not result.error:
            print(result.result["total_count"])

Modules:
    auth: OAuth 1.0a request signing.
    cache: Expiring file-backed key/value store.
    client: The HTTP client and response helpers.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from mageapi.cache import CacheStore  # noqa: E402
from mageapi.client import MagentoClient  # noqa: E402
from mageapi.models import ApiResult, Credentials, HTTPMethod  # noqa: E402

__all__ = [
    "ApiResult",
    "CacheStore",
    "Credentials",
    "HTTPMethod",
    "MagentoClient",
    "__version__",
]
