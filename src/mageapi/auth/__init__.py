"""OAuth 1.0a request signing for mageapi.

The main entry point is :class:`OAuth1Signer`, which turns a method, URL
and query parameters into a signed ``Authorization`` header value. The
module-level helpers (:func:`percent_encode`, :func:`flatten_params`,
:func:`byte_value_ordered_query`, :func:`base_string`) are exposed for
callers that need to reproduce or debug a signature.

Typical usage::

    from mageapi.auth import OAuth1Signer

    signer = OAuth1Signer(credentials)
    headers = {"Authorization": signer.authorization_header("GET", url, params)}
"""

from mageapi.auth.oauth1 import (
    OAuth1Signer,
    base_string,
    build_query_string,
    byte_value_ordered_query,
    flatten_params,
    percent_encode,
)

__all__ = [
    "OAuth1Signer",
    "base_string",
    "build_query_string",
    "byte_value_ordered_query",
    "flatten_params",
    "percent_encode",
]
