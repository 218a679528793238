"""Canonical Pydantic models shared across all mageapi modules.

The models fall into two groups:

**Runtime models** -- values that flow through a single API call:
    :class:`Credentials`, :class:`HTTPMethod`, :class:`ApiResult`, and
    :class:`CacheEntry` (the on-disk record of the cache store).

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CredentialSources`, :class:`CacheConfig`,
:class:`RequestConfig`, :class:`OutputConfig`, :class:`GlobalConfig`,
and :class:`Profile`.

Profiles never hold secrets. They hold credential *sources* (``env:VAR``,
``file:/path``, ...) that :func:`~mageapi.config.resolve_credential` turns
into a :class:`Credentials` instance at runtime.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from mageapi.exceptions import InvalidUsageError


# --- Runtime models ---


class Credentials(BaseModel):
    """Integration credentials used to sign requests.

    Immutable once built. The secret fields are excluded from ``repr`` so
    that credentials never leak into logs or tracebacks.

    Example::

        Credentials(
            consumer_key="ck",
            consumer_secret="cs",
            access_token="at",
            access_token_secret="ats",
        )
    """

    model_config = ConfigDict(frozen=True)

    consumer_key: str
    consumer_secret: str = Field(repr=False)
    access_token: str
    access_token_secret: str = Field(repr=False)


class HTTPMethod(str, enum.Enum):
    """HTTP methods accepted by :meth:`~mageapi.client.MagentoClient.call`."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, value: str | HTTPMethod) -> HTTPMethod:
        """Normalise *value* to a member, case-insensitively.

        Raises:
            InvalidUsageError: If *value* is not one of GET, POST, PUT, DELETE.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in cls)
            raise InvalidUsageError(
                f"Unsupported HTTP method '{value}' (expected one of {allowed})"
            ) from None


class ApiResult(BaseModel):
    """Uniform outcome of an API call.

    ``error`` is ``True`` for transport failures and for any status other
    than 200. ``result`` holds the decoded JSON body, the raw response text
    when the body is not JSON, or the transport error description.
    """

    error: bool
    result: Any = None


class CacheEntry(BaseModel):
    """One record of the cache file.

    Attributes:
        time: Creation time as integer Unix seconds.
        expire: Lifetime in seconds. ``0`` marks the entry as always expired.
        data: The serialised payload.
    """

    time: int
    expire: int
    data: str

    def is_expired(self, now: float) -> bool:
        """Return ``True`` when the entry is stale at *now*."""
        if self.expire == 0:
            return True
        return int(now) - self.time > self.expire


# --- Configuration models ---


class CredentialSources(BaseModel):
    """Where each credential is read from.

    Every field takes a source descriptor understood by
    :func:`~mageapi.config.resolve_credential`: ``env:VAR``,
    ``file:/path``, ``prompt``, or ``value:literal``.
    """

    consumer_key: str = Field(default="env:MAGENTO_CONSUMER_KEY")
    consumer_secret: str = Field(default="env:MAGENTO_CONSUMER_SECRET")
    access_token: str = Field(default="env:MAGENTO_ACCESS_TOKEN")
    access_token_secret: str = Field(default="env:MAGENTO_ACCESS_TOKEN_SECRET")


class CacheConfig(BaseModel):
    """Response cache settings for a :class:`Profile`."""

    enabled: bool = Field(default=True, description="Cache successful GET results")
    ttl_seconds: int = Field(default=3600, ge=0, description="Entry lifetime; 0 disables reuse")
    name: str = Field(default="default", description="Logical cache name (selects the file)")
    extension: str = Field(default=".cache", description="Cache file extension")
    path: Optional[str] = Field(
        default=None, description="Cache directory (defaults to the XDG cache dir)"
    )


class RequestConfig(BaseModel):
    """HTTP settings handed to the transport."""

    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/mageapi/config.json``."""

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
    output: OutputConfig = Field(default_factory=OutputConfig)


class Profile(BaseModel):
    """Per-store profile stored as JSON under the ``profiles/`` config directory.

    Example::

        Profile(
            name="staging",
            base_url="https://staging.example.com/rest/default",
            credentials=CredentialSources(consumer_key="env:STAGING_CK", ...),
        )
    """

    model_config = ConfigDict(extra="allow")

    name: str
    base_url: str = Field(description="REST root, e.g. https://shop/rest/default")
    credentials: CredentialSources = Field(default_factory=CredentialSources)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)

    def credential_fields(self) -> dict[str, Any]:
        """Return the credential sources keyed by :class:`Credentials` field name."""
        return self.credentials.model_dump()
