"""Tests for the shared pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from mageapi.exceptions import InvalidUsageError
from mageapi.models import (
    ApiResult,
    CacheConfig,
    CacheEntry,
    Credentials,
    HTTPMethod,
    Profile,
)


class TestCredentials:
    def test_secrets_hidden_from_repr(self, credentials: Credentials) -> None:
        text = repr(credentials)
        assert "ck-123" in text
        assert "cs-secret" not in text
        assert "ats-secret" not in text

    def test_frozen(self, credentials: Credentials) -> None:
        with pytest.raises(ValidationError):
            credentials.consumer_key = "other"


class TestHTTPMethod:
    @pytest.mark.parametrize("raw", ["get", "GET", " Get "])
    def test_parse_case_insensitive(self, raw: str) -> None:
        assert HTTPMethod.parse(raw) is HTTPMethod.GET

    def test_parse_member(self) -> None:
        assert HTTPMethod.parse(HTTPMethod.DELETE) is HTTPMethod.DELETE

    @pytest.mark.parametrize("raw", ["PATCH", "HEAD", ""])
    def test_parse_rejects(self, raw: str) -> None:
        with pytest.raises(InvalidUsageError) as exc_info:
            HTTPMethod.parse(raw)
        assert exc_info.value.exit_code == 2


class TestCacheEntry:
    def test_zero_expire_always_stale(self) -> None:
        assert CacheEntry(time=100, expire=0, data="1").is_expired(100)

    def test_boundary(self) -> None:
        entry = CacheEntry(time=100, expire=10, data="1")
        assert not entry.is_expired(110)
        assert entry.is_expired(111)

    def test_fractional_now_truncated(self) -> None:
        assert not CacheEntry(time=100, expire=10, data="1").is_expired(110.9)


class TestApiResult:
    def test_dump_round_trip(self) -> None:
        result = ApiResult(error=False, result={"items": [1, 2]})
        assert ApiResult.model_validate(result.model_dump(mode="json")) == result


class TestProfile:
    def test_defaults(self) -> None:
        profile = Profile(name="shop", base_url="https://shop/rest")
        assert profile.cache == CacheConfig()
        assert profile.request.timeout == 30.0
        assert profile.credential_fields()["consumer_secret"] == "env:MAGENTO_CONSUMER_SECRET"

    def test_negative_ttl_rejected(self) -> None:
        with pytest.raises(ValidationError):
            CacheConfig(ttl_seconds=-1)

    def test_unknown_fields_kept(self) -> None:
        profile = Profile.model_validate(
            {"name": "shop", "base_url": "https://shop/rest", "notes": "staging copy"}
        )
        assert profile.model_dump()["notes"] == "staging copy"
