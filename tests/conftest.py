"""Shared test fixtures for mageapi.

Provides isolated config directories, output-state resets, fixed
credentials, a controllable clock, and a deterministic signer. These
fixtures are discovered by pytest and available to every test module.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

from mageapi.auth import OAuth1Signer
from mageapi.models import CacheConfig, Credentials, CredentialSources, Profile
from mageapi.output import OutputFormat, OutputManager, reset_output, set_output


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The manager caches sys.stdout/sys.stderr at creation time; CliRunner
    swaps those streams, so a stale manager would write to closed files.
    The logging handler installed by the CLI callback is bound to the same
    streams and is dropped as well.
    """
    yield
    reset_output()
    logger = logging.getLogger("mageapi")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Credentials, clock, signer
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        consumer_key="ck-123",
        consumer_secret="cs-secret",
        access_token="at-456",
        access_token_secret="ats-secret",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fixed_signer(credentials: Credentials) -> OAuth1Signer:
    """A signer with a frozen clock and an all-zero random source."""
    return OAuth1Signer(
        credentials,
        clock=lambda: 1_700_000_000,
        random_bytes=lambda n: b"\x00" * n,
    )


# ---------------------------------------------------------------------------
# Config isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME / XDG_CACHE_HOME / XDG_DATA_HOME at tmp_path.

    Clears MAGEAPI_* variables, sets NO_COLOR and the MAGENTO_* credential
    variables the default credential sources read, and changes into tmp_path.
    """
    monkeypatch.setattr("mageapi.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["MAGEAPI_PROFILE", "MAGEAPI_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    # diagnostics as plain print() lines
    monkeypatch.setenv("NO_COLOR", "1")

    monkeypatch.setenv("MAGENTO_CONSUMER_KEY", "ck-env")
    monkeypatch.setenv("MAGENTO_CONSUMER_SECRET", "cs-env")
    monkeypatch.setenv("MAGENTO_ACCESS_TOKEN", "at-env")
    monkeypatch.setenv("MAGENTO_ACCESS_TOKEN_SECRET", "ats-env")

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_profile(tmp_path: Path) -> Profile:
    """A profile reading the MAGENTO_* env vars and caching under tmp_path."""
    return Profile(
        name="shop",
        base_url="https://shop.example.com/rest/default",
        credentials=CredentialSources(),
        cache=CacheConfig(path=str(tmp_path / "responses"), name="shop"),
    )


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN, quiet OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
