"""Profile commands -- create, inspect, select and delete store profiles.

A profile stores a store's REST base URL, where to read each credential
from, and cache/request settings. Secrets themselves are never written to
the profile; only their sources (``env:VAR``, ``file:/path``, ...).
"""

from __future__ import annotations

from typing import Optional

import typer

from mageapi.commands import fail
from mageapi.config import (
    delete_profile,
    list_profiles,
    load_global_config,
    load_profile,
    profile_exists,
    save_global_config,
    save_profile,
)
from mageapi.exceptions import MageApiError
from mageapi.models import CacheConfig, CredentialSources, Profile, RequestConfig
from mageapi.output import error, format_response, info, print_table, success, suggest

profile_app = typer.Typer(no_args_is_help=True)

_DEFAULTS = CredentialSources()


@profile_app.command("add")
def profile_add(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    base_url: str = typer.Option(
        ..., "--base-url", help="REST root, e.g. https://shop.example.com/rest/default."
    ),
    consumer_key_source: str = typer.Option(_DEFAULTS.consumer_key, "--consumer-key-source"),
    consumer_secret_source: str = typer.Option(
        _DEFAULTS.consumer_secret, "--consumer-secret-source"
    ),
    access_token_source: str = typer.Option(_DEFAULTS.access_token, "--access-token-source"),
    access_token_secret_source: str = typer.Option(
        _DEFAULTS.access_token_secret, "--access-token-secret-source"
    ),
    cache_ttl: int = typer.Option(3600, "--cache-ttl", min=0, help="Cache lifetime in seconds."),
    cache_name: Optional[str] = typer.Option(
        None, "--cache-name", help="Logical cache name (defaults to the profile name)."
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the response cache."),
    timeout: float = typer.Option(30.0, "--timeout", help="Request timeout in seconds."),
) -> None:
    """Create a profile. Overwriting an existing one requires ``--force``."""
    force = (ctx.obj or {}).get("force", False)
    try:
        exists = profile_exists(name)
    except MageApiError as exc:
        fail(exc)
    if exists and not force:
        error(f"Profile '{name}' already exists (use --force to overwrite).")
        raise typer.Exit(code=2)

    profile = Profile(
        name=name,
        base_url=base_url.rstrip("/"),
        credentials=CredentialSources(
            consumer_key=consumer_key_source,
            consumer_secret=consumer_secret_source,
            access_token=access_token_source,
            access_token_secret=access_token_secret_source,
        ),
        cache=CacheConfig(enabled=not no_cache, ttl_seconds=cache_ttl, name=cache_name or name),
        request=RequestConfig(timeout=timeout),
    )
    save_profile(profile)
    success(f"Profile '{name}' saved.")
    suggest(f"mageapi --profile {name} call GET /V1/store/storeViews")


@profile_app.command("list")
def profile_list() -> None:
    """List stored profiles; the default one is marked."""
    names = list_profiles()
    if not names:
        info("No profiles yet.")
        suggest("mageapi profile add NAME --base-url URL")
        return
    default = load_global_config().default_profile
    rows = [[n, "*" if n == default else ""] for n in names]
    print_table(["profile", "default"], rows, title="Profiles")


@profile_app.command("show")
def profile_show(name: str = typer.Argument(help="Profile name.")) -> None:
    """Print a profile as stored on disk."""
    try:
        profile = load_profile(name)
    except MageApiError as exc:
        fail(exc)
    format_response(profile.model_dump(mode="json"))


@profile_app.command("use")
def profile_use(name: str = typer.Argument(help="Profile name.")) -> None:
    """Make *name* the default profile."""
    try:
        load_profile(name)
        config = load_global_config()
    except MageApiError as exc:
        fail(exc)
    config.default_profile = name
    save_global_config(config)
    success(f"Default profile set to '{name}'.")


@profile_app.command("remove")
def profile_remove(name: str = typer.Argument(help="Profile name.")) -> None:
    """Delete a profile; clears the default if it pointed at it."""
    try:
        delete_profile(name)
    except MageApiError as exc:
        fail(exc)
    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)
    success(f"Profile '{name}' removed.")
