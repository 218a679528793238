"""Cache commands -- inspect and clean the active profile's response cache.

Provides the ``mageapi cache`` sub-command group. Every command opens the
cache file selected by the profile's ``cache`` section
(:class:`~mageapi.models.CacheConfig`).
"""

from __future__ import annotations

import time
from datetime import datetime, timezone

import typer

from mageapi.cache import CacheStore
from mageapi.commands import fail
from mageapi.config import resolve_profile
from mageapi.exceptions import MageApiError
from mageapi.output import format_response, info, print_table, success

cache_app = typer.Typer(no_args_is_help=True)


def _open_store(ctx: typer.Context) -> CacheStore:
    obj = ctx.obj or {}
    try:
        profile = resolve_profile(obj.get("profile"))
        return CacheStore.from_config(profile.cache)
    except MageApiError as exc:
        fail(exc)


@cache_app.command("list")
def cache_list(ctx: typer.Context) -> None:
    """List cached entries with their age and status.

    Stale entries stay listed until ``mageapi cache clean`` runs.
    """
    store = _open_store(ctx)
    now = time.time()
    rows: list[list[str]] = []
    for key, entry in sorted(store.entries().items(), key=lambda kv: kv[1].time):
        created = datetime.fromtimestamp(entry.time, tz=timezone.utc).isoformat(timespec="seconds")
        status = "expired" if entry.is_expired(now) else "fresh"
        rows.append([key, created, str(entry.expire), status])
    if not rows:
        info("Cache is empty.")
        return
    print_table(["key", "created", "ttl", "status"], rows, title="Cached results")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show the cache file location and entry counts."""
    store = _open_store(ctx)
    format_response(store.stats())


@cache_app.command("clean")
def cache_clean(ctx: typer.Context) -> None:
    """Remove expired entries."""
    store = _open_store(ctx)
    before = len(store.entries())
    store.clean_expired()
    removed = before - len(store.entries())
    success(f"Removed {removed} expired entr{'y' if removed == 1 else 'ies'}.")


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Remove every entry and truncate the cache file.

    Asks for confirmation unless ``--force`` is active.
    """
    force = (ctx.obj or {}).get("force", False)
    if not force and not typer.confirm("Remove all cached results?"):
        info("Cancelled.")
        raise typer.Exit()
    store = _open_store(ctx)
    store.clean_all()
    success("Cache cleared.")
