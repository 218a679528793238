"""File-backed key/value cache with per-entry expiry.

One :class:`CacheStore` maps to exactly one JSON file, selected by its
directory, logical name and extension. The file holds an object keyed by
fingerprint::

    {"3f1c...": {"time": 1700000000, "expire": 3600, "data": "{\\"id\\": 1}"}}

Entries are never swept in the background. A stale entry stays on disk
until it is read through :meth:`CacheStore.get` /
:meth:`CacheStore.clean_by_key`, or until :meth:`CacheStore.clean_expired`
or :meth:`CacheStore.clean_all` runs. An ``expire`` of ``0`` means the
entry is always stale.

Every mutation rewrites the whole table through :meth:`CacheHandle.persist`,
which uses :func:`mageapi.config.atomic_write` so readers never see a torn
file. There is no inter-process lock: two processes writing the same file
can still lose each other's updates.

Unreadable or corrupt files load as an empty store, and a payload that no
longer decodes is treated as a miss. Both cases are logged as warnings.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import time
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from mageapi.config import atomic_write, get_cache_dir
from mageapi.exceptions import ConfigError
from mageapi.models import CacheConfig, CacheEntry

logger = logging.getLogger(__name__)

DEFAULT_LIFETIME = 3600
DIRECTORY_MODE = 0o775

_UNSAFE_NAME_CHARS = re.compile(r"[^0-9a-z._\-]")
_UNDECODABLE = object()


def serialize(value: Any) -> str:
    """Encode *value* as escaped JSON text (ASCII only, safe for any payload)."""
    return json.dumps(value, ensure_ascii=True)


def deserialize(data: str) -> Any:
    return json.loads(data)


def sanitize_name(name: str) -> str:
    """Lower-case *name* and drop every character outside ``[0-9a-z._-]``."""
    return _UNSAFE_NAME_CHARS.sub("", name.lower())


class CacheHandle:
    """The in-memory table of one cache file.

    A handle is bound to a single resolved path for its whole life. When
    the store's identity changes, the store drops its handle and opens a
    new one instead of re-pointing this one.
    """

    def __init__(self, file: Path, entries: Optional[dict[str, CacheEntry]] = None) -> None:
        self.file = file
        self.entries: dict[str, CacheEntry] = entries if entries is not None else {}

    @classmethod
    def open(cls, file: Path) -> CacheHandle:
        """Open *file*, loading whatever entries it already holds."""
        return cls(file, _read_entries(file))

    def reload(self) -> None:
        """Replace the in-memory table with the current file contents."""
        self.entries = _read_entries(self.file)

    def persist(self) -> None:
        """Rewrite the whole file from the in-memory table."""
        table = {key: entry.model_dump() for key, entry in self.entries.items()}
        atomic_write(self.file, json.dumps(table))

    def truncate(self) -> None:
        """Empty both the table and the file."""
        self.entries = {}
        atomic_write(self.file, "")


def _read_entries(file: Path) -> dict[str, CacheEntry]:
    if not file.is_file():
        return {}
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read cache file %s (%s); starting empty", file, exc)
        return {}
    if not text.strip():
        return {}
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Corrupt cache file %s (%s); starting empty", file, exc)
        return {}
    if not isinstance(raw, dict):
        logger.warning("Unexpected cache file layout in %s; starting empty", file)
        return {}

    entries: dict[str, CacheEntry] = {}
    for key, value in raw.items():
        try:
            entries[key] = CacheEntry.model_validate(value)
        except ValidationError:
            logger.warning("Dropping malformed cache entry %r from %s", key, file)
    return entries


class CacheStore:
    """Durable, expiring key/value store scoped to one cache file.

    Args:
        lifetime: Default TTL in seconds for entries written without an
            explicit ``ttl``. ``0`` makes entries immediately stale.
        cache_path: Directory holding the cache file. Created on demand.
        cache_name: Logical name; sanitised and hashed into the file name.
        extension: File extension, dot included.
        clock: Returns the current Unix time in seconds.

    Raises:
        ConfigError: If the cache directory cannot be created or made
            readable and writable.

    Example::

        store = CacheStore(lifetime=600, cache_path="/tmp/mageapi")
        store.set("orders", [{"id": 1}])
        store.get("orders")   # -> [{"id": 1}]
    """

    def __init__(
        self,
        lifetime: int = DEFAULT_LIFETIME,
        cache_path: str | Path = "cache",
        cache_name: str = "default",
        extension: str = ".cache",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._lifetime = lifetime
        self._cache_path = Path(cache_path)
        self._cache_name = cache_name
        self._extension = extension
        self._clock = clock
        self._handle = CacheHandle.open(self.get_cache_file())

    @classmethod
    def from_config(cls, config: CacheConfig) -> CacheStore:
        """Open the store described by a profile's ``cache`` section.

        Without an explicit ``path`` the file lives in the XDG cache directory.
        """
        return cls(
            lifetime=config.ttl_seconds,
            cache_path=config.path or get_cache_dir(),
            cache_name=config.name,
            extension=config.extension,
        )

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    @property
    def cache_path(self) -> Path:
        return self._cache_path

    @cache_path.setter
    def cache_path(self, value: str | Path) -> None:
        self._cache_path = Path(value)
        self._rebind()

    @property
    def cache_name(self) -> str:
        return self._cache_name

    @cache_name.setter
    def cache_name(self, value: str) -> None:
        self._cache_name = value
        self._rebind()

    @property
    def extension(self) -> str:
        return self._extension

    @extension.setter
    def extension(self, value: str) -> None:
        self._extension = value
        self._rebind()

    @property
    def lifetime(self) -> int:
        """Default TTL applied by :meth:`set` and :meth:`bulk_set`."""
        return self._lifetime

    @lifetime.setter
    def lifetime(self, value: int) -> None:
        self._lifetime = value

    def get_cache_file(self) -> Path:
        """Return the file backing this store, ensuring its directory is usable.

        The name is ``sha1(sanitised cache_name) + extension``. Two names that
        sanitise to the same string share a file.
        """
        self._check_cache_dir()
        digest = hashlib.sha1(sanitize_name(self._cache_name).encode("utf-8")).hexdigest()
        return self._cache_path / f"{digest}{self._extension}"

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store *value* under *key* and persist the table.

        Args:
            key: Entry key.
            value: Any JSON-serialisable value.
            ttl: Lifetime override in seconds; :attr:`lifetime` when ``None``.
        """
        self._handle.reload()
        self._handle.entries[key] = self._make_entry(value, ttl)
        self.persist()

    def bulk_set(self, values: Mapping[str, Any], ttl: Optional[int] = None) -> None:
        """Store every item of *values* with a single write."""
        self._handle.reload()
        for key, value in values.items():
            self._handle.entries[key] = self._make_entry(value, ttl)
        self.persist()

    def persist(self) -> None:
        """Write the full in-memory table to the cache file."""
        self._handle.persist()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None``.

        A stale entry is evicted first. A payload that fails to decode is
        reported as a miss.
        """
        self.clean_by_key(key)
        entry = self._handle.entries.get(key)
        if entry is None:
            return None
        value = self._decode(key, entry)
        return None if value is _UNDECODABLE else value

    def all(self) -> dict[str, Any]:
        """Return every stored value keyed by its key.

        Stale entries that have not been evicted yet are included; call
        :meth:`clean_expired` first to get live entries only.
        """
        results: dict[str, Any] = {}
        for key, entry in self._handle.entries.items():
            value = self._decode(key, entry)
            if value is not _UNDECODABLE:
                results[key] = value
        return results

    def is_cached(self, key: str) -> bool:
        """Return whether *key* is present, without evicting it when stale."""
        return key in self._handle.entries

    def entries(self) -> dict[str, CacheEntry]:
        """Return a snapshot of the raw entries (metadata and serialised payload)."""
        return dict(self._handle.entries)

    # ------------------------------------------------------------------ #
    # Expiry
    # ------------------------------------------------------------------ #

    def clean_by_key(self, key: str) -> None:
        """Evict *key* if it is stale; no-op otherwise."""
        entry = self._handle.entries.get(key)
        if entry is None or not entry.is_expired(self._clock()):
            return
        del self._handle.entries[key]
        self.persist()

    def delete(self, key: str) -> None:
        """Remove *key* whether or not it is stale; no-op when absent."""
        if self._handle.entries.pop(key, None) is not None:
            self.persist()

    def clean_expired(self) -> None:
        """Evict every stale entry, then write the table once.

        Nothing is written when the table is empty and no cache file exists.
        """
        if not self._handle.entries and not self._handle.file.exists():
            return
        now = self._clock()
        self._handle.entries = {
            key: entry
            for key, entry in self._handle.entries.items()
            if not entry.is_expired(now)
        }
        self.persist()

    def clean_all(self) -> None:
        """Drop every entry and truncate the cache file."""
        self._handle.truncate()

    def stats(self) -> dict[str, Any]:
        """Return entry counts and location details."""
        now = self._clock()
        expired = sum(1 for e in self._handle.entries.values() if e.is_expired(now))
        return {
            "file": str(self._handle.file),
            "size": len(self._handle.entries),
            "expired": expired,
            "lifetime": self._lifetime,
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _rebind(self) -> None:
        self._handle = CacheHandle.open(self.get_cache_file())

    def _make_entry(self, value: Any, ttl: Optional[int]) -> CacheEntry:
        return CacheEntry(
            time=int(self._clock()),
            expire=self._lifetime if ttl is None else ttl,
            data=serialize(value),
        )

    def _decode(self, key: str, entry: CacheEntry) -> Any:
        try:
            return deserialize(entry.data)
        except ValueError:
            logger.warning("Cache payload for %r is not decodable; treating as a miss", key)
            return _UNDECODABLE

    def _check_cache_dir(self) -> None:
        path = self._cache_path
        if not path.is_dir():
            try:
                path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
            except OSError as exc:
                raise ConfigError(f"Unable to create cache directory {path}: {exc}") from exc

        if not os.access(path, os.R_OK | os.W_OK):
            try:
                os.chmod(path, DIRECTORY_MODE)
            except OSError as exc:
                raise ConfigError(f"{path} must be readable and writeable") from exc
            if not os.access(path, os.R_OK | os.W_OK):
                raise ConfigError(f"{path} must be readable and writeable")
