"""Persistent configuration: directories, profiles, and credential sources.

Layout on Linux/BSD follows the XDG Base Directory variables; elsewhere
everything lives under ``~/.mageapi``:

=========  ================================  ======================
kind       XDG location                      fallback
=========  ================================  ======================
config     ``$XDG_CONFIG_HOME/mageapi``      ``~/.mageapi``
cache      ``$XDG_CACHE_HOME/mageapi``       ``~/.mageapi/cache``
data       ``$XDG_DATA_HOME/mageapi``        ``~/.mageapi/logs``
=========  ================================  ======================

The config directory holds ``config.json`` (:class:`~mageapi.models.GlobalConfig`)
and ``profiles/<name>.json`` (:class:`~mageapi.models.Profile`, one per store).
Profiles carry credential *sources*; :func:`load_credentials` turns them into
secrets at call time so secrets never touch the config directory.

Every write goes through :func:`atomic_write`. The cache store persists its
file with the same helper.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import re
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError

from mageapi.exceptions import ConfigError, InvalidUsageError
from mageapi.models import Credentials, GlobalConfig, Profile

_APP_NAME = "mageapi"
_CONFIG_FILENAME = "config.json"

ENV_PROFILE = "MAGEAPI_PROFILE"
ENV_BASE_URL = "MAGEAPI_BASE_URL"

_PROFILE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

# kind -> (XDG variable, default segments under $HOME, fallback subdir, create)
_DIRS: dict[str, tuple[str, tuple[str, ...], Optional[str], bool]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None, True),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache", False),
    "data": ("XDG_DATA_HOME", (".local", "share"), "logs", True),
}

ModelT = TypeVar("ModelT", bound=BaseModel)


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, segments, fallback_sub, create = _DIRS[kind]
    if _is_xdg_platform():
        override = os.environ.get(env_var)
        base = Path(override) if override else Path.home().joinpath(*segments)
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Return the default directory for cache files.

    Not created here: :class:`~mageapi.cache.CacheStore` creates it with the
    mode it requires.
    """
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary."""
    return _app_dir("data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a sibling temp file and ``os.replace``.

    Readers see either the old or the new content, never a partial file.
    The temp file is removed if anything fails, and the error propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        try:
            os.unlink(handle.name)
        except OSError:
            pass
        raise


def _load_model(path: Path, model: type[ModelT], label: str) -> ModelT:
    try:
        return model.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def _save_model(path: Path, value: BaseModel) -> None:
    atomic_write(path, json.dumps(value.model_dump(mode="json"), indent=2) + "\n")


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load ``config.json``, or defaults when it does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid configuration.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    return _load_model(path, GlobalConfig, "global config")


def save_global_config(config: GlobalConfig) -> None:
    _save_model(_global_config_path(), config)


# --- Profiles ---


def _profile_path(name: str) -> Path:
    if not _PROFILE_NAME.match(name):
        raise InvalidUsageError(
            f"Invalid profile name '{name}' (use letters, digits, '.', '_' or '-')"
        )
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return the stored profile names, sorted."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_profile(name: str) -> Profile:
    """Load a stored profile.

    Raises:
        ConfigError: If it does not exist or does not validate.
        InvalidUsageError: If *name* is not a valid profile name.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return _load_model(path, Profile, f"profile '{name}'")


def save_profile(profile: Profile) -> None:
    _save_model(_profile_path(profile.name), profile)


def delete_profile(name: str) -> None:
    """Remove a stored profile.

    Raises:
        ConfigError: If it does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    path.unlink()


def resolve_profile(cli_profile: Optional[str] = None) -> Profile:
    """Pick and load the profile for this invocation.

    The first of these wins: ``--profile``, ``MAGEAPI_PROFILE``, the global
    ``default_profile``, then the only stored profile when
    ``auto_select_single_profile`` is on. ``MAGEAPI_BASE_URL`` replaces the
    loaded profile's ``base_url`` (in memory only).

    Raises:
        ConfigError: If nothing selects a profile or it cannot be loaded.
    """
    global_cfg = load_global_config()
    name = cli_profile or os.environ.get(ENV_PROFILE) or global_cfg.default_profile

    if name is None and global_cfg.auto_select_single_profile:
        stored = list_profiles()
        if len(stored) == 1:
            name = stored[0]
    if name is None:
        raise ConfigError(
            "No profile selected. Create one with 'mageapi profile add' or pass --profile."
        )

    profile = load_profile(name)
    base_url = os.environ.get(ENV_BASE_URL)
    if base_url:
        profile.base_url = base_url
    return profile


# --- Credential sources ---


def _from_env(var_name: str) -> str:
    value = os.environ.get(var_name)
    if value is None:
        raise ConfigError(f"Environment variable '{var_name}' is not set")
    return value


def _from_file(location: str) -> str:
    path = Path(location).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path}")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


def _from_value(literal: str) -> str:
    return literal


_SOURCES: dict[str, Callable[[str], str]] = {
    "env": _from_env,
    "file": _from_file,
    "value": _from_value,
}


def resolve_credential(source: str) -> str:
    """Return the secret described by *source*.

    ``env:VAR`` reads an environment variable, ``file:PATH`` reads a file
    (whitespace stripped, ``~`` expanded), ``value:TEXT`` is the literal
    text, and ``prompt`` asks on the terminal.

    Raises:
        ConfigError: If the source is unknown or cannot be read.
    """
    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError("Cannot prompt for credentials: stdin is not a TTY")
        return getpass.getpass("Enter credential: ")

    kind, sep, rest = source.partition(":")
    resolver = _SOURCES.get(kind) if sep else None
    if resolver is None:
        # The source itself may be a pasted secret, so it is not echoed.
        raise ConfigError(
            "Unknown credential source format (expected env:, file:, prompt or value:)"
        )
    return resolver(rest)


def load_credentials(profile: Profile) -> Credentials:
    """Resolve all four credential sources of *profile*."""
    sources = profile.credential_fields()
    return Credentials(**{field: resolve_credential(src) for field, src in sources.items()})
