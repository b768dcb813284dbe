"""Settings management with XDG paths, atomic writes, and dotted-path updates.

This module handles all persistent non-secret configuration for cliauth:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cliauth/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings document** -- A single :class:`~cliauth.models.Settings`
  JSON file holding auth server definitions and profiles. Read with
  :func:`load_settings`, updated with :func:`update_settings`.
* **Dotted-path updates** -- :func:`update_settings` takes a mapping such as
  ``{"auth_servers.example-com.issuer": "https://..."}`` and merges every
  entry into the current document in one atomic write.
* **Profile resolution** -- :func:`resolve_profile_name` applies the
  ``--profile`` flag > ``CLIAUTH_PROFILE`` > ``default_profile`` precedence.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from cliauth.exceptions import StoreReadError, StoreWriteError
from cliauth.models import Profile, Settings

logger = logging.getLogger(__name__)

_APP_NAME = "cliauth"
_SETTINGS_FILENAME = "settings.json"
_PROFILE_ENV_VAR = "CLIAUTH_PROFILE"
DEFAULT_PROFILE_NAME = "default"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG base directories (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cliauth/`` (default ``~/.config/cliauth/``).
    On macOS/Windows: ``~/.cliauth/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (secrets, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cliauth/`` (default ``~/.local/share/cliauth/``).
    On macOS/Windows: ``~/.cliauth/data/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    When *mode* is given it is applied to the temp file before any content
    is written, so the final file never exists with looser permissions.
    On any failure the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def read_json_document(path: Path) -> dict[str, Any]:
    """Read a JSON object from *path*, returning ``{}`` if the file is missing.

    Raises:
        StoreReadError: If the file cannot be read or is not a JSON object.
    """
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise StoreReadError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise StoreReadError(f"Invalid document at {path}: expected a JSON object")
    return data


def write_json_document(path: Path, data: dict[str, Any], mode: Optional[int] = None) -> None:
    """Atomically write *data* as pretty-printed JSON to *path*.

    Raises:
        StoreWriteError: If the file cannot be written.
    """
    try:
        _atomic_write(path, json.dumps(data, indent=2) + "\n", mode=mode)
    except OSError as exc:
        raise StoreWriteError(f"Cannot write {path}: {exc}") from exc


def set_dotted(data: dict[str, Any], dotted_path: str, value: Any) -> None:
    """Set ``data[a][b][c] = value`` for ``dotted_path == "a.b.c"``.

    Intermediate mappings are created as needed. A non-mapping value in the
    middle of the path is replaced by a mapping.
    """
    keys = dotted_path.split(".")
    target = data
    for key in keys[:-1]:
        child = target.get(key)
        if not isinstance(child, dict):
            child = {}
            target[key] = child
        target = child
    target[keys[-1]] = value


# --- Settings document ---


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _SETTINGS_FILENAME


def load_settings() -> Settings:
    """Load the settings document.

    Returns:
        The deserialised :class:`~cliauth.models.Settings`. If the file does
        not exist, an empty instance is returned.

    Raises:
        StoreReadError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = settings_path()
    data = read_json_document(path)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise StoreReadError(f"Invalid settings at {path}: {exc}") from exc


def update_settings(updates: Mapping[str, Any]) -> Settings:
    """Merge dotted-path *updates* into the settings document and save it.

    All updates are applied to the on-disk document and validated together
    before a single atomic write, so either every key lands or none does.

    Args:
        updates: Mapping of dotted path (``"auth_servers.x.issuer"``) to value.

    Returns:
        The validated settings after the write.

    Raises:
        StoreReadError: If the current document cannot be read, or the
            merged result fails validation.
        StoreWriteError: If the file cannot be written.
    """
    path = settings_path()
    data = read_json_document(path)
    for dotted_path, value in updates.items():
        set_dotted(data, dotted_path, value)
    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise StoreReadError(f"Update would make settings invalid: {exc}") from exc
    write_json_document(path, settings.model_dump(mode="json", exclude_defaults=True))
    logger.debug("Updated settings keys: %s", ", ".join(sorted(updates)))
    return settings


# --- Profiles ---


def resolve_profile_name(cli_profile: Optional[str] = None) -> str:
    """Resolve the active profile name.

    Precedence (high to low):
        1. ``--profile`` CLI flag
        2. ``CLIAUTH_PROFILE`` environment variable
        3. ``default_profile`` in the settings document
        4. ``"default"``
    """
    if cli_profile:
        return cli_profile
    env_profile = os.environ.get(_PROFILE_ENV_VAR)
    if env_profile:
        return env_profile
    settings = load_settings()
    if settings.default_profile:
        return settings.default_profile
    return DEFAULT_PROFILE_NAME


def get_profile(name: str) -> Profile:
    """Return the named profile, or an empty one bound to no auth server.

    An unconfigured profile is not an error here: requests made under it
    fail later with :class:`~cliauth.exceptions.NoHandlerError` unless a
    blank-type handler is registered.
    """
    profile = load_settings().profiles.get(name)
    if profile is None:
        return Profile(name=name)
    if not profile.name:
        profile.name = name
    return profile
