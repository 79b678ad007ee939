"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for authport:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.authport/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- a single :class:`~authport.models.AppConfig` JSON file.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the config file into the effective
  configuration for one login invocation.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written file behind.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from authport.exceptions import ConfigError
from authport.models import AppConfig

_APP_NAME = "authport"
_CONFIG_FILENAME = "config.json"

_ENV_AUTH_DIR = "AUTHPORT_AUTH_DIR"
_ENV_AUTHENTICATOR = "AUTHPORT_AUTHENTICATOR"
_ENV_IMPORT_TIMEOUT = "AUTHPORT_IMPORT_TIMEOUT"
_ENV_IDE_TOKEN_PATH = "AUTHPORT_IDE_TOKEN_PATH"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/authport/`` (default ``~/.config/authport/``).
    On macOS/Windows: ``~/.authport/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/authport/`` (default ``~/.local/share/authport/``).
    On macOS/Windows: ``~/.authport/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_dir() -> Path:
    """Return ``<data dir>/logs``, creating it if necessary."""
    path = get_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_auth_dir(config: AppConfig) -> Path:
    """Return the directory credential files are written to.

    Uses ``config.auth_dir`` when set (with ``~`` expanded), otherwise
    ``<data dir>/auths``. The directory is not created here; the credential
    store creates it on first save.
    """
    if config.auth_dir:
        return Path(config.auth_dir).expanduser()
    return get_data_dir() / "auths"


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write *data* to *path* atomically using a temp file + rename.

    The temporary file is created next to *path* so that ``os.replace`` is an
    atomic rename on POSIX. When *mode* is given the permissions are applied
    to the temp file before any content is written. On any failure the temp
    file is removed and the exception propagates.
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
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Config file ---


def _config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_config() -> AppConfig:
    """Load the configuration file from the config directory.

    Returns:
        The deserialised :class:`~authport.models.AppConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            validation.
    """
    path = _config_path()
    if not path.is_file():
        return AppConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return AppConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: AppConfig) -> None:
    """Persist the configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_overrides() -> dict[str, Any]:
    """Collect config overrides from ``AUTHPORT_*`` environment variables."""
    overrides: dict[str, Any] = {}
    if os.environ.get(_ENV_AUTH_DIR):
        overrides["auth_dir"] = os.environ[_ENV_AUTH_DIR]
    if os.environ.get(_ENV_AUTHENTICATOR):
        overrides["authenticator"] = os.environ[_ENV_AUTHENTICATOR]
    if os.environ.get(_ENV_IDE_TOKEN_PATH):
        overrides["ide_token_path"] = os.environ[_ENV_IDE_TOKEN_PATH]
    raw_timeout = os.environ.get(_ENV_IMPORT_TIMEOUT)
    if raw_timeout:
        try:
            overrides["import_timeout"] = float(raw_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{_ENV_IMPORT_TIMEOUT} must be a number of seconds, got {raw_timeout!r}"
            ) from exc
    return overrides


def resolve_config(
    cli_auth_dir: Optional[str] = None,
    cli_authenticator: Optional[str] = None,
    cli_import_timeout: Optional[float] = None,
    cli_ide_token_path: Optional[str] = None,
) -> AppConfig:
    """Resolve the effective configuration for one invocation.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``AUTHPORT_AUTH_DIR``,
           ``AUTHPORT_AUTHENTICATOR``, ``AUTHPORT_IMPORT_TIMEOUT``,
           ``AUTHPORT_IDE_TOKEN_PATH``)
        3. Config file (``~/.config/authport/config.json``)
        4. Defaults

    Returns:
        A new :class:`~authport.models.AppConfig`.

    Raises:
        ConfigError: If the config file is invalid or a resolved value fails
            validation.
    """
    merged = load_config().model_dump()
    merged.update(_env_overrides())

    cli: dict[str, Any] = {
        "auth_dir": cli_auth_dir,
        "authenticator": cli_authenticator,
        "import_timeout": cli_import_timeout,
        "ide_token_path": cli_ide_token_path,
    }
    merged.update({key: value for key, value in cli.items() if value is not None})

    try:
        return AppConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
