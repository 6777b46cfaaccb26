"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for opennow:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.opennow/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~opennow.models.GlobalConfig`
  JSON file holding the ``login`` and ``output`` sections.
* **Precedence resolution** -- :func:`resolve_login_config` merges CLI
  flags, environment variables, and the config file into the
  :class:`~opennow.models.LoginConfig` handed to the login core.

The login core itself never reads files or the environment; it only sees
the resolved, frozen :class:`~opennow.models.LoginConfig`.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from opennow.exceptions import ConfigError
from opennow.models import GlobalConfig, LoginConfig

_APP_NAME = "opennow"
_CONFIG_FILENAME = "config.json"

ENV_CALLBACK_PORTS = "OPENNOW_CALLBACK_PORTS"
ENV_AUTHORIZE_URL = "OPENNOW_AUTHORIZE_URL"


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
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/opennow/`` (default ``~/.config/opennow/``).
    On macOS/Windows: ``~/.opennow/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/opennow/`` (default ``~/.local/share/opennow/``).
    On macOS/Windows: ``~/.opennow/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On failure the temp
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
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
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


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~opennow.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def parse_port_list(value: str) -> tuple[int, ...]:
    """Parse a comma-separated port list such as ``"2259, 6460"``.

    Raises:
        ConfigError: If an entry is not an integer.
    """
    ports: list[int] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            ports.append(int(item))
        except ValueError:
            raise ConfigError(f"Invalid port in '{value}': {item!r}") from None
    return tuple(ports)


def resolve_login_config(
    cli_ports: Optional[Sequence[int]] = None,
    global_config: Optional[GlobalConfig] = None,
) -> LoginConfig:
    """Resolve the login configuration with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_ports``)
        2. Environment variables (``OPENNOW_CALLBACK_PORTS``,
           ``OPENNOW_AUTHORIZE_URL``)
        3. User config (``~/.config/opennow/config.json``, ``login`` section)
        4. Defaults

    Args:
        cli_ports: Candidate ports given on the command line.
        global_config: Already-loaded global config; loaded from disk when
            omitted.

    Returns:
        A frozen :class:`~opennow.models.LoginConfig`.

    Raises:
        ConfigError: If an override produces an invalid configuration.
    """
    base = (global_config or load_global_config()).login
    overrides: dict[str, object] = {}

    env_ports = os.environ.get(ENV_CALLBACK_PORTS)
    if env_ports:
        overrides["redirect_ports"] = parse_port_list(env_ports)
    env_url = os.environ.get(ENV_AUTHORIZE_URL)
    if env_url:
        overrides["authorize_url"] = env_url

    if cli_ports:
        overrides["redirect_ports"] = tuple(cli_ports)

    if not overrides:
        return base
    try:
        return LoginConfig.model_validate({**base.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid login configuration: {exc}") from exc
