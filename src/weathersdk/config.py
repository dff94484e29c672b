"""Settings resolution with XDG paths and precedence.

:func:`resolve_settings` builds the :class:`~weathersdk.models.ClientSettings`
used by a :class:`~weathersdk.registry.ClientRegistry`.

Precedence (high to low):
    1. Keyword overrides passed by the caller
    2. Environment variables ``WEATHERSDK_<FIELD>`` (e.g. ``WEATHERSDK_TTL_SECONDS``)
    3. JSON config file (``WEATHERSDK_CONFIG`` or
       ``$XDG_CONFIG_HOME/weathersdk/config.json``)
    4. Model defaults

Credentials are never read here; callers pass them to
:func:`~weathersdk.registry.create_client` directly.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from weathersdk.exceptions import ConfigError
from weathersdk.models import ClientSettings

_APP_NAME = "weathersdk"
_CONFIG_FILENAME = "config.json"
_ENV_PREFIX = "WEATHERSDK_"
_CONFIG_PATH_ENV = "WEATHERSDK_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_path() -> Path:
    """Return the path of the settings file. The file need not exist.

    ``WEATHERSDK_CONFIG`` wins when set.  Otherwise, on Linux/BSD:
    ``$XDG_CONFIG_HOME/weathersdk/config.json`` (default
    ``~/.config/weathersdk/config.json``); on macOS/Windows:
    ``~/.weathersdk/config.json``.
    """
    explicit = os.environ.get(_CONFIG_PATH_ENV, "")
    if explicit:
        return Path(explicit).expanduser()
    if _is_xdg_platform():
        xdg = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(xdg) if xdg else Path.home() / ".config"
        return base / _APP_NAME / _CONFIG_FILENAME
    return Path.home() / f".{_APP_NAME}" / _CONFIG_FILENAME


# --- Layers ---


def load_file_settings(path: Optional[Path] = None) -> dict[str, Any]:
    """Load raw settings from the JSON config file.

    Args:
        path: File to read.  Defaults to :func:`get_config_path`.

    Returns:
        The parsed object, or an empty dict when the file does not exist.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or not an object.
    """
    path = path or get_config_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config at {path}: expected a JSON object")
    return data


def load_env_settings() -> dict[str, str]:
    """Collect ``WEATHERSDK_<FIELD>`` variables for known settings fields.

    Values are left as strings; Pydantic coerces them during validation.
    """
    values: dict[str, str] = {}
    for field in ClientSettings.model_fields:
        raw = os.environ.get(f"{_ENV_PREFIX}{field.upper()}")
        if raw:
            values[field] = raw
    return values


def resolve_settings(
    config_path: Optional[Path] = None, **overrides: Any
) -> ClientSettings:
    """Merge all settings layers into a validated :class:`ClientSettings`.

    Args:
        config_path: Optional explicit config file path.
        **overrides: Highest-precedence field values.  ``None`` values are
            ignored so callers can forward optional arguments unchanged.

    Raises:
        ConfigError: If the file is invalid or a merged value fails
            validation.
    """
    merged: dict[str, Any] = {}
    merged.update(load_file_settings(config_path))
    merged.update(load_env_settings())
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid weathersdk settings: {exc}") from exc
