"""
Settings loading.

Values come from, lowest priority first: the model defaults, a YAML
file, and ``WEB_READER__{SECTION}__{KEY}`` environment variables, e.g.
``WEB_READER__READER__CHAR_THRESHOLD=250``.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from web_reader.config.settings import Settings
from web_reader.core.exceptions import ConfigurationError

_settings_instance: Settings | None = None

_TRUE_VALUES = ("true", "yes", "on")
_FALSE_VALUES = ("false", "no", "off")
_NULL_VALUES = ("none", "null", "")


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``, section by section."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_env_value(value: str) -> Any:
    """
    Convert an environment string to a setting value.

    Booleans, null, integers and floats are recognized; a value with
    commas becomes a list (``CLASSES_TO_PRESERVE=lead,figure``).
    """
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    if lowered in _NULL_VALUES:
        return None

    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            pass

    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def _load_env_overrides(prefix: str = "WEB_READER") -> dict[str, Any]:
    """Collect ``{prefix}__SECTION__KEY`` variables into nested dictionaries."""
    overrides: dict[str, Any] = {}
    marker = f"{prefix}__"

    for name, value in os.environ.items():
        if not name.startswith(marker):
            continue

        *sections, key = name[len(marker):].lower().split("__")
        if not sections:
            continue

        target = overrides
        for section in sections:
            target = target.setdefault(section, {})
        target[key] = _parse_env_value(value)

    return overrides


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Read a YAML mapping.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Invalid YAML in configuration file", {"path": str(path)}) from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got: {type(content).__name__}",
            {"path": str(path)},
        )
    return content


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = "WEB_READER",
) -> Settings:
    """
    Build validated settings from a YAML file and the environment.

    Args:
        config_path: YAML file to read; defaults and environment only when None
        env_prefix: Prefix of the environment variables

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If ``config_path`` is given but missing
        ConfigurationError: If the file or a value is invalid
    """
    data: dict[str, Any] = {}
    if config_path is not None:
        data = _load_yaml_file(Path(config_path))
    data = _deep_merge(data, _load_env_overrides(env_prefix))

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration", {"errors": e.error_count()}) from e


def get_settings(config_path: Path | str | None = None, reload: bool = False) -> Settings:
    """
    Get the process-wide settings, loading them on first use.

    Without ``config_path`` the first file found by
    get_default_config_path is used.
    """
    global _settings_instance

    if _settings_instance is None or reload:
        _settings_instance = load_config(config_path or get_default_config_path())
    return _settings_instance


def reset_settings() -> None:
    """Forget the cached settings and config file location."""
    global _settings_instance
    _settings_instance = None
    get_default_config_path.cache_clear()


@lru_cache(maxsize=1)
def get_default_config_path() -> Path | None:
    """
    Locate a configuration file.

    Looks for ``web_reader.yaml`` in the working directory and in
    ``./config/``, then for ``~/.web_reader/config.yaml``.
    """
    for path in (
        Path.cwd() / "web_reader.yaml",
        Path.cwd() / "config" / "web_reader.yaml",
        Path.home() / ".web_reader" / "config.yaml",
    ):
        if path.exists():
            return path
    return None
