"""Configuration helpers for the G-code region tooling."""
from __future__ import annotations

import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

RESOURCE_DIR = Path(__file__).resolve().parent / "resources"
APP_SETTINGS_ENV_VAR = "GCODE_REGIONS_APP_SETTINGS"
DEFAULT_TAG_COLUMN = 75
_APP_SETTINGS_CACHE: dict[str, Any] | None = None


def _env_flag(name: str, *, default: bool = False) -> bool:
    """Return a boolean from the environment with tolerant parsing."""

    raw = os.getenv(name)
    if raw is None:
        return default

    normalized = raw.strip().lower()
    if not normalized:
        return default

    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}

    if normalized in truthy:
        return True
    if normalized in falsy:
        return False

    try:
        return bool(int(normalized))
    except ValueError:
        return default


@dataclass(frozen=True)
class AppEnvironment:
    """Runtime configuration extracted from environment variables."""

    debug_enabled: bool = False
    settings_override: Path | None = None

    @classmethod
    def from_env(cls) -> "AppEnvironment":
        override_raw = os.getenv(APP_SETTINGS_ENV_VAR)
        override = Path(override_raw).expanduser() if override_raw else None
        return cls(
            debug_enabled=_env_flag("GCODE_REGIONS_DEBUG", default=False),
            settings_override=override,
        )


class ConfigError(RuntimeError):
    """Raised when configuration data cannot be loaded or validated."""


def _load_json_mapping(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed JSON in {path.name}: {exc}") from exc

    if not isinstance(raw, Mapping):
        raise ConfigError(f"Configuration root must be an object in {path.name}")

    return dict(raw)


def _merge_mappings(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if key in base and isinstance(base[key], Mapping) and isinstance(value, Mapping):
            base[key] = _merge_mappings(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _load_app_settings_raw() -> dict[str, Any]:
    base = _load_json_mapping(RESOURCE_DIR / "app_settings.json")

    override_path = AppEnvironment.from_env().settings_override
    if override_path is not None:
        if override_path.exists():
            try:
                override = _load_json_mapping(override_path)
            except ConfigError as exc:
                raise ConfigError(f"Failed to load override settings: {exc}") from exc
            base = _merge_mappings(base, override)
        else:
            logger.warning("Override settings path does not exist: %s", override_path)

    return base


def load_app_settings(*, reload: bool = False) -> dict[str, Any]:
    """Return the merged application settings, applying optional overrides."""

    global _APP_SETTINGS_CACHE
    if reload or _APP_SETTINGS_CACHE is None:
        _APP_SETTINGS_CACHE = _load_app_settings_raw()

    return copy.deepcopy(_APP_SETTINGS_CACHE)


def load_named_config(name: str) -> dict[str, str]:
    """Return the snapshot defaults for one region kind (``mill``, ``turn``, ``drill``)."""

    settings = load_app_settings()
    region_defaults = settings.get("region_defaults")
    if not isinstance(region_defaults, Mapping):
        raise ConfigError("'region_defaults' section missing from app settings")

    section = region_defaults.get(name)
    if not isinstance(section, Mapping):
        raise ConfigError(f"Missing configuration section in app settings: {name}")

    return {str(key): "" if value is None else str(value) for key, value in section.items()}


def tag_column() -> int:
    """Column (0-based) at which display tags are aligned in rendered text."""

    raw = load_app_settings().get("tag_column", DEFAULT_TAG_COLUMN)
    try:
        column = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'tag_column' must be an integer, got {raw!r}") from exc
    return max(column, 0)


LOGGER_NAME = "gcode_regions"


def get_logger(*names: str) -> logging.Logger:
    """Return a logger under the shared ``gcode_regions`` namespace."""

    if not names:
        return logging.getLogger(LOGGER_NAME)
    qualified = ".".join((LOGGER_NAME, *names))
    return logging.getLogger(qualified)


logger = get_logger()


def configure_logging(level: int = logging.INFO, *, force: bool = False) -> None:
    """Initialise a basic logging configuration if none is present."""

    root = logging.getLogger()
    if root.handlers and not force:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=force,
    )


__all__ = [
    "APP_SETTINGS_ENV_VAR",
    "AppEnvironment",
    "ConfigError",
    "DEFAULT_TAG_COLUMN",
    "LOGGER_NAME",
    "RESOURCE_DIR",
    "configure_logging",
    "get_logger",
    "load_app_settings",
    "load_named_config",
    "logger",
    "tag_column",
]
