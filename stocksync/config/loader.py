from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.errors import SettingsError

"""Settings loader.

Responsibilities:
- Load the YAML settings file (missing file -> defaults)
- Validate it against settings_schema.json
- Apply environment overrides (STOCKSYNC_USER)
- Persist changes back to the same file

The settings object is passed explicitly to the services; there is no module
level singleton.
"""

__all__ = [
    "ConfigError",
    "Settings",
    "SettingsStore",
    "SCHEMA_PATH",
    "DEFAULT_SETTINGS_PATH",
    "ENV_SETTINGS_PATH",
    "ENV_USER",
    "NEVER_SYNCED",
    "default_settings_path",
    "load_settings",
    "save_settings",
]

SCHEMA_PATH = Path(__file__).with_name("settings_schema.json")
DEFAULT_SETTINGS_PATH = Path.home() / ".config" / "stocksync" / "settings.yml"

ENV_SETTINGS_PATH = "STOCKSYNC_SETTINGS"
ENV_USER = "STOCKSYNC_USER"

NEVER_SYNCED = "Never"


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    permanent_file: str = ""
    cloud_folder: str = ""
    sync_enabled: bool = False
    current_user: str = "User"
    user_role: str = "editor"  # owner | editor | viewer
    last_sync_time: str = NEVER_SYNCED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def default_settings_path() -> Path:
    env = os.getenv(ENV_SETTINGS_PATH)
    if env:
        return Path(env).expanduser()
    return DEFAULT_SETTINGS_PATH


def _validate_settings_schema(data: dict[str, Any]) -> None:
    """Validate settings data against the JSON schema.

    Raises:
        ConfigError: schema file missing / invalid, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"settings schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"settings validation failed: {e.message}") from e


def load_settings(path: Path) -> Settings:
    if not path.exists():
        settings = Settings()
    else:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid yaml: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"settings file must contain a mapping: {path}")
        _validate_settings_schema(data)
        settings = Settings(**data)

    user = os.getenv(ENV_USER)
    if user:
        settings.current_user = user
    return settings


def save_settings(settings: Settings, path: Path) -> None:
    data = settings.to_dict()
    _validate_settings_schema(data)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=True, allow_unicode=True), encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to write settings {path}: {e}") from e


class SettingsStore:
    """Settings bound to the file they were loaded from.

    Services read ``store.settings`` and call ``store.save()`` after changing it.
    A store created with ``path=None`` keeps everything in memory.
    """

    def __init__(self, path: Path | None = None, settings: Settings | None = None) -> None:
        self.path = path
        self.settings = settings if settings is not None else Settings()

    @classmethod
    def load(cls, path: Path | None = None) -> SettingsStore:
        target = path if path is not None else default_settings_path()
        return cls(target, load_settings(target))

    def save(self) -> None:
        """Persist the settings.

        Raises:
            SettingsError: the settings are invalid or the file could not be written
        """
        if self.path is None:
            return
        try:
            save_settings(self.settings, self.path)
        except ConfigError as e:
            raise SettingsError(str(e)) from e
