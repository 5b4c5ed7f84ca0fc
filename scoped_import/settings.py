"""Settings for the import engine.

Manages three-scope settings system:
- User global (~/.scoped_import/settings.yaml)
- Project (.scoped_import/settings.yaml)
- Local (.scoped_import/settings.local.yaml)

Environment variables (SCOPED_IMPORT_FINGERPRINT, SCOPED_IMPORT_DEFAULT_INTO)
override all file scopes.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import field_validator

logger = logging.getLogger(__name__)

DEFAULT_INTO = "imports"

ENV_OVERRIDES = {
    "SCOPED_IMPORT_FINGERPRINT": "fingerprint",
    "SCOPED_IMPORT_DEFAULT_INTO": "default_into",
}


class FingerprintMode(str, Enum):
    """How module content changes are detected.

    Modes:
    - MTIME: modification time plus size (cheap, can miss fast edits)
    - HASH: SHA-256 of the file contents
    """

    MTIME = "mtime"
    HASH = "hash"


class ImportSettings(BaseModel):
    """Engine configuration."""

    fingerprint: FingerprintMode = Field(
        default=FingerprintMode.HASH, description="Module change detection: 'mtime' or 'hash'"
    )
    default_into: str = Field(default=DEFAULT_INTO, description="Registered namespace used when none is named")
    module_suffixes: list[str] = Field(
        default_factory=lambda: [".py"], description="File suffixes that mark a source token as a module path"
    )

    @field_validator("default_into")
    @classmethod
    def _check_default_into(cls, value: str) -> str:
        if not value:
            raise ValueError("default_into must be a non-empty namespace name")
        return value

    @field_validator("module_suffixes")
    @classmethod
    def _check_suffixes(cls, value: list[str]) -> list[str]:
        return [s if s.startswith(".") else f".{s}" for s in value]


class SettingsManager:
    """Reads import settings across user/project/local scopes."""

    def __init__(self, settings_dir: Path | None = None, user_settings_file: Path | None = None):
        """Initialize settings manager with standard paths.

        Args:
            settings_dir: Base directory for project/local settings (for testing).
                          If None, uses .scoped_import in current directory.
            user_settings_file: User settings file (for testing).
                          If None, uses ~/.scoped_import/settings.yaml.
        """
        if settings_dir is None:
            settings_dir = Path(".scoped_import")

        self.user_settings_file = user_settings_file or Path.home() / ".scoped_import" / "settings.yaml"
        self.project_settings_file = settings_dir / "settings.yaml"
        self.local_settings_file = settings_dir / "settings.local.yaml"

    def load(self) -> ImportSettings:
        """Build validated settings from all scopes plus environment overrides.

        Returns:
            ImportSettings instance

        Raises:
            pydantic.ValidationError: A scope holds an invalid value
        """
        section = self.get_merged_settings().get("imports") or {}
        if not isinstance(section, dict):
            logger.warning(f"Ignoring 'imports' settings: expected a mapping, got {type(section).__name__}")
            section = {}

        for env_key, field_name in ENV_OVERRIDES.items():
            if env_value := os.getenv(env_key):
                logger.debug(f"[import:settings] {field_name} overridden by {env_key}={env_value}")
                section[field_name] = env_value

        return ImportSettings.model_validate(section)

    def get_merged_settings(self) -> dict[str, Any]:
        """Get merged settings from all scopes.

        Merge order (later overrides earlier):
        1. User settings
        2. Project settings
        3. Local settings

        Returns:
            Merged settings dictionary
        """
        merged: dict[str, Any] = {}
        for path in (self.user_settings_file, self.project_settings_file, self.local_settings_file):
            data = self._read_settings(path)
            if data:
                merged = self._deep_merge(merged, data)
        return merged

    def _read_settings(self, path: Path) -> dict[str, Any] | None:
        """Read settings from YAML file.

        Args:
            path: Path to settings file

        Returns:
            Settings dict or None if file doesn't exist
        """
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning(f"Failed to read settings from {path}: {e}")
            return None

        if data is not None and not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {path}: top level is not a mapping")
            return None
        return data or {}

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries (overlay takes precedence)."""
        result = base.copy()

        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def load_settings(settings_dir: Path | None = None) -> ImportSettings:
    """Load settings using the standard scope locations."""
    return SettingsManager(settings_dir=settings_dir).load()
