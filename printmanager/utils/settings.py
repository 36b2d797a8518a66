"""User and environment settings.

User settings (theme, watched project directories) live in ``config.yaml``
inside the per-user configuration directory. Environment settings control
where that directory is and how the thumbnail renderer is invoked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
import logging

import typer
import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from printmanager import APP_NAME

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "config.yaml"
DATABASE_FILE_NAME = f"{APP_NAME}.db"

DEFAULT_THEME = "Nord"
FALLBACK_THEME = "Light"

THEMES = (
    "Light",
    "Dark",
    "Dracula",
    "Nord",
    "Solarized Light",
    "Solarized Dark",
    "Gruvbox Light",
    "Gruvbox Dark",
    "Catppuccin Latte",
    "Catppuccin Frappé",
    "Catppuccin Macchiato",
    "Catppuccin Mocha",
    "Tokyo Night",
    "Tokyo Night Storm",
    "Tokyo Night Light",
    "Kanagawa Wave",
    "Kanagawa Dragon",
    "Kanagawa Lotus",
    "Moonfly",
    "Nightfly",
    "Oxocarbon",
    "Ferra",
)


def default_config_dir() -> Path:
    return Path(typer.get_app_dir(APP_NAME))


class EnvironmentSettings(BaseSettings):
    """Settings read from ``PRINTMANAGER_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="PRINTMANAGER_")

    config_dir: Path = Field(
        default_factory=default_config_dir,
        description="Directory holding config.yaml, the database and logs.",
    )

    thumbnail_tool: str = Field(
        "stl-thumb",
        description="Executable name or path of the model thumbnail renderer.",
    )

    thumbnail_timeout: float = Field(
        120.0,
        description="Seconds to wait for the renderer before giving up.",
    )

    log_level: str = Field("INFO", description="Root log level.")

    @property
    def database_path(self) -> Path:
        return self.config_dir / DATABASE_FILE_NAME

    @property
    def settings_path(self) -> Path:
        return self.config_dir / SETTINGS_FILE_NAME


class Settings(BaseModel):
    """Persisted user preferences."""

    theme: str | None = DEFAULT_THEME
    print_paths: list[str] = Field(default_factory=list)

    def add_print_path(self, path: str) -> bool:
        """Add a watched directory. Returns False if it was already present."""
        if path in self.print_paths:
            return False
        self.print_paths.append(path)
        return True

    def remove_print_path(self, path: str) -> bool:
        if path not in self.print_paths:
            return False
        self.print_paths = [p for p in self.print_paths if p != path]
        return True

    def print_paths_empty(self) -> bool:
        return not self.print_paths

    def set_theme(self, theme: str) -> None:
        self.theme = theme

    def get_theme(self) -> str:
        if self.theme in THEMES:
            return self.theme
        return FALLBACK_THEME


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file must be a mapping: {path}")
    return data


def load_settings(config_dir: Path) -> Settings:
    """Load user settings, falling back to defaults for a missing file."""
    data = _load_yaml(config_dir / SETTINGS_FILE_NAME)
    settings = Settings.model_validate(data)
    if settings.theme is None:
        settings.theme = DEFAULT_THEME
    # Older files may carry duplicates; watched roots are a set.
    settings.print_paths = list(dict.fromkeys(settings.print_paths))
    return settings


def save_settings(settings: Settings, config_dir: Path) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / SETTINGS_FILE_NAME
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(settings.model_dump(), handle, sort_keys=False, allow_unicode=True)
    logger.info(f"Saved settings to {path}")
    return path
