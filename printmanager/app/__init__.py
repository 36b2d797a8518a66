"""Screen state machine driven by user intents."""

from printmanager.app.state import (
    BrowsingState,
    CatalogApp,
    ProjectDetailState,
    SettingsState,
)

__all__ = ["BrowsingState", "CatalogApp", "ProjectDetailState", "SettingsState"]
