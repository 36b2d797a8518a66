"""Application state machine.

The presentation layer renders ``CatalogApp.state`` and feeds user intents
back through ``CatalogApp.dispatch``. There are three states: Browsing,
ProjectDetail and Settings. Each state owns only the data its screen needs;
the user settings are shared read-only and replaced only when a settings
draft is saved.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, FrozenSet, List
import logging

import typer

from printmanager.app import intents
from printmanager.catalog.notes import save_file_notes
from printmanager.catalog.reconcile import scan_project_dirs, sync_project_files
from printmanager.catalog.thumbnails import ThumbnailRenderer, project_image_path
from printmanager.storage.errors import CatalogError, ProjectFileNotFoundError
from printmanager.storage.manager import StorageManager
from printmanager.storage.models import Project, ProjectTag
from printmanager.utils.settings import Settings, save_settings

logger = logging.getLogger(__name__)

NO_PROJECT_DIRS_WARNING = "Please add print project directories in the settings page."
NO_RENDERER_WARNING = (
    "The thumbnail renderer was not found on your PATH; "
    "model thumbnails will not be generated."
)


@dataclass
class BrowsingState:
    projects: List[Project]
    all_tags: List[ProjectTag]
    name_filter: str = ""
    tag_filter: FrozenSet[str] = frozenset()


@dataclass
class ProjectDetailState:
    project: Project
    image_path: Path | None
    back: BrowsingState


@dataclass
class SettingsState:
    draft: Settings
    back: BrowsingState


State = BrowsingState | ProjectDetailState | SettingsState


class CatalogApp:
    """Routes intents to the catalog and tracks the current screen state."""

    def __init__(
        self,
        storage: StorageManager,
        settings: Settings,
        renderer: ThumbnailRenderer,
        config_dir: Path,
        opener: Callable[[str], object] = typer.launch,
    ):
        self.storage = storage
        self.settings = settings
        self.renderer = renderer
        self.config_dir = config_dir
        self.opener = opener
        self.last_error: str | None = None
        self._warnings: List[str] = []

        if settings.print_paths_empty():
            self._warnings.append(NO_PROJECT_DIRS_WARNING)
        if not renderer.available:
            self._warnings.append(NO_RENDERER_WARNING)

        self._handlers = {
            intents.ShowBrowsing: self._show_browsing,
            intents.ShowSettings: self._show_settings,
            intents.ScanProjectDirs: self._scan_project_dirs,
            intents.FilterChanged: self._filter_changed,
            intents.FilterTagToggle: self._filter_tag_toggle,
            intents.SelectProject: self._select_project,
            intents.OpenPath: self._open_path,
            intents.RenameProject: self._rename_project,
            intents.SaveProjectNotes: self._save_project_notes,
            intents.AddTag: self._add_tag,
            intents.RemoveTag: self._remove_tag,
            intents.AddSource: self._add_source,
            intents.SetDefaultFile: self._set_default_file,
            intents.SaveFileNotes: self._save_file_notes,
            intents.SetTheme: self._set_theme,
            intents.AddProjectDirectory: self._add_project_directory,
            intents.RemoveProjectDirectory: self._remove_project_directory,
            intents.SaveSettings: self._save_settings,
            intents.CancelSettings: self._cancel_settings,
        }

        self.state: State = self._browse()

    def take_warnings(self) -> List[str]:
        """Return the one-time startup warnings and clear them."""
        warnings, self._warnings = self._warnings, []
        return warnings

    def dispatch(self, intent) -> State:
        """Apply one intent and return the resulting state.

        Catalog and I/O errors are recorded in ``last_error`` and leave the
        current state unchanged.
        """
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"Unknown intent: {intent!r}")

        self.last_error = None
        try:
            new_state = handler(intent)
        except (CatalogError, OSError, ValueError) as e:
            logger.error(f"{type(intent).__name__} failed: {e}")
            self.last_error = str(e)
            return self.state

        if new_state is not None:
            self.state = new_state
        return self.state

    # Helpers

    def _browse(self, name_filter: str = "", tag_filter: FrozenSet[str] = frozenset()) -> BrowsingState:
        projects = self.storage.get_filtered_projects(name=name_filter, tags=tag_filter)
        logger.info(f"There are {len(projects)} projects")
        return BrowsingState(
            projects=projects,
            all_tags=self.storage.list_all_tags(),
            name_filter=name_filter,
            tag_filter=tag_filter,
        )

    def _refresh(self, browsing: BrowsingState) -> BrowsingState:
        return self._browse(browsing.name_filter, browsing.tag_filter)

    def _detail(self, project: Project, back: BrowsingState) -> ProjectDetailState:
        return ProjectDetailState(
            project=project,
            image_path=project_image_path(project, self.renderer),
            back=back,
        )

    def _expect(self, state_type, intent) -> bool:
        if isinstance(self.state, state_type):
            return True
        logger.debug(
            f"Ignoring {type(intent).__name__} in {type(self.state).__name__}"
        )
        return False

    def _back(self) -> BrowsingState:
        if isinstance(self.state, BrowsingState):
            return self.state
        return self.state.back

    # Screen switching

    def _show_browsing(self, intent: intents.ShowBrowsing) -> State:
        return self._refresh(self._back())

    def _show_settings(self, intent: intents.ShowSettings) -> State:
        return SettingsState(draft=self.settings.model_copy(deep=True), back=self._back())

    # Browsing

    def _scan_project_dirs(self, intent: intents.ScanProjectDirs) -> State | None:
        if not self._expect(BrowsingState, intent):
            return None
        result = scan_project_dirs(
            self.storage, self.settings.print_paths, refresh=intent.refresh
        )
        if result.errors:
            self.last_error = "; ".join(f"{path}: {message}" for path, message in result.errors)
        return self._refresh(self.state)

    def _filter_changed(self, intent: intents.FilterChanged) -> State | None:
        if not self._expect(BrowsingState, intent):
            return None
        return self._browse(intent.text, self.state.tag_filter)

    def _filter_tag_toggle(self, intent: intents.FilterTagToggle) -> State | None:
        if not self._expect(BrowsingState, intent):
            return None
        tags = set(self.state.tag_filter)
        tags.symmetric_difference_update({intent.tag})
        return self._browse(self.state.name_filter, frozenset(tags))

    def _select_project(self, intent: intents.SelectProject) -> State | None:
        if not self._expect(BrowsingState, intent):
            return None
        project = self.storage.get_project(intent.project_id)
        sync_project_files(self.storage, project)
        return self._detail(self.storage.get_project(project.id), self.state)

    # Project detail

    def _open_path(self, intent: intents.OpenPath) -> None:
        self.opener(intent.path)
        logger.info(f"Opened {intent.path!r}")

    def _update_project(self, name: str | None = None, notes: str | None = None) -> State:
        # Edits go to a copy; the shown project changes only once saved.
        project = self.state.project
        edited = Project(
            id=project.id,
            name=project.name if name is None else name,
            path=project.path,
            notes=project.notes if notes is None else notes,
        )
        return self._detail(self.storage.update_project(edited), self.state.back)

    def _rename_project(self, intent: intents.RenameProject) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        return self._update_project(name=intent.name)

    def _save_project_notes(self, intent: intents.SaveProjectNotes) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        return self._update_project(notes=intent.notes)

    def _add_tag(self, intent: intents.AddTag) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        project = self.storage.add_tag_to_project(self.state.project, intent.text)
        return self._detail(project, self.state.back)

    def _remove_tag(self, intent: intents.RemoveTag) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        tag = self.storage.get_tag(intent.tag_id)
        project = self.storage.remove_tag_from_project(self.state.project, tag)
        return self._detail(project, self.state.back)

    def _add_source(self, intent: intents.AddSource) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        project = self.storage.add_source(self.state.project, intent.name, intent.url)
        return self._detail(project, self.state.back)

    def _project_file(self, file_id: int):
        for project_file in self.state.project.files:
            if project_file.id == file_id:
                return project_file
        raise ProjectFileNotFoundError(file_id)

    def _set_default_file(self, intent: intents.SetDefaultFile) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        self.storage.set_default_file(self._project_file(intent.file_id))
        project = self.storage.get_project(self.state.project.id)
        return self._detail(project, self.state.back)

    def _save_file_notes(self, intent: intents.SaveFileNotes) -> State | None:
        if not self._expect(ProjectDetailState, intent):
            return None
        save_file_notes(self.storage, self._project_file(intent.file_id), intent.text)
        project = self.storage.get_project(self.state.project.id)
        return self._detail(project, self.state.back)

    # Settings

    def _set_theme(self, intent: intents.SetTheme) -> None:
        if self._expect(SettingsState, intent):
            self.state.draft.set_theme(intent.theme)

    def _add_project_directory(self, intent: intents.AddProjectDirectory) -> None:
        if self._expect(SettingsState, intent):
            self.state.draft.add_print_path(intent.path)

    def _remove_project_directory(self, intent: intents.RemoveProjectDirectory) -> None:
        if self._expect(SettingsState, intent):
            self.state.draft.remove_print_path(intent.path)

    def _save_settings(self, intent: intents.SaveSettings) -> State | None:
        if not self._expect(SettingsState, intent):
            return None
        save_settings(self.state.draft, self.config_dir)
        self.settings = self.state.draft
        return self._refresh(self.state.back)

    def _cancel_settings(self, intent: intents.CancelSettings) -> State | None:
        if not self._expect(SettingsState, intent):
            return None
        return self._refresh(self.state.back)
