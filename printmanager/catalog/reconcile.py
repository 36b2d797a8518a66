"""Project directory scanning and file reconciliation.

Every immediate subdirectory of a watched root is a project. Directories
below that are project content, never sub-projects. A project's known files
are kept equal to the files on disk, excluding the thumbnail cache directory.

Projects whose directory disappears are left in the catalog; only their
files are pruned the next time they are synced.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Tuple
import logging
import os

from printmanager.catalog.thumbnails import CACHE_DIR_NAME
from printmanager.storage.manager import FileSyncResult, StorageManager
from printmanager.storage.models import Project

logger = logging.getLogger(__name__)


def should_ignore(name: str) -> bool:
    """Check if a directory is reserved for generated artifacts."""
    return name == CACHE_DIR_NAME


@dataclass
class ScanResult:
    """What a scan created and synced, and which paths could not be read."""

    created: List[Project] = field(default_factory=list)
    synced: Dict[int, FileSyncResult] = field(default_factory=dict)
    errors: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created) or any(r.changed for r in self.synced.values())

    def merge(self, other: "ScanResult") -> None:
        self.created.extend(other.created)
        self.synced.update(other.synced)
        self.errors.extend(other.errors)


def _raise_walk_error(error: OSError) -> None:
    raise error


def list_project_files(project_path: "str | Path") -> List[str]:
    """Absolute paths of all files under a project directory, sorted.

    Raises:
        OSError: If the project directory or one of its subdirectories
            cannot be read
    """
    files = []
    for root, dirs, filenames in os.walk(project_path, onerror=_raise_walk_error):
        # Filter out the thumbnail cache
        dirs[:] = [d for d in dirs if not should_ignore(d)]
        root_path = Path(root)
        files.extend(str(root_path / f) for f in filenames)
    return sorted(files)


def sync_project_files(storage: StorageManager, project: Project) -> FileSyncResult:
    """Bring a project's stored files in line with its directory."""
    return storage.update_project_files(project, list_project_files(project.path))


def list_project_dirs(root: "str | Path") -> List[Path]:
    """Immediate subdirectories of a watched root, sorted by name."""
    root_path = Path(root).expanduser().absolute()
    with os.scandir(root_path) as entries:
        dirs = [
            root_path / entry.name
            for entry in entries
            if entry.is_dir() and not should_ignore(entry.name)
        ]
    return sorted(dirs)


def scan_project_dir(
    storage: StorageManager, root: "str | Path", refresh: bool = False
) -> ScanResult:
    """Create projects for new subdirectories of ``root`` and sync their files.

    Args:
        storage: Catalog storage
        root: Watched root directory
        refresh: Also re-sync files of projects that already exist
    """
    result = ScanResult()
    try:
        project_dirs = list_project_dirs(root)
    except OSError as e:
        logger.warning(f"Cannot read project directory {root}: {e}")
        result.errors.append((str(root), str(e)))
        return result

    for project_dir in project_dirs:
        logger.debug(
            f"Scanning project directory {project_dir}. The project name is {project_dir.name}"
        )
        project = storage.find_project_by_path(str(project_dir))
        if project is None:
            project = storage.create_project(project_dir.name, str(project_dir))
            result.created.append(project)
        elif not refresh:
            continue

        try:
            result.synced[project.id] = sync_project_files(storage, project)
        except OSError as e:
            logger.warning(f"Cannot read files of project {project_dir}: {e}")
            result.errors.append((str(project_dir), str(e)))

    return result


def scan_project_dirs(
    storage: StorageManager, roots: Iterable["str | Path"], refresh: bool = False
) -> ScanResult:
    """Scan every watched root directory."""
    result = ScanResult()
    for root in roots:
        result.merge(scan_project_dir(storage, root, refresh=refresh))

    logger.info(
        f"Scan complete: {len(result.created)} new projects, "
        f"{len(result.synced)} synced, {len(result.errors)} errors"
    )
    return result
