"""Notes for project files.

Text-type files carry their notes as their own content, so reading and
saving notes goes to disk for them. Every other file keeps its notes in the
catalog.
"""

from pathlib import Path

from printmanager.catalog.filetypes import is_text_type
from printmanager.storage.manager import StorageManager
from printmanager.storage.models import ProjectFile


def read_file_notes(project_file: ProjectFile) -> str:
    """Notes shown for a file.

    Raises:
        OSError: If a text file cannot be read
    """
    if is_text_type(project_file.path):
        return Path(project_file.path).read_text(encoding="utf-8", errors="replace")
    return project_file.notes or ""


def save_file_notes(
    storage: StorageManager, project_file: ProjectFile, text: str
) -> ProjectFile:
    """Save notes for a file, writing text files in place.

    Raises:
        OSError: If a text file cannot be written
    """
    if is_text_type(project_file.path):
        Path(project_file.path).write_text(text, encoding="utf-8")
        return project_file

    project_file.notes = text
    return storage.update_project_file(project_file)
