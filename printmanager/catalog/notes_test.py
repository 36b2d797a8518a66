from pathlib import Path

from printmanager.catalog.notes import read_file_notes, save_file_notes
from printmanager.catalog.reconcile import scan_project_dir


def _files_by_name(storage_manager, models_root: Path):
    project = storage_manager.find_project_by_path(str(models_root / "Vase"))
    return {f.name: f for f in project.files}


class TestFileNotes:
    def test_text_file_notes_are_its_content(self, storage_manager, models_root: Path):
        scan_project_dir(storage_manager, models_root)
        notes_file = _files_by_name(storage_manager, models_root)["notes.txt"]

        assert read_file_notes(notes_file) == "content of notes.txt"

        save_file_notes(storage_manager, notes_file, "0.2mm, no supports")

        assert (models_root / "Vase" / "notes.txt").read_text() == "0.2mm, no supports"
        assert storage_manager.get_project_file(notes_file.id).notes == ""

    def test_model_file_notes_are_stored(self, storage_manager, models_root: Path):
        scan_project_dir(storage_manager, models_root)
        model = _files_by_name(storage_manager, models_root)["vase.stl"]

        saved = save_file_notes(storage_manager, model, "scale 120%")

        assert saved.notes == "scale 120%"
        assert read_file_notes(storage_manager.get_project_file(model.id)) == "scale 120%"
        assert (models_root / "Vase" / "vase.stl").read_text() == "content of vase.stl"
