"""Tests for the command line interface."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from printmanager.catalog.thumbnails import CACHE_DIR_NAME
from printmanager.cli import app
from printmanager.storage.manager import StorageManager
from printmanager.utils.settings import load_settings

runner = CliRunner()


@pytest.fixture(autouse=True)
def environment(monkeypatch, config_dir: Path):
    monkeypatch.setenv("PRINTMANAGER_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("PRINTMANAGER_THUMBNAIL_TOOL", "no-such-renderer-on-path")


@pytest.fixture
def cataloged(models_root: Path):
    """A catalog with the Vase project scanned in."""
    result = runner.invoke(app, ["settings", "add-dir", str(models_root)])
    assert result.exit_code == 0, result.output
    result = runner.invoke(app, ["scan"])
    assert result.exit_code == 0, result.output
    return models_root


def _file_id(config_dir: Path, name: str) -> int:
    storage = StorageManager(config_dir)
    try:
        project = storage.get_filtered_projects()[0]
        return next(f.id for f in project.files if f.name == name)
    finally:
        storage.close()


class TestSettingsCommands:
    def test_add_dir_persists(self, models_root: Path, config_dir: Path):
        result = runner.invoke(app, ["settings", "add-dir", str(models_root)])

        assert result.exit_code == 0
        assert load_settings(config_dir).print_paths == [str(models_root)]

        again = runner.invoke(app, ["settings", "add-dir", str(models_root)])
        assert "Already watching" in again.output

    def test_add_missing_dir_rejected(self, tmp_path: Path):
        result = runner.invoke(app, ["settings", "add-dir", str(tmp_path / "nope")])
        assert result.exit_code != 0

    def test_remove_dir(self, cataloged: Path, config_dir: Path):
        result = runner.invoke(app, ["settings", "remove-dir", str(cataloged)])

        assert result.exit_code == 0
        assert load_settings(config_dir).print_paths == []

        result = runner.invoke(app, ["settings", "remove-dir", str(cataloged)])
        assert result.exit_code == 1

    def test_theme(self, config_dir: Path):
        assert runner.invoke(app, ["settings", "theme", "Dracula"]).exit_code == 0
        assert load_settings(config_dir).get_theme() == "Dracula"

        result = runner.invoke(app, ["settings", "theme", "Neon"])
        assert result.exit_code == 1
        assert "Unknown theme" in result.output

    def test_show(self, cataloged: Path):
        result = runner.invoke(app, ["settings", "show"])
        assert "Theme: Nord" in result.output
        assert str(cataloged) in result.output


class TestScanAndList:
    def test_scan_without_dirs_fails(self):
        result = runner.invoke(app, ["scan"])
        assert result.exit_code == 1
        assert "No project directories" in result.output

    def test_scan_creates_projects_once(self, models_root: Path):
        runner.invoke(app, ["settings", "add-dir", str(models_root)])

        first = runner.invoke(app, ["scan"])
        second = runner.invoke(app, ["scan", "--refresh"])

        assert "+ Vase" in first.output
        assert "Scan complete: 1 new projects." in first.output
        assert "Scan complete: 0 new projects." in second.output

    def test_list_with_filters(self, cataloged: Path):
        runner.invoke(app, ["tag", "add", "1", "Printed"])

        assert "Vase" in runner.invoke(app, ["list"]).output
        assert "1 projects" in runner.invoke(app, ["list", "--name", "vas"]).output
        assert "0 projects" in runner.invoke(app, ["list", "--name", "bowl"]).output
        assert "[Printed]" in runner.invoke(app, ["list", "-t", "Printed"]).output
        assert "0 projects" in runner.invoke(app, ["list", "-t", "Printed", "-t", "Resin"]).output
        assert "1 projects" in runner.invoke(app, ["list", "-t", " Printed"]).output


class TestProjectCommands:
    def test_show(self, cataloged: Path):
        result = runner.invoke(app, ["show", "1"])

        assert result.exit_code == 0
        assert "Vase" in result.output
        assert "vase.stl" in result.output
        assert "model" in result.output
        assert CACHE_DIR_NAME not in result.output

    def test_show_missing_project(self, cataloged: Path):
        result = runner.invoke(app, ["show", "42"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_notes(self, cataloged: Path):
        runner.invoke(app, ["notes", "1", "Printed in PETG"])
        assert "Printed in PETG" in runner.invoke(app, ["show", "1"]).output

    def test_thumbnail_uses_cache(self, cataloged: Path):
        result = runner.invoke(app, ["thumbnail", "1"])

        assert result.exit_code == 0
        assert str(cataloged / "Vase" / CACHE_DIR_NAME / "vase.stl.png") in result.output

    def test_tags(self, cataloged: Path):
        result = runner.invoke(app, ["tag", "add", "1", "Printed"])
        assert "Vase: Printed" in result.output

        result = runner.invoke(app, ["tag", "remove", "1", "Printed"])
        assert result.exit_code == 0
        assert "Printed" in runner.invoke(app, ["tag", "list"]).output

        result = runner.invoke(app, ["tag", "remove", "1", "Resin"])
        assert result.exit_code == 1

    def test_empty_tag_rejected(self, cataloged: Path):
        assert runner.invoke(app, ["tag", "add", "1", "  "]).exit_code == 1

    def test_source_add(self, cataloged: Path):
        runner.invoke(app, ["source", "add", "1", "Printables", "https://example.com/vase"])
        assert "Printables: https://example.com/vase" in runner.invoke(app, ["show", "1"]).output

    def test_file_default(self, cataloged: Path, config_dir: Path):
        file_id = _file_id(config_dir, "vase.stl")

        result = runner.invoke(app, ["file", "default", str(file_id)])

        assert result.exit_code == 0
        assert f"*{file_id:>5}" in runner.invoke(app, ["show", "1"]).output

    def test_file_notes(self, cataloged: Path, config_dir: Path):
        notes_id = _file_id(config_dir, "notes.txt")

        runner.invoke(app, ["file", "notes", str(notes_id), "use brim"])

        assert (cataloged / "Vase" / "notes.txt").read_text() == "use brim"
        assert runner.invoke(app, ["file", "notes", str(notes_id)]).output.strip() == "use brim"

    def test_open(self, cataloged: Path, monkeypatch):
        launched = []
        monkeypatch.setattr("printmanager.cli.typer.launch", launched.append)

        result = runner.invoke(app, ["open", str(cataloged / "Vase")])

        assert result.exit_code == 0
        assert launched == [str(cataloged / "Vase")]
