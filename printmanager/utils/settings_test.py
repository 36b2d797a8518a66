from pathlib import Path

import pytest
import yaml

from printmanager.utils.settings import (
    DEFAULT_THEME,
    FALLBACK_THEME,
    EnvironmentSettings,
    Settings,
    load_settings,
    save_settings,
)


class TestSettings:
    def test_defaults(self, config_dir: Path):
        settings = load_settings(config_dir)
        assert settings.get_theme() == DEFAULT_THEME
        assert settings.print_paths_empty()

    def test_round_trip(self, config_dir: Path):
        settings = Settings()
        settings.set_theme("Dracula")
        settings.add_print_path("/models")

        path = save_settings(settings, config_dir)
        loaded = load_settings(config_dir)

        assert path == config_dir / "config.yaml"
        assert loaded.get_theme() == "Dracula"
        assert loaded.print_paths == ["/models"]

    def test_add_print_path_is_a_set(self):
        settings = Settings()
        assert settings.add_print_path("/models")
        assert not settings.add_print_path("/models")
        assert settings.print_paths == ["/models"]

    def test_remove_print_path(self):
        settings = Settings(print_paths=["/a", "/b"])
        assert settings.remove_print_path("/a")
        assert not settings.remove_print_path("/a")
        assert settings.print_paths == ["/b"]

    def test_unknown_theme_falls_back(self):
        assert Settings(theme="Neon").get_theme() == FALLBACK_THEME

    def test_null_theme_loads_default(self, config_dir: Path):
        (config_dir / "config.yaml").write_text("theme: null\nprint_paths: [/a, /a, /b]\n")

        settings = load_settings(config_dir)

        assert settings.theme == DEFAULT_THEME
        assert settings.print_paths == ["/a", "/b"]

    def test_non_mapping_file_rejected(self, config_dir: Path):
        (config_dir / "config.yaml").write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_settings(config_dir)

    def test_saved_file_is_plain_yaml(self, config_dir: Path):
        save_settings(Settings(print_paths=["/models"]), config_dir)
        data = yaml.safe_load((config_dir / "config.yaml").read_text())
        assert data == {"theme": DEFAULT_THEME, "print_paths": ["/models"]}


class TestEnvironmentSettings:
    def test_reads_prefixed_environment(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("PRINTMANAGER_CONFIG_DIR", str(tmp_path))
        monkeypatch.setenv("PRINTMANAGER_THUMBNAIL_TOOL", "my-renderer")
        monkeypatch.setenv("PRINTMANAGER_THUMBNAIL_TIMEOUT", "7.5")

        env = EnvironmentSettings()

        assert env.config_dir == tmp_path
        assert env.thumbnail_tool == "my-renderer"
        assert env.thumbnail_timeout == 7.5
        assert env.database_path == tmp_path / "ThreeDPrintManager.db"
        assert env.settings_path == tmp_path / "config.yaml"
