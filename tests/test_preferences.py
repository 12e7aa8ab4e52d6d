"""Tests for the preference store and theme persistence."""

import json

from rehearsal_coach.models.enums import Theme
from rehearsal_coach.services.preferences import THEME_KEY, PreferenceStore, ThemeManager


class TestThemeManager:
    def test_defaults_to_dark(self, tmp_path):
        manager = ThemeManager(PreferenceStore(str(tmp_path / "prefs.json")))
        assert manager.theme == Theme.DARK

    def test_toggle_persists_under_theme_key(self, tmp_path):
        prefs_file = tmp_path / "prefs.json"
        manager = ThemeManager(PreferenceStore(str(prefs_file)))

        assert manager.toggle() == Theme.LIGHT

        assert json.loads(prefs_file.read_text(encoding="utf-8")) == {THEME_KEY: "light"}
        assert THEME_KEY == "hexatech_theme"

    def test_saved_theme_is_read_at_boot(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "prefs.json"))
        store.set(THEME_KEY, "light")

        assert ThemeManager(store).theme == Theme.LIGHT

    def test_unknown_saved_theme_falls_back(self, tmp_path, caplog):
        store = PreferenceStore(str(tmp_path / "prefs.json"))
        store.set(THEME_KEY, "sepia")

        with caplog.at_level("WARNING"):
            manager = ThemeManager(store, default=Theme.LIGHT)

        assert manager.theme == Theme.LIGHT
        assert "sepia" in caplog.text


class TestPreferenceStore:
    def test_keeps_other_keys(self, tmp_path):
        store = PreferenceStore(str(tmp_path / "prefs.json"))
        store.set("other", "value")
        store.set(THEME_KEY, "dark")

        assert store.get("other") == "value"
        assert store.get(THEME_KEY) == "dark"

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        prefs_file = tmp_path / "prefs.json"
        prefs_file.write_text("[[", encoding="utf-8")

        assert PreferenceStore(str(prefs_file)).get(THEME_KEY, "dark") == "dark"
