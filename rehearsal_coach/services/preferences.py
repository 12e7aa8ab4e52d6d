"""Key-value preference persistence and the shell theme."""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.enums import Theme
from ..utils.exceptions import StorageError
from ..utils.logging import get_logger

THEME_KEY = "hexatech_theme"


class PreferenceStore:
    """Small JSON-backed key-value store."""

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)
        self.logger = get_logger("preferences")

    def _read_all(self) -> Dict[str, Any]:
        if not self.file_path.exists():
            return {}
        try:
            data = json.loads(self.file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            self.logger.warning(f"Ignoring unreadable preferences file {self.file_path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._read_all().get(key, default)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self.file_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write preferences: {e}", file_path=str(self.file_path))


class ThemeManager:
    """Reads the theme once at boot and writes it back on every toggle."""

    def __init__(self, store: PreferenceStore, default: Theme = Theme.DARK):
        self.store = store
        self._theme = default
        saved = store.get(THEME_KEY)
        if saved:
            try:
                self._theme = Theme(saved)
            except ValueError:
                store.logger.warning(f"Unknown saved theme {saved!r}, using {default.value}")

    @property
    def theme(self) -> Theme:
        return self._theme

    def toggle(self) -> Theme:
        self._theme = self._theme.toggled()
        self.store.set(THEME_KEY, self._theme.value)
        return self._theme
