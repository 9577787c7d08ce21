from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from taskdeck.core.settings_model import SettingsModel


class SettingsStore:
    """Load and persist taskdeck user settings."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        """Read settings from disk, filling in missing sections."""
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                raw = {}
        else:
            raw = {}
        normalized = self._normalize(self._migrate(raw))
        if raw != normalized:
            self.save(normalized)
        return normalized

    def save(self, settings: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(settings, indent=4), encoding="utf-8")

    def update_theme(self, settings: dict[str, Any], theme_name: str) -> None:
        settings.setdefault("userPreferences", {})["theme"] = theme_name
        self.save(settings)

    def update_sort_descending(self, settings: dict[str, Any], value: bool) -> None:
        settings.setdefault("userPreferences", {})["sortDescending"] = bool(value)
        self.save(settings)

    def sort_descending(self, settings: dict[str, Any]) -> bool:
        preferences = settings.get("userPreferences", {})
        return bool(preferences.get("sortDescending", False))

    def _normalize(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            model = SettingsModel.model_validate(data or {})
        except ValidationError:
            model = SettingsModel()
        return model.model_dump()

    def _migrate(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        version = data.get("schemaVersion")
        if not isinstance(version, int) or version < 1:
            data = dict(data)
            data["schemaVersion"] = 1
        return data
