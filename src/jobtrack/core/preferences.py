from __future__ import annotations

import json
import logging
from pathlib import Path

from jobtrack.core.constants import VIEW_MODES
from jobtrack.types import ViewMode

logger = logging.getLogger(__name__)

VIEW_MODE_KEY = "view_mode"


class ViewPreferences:
    """Local key/value preferences; never synced to the store."""

    def __init__(self, path: Path):
        self.path = path

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def load_view_mode(self) -> ViewMode:
        value = self._read().get(VIEW_MODE_KEY)
        return "kanban" if value == "kanban" else "list"

    def set_view_mode(self, mode: ViewMode) -> ViewMode:
        if mode not in VIEW_MODES:
            raise ValueError(f"unknown view mode '{mode}'")
        data = self._read()
        data[VIEW_MODE_KEY] = mode
        self._write(data)
        return mode

    def toggle_view_mode(self) -> ViewMode:
        return self.set_view_mode("kanban" if self.load_view_mode() == "list" else "list")
