"""Global settings document at ``<home>/settings.json``."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from agentsync.models.project import Settings, settings_from_dict, settings_to_dict
from agentsync.store.paths import default_home

logger = logging.getLogger(__name__)


class SettingsStore:
    """Reads and writes the settings document. Missing or corrupt files yield defaults."""

    FILENAME = "settings.json"

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._path = home / self.FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> Settings:
        if not self._path.exists():
            return Settings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self._path, e)
            return Settings()
        return settings_from_dict(data if isinstance(data, dict) else {})

    def save(self, settings: Settings) -> Settings:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(settings_to_dict(settings), indent=2) + "\n", encoding="utf-8")
        return settings
