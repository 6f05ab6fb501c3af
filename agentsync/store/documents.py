"""A directory of named JSON documents, one file per name."""

from __future__ import annotations

import json
import os
from pathlib import Path

from agentsync.errors import NotFound, ValidationError
from agentsync.store.paths import require_valid_name


class JsonDocumentStore:
    """CRUD over ``<directory>/<name>.json`` files."""

    SUFFIX = ".json"

    def __init__(self, directory: str | Path, kind: str = "document") -> None:
        self.directory = Path(directory)
        self.kind = kind

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _path(self, name: str) -> Path:
        require_valid_name(name, self.kind)
        return self.directory / f"{name}{self.SUFFIX}"

    def _read_json(self, path: Path) -> dict:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValidationError(f"Corrupt {self.kind} file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Corrupt {self.kind} file {path}: not a JSON object")
        return data

    def _write_json(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp, path)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def names(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob(f"*{self.SUFFIX}") if p.is_file())

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def load(self, name: str) -> dict:
        path = self._path(name)
        if not path.is_file():
            raise NotFound(f"{self.kind.capitalize()} not found: {name}")
        return self._read_json(path)

    def dump(self, name: str, data: dict) -> Path:
        path = self._path(name)
        self._write_json(path, data)
        return path

    def delete(self, name: str) -> bool:
        path = self._path(name)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def move(self, old: str, new: str) -> None:
        """Rename a document file. Raises if the source is missing or the target taken."""
        src = self._path(old)
        dst = self._path(new)
        if not src.is_file():
            raise NotFound(f"{self.kind.capitalize()} not found: {old}")
        if old != new and dst.exists():
            raise ValidationError(f"{self.kind.capitalize()} already exists: {new}")
        os.replace(src, dst)
