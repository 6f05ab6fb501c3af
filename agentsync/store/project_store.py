"""Canonical project documents under ``<home>/projects/``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from agentsync.models.project import Project, project_from_dict, project_to_dict
from agentsync.store.documents import JsonDocumentStore
from agentsync.store.paths import default_home


class ProjectStore:
    """File-based storage for projects.

    Storage path: ``~/.agentsync/projects/<name>.json``. The store persists
    exactly what it is given; timestamps are stamped by the caller.
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._docs = JsonDocumentStore(home / "projects", kind="project")

    def list_names(self) -> list[str]:
        return self._docs.names()

    def exists(self, name: str) -> bool:
        return self._docs.exists(name)

    def read(self, name: str) -> Project:
        """Load a project. Raises NotFound if it does not exist."""
        return project_from_dict(self._docs.load(name), name=name)

    def save(self, project: Project) -> Project:
        self._docs.dump(project.name, project_to_dict(project))
        return project

    def delete(self, name: str) -> bool:
        return self._docs.delete(name)

    def rename(self, old: str, new: str) -> Project:
        """Move a project document and update its ``name`` field."""
        project = self.read(old)
        self._docs.move(old, new)
        project.name = new
        return self.save(project)
