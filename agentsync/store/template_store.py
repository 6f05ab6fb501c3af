"""Project templates under ``<home>/templates/``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from agentsync.models.project import ProjectTemplate, template_from_dict, template_to_dict
from agentsync.store.documents import JsonDocumentStore
from agentsync.store.paths import default_home


class TemplateStore:
    """File-based storage for project templates."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._docs = JsonDocumentStore(home / "templates", kind="template")

    def list_names(self) -> list[str]:
        return self._docs.names()

    def exists(self, name: str) -> bool:
        return self._docs.exists(name)

    def read(self, name: str) -> ProjectTemplate:
        return template_from_dict(self._docs.load(name), name=name)

    def save(self, template: ProjectTemplate) -> ProjectTemplate:
        self._docs.dump(template.name, template_to_dict(template))
        return template

    def delete(self, name: str) -> bool:
        return self._docs.delete(name)

    def rename(self, old: str, new: str) -> ProjectTemplate:
        template = self.read(old)
        self._docs.move(old, new)
        template.name = new
        return self.save(template)
