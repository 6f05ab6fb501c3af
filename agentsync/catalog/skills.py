"""Global skill registry at ``<home>/skills/<id>/SKILL.md``."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Optional

from agentsync.errors import NotFound
from agentsync.store.paths import default_home, require_valid_name

SKILL_FILE = "SKILL.md"


class SkillRegistry:
    """Skill directories keyed by id. A directory counts once it holds a SKILL.md."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self.root = home / "skills"

    def list_names(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if (p / SKILL_FILE).is_file())

    def exists(self, skill_id: str) -> bool:
        return (self.root / skill_id / SKILL_FILE).is_file()

    def skill_dir(self, skill_id: str) -> Path:
        """Directory for a registered skill. Raises NotFound if absent."""
        require_valid_name(skill_id, "skill id")
        path = self.root / skill_id
        if not (path / SKILL_FILE).is_file():
            raise NotFound(f"Skill not found: {skill_id}")
        return path

    def read_skill(self, skill_id: str) -> str:
        return (self.skill_dir(skill_id) / SKILL_FILE).read_text(encoding="utf-8")

    def save_skill(self, skill_id: str, content: str) -> Path:
        require_valid_name(skill_id, "skill id")
        path = self.root / skill_id
        path.mkdir(parents=True, exist_ok=True)
        (path / SKILL_FILE).write_text(content, encoding="utf-8")
        return path

    def import_dir(self, skill_id: str, source: str | Path) -> Path:
        """Copy a whole skill directory into the registry, replacing any previous copy."""
        require_valid_name(skill_id, "skill id")
        source = Path(source)
        if not (source / SKILL_FILE).is_file():
            raise NotFound(f"No {SKILL_FILE} in {source}")
        dest = self.root / skill_id
        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        elif dest.exists():
            shutil.rmtree(dest)
        self.root.mkdir(parents=True, exist_ok=True)
        shutil.copytree(source, dest)
        return dest
