"""Project-local skills: skills that live only inside one project directory.

A local skill is not in the global registry. Its first copy found under the
project's agent skill directories (or the generic ``skills/`` folder) is the
source that every other agent directory is filled from. Nothing here ever
reads or writes outside ``project.directory``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from agentsync.agents.registry import resolve_agents
from agentsync.catalog.skills import SKILL_FILE, SkillRegistry
from agentsync.errors import NotFound, ValidationError
from agentsync.models.project import Project
from agentsync.store.paths import require_valid_name
from agentsync.sync.helpers import copy_tree, is_within, tree_digest, union_merge

logger = logging.getLogger(__name__)

GENERIC_SKILL_DIR = "skills"


def project_directory(project: Project) -> Path:
    if not project.directory:
        raise ValidationError("Project has no directory configured")
    directory = Path(project.directory)
    if not directory.is_dir():
        raise ValidationError(f"Directory '{project.directory}' does not exist")
    return directory


def agent_skill_dirs(project: Project) -> list[Path]:
    """Distinct skill directories of the project's agents, in agent order."""
    directory = Path(project.directory)
    dirs: list[Path] = []
    for agent in resolve_agents(project.agents):
        for path in agent.skill_paths(directory):
            if path not in dirs:
                dirs.append(path)
    return dirs


def find_local_skill(project: Project, skill: str) -> Path | None:
    """First in-project copy of a local skill, or None."""
    directory = Path(project.directory)
    for skill_dir in [*agent_skill_dirs(project), directory / GENERIC_SKILL_DIR]:
        candidate = skill_dir / skill
        if (candidate / SKILL_FILE).is_file() and is_within(candidate, directory):
            return candidate
    return None


class LocalSkillReplicator:
    """Copies, reads and promotes local skills for one project at a time."""

    def __init__(self, skills: SkillRegistry):
        self.skills = skills

    def _source(self, project: Project, skill: str) -> Path:
        require_valid_name(skill, "skill id")
        source = find_local_skill(project, skill)
        if source is None:
            raise NotFound(f"Local skill '{skill}' not found in any agent directory")
        return source

    def read_local_skill(self, project: Project, skill: str) -> str:
        project_directory(project)
        return (self._source(project, skill) / SKILL_FILE).read_text(encoding="utf-8")

    def save_local_skill(self, project: Project, skill: str, content: str) -> list[Path]:
        """Write SKILL.md into every existing copy, or into the first agent skill dir."""
        directory = project_directory(project)
        require_valid_name(skill, "skill id")
        dirs = agent_skill_dirs(project)
        targets = [d / skill for d in dirs if (d / skill / SKILL_FILE).is_file()]
        if not targets:
            if not dirs:
                raise ValidationError("No agent skill directories found for this project")
            targets = [dirs[0] / skill]

        written = []
        for target in targets:
            if not is_within(target, directory):
                raise ValidationError(f"{target} is outside {directory}")
            target.mkdir(parents=True, exist_ok=True)
            (target / SKILL_FILE).write_text(content, encoding="utf-8")
            written.append(target / SKILL_FILE)
        return written

    def replicate(self, project: Project) -> list[Path]:
        """Copy every local skill into every agent skill directory of the project.

        Returns the skill directories written. Copies already identical to
        their source are left as they are.
        """
        directory = project_directory(project)
        written: list[Path] = []
        for skill in project.local_skills:
            try:
                source = self._source(project, skill)
            except NotFound:
                logger.warning("Local skill '%s' has no copy in %s, skipping", skill, directory)
                continue
            if not is_within(source, directory):
                raise ValidationError(f"Local skill source {source} is outside {directory}")

            source_digest = tree_digest(source)
            for skill_dir in agent_skill_dirs(project):
                dest = skill_dir / skill
                if not is_within(dest.parent, directory):
                    raise ValidationError(f"{dest} is outside {directory}")
                if dest.resolve() == source.resolve():
                    continue
                if dest.is_dir() and not dest.is_symlink() and tree_digest(dest) == source_digest:
                    written.append(dest)
                    continue
                copy_tree(source, dest)
                written.append(dest)
        return written

    def promote(self, project: Project, skill: str) -> Project:
        """Copy a local skill into the global registry and list it under ``skills``.

        Returns the updated project; persisting it is the caller's job.
        """
        project_directory(project)
        if skill not in project.local_skills:
            raise ValidationError(f"'{skill}' is not a local skill of project {project.name}")
        source = self._source(project, skill)
        self.skills.import_dir(skill, source)
        logger.info("Promoted local skill '%s' from %s", skill, source)

        project.local_skills = [s for s in project.local_skills if s != skill]
        project.skills = union_merge(project.skills, [skill])
        return project
