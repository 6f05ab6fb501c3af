"""Template application: merge a project template into a project.

Merging is a set-union: nothing the project already has is removed or
reordered, and template files that already exist on disk are never overwritten. A
unified instruction is merged into the top of the existing unified source.
"""

from __future__ import annotations

import logging
from pathlib import Path

from agentsync.errors import ValidationError
from agentsync.models.project import UNIFIED_KEY, InstructionMode, Project, ProjectTemplate
from agentsync.sync.helpers import is_within, union_merge
from agentsync.sync.instructions import compose, extract_rules_section, instruction_agents, unified_source

logger = logging.getLogger(__name__)


class TemplateApplier:
    def apply(self, template: ProjectTemplate, project: Project) -> Project:
        """Merge ``template`` into ``project`` and seed missing instruction files.

        Returns the updated project; persisting and syncing it is the
        caller's job.
        """
        directory = Path(project.directory) if project.directory else None
        if directory is not None:
            for f in template.project_files:
                if not f.filename or not is_within(directory / f.filename, directory):
                    raise ValidationError(f"Template file '{f.filename}' is outside the project directory")

        project.agents = union_merge(project.agents, template.agents)
        project.skills = union_merge(
            project.skills, [s for s in template.skills if s not in project.local_skills]
        )
        project.mcp_servers = union_merge(project.mcp_servers, template.mcp_servers)
        project.providers = union_merge(project.providers, template.providers)
        if not project.description.strip() and template.description:
            project.description = template.description

        if template.has_unified:
            project.instruction_mode = InstructionMode.UNIFIED
            if template.unified_rules:
                project.file_rules[UNIFIED_KEY] = union_merge(
                    project.file_rules.get(UNIFIED_KEY, []), template.unified_rules
                )

        if directory is None or not directory.is_dir():
            logger.info("Project '%s' has no directory, template files not written", project.name)
            return project

        for f in template.project_files:
            self._write_new(directory / f.filename, f.content)

        if template.unified_instruction.strip():
            self._seed_unified(project, directory, template.unified_instruction)
        return project

    def _seed_unified(self, project: Project, directory: Path, instruction: str) -> None:
        """Put ``instruction`` at the top of the unified source so the next sync fans it out.

        Existing user content is kept below it; nothing changes if the
        source already contains the instruction.
        """
        source, user = unified_source(project)
        if source is None:
            for filename in instruction_agents(project):
                self._write_new(directory / filename, instruction)
            return
        if instruction.strip() in user:
            logger.debug("%s already holds the template instruction", source)
            return

        path = directory / source
        section = extract_rules_section(path.read_text(encoding="utf-8"))
        merged = f"{instruction.strip()}\n\n{user.lstrip()}" if user.strip() else instruction
        path.write_text(compose(merged, section), encoding="utf-8")
        logger.info("Added template instruction to %s", path)

    @staticmethod
    def _write_new(path: Path, content: str) -> None:
        if path.exists():
            logger.debug("Keeping existing %s", path)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info("Wrote %s from template", path)
