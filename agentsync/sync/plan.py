"""Sync plan: the artifacts a project's canonical state calls for.

The engine materializes a plan and the drift detector compares one against
disk, so both always agree on what "in sync" means.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from agentsync.agents.registry import AgentDescriptor, resolve_agents
from agentsync.catalog.mcp_servers import McpServerRegistry
from agentsync.catalog.rules import RuleCatalogue
from agentsync.catalog.skills import SkillRegistry
from agentsync.models.project import Project, SkillSyncMode
from agentsync.sync.instructions import expected_contents, instruction_agents
from agentsync.sync.local_skills import find_local_skill
from agentsync.sync.manifest import ArtifactKind

logger = logging.getLogger(__name__)


@dataclass
class SkillTarget:
    """One physical skill directory, possibly shared by several agents."""

    rel: str
    path: Path
    skill_id: str
    kind: str
    agents: list[str] = field(default_factory=list)
    source: Path | None = None
    link_target: str | None = None  # Set when the skill should be a symlink
    error: str | None = None


@dataclass
class McpTarget:
    rel: str
    path: Path
    agent: AgentDescriptor
    desired: dict[str, dict] = field(default_factory=dict)
    unknown: list[str] = field(default_factory=list)


@dataclass
class InstructionTarget:
    rel: str
    path: Path
    agents: list[str] = field(default_factory=list)
    expected: str | None = None
    whole_file: bool = False
    error: str | None = None


@dataclass
class SyncPlan:
    directory: Path
    skills: dict[str, SkillTarget] = field(default_factory=dict)
    mcp: dict[str, McpTarget] = field(default_factory=dict)
    instructions: dict[str, InstructionTarget] = field(default_factory=dict)


class SyncPlanner:
    """Builds a :class:`SyncPlan` from a project and the global registries."""

    def __init__(
        self,
        skills: SkillRegistry,
        mcp_servers: McpServerRegistry,
        rules: RuleCatalogue,
        sync_mode: SkillSyncMode = SkillSyncMode.SYMLINK,
    ):
        self.skills = skills
        self.mcp_servers = mcp_servers
        self.rules = rules
        self.sync_mode = sync_mode

    def plan(self, project: Project) -> SyncPlan:
        directory = Path(project.directory)
        agents = resolve_agents(project.agents)
        plan = SyncPlan(directory=directory)
        self._plan_skills(project, agents, plan)
        self._plan_mcp(project, agents, plan)
        self._plan_instructions(project, plan)
        return plan

    # ------------------------------------------------------------------
    # Per-category planning
    # ------------------------------------------------------------------

    def _plan_skills(self, project: Project, agents: list[AgentDescriptor], plan: SyncPlan) -> None:
        local_sources: dict[str, Path | None] = {
            skill: find_local_skill(project, skill) for skill in project.local_skills
        }

        for agent in agents:
            if not agent.capabilities.skills:
                continue
            for skill_dir in agent.skill_dirs:
                for skill in project.all_skills:
                    rel = f"{skill_dir}/{skill}"
                    target = plan.skills.get(rel)
                    if target is None:
                        target = self._skill_target(rel, plan.directory / rel, skill, project, local_sources)
                        plan.skills[rel] = target
                    if agent.id not in target.agents:
                        target.agents.append(agent.id)

    def _skill_target(
        self,
        rel: str,
        path: Path,
        skill: str,
        project: Project,
        local_sources: dict[str, Path | None],
    ) -> SkillTarget:
        if skill in project.skills:
            target = SkillTarget(rel=rel, path=path, skill_id=skill, kind=ArtifactKind.SKILL)
            if not self.skills.exists(skill):
                target.error = f"skill '{skill}' is not in the skill registry"
                return target
            target.source = self.skills.skill_dir(skill)
            if self.sync_mode == SkillSyncMode.SYMLINK:
                target.link_target = str(target.source.resolve())
            return target

        target = SkillTarget(rel=rel, path=path, skill_id=skill, kind=ArtifactKind.LOCAL_SKILL)
        source = local_sources.get(skill)
        if source is None:
            target.error = f"local skill '{skill}' has no copy in the project"
        else:
            target.source = source
        return target

    def _plan_mcp(self, project: Project, agents: list[AgentDescriptor], plan: SyncPlan) -> None:
        desired: dict[str, dict] = {}
        unknown: list[str] = []
        for name in project.mcp_servers:
            config = self.mcp_servers.try_read(name)
            if config is None:
                unknown.append(name)
            else:
                desired[name] = config

        for agent in agents:
            if not agent.capabilities.mcp_servers:
                continue
            path = agent.mcp_path(plan.directory)
            rel = agent.mcp_config
            plan.mcp[rel] = McpTarget(
                rel=rel, path=path, agent=agent, desired=dict(desired), unknown=list(unknown)
            )

    def _plan_instructions(self, project: Project, plan: SyncPlan) -> None:
        targets = instruction_agents(project)
        try:
            expected = expected_contents(project, self.rules)
            error = None
        except (OSError, UnicodeDecodeError) as e:
            expected = {}
            error = f"cannot read instruction file: {e}"

        for filename, agents in targets.items():
            plan.instructions[filename] = InstructionTarget(
                rel=filename,
                path=plan.directory / filename,
                agents=[a.id for a in agents],
                expected=expected.get(filename),
                whole_file=project.is_unified,
                error=error,
            )
