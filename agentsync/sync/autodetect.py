"""Autodetection: discover agents, skills and MCP servers already on disk.

Detection is read-only: it never touches canonical state. Callers fold the
result into a project with :func:`merge_detected`, which only ever adds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from agentsync.agents.formats import McpConfigError, discover_servers
from agentsync.agents.registry import AgentDescriptor, list_agents
from agentsync.catalog.skills import SKILL_FILE, SkillRegistry
from agentsync.models.project import Project
from agentsync.store.paths import is_valid_name
from agentsync.sync.helpers import union_merge
from agentsync.sync.local_skills import GENERIC_SKILL_DIR

logger = logging.getLogger(__name__)


@dataclass
class DetectedState:
    """Everything found in a project directory."""

    agents: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    local_skills: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)
    mcp_configs: dict[str, dict] = field(default_factory=dict)

    @property
    def empty(self) -> bool:
        return not (self.agents or self.skills or self.local_skills or self.mcp_servers)


class Autodetector:
    """Scans a directory for agent markers, skill folders and MCP configs."""

    def __init__(self, skills: SkillRegistry):
        self.skills = skills

    def detect(
        self, directory: str | Path, agents: list[AgentDescriptor] | None = None
    ) -> DetectedState:
        """Scan ``directory`` using ``agents`` (default: the whole catalogue).

        Never raises; a category that cannot be scanned is logged and left
        with whatever was found before the error.
        """
        state = DetectedState()
        if not directory:
            return state
        root = Path(directory)
        if not root.is_dir():
            logger.info("Skipping autodetect, %s is not a directory", root)
            return state
        scanned = list(agents) if agents is not None else list_agents()

        for agent in scanned:
            try:
                if agent.detect_in(root):
                    state.agents.append(agent.id)
            except OSError as e:
                logger.warning("Cannot check %s markers in %s: %s", agent.id, root, e)

        self._detect_skills(root, scanned, state)
        self._detect_mcp(root, scanned, state)
        return state

    def _detect_skills(self, root: Path, agents: list[AgentDescriptor], state: DetectedState) -> None:
        try:
            global_names = set(self.skills.list_names())
        except OSError as e:
            logger.warning("Cannot list the skill registry: %s", e)
            global_names = set()

        skill_dirs: list[Path] = []
        for agent in agents:
            for path in agent.skill_paths(root):
                if path not in skill_dirs:
                    skill_dirs.append(path)
        skill_dirs.append(root / GENERIC_SKILL_DIR)

        for skill_dir in skill_dirs:
            if not skill_dir.is_dir():
                continue
            try:
                entries = sorted(skill_dir.iterdir())
            except OSError as e:
                logger.warning("Cannot read skill directory %s: %s", skill_dir, e)
                continue
            for entry in entries:
                name = entry.name
                if not entry.is_dir() or not (entry / SKILL_FILE).is_file() or not is_valid_name(name):
                    continue
                if name in global_names:
                    state.skills = union_merge(state.skills, [name])
                elif name not in state.skills:
                    state.local_skills = union_merge(state.local_skills, [name])

    def _detect_mcp(self, root: Path, agents: list[AgentDescriptor], state: DetectedState) -> None:
        for agent in agents:
            if agent.mcp_config is None:
                continue
            try:
                servers = discover_servers(agent, root)
            except (OSError, UnicodeDecodeError, McpConfigError) as e:
                logger.warning("Cannot read %s MCP config: %s", agent.id, e)
                continue
            for name, config in servers.items():
                state.mcp_servers = union_merge(state.mcp_servers, [name])
                state.mcp_configs.setdefault(name, config)


def merge_detected(project: Project, detected: DetectedState) -> tuple[Project, bool]:
    """Fold detected items into ``project`` without removing anything.

    Returns the project and whether anything was added. A skill stored under
    one of ``skills``/``local_skills`` is never added to the other.
    """
    before = (list(project.agents), list(project.skills), list(project.local_skills), list(project.mcp_servers))

    project.agents = union_merge(project.agents, detected.agents)
    project.skills = union_merge(
        project.skills, [s for s in detected.skills if s not in project.local_skills]
    )
    project.local_skills = union_merge(
        project.local_skills, [s for s in detected.local_skills if s not in project.skills]
    )
    project.mcp_servers = union_merge(project.mcp_servers, detected.mcp_servers)

    after = (project.agents, project.skills, project.local_skills, project.mcp_servers)
    return project, before != after
