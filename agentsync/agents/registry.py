"""Static catalogue of supported agents."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from agentsync.errors import NotFound

logger = logging.getLogger(__name__)


class McpFormat(Enum):
    """On-disk dialect of an agent's MCP server config."""

    JSON = "json"  # {"<root_key>": {name: {command, args, env | type, url}}}
    OPENCODE = "opencode"  # {"mcp": {name: {type: local|remote, command: [...]}}}
    TOML = "toml"  # [mcp_servers.<name>] tables in .codex/config.toml


@dataclass(frozen=True)
class AgentCapabilities:
    skills: bool
    instructions: bool
    mcp_servers: bool


@dataclass(frozen=True)
class AgentDescriptor:
    """Identity, capabilities and path templates of one agent."""

    id: str
    label: str
    description: str
    project_file: str | None = None
    skill_dirs: tuple[str, ...] = ()
    mcp_config: str | None = None
    mcp_format: McpFormat = McpFormat.JSON
    mcp_root_key: str = "mcpServers"
    detect_markers: tuple[str, ...] = ()
    mcp_note: str | None = None

    @property
    def capabilities(self) -> AgentCapabilities:
        return AgentCapabilities(
            skills=bool(self.skill_dirs),
            instructions=self.project_file is not None,
            mcp_servers=self.mcp_config is not None and self.mcp_note is None,
        )

    def skill_paths(self, directory: str | Path) -> list[Path]:
        root = Path(directory)
        return [root / d for d in self.skill_dirs]

    def mcp_path(self, directory: str | Path) -> Path | None:
        if self.mcp_config is None:
            return None
        return Path(directory) / self.mcp_config

    def instruction_path(self, directory: str | Path) -> Path | None:
        if self.project_file is None:
            return None
        return Path(directory) / self.project_file

    def detect_in(self, directory: str | Path) -> bool:
        root = Path(directory)
        return any((root / marker).exists() for marker in self.detect_markers)


_SHARED_SKILLS = (".agents/skills",)

AGENTS: tuple[AgentDescriptor, ...] = (
    AgentDescriptor(
        id="claude",
        label="Claude Code",
        description=".mcp.json + CLAUDE.md",
        project_file="CLAUDE.md",
        skill_dirs=(".claude/skills",),
        mcp_config=".mcp.json",
        detect_markers=(".mcp.json", ".claude/settings.json", ".claude/skills"),
    ),
    AgentDescriptor(
        id="cursor",
        label="Cursor",
        description=".cursor/mcp.json + .cursorrules",
        project_file=".cursorrules",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".cursor/mcp.json",
        detect_markers=(".cursor/mcp.json", ".cursorrules", ".cursor/rules"),
    ),
    AgentDescriptor(
        id="copilot",
        label="GitHub Copilot",
        description=".vscode/mcp.json + .github/copilot-instructions.md",
        project_file=".github/copilot-instructions.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".vscode/mcp.json",
        mcp_root_key="servers",
        detect_markers=(".github/copilot-instructions.md", ".vscode/mcp.json"),
    ),
    AgentDescriptor(
        id="cline",
        label="Cline",
        description=".cline/mcp.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=(".cline/skills",),
        mcp_config=".cline/mcp.json",
        detect_markers=(".cline/mcp.json", ".clinerules", ".cline/skills"),
    ),
    AgentDescriptor(
        id="kilo",
        label="Kilo Code",
        description=".kilocode/mcp.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".kilocode/mcp.json",
        detect_markers=(".kilocode",),
    ),
    AgentDescriptor(
        id="junie",
        label="Junie (Beta)",
        description=".junie/mcp.json + .junie/guidelines.md",
        project_file=".junie/guidelines.md",
        skill_dirs=(".junie/skills", ".agents/skills"),
        mcp_config=".junie/mcp.json",
        detect_markers=(".junie/mcp.json", ".junie/guidelines.md"),
    ),
    AgentDescriptor(
        id="kiro",
        label="Kiro (Beta)",
        description=".kiro/settings/mcp.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".kiro/settings/mcp.json",
        detect_markers=(".kiro",),
    ),
    AgentDescriptor(
        id="gemini",
        label="Gemini CLI",
        description=".gemini/settings.json + GEMINI.md",
        project_file="GEMINI.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".gemini/settings.json",
        detect_markers=("GEMINI.md", ".gemini"),
    ),
    AgentDescriptor(
        id="antigravity",
        label="Antigravity (Beta)",
        description=".antigravity/mcp.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".antigravity/mcp.json",
        detect_markers=(".antigravity",),
    ),
    AgentDescriptor(
        id="droid",
        label="Droid",
        description=".factory/mcp.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".factory/mcp.json",
        detect_markers=(".factory/mcp.json",),
    ),
    AgentDescriptor(
        id="goose",
        label="Goose (Beta)",
        description=".goose/mcp.json + .goosehints",
        project_file=".goosehints",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".goose/mcp.json",
        detect_markers=(".goosehints", ".goose"),
    ),
    AgentDescriptor(
        id="codex",
        label="Codex CLI",
        description=".codex/config.toml + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".codex/config.toml",
        mcp_format=McpFormat.TOML,
        mcp_root_key="mcp_servers",
        detect_markers=(".codex/config.toml",),
    ),
    AgentDescriptor(
        id="opencode",
        label="OpenCode",
        description=".opencode.json + AGENTS.md",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        mcp_config=".opencode.json",
        mcp_format=McpFormat.OPENCODE,
        mcp_root_key="mcp",
        detect_markers=("opencode.json", ".opencode.json"),
    ),
    AgentDescriptor(
        id="warp",
        label="Warp",
        description="AGENTS.md (MCP configured in Warp app)",
        project_file="AGENTS.md",
        skill_dirs=_SHARED_SKILLS,
        detect_markers=("WARP.md", ".warp"),
        mcp_note=(
            "Warp manages MCP servers through its own app (Settings > MCP Servers). "
            "agentsync cannot write Warp's MCP config; add servers manually in Warp."
        ),
    ),
)

_BY_ID: dict[str, AgentDescriptor] = {a.id: a for a in AGENTS}


def list_agents() -> list[AgentDescriptor]:
    """Return every registered agent, in catalogue order."""
    return list(AGENTS)


def by_id(agent_id: str) -> AgentDescriptor:
    agent = _BY_ID.get(agent_id)
    if agent is None:
        raise NotFound(f"Unknown agent '{agent_id}'")
    return agent


def try_by_id(agent_id: str) -> AgentDescriptor | None:
    agent = _BY_ID.get(agent_id)
    if agent is None:
        logger.warning("Unknown agent '%s', skipping", agent_id)
    return agent


def resolve_agents(agent_ids: list[str]) -> list[AgentDescriptor]:
    """Map project agent ids to descriptors, dropping unknown ids."""
    resolved = []
    for agent_id in agent_ids:
        agent = try_by_id(agent_id)
        if agent is not None and agent not in resolved:
            resolved.append(agent)
    return resolved


def agent_to_dict(agent: AgentDescriptor) -> dict:
    caps = agent.capabilities
    return {
        "id": agent.id,
        "label": agent.label,
        "description": agent.description,
        "capabilities": {
            "skills": caps.skills,
            "instructions": caps.instructions,
            "mcp_servers": caps.mcp_servers,
        },
        "mcp_note": agent.mcp_note,
        "project_file": agent.project_file,
    }
