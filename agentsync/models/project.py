"""Canonical data models: projects, templates, settings and project-file info.

These are the tool-agnostic records that every agent-specific artifact is
derived from. Stores persist them as JSON documents through the
``*_to_dict`` / ``*_from_dict`` helpers at the bottom of this module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

UNIFIED_KEY = "_unified"


class InstructionMode(Enum):
    """How instruction files are authored across agents."""

    PER_AGENT = "per-agent"  # Each agent file is edited independently
    UNIFIED = "unified"  # One content block fanned out to every agent file


class SkillSyncMode(Enum):
    """How skill directories are materialized into agent skill folders."""

    SYMLINK = "symlink"
    COPY = "copy"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- Project ---


@dataclass
class Project:
    """Desired agent configuration for one project."""

    name: str
    description: str = ""
    directory: str = ""
    skills: list[str] = field(default_factory=list)
    local_skills: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)
    providers: list[str] = field(default_factory=list)
    agents: list[str] = field(default_factory=list)
    file_rules: dict[str, list[str]] = field(default_factory=dict)
    instruction_mode: InstructionMode = InstructionMode.PER_AGENT
    created_at: str = ""
    updated_at: str = ""
    created_by: str | None = None

    @property
    def is_unified(self) -> bool:
        return self.instruction_mode == InstructionMode.UNIFIED

    @property
    def all_skills(self) -> list[str]:
        """Global skills followed by local ones, without duplicates."""
        seen = list(self.skills)
        seen.extend(s for s in self.local_skills if s not in seen)
        return seen

    def rules_for(self, filename: str) -> list[str]:
        key = UNIFIED_KEY if self.is_unified else filename
        return list(self.file_rules.get(key, []))


# --- Templates ---


@dataclass
class TemplateProjectFile:
    """An instruction file stored inline in a template."""

    filename: str
    content: str = ""


@dataclass
class ProjectTemplate:
    """Reusable, shareable slice of a project configuration."""

    name: str
    description: str = ""
    skills: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)
    providers: list[str] = field(default_factory=list)
    agents: list[str] = field(default_factory=list)
    project_files: list[TemplateProjectFile] = field(default_factory=list)
    unified_instruction: str = ""
    unified_rules: list[str] = field(default_factory=list)

    @property
    def has_unified(self) -> bool:
        return bool(self.unified_instruction.strip()) or bool(self.unified_rules)


# --- Settings ---


@dataclass
class Settings:
    """Global settings document."""

    skill_sync_mode: SkillSyncMode = SkillSyncMode.SYMLINK
    default_agents: list[str] = field(default_factory=list)


# --- Project files ---


@dataclass
class ProjectFileInfo:
    """A logical instruction file and the physical files behind it."""

    filename: str
    agents: list[str] = field(default_factory=list)
    exists: bool = False
    target_files: list[str] = field(default_factory=list)


# --- Serialization helpers ---


def _str_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value]


def _instruction_mode(value) -> InstructionMode:
    try:
        return InstructionMode(value or InstructionMode.PER_AGENT.value)
    except ValueError:
        return InstructionMode.PER_AGENT


def project_to_dict(project: Project) -> dict:
    data = {
        "name": project.name,
        "description": project.description,
        "directory": project.directory,
        "skills": list(project.skills),
        "local_skills": list(project.local_skills),
        "mcp_servers": list(project.mcp_servers),
        "providers": list(project.providers),
        "agents": list(project.agents),
        "file_rules": {k: list(v) for k, v in project.file_rules.items()},
        "instruction_mode": project.instruction_mode.value,
        "created_at": project.created_at,
        "updated_at": project.updated_at,
    }
    if project.created_by is not None:
        data["created_by"] = project.created_by
    return data


def project_from_dict(data: dict, name: str = "") -> Project:
    raw_rules = data.get("file_rules") or {}
    file_rules = {
        str(k): _str_list(v) for k, v in raw_rules.items()
    } if isinstance(raw_rules, dict) else {}
    return Project(
        name=data.get("name") or name,
        description=data.get("description") or "",
        directory=data.get("directory") or "",
        skills=_str_list(data.get("skills")),
        local_skills=_str_list(data.get("local_skills")),
        mcp_servers=_str_list(data.get("mcp_servers")),
        providers=_str_list(data.get("providers")),
        agents=_str_list(data.get("agents")),
        file_rules=file_rules,
        instruction_mode=_instruction_mode(data.get("instruction_mode")),
        created_at=data.get("created_at") or "",
        updated_at=data.get("updated_at") or "",
        created_by=data.get("created_by"),
    )


def template_to_dict(template: ProjectTemplate) -> dict:
    data = {
        "name": template.name,
        "description": template.description,
        "skills": list(template.skills),
        "mcp_servers": list(template.mcp_servers),
        "providers": list(template.providers),
        "agents": list(template.agents),
        "project_files": [
            {"filename": f.filename, "content": f.content} for f in template.project_files
        ],
    }
    if template.unified_instruction:
        data["unified_instruction"] = template.unified_instruction
    if template.unified_rules:
        data["unified_rules"] = list(template.unified_rules)
    return data


def template_from_dict(data: dict, name: str = "") -> ProjectTemplate:
    files = []
    for f in data.get("project_files") or []:
        if isinstance(f, dict) and f.get("filename"):
            files.append(TemplateProjectFile(filename=str(f["filename"]), content=f.get("content") or ""))
    return ProjectTemplate(
        name=data.get("name") or name,
        description=data.get("description") or "",
        skills=_str_list(data.get("skills")),
        mcp_servers=_str_list(data.get("mcp_servers")),
        providers=_str_list(data.get("providers")),
        agents=_str_list(data.get("agents")),
        project_files=files,
        unified_instruction=data.get("unified_instruction") or "",
        unified_rules=_str_list(data.get("unified_rules")),
    )


def settings_to_dict(settings: Settings) -> dict:
    return {
        "skill_sync_mode": settings.skill_sync_mode.value,
        "default_agents": list(settings.default_agents),
    }


def settings_from_dict(data: dict) -> Settings:
    try:
        mode = SkillSyncMode(data.get("skill_sync_mode") or SkillSyncMode.SYMLINK.value)
    except ValueError:
        mode = SkillSyncMode.SYMLINK
    return Settings(skill_sync_mode=mode, default_agents=_str_list(data.get("default_agents")))


def file_info_to_dict(info: ProjectFileInfo) -> dict:
    data = {"filename": info.filename, "agents": list(info.agents), "exists": info.exists}
    if info.target_files:
        data["target_files"] = list(info.target_files)
    return data
