"""Pydantic models for API request/response serialization.

These mirror the agentsync dataclasses; the ``*_to_response`` converters
live in the routers that use them.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


class ProjectRequest(BaseModel):
    """Body for creating or replacing a project. ``name`` comes from the path."""

    description: str = ""
    directory: str = ""
    skills: list[str] = Field(default_factory=list)
    local_skills: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    agents: Optional[list[str]] = None
    file_rules: dict[str, list[str]] = Field(default_factory=dict)
    instruction_mode: Literal["per-agent", "unified"] = "per-agent"
    created_by: Optional[str] = None


class ProjectResponse(BaseModel):
    """Mirrors agentsync.models.project.Project."""

    name: str
    description: str = ""
    directory: str = ""
    skills: list[str] = Field(default_factory=list)
    local_skills: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    file_rules: dict[str, list[str]] = Field(default_factory=dict)
    instruction_mode: str = "per-agent"
    created_at: str = ""
    updated_at: str = ""
    created_by: Optional[str] = None


class RenameRequest(BaseModel):
    new_name: str


class SyncFailureResponse(BaseModel):
    agent_id: str
    path: str
    reason: str


class SyncResultResponse(BaseModel):
    ok: bool = True
    written: list[str] = Field(default_factory=list)
    failures: list[SyncFailureResponse] = Field(default_factory=list)


class SaveStatusResponse(BaseModel):
    """Result of save-and-sync. The project was saved even when ``ok`` is false."""

    ok: bool
    message: str
    project: ProjectResponse
    sync: Optional[SyncResultResponse] = None


class DetectedResponse(BaseModel):
    agents: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    local_skills: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)
    mcp_configs: dict[str, dict] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Drift
# ---------------------------------------------------------------------------


class DriftedFileResponse(BaseModel):
    path: str
    reason: Literal["missing", "modified", "stale", "unreadable"]


class AgentDriftResponse(BaseModel):
    agent_id: str
    agent_label: str
    files: list[DriftedFileResponse] = Field(default_factory=list)


class DriftReportResponse(BaseModel):
    """Mirrors agentsync.sync.drift.DriftReport."""

    project: str
    drifted: bool = False
    status: Literal["ok", "unknown"] = "ok"
    message: str = ""
    agents: list[AgentDriftResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Project files and local skills
# ---------------------------------------------------------------------------


class ProjectFileInfoResponse(BaseModel):
    filename: str
    agents: list[str] = Field(default_factory=list)
    exists: bool = False
    target_files: list[str] = Field(default_factory=list)


class FileContent(BaseModel):
    content: str = ""


class WrittenPathsResponse(BaseModel):
    written: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateFileModel(BaseModel):
    filename: str
    content: str = ""


class TemplateModel(BaseModel):
    """Mirrors agentsync.models.project.ProjectTemplate (request and response)."""

    name: str = ""
    description: str = ""
    skills: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    agents: list[str] = Field(default_factory=list)
    project_files: list[TemplateFileModel] = Field(default_factory=list)
    unified_instruction: str = ""
    unified_rules: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Settings and agents
# ---------------------------------------------------------------------------


class SettingsModel(BaseModel):
    skill_sync_mode: Literal["symlink", "copy"] = "symlink"
    default_agents: list[str] = Field(default_factory=list)


class AgentCapabilitiesResponse(BaseModel):
    skills: bool
    instructions: bool
    mcp_servers: bool


class AgentResponse(BaseModel):
    id: str
    label: str
    description: str = ""
    capabilities: AgentCapabilitiesResponse
    mcp_note: Optional[str] = None
    project_file: Optional[str] = None
