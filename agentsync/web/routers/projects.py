"""Projects router -- CRUD, sync, drift, autodetect, project files and local skills."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from agentsync.models.project import InstructionMode, Project, file_info_to_dict, project_to_dict
from agentsync.sync.drift import DriftReport
from agentsync.sync.engine import SyncResult
from agentsync.web.deps import get_workspace
from agentsync.web.models import (
    DetectedResponse,
    DriftReportResponse,
    FileContent,
    ProjectFileInfoResponse,
    ProjectRequest,
    ProjectResponse,
    RenameRequest,
    SaveStatusResponse,
    SyncResultResponse,
    WrittenPathsResponse,
)
from agentsync.workspace import SaveStatus, Workspace

router = APIRouter(prefix="/api/projects", tags=["projects"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def project_to_response(project: Project) -> ProjectResponse:
    return ProjectResponse(**project_to_dict(project))


def sync_result_to_response(result: SyncResult) -> SyncResultResponse:
    return SyncResultResponse(
        ok=result.ok,
        written=result.written,
        failures=[
            {"agent_id": f.agent_id, "path": f.path, "reason": f.reason} for f in result.failures
        ],
    )


def save_status_to_response(saved: SaveStatus) -> SaveStatusResponse:
    return SaveStatusResponse(
        ok=saved.ok,
        message=saved.message,
        project=project_to_response(saved.project),
        sync=sync_result_to_response(saved.result) if saved.result is not None else None,
    )


def drift_to_response(report: DriftReport) -> DriftReportResponse:
    return DriftReportResponse(**report.to_dict())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@router.get("", response_model=list[str], summary="List project names")
async def list_projects(ws: Workspace = Depends(get_workspace)):
    return ws.list_projects()


@router.get("/{name}", response_model=ProjectResponse, summary="Get a project")
async def get_project(name: str, ws: Workspace = Depends(get_workspace)):
    return project_to_response(ws.read_project(name))


@router.put("/{name}", response_model=SaveStatusResponse, summary="Save a project and sync it")
async def save_project(name: str, body: ProjectRequest, ws: Workspace = Depends(get_workspace)):
    """Create or replace a project, then sync it to its directory.

    Omitting ``agents`` on a new project preselects the default agents from
    settings. Sync failures are reported in the body; the save still stands.
    """
    if body.agents is None:
        agents = ws.read_project(name).agents if name in ws.list_projects() else ws.read_settings().default_agents
    else:
        agents = body.agents
    project = Project(
        name=name,
        description=body.description,
        directory=body.directory,
        skills=body.skills,
        local_skills=body.local_skills,
        mcp_servers=body.mcp_servers,
        providers=body.providers,
        agents=list(agents),
        file_rules=body.file_rules,
        instruction_mode=InstructionMode(body.instruction_mode),
        created_by=body.created_by,
    )
    return save_status_to_response(ws.save_and_sync(project))


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a project")
async def delete_project(name: str, ws: Workspace = Depends(get_workspace)):
    if not ws.delete_project(name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project '{name}' not found",
        )


@router.post("/{name}/rename", response_model=ProjectResponse, summary="Rename a project")
async def rename_project(name: str, body: RenameRequest, ws: Workspace = Depends(get_workspace)):
    return project_to_response(ws.rename_project(name, body.new_name))


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@router.get("/{name}/autodetect", response_model=DetectedResponse, summary="Scan the project directory")
async def autodetect(name: str, ws: Workspace = Depends(get_workspace)):
    found = ws.autodetect(name)
    return DetectedResponse(
        agents=found.agents,
        skills=found.skills,
        local_skills=found.local_skills,
        mcp_servers=found.mcp_servers,
        mcp_configs=found.mcp_configs,
    )


@router.post("/{name}/activate", response_model=ProjectResponse, summary="Merge autodetected state")
async def activate(name: str, ws: Workspace = Depends(get_workspace)):
    return project_to_response(ws.activate(name))


@router.post("/{name}/sync", response_model=SyncResultResponse, summary="Sync a project")
async def sync_project(name: str, ws: Workspace = Depends(get_workspace)):
    return sync_result_to_response(ws.sync(name))


@router.get("/{name}/drift", response_model=DriftReportResponse, summary="Check drift")
async def check_drift(name: str, ws: Workspace = Depends(get_workspace)):
    return drift_to_response(ws.check_drift(name))


@router.delete(
    "/{name}/agents/{agent_id}",
    response_model=SaveStatusResponse,
    summary="Remove an agent and clean up its synced entries",
)
async def remove_agent(name: str, agent_id: str, ws: Workspace = Depends(get_workspace)):
    return save_status_to_response(ws.remove_agent(name, agent_id))


# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------


@router.get("/{name}/files", response_model=list[ProjectFileInfoResponse], summary="List instruction files")
async def list_files(name: str, ws: Workspace = Depends(get_workspace)):
    return [ProjectFileInfoResponse(**file_info_to_dict(i)) for i in ws.project_file_info(name)]


@router.get("/{name}/files/{filename:path}", response_model=FileContent, summary="Read an instruction file")
async def read_file(name: str, filename: str, ws: Workspace = Depends(get_workspace)):
    return FileContent(content=ws.read_project_file(name, filename))


@router.put("/{name}/files/{filename:path}", response_model=WrittenPathsResponse, summary="Write an instruction file")
async def write_file(name: str, filename: str, body: FileContent, ws: Workspace = Depends(get_workspace)):
    written = ws.save_project_file(name, filename, body.content)
    return WrittenPathsResponse(written=[str(p) for p in written])


# ---------------------------------------------------------------------------
# Local skills
# ---------------------------------------------------------------------------


@router.post("/{name}/local-skills/replicate", response_model=WrittenPathsResponse, summary="Replicate local skills")
async def replicate_local_skills(name: str, ws: Workspace = Depends(get_workspace)):
    return WrittenPathsResponse(written=[str(p) for p in ws.replicate_local_skills(name)])


@router.get("/{name}/local-skills/{skill}", response_model=FileContent, summary="Read a local skill")
async def read_local_skill(name: str, skill: str, ws: Workspace = Depends(get_workspace)):
    return FileContent(content=ws.read_local_skill(name, skill))


@router.put("/{name}/local-skills/{skill}", response_model=WrittenPathsResponse, summary="Write a local skill")
async def save_local_skill(name: str, skill: str, body: FileContent, ws: Workspace = Depends(get_workspace)):
    return WrittenPathsResponse(written=[str(p) for p in ws.save_local_skill(name, skill, body.content)])


@router.post("/{name}/local-skills/{skill}/promote", response_model=ProjectResponse, summary="Promote a local skill")
async def promote_local_skill(name: str, skill: str, ws: Workspace = Depends(get_workspace)):
    return project_to_response(ws.promote_local_skill(name, skill))
