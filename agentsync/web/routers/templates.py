"""Templates router -- template CRUD and application to projects."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from agentsync.models.project import ProjectTemplate, template_from_dict, template_to_dict
from agentsync.web.deps import get_workspace
from agentsync.web.models import RenameRequest, SaveStatusResponse, TemplateModel
from agentsync.web.routers.projects import save_status_to_response
from agentsync.workspace import Workspace

router = APIRouter(prefix="/api/templates", tags=["templates"])


def _template_to_response(template: ProjectTemplate) -> TemplateModel:
    return TemplateModel(**template_to_dict(template))


@router.get("", response_model=list[str], summary="List template names")
async def list_templates(ws: Workspace = Depends(get_workspace)):
    return ws.list_templates()


@router.get("/{name}", response_model=TemplateModel, summary="Get a template")
async def get_template(name: str, ws: Workspace = Depends(get_workspace)):
    return _template_to_response(ws.read_template(name))


@router.put("/{name}", response_model=TemplateModel, summary="Save a template")
async def save_template(name: str, body: TemplateModel, ws: Workspace = Depends(get_workspace)):
    data = body.model_dump()
    data["name"] = name
    return _template_to_response(ws.save_template(template_from_dict(data)))


@router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a template")
async def delete_template(name: str, ws: Workspace = Depends(get_workspace)):
    if not ws.delete_template(name):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Template '{name}' not found",
        )


@router.post("/{name}/rename", response_model=TemplateModel, summary="Rename a template")
async def rename_template(name: str, body: RenameRequest, ws: Workspace = Depends(get_workspace)):
    return _template_to_response(ws.rename_template(name, body.new_name))


@router.post(
    "/{name}/apply/{project}",
    response_model=SaveStatusResponse,
    summary="Apply a template to a project",
)
async def apply_template(name: str, project: str, ws: Workspace = Depends(get_workspace)):
    """Merge the template into the project, save it and sync."""
    return save_status_to_response(ws.apply_template(name, project))
