"""Settings and agents router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agentsync.agents.registry import agent_to_dict, list_agents
from agentsync.models.project import settings_from_dict, settings_to_dict
from agentsync.web.deps import get_workspace
from agentsync.web.models import AgentResponse, SettingsModel
from agentsync.workspace import Workspace

router = APIRouter(prefix="/api", tags=["settings"])


@router.get("/settings", response_model=SettingsModel, summary="Get settings")
async def get_settings(ws: Workspace = Depends(get_workspace)):
    return SettingsModel(**settings_to_dict(ws.read_settings()))


@router.put("/settings", response_model=SettingsModel, summary="Replace settings")
async def save_settings(body: SettingsModel, ws: Workspace = Depends(get_workspace)):
    saved = ws.save_settings(settings_from_dict(body.model_dump()))
    return SettingsModel(**settings_to_dict(saved))


@router.get("/agents", response_model=list[AgentResponse], summary="List supported agents")
async def get_agents():
    return [AgentResponse(**agent_to_dict(a)) for a in list_agents()]
