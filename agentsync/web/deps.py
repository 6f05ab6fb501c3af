"""Workspace singleton shared by the routers."""

from __future__ import annotations

from agentsync.workspace import Workspace

_workspace: Workspace | None = None


def get_workspace() -> Workspace:
    global _workspace
    if _workspace is None:
        _workspace = Workspace()
    return _workspace
