"""FastAPI application for agentsync.

Provides REST endpoints over the workspace for:
- Project CRUD with save-and-sync
- Autodetection, drift checks and agent removal
- Instruction files and project-local skills
- Templates, settings and the agent catalogue
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agentsync import __version__
from agentsync.errors import AgentSyncError, NotFound, OperationInProgress, ValidationError
from agentsync.web.routers import projects, settings, templates

app = FastAPI(
    title="agentsync API",
    description="Keep AI agent tool configs in line with canonical project state.",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(projects.router)
app.include_router(templates.router)
app.include_router(settings.router)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

_STATUS_BY_ERROR = (
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (OperationInProgress, status.HTTP_409_CONFLICT),
)


@app.exception_handler(AgentSyncError)
async def agentsync_error_handler(request: Request, exc: AgentSyncError):
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, error_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            code = error_code
            break
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@app.get("/", tags=["meta"])
async def root():
    """Return basic API information."""
    return {
        "name": "agentsync API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


@app.get("/health", tags=["meta"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
