"""Error taxonomy shared by the stores, the sync engine and the outer surfaces."""

from __future__ import annotations

from dataclasses import dataclass


class AgentSyncError(Exception):
    """Base class for every error raised by agentsync."""


class ValidationError(AgentSyncError):
    """Invalid name, path or payload. Raised before any mutation happens."""


class NotFound(AgentSyncError):
    """A project, template, skill or agent does not exist."""


class OperationInProgress(AgentSyncError):
    """Another mutating operation is already running for the same project."""


class DriftCheckUnavailable(AgentSyncError):
    """The project directory is missing or unreadable, so drift is unknown."""


class ConflictingOwnership(AgentSyncError):
    """An MCP entry exists in an agent config but was not written by sync."""

    def __init__(self, path: str, key: str, message: str = ""):
        self.path = path
        self.key = key
        super().__init__(
            message or f"'{key}' in {path} was not created by agentsync; leaving it untouched"
        )


@dataclass
class SyncFailure:
    """One artifact that could not be materialized."""

    agent_id: str
    path: str
    reason: str

    def summary(self) -> str:
        return f"{self.agent_id}: {self.reason}"


class PartialSyncFailure(AgentSyncError):
    """One or more per-agent artifacts failed; everything else was written."""

    def __init__(self, failures: list[SyncFailure], written: list[str] | None = None):
        self.failures = failures
        self.written = written or []
        details = "; ".join(f.summary() for f in failures)
        super().__init__(f"Sync failed: {details}")
