"""Drift detection: divergence between canonical state and agent files on disk.

Every artifact Sync is expected to own (the current plan plus anything the
manifest says Sync wrote before) is classified as one of:

1. ``missing``: the path does not exist
2. ``unreadable``: it exists but cannot be read or parsed
3. ``modified``: it changed since Sync last wrote it (digest or link target)
4. ``stale``: it is as Sync left it, but a sync now would write something else

Drift is only ever reported; resolving it is a user-triggered re-sync.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from agentsync.agents.formats import McpConfigError, merge_servers, parse_document
from agentsync.agents.registry import resolve_agents, try_by_id
from agentsync.errors import DriftCheckUnavailable
from agentsync.models.project import Project
from agentsync.sync.helpers import text_digest, tree_digest
from agentsync.sync.instructions import owned_text
from agentsync.sync.manifest import ArtifactKind, ArtifactRecord, ManifestStore, SyncManifest
from agentsync.sync.plan import InstructionTarget, McpTarget, SkillTarget, SyncPlan, SyncPlanner

logger = logging.getLogger(__name__)


class DriftReason(Enum):
    MISSING = "missing"
    MODIFIED = "modified"
    STALE = "stale"
    UNREADABLE = "unreadable"


class DriftStatus:
    OK = "ok"
    UNKNOWN = "unknown"  # Directory problem: drift could not be determined


@dataclass
class DriftedFile:
    path: str
    reason: DriftReason


@dataclass
class AgentDrift:
    agent_id: str
    agent_label: str
    files: list[DriftedFile] = field(default_factory=list)


@dataclass
class DriftReport:
    """Drift for one project, grouped by agent."""

    project: str
    status: str = DriftStatus.OK
    message: str = ""
    agents: list[AgentDrift] = field(default_factory=list)

    @property
    def drifted(self) -> bool:
        return any(a.files for a in self.agents)

    @classmethod
    def unknown(cls, project: str, message: str) -> DriftReport:
        return cls(project=project, status=DriftStatus.UNKNOWN, message=message)

    def summary(self) -> str:
        if self.status == DriftStatus.UNKNOWN:
            return f"{self.project}: drift unknown ({self.message})"
        if not self.drifted:
            return f"{self.project}: in sync"
        count = sum(len(a.files) for a in self.agents)
        labels = ", ".join(a.agent_label for a in self.agents)
        return f"{self.project}: DRIFT in {count} file(s) [{labels}]"

    def to_dict(self) -> dict:
        return {
            "project": self.project,
            "drifted": self.drifted,
            "status": self.status,
            "message": self.message,
            "agents": [
                {
                    "agent_id": a.agent_id,
                    "agent_label": a.agent_label,
                    "files": [{"path": f.path, "reason": f.reason.value} for f in a.files],
                }
                for a in self.agents
            ],
        }


class DriftDetector:
    """Compares a project's sync plan and manifest against the filesystem."""

    def __init__(self, planner: SyncPlanner, manifests: ManifestStore):
        self.planner = planner
        self.manifests = manifests

    def check(self, project: Project) -> DriftReport:
        """Classify drift for ``project``. Never raises."""
        try:
            return self._check(project)
        except DriftCheckUnavailable as e:
            return DriftReport.unknown(project.name, str(e))
        except Exception as e:
            logger.exception("Drift check failed for project '%s'", project.name)
            return DriftReport.unknown(project.name, f"Drift check failed: {e}")

    def _check(self, project: Project) -> DriftReport:
        if not project.directory:
            raise DriftCheckUnavailable("Project has no directory configured")
        directory = Path(project.directory)
        if not directory.is_dir():
            raise DriftCheckUnavailable(f"Directory '{project.directory}' does not exist")

        agents = resolve_agents(project.agents)
        if not agents:
            return DriftReport(project=project.name)

        plan = self.planner.plan(project)
        manifest = self.manifests.read(project.name)

        found: list[tuple[str, DriftReason, list[str]]] = []
        for rel, target in plan.skills.items():
            reason = self._classify_skill(target, manifest.get(rel))
            if reason:
                found.append((rel, reason, target.agents))
        for rel, target in plan.mcp.items():
            reason = self._classify_mcp(target, manifest.get(rel))
            if reason:
                found.append((rel, reason, [target.agent.id]))
        for rel, target in plan.instructions.items():
            reason = self._classify_instructions(target, manifest.get(rel))
            if reason:
                found.append((rel, reason, target.agents))
        found.extend(self._unwanted(plan, manifest))

        return self._group(project, agents, found)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @staticmethod
    def _classify_skill(target: SkillTarget, record: ArtifactRecord | None) -> DriftReason | None:
        path = target.path
        if not os.path.lexists(path):
            return DriftReason.MISSING
        if not path.exists():
            return DriftReason.UNREADABLE  # Dangling symlink

        is_link = path.is_symlink()
        try:
            if record is not None and record.link_target is not None:
                if not is_link or os.readlink(path) != record.link_target:
                    return DriftReason.MODIFIED
            elif record is not None and record.digest is not None:
                if is_link or tree_digest(path) != record.digest:
                    return DriftReason.MODIFIED

            if target.source is None:
                return None
            if target.link_target is not None:
                if is_link:
                    matches = os.readlink(path) == target.link_target
                else:
                    matches = tree_digest(path) == tree_digest(target.source)
            else:
                matches = not is_link and tree_digest(path) == tree_digest(target.source)
        except OSError:
            return DriftReason.UNREADABLE
        return None if matches else DriftReason.STALE

    @staticmethod
    def _classify_mcp(target: McpTarget, record: ArtifactRecord | None) -> DriftReason | None:
        path = target.path
        if not path.exists():
            if record is not None or target.desired:
                return DriftReason.MISSING
            return None

        try:
            text = path.read_text(encoding="utf-8")
            parse_document(target.agent, text)
        except (OSError, UnicodeDecodeError, McpConfigError):
            return DriftReason.UNREADABLE

        if record is not None and record.digest is not None and text_digest(text) != record.digest:
            return DriftReason.MODIFIED

        owned = set(record.owned_keys) if record else set()
        try:
            outcome = merge_servers(target.agent, text, target.desired, owned)
        except McpConfigError:
            return DriftReason.UNREADABLE
        if outcome is None:
            return None
        if outcome.content != text and (outcome.owned_keys or owned):
            return DriftReason.STALE
        return None

    @staticmethod
    def _classify_instructions(
        target: InstructionTarget, record: ArtifactRecord | None
    ) -> DriftReason | None:
        path = target.path
        if not path.exists():
            if target.expected is not None or record is not None:
                return DriftReason.MISSING
            return None
        if target.error:
            return DriftReason.UNREADABLE
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return DriftReason.UNREADABLE

        owned = owned_text(text, target.whole_file)
        if record is not None and record.digest is not None and text_digest(owned) != record.digest:
            return DriftReason.MODIFIED
        if target.expected is not None and text != target.expected:
            return DriftReason.STALE
        return None

    @staticmethod
    def _unwanted(plan: SyncPlan, manifest: SyncManifest) -> list[tuple[str, DriftReason, list[str]]]:
        """Sync-written artifacts the current state no longer calls for."""
        found = []
        for rel, record in manifest.artifacts.items():
            if rel in plan.skills or rel in plan.mcp or rel in plan.instructions:
                continue
            if record.kind == ArtifactKind.INSTRUCTIONS:
                continue
            if record.kind == ArtifactKind.MCP and not record.owned_keys:
                continue
            if os.path.lexists(plan.directory / rel):
                found.append((rel, DriftReason.STALE, record.agents))
        return found

    @staticmethod
    def _group(
        project: Project,
        agents: list,
        found: list[tuple[str, DriftReason, list[str]]],
    ) -> DriftReport:
        report = DriftReport(project=project.name)
        by_agent: dict[str, AgentDrift] = {}
        order = [a.id for a in agents]

        for rel, reason, agent_ids in found:
            for agent_id in agent_ids:
                entry = by_agent.get(agent_id)
                if entry is None:
                    descriptor = try_by_id(agent_id)
                    label = descriptor.label if descriptor else agent_id
                    entry = by_agent[agent_id] = AgentDrift(agent_id=agent_id, agent_label=label)
                entry.files.append(DriftedFile(path=rel, reason=reason))

        report.agents = sorted(
            by_agent.values(),
            key=lambda a: order.index(a.agent_id) if a.agent_id in order else len(order),
        )
        if report.drifted:
            report.message = report.summary()
        return report
