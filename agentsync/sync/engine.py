"""Sync engine: fan canonical project state out to every agent's files.

For each agent in ``project.agents`` (gated by its capabilities) the engine
materializes skills, merges MCP server entries and rewrites instruction
files. Failures are collected per artifact; everything that can be written is
written. The manifest records what was written so the next pass (and the
drift detector) knows which entries Sync owns.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from agentsync.agents.formats import McpConfigError, merge_servers
from agentsync.agents.registry import try_by_id
from agentsync.catalog.mcp_servers import McpServerRegistry
from agentsync.catalog.rules import RuleCatalogue
from agentsync.catalog.skills import SkillRegistry
from agentsync.errors import ConflictingOwnership, PartialSyncFailure, SyncFailure, ValidationError
from agentsync.models.project import Project, SkillSyncMode, utc_now
from agentsync.sync.helpers import copy_tree, link_or_copy, remove_path, text_digest, tree_digest
from agentsync.sync.instructions import owned_text
from agentsync.sync.manifest import ArtifactKind, ArtifactRecord, ManifestStore, SyncManifest
from agentsync.sync.plan import McpTarget, SkillTarget, SyncPlan, SyncPlanner

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of one sync pass."""

    written: list[str] = field(default_factory=list)
    failures: list[SyncFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def raise_for_failures(self) -> None:
        if self.failures:
            raise PartialSyncFailure(self.failures, self.written)

    def summary(self) -> str:
        if self.ok:
            return f"{len(self.written)} artifact(s) in sync"
        return "; ".join(f.summary() for f in self.failures)


class SyncEngine:
    """Materializes a project's canonical state into agent config files."""

    def __init__(
        self,
        skills: SkillRegistry,
        mcp_servers: McpServerRegistry,
        rules: RuleCatalogue,
        manifests: ManifestStore,
        sync_mode: SkillSyncMode = SkillSyncMode.SYMLINK,
    ):
        self.manifests = manifests
        self.sync_mode = sync_mode
        self.planner = SyncPlanner(skills, mcp_servers, rules, sync_mode)

    def sync(self, project: Project) -> SyncResult:
        """Run one sync pass. Raises ValidationError if there is no directory."""
        if not project.directory:
            raise ValidationError("Project has no directory configured")
        if not Path(project.directory).is_dir():
            raise ValidationError(f"Directory '{project.directory}' does not exist")

        plan = self.planner.plan(project)
        manifest = self.manifests.read(project.name)
        artifacts = dict(manifest.artifacts)
        result = SyncResult()

        self._sync_skills(plan, manifest, artifacts, result)
        self._sync_mcp(plan, manifest, artifacts, result)
        self._sync_instructions(plan, manifest, artifacts, result)

        self.manifests.save(SyncManifest(project=project.name, synced_at=utc_now(), artifacts=artifacts))
        logger.info(
            "Synced project '%s': %d artifact(s), %d failure(s)",
            project.name, len(result.written), len(result.failures),
        )
        return result

    # ------------------------------------------------------------------
    # Skills
    # ------------------------------------------------------------------

    def _sync_skills(
        self, plan: SyncPlan, manifest: SyncManifest, artifacts: dict, result: SyncResult
    ) -> None:
        for rel, target in plan.skills.items():
            if target.error:
                self._fail(result, target.agents, target.path, target.error)
                continue
            try:
                record = self._materialize_skill(target)
            except OSError as e:
                self._fail(result, target.agents, target.path, f"cannot write skill '{target.skill_id}': {e}")
                continue
            if record is None:
                # The local skill's own source; the user owns it.
                artifacts.pop(rel, None)
                continue
            artifacts[rel] = record
            result.written.append(str(target.path))

        for rel, record in manifest.of_kind(ArtifactKind.SKILL, ArtifactKind.LOCAL_SKILL).items():
            if rel in plan.skills:
                continue
            path = plan.directory / rel
            try:
                remove_path(path)
            except OSError as e:
                self._fail(result, record.agents, path, f"cannot remove skill: {e}")
                continue
            logger.debug("Removed deselected skill %s", path)
            artifacts.pop(rel, None)

    def _materialize_skill(self, target: SkillTarget) -> ArtifactRecord | None:
        """Write one skill directory. Returns None when ``target`` is the skill's source."""
        dest = target.path
        record = ArtifactRecord(kind=target.kind, agents=list(target.agents))

        if target.link_target is not None:
            if link_or_copy(target.link_target, dest):
                record.link_target = os.readlink(dest)
                return record
            logger.warning("Symlink refused for %s, copied instead", dest)
            record.digest = tree_digest(dest)
            return record

        if not dest.is_symlink() and dest.exists() and dest.resolve() == target.source.resolve():
            return None
        source_digest = tree_digest(target.source)
        up_to_date = dest.is_dir() and not dest.is_symlink() and tree_digest(dest) == source_digest
        if not up_to_date:
            copy_tree(target.source, dest)
        record.digest = source_digest
        return record

    # ------------------------------------------------------------------
    # MCP servers
    # ------------------------------------------------------------------

    def _sync_mcp(
        self, plan: SyncPlan, manifest: SyncManifest, artifacts: dict, result: SyncResult
    ) -> None:
        for rel, target in plan.mcp.items():
            for name in target.unknown:
                self._fail(result, [target.agent.id], target.path, f"unknown MCP server '{name}'")
            self._merge_mcp(target, manifest.get(rel), artifacts, result)

        # Agents removed from the project: drop the entries Sync put in their files.
        for rel, record in manifest.of_kind(ArtifactKind.MCP).items():
            if rel in plan.mcp:
                continue
            agent = try_by_id(record.agents[0]) if record.agents else None
            if agent is None or not record.owned_keys:
                artifacts.pop(rel, None)
                continue
            stale = McpTarget(rel=rel, path=plan.directory / rel, agent=agent)
            self._merge_mcp(stale, record, artifacts, result)

    def _merge_mcp(
        self,
        target: McpTarget,
        record: ArtifactRecord | None,
        artifacts: dict,
        result: SyncResult,
    ) -> None:
        agent = target.agent
        owned = set(record.owned_keys) if record else set()
        try:
            existing = target.path.read_text(encoding="utf-8") if target.path.is_file() else None
            outcome = merge_servers(agent, existing, target.desired, owned)
        except (OSError, UnicodeDecodeError, McpConfigError) as e:
            self._fail(result, [agent.id], target.path, f"unreadable MCP config: {e}")
            return

        if outcome is None:
            artifacts.pop(target.rel, None)
            return

        for key in outcome.conflicts:
            conflict = ConflictingOwnership(target.rel, key)
            self._fail(result, [agent.id], target.path, str(conflict))

        try:
            if outcome.content != existing and (outcome.owned_keys or owned):
                target.path.parent.mkdir(parents=True, exist_ok=True)
                target.path.write_text(outcome.content, encoding="utf-8")
        except OSError as e:
            self._fail(result, [agent.id], target.path, f"cannot write MCP config: {e}")
            return

        if outcome.owned_keys:
            artifacts[target.rel] = ArtifactRecord(
                kind=ArtifactKind.MCP,
                agents=[agent.id],
                digest=text_digest(outcome.content),
                owned_keys=outcome.owned_keys,
            )
            result.written.append(str(target.path))
        else:
            artifacts.pop(target.rel, None)

    # ------------------------------------------------------------------
    # Instructions
    # ------------------------------------------------------------------

    def _sync_instructions(
        self, plan: SyncPlan, manifest: SyncManifest, artifacts: dict, result: SyncResult
    ) -> None:
        for rel, target in plan.instructions.items():
            if target.error:
                self._fail(result, target.agents, target.path, target.error)
                continue
            if target.expected is None:
                artifacts.pop(rel, None)
                continue
            try:
                current = target.path.read_text(encoding="utf-8") if target.path.is_file() else None
                if current != target.expected:
                    target.path.parent.mkdir(parents=True, exist_ok=True)
                    target.path.write_text(target.expected, encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                self._fail(result, target.agents, target.path, f"cannot write instructions: {e}")
                continue
            artifacts[rel] = ArtifactRecord(
                kind=ArtifactKind.INSTRUCTIONS,
                agents=list(target.agents),
                digest=text_digest(owned_text(target.expected, target.whole_file)),
            )
            result.written.append(str(target.path))

        # Files of agents no longer in the project are left to the user.
        for rel in manifest.of_kind(ArtifactKind.INSTRUCTIONS):
            if rel not in plan.instructions:
                artifacts.pop(rel, None)

    @staticmethod
    def _fail(result: SyncResult, agents: list[str], path: Path, reason: str) -> None:
        logger.warning("Sync failure at %s: %s", path, reason)
        for agent_id in agents:
            result.failures.append(SyncFailure(agent_id=agent_id, path=str(path), reason=reason))
