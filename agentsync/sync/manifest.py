"""Sync manifest: what Sync wrote last time, per project.

Ownership is never inferred from file contents: an MCP entry, skill directory
or instruction file counts as Sync-owned only when its manifest record says
so. Records live beside canonical state at ``<home>/sync_state/<name>.json``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from agentsync.errors import NotFound
from agentsync.models.project import utc_now
from agentsync.store.documents import JsonDocumentStore
from agentsync.store.paths import default_home


class ArtifactKind:
    SKILL = "skill"
    LOCAL_SKILL = "local_skill"
    MCP = "mcp"
    INSTRUCTIONS = "instructions"


@dataclass
class ArtifactRecord:
    """One materialized artifact, keyed by its path relative to the project."""

    kind: str
    agents: list[str] = field(default_factory=list)
    digest: str | None = None
    link_target: str | None = None
    owned_keys: list[str] = field(default_factory=list)


@dataclass
class SyncManifest:
    project: str
    synced_at: str = ""
    artifacts: dict[str, ArtifactRecord] = field(default_factory=dict)

    def get(self, rel: str) -> ArtifactRecord | None:
        return self.artifacts.get(rel)

    def of_kind(self, *kinds: str) -> dict[str, ArtifactRecord]:
        return {rel: r for rel, r in self.artifacts.items() if r.kind in kinds}


def _record_to_dict(record: ArtifactRecord) -> dict:
    data: dict = {"kind": record.kind, "agents": list(record.agents)}
    if record.digest is not None:
        data["digest"] = record.digest
    if record.link_target is not None:
        data["link_target"] = record.link_target
    if record.owned_keys:
        data["owned_keys"] = list(record.owned_keys)
    return data


def _dict_to_record(data: dict) -> ArtifactRecord:
    return ArtifactRecord(
        kind=data.get("kind", ""),
        agents=list(data.get("agents", [])),
        digest=data.get("digest"),
        link_target=data.get("link_target"),
        owned_keys=list(data.get("owned_keys", [])),
    )


class ManifestStore:
    """Stores and retrieves sync manifests."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._docs = JsonDocumentStore(home / "sync_state", kind="sync manifest")

    def read(self, project: str) -> SyncManifest:
        """Return the project's manifest, or an empty one if it was never synced."""
        try:
            data = self._docs.load(project)
        except NotFound:
            return SyncManifest(project=project)
        artifacts = data.get("artifacts") or {}
        return SyncManifest(
            project=project,
            synced_at=data.get("synced_at", ""),
            artifacts={rel: _dict_to_record(r) for rel, r in artifacts.items() if isinstance(r, dict)},
        )

    def save(self, manifest: SyncManifest) -> None:
        if not manifest.synced_at:
            manifest.synced_at = utc_now()
        self._docs.dump(
            manifest.project,
            {
                "synced_at": manifest.synced_at,
                "artifacts": {
                    rel: _record_to_dict(r) for rel, r in sorted(manifest.artifacts.items())
                },
            },
        )

    def delete(self, project: str) -> bool:
        return self._docs.delete(project)

    def rename(self, old: str, new: str) -> None:
        if self._docs.exists(old):
            self._docs.move(old, new)
