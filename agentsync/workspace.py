"""Workspace: every external operation over one agentsync home directory.

The CLI and the HTTP API are thin layers over this class. It wires the
stores, registries and sync components together, stamps timestamps, and
allows one mutating operation per project at a time.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional

from agentsync.agents.registry import list_agents, resolve_agents
from agentsync.catalog.mcp_servers import McpServerRegistry
from agentsync.catalog.rules import RuleCatalogue
from agentsync.catalog.skills import SkillRegistry
from agentsync.errors import OperationInProgress, PartialSyncFailure, ValidationError
from agentsync.models.project import Project, ProjectFileInfo, ProjectTemplate, Settings, utc_now
from agentsync.store.paths import default_home, require_valid_name
from agentsync.store.project_store import ProjectStore
from agentsync.store.settings import SettingsStore
from agentsync.store.template_store import TemplateStore
from agentsync.sync import instructions
from agentsync.sync.autodetect import Autodetector, DetectedState, merge_detected
from agentsync.sync.drift import DriftDetector, DriftReport
from agentsync.sync.engine import SyncEngine, SyncResult
from agentsync.sync.local_skills import LocalSkillReplicator
from agentsync.sync.manifest import ManifestStore
from agentsync.sync.monitor import DEFAULT_INTERVAL, DriftMonitor
from agentsync.sync.plan import SyncPlanner
from agentsync.sync.templates import TemplateApplier

logger = logging.getLogger(__name__)

STATUS_SYNCED = "Saved & synced"
STATUS_NO_DIRECTORY = "Saved (no directory to sync)"


@dataclass
class SaveStatus:
    """Outcome of save-and-sync. The save itself always happened."""

    project: Project
    message: str
    result: SyncResult | None = None

    @property
    def ok(self) -> bool:
        return self.result is None or self.result.ok


class Workspace:
    def __init__(self, home: Optional[str | Path] = None):
        self.home = Path(home) if home is not None else default_home()
        self.projects = ProjectStore(self.home)
        self.templates = TemplateStore(self.home)
        self.settings = SettingsStore(self.home)
        self.skills = SkillRegistry(self.home)
        self.mcp_servers = McpServerRegistry(self.home)
        self.rules = RuleCatalogue(self.home)
        self.manifests = ManifestStore(self.home)

        self.detector = Autodetector(self.skills)
        self.replicator = LocalSkillReplicator(self.skills)
        self.applier = TemplateApplier()

        self._guards: dict[str, threading.Lock] = {}
        self._guards_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def engine(self) -> SyncEngine:
        mode = self.settings.read().skill_sync_mode
        return SyncEngine(self.skills, self.mcp_servers, self.rules, self.manifests, sync_mode=mode)

    def drift_detector(self) -> DriftDetector:
        mode = self.settings.read().skill_sync_mode
        planner = SyncPlanner(self.skills, self.mcp_servers, self.rules, mode)
        return DriftDetector(planner, self.manifests)

    @contextmanager
    def operation(self, name: str) -> Iterator[None]:
        """Hold the per-project guard. Raises OperationInProgress if it is taken."""
        with self._guards_lock:
            guard = self._guards.setdefault(name, threading.Lock())
        if not guard.acquire(blocking=False):
            raise OperationInProgress(f"Another operation is running for project '{name}'")
        try:
            yield
        finally:
            guard.release()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[str]:
        return self.projects.list_names()

    def read_project(self, name: str) -> Project:
        return self.projects.read(name)

    def new_project(self, name: str, directory: str = "", description: str = "") -> Project:
        """A fresh, unsaved project preselecting the default agents from settings."""
        require_valid_name(name, "project name")
        return Project(
            name=name,
            directory=directory,
            description=description,
            agents=list(self.settings.read().default_agents),
        )

    def save_project(self, project: Project) -> Project:
        """Validate, stamp timestamps and persist."""
        require_valid_name(project.name, "project name")
        both = set(project.skills) & set(project.local_skills)
        if both:
            raise ValidationError(f"Skills cannot be both global and local: {', '.join(sorted(both))}")
        if project.directory and not Path(project.directory).is_absolute():
            raise ValidationError(f"Project directory must be absolute: {project.directory}")

        now = utc_now()
        if not project.created_at:
            if self.projects.exists(project.name):
                project.created_at = self.projects.read(project.name).created_at or now
            else:
                project.created_at = now
        project.updated_at = now
        return self.projects.save(project)

    def delete_project(self, name: str) -> bool:
        with self.operation(name):
            self.manifests.delete(name)
            return self.projects.delete(name)

    def rename_project(self, old: str, new: str) -> Project:
        require_valid_name(new, "project name")
        with self.operation(old):
            project = self.projects.rename(old, new)
            self.manifests.rename(old, new)
            logger.info("Renamed project '%s' to '%s'", old, new)
            return project

    def save_and_sync(self, project: Project) -> SaveStatus:
        with self.operation(project.name):
            return self._save_and_sync(project)

    def _save_and_sync(self, project: Project) -> SaveStatus:
        project = self.save_project(project)
        if not project.directory:
            return SaveStatus(project=project, message=STATUS_NO_DIRECTORY)
        try:
            result = self.engine().sync(project)
        except ValidationError as e:
            return SaveStatus(project=project, message=f"Sync failed: {e}")
        if not result.ok:
            return SaveStatus(project=project, message=str(PartialSyncFailure(result.failures)), result=result)
        return SaveStatus(project=project, message=STATUS_SYNCED, result=result)

    def sync(self, name: str) -> SyncResult:
        with self.operation(name):
            return self.engine().sync(self.projects.read(name))

    def remove_agent(self, name: str, agent_id: str) -> SaveStatus:
        """Drop an agent and re-sync so Sync-owned entries for it are cleaned up."""
        with self.operation(name):
            project = self.projects.read(name)
            project.agents = [a for a in project.agents if a != agent_id]
            return self._save_and_sync(project)

    # ------------------------------------------------------------------
    # Autodetection and drift
    # ------------------------------------------------------------------

    def autodetect(self, name: str) -> DetectedState:
        project = self.projects.read(name)
        return self.detector.detect(project.directory, list_agents())

    def activate(self, name: str) -> Project:
        """Fold autodetected state into the stored project and persist it.

        Newly discovered MCP server configs are added to the MCP registry
        when it does not know them yet.
        """
        with self.operation(name):
            project = self.projects.read(name)
            detected = self.detector.detect(project.directory, list_agents())
            for server, config in detected.mcp_configs.items():
                if not self.mcp_servers.exists(server):
                    self.mcp_servers.save(server, config)
                    logger.info("Registered MCP server '%s' found in %s", server, project.directory)
            project, changed = merge_detected(project, detected)
            if changed:
                project = self.save_project(project)
            return project

    def check_drift(self, name: str) -> DriftReport:
        return self.drift_detector().check(self.projects.read(name))

    def monitor(
        self,
        name: str,
        on_report: Callable[[DriftReport], None],
        has_unsaved_changes: Optional[Callable[[], bool]] = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> DriftMonitor:
        """A drift monitor for one project. Call ``start()`` on it to begin polling."""

        def attended() -> bool:
            if has_unsaved_changes is not None and has_unsaved_changes():
                return False
            project = self.projects.read(name)
            return bool(project.directory) and bool(resolve_agents(project.agents))

        return DriftMonitor(
            check=lambda: self.check_drift(name),
            on_report=on_report,
            should_check=attended,
            interval=interval,
        )

    # ------------------------------------------------------------------
    # Local skills
    # ------------------------------------------------------------------

    def replicate_local_skills(self, name: str) -> list[Path]:
        with self.operation(name):
            return self.replicator.replicate(self.projects.read(name))

    def promote_local_skill(self, name: str, skill: str) -> Project:
        with self.operation(name):
            project = self.replicator.promote(self.projects.read(name), skill)
            return self.save_project(project)

    def read_local_skill(self, name: str, skill: str) -> str:
        return self.replicator.read_local_skill(self.projects.read(name), skill)

    def save_local_skill(self, name: str, skill: str, content: str) -> list[Path]:
        with self.operation(name):
            return self.replicator.save_local_skill(self.projects.read(name), skill, content)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def list_templates(self) -> list[str]:
        return self.templates.list_names()

    def read_template(self, name: str) -> ProjectTemplate:
        return self.templates.read(name)

    def save_template(self, template: ProjectTemplate) -> ProjectTemplate:
        require_valid_name(template.name, "template name")
        return self.templates.save(template)

    def delete_template(self, name: str) -> bool:
        return self.templates.delete(name)

    def rename_template(self, old: str, new: str) -> ProjectTemplate:
        require_valid_name(new, "template name")
        return self.templates.rename(old, new)

    def apply_template(self, template_name: str, project_name: str) -> SaveStatus:
        """Merge a template into a project, then save and sync it."""
        if not self.templates.exists(template_name):
            raise ValidationError(f"Unknown template '{template_name}'")
        template = self.templates.read(template_name)
        with self.operation(project_name):
            project = self.applier.apply(template, self.projects.read(project_name))
            return self._save_and_sync(project)

    # ------------------------------------------------------------------
    # Project files
    # ------------------------------------------------------------------

    def project_file_info(self, name: str) -> list[ProjectFileInfo]:
        return instructions.project_file_info(self.projects.read(name))

    def read_project_file(self, name: str, filename: str) -> str:
        return instructions.read_project_file(self.projects.read(name), filename)

    def save_project_file(self, name: str, filename: str, content: str) -> list[Path]:
        with self.operation(name):
            return instructions.save_project_file(self.projects.read(name), filename, content, self.rules)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def read_settings(self) -> Settings:
        return self.settings.read()

    def save_settings(self, settings: Settings) -> Settings:
        unknown = [a for a in settings.default_agents if a not in {d.id for d in list_agents()}]
        if unknown:
            raise ValidationError(f"Unknown agents: {', '.join(unknown)}")
        return self.settings.save(settings)
