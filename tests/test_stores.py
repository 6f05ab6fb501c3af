"""Tests for the canonical stores, registries and data model round-trips."""

import json
import tempfile
from pathlib import Path

import pytest

from agentsync.catalog.mcp_servers import McpServerRegistry
from agentsync.catalog.rules import RuleCatalogue
from agentsync.catalog.skills import SkillRegistry
from agentsync.errors import NotFound, ValidationError
from agentsync.models.project import (
    UNIFIED_KEY,
    InstructionMode,
    Project,
    ProjectTemplate,
    Settings,
    SkillSyncMode,
    TemplateProjectFile,
)
from agentsync.store.paths import HOME_ENV, default_home, is_valid_name
from agentsync.store.project_store import ProjectStore
from agentsync.store.settings import SettingsStore
from agentsync.store.template_store import TemplateStore
from agentsync.sync.manifest import ArtifactKind, ArtifactRecord, ManifestStore, SyncManifest


def _full_project() -> Project:
    return Project(
        name="webapp",
        description="Storefront",
        directory="/work/webapp",
        skills=["writing-tests"],
        local_skills=["deploy"],
        mcp_servers=["github"],
        providers=["anthropic"],
        agents=["claude", "codex"],
        file_rules={"CLAUDE.md": ["r1"], UNIFIED_KEY: ["r2"]},
        instruction_mode=InstructionMode.UNIFIED,
        created_at="2024-01-01T00:00:00+00:00",
        updated_at="2024-01-02T00:00:00+00:00",
        created_by="dana",
    )


# --- Names ---


def test_valid_names():
    assert is_valid_name("my-project")
    assert is_valid_name("My Project 2")
    for bad in ("", " ", ".", "..", "a/b", "a\\b"):
        assert not is_valid_name(bad)


def test_default_home_honours_env(monkeypatch):
    monkeypatch.setenv(HOME_ENV, "/tmp/agentsync-home")
    assert default_home() == Path("/tmp/agentsync-home")
    monkeypatch.delenv(HOME_ENV)
    assert default_home() == Path.home() / ".agentsync"


# --- Projects ---


def test_project_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProjectStore(tmpdir)
        project = _full_project()
        store.save(project)
        assert store.read("webapp") == project
        assert store.list_names() == ["webapp"]


def test_project_defaults_from_sparse_document():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "projects" / "bare.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"agents": ["claude"], "instruction_mode": "bogus"}))

        project = ProjectStore(tmpdir).read("bare")
        assert project.name == "bare"
        assert project.agents == ["claude"]
        assert project.instruction_mode == InstructionMode.PER_AGENT
        assert project.skills == []


def test_project_read_missing_and_corrupt():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProjectStore(tmpdir)
        with pytest.raises(NotFound):
            store.read("nope")

        path = Path(tmpdir) / "projects" / "broken.json"
        path.parent.mkdir(parents=True)
        path.write_text("{oops")
        with pytest.raises(ValidationError):
            store.read("broken")


def test_project_invalid_name_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(ValidationError):
            ProjectStore(tmpdir).save(Project(name="../escape"))


def test_project_rename_and_delete():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ProjectStore(tmpdir)
        store.save(_full_project())
        store.save(Project(name="other"))

        renamed = store.rename("webapp", "shop")
        assert renamed.name == "shop"
        assert store.read("shop").skills == ["writing-tests"]
        assert not store.exists("webapp")

        with pytest.raises(ValidationError):
            store.rename("shop", "other")

        assert store.delete("shop")
        assert not store.delete("shop")


def test_rules_for_uses_unified_key_in_unified_mode():
    project = _full_project()
    assert project.rules_for("CLAUDE.md") == ["r2"]
    project.instruction_mode = InstructionMode.PER_AGENT
    assert project.rules_for("CLAUDE.md") == ["r1"]
    assert project.all_skills == ["writing-tests", "deploy"]


# --- Templates and settings ---


def test_template_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = TemplateStore(tmpdir)
        template = ProjectTemplate(
            name="python",
            description="Python defaults",
            skills=["writing-tests"],
            agents=["claude"],
            project_files=[TemplateProjectFile(filename="CLAUDE.md", content="Use uv.")],
            unified_instruction="Be concise.",
            unified_rules=["r1"],
        )
        store.save(template)
        assert store.read("python") == template
        assert template.has_unified


def test_template_without_unified_content():
    assert not ProjectTemplate(name="t", unified_instruction="   ").has_unified


def test_settings_defaults_and_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SettingsStore(tmpdir)
        assert store.read() == Settings()

        store.save(Settings(skill_sync_mode=SkillSyncMode.COPY, default_agents=["claude"]))
        assert store.read().skill_sync_mode == SkillSyncMode.COPY
        assert store.read().default_agents == ["claude"]

        store.path.write_text("not json")
        assert store.read() == Settings()


# --- Registries ---


def test_skill_registry():
    with tempfile.TemporaryDirectory() as tmpdir:
        skills = SkillRegistry(tmpdir)
        assert skills.list_names() == []
        skills.save_skill("writing-tests", "# Writing tests\n")
        (skills.root / "not-a-skill").mkdir()

        assert skills.list_names() == ["writing-tests"]
        assert skills.read_skill("writing-tests") == "# Writing tests\n"
        with pytest.raises(NotFound):
            skills.skill_dir("not-a-skill")


def test_mcp_registry_and_rules():
    with tempfile.TemporaryDirectory() as tmpdir:
        servers = McpServerRegistry(tmpdir)
        servers.save("github", {"command": "npx"})
        assert servers.read("github") == {"command": "npx"}
        assert servers.try_read("missing") is None

        rules = RuleCatalogue(tmpdir)
        rules.save_rule("r1", "Tests first", "Write tests first.")
        assert rules.list_rules() == [{"id": "r1", "name": "Tests first"}]
        assert rules.read_rule("r1").content == "Write tests first."
        assert rules.try_read_rule("r9") is None
        assert rules.delete_rule("r1")
        assert rules.list_rules() == []
        assert servers.delete("github")
        assert servers.list_names() == []


# --- Manifest ---


def test_manifest_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ManifestStore(tmpdir)
        assert store.read("webapp").artifacts == {}

        manifest = SyncManifest(
            project="webapp",
            artifacts={
                ".mcp.json": ArtifactRecord(
                    kind=ArtifactKind.MCP, agents=["claude"], digest="sha256:ab", owned_keys=["github"]
                ),
                ".claude/skills/x": ArtifactRecord(
                    kind=ArtifactKind.SKILL, agents=["claude"], link_target="/skills/x"
                ),
            },
        )
        store.save(manifest)
        loaded = store.read("webapp")
        assert loaded.synced_at
        assert loaded.artifacts == manifest.artifacts

        store.rename("webapp", "shop")
        assert store.read("shop").artifacts == manifest.artifacts
        assert store.read("webapp").artifacts == {}
