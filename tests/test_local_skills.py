"""Tests for project-local skill replication and promotion."""

import os
import tempfile
from pathlib import Path

import pytest

from agentsync.catalog.skills import SkillRegistry
from agentsync.errors import NotFound, ValidationError
from agentsync.models.project import Project
from agentsync.sync.local_skills import LocalSkillReplicator


def _setup(tmpdir: str):
    home = Path(tmpdir) / "home"
    project_dir = Path(tmpdir) / "proj"
    source = project_dir / ".claude" / "skills" / "deploy"
    source.mkdir(parents=True)
    (source / "SKILL.md").write_text("# Deploy\n")
    (source / "checklist.md").write_text("- tag\n")
    project = Project(
        name="p",
        directory=str(project_dir),
        agents=["claude", "cursor", "junie"],
        local_skills=["deploy"],
    )
    return project_dir, project, LocalSkillReplicator(SkillRegistry(home))


def test_replicate_copies_into_every_agent_skill_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)

        written = replicator.replicate(project)

        expected = [
            project_dir / ".agents" / "skills" / "deploy",
            project_dir / ".junie" / "skills" / "deploy",
        ]
        assert sorted(written) == sorted(expected)
        for path in expected:
            assert (path / "SKILL.md").read_text() == "# Deploy\n"
            assert (path / "checklist.md").read_text() == "- tag\n"


def test_replicate_stays_inside_project():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        outside = Path(tmpdir) / "elsewhere"
        outside.mkdir()
        (project_dir / ".agents").mkdir()
        os.symlink(outside, project_dir / ".agents" / "skills")

        with pytest.raises(ValidationError):
            replicator.replicate(project)
        assert list(outside.iterdir()) == []


def _tree(root: Path) -> dict:
    return {
        p.relative_to(root).as_posix(): p.read_bytes() if p.is_file() else None
        for p in sorted(root.rglob("*"))
    }


def test_replicate_leaves_other_projects_alone():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        other_dir = Path(tmpdir) / "other"
        other_source = other_dir / ".claude" / "skills" / "deploy"
        other_source.mkdir(parents=True)
        (other_source / "SKILL.md").write_text("# Other deploy\n")
        (other_dir / ".junie" / "skills").mkdir(parents=True)
        before = _tree(other_dir)

        replicator.replicate(project)

        assert _tree(other_dir) == before
        assert (project_dir / ".junie" / "skills" / "deploy" / "SKILL.md").read_text() == "# Deploy\n"


def test_replicate_requires_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        project.directory = ""
        with pytest.raises(ValidationError):
            replicator.replicate(project)


def test_read_local_skill():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        assert replicator.read_local_skill(project, "deploy") == "# Deploy\n"
        with pytest.raises(NotFound):
            replicator.read_local_skill(project, "missing")


def test_save_local_skill_updates_existing_copies():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        replicator.replicate(project)

        written = replicator.save_local_skill(project, "deploy", "# Deploy v2\n")

        assert len(written) == 3
        assert all(p.read_text() == "# Deploy v2\n" for p in written)


def test_promote_moves_skill_to_global_registry():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)

        updated = replicator.promote(project, "deploy")

        assert updated.local_skills == []
        assert updated.skills == ["deploy"]
        assert replicator.skills.read_skill("deploy") == "# Deploy\n"
        assert (replicator.skills.skill_dir("deploy") / "checklist.md").exists()


def test_promote_unknown_local_skill_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        project_dir, project, replicator = _setup(tmpdir)
        with pytest.raises(ValidationError):
            replicator.promote(project, "not-local")
