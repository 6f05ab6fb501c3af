"""Tests for the agentsync command line."""

import json
import tempfile
from pathlib import Path

from click.testing import CliRunner

from agentsync.cli import main
from agentsync.workspace import Workspace


def _setup(tmpdir: str):
    home = Path(tmpdir) / "home"
    project_dir = Path(tmpdir) / "proj"
    project_dir.mkdir()
    Workspace(home).skills.save_skill("writing-tests", "# Writing tests\n")
    payload = Path(tmpdir) / "demo.yaml"
    payload.write_text(
        "name: demo\n"
        f"directory: {project_dir}\n"
        "agents: [claude, cursor]\n"
        "skills: [writing-tests]\n"
    )
    return home, project_dir, payload


def _run(home: Path, *args):
    return CliRunner().invoke(main, ["--home", str(home), *args])


def test_agents_list():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(Path(tmpdir), "agents", "list")
        assert result.exit_code == 0
        assert "claude" in result.output


def test_project_save_sync_and_drift():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, project_dir, payload = _setup(tmpdir)

        result = _run(home, "project", "save", str(payload))
        assert result.exit_code == 0, result.output
        assert "Saved & synced" in result.output
        assert (project_dir / ".agents" / "skills" / "writing-tests" / "SKILL.md").exists()

        result = _run(home, "project", "drift", "demo")
        assert result.exit_code == 0
        assert "in sync" in result.output

        result = _run(home, "project", "list")
        assert "demo" in result.output


def test_project_drift_exit_code():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, project_dir, payload = _setup(tmpdir)
        _run(home, "project", "save", str(payload))
        (project_dir / ".claude" / "skills" / "writing-tests").unlink()

        result = _run(home, "project", "drift", "demo", "--json")

        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["drifted"]
        assert data["agents"][0]["files"][0]["reason"] == "missing"


def test_project_save_without_sync():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, project_dir, payload = _setup(tmpdir)

        result = _run(home, "project", "save", str(payload), "--no-sync")

        assert result.exit_code == 0
        assert not (project_dir / ".claude").exists()
        assert Workspace(home).read_project("demo").agents == ["claude", "cursor"]


def test_unknown_project_is_an_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run(Path(tmpdir), "project", "show", "missing")
        assert result.exit_code == 1
        assert "missing" in result.output


def test_settings_set_and_show():
    with tempfile.TemporaryDirectory() as tmpdir:
        home = Path(tmpdir)
        result = _run(home, "settings", "set", "--skill-sync-mode", "copy", "--default-agent", "gemini")
        assert result.exit_code == 0

        settings = Workspace(home).read_settings()
        assert settings.skill_sync_mode.value == "copy"
        assert settings.default_agents == ["gemini"]

        result = _run(home, "settings", "set", "--default-agent", "vim")
        assert result.exit_code == 1


def test_template_save_and_apply():
    with tempfile.TemporaryDirectory() as tmpdir:
        home, project_dir, payload = _setup(tmpdir)
        _run(home, "project", "save", str(payload))
        template = Path(tmpdir) / "t.json"
        template.write_text(json.dumps({"name": "base", "agents": ["gemini"], "unified_instruction": "Hi"}))

        assert _run(home, "template", "save", str(template)).exit_code == 0
        result = _run(home, "template", "apply", "base", "demo")

        assert result.exit_code == 0, result.output
        assert (project_dir / "GEMINI.md").read_text() == "Hi"
        assert (project_dir / "CLAUDE.md").read_text() == "Hi"
        assert Workspace(home).read_project("demo").agents == ["claude", "cursor", "gemini"]
