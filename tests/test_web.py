"""Tests for the HTTP API."""

import tempfile
from pathlib import Path

from fastapi.testclient import TestClient

from agentsync.web.app import app
from agentsync.web.deps import get_workspace
from agentsync.workspace import STATUS_SYNCED, Workspace


def _client(tmpdir: str) -> tuple[TestClient, Workspace, Path]:
    ws = Workspace(Path(tmpdir) / "home")
    ws.skills.save_skill("writing-tests", "# Writing tests\n")
    ws.rules.save_rule("r1", "Tests first", "Write tests first.")
    project_dir = Path(tmpdir) / "proj"
    project_dir.mkdir()
    app.dependency_overrides[get_workspace] = lambda: ws
    return TestClient(app), ws, project_dir


def teardown_function():
    app.dependency_overrides.clear()


def test_health():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, _ = _client(tmpdir)
        assert client.get("/health").json() == {"status": "healthy"}


def test_project_crud_and_sync():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, ws, project_dir = _client(tmpdir)

        resp = client.put(
            "/api/projects/demo",
            json={"directory": str(project_dir), "agents": ["claude"], "skills": ["writing-tests"]},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["ok"]
        assert body["message"] == STATUS_SYNCED
        assert body["project"]["created_at"]
        assert (project_dir / ".claude" / "skills" / "writing-tests").exists()

        assert client.get("/api/projects").json() == ["demo"]
        assert client.get("/api/projects/demo").json()["skills"] == ["writing-tests"]

        drift = client.get("/api/projects/demo/drift").json()
        assert drift["status"] == "ok"
        assert not drift["drifted"]

        assert client.post("/api/projects/demo/rename", json={"new_name": "renamed"}).status_code == 200
        assert client.delete("/api/projects/renamed").status_code == 204
        assert client.get("/api/projects").json() == []


def test_new_project_uses_default_agents():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, _ = _client(tmpdir)
        client.put("/api/settings", json={"skill_sync_mode": "copy", "default_agents": ["cursor"]})

        body = client.put("/api/projects/demo", json={}).json()

        assert body["project"]["agents"] == ["cursor"]
        assert client.get("/api/settings").json()["skill_sync_mode"] == "copy"


def test_drift_reported():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, project_dir = _client(tmpdir)
        client.put(
            "/api/projects/demo",
            json={"directory": str(project_dir), "agents": ["claude"], "file_rules": {"CLAUDE.md": ["r1"]}},
        )
        (project_dir / "CLAUDE.md").unlink()

        drift = client.get("/api/projects/demo/drift").json()

        assert drift["drifted"]
        assert drift["agents"][0]["agent_id"] == "claude"
        assert drift["agents"][0]["files"] == [{"path": "CLAUDE.md", "reason": "missing"}]


def test_error_mapping():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, ws, _ = _client(tmpdir)
        assert client.get("/api/projects/missing").status_code == 404
        assert client.delete("/api/projects/missing").status_code == 404
        assert client.put("/api/projects/demo", json={"directory": "relative"}).status_code == 400
        assert client.put("/api/settings", json={"default_agents": ["vim"]}).status_code == 400

        client.put("/api/projects/demo", json={})
        with ws.operation("demo"):
            assert client.post("/api/projects/demo/sync").status_code == 409


def test_project_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, project_dir = _client(tmpdir)
        client.put("/api/projects/demo", json={"directory": str(project_dir), "agents": ["claude"]})

        files = client.get("/api/projects/demo/files").json()
        assert [f["filename"] for f in files] == ["CLAUDE.md"]

        resp = client.put("/api/projects/demo/files/CLAUDE.md", json={"content": "Hello"})
        assert resp.status_code == 200
        assert client.get("/api/projects/demo/files/CLAUDE.md").json() == {"content": "Hello"}


def test_templates_apply():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, project_dir = _client(tmpdir)
        client.put("/api/projects/demo", json={"directory": str(project_dir), "agents": ["claude"]})
        client.put("/api/templates/base", json={"skills": ["writing-tests"], "agents": ["gemini"]})

        assert client.get("/api/templates").json() == ["base"]
        body = client.post("/api/templates/base/apply/demo").json()

        assert body["project"]["agents"] == ["claude", "gemini"]
        assert body["project"]["skills"] == ["writing-tests"]
        assert client.post("/api/templates/missing/apply/demo").status_code == 400


def test_agents_listed():
    with tempfile.TemporaryDirectory() as tmpdir:
        client, _, _ = _client(tmpdir)
        agents = client.get("/api/agents").json()
        assert agents[0]["id"] == "claude"
        assert len(agents) == 14
