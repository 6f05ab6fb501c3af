"""Tests for the agent catalogue."""

import tempfile
from pathlib import Path

import pytest

from agentsync.agents.registry import (
    McpFormat,
    agent_to_dict,
    by_id,
    list_agents,
    resolve_agents,
    try_by_id,
)
from agentsync.errors import NotFound


def test_catalogue_has_fourteen_agents():
    ids = [a.id for a in list_agents()]
    assert len(ids) == 14
    assert len(set(ids)) == 14
    assert ids[0] == "claude"
    assert "warp" in ids


def test_by_id_unknown_raises():
    with pytest.raises(NotFound):
        by_id("no-such-agent")


def test_try_by_id_unknown_returns_none():
    assert try_by_id("no-such-agent") is None
    assert try_by_id("cursor").label == "Cursor"


def test_resolve_agents_drops_unknown_and_duplicates():
    agents = resolve_agents(["claude", "bogus", "claude", "codex"])
    assert [a.id for a in agents] == ["claude", "codex"]


def test_warp_cannot_receive_mcp():
    warp = by_id("warp")
    assert warp.mcp_note
    assert not warp.capabilities.mcp_servers
    assert warp.capabilities.instructions
    assert warp.capabilities.skills


def test_mcp_dialects():
    assert by_id("codex").mcp_format == McpFormat.TOML
    assert by_id("opencode").mcp_format == McpFormat.OPENCODE
    assert by_id("opencode").mcp_root_key == "mcp"
    assert by_id("copilot").mcp_root_key == "servers"
    assert by_id("claude").mcp_root_key == "mcpServers"


def test_paths_are_relative_to_directory():
    claude = by_id("claude")
    root = Path("/work/proj")
    assert claude.mcp_path(root) == root / ".mcp.json"
    assert claude.instruction_path(root) == root / "CLAUDE.md"
    assert claude.skill_paths(root) == [root / ".claude" / "skills"]
    assert by_id("warp").mcp_path(root) is None


def test_detect_in_uses_markers():
    with tempfile.TemporaryDirectory() as tmpdir:
        assert not by_id("cursor").detect_in(tmpdir)
        (Path(tmpdir) / ".cursorrules").write_text("be nice")
        assert by_id("cursor").detect_in(tmpdir)


def test_agent_to_dict():
    data = agent_to_dict(by_id("warp"))
    assert data["id"] == "warp"
    assert data["capabilities"] == {"skills": True, "instructions": True, "mcp_servers": False}
    assert data["mcp_note"]
