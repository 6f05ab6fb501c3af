"""MCP config codecs: read and merge each agent's native MCP server file.

Canonical server configs look like Claude's ``.mcp.json`` entries::

    {"command": "npx", "args": [...], "env": {...}}          # stdio
    {"type": "http", "url": "https://...", "headers": {...}}  # http / sse

Each agent dialect (see :class:`~agentsync.agents.registry.McpFormat`) is
rendered from and normalised back to that shape. Merging is additive: only
entries whose names are in the owned set may be replaced or deleted.
"""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from agentsync.agents.registry import AgentDescriptor, McpFormat
from agentsync.store.paths import is_valid_name

_STDIO_ONLY_KEYS = ("type", "enabled", "timeout")
_BARE_TOML_KEY = re.compile(r"^[A-Za-z0-9_-]+$")
_MCP_TABLE_HEADER = re.compile(r"""^\[\s*['"]?mcp_servers['"]?\s*[.\]]""")
_MCP_ROOT_KEY = re.compile(r"""^['"]?mcp_servers['"]?\s*[.=]""")


class McpConfigError(ValueError):
    """An existing MCP config file could not be parsed."""


@dataclass
class MergeOutcome:
    """Result of merging desired servers into an agent's MCP file."""

    content: str
    owned_keys: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)


def _transport(config: dict) -> str:
    return str(config.get("type") or "stdio")


# ---------------------------------------------------------------------------
# Canonical <-> native entries
# ---------------------------------------------------------------------------


def render_entry(agent: AgentDescriptor, config: dict) -> dict:
    """Convert a canonical server config into the agent's native entry."""
    transport = _transport(config)

    if agent.mcp_format == McpFormat.OPENCODE:
        server: dict = {}
        if transport in ("http", "sse"):
            server["type"] = "remote"
            for key in ("url", "headers", "oauth"):
                if key in config:
                    server[key] = config[key]
        else:
            server["type"] = "local"
            command = []
            if config.get("command"):
                command.append(config["command"])
            command.extend(config.get("args") or [])
            if command:
                server["command"] = command
            if config.get("env"):
                server["environment"] = dict(config["env"])
        if config.get("enabled") is False:
            server["enabled"] = False
        if "timeout" in config:
            server["timeout"] = config["timeout"]
        return server

    server = dict(config)
    if transport == "stdio":
        for key in _STDIO_ONLY_KEYS:
            server.pop(key, None)
    return server


def normalise_entry(agent: AgentDescriptor, native: dict) -> dict:
    """Convert a native entry back into the canonical shape."""
    config = dict(native)
    if agent.mcp_format != McpFormat.OPENCODE:
        return config

    kind = config.get("type")
    if kind == "local":
        config["type"] = "stdio"
        command = config.pop("command", None)
        if isinstance(command, list) and command:
            config["command"] = command[0]
            if len(command) > 1:
                config["args"] = list(command[1:])
        elif isinstance(command, str):
            config["command"] = command
        if "environment" in config:
            config["env"] = config.pop("environment")
    elif kind == "remote":
        config["type"] = "http"
    return config


def _comparable(config: dict) -> dict:
    """Canonical config with the implicit ``type: stdio`` removed."""
    data = dict(config)
    if _transport(data) == "stdio":
        data.pop("type", None)
    return data


def same_server(agent: AgentDescriptor, native: dict, config: dict) -> bool:
    return _comparable(normalise_entry(agent, native)) == _comparable(config)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_document(agent: AgentDescriptor, text: str | None) -> dict:
    """Parse an MCP file into a dict. Raises McpConfigError on bad content."""
    if text is None or not text.strip():
        return {}
    if agent.mcp_format == McpFormat.TOML:
        try:
            return tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            raise McpConfigError(f"Invalid TOML: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise McpConfigError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise McpConfigError("Top-level JSON value is not an object")
    return data


def servers_in(agent: AgentDescriptor, document: dict) -> dict[str, dict]:
    servers = document.get(agent.mcp_root_key)
    if not isinstance(servers, dict):
        return {}
    return {name: cfg for name, cfg in servers.items() if isinstance(cfg, dict)}


def read_servers(agent: AgentDescriptor, directory: str | Path) -> dict[str, dict]:
    """Return native server entries from the agent's MCP file (empty if absent)."""
    path = agent.mcp_path(directory)
    if path is None or not path.is_file():
        return {}
    text = path.read_text(encoding="utf-8")
    return servers_in(agent, parse_document(agent, text))


def discover_servers(agent: AgentDescriptor, directory: str | Path) -> dict[str, dict]:
    """Return canonical configs for every valid server in the agent's MCP file."""
    found = {}
    for name, native in read_servers(agent, directory).items():
        if is_valid_name(name):
            found[name] = normalise_entry(agent, native)
    return found


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------


def merge_servers(
    agent: AgentDescriptor,
    existing_text: str | None,
    desired: dict[str, dict],
    owned: set[str],
) -> MergeOutcome | None:
    """Merge ``desired`` canonical configs into an agent MCP file.

    Entries not in ``owned`` are preserved untouched; owned entries are
    upserted and owned entries no longer desired are deleted. A non-owned
    entry with the same name is adopted when identical and reported as a
    conflict otherwise.

    Returns None when nothing is desired and nothing is owned, so a file
    Sync has never touched is neither created nor reformatted.
    """
    if not desired and not owned:
        return None

    document = parse_document(agent, existing_text)
    servers = servers_in(agent, document)
    outcome_owned: list[str] = []
    conflicts: list[str] = []

    for name in sorted(owned):
        if name not in desired:
            servers.pop(name, None)

    for name, config in desired.items():
        if name in servers and name not in owned:
            if not same_server(agent, servers[name], config):
                conflicts.append(name)
                continue
        servers[name] = render_entry(agent, config)
        outcome_owned.append(name)

    if agent.mcp_format == McpFormat.TOML:
        content = _merge_toml_text(existing_text or "", _render_toml_servers(servers))
    else:
        document[agent.mcp_root_key] = servers
        content = json.dumps(document, indent=2) + "\n"

    return MergeOutcome(content=content, owned_keys=outcome_owned, conflicts=conflicts)


# ---------------------------------------------------------------------------
# TOML helpers (Codex)
# ---------------------------------------------------------------------------


def _toml_key(key: str) -> str:
    return key if _BARE_TOML_KEY.match(key) else f'"{_toml_escape(key)}"'


def _toml_escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _toml_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return f'"{_toml_escape(str(value))}"'


def _render_toml_table(prefix: str, table: dict) -> str:
    scalars = {k: v for k, v in table.items() if not isinstance(v, dict)}
    tables = {k: v for k, v in table.items() if isinstance(v, dict)}

    out = f"[{prefix}]\n"
    for key, value in scalars.items():
        out += f"{_toml_key(key)} = {_toml_value(value)}\n"
    for key, sub in tables.items():
        if sub:
            out += "\n" + _render_toml_table(f"{prefix}.{_toml_key(key)}", sub)
    return out


def _render_toml_servers(servers: dict[str, dict]) -> str:
    return "".join(
        _render_toml_table(f"mcp_servers.{_toml_key(name)}", cfg) + "\n"
        for name, cfg in servers.items()
    )


def _merge_toml_text(existing: str, mcp_section: str) -> str:
    """Replace every ``[mcp_servers...]`` table while keeping the rest verbatim.

    Raises McpConfigError when servers are declared some other way (inline
    table, dotted root keys or an array of tables); appending tables to such a
    file would define ``mcp_servers`` twice.
    """
    kept: list[str] = []
    skipping = False
    at_root = True
    for line in existing.splitlines():
        stripped = line.strip()
        if stripped.startswith("[[") and _MCP_TABLE_HEADER.match(stripped[1:]):
            raise McpConfigError("mcp_servers is declared as an array of tables")
        if _MCP_TABLE_HEADER.match(stripped):
            skipping = True
            at_root = False
            continue
        if stripped.startswith("["):
            skipping = False
            at_root = False
        elif at_root and _MCP_ROOT_KEY.match(stripped):
            raise McpConfigError("mcp_servers is declared with root keys, not [mcp_servers.<name>] tables")
        if not skipping:
            kept.append(line)

    head = "\n".join(kept).rstrip()
    if not head:
        return mcp_section
    if not mcp_section:
        return head + "\n"
    return f"{head}\n\n{mcp_section}"
