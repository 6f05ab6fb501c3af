"""Global MCP server registry at ``<home>/mcp_servers/<name>.json``.

Each document is one canonical server config (see ``agentsync.agents.formats``).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from agentsync.errors import NotFound
from agentsync.store.documents import JsonDocumentStore
from agentsync.store.paths import default_home


class McpServerRegistry:
    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._docs = JsonDocumentStore(home / "mcp_servers", kind="MCP server")

    def list_names(self) -> list[str]:
        return self._docs.names()

    def exists(self, name: str) -> bool:
        return self._docs.exists(name)

    def read(self, name: str) -> dict:
        return self._docs.load(name)

    def try_read(self, name: str) -> dict | None:
        try:
            return self.read(name)
        except NotFound:
            return None

    def save(self, name: str, config: dict) -> None:
        self._docs.dump(name, dict(config))

    def delete(self, name: str) -> bool:
        return self._docs.delete(name)
