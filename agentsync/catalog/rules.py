"""Rule catalogue at ``<home>/rules/<id>.json`` holding ``{name, content}``."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from agentsync.errors import NotFound
from agentsync.store.documents import JsonDocumentStore
from agentsync.store.paths import default_home


@dataclass
class Rule:
    id: str
    name: str
    content: str


class RuleCatalogue:
    """Reusable rule snippets injected into instruction files."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        home = Path(base_dir) if base_dir is not None else default_home()
        self._docs = JsonDocumentStore(home / "rules", kind="rule")

    def list_rules(self) -> list[dict]:
        """Return ``[{"id", "name"}]`` for every rule, sorted by id."""
        entries = []
        for rule_id in self._docs.names():
            rule = self.read_rule(rule_id)
            entries.append({"id": rule.id, "name": rule.name})
        return entries

    def read_rule(self, rule_id: str) -> Rule:
        data = self._docs.load(rule_id)
        return Rule(
            id=rule_id,
            name=data.get("name") or rule_id,
            content=data.get("content") or "",
        )

    def try_read_rule(self, rule_id: str) -> Rule | None:
        try:
            return self.read_rule(rule_id)
        except NotFound:
            return None

    def save_rule(self, rule_id: str, name: str, content: str) -> Rule:
        self._docs.dump(rule_id, {"name": name, "content": content})
        return Rule(id=rule_id, name=name, content=content)

    def delete_rule(self, rule_id: str) -> bool:
        return self._docs.delete(rule_id)
