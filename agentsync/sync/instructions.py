"""Instruction files and the injected rules section.

Every agent reads a natural-language instruction file (``CLAUDE.md``,
``AGENTS.md``, ...). The user owns the body of that file; Sync owns only a
trailing rules section delimited by HTML comment markers::

    <user content>

    <!-- agentsync:rules:start -->
    ## Rules

    ### <rule name>

    <rule body>
    <!-- agentsync:rules:end -->

In Unified mode one body is shared by every agent's file and the rules come
from ``file_rules["_unified"]``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from agentsync.agents.registry import AgentDescriptor, resolve_agents
from agentsync.catalog.rules import RuleCatalogue
from agentsync.errors import ValidationError
from agentsync.models.project import UNIFIED_KEY, Project, ProjectFileInfo

logger = logging.getLogger(__name__)

RULES_START = "<!-- agentsync:rules:start -->"
RULES_END = "<!-- agentsync:rules:end -->"


def strip_rules_section(content: str) -> str:
    """Return ``content`` without the rules section (user-authored text only)."""
    start = content.find(RULES_START)
    end = content.find(RULES_END)
    if start == -1 or end == -1 or end < start:
        return content

    before = content[:start].rstrip()
    after = content[end + len(RULES_END):].lstrip()
    if before and after:
        return f"{before}\n\n{after}"
    if before:
        return before + "\n"
    return after


def extract_rules_section(content: str) -> str:
    """The rules section of ``content`` including its markers, or an empty string."""
    start = content.find(RULES_START)
    end = content.find(RULES_END)
    if start == -1 or end == -1 or end < start:
        return ""
    return content[start:end + len(RULES_END)]


def build_rules_section(rule_ids: list[str], rules: RuleCatalogue) -> str:
    """Render the rules section for ``rule_ids``; empty when none resolve."""
    parts = []
    for rule_id in rule_ids:
        rule = rules.try_read_rule(rule_id)
        if rule is None:
            logger.warning("Skipping unknown rule %r", rule_id)
            continue
        if not rule.content.strip():
            continue
        parts.append(f"### {rule.name}\n\n{rule.content.strip()}\n")

    if not parts:
        return ""
    return f"{RULES_START}\n## Rules\n\n" + "\n".join(parts) + RULES_END


def compose(user_content: str, section: str) -> str:
    """Full file text: user content followed by the rules section, if any."""
    if not section:
        return user_content
    body = user_content.rstrip()
    if not body:
        return section + "\n"
    return f"{body}\n\n{section}\n"


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


def instruction_agents(project: Project) -> dict[str, list[AgentDescriptor]]:
    """Map each instruction filename to the project agents using it, in agent order."""
    targets: dict[str, list[AgentDescriptor]] = {}
    for agent in resolve_agents(project.agents):
        if not agent.capabilities.instructions or not agent.project_file:
            continue
        targets.setdefault(agent.project_file, []).append(agent)
    return targets


def _read_user_content(path: Path) -> str:
    return strip_rules_section(path.read_text(encoding="utf-8"))


def unified_source(project: Project) -> tuple[str | None, str]:
    """The first existing target file (agent order) and its user content."""
    directory = Path(project.directory)
    for filename in instruction_agents(project):
        path = directory / filename
        if path.is_file():
            return filename, _read_user_content(path)
    return None, ""


def expected_contents(project: Project, rules: RuleCatalogue) -> dict[str, str | None]:
    """What Sync would write to each instruction file right now.

    ``None`` means the file is left alone: it has no rules section and none
    is wanted. Raises OSError if a file cannot be read.
    """
    directory = Path(project.directory)
    filenames = list(instruction_agents(project))
    expected: dict[str, str | None] = {}

    if project.is_unified:
        _, user = unified_source(project)
        section = build_rules_section(project.rules_for(UNIFIED_KEY), rules)
        content = compose(user, section)
        for filename in filenames:
            exists = (directory / filename).is_file()
            expected[filename] = content if (exists or content) else None
        return expected

    for filename in filenames:
        path = directory / filename
        section = build_rules_section(project.rules_for(filename), rules)
        if path.is_file():
            text = path.read_text(encoding="utf-8")
            if section or RULES_START in text:
                expected[filename] = compose(strip_rules_section(text), section)
            else:
                expected[filename] = None
        else:
            expected[filename] = compose("", section) if section else None
    return expected


# ---------------------------------------------------------------------------
# Project file operations
# ---------------------------------------------------------------------------


def _require_directory(project: Project) -> Path:
    if not project.directory:
        raise ValidationError("Project has no directory configured")
    directory = Path(project.directory)
    if not directory.is_dir():
        raise ValidationError(f"Directory '{project.directory}' does not exist")
    return directory


def _targets_for(project: Project, filename: str) -> list[str]:
    targets = list(instruction_agents(project))
    if project.is_unified and filename in (UNIFIED_KEY, *targets):
        return targets
    if filename in targets:
        return [filename]
    raise ValidationError(f"'{filename}' is not an instruction file of project {project.name}")


def project_file_info(project: Project) -> list[ProjectFileInfo]:
    """Logical instruction files of a project, sorted by filename.

    Unified mode collapses every target into a single ``_unified`` entry.
    """
    targets = instruction_agents(project)
    directory = Path(project.directory) if project.directory else None

    def exists(filename: str) -> bool:
        return directory is not None and (directory / filename).is_file()

    if project.is_unified:
        if not targets:
            return []
        filenames = sorted(targets)
        labels = [a.label for f in filenames for a in targets[f]]
        return [
            ProjectFileInfo(
                filename=UNIFIED_KEY,
                agents=labels,
                exists=any(exists(f) for f in filenames),
                target_files=filenames,
            )
        ]

    return [
        ProjectFileInfo(
            filename=filename,
            agents=[a.label for a in targets[filename]],
            exists=exists(filename),
        )
        for filename in sorted(targets)
    ]


def read_project_file(project: Project, filename: str) -> str:
    """User-authored content of an instruction file (rules section stripped)."""
    directory = _require_directory(project)
    if project.is_unified and filename == UNIFIED_KEY:
        return unified_source(project)[1]
    _targets_for(project, filename)
    path = directory / filename
    if not path.is_file():
        return ""
    return _read_user_content(path)


def save_project_file(
    project: Project, filename: str, content: str, rules: RuleCatalogue
) -> list[Path]:
    """Write user content plus the current rules section.

    In Unified mode the content is written to every target file.
    """
    directory = _require_directory(project)
    user = strip_rules_section(content)
    written = []
    for target in _targets_for(project, filename):
        section = build_rules_section(project.rules_for(target), rules)
        path = directory / target
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(compose(user, section), encoding="utf-8")
        written.append(path)
    return written


def owned_text(text: str, whole_file: bool) -> str:
    """The part of an instruction file Sync is responsible for.

    Unified mode fans the whole file out; otherwise only the rules section is
    Sync's and the body belongs to the user.
    """
    return text if whole_file else extract_rules_section(text)
