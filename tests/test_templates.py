"""Tests for template application."""

import tempfile
from pathlib import Path

import pytest

from agentsync.errors import ValidationError
from agentsync.models.project import (
    UNIFIED_KEY,
    InstructionMode,
    Project,
    ProjectTemplate,
    TemplateProjectFile,
)
from agentsync.sync.templates import TemplateApplier


def test_apply_unions_lists_existing_first():
    project = Project(name="p", agents=["goose"], skills=["a"], mcp_servers=["m1"], providers=["p1"])
    template = ProjectTemplate(
        name="t", agents=["claude", "goose"], skills=["b", "a"], mcp_servers=["m2"], providers=["p1", "p2"]
    )

    updated = TemplateApplier().apply(template, project)

    assert updated.agents == ["goose", "claude"]
    assert updated.skills == ["a", "b"]
    assert updated.mcp_servers == ["m1", "m2"]
    assert updated.providers == ["p1", "p2"]
    assert updated.instruction_mode == InstructionMode.PER_AGENT


def test_apply_fills_description_only_when_blank():
    template = ProjectTemplate(name="t", description="From template")
    assert TemplateApplier().apply(template, Project(name="p")).description == "From template"
    assert TemplateApplier().apply(template, Project(name="p", description="Mine")).description == "Mine"


def test_apply_unified_content_switches_mode():
    project = Project(name="p", file_rules={UNIFIED_KEY: ["r0"]})
    template = ProjectTemplate(name="t", unified_instruction="Be concise.", unified_rules=["r1", "r0"])

    updated = TemplateApplier().apply(template, project)

    assert updated.instruction_mode == InstructionMode.UNIFIED
    assert updated.file_rules[UNIFIED_KEY] == ["r0", "r1"]


def test_apply_writes_only_missing_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "CLAUDE.md").write_text("Mine\n")
        project = Project(name="p", directory=tmpdir, agents=["claude"])
        template = ProjectTemplate(
            name="t",
            agents=["gemini"],
            project_files=[
                TemplateProjectFile(filename="CLAUDE.md", content="Template claude"),
                TemplateProjectFile(filename="docs/CONVENTIONS.md", content="Conventions"),
            ],
        )

        TemplateApplier().apply(template, project)

        assert (Path(tmpdir) / "CLAUDE.md").read_text() == "Mine\n"
        assert (Path(tmpdir) / "docs" / "CONVENTIONS.md").read_text() == "Conventions"
        assert not (Path(tmpdir) / "GEMINI.md").exists()


def test_apply_unified_instruction_seeds_new_files():
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Project(name="p", directory=tmpdir, agents=["claude", "gemini"])
        template = ProjectTemplate(name="t", unified_instruction="Be concise.")

        TemplateApplier().apply(template, project)

        assert (Path(tmpdir) / "CLAUDE.md").read_text() == "Be concise."
        assert (Path(tmpdir) / "GEMINI.md").read_text() == "Be concise."


def test_apply_unified_instruction_goes_above_existing_notes():
    with tempfile.TemporaryDirectory() as tmpdir:
        claude = Path(tmpdir) / "CLAUDE.md"
        claude.write_text("Old notes\n")
        project = Project(name="p", directory=tmpdir, agents=["claude", "codex"])
        template = ProjectTemplate(name="t", unified_instruction="Be concise.")

        TemplateApplier().apply(template, project)
        assert claude.read_text() == "Be concise.\n\nOld notes\n"

        TemplateApplier().apply(template, project)
        assert claude.read_text() == "Be concise.\n\nOld notes\n"


def test_apply_rejects_files_outside_directory():
    with tempfile.TemporaryDirectory() as tmpdir:
        project = Project(name="p", directory=tmpdir, skills=["a"])
        template = ProjectTemplate(
            name="t", skills=["b"], project_files=[TemplateProjectFile(filename="../escape.md")]
        )
        with pytest.raises(ValidationError):
            TemplateApplier().apply(template, project)
        assert project.skills == ["a"]
