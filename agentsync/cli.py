"""agentsync CLI — keep every AI agent's project config in line with one canonical project."""

import json
import logging
import sys
import time

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from agentsync import __version__
from agentsync.errors import AgentSyncError

console = Console()

_REASON_STYLE = {"missing": "red", "modified": "yellow", "stale": "cyan", "unreadable": "magenta"}


def _workspace():
    return click.get_current_context().obj


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/]")
    sys.exit(1)


def _load_payload(path: str) -> dict:
    """Read a YAML or JSON payload file (JSON is valid YAML)."""
    import yaml

    with open(path) as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        _fail(f"{path}: expected a mapping at the top level")
    return data


def _print_status(status) -> None:
    if status.ok:
        console.print(f"  [green]v[/] {status.message}")
    else:
        console.print(f"  [red]x[/] {status.message}")
        sys.exit(1)


class _Group(click.Group):
    """Turns agentsync errors into one red line and exit status 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except AgentSyncError as e:
            _fail(str(e))


@click.group(cls=_Group)
@click.version_option(version=__version__)
@click.option("--home", envvar="AGENTSYNC_HOME", default=None, help="agentsync home directory")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx, home: str | None, verbose: bool):
    """agentsync — one canonical project config, many agent tools.

    Projects describe skills, MCP servers and instructions once; sync
    writes them into every configured agent's native files and drift
    checks tell you when those files have wandered off.
    """
    from agentsync.workspace import Workspace

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ctx.obj = Workspace(home)


# ── Agents ───────────────────────────────────────────────────────────


@main.group(cls=_Group)
def agents():
    """Inspect the supported agents."""


@agents.command(name="list")
def list_agents_cmd():
    """List every supported agent and what it can receive."""
    from agentsync.agents.registry import list_agents

    table = Table(title="Agents")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Instructions")
    table.add_column("Skills", justify="center")
    table.add_column("MCP", justify="center")

    for agent in list_agents():
        caps = agent.capabilities
        table.add_row(
            agent.id,
            agent.label,
            agent.project_file or "-",
            "[green]Y[/]" if caps.skills else "[red]N[/]",
            "[green]Y[/]" if caps.mcp_servers else "[yellow]note[/]",
        )
    console.print(table)


# ── Projects ─────────────────────────────────────────────────────────


@main.group(cls=_Group)
def project():
    """Manage projects and sync them to disk."""


@project.command(name="list")
def list_projects():
    """List stored projects."""
    ws = _workspace()
    names = ws.list_projects()
    if not names:
        console.print("[yellow]No projects yet.[/]")
        return

    table = Table(title=f"Projects ({len(names)})")
    table.add_column("Name", style="cyan")
    table.add_column("Directory")
    table.add_column("Agents")
    table.add_column("Mode")
    for name in names:
        p = ws.read_project(name)
        table.add_row(p.name, p.directory or "-", ", ".join(p.agents), p.instruction_mode.value)
    console.print(table)


@project.command()
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print the stored JSON document")
def show(name: str, as_json: bool):
    """Show one project."""
    from agentsync.models.project import project_to_dict

    p = _workspace().read_project(name)
    if as_json:
        console.print_json(json.dumps(project_to_dict(p)))
        return

    lines = [
        f"[bold]Directory:[/] {p.directory or '(none)'}",
        f"[bold]Agents:[/] {', '.join(p.agents) or '-'}",
        f"[bold]Skills:[/] {', '.join(p.skills) or '-'}",
        f"[bold]Local skills:[/] {', '.join(p.local_skills) or '-'}",
        f"[bold]MCP servers:[/] {', '.join(p.mcp_servers) or '-'}",
        f"[bold]Providers:[/] {', '.join(p.providers) or '-'}",
        f"[bold]Instructions:[/] {p.instruction_mode.value}",
    ]
    for filename, rules in sorted(p.file_rules.items()):
        lines.append(f"  rules for {filename}: {', '.join(rules)}")
    console.print(Panel("\n".join(lines), title=p.name, subtitle=p.description or None))


@project.command()
@click.argument("payload_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--sync/--no-sync", default=True, help="Sync after saving")
def save(payload_path: str, sync: bool):
    """Create or update a project from a YAML/JSON file, then sync it."""
    from agentsync.models.project import project_from_dict

    ws = _workspace()
    data = _load_payload(payload_path)
    if not data.get("name"):
        _fail("Project payload needs a 'name'")

    p = project_from_dict(data)
    if "agents" not in data:
        p.agents = list(ws.read_settings().default_agents)

    console.print(f"\n[bold blue]agentsync[/] — Saving project: {p.name}\n")
    if sync:
        _print_status(ws.save_and_sync(p))
    else:
        ws.save_project(p)
        console.print("  [green]v[/] Saved")


@project.command()
@click.argument("name")
@click.confirmation_option(prompt="Delete this project? Files in its directory are kept.")
def delete(name: str):
    """Delete a stored project (its directory is untouched)."""
    if _workspace().delete_project(name):
        console.print(f"  Deleted project [cyan]{name}[/]")
    else:
        _fail(f"Project not found: {name}")


@project.command()
@click.argument("old")
@click.argument("new")
def rename(old: str, new: str):
    """Rename a project."""
    _workspace().rename_project(old, new)
    console.print(f"  Renamed [cyan]{old}[/] to [cyan]{new}[/]")


@project.command()
@click.argument("name")
@click.option("--apply", "apply_", is_flag=True, help="Add what was found to the project")
def detect(name: str, apply_: bool):
    """Discover agents, skills and MCP servers already in the project directory."""
    ws = _workspace()
    console.print(f"\n[bold blue]agentsync[/] — Autodetect: {name}\n")

    found = ws.autodetect(name)
    if found.empty:
        console.print("[yellow]Nothing detected.[/]")
        return

    for label, items in (
        ("Agents", found.agents),
        ("Skills", found.skills),
        ("Local skills", found.local_skills),
        ("MCP servers", found.mcp_servers),
    ):
        if items:
            console.print(f"  [bold]{label}:[/] {', '.join(items)}")

    if apply_:
        p = ws.activate(name)
        console.print(f"\n  [green]v[/] Project now has {len(p.agents)} agent(s), {len(p.all_skills)} skill(s)")


@project.command(name="sync")
@click.argument("name")
def sync_project(name: str):
    """Write the project's canonical state into every agent's files."""
    console.print(f"\n[bold blue]agentsync[/] — Syncing: {name}\n")
    result = _workspace().sync(name)
    for path in result.written:
        console.print(f"  [green]v[/] {path}")
    for failure in result.failures:
        console.print(f"  [red]x[/] {failure.summary()} ({failure.path})")
    if result.failures:
        sys.exit(1)


def _print_drift(report) -> None:
    if report.status == "unknown":
        console.print(f"  [yellow]?[/] {report.summary()}")
        return
    if not report.drifted:
        console.print(f"  [green]OK[/] {report.summary()}")
        return
    console.print(f"  [red]DRIFT[/] {report.summary()}")
    for agent in report.agents:
        console.print(f"    [bold]{agent.agent_label}[/]")
        for f in agent.files:
            style = _REASON_STYLE.get(f.reason.value, "white")
            console.print(f"      [{style}]{f.reason.value:<10}[/] {f.path}")


@project.command(name="drift")
@click.argument("name")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
def drift_cmd(name: str, as_json: bool):
    """Check whether agent files still match the project."""
    report = _workspace().check_drift(name)
    if as_json:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_drift(report)
    if report.drifted:
        sys.exit(1)


@project.command()
@click.argument("name")
@click.option("--interval", default=15.0, show_default=True, help="Seconds between checks")
def watch(name: str, interval: float):
    """Re-check drift on a timer until interrupted."""
    monitor = _workspace().monitor(name, on_report=_print_drift, interval=interval)
    console.print(f"\n[bold blue]agentsync[/] — Watching {name} every {interval:g}s (Ctrl-C to stop)\n")
    monitor.start()
    try:
        while monitor.running:
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()


@project.command()
@click.argument("name")
@click.argument("filename", required=False)
@click.option("--set", "source", type=click.Path(exists=True, dir_okay=False), help="Write content from this file")
def files(name: str, filename: str | None, source: str | None):
    """List instruction files, print one, or replace its content."""
    ws = _workspace()
    if filename is None:
        table = Table(title=f"Instruction files — {name}")
        table.add_column("File", style="cyan")
        table.add_column("Agents")
        table.add_column("Exists", justify="center")
        table.add_column("Targets")
        for info in ws.project_file_info(name):
            table.add_row(
                info.filename,
                ", ".join(info.agents),
                "[green]Y[/]" if info.exists else "[red]N[/]",
                ", ".join(info.target_files),
            )
        console.print(table)
        return

    if source is not None:
        with open(source) as f:
            written = ws.save_project_file(name, filename, f.read())
        for path in written:
            console.print(f"  [green]v[/] {path}")
        return

    console.print(ws.read_project_file(name, filename), markup=False, highlight=False)


@project.command()
@click.argument("name")
def replicate(name: str):
    """Copy local skills into every agent skill directory of the project."""
    written = _workspace().replicate_local_skills(name)
    if not written:
        console.print("[yellow]No local skills to replicate.[/]")
    for path in written:
        console.print(f"  [green]v[/] {path}")


@project.command()
@click.argument("name")
@click.argument("skill")
def promote(name: str, skill: str):
    """Move a local skill into the global skill registry."""
    _workspace().promote_local_skill(name, skill)
    console.print(f"  [green]v[/] '{skill}' is now a global skill")


@project.command(name="remove-agent")
@click.argument("name")
@click.argument("agent_id")
def remove_agent(name: str, agent_id: str):
    """Remove an agent and clean up what sync wrote for it."""
    _print_status(_workspace().remove_agent(name, agent_id))


# ── Templates ────────────────────────────────────────────────────────


@main.group(cls=_Group)
def template():
    """Manage project templates."""


@template.command(name="list")
def list_templates():
    """List stored templates."""
    ws = _workspace()
    names = ws.list_templates()
    if not names:
        console.print("[yellow]No templates yet.[/]")
        return

    table = Table(title=f"Templates ({len(names)})")
    table.add_column("Name", style="cyan")
    table.add_column("Agents")
    table.add_column("Skills")
    table.add_column("Description")
    for name in names:
        t = ws.read_template(name)
        table.add_row(t.name, ", ".join(t.agents), ", ".join(t.skills), t.description[:50])
    console.print(table)


@template.command(name="show")
@click.argument("name")
def show_template(name: str):
    """Print a template as JSON."""
    from agentsync.models.project import template_to_dict

    console.print_json(json.dumps(template_to_dict(_workspace().read_template(name))))


@template.command(name="save")
@click.argument("payload_path", type=click.Path(exists=True, dir_okay=False))
def save_template(payload_path: str):
    """Create or update a template from a YAML/JSON file."""
    from agentsync.models.project import template_from_dict

    data = _load_payload(payload_path)
    if not data.get("name"):
        _fail("Template payload needs a 'name'")
    t = _workspace().save_template(template_from_dict(data))
    console.print(f"  [green]v[/] Saved template [cyan]{t.name}[/]")


@template.command(name="delete")
@click.argument("name")
def delete_template(name: str):
    """Delete a template."""
    if not _workspace().delete_template(name):
        _fail(f"Template not found: {name}")
    console.print(f"  Deleted template [cyan]{name}[/]")


@template.command(name="rename")
@click.argument("old")
@click.argument("new")
def rename_template(old: str, new: str):
    """Rename a template."""
    _workspace().rename_template(old, new)
    console.print(f"  Renamed [cyan]{old}[/] to [cyan]{new}[/]")


@template.command()
@click.argument("template_name")
@click.argument("project_name")
def apply(template_name: str, project_name: str):
    """Merge a template into a project, then save and sync it."""
    console.print(f"\n[bold blue]agentsync[/] — Applying {template_name} to {project_name}\n")
    _print_status(_workspace().apply_template(template_name, project_name))


# ── Settings ─────────────────────────────────────────────────────────


@main.group(cls=_Group)
def settings():
    """Show or change global settings."""


@settings.command(name="show")
def show_settings():
    """Print the settings document."""
    from agentsync.models.project import settings_to_dict

    console.print_json(json.dumps(settings_to_dict(_workspace().read_settings())))


@settings.command(name="set")
@click.option("--skill-sync-mode", type=click.Choice(["symlink", "copy"]), default=None)
@click.option("--default-agent", "default_agents", multiple=True, help="Preselected agent (repeatable)")
def set_settings(skill_sync_mode: str | None, default_agents: tuple):
    """Update settings; options not given keep their current value."""
    from agentsync.models.project import SkillSyncMode

    ws = _workspace()
    current = ws.read_settings()
    if skill_sync_mode:
        current.skill_sync_mode = SkillSyncMode(skill_sync_mode)
    if default_agents:
        current.default_agents = list(default_agents)
    ws.save_settings(current)
    console.print("  [green]v[/] Settings saved")


if __name__ == "__main__":
    main()
