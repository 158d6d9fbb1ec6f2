"""CLI entry point for latitude-sync."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from latitude_sync.api import LatitudeError, create_client
from latitude_sync.config import AppConfig, load_config
from latitude_sync.config.loader import CONFIG_FILENAME, DEFAULT_CONFIG_TEMPLATE
from latitude_sync.deploy import DeployOrchestrator, DeployPlan, DeployResult
from latitude_sync.prompts import read_prompt_files, write_prompt_files
from latitude_sync.validation import PromptValidator, ValidationReport

app = typer.Typer(
    name="latitude-sync",
    help="Validate, diff and deploy PromptL prompts to a Latitude project.",
)

config_app = typer.Typer(help="Manage latitude-sync configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: AppConfig | None = None

_LOG_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


def _get_config() -> AppConfig:
    if _config is None:
        return load_config()
    return _config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(message)s",
        handlers=[RichHandler(show_path=False, show_time=False)],
        force=True,
    )


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help=f"Path to {CONFIG_FILENAME}")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _setup_logging("debug" if verbose else _config.log_level)


# ── helpers ───────────────────────────────────────────────────────────


def _load_prompts(
    directory: str | None, files: list[str] | None, prefix: str | None, cfg: AppConfig
) -> list[tuple[str, str]]:
    try:
        if files:
            return read_prompt_files(paths=files, extensions=cfg.deploy.extensions, prefix=prefix)
        return read_prompt_files(
            directory=directory or cfg.deploy.prompts_dir,
            extensions=cfg.deploy.extensions,
            prefix=prefix,
        )
    except (FileNotFoundError, ValueError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def _require_prompts(
    prompts: list[tuple[str, str]], directory: str | None, files: list[str] | None, cfg: AppConfig, allow_empty: bool
) -> None:
    if prompts or allow_empty:
        return
    source = ", ".join(files) if files else (directory or cfg.deploy.prompts_dir)
    rprint(
        f"[red]Error:[/red] No prompts found in {escape(source)} "
        f"(extensions: {escape(', '.join(cfg.deploy.extensions))}). "
        "Use --allow-empty to remove every LIVE prompt."
    )
    raise typer.Exit(1)


def _make_orchestrator(cfg: AppConfig) -> DeployOrchestrator:
    client = create_client(cfg.latitude)
    return DeployOrchestrator(
        client,
        PromptValidator(require_config=cfg.validation.require_config),
        draft_prefix=cfg.deploy.draft_prefix,
        individual_threshold=cfg.deploy.individual_probe_threshold,
    )


def _fail(error: LatitudeError) -> None:
    rprint(Markdown(error.to_markdown()))
    raise typer.Exit(1)


def _display_report(report: ValidationReport) -> None:
    table = Table(title=f"Validation ({report.checked} document(s))")
    table.add_column("Document", style="cyan")
    table.add_column("Type")
    table.add_column("Code", style="magenta")
    table.add_column("Location", justify="right")
    table.add_column("Message")
    for entry in [*report.errors, *report.warnings]:
        for issue in entry.issues:
            style = "red" if issue.type == "error" else "yellow"
            loc = f"{issue.location.line}:{issue.location.column}" if issue.location else "-"
            table.add_row(entry.name, f"[{style}]{issue.type}[/{style}]", issue.code, loc, escape(issue.message))
    if report.errors or report.warnings:
        rprint(table)
    for entry in report.errors:
        for issue in entry.issues:
            if issue.type != "error":
                continue
            body = f"[bold]Root cause:[/bold] {escape(issue.root_cause)}\n[bold]Fix:[/bold] {escape(issue.suggestion)}"
            if issue.code_frame:
                body += f"\n\n{escape(issue.code_frame)}"
            rprint(Panel(body, title=f"{entry.name} · {issue.code}", border_style="red"))


def _display_plan(plan: DeployPlan) -> None:
    s = plan.summary
    table = Table(title="Pending changes")
    table.add_column("Status")
    table.add_column("Path", style="cyan")
    for path in s.added:
        table.add_row("[green]added[/green]", path)
    for path in s.modified:
        table.add_row("[yellow]modified[/yellow]", path)
    for path in s.deleted:
        table.add_row("[red]deleted[/red]", path)
    for path in plan.skipped:
        table.add_row("[dim]skipped[/dim]", path)
    rprint(table)


def _display_result(result: DeployResult) -> None:
    v = result.version
    panel_text = (
        f"[dim]Version:[/dim]   {v.uuid}\n"
        f"[dim]Status:[/dim]    {v.status or '-'}\n"
        f"[dim]Processed:[/dim] {result.documents_processed}\n"
        f"[dim]Added:[/dim]     {', '.join(result.added) or '-'}\n"
        f"[dim]Modified:[/dim]  {', '.join(result.modified) or '-'}\n"
        f"[dim]Deleted:[/dim]   {', '.join(result.deleted) or '-'}"
    )
    if result.skipped:
        panel_text += f"\n[dim]Skipped:[/dim]   {', '.join(result.skipped)}"
    rprint(Panel(panel_text, title="Deployed to LIVE", border_style="green"))


# ── commands ──────────────────────────────────────────────────────────


@app.command()
def validate(
    directory: str | None = typer.Argument(None, help="Prompt directory (default: deploy.prompts_dir)"),
    file: Annotated[list[str] | None, typer.Option("--file", "-f", help="Prompt file(s)")] = None,
) -> None:
    """Check prompts locally without contacting the service."""
    cfg = _get_config()
    prompts = _load_prompts(directory, file, None, cfg)
    report = PromptValidator(require_config=cfg.validation.require_config).validate_all(prompts)
    _display_report(report)
    if not report.valid:
        rprint(f"[red]{len(report.errors)} of {report.checked} document(s) failed validation.[/red]")
        raise typer.Exit(1)
    rprint(f"[green]All {report.checked} document(s) are valid.[/green]")


@app.command()
def diff(
    directory: str | None = typer.Argument(None, help="Prompt directory (default: deploy.prompts_dir)"),
    file: Annotated[list[str] | None, typer.Option("--file", "-f", help="Prompt file(s)")] = None,
    prefix: Annotated[str | None, typer.Option("--prefix", help="Prompt path prefix")] = None,
    append: Annotated[bool, typer.Option("--append", help="Never delete remote prompts")] = False,
    overwrite: Annotated[bool, typer.Option("--overwrite", help="With --append, update existing prompts")] = False,
    allow_empty: Annotated[bool, typer.Option("--allow-empty", help="Accept an empty prompt set")] = False,
) -> None:
    """Show what a deploy would change in LIVE."""
    cfg = _get_config()
    prompts = _load_prompts(directory, file, prefix, cfg)
    _require_prompts(prompts, directory, file, cfg, allow_empty)
    try:
        orchestrator = _make_orchestrator(cfg)
        plan = asyncio.run(
            orchestrator.plan(
                prompts, mode="append" if append else "push", overwrite=overwrite, allow_empty=allow_empty
            )
        )
    except LatitudeError as e:
        _fail(e)
        return
    if not plan.has_changes:
        rprint(f"[green]All {len(prompts)} prompt(s) are already up to date.[/green]")
        return
    _display_plan(plan)


@app.command()
def deploy(
    directory: str | None = typer.Argument(None, help="Prompt directory (default: deploy.prompts_dir)"),
    file: Annotated[list[str] | None, typer.Option("--file", "-f", help="Prompt file(s)")] = None,
    prefix: Annotated[str | None, typer.Option("--prefix", help="Prompt path prefix")] = None,
    name: Annotated[str | None, typer.Option("--name", "-n", help="Draft version name")] = None,
    append: Annotated[bool, typer.Option("--append", help="Never delete remote prompts")] = False,
    overwrite: Annotated[bool, typer.Option("--overwrite", help="With --append, update existing prompts")] = False,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without deploying"),
    allow_empty: Annotated[
        bool, typer.Option("--allow-empty", help="Accept an empty prompt set (removes every LIVE prompt)")
    ] = False,
) -> None:
    """Validate, diff and publish prompts to LIVE."""
    cfg = _get_config()
    prompts = _load_prompts(directory, file, prefix, cfg)
    _require_prompts(prompts, directory, file, cfg, allow_empty)
    mode = "append" if append else "push"
    try:
        orchestrator = _make_orchestrator(cfg)
        if dry_run:
            plan = asyncio.run(
                orchestrator.plan(prompts, mode=mode, overwrite=overwrite, allow_empty=allow_empty)
            )
            rprint("[yellow](dry run, nothing deployed)[/yellow]\n")
            _display_plan(plan)
            return
        result = asyncio.run(
            orchestrator.deploy(prompts, name, mode=mode, overwrite=overwrite, allow_empty=allow_empty)
        )
    except LatitudeError as e:
        _fail(e)
        return
    if result.documents_processed == 0:
        rprint(f"[green]No changes needed.[/green] All {len(prompts)} prompt(s) are up to date.")
        if result.skipped:
            rprint(f"[dim]Skipped (already exist, use --overwrite): {', '.join(result.skipped)}[/dim]")
        return
    _display_result(result)


@app.command()
def replace(
    name: str = typer.Argument(..., help="Prompt path to create or replace"),
    file: Annotated[str | None, typer.Option("--file", "-f", help="Read content from this file")] = None,
    content: Annotated[str | None, typer.Option("--content", help="Prompt content")] = None,
    version_name: Annotated[str | None, typer.Option("--name", "-n", help="Draft version name")] = None,
) -> None:
    """Create or replace a single prompt in LIVE; other prompts are left alone."""
    cfg = _get_config()
    if (file is None) == (content is None):
        rprint("[red]Error:[/red] pass exactly one of --file or --content")
        raise typer.Exit(1)
    if file is not None:
        try:
            content = Path(file).read_text(encoding="utf-8")
        except OSError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
    try:
        orchestrator = _make_orchestrator(cfg)
        result = asyncio.run(
            orchestrator.deploy([(name, content)], version_name, mode="append", overwrite=True)
        )
    except LatitudeError as e:
        _fail(e)
        return
    if result.documents_processed == 0:
        rprint(f"[green]{escape(name)} is already up to date.[/green]")
        return
    _display_result(result)


@app.command()
def pull(
    output: Annotated[str | None, typer.Option("--output", "-o", help="Output directory")] = None,
    version: Annotated[str, typer.Option("--version", help="Version uuid or 'live'")] = "live",
) -> None:
    """Download every prompt of a version into a local directory."""
    cfg = _get_config()
    out_dir = Path(output or cfg.deploy.prompts_dir)
    try:
        client = create_client(cfg.latitude)
        docs = asyncio.run(client.list_documents(version))
        written = write_prompt_files(docs, out_dir)
    except LatitudeError as e:
        _fail(e)
        return
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    rprint(f"[green]Pulled {len(written)} prompt(s)[/green] into {out_dir}")


@app.command("list")
def list_prompts(
    version: Annotated[str, typer.Option("--version", help="Version uuid or 'live'")] = "live",
) -> None:
    """List prompts in a version."""
    cfg = _get_config()
    try:
        client = create_client(cfg.latitude)
        docs = asyncio.run(client.list_documents(version))
    except LatitudeError as e:
        _fail(e)
        return
    if not docs:
        rprint("[yellow]The project has no prompts yet.[/yellow]")
        return
    table = Table(title=f"Prompts in {version} ({len(docs)})")
    table.add_column("Path", style="cyan")
    table.add_column("Size", justify="right")
    for d in sorted(docs, key=lambda d: d.path):
        table.add_row(d.path, f"{len(d.content)} chars")
    rprint(table)


@app.command()
def get(
    name: str = typer.Argument(..., help="Prompt path"),
    version: Annotated[str, typer.Option("--version", help="Version uuid or 'live'")] = "live",
) -> None:
    """Print a prompt's content."""
    cfg = _get_config()
    try:
        client = create_client(cfg.latitude)
        doc = asyncio.run(client.get_document(name, version))
    except LatitudeError as e:
        _fail(e)
        return
    rprint(Panel(Syntax(doc.content, "markdown"), title=doc.path, border_style="blue"))


@app.command()
def run(
    name: str = typer.Argument(..., help="Prompt path"),
    param: Annotated[
        list[str] | None, typer.Option("--param", "-p", help="Parameter as key=value")
    ] = None,
) -> None:
    """Execute a LIVE prompt and print its response."""
    cfg = _get_config()
    parameters: dict[str, str] = {}
    for item in param or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            rprint(f"[red]Error:[/red] invalid parameter {escape(repr(item))}, expected key=value")
            raise typer.Exit(1)
        parameters[key] = value
    try:
        client = create_client(cfg.latitude)
        result = asyncio.run(client.run_document(name, parameters))
    except LatitudeError as e:
        _fail(e)
        return
    rprint(result.text or json.dumps(result.model_dump(), indent=2))
    if result.uuid:
        rprint(f"\n[dim]Conversation:[/dim] {result.uuid}")


# ── config ────────────────────────────────────────────────────────────


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a default config file to the current directory."""
    dest = Path(CONFIG_FILENAME)
    if dest.exists() and not force:
        rprint(f"[yellow]{dest} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    dest.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {dest}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.safe_dump(cfg.model_dump(), sort_keys=False), "yaml"))
