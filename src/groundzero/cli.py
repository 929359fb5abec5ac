"""
Command line interface for the ground-zero site builder.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from . import __version__
from .assets import generate_svg_sprite
from .config import ConfigError, SiteConfig, get_overrides, load_config
from .graph import DependencyGraph, build_site_graph, impacted_documents
from .render import BuildReport, RenderError, compile_all
from .watch import FlushReport, watch_site

console = Console()
app = typer.Typer(help="Compile template pages to HTML and keep them fresh while you edit.")
logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def _configure_logging(level_name: str, env_level: Optional[str]) -> None:
    level_str = (env_level or level_name or "info").upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "INFO"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


def _resolve_config_path(value: Optional[Path]) -> Optional[Path]:
    """Ensure an explicit config path exists and return it absolute."""
    if value is None:
        return None
    resolved = value.expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"No config file found at {resolved}")
    if not resolved.is_file():
        raise typer.BadParameter(f"Config path must be a file, got directory: {resolved}")
    return resolved


def _load_config_or_exit(ctx: typer.Context) -> SiteConfig:
    options = ctx.obj or {}
    try:
        overrides = get_overrides()
    except ValidationError as exc:
        console.print(f"[bold red]Invalid GZERO_* environment variable:[/] {exc}")
        raise typer.Exit(code=1) from exc
    config_path = options.get("config") or overrides.config_path
    try:
        config = load_config(config_path, project_root=options.get("project"))
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(code=1) from exc
    if overrides.debounce_ms is not None:
        config = config.model_copy(update={"debounce_ms": overrides.debounce_ms})
    return config


def _relative(path: Path, config: SiteConfig) -> str:
    try:
        return str(path.relative_to(config.project_root))
    except ValueError:
        return str(path)


def _print_build_report(report: BuildReport, config: SiteConfig) -> None:
    table = Table(title="Build Summary")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    table.add_row("Output root", _relative(config.out_root, config))
    for key, value in report.summary_rows():
        table.add_row(key, value)
    console.print(table)


def _print_flush(report: FlushReport) -> None:
    written = len(report.build.written)
    scope = "full rebuild" if report.full_rebuild else f"{len(report.impacted)} impacted"
    console.print(f"[green]Rebuilt {written} page(s)[/] ({scope}, {len(report.changed)} change(s))")
    for document, reason in report.build.failures.items():
        console.print(f"[bold red]Failed:[/] {document}: {reason}")


def _build_or_exit(config: SiteConfig) -> BuildReport:
    try:
        return compile_all(config)
    except RenderError as exc:
        console.print(f"[bold red]Build failed:[/] {exc}")
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        console.print(f"[bold red]Build failed:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _load_graph(config: SiteConfig) -> DependencyGraph:
    return asyncio.run(build_site_graph(config))


@app.callback(invoke_without_command=True)
def _root_command(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show gzero version and exit.",
        is_flag=True,
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        help="Logging level (critical, error, warning, info, debug).",
        show_default=True,
        case_sensitive=False,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a TOML config file (defaults to groundzero.toml in the project).",
        callback=_resolve_config_path,
    ),
    project: Optional[Path] = typer.Option(
        None,
        "--project",
        "-p",
        help="Project root (defaults to the current directory).",
    ),
) -> None:
    """
    Default command when no subcommand is selected.
    """
    _configure_logging(log_level, os.getenv("GZERO_LOG_LEVEL"))
    ctx.obj = {"config": config, "project": project}

    if version:
        console.print(f"[bold green]gzero[/] {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print("[bold yellow]gzero[/] is ready. Run [cyan]gzero build[/] or [cyan]gzero watch[/].")


@app.command()
def build(
    ctx: typer.Context,
    sprite: bool = typer.Option(
        False,
        "--sprite/--no-sprite",
        help="Regenerate the icon sprite fragment before compiling.",
    ),
) -> None:
    """
    Compile every page once and exit (non-zero on the first failure).
    """
    config = _load_config_or_exit(ctx)
    if sprite:
        generate_svg_sprite(config.icons_root, config.sprite_path)
    report = _build_or_exit(config)
    _print_build_report(report, config)
    console.print("[bold green]Build completed.[/]")


@app.command()
def watch(
    ctx: typer.Context,
    debounce_ms: Optional[int] = typer.Option(
        None,
        "--debounce-ms",
        min=0,
        help="Quiescence window used to batch template changes.",
    ),
) -> None:
    """
    Compile every page, then rebuild affected pages whenever templates or icons change.
    """
    config = _load_config_or_exit(ctx)
    if debounce_ms is not None:
        config = config.model_copy(update={"debounce_ms": debounce_ms})

    report = _build_or_exit(config)
    _print_build_report(report, config)
    console.print("[bold blue]Watching for changes.[/] Press Ctrl+C to stop.")
    try:
        asyncio.run(watch_site(config, on_flushed=_print_flush))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/]")


@app.command()
def graph(ctx: typer.Context) -> None:
    """
    Show every template with what it includes and what includes it.
    """
    config = _load_config_or_exit(ctx)
    snapshot = _load_graph(config)

    table = Table(title="Template Dependency Graph")
    table.add_column("Template", overflow="fold")
    table.add_column("Kind")
    table.add_column("Includes", overflow="fold")
    table.add_column("Included by", overflow="fold")
    for path in sorted(snapshot.documents | snapshot.fragments):
        kind = "page" if snapshot.is_document(path) else "partial"
        includes = ", ".join(_relative(p, config) for p in sorted(snapshot.includes_of(path)))
        dependents = ", ".join(_relative(p, config) for p in sorted(snapshot.dependents_of(path)))
        table.add_row(_relative(path, config), kind, includes or "-", dependents or "-")
    console.print(table)


@app.command()
def impact(
    ctx: typer.Context,
    paths: List[Path] = typer.Argument(..., help="Changed files (absolute or relative to the current directory)."),
) -> None:
    """
    List the pages a change to the given files would rebuild.
    """
    config = _load_config_or_exit(ctx)
    snapshot = _load_graph(config)
    impacted = impacted_documents(paths, snapshot)
    if not impacted:
        console.print(
            f"[yellow]No page depends on these files;[/] a watch flush would rebuild all "
            f"{len(snapshot.documents)} page(s)."
        )
        return
    for document in sorted(impacted):
        console.print(_relative(document, config))


@app.command()
def sprite(ctx: typer.Context) -> None:
    """
    Regenerate the SVG sprite fragment from the icons directory.
    """
    config = _load_config_or_exit(ctx)
    written = generate_svg_sprite(config.icons_root, config.sprite_path)
    state = "written" if written else "unchanged"
    console.print(f"[bold green]Sprite {state}:[/] {_relative(config.sprite_path, config)}")


def main() -> None:
    """
    Entry-point used by the console script defined in pyproject.toml.
    """
    app()
