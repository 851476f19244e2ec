"""Typer-based CLI for React feature discovery."""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .category_rules import build_rules, categorize
from .config_manager import load_tool_config
from .engine import AnalysisEngine
from .errors import AnalysisError, ConfigurationError
from .feature_diff import FeatureDiff
from .graph_export import export_diff_json, load_catalog
from .models import BUCKETS, FeatureCatalog
from .safety import validate_output_path

app = typer.Typer(
    help="🔍 React Feature Discovery: read-only feature catalog for React/TypeScript projects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"React Feature Discovery v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    )
):
    """Analyze a React codebase and catalog its features without modifying it."""
    pass


def _print_summary(catalog: FeatureCatalog) -> None:
    table = Table(title=f"\n{catalog.metadata.project_name}", show_header=True)
    table.add_column("Category", style="cyan")
    table.add_column("Features", justify="right")
    for bucket in BUCKETS:
        table.add_row(bucket.capitalize(), str(len(catalog.features.bucket(bucket))))
    table.add_row("[bold]Total[/bold]", f"[bold]{catalog.features.total}[/bold]")
    console.print(table)

    graph = catalog.dependency_graph
    console.print(f"Dependency graph: {graph.node_count} nodes, {graph.edge_count} edges")
    if catalog.summary.key_technologies:
        console.print("Key technologies: " + ", ".join(catalog.summary.key_technologies))


@app.command("analyze")
def analyze(
    root: Path = typer.Argument(Path("."), help="Root directory of the project to analyze."),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Output file path (extension is replaced per format)."
    ),
    formats: Optional[str] = typer.Option(
        None, "--format", "-f", help="Comma-separated output formats: json, dot."
    ),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="Path to a config file."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging."),
):
    """Scan a project, build its feature catalog and write the outputs."""
    setup_logging(verbose)

    overrides = {
        "output_path": output,
        "output_formats": [f.strip() for f in formats.split(",") if f.strip()] if formats else None,
    }
    try:
        tool_config = load_tool_config(root, config_file, overrides)
    except ConfigurationError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=2)

    console.print(f"[bold cyan]Analyzing {tool_config.root_dir} (read-only)...[/bold cyan]")
    engine = AnalysisEngine(tool_config)
    try:
        catalog = engine.analyze()
    except AnalysisError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=1)

    _print_summary(catalog)
    for path in engine.write_outputs(catalog):
        console.print(f"[green]✓[/green] Wrote {path}")

    warnings = engine.errors.warnings
    if verbose and len(engine.errors):
        console.print(engine.errors.summary_markdown(), markup=False, highlight=False)
    elif warnings:
        console.print(f"[yellow]⚠ {len(warnings)} warning(s) during analysis[/yellow]")
        for issue in warnings[:10]:
            console.print(f"  • {issue}")
    if engine.errors.has_errors():
        raise typer.Exit(code=1)


@app.command("diff")
def diff(
    catalog_a: Path = typer.Argument(..., exists=True, dir_okay=False, help="Baseline catalog JSON."),
    catalog_b: Path = typer.Argument(..., exists=True, dir_okay=False, help="Catalog JSON to compare."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the diff as JSON."),
):
    """Compare two catalog JSON files."""
    setup_logging()
    try:
        before = load_catalog(catalog_a)
        after = load_catalog(catalog_b)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    result = FeatureDiff().compare(before, after)

    table = Table(title=f"\n{result.source_a} → {result.source_b}", show_header=True)
    table.add_column("Change")
    table.add_column("Category", style="cyan")
    table.add_column("File")
    table.add_column("Fields")
    styles = {"added": "green", "removed": "red", "modified": "yellow"}
    for bucket, changes in result.changes.items():
        for change in changes:
            style = styles[change.change_type]
            table.add_row(
                f"[{style}]{change.change_type}[/{style}]",
                bucket,
                change.feature.file_path,
                ", ".join(d.field for d in change.diff),
            )
    if result.total:
        console.print(table)
    console.print(
        f"Added: {result.added} | Removed: {result.removed} | "
        f"Modified: {result.modified} | Total: {result.total}"
    )

    if output is not None:
        check = validate_output_path(output, Path.cwd())
        if not check:
            raise typer.BadParameter(check.error or "Unsafe output path")
        export_diff_json(result, output)
        console.print(f"[green]✓[/green] Wrote {output}")


@app.command("categorize")
def categorize_path(
    path: str = typer.Argument(..., help="Relative file path, e.g. src/hooks/useAuth.ts"),
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c", exists=True, dir_okay=False, help="Config file with custom categories."
    ),
):
    """Print the category a file path would be assigned."""
    try:
        tool_config = load_tool_config(Path.cwd(), config_file)
    except ConfigurationError as exc:
        err_console.print(f"[red]✗[/red] {exc}")
        raise typer.Exit(code=2)

    relative = path.replace("\\", "/")
    rules = build_rules(tool_config.category_rules)
    typer.echo(categorize(relative, posixpath.basename(relative), rules))
