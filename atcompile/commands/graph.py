"""Graph command: analyze @reference dependencies across a set of files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from ..console import console
from ..lib.settings import AppSettings
from ..lib.transclusion import DependencyGraph
from ..lib.transclusion import SortResult
from ..lib.transclusion import build_dependency_graph
from ..lib.transclusion import collect_markdown_files
from ..lib.transclusion import topological_sort
from ..ui.display import render_graph_table
from ..ui.display import render_order_table
from ..utils.error_format import escape_markup


def graph_to_dict(graph: DependencyGraph, result: SortResult) -> dict[str, Any]:
    """JSON-serializable view of a graph and its ordering."""
    return {
        "nodes": {
            str(file_path): {
                "dependencies": sorted(str(dep) for dep in node.dependencies),
                "dependents": sorted(str(dep) for dep in node.dependents),
            }
            for file_path, node in graph.nodes.items()
        },
        "root_files": sorted(str(p) for p in graph.root_files),
        "order": [str(p) for p in result.sorted],
        "cycles": [[str(p) for p in cycle] for cycle in result.cycles],
        "errors": [error.model_dump(mode="json") for error in graph.errors],
    }


@click.command(name="graph")
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--ext",
    "-e",
    "extensions",
    multiple=True,
    help="Extension to try when a reference has none (repeatable)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--strict", is_flag=True, help="Exit with status 1 on cycles or graph errors")
@click.pass_context
def graph_cmd(ctx: click.Context, paths: tuple[Path, ...], extensions: tuple[str, ...], as_json: bool, strict: bool):
    """Show the dependency graph, compilation order, and cycles for files."""
    settings: AppSettings = ctx.obj["settings"]
    options = settings.compile_options(try_extensions=list(extensions) or None)

    files = collect_markdown_files(paths, options.output_suffix)
    if not files:
        raise click.UsageError("No markdown files found in the given paths")

    graph = build_dependency_graph(files, options.try_extensions)
    result = topological_sort(graph)

    if as_json:
        click.echo(json.dumps(graph_to_dict(graph, result), indent=2))
    else:
        base = Path.cwd()
        console.print(render_graph_table(graph, base))
        console.print(render_order_table(result.sorted, result.cycles, base))

        if result.cycles:
            noun = "dependency" if len(result.cycles) == 1 else "dependencies"
            console.print(f"\n[yellow]⚠️  {len(result.cycles)} circular {noun}:[/yellow]")
            for cycle in result.cycles:
                console.print("  " + " → ".join(escape_markup(p.name) for p in cycle))

        if graph.errors:
            console.print(f"\n[red]{len(graph.errors)} error(s):[/red]")
            for error in graph.errors:
                console.print(f"  [red]{error.type}[/red] {escape_markup(error.message)}")

        if not result.cycles and not graph.errors:
            console.print("\n[green]✓ No cycles or missing references[/green]")

    if strict and (result.cycles or graph.errors):
        ctx.exit(1)
