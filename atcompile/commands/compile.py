"""Compile command: expand @references into built output files."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from ..console import console
from ..console import err_console
from ..lib.settings import AppSettings
from ..lib.transclusion import TransclusionCompiler
from ..lib.transclusion import build_dependency_graph
from ..lib.transclusion import collect_markdown_files
from ..lib.transclusion import topological_sort
from ..ui.display import format_summary
from ..ui.display import render_reference_tree
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

logger = logging.getLogger(__name__)


@click.command(name="compile")
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (single input only; default: <name>.built<ext>)",
)
@click.option("--write/--no-write", "write_output", default=None, help="Write compiled output files")
@click.option(
    "--ext",
    "-e",
    "extensions",
    multiple=True,
    help="Extension to try when a reference has none (repeatable, e.g. -e .md)",
)
@click.option(
    "--base-path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory for resolving the root file's references",
)
@click.option("--tree/--no-tree", default=True, help="Show the reference tree")
@click.option("--full-paths", is_flag=True, help="Show resolved paths in the tree")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print compiled content to stdout")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any reference fails")
@click.pass_context
def compile_cmd(
    ctx: click.Context,
    paths: tuple[Path, ...],
    output: Path | None,
    write_output: bool | None,
    extensions: tuple[str, ...],
    base_path: Path | None,
    tree: bool,
    full_paths: bool,
    to_stdout: bool,
    strict: bool,
):
    """Compile markdown files, replacing each @reference with the referenced file.

    References are expanded recursively. Directories are searched for *.md
    files; multiple files are compiled in dependency order.
    """
    settings: AppSettings = ctx.obj["settings"]
    options = settings.compile_options(
        write_output=write_output,
        try_extensions=list(extensions) or None,
        base_path=base_path,
        output_path=output,
    )

    files = collect_markdown_files(paths, options.output_suffix)
    if not files:
        raise click.UsageError("No markdown files found in the given paths")
    if output is not None and len(files) > 1:
        raise click.UsageError("--output can only be used with a single input file")

    out = err_console if to_stdout else console
    order = files
    problems = 0
    if len(files) > 1:
        graph = build_dependency_graph(files, options.try_extensions)
        result = topological_sort(graph)
        order = result.sorted
        for cycle in result.cycles:
            problems += 1
            members = " → ".join(escape_markup(p.name) for p in cycle)
            out.print(f"[yellow]⚠️  Circular dependency:[/yellow] {members}")
        for error in graph.errors:
            problems += 1
            out.print(f"[red]✗ {error.type}:[/red] {escape_markup(error.message)}")

    compiler = TransclusionCompiler(options)
    for file_path in order:
        try:
            compiled = compiler.compile_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            problems += 1
            logger.error(f"Cannot compile {file_path}: {e}")
            out.print(f"[red]✗ {escape_markup(file_path)}:[/red] {escape_markup(format_error_message(e))}")
            continue

        problems += compiled.failed_count
        if to_stdout:
            click.echo(compiled.compiled_content)
        if tree:
            out.print(render_reference_tree(compiled, show_full_paths=full_paths))
        out.print(format_summary(compiled))

    if strict and problems:
        ctx.exit(1)
