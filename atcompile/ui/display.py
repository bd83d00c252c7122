"""Rich rendering of compilation results and dependency graphs."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from rich.table import Table
from rich.tree import Tree

from ..lib.transclusion.models import CompiledReference
from ..lib.transclusion.models import CompileResult
from ..lib.transclusion.models import DependencyGraph
from ..utils.error_format import escape_markup


@dataclass
class ReferenceTreeNode:
    """A compiled reference together with the references found inside its target."""

    record: CompiledReference
    duplicate: bool = False
    children: list[ReferenceTreeNode] = field(default_factory=list)


def build_reference_tree(references: Sequence[CompiledReference]) -> list[ReferenceTreeNode]:
    """Rebuild the nesting from the flat, pre-ordered reference list.

    Each record's parent is the closest preceding record one level shallower.
    A found target that was already expanded earlier in the tree is marked duplicate.
    """
    roots: list[ReferenceTreeNode] = []
    stack: list[ReferenceTreeNode] = []
    seen: set[Path] = set()

    for record in references:
        node = ReferenceTreeNode(record=record, duplicate=record.found and record.resolved_path in seen)
        if record.found:
            seen.add(record.resolved_path)

        while stack and stack[-1].record.depth >= record.depth:
            stack.pop()
        (stack[-1].children if stack else roots).append(node)
        stack.append(node)

    return roots


def _label(node: ReferenceTreeNode, show_full_paths: bool) -> str:
    record = node.record
    text = escape_markup(record.resolved_path if show_full_paths else record.reference.raw)

    if record.circular:
        return f"[red]{text}[/red] [red]⚠️  (circular)[/red]"
    if not record.found:
        return f"[red]{text} ✗[/red]\n[dim red]{escape_markup(record.error or 'not found')}[/dim red]"
    if node.duplicate:
        return f"[yellow]{text}[/yellow] [yellow]⚠️  (duplicate)[/yellow]"
    return f"[green]{text}[/green]"


def render_reference_tree(result: CompileResult, show_full_paths: bool = False) -> Tree:
    """Render a compile result as a Rich tree rooted at the input file."""
    tree = Tree(f"[bold]{escape_markup(result.input_path.name)}[/bold]")

    def add(parent: Tree, nodes: list[ReferenceTreeNode]) -> None:
        for node in nodes:
            add(parent.add(_label(node, show_full_paths)), node.children)

    add(tree, build_reference_tree(result.references))
    return tree


def format_summary(result: CompileResult) -> str:
    """One-line Rich markup summary of a compile result."""
    parts = [f"[green]{result.success_count} resolved[/green]"]
    if result.failed_count:
        parts.append(f"[red]{result.failed_count} failed[/red]")
    summary = ", ".join(parts)
    if result.written:
        summary += f" → [cyan]{escape_markup(result.output_path)}[/cyan]"
    return summary


def _display_path(path: Path, base: Path | None) -> str:
    if base is not None and path.is_relative_to(base):
        return str(path.relative_to(base))
    return str(path)


def render_graph_table(graph: DependencyGraph, base: Path | None = None) -> Table:
    """Table of graph nodes with edge counts and root markers."""
    table = Table(title="Dependency Graph")
    table.add_column("File", style="cyan")
    table.add_column("Dependencies", justify="right")
    table.add_column("Internal", justify="right")
    table.add_column("Dependents", justify="right")
    table.add_column("Root", style="green")

    for file_path, node in graph.nodes.items():
        table.add_row(
            escape_markup(_display_path(file_path, base)),
            str(len(node.dependencies)),
            str(len(graph.internal_dependencies(file_path))),
            str(len(node.dependents)),
            "yes" if file_path in graph.root_files else "",
        )
    return table


def render_order_table(order: Sequence[Path], cycles: Sequence[Sequence[Path]], base: Path | None = None) -> Table:
    """Table of the compilation order, marking files that sit on a cycle."""
    cyclic = {member for cycle in cycles for member in cycle}
    table = Table(title="Compilation Order")
    table.add_column("#", justify="right", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Note", style="red")

    for position, file_path in enumerate(order, start=1):
        table.add_row(
            str(position),
            escape_markup(_display_path(file_path, base)),
            "cycle" if file_path in cyclic else "",
        )
    return table
