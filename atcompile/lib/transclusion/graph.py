"""Dependency graph over @reference edges: build, topological sort, cycle detection."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Sequence
from pathlib import Path

from ...utils.mentions import extract_references
from .models import DependencyGraph
from .models import DependencyNode
from .models import GraphError
from .models import SortResult
from .resolver import PathResolver

logger = logging.getLogger(__name__)


def collect_markdown_files(paths: Iterable[str | Path], output_suffix: str = ".built") -> list[Path]:
    """Expand directories to the markdown files beneath them.

    Files are kept as given. Directories contribute their ``*.md`` files
    (recursively, sorted), skipping previously compiled ``*<output_suffix>.md`` outputs.

    Args:
        paths: Files and/or directories
        output_suffix: Marker identifying compiled outputs

    Returns:
        Absolute paths, first occurrence wins
    """
    collected: dict[Path, None] = {}
    for raw in paths:
        path = Path(raw).resolve()
        if path.is_dir():
            for found in sorted(path.rglob("*.md")):
                if not found.stem.endswith(output_suffix):
                    collected.setdefault(found, None)
        else:
            collected.setdefault(path, None)
    return list(collected)


def build_dependency_graph(files: Sequence[str | Path], try_extensions: Sequence[str] = ()) -> DependencyGraph:
    """Build a dependency graph from a list of files.

    The node set is fixed to the given files. References to files outside
    the set are recorded as dependencies but create no node and no reverse edge.

    Args:
        files: Files to analyze (relative paths resolve against CWD)
        try_extensions: Extensions to try when a reference target is missing

    Returns:
        DependencyGraph with nodes, root files, and accumulated errors
    """
    resolver = PathResolver(try_extensions)
    graph = DependencyGraph()

    for file in files:
        absolute_path = Path(file).resolve()
        graph.nodes.setdefault(absolute_path, DependencyNode(file_path=absolute_path))

    for absolute_path, node in graph.nodes.items():
        if not absolute_path.exists():
            logger.warning(
                f"Input file not found: {absolute_path}",
                extra={"event": "graph_missing_file", "path": str(absolute_path)},
            )
            graph.errors.append(
                GraphError(type="missing", file_path=absolute_path, message=f"File not found: {absolute_path}")
            )
            continue

        try:
            content = absolute_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(
                f"Could not read {absolute_path}: {e}", extra={"event": "graph_parse_error", "path": str(absolute_path)}
            )
            graph.errors.append(GraphError(type="parse", file_path=absolute_path, message=f"Parse error: {e}"))
            continue

        for ref in extract_references(content):
            resolved = resolver.resolve(ref.path, absolute_path.parent)

            if not resolved.exists or resolved.is_directory:
                reason = "is a directory" if resolved.is_directory else "not found"
                logger.info(
                    f"Missing dependency in {absolute_path}: {ref.raw} ({reason})",
                    extra={"event": "graph_missing_dependency", "reference": ref.raw, "path": str(absolute_path)},
                )
                graph.errors.append(
                    GraphError(
                        type="missing",
                        file_path=absolute_path,
                        missing_dep=ref.path,
                        message=f"Missing dependency in {absolute_path.name}: {ref.path} ({reason})",
                    )
                )
                continue

            dep_path = resolved.resolved_path
            node.dependencies.add(dep_path)

            dep_node = graph.nodes.get(dep_path)
            if dep_node is not None:
                dep_node.dependents.add(absolute_path)

    for file_path in graph.nodes:
        if not graph.internal_dependencies(file_path):
            graph.root_files.add(file_path)

    logger.debug(
        f"Built dependency graph: {len(graph.nodes)} nodes, "
        f"{len(graph.root_files)} roots, {len(graph.errors)} errors"
    )
    return graph


def topological_sort(graph: DependencyGraph) -> SortResult:
    """Order files so dependencies come before their dependents (Kahn's algorithm).

    Only edges inside the graph count. When cycles prevent a full ordering,
    the cyclic files are appended after the ordered ones, so every node
    appears exactly once, and the cycles are reported.
    """
    in_degree = {file_path: len(graph.internal_dependencies(file_path)) for file_path in graph.nodes}
    queue = deque(file_path for file_path, degree in in_degree.items() if degree == 0)
    ordered: list[Path] = []

    while queue:
        file_path = queue.popleft()
        ordered.append(file_path)

        for dependent in graph.nodes[file_path].dependents:
            if dependent not in in_degree:
                continue
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    cycles: list[list[Path]] = []
    if len(ordered) < len(graph.nodes):
        emitted = set(ordered)
        remaining = [file_path for file_path in graph.nodes if file_path not in emitted]
        cycles = detect_circular_dependencies(graph)
        logger.warning(f"{len(remaining)} file(s) could not be ordered due to {len(cycles)} cycle(s)")
        ordered.extend(remaining)

    return SortResult(sorted=ordered, cycles=cycles)


def detect_circular_dependencies(graph: DependencyGraph) -> list[list[Path]]:
    """Find all dependency cycles using Tarjan's strongly connected components.

    A component is reported when it has more than one file, or when it is a
    single file that references itself. Order inside a cycle carries no meaning.

    The traversal keeps an explicit stack instead of recursing, so long
    reference chains cannot hit the interpreter recursion limit.
    """
    index: dict[Path, int] = {}
    low_link: dict[Path, int] = {}
    on_stack: set[Path] = set()
    stack: list[Path] = []
    cycles: list[list[Path]] = []
    work: list[tuple[Path, Iterator[Path]]] = []

    def visit(file_path: Path) -> None:
        index[file_path] = low_link[file_path] = len(index)
        stack.append(file_path)
        on_stack.add(file_path)
        work.append((file_path, iter(graph.internal_dependencies(file_path))))

    for start in graph.nodes:
        if start in index:
            continue
        visit(start)

        while work:
            file_path, deps = work[-1]

            descended = False
            for dep in deps:
                if dep not in index:
                    visit(dep)
                    descended = True
                    break
                if dep in on_stack:
                    low_link[file_path] = min(low_link[file_path], index[dep])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[file_path])

            if low_link[file_path] == index[file_path]:
                component: list[Path] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == file_path:
                        break

                if len(component) > 1 or file_path in graph.nodes[file_path].dependencies:
                    cycles.append(component)

    return cycles
