"""Data models for dependency graphs and transclusion results."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict

from ...utils.mentions import AtReference

GraphErrorType = Literal["missing", "parse"]

# (expanded content, absolute source path, reference) -> text spliced into the parent
ContentWrapper = Callable[[str, Path, AtReference], str]


def default_content_wrapper(content: str, file_path: Path, reference: AtReference) -> str:
    """Wrap expanded content in a <file> tag carrying its source path."""
    return f'<file path="{file_path}">\n{content}\n</file>'


@dataclass
class DependencyNode:
    """A file in the dependency graph.

    Edges are stored as sets of absolute path keys, never as node references.

    Attributes:
        file_path: Absolute file path (graph key)
        dependencies: Files this node references (may include files outside the graph)
        dependents: Files inside the graph that reference this node
    """

    file_path: Path
    dependencies: set[Path] = field(default_factory=set)
    dependents: set[Path] = field(default_factory=set)


class GraphError(BaseModel):
    """Structural problem recorded while building a dependency graph."""

    model_config = ConfigDict(frozen=True)

    type: GraphErrorType
    file_path: Path
    message: str
    missing_dep: str | None = None


@dataclass
class DependencyGraph:
    """Dependency graph over a fixed set of files.

    Attributes:
        nodes: Absolute path -> node, in input order
        root_files: Nodes whose dependencies all lie outside the graph (or that have none)
        errors: Missing/parse errors in input order, then occurrence order
    """

    nodes: dict[Path, DependencyNode] = field(default_factory=dict)
    root_files: set[Path] = field(default_factory=set)
    errors: list[GraphError] = field(default_factory=list)

    def internal_dependencies(self, file_path: Path) -> list[Path]:
        """Dependencies of file_path that are themselves nodes of this graph."""
        return [dep for dep in self.nodes[file_path].dependencies if dep in self.nodes]


class SortResult(BaseModel):
    """Topological order plus any cycles that prevented a full ordering."""

    model_config = ConfigDict(frozen=True)

    sorted: list[Path]
    cycles: list[list[Path]]


class CompiledReference(BaseModel):
    """Outcome of processing one @reference occurrence.

    Attributes:
        reference: The occurrence as extracted
        resolved_path: Absolute path the target resolved to
        found: Whether the target was read and expanded
        content: Expanded content (when found)
        error: Why the reference was not expanded
        circular: Whether the target was already being compiled
        imported_from: Document containing the occurrence (None for in-memory content)
        depth: Nesting level, 0 for occurrences in the root document
    """

    model_config = ConfigDict(frozen=True)

    reference: AtReference
    resolved_path: Path
    found: bool
    content: str | None = None
    error: str | None = None
    circular: bool = False
    imported_from: Path | None = None
    depth: int = 0


class CompileResult(BaseModel):
    """Result of compiling a single file."""

    model_config = ConfigDict(frozen=True)

    input_path: Path
    output_path: Path
    compiled_content: str
    references: list[CompiledReference]
    success_count: int
    failed_count: int
    written: bool


class ContentCompileResult(BaseModel):
    """Result of compiling in-memory content."""

    model_config = ConfigDict(frozen=True)

    compiled_content: str
    references: list[CompiledReference]


@dataclass
class CompileOptions:
    """Options controlling a compilation.

    Attributes:
        base_path: Directory for the root document's references
            (default: the root file's directory, or CWD for in-memory content)
        try_extensions: Extensions to try when a target is missing
        output_path: Where to write the compiled file (default: <stem>.built<suffix>)
        output_suffix: Marker inserted before the extension of the default output path
        write_output: Whether compile_file writes the compiled text
        content_wrapper: Wraps expanded content before splicing
    """

    base_path: Path | None = None
    try_extensions: list[str] = field(default_factory=list)
    output_path: Path | None = None
    output_suffix: str = ".built"
    write_output: bool = True
    content_wrapper: ContentWrapper = default_content_wrapper
