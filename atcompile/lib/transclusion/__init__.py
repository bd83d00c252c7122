"""Transclusion library for atcompile.

This library builds dependency graphs over @references and compiles
documents by recursively replacing each @reference with the referenced
file's expanded content.
"""

from .compiler import TransclusionCompiler
from .compiler import compile_content
from .compiler import compile_file
from .compiler import get_built_output_path
from .graph import build_dependency_graph
from .graph import collect_markdown_files
from .graph import detect_circular_dependencies
from .graph import topological_sort
from .models import CompiledReference
from .models import CompileOptions
from .models import CompileResult
from .models import ContentCompileResult
from .models import DependencyGraph
from .models import DependencyNode
from .models import GraphError
from .models import SortResult
from .models import default_content_wrapper
from .resolver import PathResolver
from .resolver import ResolvedPath
from .resolver import resolve_path

__all__ = [
    "CompileOptions",
    "CompileResult",
    "CompiledReference",
    "ContentCompileResult",
    "DependencyGraph",
    "DependencyNode",
    "GraphError",
    "PathResolver",
    "ResolvedPath",
    "SortResult",
    "TransclusionCompiler",
    "build_dependency_graph",
    "collect_markdown_files",
    "compile_content",
    "compile_file",
    "default_content_wrapper",
    "detect_circular_dependencies",
    "get_built_output_path",
    "resolve_path",
    "topological_sort",
]
