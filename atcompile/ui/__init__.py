"""Rich presentation of compile results and dependency graphs."""

from .display import build_reference_tree
from .display import render_reference_tree

__all__ = ["build_reference_tree", "render_reference_tree"]
