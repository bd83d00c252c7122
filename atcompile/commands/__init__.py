"""CLI commands for atcompile."""

__all__ = [
    "compile",
    "config",
    "graph",
]
