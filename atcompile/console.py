"""Shared Rich console instances for CLI output."""

from rich.console import Console

console = Console()

# Status output when stdout carries compiled content
err_console = Console(stderr=True)

__all__ = ["console", "err_console"]
