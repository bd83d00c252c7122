"""Path resolution for @references with extension fallback."""

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

logger = logging.getLogger(__name__)


class ResolvedPath(BaseModel):
    """Outcome of resolving one @reference target.

    Attributes:
        resolved_path: Absolute, normalised path (the literal candidate when nothing exists)
        exists: Whether the path exists on disk
        is_directory: Whether the path is a directory
        error: Explanation when the path does not exist
    """

    model_config = ConfigDict(frozen=True)

    resolved_path: Path
    exists: bool
    is_directory: bool = False
    error: str | None = None


def _candidate(target: str, base_path: Path) -> Path:
    path = Path(target).expanduser()
    if not path.is_absolute():
        path = base_path / path
    return path.resolve()


def resolve_path(target: str, base_path: Path, try_extensions: Sequence[str] = ()) -> ResolvedPath:
    """Resolve an @reference target relative to a base directory.

    Resolution order:
    1. ``~`` expands to the home directory, absolute paths are kept
    2. Everything else is joined onto ``base_path``
    3. If the literal path is missing, each of ``try_extensions`` is appended
       in order and the first existing candidate wins

    Args:
        target: Path as written after the @
        base_path: Directory of the referencing document
        try_extensions: Extensions (e.g. ``[".md"]``) to try when the literal path is missing

    Returns:
        ResolvedPath describing the candidate; never raises for missing files
    """
    literal = _candidate(target, base_path)
    if literal.exists():
        return ResolvedPath(resolved_path=literal, exists=True, is_directory=literal.is_dir())

    for ext in try_extensions:
        suffix = ext if ext.startswith(".") else f".{ext}"
        candidate = literal.with_name(literal.name + suffix)
        if candidate.exists():
            logger.debug(f"Resolved {target} via extension {suffix}: {candidate}")
            return ResolvedPath(resolved_path=candidate, exists=True, is_directory=candidate.is_dir())

    logger.debug(f"Reference target not found: {target} (base {base_path})")
    return ResolvedPath(resolved_path=literal, exists=False, error=f"File not found: {literal}")


class PathResolver:
    """Resolves @references with a fixed extension-trial list.

    Holds no cache: every call re-checks the filesystem.
    """

    def __init__(self, try_extensions: Sequence[str] | None = None):
        self.try_extensions = list(try_extensions or [])

    def resolve(self, target: str, base_path: Path) -> ResolvedPath:
        """Resolve target relative to base_path."""
        return resolve_path(target, base_path, self.try_extensions)
