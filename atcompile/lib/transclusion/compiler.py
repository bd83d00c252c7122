"""Recursive @reference compilation with circular-reference guarding."""

from __future__ import annotations

import logging
from pathlib import Path

from ...utils.error_format import format_error_message
from ...utils.mentions import extract_references
from .models import CompiledReference
from .models import CompileOptions
from .models import CompileResult
from .models import ContentCompileResult
from .resolver import PathResolver

logger = logging.getLogger(__name__)


def get_built_output_path(input_path: Path, output_suffix: str = ".built") -> Path:
    """Return the default output path: ``notes.md`` -> ``notes.built.md``."""
    return input_path.with_name(f"{input_path.stem}{output_suffix}{input_path.suffix}")


class TransclusionCompiler:
    """Expands @references into the content of the files they point to.

    Features:
    - Recursive expansion (references inside included files are expanded too)
    - Circular reference guard (a file already being compiled is not re-entered)
    - One result record per occurrence; failures never abort the document
    - No de-duplication: a file referenced twice is expanded twice
    """

    def __init__(self, options: CompileOptions | None = None):
        """Initialize compiler.

        Args:
            options: Compilation options (default: CompileOptions())
        """
        self.options = options or CompileOptions()
        self.resolver = PathResolver(self.options.try_extensions)

    def compile_file(self, file_path: str | Path) -> CompileResult:
        """Compile a file, expanding all @references recursively.

        Args:
            file_path: File to compile

        Returns:
            CompileResult with compiled content and per-reference records

        Raises:
            OSError: If the root file itself cannot be read
            UnicodeDecodeError: If the root file is not valid UTF-8
        """
        input_path = Path(file_path).resolve()
        content = input_path.read_text(encoding="utf-8")

        visited = {input_path}
        base_path = Path(self.options.base_path).resolve() if self.options.base_path else input_path.parent

        compiled_content, references = self._compile(content, base_path, input_path, visited, depth=0)

        success_count = sum(1 for ref in references if ref.found)
        output_path = (
            Path(self.options.output_path).resolve()
            if self.options.output_path
            else get_built_output_path(input_path, self.options.output_suffix)
        )

        written = False
        if self.options.write_output:
            output_path.write_text(compiled_content, encoding="utf-8")
            written = True
            logger.info(
                f"Wrote compiled output to {output_path}",
                extra={"event": "output_written", "path": str(output_path), "source": str(input_path)},
            )

        return CompileResult(
            input_path=input_path,
            output_path=output_path,
            compiled_content=compiled_content,
            references=references,
            success_count=success_count,
            failed_count=len(references) - success_count,
            written=written,
        )

    def compile_content(self, content: str) -> ContentCompileResult:
        """Compile in-memory text without writing anything.

        References resolve against ``options.base_path`` (default: CWD).
        """
        base_path = Path(self.options.base_path).resolve() if self.options.base_path else Path.cwd()
        compiled_content, references = self._compile(content, base_path, None, set(), depth=0)
        return ContentCompileResult(compiled_content=compiled_content, references=references)

    def _compile(
        self,
        content: str,
        base_path: Path,
        current_file: Path | None,
        visited: set[Path],
        depth: int,
    ) -> tuple[str, list[CompiledReference]]:
        """Expand references in content; returns compiled text and records in source order.

        Occurrences are spliced from the last to the first so earlier offsets
        stay valid. Each occurrence's record is followed by its nested records.
        """
        compiled = content
        groups: list[list[CompiledReference]] = []

        for ref in reversed(extract_references(content)):
            resolved = self.resolver.resolve(ref.path, base_path)
            target = resolved.resolved_path
            record = {
                "reference": ref,
                "resolved_path": target,
                "imported_from": current_file,
                "depth": depth,
            }

            if target in visited:
                logger.warning(
                    f"Circular reference skipped: {ref.raw} -> {target}",
                    extra={
                        "event": "reference_circular",
                        "reference": ref.raw,
                        "path": str(target),
                        "circular": True,
                    },
                )
                groups.append(
                    [
                        CompiledReference(
                            **record,
                            found=False,
                            circular=True,
                            error=f"Circular dependency detected: {target}",
                        )
                    ]
                )
                continue

            if not resolved.exists:
                logger.info(
                    f"Reference not found: {ref.raw}",
                    extra={
                        "event": "reference_missing",
                        "reference": ref.raw,
                        "path": str(target),
                        "circular": False,
                    },
                )
                groups.append([CompiledReference(**record, found=False, error=resolved.error or "File not found")])
                continue

            if resolved.is_directory:
                groups.append(
                    [CompiledReference(**record, found=False, error="Path is a directory, not a file")]
                )
                continue

            try:
                file_content = target.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(
                    f"Failed to read {target}: {e}",
                    extra={"event": "reference_unreadable", "reference": ref.raw, "path": str(target)},
                )
                groups.append(
                    [CompiledReference(**record, found=False, error=format_error_message(e, include_type=False))]
                )
                continue

            # visited holds the chain of files currently being expanded
            visited.add(target)
            try:
                expanded, nested = self._compile(file_content, target.parent, target, visited, depth + 1)
            finally:
                visited.discard(target)

            wrapped = self.options.content_wrapper(expanded, target, ref)
            compiled = compiled[: ref.start] + wrapped + compiled[ref.end :]

            groups.append([CompiledReference(**record, found=True, content=expanded), *nested])

        groups.reverse()
        return compiled, [ref for group in groups for ref in group]


def compile_file(file_path: str | Path, options: CompileOptions | None = None) -> CompileResult:
    """Compile a single file, resolving all @references recursively."""
    return TransclusionCompiler(options).compile_file(file_path)


def compile_content(content: str, options: CompileOptions | None = None) -> ContentCompileResult:
    """Compile content without file I/O on the output side."""
    return TransclusionCompiler(options).compile_content(content)
