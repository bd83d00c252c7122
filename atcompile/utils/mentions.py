"""Pure text processing for @references - no file I/O."""

import re
from dataclasses import dataclass
from re import Pattern

# @reference pattern: matches @path/to/file, @./file, @../file, @/abs/file, @~/file
# Negative lookbehind excludes email addresses, doubled @@ and code-ish `@
REFERENCE_PATTERN: Pattern = re.compile(r"(?<![a-zA-Z0-9_@`])@([a-zA-Z0-9_\-/\.~]+)")

# Sentence punctuation that may trail a reference but is never part of the path
TRAILING_PUNCTUATION = ".,:;"

FENCED_BLOCK_PATTERN: Pattern = re.compile(r"```[\s\S]*?```")
INLINE_CODE_PATTERN: Pattern = re.compile(r"`[^`\n]+`")
FILE_BLOCK_PATTERN: Pattern = re.compile(r"<file\s[^>]*>[\s\S]*?</file>|<file\s[^>]*/>")


@dataclass(frozen=True)
class AtReference:
    """A single @reference occurrence in a document.

    Attributes:
        raw: Matched text including the leading @ (``text[start:end] == raw``)
        path: Target path as written, without the @
        start: Offset of the @ in the source text
        end: Offset just past the last path character
    """

    raw: str
    path: str
    start: int
    end: int


def find_excluded_ranges(text: str) -> list[tuple[int, int]]:
    """
    Find ranges where @references must not be recognised.

    Covers fenced code blocks, inline code spans outside fenced blocks, and
    already-expanded <file ...>...</file> blocks.

    Args:
        text: Document text

    Returns:
        List of (start, end) half-open ranges

    Examples:
        >>> find_excluded_ranges("a `@b` c")
        [(2, 6)]
    """
    ranges = [(m.start(), m.end()) for m in FENCED_BLOCK_PATTERN.finditer(text)]

    for m in INLINE_CODE_PATTERN.finditer(text):
        if not any(start <= m.start() and m.end() <= end for start, end in ranges):
            ranges.append((m.start(), m.end()))

    ranges.extend((m.start(), m.end()) for m in FILE_BLOCK_PATTERN.finditer(text))
    return ranges


def _is_excluded(offset: int, ranges: list[tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in ranges)


def extract_references(text: str) -> list[AtReference]:
    """
    Extract all @references from text in source order.

    Args:
        text: Text to parse for @references

    Returns:
        List of AtReference occurrences, ascending by start offset

    Examples:
        >>> [r.path for r in extract_references("See @docs/intro.md and @./notes.md.")]
        ['docs/intro.md', './notes.md']
        >>> extract_references("mail me at someone@example.com")
        []
    """
    excluded = find_excluded_ranges(text)
    references = []

    for match in REFERENCE_PATTERN.finditer(text):
        path = match.group(1).rstrip(TRAILING_PUNCTUATION)
        if not path or _is_excluded(match.start(), excluded):
            continue

        start = match.start()
        end = start + 1 + len(path)
        references.append(AtReference(raw=text[start:end], path=path, start=start, end=end))

    return references


def has_references(text: str) -> bool:
    """
    Check if text contains any @references outside code.

    Examples:
        >>> has_references("Check @AGENTS.md")
        True
        >>> has_references("Use `@decorator` syntax")
        False
    """
    return len(extract_references(text)) > 0
