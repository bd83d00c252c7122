"""Tests for @reference extraction."""

from atcompile.utils.mentions import extract_references
from atcompile.utils.mentions import find_excluded_ranges
from atcompile.utils.mentions import has_references


def test_extract_references_in_source_order():
    """Test references come back left to right with exact offsets."""
    text = "Intro @a.md then @sub/b.md end"
    refs = extract_references(text)

    assert [r.path for r in refs] == ["a.md", "sub/b.md"]
    for ref in refs:
        assert text[ref.start : ref.end] == ref.raw
        assert ref.raw == f"@{ref.path}"
    assert refs[0].start < refs[1].start


def test_extract_relative_absolute_and_home_paths():
    """Relative, absolute and ~ paths are all references."""
    refs = extract_references("@./x.md @../y.md @/abs/z.md @~/notes/n.md")
    assert [r.path for r in refs] == ["./x.md", "../y.md", "/abs/z.md", "~/notes/n.md"]


def test_email_addresses_are_not_references():
    """Test @ preceded by a word character is ignored."""
    assert extract_references("Contact email@example.com for help") == []


def test_trailing_punctuation_is_stripped():
    """Sentence punctuation after a path is not part of it."""
    refs = extract_references("See @intro.md. Also @other.md, and @third.md;")
    assert [r.path for r in refs] == ["intro.md", "other.md", "third.md"]
    assert refs[0].raw == "@intro.md"


def test_references_in_code_are_ignored():
    """Test fenced blocks and inline code spans hide references."""
    text = "Real @a.md\n```\n@fenced.md\n```\nand `@inline.md` too"
    refs = extract_references(text)

    assert [r.path for r in refs] == ["a.md"]


def test_references_inside_expanded_file_blocks_are_ignored():
    """Content already inside <file> blocks is not scanned again."""
    text = '<file path="/x/b.md">\n@c.md\n</file>\n@d.md'
    assert [r.path for r in extract_references(text)] == ["d.md"]


def test_find_excluded_ranges_does_not_duplicate_inline_code_in_fences():
    text = "```\n`@x.md`\n```"
    assert find_excluded_ranges(text) == [(0, len(text))]


def test_has_references():
    assert has_references("Check @AGENTS.md")
    assert not has_references("No references here")
    assert not has_references("Use `@decorator` syntax")
