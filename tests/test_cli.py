"""Tests for the atcompile command-line interface."""

import json
import logging

import pytest
import yaml
from click.testing import CliRunner

from atcompile.lib.settings import AppSettings
from atcompile.lib.settings import SettingsPaths
from atcompile.logging_setup import JsonlHandler
from atcompile.main import cli


@pytest.fixture
def settings(tmp_path):
    return AppSettings(
        SettingsPaths(
            global_settings=tmp_path / "config" / "global.yaml",
            project_settings=tmp_path / "config" / "project.yaml",
            local_settings=tmp_path / "config" / "local.yaml",
        )
    )


@pytest.fixture
def run(settings, monkeypatch):
    monkeypatch.delenv("ATCOMPILE_LOG_PATH", raising=False)
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, list(args), obj={"settings": settings})

    return _run


def test_compile_single_file_writes_output(run, write_file):
    """Compiling one file writes <name>.built.md next to it."""
    write_file("part.md", "PART")
    root = write_file("notes.md", "see @part.md")

    result = run("compile", str(root))

    assert result.exit_code == 0, result.output
    assert "1 resolved" in result.output
    built = root.with_name("notes.built.md")
    assert "PART" in built.read_text(encoding="utf-8")


def test_compile_no_write(run, write_file):
    """--no-write leaves the filesystem alone."""
    root = write_file("notes.md", "plain")

    result = run("compile", "--no-write", str(root))

    assert result.exit_code == 0
    assert not root.with_name("notes.built.md").exists()


def test_compile_stdout(run, write_file):
    """--stdout prints the compiled text."""
    write_file("part.md", "PART")
    root = write_file("notes.md", "@part.md")

    result = run("compile", "--no-write", "--no-tree", "--stdout", str(root))

    assert result.exit_code == 0
    assert "PART" in result.output


def test_compile_explicit_output(run, write_file, tmp_path):
    """-o writes to the given path instead of the default."""
    root = write_file("notes.md", "plain")
    target = tmp_path / "final.md"

    result = run("compile", "-o", str(target), str(root))

    assert result.exit_code == 0
    assert target.read_text(encoding="utf-8") == "plain"


def test_output_requires_single_file(run, write_file, tmp_path):
    """-o is rejected when a directory expands to several files."""
    write_file("a.md", "a")
    write_file("b.md", "b")

    result = run("compile", "-o", str(tmp_path / "out.md"), str(tmp_path))

    assert result.exit_code == 2
    assert "single input file" in result.output


def test_compile_directory_in_dependency_order(run, write_file, tmp_path):
    """Dependencies are compiled before the files that include them."""
    write_file("leaf.md", "LEAF")
    write_file("top.md", "@leaf.md")

    result = run("compile", str(tmp_path))

    assert result.exit_code == 0, result.output
    assert result.output.index("leaf.md") < result.output.index("top.md")
    assert (tmp_path / "top.built.md").exists()
    assert (tmp_path / "leaf.built.md").exists()


def test_compile_reports_cycles(run, write_file, tmp_path):
    """Cycles are reported up front and marked in the tree."""
    write_file("a.md", "@b.md")
    write_file("b.md", "@a.md")

    result = run("compile", "--no-write", str(tmp_path))

    assert result.exit_code == 0
    assert "Circular dependency" in result.output
    assert "(circular)" in result.output


def test_compile_strict_fails_on_missing(run, write_file):
    """Missing references only change the exit code under --strict."""
    root = write_file("notes.md", "@missing.md")

    lenient = run("compile", "--no-write", str(root))
    strict = run("compile", "--no-write", "--strict", str(root))

    assert lenient.exit_code == 0
    assert "1 failed" in lenient.output
    assert strict.exit_code == 1


def test_compile_missing_root_is_reported(run, tmp_path):
    """A missing input file is reported, not raised."""
    result = run("compile", "--strict", str(tmp_path / "gone.md"))

    assert result.exit_code == 1
    assert "FileNotFoundError" in result.output


def test_compile_continues_after_undecodable_file(run, write_file, tmp_path):
    """A non-UTF-8 file in a batch is reported and the other files still compile."""
    write_file("good.md", "plain")
    (tmp_path / "bad.md").write_bytes(b"\xff\xfe\x00bad")

    result = run("compile", "--no-write", "--no-tree", "--strict", str(tmp_path))

    assert result.exit_code == 1
    assert "UnicodeDecodeError" in result.output
    assert "0 resolved" in result.output


def test_compile_reports_graph_errors(run, write_file, tmp_path):
    """Missing dependencies found while ordering a batch are printed and fail --strict."""
    write_file("a.md", "@missing.md")
    write_file("b.md", "@a.md")

    lenient = run("compile", "--no-write", "--no-tree", str(tmp_path))
    strict = run("compile", "--no-write", "--no-tree", "--strict", str(tmp_path))

    assert lenient.exit_code == 0
    assert "Missing dependency in a.md: missing.md" in lenient.output
    assert strict.exit_code == 1


def test_compile_uses_extension_option(run, write_file):
    """-e adds an extension to try for bare references."""
    write_file("part.md", "PART")
    root = write_file("notes.md", "@part")

    result = run("compile", "--no-write", "--stdout", "-e", ".md", str(root))

    assert result.exit_code == 0
    assert "PART" in result.output


def test_compile_uses_configured_extensions(run, settings, write_file):
    """compile.try_extensions from settings applies without -e."""
    settings.set_value("compile.try_extensions", [".md"], scope="project")
    write_file("part.md", "PART")
    root = write_file("notes.md", "@part")

    result = run("compile", "--no-write", "--stdout", str(root))

    assert "PART" in result.output


def test_graph_json(run, write_file, tmp_path):
    """--json emits nodes, order, cycles and errors."""
    leaf = write_file("leaf.md", "leaf")
    top = write_file("top.md", "@leaf.md @missing.md")

    result = run("graph", "--json", str(tmp_path))

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["root_files"] == [str(leaf)]
    assert data["order"] == [str(leaf), str(top)]
    assert data["nodes"][str(top)]["dependencies"] == [str(leaf)]
    assert data["cycles"] == []
    assert data["errors"][0]["type"] == "missing"
    assert data["errors"][0]["missing_dep"] == "missing.md"


def test_graph_table_and_strict(run, write_file, tmp_path):
    """Cycles fail graph --strict."""
    write_file("a.md", "@b.md")
    write_file("b.md", "@a.md")

    result = run("graph", "--strict", str(tmp_path))

    assert result.exit_code == 1
    assert "Dependency Graph" in result.output
    assert "1 circular dependency" in result.output


def test_graph_clean(run, write_file, tmp_path):
    """A graph without problems says so."""
    write_file("a.md", "text")

    result = run("graph", str(tmp_path))

    assert result.exit_code == 0
    assert "No cycles or missing references" in result.output


def test_config_set_show_unset(run, settings):
    """config set/show/unset round-trip through the project scope."""
    result = run("config", "set", "compile.try_extensions", ".md,.txt")
    assert result.exit_code == 0, result.output
    assert yaml.safe_load(settings.paths.project_settings.read_text()) == {
        "compile": {"try_extensions": [".md", ".txt"]}
    }

    shown = run("config", "show")
    assert "try_extensions" in shown.output

    run("config", "unset", "compile.try_extensions")
    assert settings.get_merged_settings() == {}


def test_config_set_rejects_bad_value(run):
    """Values that do not coerce are a usage error."""
    result = run("config", "set", "compile.write_output", "maybe")

    assert result.exit_code == 2
    assert "boolean" in result.output


def test_log_file_option(run, write_file, tmp_path):
    """--log-file installs the JSONL sink for the run."""
    log_path = tmp_path / "run.jsonl"
    root = write_file("notes.md", "@missing.md")

    try:
        result = run("--log-file", str(log_path), "--log-level", "debug", "compile", "--no-write", str(root))
        assert result.exit_code == 0
        assert log_path.exists()
        assert "Reference not found" in log_path.read_text(encoding="utf-8")
    finally:
        for handler in list(logging.getLogger().handlers):
            if isinstance(handler, JsonlHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()


def test_log_file_records_structured_fields(run, write_file, tmp_path):
    """Log lines carry the event name and the paths involved."""
    log_path = tmp_path / "run.jsonl"
    root = write_file("notes.md", "@notes.md")

    try:
        result = run("--log-file", str(log_path), "compile", "--no-write", str(root))
        assert result.exit_code == 0
        records = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    finally:
        for handler in list(logging.getLogger().handlers):
            if isinstance(handler, JsonlHandler):
                logging.getLogger().removeHandler(handler)
                handler.close()

    [circular] = [r for r in records if r["event"] == "reference_circular"]
    assert circular["reference"] == "@notes.md"
    assert circular["path"] == str(root)
    assert circular["circular"] is True
