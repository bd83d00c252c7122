"""Pytest configuration for atcompile tests."""

import sys
from pathlib import Path

import pytest

# Allow running the tests from a checkout without installing the package
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))


@pytest.fixture
def write_file(tmp_path):
    """Write a UTF-8 file under tmp_path and return its resolved path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path.resolve()

    return _write
