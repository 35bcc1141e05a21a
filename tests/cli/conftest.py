"""Shared fixtures for CLI tests.

Provides temporary catalog and project files.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    """A small catalog where foo@1.1.0 needs bar@2.x."""
    path = tmp_path / "catalog.yaml"
    path.write_text(
        "packages:\n"
        "  foo:\n"
        "    - version: '1.0.0'\n"
        "      dependencies: [bar]\n"
        "    - version: '1.1.0'\n"
        "      dependencies: [bar]\n"
        "      constraints: ['bar@2.0.0']\n"
        "  bar:\n"
        "    - '1.0.0'\n"
        "    - '2.0.0'\n"
        "    - '2.1.0-rc1'\n"
    )
    return path


@pytest.fixture
def broken_catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "broken.yaml"
    path.write_text("packages:\n  foo:\n    - version: '1.0'\n")
    return path
