from __future__ import annotations

from pathlib import Path

import pytest

from qtest.models import FileRecord
from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def make_file():
    """Build an in-memory FileRecord without touching the filesystem."""

    def _make(name: str, content: str = "", relative_path: str | None = None) -> FileRecord:
        rel = relative_path if relative_path is not None else name
        return FileRecord(
            name=name,
            path=f"/project/{rel}",
            relative_path=rel,
            content=content,
            size=len(content.encode("utf-8")),
        )

    return _make
