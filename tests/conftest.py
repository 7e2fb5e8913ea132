"""Shared fixtures for tagplate tests."""

from pathlib import Path

import pytest


def write_template(root: Path, name: str, content: str, type_: str = "default") -> Path:
    """Write root/<type>/<name>.html and return its path."""
    path = root / type_ / f"{name}.html"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def template_root(tmp_path):
    root = tmp_path / "templates"
    root.mkdir()
    return root
