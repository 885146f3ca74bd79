"""Shared fixtures for pagesmith tests.

``site_root`` returns a fresh site folder and ``write_files`` fills it from a
mapping of POSIX relative paths to file contents, creating folders as needed.
"""

from __future__ import annotations

import typing as typ

import pytest

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


def write_tree(root: Path, files: cabc.Mapping[str, str]) -> None:
    """Write ``files`` below ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Return an empty site root inside the test's temp directory."""
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def write_files(site_root: Path) -> cabc.Callable[[cabc.Mapping[str, str]], Path]:
    """Return a helper writing files below ``site_root``."""

    def _write(files: cabc.Mapping[str, str]) -> Path:
        write_tree(site_root, files)
        return site_root

    return _write
