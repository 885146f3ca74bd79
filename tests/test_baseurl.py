"""Unit tests for sub-site base URL resolution.

The resolver walks from a file towards the site root and reports the nearest
enclosing sub-site. These tests pin the documented cases for a root ``/r``
with sub-sites ``/r/sub`` and ``/r/sub/inner``, plus the boundary collection
that feeds it.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from pagesmith.baseurl import (
    calculate_new_base_url,
    collect_boundaries,
    join_base_url,
    site_root_for,
)

ROOT = Path("/r")
BOUNDARIES = frozenset({ROOT, ROOT / "sub", ROOT / "sub" / "inner"})


@pytest.mark.parametrize(
    ("file_path", "expected"),
    [
        (ROOT / "sub" / "docs" / "page.md", "sub"),
        (ROOT / "page2.md", None),
        (ROOT / "sub" / "inner" / "deep" / "page.md", "sub/inner"),
        (ROOT / "sub" / "page.md", "sub"),
        (Path("/elsewhere/page.md"), None),
    ],
)
def test_calculate_new_base_url(file_path: Path, expected: str | None) -> None:
    result = calculate_new_base_url(file_path, ROOT, BOUNDARIES)
    assert result == expected, (
        f"expected {expected!r} for {file_path}, got {result!r}"
    )


def test_site_root_for_falls_back_to_root() -> None:
    assert site_root_for(ROOT / "page.md", ROOT, BOUNDARIES) == ROOT
    assert site_root_for(ROOT / "sub" / "a.md", ROOT, BOUNDARIES) == ROOT / "sub"


def test_join_base_url() -> None:
    assert join_base_url("/docs", None) == "/docs"
    assert join_base_url("/docs", "sub/inner") == "/docs/sub/inner"
    assert join_base_url("", "sub") == "/sub"


def test_collect_boundaries_skips_excluded_folders(tmp_path: Path) -> None:
    root = tmp_path / "site"
    for folder in ("sub", "sub/inner", "_site/copy", "plain"):
        (root / folder).mkdir(parents=True)
    for folder in ("sub", "sub/inner", "_site/copy"):
        (root / folder / "site.yaml").write_text("pages: []\n", encoding="utf-8")

    boundaries = collect_boundaries(root, "site.yaml", excluded=[root / "_site"])

    assert boundaries == {root, root / "sub", root / "sub" / "inner"}, (
        f"unexpected boundaries {sorted(boundaries)}"
    )
