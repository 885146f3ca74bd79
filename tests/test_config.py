"""Tests for loading ``site.yaml`` and selecting addressable pages."""

from __future__ import annotations

import typing as typ

import pytest

from pagesmith.addressable import collect_addressable_pages, removed_sources
from pagesmith.config import PageEntry, SiteConfig, SiteConfigError, load_site_config

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write_config(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "site.yaml"
    path.write_text(body, encoding="utf-8")
    return path


def test_load_site_config_applies_defaults(tmp_path: Path) -> None:
    config = load_site_config(_write_config(tmp_path, "pages:\n  - src: index.md\n"))

    assert config.base_url == ""
    assert config.heading_indexing_level == 3
    assert config.enable_search is True
    assert config.disable_html_beautify is False
    assert config.pages == [PageEntry(src=["index.md"])]


def test_load_site_config_reads_every_field(tmp_path: Path) -> None:
    body = """
base_url: /docs/
title_prefix: Manual
heading_indexing_level: 2
enable_search: false
disable_html_beautify: true
favicon_path: icon.png
time_zone: Europe/London
pages_exclude: ["drafts/*"]
pages:
  - src: [a.md, b.md]
    title: Pair
  - glob: "**/*.md"
    glob_exclude: "_*"
    layout: default
    searchable: no
    frontmatter:
      footer: footer.md
"""
    config = load_site_config(_write_config(tmp_path, body))

    assert config.base_url == "/docs"
    assert config.title_prefix == "Manual"
    assert config.heading_indexing_level == 2
    assert config.enable_search is False
    assert config.disable_html_beautify is True
    assert config.favicon_path == "icon.png"
    assert config.time_zone == "Europe/London"
    assert config.pages_exclude == ["drafts/*"]
    first, second = config.pages
    assert first.src == ["a.md", "b.md"]
    assert first.title == "Pair"
    assert second.glob == ["**/*.md"]
    assert second.glob_exclude == ["_*"]
    assert second.searchable is False
    assert second.frontmatter == {"footer": "footer.md"}


def test_load_site_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SiteConfigError, match="not found"):
        load_site_config(tmp_path / "site.yaml")


def test_load_site_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(SiteConfigError, match="not valid YAML"):
        load_site_config(_write_config(tmp_path, "pages: [\n"))


@pytest.mark.parametrize(
    ("body", "field"),
    [
        ("pages:\n  - title: Orphan\n", "needs a 'src' or a 'glob'"),
        ("pages: index.md\n", "'pages' must be a list"),
        ("heading_indexing_level: 9\npages: []\n", "heading_indexing_level"),
        ("enable_search: maybe\npages: []\n", "enable_search"),
    ],
)
def test_load_site_config_rejects_invalid_fields(
    tmp_path: Path, body: str, field: str
) -> None:
    with pytest.raises(SiteConfigError, match=field):
        load_site_config(_write_config(tmp_path, body))


def test_duplicate_src_entries_are_rejected(tmp_path: Path) -> None:
    config = SiteConfig(
        pages=[PageEntry(src=["index.md"]), PageEntry(src=["./index.md"])]
    )
    with pytest.raises(SiteConfigError, match="Duplicate page entry for 'index.md'"):
        collect_addressable_pages(config, tmp_path)


def test_glob_and_src_entries_merge(tmp_path: Path) -> None:
    for name in ("index.md", "guide.md", "drafts/wip.md", "_pagesmith/nav.md"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("# Page\n", encoding="utf-8")
    config = SiteConfig(
        pages=[
            PageEntry(src=["index.md"], title="Home"),
            PageEntry(glob=["**/*.md"], layout="docs", searchable=False),
            PageEntry(glob=["guide.md"], layout="guide"),
        ],
        pages_exclude=["drafts/*"],
    )

    pages = {page.src: page for page in collect_addressable_pages(config, tmp_path)}

    assert set(pages) == {"index.md", "guide.md"}, f"unexpected pages {sorted(pages)}"
    assert pages["index.md"].title == "Home"
    assert pages["index.md"].layout == "docs", "unset src fields must not override"
    assert pages["guide.md"].layout == "guide", "later glob entries win"
    assert pages["guide.md"].searchable is False


def test_removed_sources_lists_vanished_pages(tmp_path: Path) -> None:
    (tmp_path / "a.md").write_text("a", encoding="utf-8")
    (tmp_path / "b.md").write_text("b", encoding="utf-8")
    config = SiteConfig(pages=[PageEntry(glob=["*.md"])])
    before = collect_addressable_pages(config, tmp_path)
    (tmp_path / "b.md").unlink()
    after = collect_addressable_pages(config, tmp_path)

    assert removed_sources(before, after) == ["b.md"]
