"""Typed dataclasses describing pagesmith site configuration structures."""

from __future__ import annotations

import dataclasses as dc
import typing as typ


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class PageEntry:
    """One entry of the ``pages`` list in ``site.yaml``.

    An entry selects sources either explicitly (``src``) or by pattern
    (``glob``); the remaining fields are overrides applied to every page the
    entry selects. ``None`` means "not specified" and never overrides a value
    supplied by another entry.
    """

    src: list[str] = dc.field(default_factory=list)
    glob: list[str] = dc.field(default_factory=list)
    glob_exclude: list[str] = dc.field(default_factory=list)
    title: str | None = None
    layout: str | None = None
    searchable: bool | None = None
    frontmatter: dict[str, typ.Any] | None = None


@dc.dataclass(slots=True)
class SiteConfig:
    """A fully resolved ``site.yaml``."""

    base_url: str = ""
    title_prefix: str = ""
    heading_indexing_level: int = 3
    enable_search: bool = True
    disable_html_beautify: bool = False
    favicon_path: str | None = None
    time_zone: str | None = None
    pages: list[PageEntry] = dc.field(default_factory=list)
    pages_exclude: list[str] = dc.field(default_factory=list)


__all__ = ["PageEntry", "SiteConfig", "SiteConfigError"]
