"""Select the source files of a site that become pages.

A page is selected by an explicit ``src`` entry or by a ``glob`` entry of
``site.yaml``. When several entries select the same source their fields are
merged: glob entries apply in order, explicit entries apply last, and fields an
entry leaves unset never override another entry's value.

Example
-------
>>> from pagesmith.config import PageEntry, SiteConfig
>>> config = SiteConfig(pages=[PageEntry(src=["index.md"], title="Home")])
>>> [page.src for page in collect_addressable_pages(config, Path("/site"))]
['index.md']
"""

from __future__ import annotations

import dataclasses as dc
import fnmatch
import os
import typing as typ
from pathlib import Path, PurePosixPath

from pagesmith._constants import CONFIG_FOLDER_NAME, SITE_FOLDER_NAME
from pagesmith.config import SiteConfigError
from pagesmith.fsutil import ensure_posix, is_inside, normalize_path

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pagesmith.config import PageEntry, SiteConfig

_MERGED_FIELDS = ("title", "layout", "searchable", "frontmatter")


@dc.dataclass(slots=True)
class AddressablePage:
    """A selected source and the overrides collected for it."""

    src: str
    title: str | None = None
    layout: str | None = None
    searchable: bool | None = None
    frontmatter: dict[str, typ.Any] | None = None

    def merge(self, entry: PageEntry) -> None:
        """Apply the fields ``entry`` sets on top of the current values."""
        for field in _MERGED_FIELDS:
            value = getattr(entry, field)
            if value is not None:
                setattr(self, field, value)


def _normalize_src(src: str) -> str:
    return str(PurePosixPath(ensure_posix(src).lstrip("/")))


def _is_excluded(relative: str, patterns: cabc.Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(relative, pattern) for pattern in patterns)


def glob_sources(
    entry: PageEntry,
    root: Path,
    *,
    pages_exclude: cabc.Sequence[str],
    reserved: cabc.Sequence[Path],
) -> list[str]:
    """Return the POSIX sources matched by the glob patterns of ``entry``."""
    excludes = [*entry.glob_exclude, *pages_exclude]
    matched: dict[str, None] = {}
    for pattern in entry.glob:
        for candidate in sorted(root.glob(pattern)):
            path = normalize_path(candidate)
            if not path.is_file():
                continue
            if any(is_inside(path, folder) for folder in reserved):
                continue
            relative = ensure_posix(os.path.relpath(path, root))
            if _is_excluded(relative, excludes):
                continue
            matched[relative] = None
    return list(matched)


def collect_addressable_pages(
    config: SiteConfig, root_path: Path, *, output_path: Path | None = None
) -> list[AddressablePage]:
    """Return the pages selected by ``config``, in first-selection order.

    Parameters
    ----------
    config : SiteConfig
        Root site configuration.
    root_path : Path
        Processing root that ``src`` and ``glob`` values are relative to.
    output_path : Path, optional
        Output folder, never searched for pages. Defaults to ``_site``.

    Raises
    ------
    SiteConfigError
        If the same source is listed by more than one explicit ``src`` entry.
    """
    root = normalize_path(root_path)
    reserved = [
        root / CONFIG_FOLDER_NAME,
        normalize_path(output_path or root / SITE_FOLDER_NAME),
    ]

    explicit: list[tuple[str, PageEntry]] = []
    seen: set[str] = set()
    for entry in config.pages:
        for src in entry.src:
            normalized = _normalize_src(src)
            if normalized in seen:
                msg = f"Duplicate page entry for '{normalized}' in site configuration."
                raise SiteConfigError(msg)
            seen.add(normalized)
            explicit.append((normalized, entry))

    pages: dict[str, AddressablePage] = {}
    for entry in config.pages:
        if not entry.glob:
            continue
        for src in glob_sources(
            entry, root, pages_exclude=config.pages_exclude, reserved=reserved
        ):
            pages.setdefault(src, AddressablePage(src=src)).merge(entry)
    for src, entry in explicit:
        pages.setdefault(src, AddressablePage(src=src)).merge(entry)
    return list(pages.values())


def removed_sources(
    old_pages: cabc.Iterable[AddressablePage], new_pages: cabc.Iterable[AddressablePage]
) -> list[str]:
    """Return sources present in ``old_pages`` but not in ``new_pages``."""
    remaining = {page.src for page in new_pages}
    return [page.src for page in old_pages if page.src not in remaining]


__all__ = [
    "AddressablePage",
    "collect_addressable_pages",
    "glob_sources",
    "removed_sources",
]
