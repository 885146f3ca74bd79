r"""Resolve the nearest enclosing sub-site of a file.

A site may host independent sub-sites: any directory below the root that
carries its own ``site.yaml``. Links written as ``{{ baseUrl }}/...`` inside a
file must point at the base of the sub-site that owns the file, so every
render first asks :func:`calculate_new_base_url` which boundary encloses it.

Example
-------
>>> from pathlib import Path
>>> root = Path("/work/site")
>>> boundaries = frozenset({root, root / "sub"})
>>> calculate_new_base_url(root / "sub" / "docs" / "page.md", root, boundaries)
'sub'
>>> calculate_new_base_url(root / "page2.md", root, boundaries) is None
True
"""

from __future__ import annotations

import os
import typing as typ

from .fsutil import ensure_posix, is_inside, normalize_path

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


def calculate_new_base_url(
    file_path: Path, root_path: Path, boundaries: cabc.Set[Path]
) -> str | None:
    """Return the root-relative path of the sub-site that owns ``file_path``.

    The walk climbs from ``file_path`` towards ``root_path``. The first
    boundary directory met becomes the candidate, and it is only returned once
    a second boundary (possibly the root itself) confirms it. A file directly
    under the root site, or outside it, yields ``None``.

    Parameters
    ----------
    file_path : Path
        Absolute path of the file being rendered.
    root_path : Path
        Absolute processing root; always a member of ``boundaries``.
    boundaries : Set[Path]
        Absolute directories known to host a site configuration.

    Returns
    -------
    str | None
        POSIX path of the nearest boundary relative to ``root_path``, or
        ``None`` when no boundary other than the root lies on the path.
    """
    root = normalize_path(root_path)
    current = normalize_path(file_path)
    candidate: Path | None = None
    while current != root and is_inside(current, root):
        parent = current.parent
        if parent in boundaries:
            if candidate is not None:
                return ensure_posix(os.path.relpath(candidate, root))
            candidate = parent
        current = parent
    return None


def collect_boundaries(
    root_path: Path,
    config_name: str,
    *,
    excluded: cabc.Iterable[Path] = (),
) -> frozenset[Path]:
    """Return every directory under ``root_path`` holding ``config_name``.

    ``root_path`` is always included so the resolver's confirmation step can
    terminate at the root. Directories in ``excluded`` (the output and temp
    folders) are not searched.
    """
    root = normalize_path(root_path)
    skipped = {normalize_path(path) for path in excluded}
    found = {root}
    for dirpath, dirnames, filenames in os.walk(root):
        current = normalize_path(dirpath)
        dirnames[:] = [
            name for name in dirnames if normalize_path(current / name) not in skipped
        ]
        if config_name in filenames:
            found.add(current)
    return frozenset(found)


def site_root_for(
    file_path: Path, root_path: Path, boundaries: cabc.Set[Path]
) -> Path:
    """Return the directory of the (sub)site whose variables apply to ``file_path``."""
    root = normalize_path(root_path)
    new_base_url = calculate_new_base_url(file_path, root, boundaries)
    return root / new_base_url if new_base_url else root


def join_base_url(host_base_url: str, new_base_url: str | None) -> str:
    """Append a sub-site path to the host base URL."""
    if not new_base_url:
        return host_base_url
    return f"{host_base_url}/{new_base_url}"


__all__ = [
    "calculate_new_base_url",
    "collect_boundaries",
    "join_base_url",
    "site_root_for",
]
