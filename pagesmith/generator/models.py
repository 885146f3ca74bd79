"""Shared dataclasses used by the page generation pipeline."""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ
from pathlib import Path

from pagesmith._constants import EXTERNAL_FRAGMENT_FOLDER, FRAGMENT_SUFFIX
from pagesmith.fsutil import ensure_posix, is_inside, set_extension


@dc.dataclass(slots=True)
class Page:
    """A single addressable page and the state of its last generation.

    Attributes
    ----------
    src : str
        POSIX path of the source relative to the site root.
    source_path : Path
        Absolute path of the source document.
    result_path : Path
        Absolute path of the rendered HTML output.
    temp_path : Path
        Absolute path of the intermediate markup written during generation.
    title : str
        Title from the site configuration; front matter is used when empty.
    layout : str | None
        Layout name selecting fallback footer and navigation fragments.
    searchable : bool
        Whether the page is listed in ``siteData.json``.
    frontmatter_override : dict[str, Any]
        Front matter keys from the page entry that win over the document's own.
    front_matter : dict[str, Any]
        Front matter recorded by the last generation. Always has ``src`` and
        ``title``.
    headings : dict[str, str]
        Heading id to heading text, for the indexed heading levels.
    dependencies : set[Path]
        Every file that influenced the last successful render, the source
        included.
    """

    src: str
    source_path: Path
    result_path: Path
    temp_path: Path
    title: str = ""
    layout: str | None = None
    searchable: bool = True
    frontmatter_override: dict[str, typ.Any] = dc.field(default_factory=dict)
    front_matter: dict[str, typ.Any] = dc.field(default_factory=dict)
    headings: dict[str, str] = dc.field(default_factory=dict)
    dependencies: set[Path] = dc.field(default_factory=set)

    def reset_dependencies(self) -> None:
        """Forget previously discovered edges, keeping the page's own source."""
        self.dependencies = {self.source_path}


@dc.dataclass(frozen=True, slots=True)
class DynamicInclude:
    """A fragment rendered into its own file and loaded by the browser.

    ``from_path`` is the including file, ``to`` the file whose content is
    used and ``as_if_to`` the location the content is rendered as (they differ
    for boilerplate includes).
    """

    from_path: Path
    to: Path
    as_if_to: Path


@dc.dataclass(frozen=True, slots=True)
class StaticInclude:
    """A file inlined into its includer."""

    to: Path


@dc.dataclass(frozen=True, slots=True)
class BoilerplateInclude:
    """A shared boilerplate file inlined as if it lived elsewhere."""

    to: Path


@dc.dataclass(frozen=True, slots=True)
class MissingInclude:
    """An include whose target did not exist when the page was rendered."""

    reference: Path


IncludeEdge = typ.Union[DynamicInclude, StaticInclude, BoilerplateInclude, MissingInclude]


def edge_dependency(edge: IncludeEdge) -> Path:
    """Return the file an edge makes its page depend on."""
    match edge:
        case DynamicInclude(to=target):
            return target
        case MissingInclude(reference=target):
            return target
        case StaticInclude(to=target) | BoilerplateInclude(to=target):
            return target
    msg = f"Unknown include edge {edge!r}"
    raise TypeError(msg)


@dc.dataclass(slots=True)
class ExpandedMarkup:
    """Markup with every include tag expanded, plus the edges found on the way."""

    markup: str
    edges: list[IncludeEdge] = dc.field(default_factory=list)


@dc.dataclass(frozen=True, slots=True)
class MarkupContext:
    """Location a file is being expanded as.

    ``cwf`` (current working file) anchors relative include paths and picks
    the sub-site whose variables apply.
    """

    cwf: Path


class FragmentRegistry:
    """Write-once set of fragment outputs claimed during one generation batch.

    A fragment is claimed before it is rendered, so a second page reaching the
    same fragment, or a fragment reaching itself, skips it instead of
    rendering it again.

    Examples
    --------
    >>> from pathlib import Path
    >>> registry = FragmentRegistry()
    >>> registry.claim(Path("/out/a._include_.html"))
    True
    >>> registry.claim(Path("/out/a._include_.html"))
    False
    """

    __slots__ = ("_claimed",)

    def __init__(self) -> None:
        self._claimed: set[Path] = set()

    def claim(self, path: Path) -> bool:
        """Mark ``path`` as generated; return False when it was already claimed."""
        if path in self._claimed:
            return False
        self._claimed.add(path)
        return True

    def __contains__(self, path: object) -> bool:
        return path in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)


def fragment_relative_path(
    as_if_to: Path, root_path: Path, *, suffix: str = FRAGMENT_SUFFIX
) -> str:
    """Return the POSIX path of a fragment relative to the output root.

    Targets outside the root keep their whole absolute path below
    ``_external/`` so two external files sharing a name stay distinct.

    >>> from pathlib import Path
    >>> fragment_relative_path(Path("/site/docs/snippet.md"), Path("/site"))
    'docs/snippet._include_.html'
    >>> fragment_relative_path(Path("/elsewhere/shared.md"), Path("/site"))
    '_external/elsewhere/shared._include_.html'
    >>> fragment_relative_path(Path("/site/a.md"), Path("/site"), suffix="._include_.md")
    'a._include_.md'
    """
    if is_inside(as_if_to, root_path):
        relative = ensure_posix(os.path.relpath(as_if_to, root_path))
    else:
        # Drive letters and the root anchor become plain path segments.
        parts = [part.strip("/\\:") for part in as_if_to.parts]
        relative = "/".join([EXTERNAL_FRAGMENT_FOLDER, *filter(None, parts)])
    return set_extension(relative, suffix)


__all__ = [
    "BoilerplateInclude",
    "DynamicInclude",
    "ExpandedMarkup",
    "FragmentRegistry",
    "IncludeEdge",
    "MarkupContext",
    "MissingInclude",
    "Page",
    "StaticInclude",
    "edge_dependency",
    "fragment_relative_path",
]
