"""Expand include tags and render markup files.

Source documents are markdown that may embed ``<include>`` tags::

    <include src="snippets/intro.md" />
    <include src="note.md" boilerplate />
    <include src="{{ baseUrl }}/changelog.md" dynamic />

Static and boilerplate includes are inlined. A dynamic include is replaced by
a placeholder ``<div data-include-src="...">`` pointing at a separately
rendered fragment, and reported as a :class:`DynamicInclude` edge so the page
generator can render the fragment once per batch.

Content inlined from a different sub-site than its includer is wrapped in
base-URL markers. :meth:`MarkupResolver.resolve_base_url` rewrites the
``{{ baseUrl }}`` tokens inside each marked region to the base of the sub-site
the content came from, innermost region first.
"""

from __future__ import annotations

import os
import re
import typing as typ
from html import escape

from pagesmith._constants import BOILERPLATE_FOLDER_PATH
from pagesmith.baseurl import calculate_new_base_url, site_root_for
from pagesmith.errors import GenerationError, MissingIncludeError
from pagesmith.fsutil import is_url, normalize_path, read_file
from pagesmith.generator.models import (
    BoilerplateInclude,
    DynamicInclude,
    ExpandedMarkup,
    IncludeEdge,
    MarkupContext,
    MissingInclude,
    StaticInclude,
    fragment_relative_path,
)
from pagesmith.logging import get_logger
from pagesmith.variables import BASE_URL_PATTERN, HOST_BASE_URL_TOKEN

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from pagesmith.generator.renderer import HtmlContentRenderer
    from pagesmith.variables import VariableRenderer

logger = get_logger("markup")

INCLUDE_PATTERN = re.compile(
    r"<include\b(?P<attrs>[^>]*?)/?>(?:\s*</include>)?", re.IGNORECASE
)
ATTRIBUTE_PATTERN = re.compile(
    r"""(?P<name>[\w:-]+)(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"'>]+)))?"""
)
FRONT_MATTER_PATTERN = re.compile(
    r"<frontmatter>(?P<body>.*?)</frontmatter>", re.DOTALL | re.IGNORECASE
)
BASE_URL_MARKER_PATTERN = re.compile(
    r"<!--pagesmith:base (?P<rel>[^>]*?)-->"
    r"(?P<body>(?:(?!<!--pagesmith:base ).)*?)"
    r"<!--/pagesmith:base-->",
    re.DOTALL,
)
LEADING_BASE_URL_PATTERN = re.compile(r"^\{\{\s*baseUrl\s*\}\}/?")


def parse_attributes(raw: str) -> dict[str, str]:
    """Parse tag attributes; valueless attributes map to an empty string.

    >>> parse_attributes(' src="a.md" dynamic')
    {'src': 'a.md', 'dynamic': ''}
    """
    attributes: dict[str, str] = {}
    for match in ATTRIBUTE_PATTERN.finditer(raw):
        value = match.group("dq")
        if value is None:
            value = match.group("sq")
        if value is None:
            value = match.group("bare") or ""
        attributes[match.group("name").lower()] = value
    return attributes


def strip_front_matter(markup: str) -> str:
    """Remove every ``<frontmatter>`` block from ``markup``."""
    return FRONT_MATTER_PATTERN.sub("", markup)


def _marker_label(new_base_url: str | None) -> str:
    return new_base_url or ""


def wrap_base_url_marker(markup: str, new_base_url: str | None) -> str:
    """Mark ``markup`` as belonging to the sub-site at ``new_base_url``."""
    label = _marker_label(new_base_url)
    return f"<!--pagesmith:base {label}-->{markup}<!--/pagesmith:base-->"


class MarkupResolver:
    """Expand includes, render markdown and resolve cross-site base URLs.

    Parameters
    ----------
    root_path : Path
        Processing root of the site.
    boundaries : Set[Path]
        Sub-site boundaries used to tell which site a file belongs to.
    variables : VariableRenderer
        Renders user variables into every expanded file.
    renderer : HtmlContentRenderer
        Converts markdown to HTML.
    """

    def __init__(
        self,
        root_path: Path,
        boundaries: cabc.Set[Path],
        variables: VariableRenderer,
        renderer: HtmlContentRenderer,
    ) -> None:
        self.root_path = normalize_path(root_path)
        self.boundaries = boundaries
        self.variables = variables
        self.renderer = renderer

    async def include_file(
        self, path: Path, context: MarkupContext
    ) -> ExpandedMarkup:
        """Return the content of ``path`` with every include tag expanded.

        Parameters
        ----------
        path : Path
            File whose content is read.
        context : MarkupContext
            Location the content is expanded as. Differs from ``path`` for
            boilerplate content and dynamic fragments.

        Returns
        -------
        ExpandedMarkup
            The expanded markup and every include edge met on the way.

        Raises
        ------
        GenerationError
            If a file cannot be read, its variables cannot be rendered, or a
            static include reaches itself.
        """
        edges: list[IncludeEdge] = []
        source = normalize_path(path)
        markup = await self._expand_file(
            source, normalize_path(context.cwf), (source,), edges
        )
        return ExpandedMarkup(markup=markup, edges=edges)

    async def render_file(self, path: Path) -> str:
        """Render the markdown file at ``path`` to HTML."""
        try:
            text = await read_file(path)
        except OSError as exc:
            msg = f"Could not read '{path}': {exc}"
            raise GenerationError(msg, path=path) from exc
        return self.renderer.markdown(text)

    def resolve_base_url(self, markup: str, context: MarkupContext) -> str:
        """Rewrite ``{{ baseUrl }}`` inside base-URL markers and drop the markers.

        Each marked region names the sub-site its content came from. Its
        tokens become ``{{ hostBaseUrl }}/<sub-site>``, or plain
        ``{{ hostBaseUrl }}`` for the root site, so later substitution for the
        host page leaves them pointing at the right site. A region belonging to
        the same site as ``context.cwf`` is only unwrapped.
        """
        host_label = _marker_label(self._new_base_url(context.cwf))

        def _replace(match: re.Match[str]) -> str:
            label = match.group("rel")
            body = match.group("body")
            if label == host_label:
                return body
            target = f"{HOST_BASE_URL_TOKEN}/{label}" if label else HOST_BASE_URL_TOKEN
            return BASE_URL_PATTERN.sub(lambda _match: target, body)

        resolved = markup
        while True:
            resolved, count = BASE_URL_MARKER_PATTERN.subn(_replace, resolved)
            if not count:
                return resolved

    def fragment_url(self, as_if_to: Path) -> str:
        """Return the placeholder URL of the fragment rendered as ``as_if_to``."""
        relative = fragment_relative_path(as_if_to, self.root_path)
        return f"{HOST_BASE_URL_TOKEN}/{relative}"

    def _new_base_url(self, file_path: Path) -> str | None:
        return calculate_new_base_url(file_path, self.root_path, self.boundaries)

    async def _expand_file(
        self,
        source: Path,
        cwf: Path,
        stack: tuple[Path, ...],
        edges: list[IncludeEdge],
    ) -> str:
        try:
            raw = await read_file(source)
        except OSError as exc:
            msg = f"Could not read '{source}': {exc}"
            raise GenerationError(msg, path=source) from exc
        rendered = self.variables.render_for_file(raw, cwf)
        return await self._expand_includes(rendered, cwf, stack, edges)

    async def _expand_includes(
        self,
        text: str,
        cwf: Path,
        stack: tuple[Path, ...],
        edges: list[IncludeEdge],
    ) -> str:
        pieces: list[str] = []
        cursor = 0
        for match in INCLUDE_PATTERN.finditer(text):
            pieces.append(text[cursor : match.start()])
            attributes = parse_attributes(match.group("attrs"))
            pieces.append(await self._expand_tag(attributes, cwf, stack, edges))
            cursor = match.end()
        pieces.append(text[cursor:])
        return "".join(pieces)

    def _resolve_reference(self, src: str, cwf: Path) -> Path:
        """Resolve an include ``src`` against the current working file."""
        stripped = LEADING_BASE_URL_PATTERN.sub("", src)
        if stripped != src:
            site_root = site_root_for(cwf, self.root_path, self.boundaries)
            return normalize_path(site_root / stripped)
        return normalize_path(cwf.parent / src)

    async def _expand_tag(
        self,
        attributes: dict[str, str],
        cwf: Path,
        stack: tuple[Path, ...],
        edges: list[IncludeEdge],
    ) -> str:
        src = attributes.get("src", "").strip()
        if not src:
            msg = f"Include tag without a 'src' attribute in '{cwf}'"
            raise GenerationError(msg, path=cwf)
        is_dynamic = "dynamic" in attributes
        if is_url(src):
            # Remote content is left for the browser to load.
            return f'<div data-include-src="{escape(src, quote=True)}"></div>'

        as_if_to = self._resolve_reference(src, cwf)
        actual = as_if_to
        if "boilerplate" in attributes:
            name = attributes["boilerplate"] or os.path.basename(src)
            actual = self.root_path / BOILERPLATE_FOLDER_PATH / name

        if not actual.is_file():
            edges.append(MissingInclude(reference=actual))
            error = MissingIncludeError(actual, included_from=cwf)
            logger.warning("%s", error)
            return f'<div class="include-error">{escape(str(error))}</div>'

        if is_dynamic:
            edges.append(DynamicInclude(from_path=cwf, to=actual, as_if_to=as_if_to))
            url = self.fragment_url(as_if_to)
            return f'<div data-include-src="{url}"></div>'

        if actual != as_if_to:
            edges.append(BoilerplateInclude(to=actual))
        else:
            edges.append(StaticInclude(to=actual))
        if actual in stack:
            chain = " -> ".join(str(path) for path in (*stack, actual))
            msg = f"Cyclic include detected: {chain}"
            raise GenerationError(msg, path=stack[0])

        expanded = await self._expand_file(actual, as_if_to, (*stack, actual), edges)
        expanded = strip_front_matter(expanded)
        included_site = self._new_base_url(as_if_to)
        if included_site != self._new_base_url(cwf):
            return wrap_base_url_marker(expanded, included_site)
        return expanded


__all__ = [
    "FRONT_MATTER_PATTERN",
    "INCLUDE_PATTERN",
    "MarkupResolver",
    "parse_attributes",
    "strip_front_matter",
    "wrap_base_url_marker",
]
