"""Generate one page, and the dynamic fragments it reaches, to HTML.

:class:`PageGenerator` runs the per-page pipeline: expand includes, read the
front matter, insert site navigation and footer, resolve base URLs, render
markdown to HTML, fill the page template and write the result. Dynamic
fragments found on the way are rendered through an explicit worklist, using
the batch's :class:`~pagesmith.generator.models.FragmentRegistry` as the
visited set, so a fragment shared by many pages is rendered once per batch
and a fragment that includes itself terminates.

Example
-------
>>> from pagesmith.generator import FragmentRegistry
>>> registry = FragmentRegistry()  # one per batch
>>> await generator.generate(page, registry)  # doctest: +SKIP
"""

from __future__ import annotations

import collections
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from pagesmith._constants import (
    FOOTERS_FOLDER_PATH,
    FRAGMENT_TEMP_SUFFIX,
    LAYOUT_FOLDER_PATH,
    LAYOUT_FOOTER_NAME,
    LAYOUT_NAVIGATION_NAME,
    NAVIGATION_FOLDER_PATH,
    PAGE_TEMPLATE_NAME,
    TITLE_PREFIX_SEPARATOR,
)
from pagesmith.baseurl import calculate_new_base_url, join_base_url
from pagesmith.errors import GenerationError
from pagesmith.fsutil import is_url, output_file
from pagesmith.generator.layout import (
    format_footer,
    format_site_nav,
    wrap_with_site_nav,
)
from pagesmith.generator.markup import FRONT_MATTER_PATTERN, strip_front_matter
from pagesmith.generator.models import (
    DynamicInclude,
    IncludeEdge,
    MarkupContext,
    edge_dependency,
    fragment_relative_path,
)
from pagesmith.generator.renderer import beautify, collect_headings
from pagesmith.logging import get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pagesmith.config import SiteConfig
    from pagesmith.generator.markup import MarkupResolver
    from pagesmith.generator.models import FragmentRegistry, Page
    from pagesmith.variables import VariableRenderer

logger = get_logger("generator")

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


def format_page_title(prefix: str, title: str) -> str:
    """Join the site title prefix and the page title.

    >>> format_page_title("Site", "Intro")
    'Site - Intro'
    >>> format_page_title("", "Intro")
    'Intro'
    """
    if prefix and title:
        return f"{prefix}{TITLE_PREFIX_SEPARATOR}{title}"
    return prefix or title


class PageGenerator:
    """Render pages of one site into the output folder."""

    def __init__(
        self,
        *,
        root_path: Path,
        output_path: Path,
        temp_path: Path,
        site_config: SiteConfig,
        boundaries: cabc.Set[Path],
        resolver: MarkupResolver,
        variables: VariableRenderer,
        favicon_url: str | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the generator with the site's collaborators.

        Parameters
        ----------
        root_path : Path
            Processing root; source paths are mapped relative to it.
        output_path : Path
            Output folder receiving pages and fragments.
        temp_path : Path
            Folder receiving intermediate markup.
        site_config : SiteConfig
            Root site configuration.
        boundaries : Set[Path]
            Sub-site boundaries for base URL resolution.
        resolver : MarkupResolver
            Expands includes and renders markdown.
        variables : VariableRenderer
            Substitutes base-URL tokens.
        favicon_url : str, optional
            Favicon link placed in every page.
        templates_dir : Path, optional
            Directory containing ``page.jinja``; defaults to the package templates.
        """
        self.root_path = root_path
        self.output_path = output_path
        self.temp_path = temp_path
        self.site_config = site_config
        self.boundaries = boundaries
        self.resolver = resolver
        self.variables = variables
        self.favicon_url = favicon_url
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir or DEFAULT_TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.template = self.env.get_template(PAGE_TEMPLATE_NAME)
        self._yaml = YAML(typ="safe")
        self._yaml.version = (1, 2)

    @property
    def host_base_url(self) -> str:
        return self.site_config.base_url

    async def generate(self, page: Page, registry: FragmentRegistry) -> None:
        """Render ``page`` and every dynamic fragment it reaches.

        Parameters
        ----------
        page : Page
            Page to render; its front matter, headings and dependencies are
            overwritten.
        registry : FragmentRegistry
            Fragments already claimed in the current batch.

        Raises
        ------
        GenerationError
            If the page or one of its fragments cannot be generated.
        """
        logger.debug("Generating %s", page.src)
        page.reset_dependencies()
        context = MarkupContext(cwf=page.source_path)
        expanded = await self.resolver.include_file(page.source_path, context)
        edges: list[IncludeEdge] = list(expanded.edges)

        content = self._collect_front_matter(page, expanded.markup)
        content = await self._insert_site_nav(page, content, edges)
        content = await self._insert_footer(page, content, edges)
        content = self.resolver.resolve_base_url(content, context)
        base_url = self._base_url_for(page.source_path)
        content = self.variables.substitute_base_url(
            content, base_url, self.host_base_url
        )

        await self._write(page.temp_path, content)
        html = await self.resolver.render_file(page.temp_path)
        html = format_footer(html)
        page.headings = collect_headings(html, self.site_config.heading_indexing_level)
        if not self.site_config.disable_html_beautify:
            html = beautify(html)
        document = self.template.render(
            title=format_page_title(self.site_config.title_prefix, page.title),
            content=html,
            base_url=base_url,
            favicon_url=self.favicon_url,
            pygments_css=self.resolver.renderer.stylesheet,
            src=page.src,
        )
        await self._write(page.result_path, document)

        edges.extend(await self.resolve_dynamic_includes(edges, registry))
        page.dependencies.update(edge_dependency(edge) for edge in edges)

    async def resolve_dynamic_includes(
        self, edges: cabc.Iterable[IncludeEdge], registry: FragmentRegistry
    ) -> list[IncludeEdge]:
        """Render the fragments reachable through dynamic edges.

        Fragments already claimed in ``registry`` are skipped without waiting
        for whoever claimed them.

        Returns
        -------
        list[IncludeEdge]
            Every edge found inside the fragments rendered by this call.
        """
        discovered: list[IncludeEdge] = []
        pending = collections.deque(_dynamic_edges(edges))
        while pending:
            edge = pending.popleft()
            result_path = self.output_path / fragment_relative_path(
                edge.as_if_to, self.root_path
            )
            if not registry.claim(result_path):
                continue
            fragment_edges = await self._render_fragment(edge, result_path)
            discovered.extend(fragment_edges)
            pending.extend(_dynamic_edges(fragment_edges))
        return discovered

    async def _render_fragment(
        self, edge: DynamicInclude, result_path: Path
    ) -> list[IncludeEdge]:
        logger.debug("Rendering fragment %s to %s", edge.to, result_path)
        context = MarkupContext(cwf=edge.as_if_to)
        expanded = await self.resolver.include_file(edge.to, context)
        content = strip_front_matter(expanded.markup)
        content = self.resolver.resolve_base_url(content, context)
        temp_path = self._fragment_temp_path(edge.as_if_to)
        await self._write(temp_path, content)
        html = await self.resolver.render_file(temp_path)
        html = self.variables.substitute_base_url(
            html, self._base_url_for(edge.as_if_to), self.host_base_url
        )
        if not self.site_config.disable_html_beautify:
            html = beautify(html)
        await self._write(result_path, html)
        return expanded.edges

    def _fragment_temp_path(self, as_if_to: Path) -> Path:
        """Return the intermediate markup path of a fragment.

        The suffix keeps it apart from the temp file of a page whose source is
        the same ``as_if_to``, since both may be rendered in one batch.
        """
        return self.temp_path / fragment_relative_path(
            as_if_to, self.root_path, suffix=FRAGMENT_TEMP_SUFFIX
        )

    def _base_url_for(self, file_path: Path) -> str:
        new_base_url = calculate_new_base_url(
            file_path, self.root_path, self.boundaries
        )
        return join_base_url(self.host_base_url, new_base_url)

    def _collect_front_matter(self, page: Page, markup: str) -> str:
        """Record the page's front matter and return the markup without it."""
        match = FRONT_MATTER_PATTERN.search(markup)
        front_matter: dict[str, typ.Any] = {}
        if match is not None:
            try:
                loaded = self._yaml.load(match.group("body")) or {}
            except YAMLError as exc:
                msg = f"Invalid front matter in '{page.source_path}': {exc}"
                raise GenerationError(msg, path=page.source_path) from exc
            if not isinstance(loaded, dict):
                msg = f"Front matter in '{page.source_path}' must be a mapping."
                raise GenerationError(msg, path=page.source_path)
            front_matter.update(loaded)
        front_matter.update(page.frontmatter_override)
        front_matter["src"] = page.src
        front_matter["title"] = page.title or str(front_matter.get("title") or "")
        page.front_matter = front_matter
        page.title = front_matter["title"]
        return strip_front_matter(markup)

    def _layout_reference(
        self, page: Page, key: str, folder: str, layout_name: str
    ) -> Path | None:
        """Return the fragment named in front matter, else the layout's default."""
        named = page.front_matter.get(key)
        if named:
            return self.root_path / folder / str(named)
        layout = page.front_matter.get("layout") or page.layout
        if not layout:
            return None
        candidate = self.root_path / LAYOUT_FOLDER_PATH / str(layout) / layout_name
        # Creating the layout file later must rebuild the page.
        page.dependencies.add(candidate)
        return candidate if candidate.is_file() else None

    async def _render_layout_fragment(
        self, path: Path, page: Page, edges: list[IncludeEdge]
    ) -> str:
        if not path.is_file():
            msg = f"Layout fragment '{path}' used by '{page.src}' does not exist."
            raise GenerationError(msg, path=path)
        page.dependencies.add(path)
        expanded = await self.resolver.include_file(path, MarkupContext(cwf=path))
        edges.extend(expanded.edges)
        markup = strip_front_matter(expanded.markup)
        return self.resolver.renderer.markdown(markup)

    async def _insert_site_nav(
        self, page: Page, content: str, edges: list[IncludeEdge]
    ) -> str:
        nav_path = self._layout_reference(
            page, "site_nav", NAVIGATION_FOLDER_PATH, LAYOUT_NAVIGATION_NAME
        )
        if nav_path is None:
            return content
        nav_html = await self._render_layout_fragment(nav_path, page, edges)
        return wrap_with_site_nav(content, format_site_nav(nav_html))

    async def _insert_footer(
        self, page: Page, content: str, edges: list[IncludeEdge]
    ) -> str:
        footer_path = self._layout_reference(
            page, "footer", FOOTERS_FOLDER_PATH, LAYOUT_FOOTER_NAME
        )
        if footer_path is None:
            return content
        footer_html = await self._render_layout_fragment(footer_path, page, edges)
        return f"{content}\n\n{footer_html}\n"

    async def _write(self, path: Path, text: str) -> None:
        try:
            await output_file(path, text)
        except OSError as exc:
            msg = f"Could not write '{path}': {exc}"
            raise GenerationError(msg, path=path) from exc


def _dynamic_edges(edges: cabc.Iterable[IncludeEdge]) -> list[DynamicInclude]:
    return [
        edge
        for edge in edges
        if isinstance(edge, DynamicInclude) and not is_url(str(edge.to))
    ]


__all__ = ["DEFAULT_TEMPLATES_DIR", "PageGenerator", "format_page_title"]
