"""Site model: page selection, dependency tracking and rebuild invalidation.

:class:`Site` owns everything that outlives a single batch: the site
configuration, the addressable pages, the sub-site boundaries, the user
variables and, in lazy mode, the set of pages waiting to be rebuilt. It decides
which pages a change affects and hands them to the
:class:`~pagesmith.scheduler.PageScheduler`.

Two modes are supported:

* full mode (the default) regenerates every affected page straight away;
* lazy mode (``one_page`` set) builds the landing page only, rebuilds the
  page currently viewed when it is affected, and marks every other affected
  page as pending until it is viewed through :meth:`Site.change_current_page`.

Example
-------
>>> import asyncio
>>> from pathlib import Path
>>> site = Site(Path("docs"))  # doctest: +SKIP
>>> asyncio.run(site.generate())  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import json
import os
import posixpath
import shutil
import time
import typing as typ

from pagesmith._constants import (
    BUILD_TIME_HINT_LIMIT,
    CONFIG_FOLDER_NAME,
    DEBOUNCE_DELAY,
    FAVICON_DEFAULT_PATH,
    MAX_CONCURRENT_PAGE_GENERATION,
    REBUILD_TIME_HINT_LIMIT,
    SITE_CONFIG_NAME,
    SITE_DATA_NAME,
    SITE_FOLDER_NAME,
    TEMP_FOLDER_NAME,
    USER_VARIABLES_PATH,
)
from pagesmith.addressable import (
    AddressablePage,
    collect_addressable_pages,
    glob_sources,
    removed_sources,
)
from pagesmith.baseurl import collect_boundaries
from pagesmith.config import SiteConfig, SiteConfigError, load_site_config
from pagesmith.debounce import Debouncer
from pagesmith.fsutil import (
    ensure_posix,
    is_inside,
    normalize_path,
    output_file,
    remove_extension,
    set_extension,
)
from pagesmith.generator import (
    HtmlContentRenderer,
    MarkupResolver,
    Page,
    PageGenerator,
)
from pagesmith.logging import get_logger
from pagesmith.scheduler import PageScheduler
from pagesmith.variables import VariableRenderer

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = get_logger("site")


class Site:
    """A site rooted at ``root_path`` and its incremental build state.

    Parameters
    ----------
    root_path : Path
        Directory holding ``site.yaml``.
    output_path : Path, optional
        Output folder; defaults to ``<root>/_site``.
    one_page : str, optional
        Source of the landing page. Enables lazy mode.
    force_reload : bool, optional
        Rebuild every page on any change.
    base_url : str, optional
        Overrides the ``base_url`` of ``site.yaml``.
    concurrency : int, optional
        Maximum number of pages generated at once.
    debounce_delay : float, optional
        Quiet period before coalesced rebuilds run.
    templates_dir : Path, optional
        Directory holding the page template.
    """

    def __init__(
        self,
        root_path: Path,
        output_path: Path | None = None,
        *,
        one_page: str | None = None,
        force_reload: bool = False,
        base_url: str | None = None,
        concurrency: int = MAX_CONCURRENT_PAGE_GENERATION,
        debounce_delay: float = DEBOUNCE_DELAY,
        templates_dir: Path | None = None,
    ) -> None:
        self.root_path = normalize_path(root_path)
        self.output_path = normalize_path(
            output_path or self.root_path / SITE_FOLDER_NAME
        )
        if is_inside(self.root_path, self.output_path):
            msg = f"Output folder '{self.output_path}' must not contain the site root."
            raise SiteConfigError(msg)
        self.temp_path = self.root_path / TEMP_FOLDER_NAME
        self.one_page = ensure_posix(one_page) if one_page else None
        self.force_reload = force_reload
        self.base_url_override = base_url
        self.templates_dir = templates_dir

        self.site_config: SiteConfig | None = None
        self.addressable_pages: list[AddressablePage] = []
        self.pages: list[Page] = []
        self.boundaries: frozenset[Path] = frozenset({self.root_path})
        self.variables = VariableRenderer(self.root_path, self.boundaries)
        self.renderer = HtmlContentRenderer()
        self.scheduler = PageScheduler(concurrency)

        self.current_page_viewed: Path | None = (
            remove_extension(normalize_path(self.root_path / self.one_page))
            if self.one_page
            else None
        )
        self.to_rebuild: set[Path] = set()

        self.rebuild_affected_source_files: Debouncer[Path, list[Page]] = Debouncer(
            self._rebuild_affected_source_files, delay=debounce_delay
        )
        self.rebuild_page_being_viewed: Debouncer[Path, list[Page]] = Debouncer(
            self._rebuild_pages_being_viewed, delay=debounce_delay
        )
        self.rebuild_source_files: Debouncer[Path, None] = Debouncer(
            self._rebuild_source_files, delay=debounce_delay
        )

    @property
    def is_lazy(self) -> bool:
        """Return True when only viewed pages are rebuilt eagerly."""
        return self.one_page is not None

    @property
    def config(self) -> SiteConfig:
        """Return the loaded site configuration.

        Raises
        ------
        SiteConfigError
            If :meth:`read_site_config` has not run yet.
        """
        if self.site_config is None:
            msg = "Site configuration has not been read yet."
            raise SiteConfigError(msg)
        return self.site_config

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    def read_site_config(self) -> SiteConfig:
        """Load ``site.yaml`` and apply the base URL override."""
        config = load_site_config(self.root_path / SITE_CONFIG_NAME)
        if self.base_url_override is not None:
            config.base_url = self.base_url_override.rstrip("/")
        self.site_config = config
        return config

    def collect_addressable_pages(self) -> list[AddressablePage]:
        """Select the pages of the site from its configuration."""
        self.addressable_pages = collect_addressable_pages(
            self.config, self.root_path, output_path=self.output_path
        )
        return self.addressable_pages

    def update_addressable_pages(self) -> list[str]:
        """Recompute the addressable pages and return the sources that vanished."""
        old_pages = list(self.addressable_pages)
        new_pages = self.collect_addressable_pages()
        return removed_sources(old_pages, new_pages)

    def collect_boundaries(self) -> frozenset[Path]:
        """Find every sub-site and start a fresh variable renderer for them."""
        self.boundaries = collect_boundaries(
            self.root_path,
            SITE_CONFIG_NAME,
            excluded=(self.output_path, self.temp_path),
        )
        self.variables = VariableRenderer(self.root_path, self.boundaries)
        return self.boundaries

    def collect_user_variables(self) -> None:
        """Load the variables file of the root site and every sub-site."""
        self.variables.reset_user_variables()
        for site_root in sorted(self.boundaries):
            self.variables.load_variables_file(site_root, site_root / USER_VARIABLES_PATH)

    def collect_user_variables_if_needed(self, changed: cabc.Set[Path]) -> bool:
        """Reload user variables when the root variables file changed."""
        if self.root_path / USER_VARIABLES_PATH in changed:
            self.collect_user_variables()
            return True
        return False

    def favicon_url(self) -> str | None:
        """Return the favicon link of the site, if it has one."""
        config = self.config
        root_url = "/" + config.base_url.strip("/")
        if config.favicon_path:
            if not (self.root_path / config.favicon_path).exists():
                logger.warning("%s does not exist", config.favicon_path)
            return posixpath.join(root_url, config.favicon_path.lstrip("/"))
        if (self.root_path / FAVICON_DEFAULT_PATH).exists():
            return posixpath.join(root_url, FAVICON_DEFAULT_PATH)
        return None

    def map_addressable_pages_to_pages(self) -> list[Page]:
        """Create a fresh :class:`Page` for every addressable page."""
        self.pages = [self._create_page(entry) for entry in self.addressable_pages]
        return self.pages

    def _create_page(self, entry: AddressablePage) -> Page:
        source_path = normalize_path(self.root_path / entry.src)
        return Page(
            src=entry.src,
            source_path=source_path,
            result_path=self.output_path / set_extension(entry.src, ".html"),
            temp_path=self.temp_path / entry.src,
            title=entry.title or "",
            layout=entry.layout,
            searchable=entry.searchable is not False,
            frontmatter_override=dict(entry.frontmatter or {}),
            dependencies={source_path},
        )

    def _page_generator(self) -> PageGenerator:
        resolver = MarkupResolver(
            self.root_path, self.boundaries, self.variables, self.renderer
        )
        return PageGenerator(
            root_path=self.root_path,
            output_path=self.output_path,
            temp_path=self.temp_path,
            site_config=self.config,
            boundaries=self.boundaries,
            resolver=resolver,
            variables=self.variables,
            favicon_url=self.favicon_url(),
            templates_dir=self.templates_dir,
        )

    def _set_timestamp(self) -> None:
        self.variables.set_timestamp(self.config.time_zone)

    def _page_id(self, page: Page) -> Path:
        return remove_extension(page.source_path)

    # ------------------------------------------------------------------
    # Full builds
    # ------------------------------------------------------------------

    async def generate(self) -> None:
        """Build the site from scratch into the output folder.

        The temp and output folders are emptied first. If anything fails they
        are removed again before the error propagates.

        Raises
        ------
        SiteConfigError
            If the configuration is missing or invalid.
        GenerationError
            If a page fails to generate.
        """
        start = time.perf_counter()
        lazy_label = "(lazy) " if self.is_lazy else ""
        await asyncio.to_thread(_empty_folder, self.temp_path)
        await asyncio.to_thread(_empty_folder, self.output_path)
        logger.info("Website generation %sstarted", lazy_label)
        try:
            self.read_site_config()
            self.collect_addressable_pages()
            self.collect_boundaries()
            self.collect_user_variables()
            if self.is_lazy:
                await self.lazy_build_source_files()
            else:
                await self.build_source_files()
            await self.write_site_data()
        except Exception:
            logger.exception("Website generation failed")
            await _remove_folders(self.temp_path, self.output_path)
            raise
        elapsed = time.perf_counter() - start
        logger.info(
            "Website generation %scomplete! Total build time: %.2fs", lazy_label, elapsed
        )
        if not self.is_lazy and elapsed > BUILD_TIME_HINT_LIMIT:
            logger.info(
                "Your site took quite a while to build. "
                "Consider building lazily with --one-page while writing content."
            )

    async def build_source_files(self) -> None:
        """Generate every addressable page."""
        logger.info("Generating pages...")
        self._set_timestamp()
        self.map_addressable_pages_to_pages()
        self.to_rebuild.clear()
        try:
            await self.scheduler.run_all(self.pages, self._page_generator().generate)
        finally:
            await _remove_folders(self.temp_path)
        logger.info("Pages built")

    async def lazy_build_source_files(self) -> None:
        """Generate the landing page only and mark every other page pending.

        Raises
        ------
        SiteConfigError
            If the landing page is not one of the addressable pages.
        """
        logger.info("Generating landing page...")
        self._set_timestamp()
        self.map_addressable_pages_to_pages()
        landing = next((page for page in self.pages if page.src == self.one_page), None)
        if landing is None:
            msg = f"{self.one_page} is not specified in the site configuration."
            raise SiteConfigError(msg)
        try:
            await self.scheduler.run_all([landing], self._page_generator().generate)
        finally:
            await _remove_folders(self.temp_path)
        self.lazy_build_all_pages_not_viewed()
        logger.info(
            "Landing page built, other pages will be built as you navigate to them!"
        )

    def lazy_build_all_pages_not_viewed(self) -> None:
        """Mark every page except the one being viewed as pending."""
        for page in self.pages:
            page_id = self._page_id(page)
            if page_id != self.current_page_viewed:
                self.to_rebuild.add(page_id)

    # ------------------------------------------------------------------
    # Incremental rebuilds
    # ------------------------------------------------------------------

    async def regenerate_affected_pages(
        self, file_paths: cabc.Iterable[Path]
    ) -> list[Page]:
        """Regenerate the pages that depend on any of ``file_paths``.

        In lazy mode only the page being viewed is regenerated; other affected
        pages are added to :attr:`to_rebuild`.

        Returns
        -------
        list[Page]
            Pages regenerated by this call.
        """
        start = time.perf_counter()
        changed = {normalize_path(path) for path in file_paths}
        rebuild_all = self.collect_user_variables_if_needed(changed) or self.force_reload
        if rebuild_all:
            logger.warning(
                "Rebuilding all pages as the variables file was changed, "
                "or --force-reload was set"
            )
        self._set_timestamp()

        affected: list[Page] = []
        for page in self.pages:
            if not rebuild_all and page.dependencies.isdisjoint(changed):
                continue
            page_id = self._page_id(page)
            if self.is_lazy and page_id != self.current_page_viewed:
                self.to_rebuild.add(page_id)
                continue
            self.to_rebuild.discard(page_id)
            affected.append(page)

        if not affected:
            logger.info("No pages needed to be rebuilt")
            return []
        logger.info("Rebuilding %d pages", len(affected))
        await self.scheduler.run_all(affected, self._page_generator().generate)
        await self.write_site_data()
        logger.info("Pages rebuilt")

        elapsed = time.perf_counter() - start
        logger.info("Website regeneration complete! Total build time: %.2fs", elapsed)
        if not self.is_lazy and elapsed > REBUILD_TIME_HINT_LIMIT:
            logger.info(
                "Your pages took quite a while to rebuild. "
                "Consider building lazily with --one-page while writing content."
            )
        return affected

    async def change_current_page(self, normalized_url: str) -> bool:
        """Switch the viewed page, rebuilding it first when it is pending.

        The rebuild goes through the debounced :attr:`rebuild_page_being_viewed`,
        so quick navigation between pending pages is built as one batch.

        Parameters
        ----------
        normalized_url : str
            Page URL without base URL and extension, relative to the root.

        Returns
        -------
        bool
            True when the page was pending and has been rebuilt.
        """
        self.current_page_viewed = normalize_path(
            self.root_path / normalized_url.strip("/")
        )
        if self.current_page_viewed not in self.to_rebuild:
            return False
        await self.rebuild_page_being_viewed([self.current_page_viewed])
        return True

    async def _rebuild_affected_source_files(
        self, file_paths: list[Path]
    ) -> list[Page]:
        self.variables.invalidate_cache()
        try:
            return await self.regenerate_affected_pages(dict.fromkeys(file_paths))
        finally:
            await _remove_folders(self.temp_path)

    async def _rebuild_pages_being_viewed(self, page_ids: list[Path]) -> list[Page]:
        start = time.perf_counter()
        by_id = {self._page_id(page): page for page in self.pages}
        pages: list[Page] = []
        for page_id in dict.fromkeys(page_ids):
            page = by_id.get(page_id)
            if page is None:
                continue
            logger.info(
                "Building %s as some of its dependencies were changed since the "
                "last visit",
                page.src,
            )
            self.to_rebuild.discard(page_id)
            pages.append(page)
        if not pages:
            return []
        self._set_timestamp()
        try:
            await self.scheduler.run_all(pages, self._page_generator().generate)
        finally:
            await _remove_folders(self.temp_path)
        await self.write_site_data()
        elapsed = time.perf_counter() - start
        logger.info("Lazy website regeneration complete! Total build time: %.2fs", elapsed)
        return pages

    async def _rebuild_source_files(self, _file_paths: list[Path]) -> None:
        logger.info("Page added or removed, updating list of site's pages...")
        self.variables.invalidate_cache()
        removed = self.update_addressable_pages()
        await self._remove_page_outputs(removed)
        self.collect_boundaries()
        self.collect_user_variables()
        if self.is_lazy:
            self.map_addressable_pages_to_pages()
            if self.current_page_viewed is not None:
                await self._rebuild_pages_being_viewed([self.current_page_viewed])
            self.lazy_build_all_pages_not_viewed()
            return
        logger.warning("Rebuilding all pages...")
        await self.build_source_files()
        await self.write_site_data()

    async def _remove_page_outputs(self, sources: cabc.Iterable[str]) -> None:
        for src in sources:
            result_path = self.output_path / set_extension(src, ".html")
            logger.info("Removing %s", result_path)
            await asyncio.to_thread(result_path.unlink, missing_ok=True)

    # ------------------------------------------------------------------
    # Queries and artifacts
    # ------------------------------------------------------------------

    async def write_site_data(self) -> None:
        """Write ``siteData.json`` listing the searchable pages."""
        site_data = {
            "enable_search": self.config.enable_search,
            "pages": [
                {"src": page.src, "title": page.title, "headings": page.headings}
                for page in self.pages
                if page.searchable
            ],
        }
        await output_file(
            self.output_path / SITE_DATA_NAME, json.dumps(site_data, indent=2)
        )
        logger.debug("Site data built")

    def is_filepath_a_page(self, file_path: Path) -> bool:
        """Return True when ``file_path`` matches a ``src`` or ``glob`` entry."""
        config = self.config
        relative = ensure_posix(
            os.path.relpath(normalize_path(file_path), self.root_path)
        )
        if any(relative == src for entry in config.pages for src in entry.src):
            return True
        reserved = [self.root_path / CONFIG_FOLDER_NAME, self.output_path]
        return any(
            relative
            in glob_sources(
                entry,
                self.root_path,
                pages_exclude=config.pages_exclude,
                reserved=reserved,
            )
            for entry in config.pages
            if entry.glob
        )

    def is_dependency_of_page(self, file_path: Path) -> bool:
        """Return True when any page's last render read ``file_path``."""
        path = normalize_path(file_path)
        return any(path in page.dependencies for page in self.pages)


def _empty_folder(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


async def _remove_folders(*folders: Path) -> None:
    """Remove ``folders``; failures are logged and never raised."""
    for folder in folders:
        try:
            await asyncio.to_thread(shutil.rmtree, folder)
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.error("Failed to remove generated files in %s: %s", folder, exc)


__all__ = ["Site"]
