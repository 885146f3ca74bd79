"""Cyclopts CLI entrypoint for building and watching pagesmith sites.

The ``pagesmith`` console script builds a site into its output folder
(``pagesmith build``) or builds it and keeps rebuilding the pages affected by
each file change (``pagesmith watch``). Every option can also be supplied
through a ``PAGESMITH_`` environment variable.

Examples
--------
Build the site in the current directory:

>>> from pagesmith.cli import main
>>> main()  # doctest: +SKIP

Build lazily, starting from one landing page:

>>> from pagesmith.cli import app
>>> app(["watch", "docs", "--one-page", "index.md"])  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import MAX_CONCURRENT_PAGE_GENERATION
from .config import SiteConfigError
from .errors import GenerationError
from .logging import configure_logging, get_logger
from .site import Site
from .watch import serve

app = App(name="pagesmith", config=cyclopts.config.Env("PAGESMITH_", command=False))  # type: ignore[unknown-argument]

logger = get_logger("cli")


def _build_site(
    root: Path,
    *,
    output: Path | None,
    base_url: str | None,
    one_page: str | None,
    concurrency: int,
    force_reload: bool = False,
) -> Site:
    return Site(
        root,
        output,
        one_page=one_page,
        force_reload=force_reload,
        base_url=base_url,
        concurrency=concurrency,
    )


@app.command(help="Build the site into its output folder.")
def build(
    root: typ.Annotated[Path, Parameter(help="Site root holding site.yaml")] = Path(),
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Output folder (defaults to <root>/_site)")
    ] = None,
    base_url: typ.Annotated[
        str | None, Parameter(help="Override the base_url of site.yaml")
    ] = None,
    one_page: typ.Annotated[
        str | None, Parameter(help="Build only this landing page source")
    ] = None,
    concurrency: typ.Annotated[
        int, Parameter(help="Maximum number of pages generated at once")
    ] = MAX_CONCURRENT_PAGE_GENERATION,
    verbose: typ.Annotated[bool, Parameter(help="Log per-page progress")] = False,
) -> None:
    """Generate every page of the site, or only the landing page.

    Parameters
    ----------
    root : Path, optional
        Directory holding ``site.yaml``; defaults to the working directory.
    output : Path or None, optional
        Output folder; defaults to ``<root>/_site``.
    base_url : str or None, optional
        Base URL replacing the one configured in ``site.yaml``.
    one_page : str or None, optional
        Source path of a landing page. Only that page is built.
    concurrency : int, optional
        Maximum number of pages generated at once.
    verbose : bool, optional
        Log at DEBUG level.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid or a page fails.
    """
    configure_logging(verbose=verbose)
    site = _build_site(
        root,
        output=output,
        base_url=base_url,
        one_page=one_page,
        concurrency=concurrency,
    )
    try:
        asyncio.run(site.generate())
    except (SiteConfigError, GenerationError) as exc:
        logger.error("%s", exc)
        sys.exit(1)


@app.command(help="Build the site, then rebuild affected pages on file changes.")
def watch(
    root: typ.Annotated[Path, Parameter(help="Site root holding site.yaml")] = Path(),
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Output folder (defaults to <root>/_site)")
    ] = None,
    base_url: typ.Annotated[
        str | None, Parameter(help="Override the base_url of site.yaml")
    ] = None,
    one_page: typ.Annotated[
        str | None, Parameter(help="Build lazily, starting from this page source")
    ] = None,
    concurrency: typ.Annotated[
        int, Parameter(help="Maximum number of pages generated at once")
    ] = MAX_CONCURRENT_PAGE_GENERATION,
    force_reload: typ.Annotated[
        bool, Parameter(help="Rebuild every page on any change")
    ] = False,
    verbose: typ.Annotated[bool, Parameter(help="Log per-page progress")] = False,
) -> None:
    """Build the site and watch its root folder until interrupted.

    Parameters
    ----------
    root : Path, optional
        Directory holding ``site.yaml``; defaults to the working directory.
    output : Path or None, optional
        Output folder; defaults to ``<root>/_site``.
    base_url : str or None, optional
        Base URL replacing the one configured in ``site.yaml``.
    one_page : str or None, optional
        Landing page source. Enables lazy rebuilds of the page being viewed.
    concurrency : int, optional
        Maximum number of pages generated at once.
    force_reload : bool, optional
        Rebuild every page whenever any file changes.
    verbose : bool, optional
        Log at DEBUG level.
    """
    configure_logging(verbose=verbose)
    site = _build_site(
        root,
        output=output,
        base_url=base_url,
        one_page=one_page,
        concurrency=concurrency,
        force_reload=force_reload,
    )
    try:
        asyncio.run(serve(site))
    except (SiteConfigError, GenerationError) as exc:
        logger.error("%s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Stopped watching %s", site.root_path)


def main() -> None:
    """Invoke the Cyclopts application behind the ``pagesmith`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
