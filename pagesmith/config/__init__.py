"""Load and validate ``site.yaml`` for pagesmith builds.

This subpackage parses a site's configuration file and produces typed
dataclasses (:class:`SiteConfig`, :class:`PageEntry`) that the site model
consumes when it selects addressable pages. The primary entry point is
:func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from pagesmith.config import load_site_config
>>> config = load_site_config(Path("docs/site.yaml"))  # doctest: +SKIP
>>> config.heading_indexing_level  # doctest: +SKIP
3
"""

from .loader import load_site_config
from .models import PageEntry, SiteConfig, SiteConfigError

__all__ = ["PageEntry", "SiteConfig", "SiteConfigError", "load_site_config"]
