"""Load ``site.yaml`` into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .helpers import (
    _as_mapping,
    _build_page_entry,
    _heading_level,
    _normalize_base_url,
    _optional_bool,
    _optional_str,
    _string_list,
)
from .models import SiteConfig, SiteConfigError

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the pages of a site.

    Parameters
    ----------
    path : Path
        Filesystem path to the site configuration file (``site.yaml``).

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied to every omitted field.

    Raises
    ------
    SiteConfigError
        If the file is missing, is not valid YAML, is not a mapping, or any
        field has the wrong type.

    Examples
    --------
    >>> from pathlib import Path
    >>> from pagesmith.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.pages[0].src  # doctest: +SKIP
    ['index.md']
    """
    if not path.exists():
        msg = f"Site configuration '{path}' not found."
        raise SiteConfigError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Site configuration '{path}' is not valid YAML: {exc}"
        raise SiteConfigError(msg) from exc
    raw = dict(_as_mapping(loaded, field=str(path)))

    pages_raw = raw.get("pages") or []
    if not isinstance(pages_raw, list):
        msg = "Field 'pages' must be a list of page entries."
        raise SiteConfigError(msg)

    return SiteConfig(
        base_url=_normalize_base_url(raw.get("base_url")),
        title_prefix=_optional_str(raw.get("title_prefix")) or "",
        heading_indexing_level=_heading_level(raw.get("heading_indexing_level")),
        enable_search=_flag(raw, "enable_search", default=True),
        disable_html_beautify=_flag(raw, "disable_html_beautify", default=False),
        favicon_path=_optional_str(raw.get("favicon_path")),
        time_zone=_optional_str(raw.get("time_zone")),
        pages=[
            _build_page_entry(index, payload)
            for index, payload in enumerate(pages_raw)
        ],
        pages_exclude=_string_list(raw.get("pages_exclude"), field="pages_exclude"),
    )


def _flag(raw: typ.Mapping[str, typ.Any], field: str, *, default: bool) -> bool:
    value = _optional_bool(raw.get(field), field=field)
    return default if value is None else value


__all__ = ["load_site_config"]
