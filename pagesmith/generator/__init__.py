"""Expand, render and write pages and their dynamic fragments."""

from .layout import format_footer, format_site_nav, wrap_with_site_nav
from .markup import MarkupResolver
from .models import (
    BoilerplateInclude,
    DynamicInclude,
    ExpandedMarkup,
    FragmentRegistry,
    IncludeEdge,
    MarkupContext,
    MissingInclude,
    Page,
    StaticInclude,
)
from .page_generator import PageGenerator
from .renderer import HtmlContentRenderer

__all__ = [
    "BoilerplateInclude",
    "DynamicInclude",
    "ExpandedMarkup",
    "FragmentRegistry",
    "HtmlContentRenderer",
    "IncludeEdge",
    "MarkupContext",
    "MarkupResolver",
    "MissingInclude",
    "Page",
    "PageGenerator",
    "StaticInclude",
    "format_footer",
    "format_site_nav",
    "wrap_with_site_nav",
]
