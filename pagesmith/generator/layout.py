"""Site navigation and footer post-processing.

Both helpers operate on rendered HTML with BeautifulSoup and serialize with
``formatter=None`` so text the markdown renderer already escaped is written
back unchanged.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, NavigableString, Tag

NAV_LIST_STYLE = "list-style-type: none; margin-left:-1em"
NAV_ITEM_STYLE = "margin-top: 10px"
DROPDOWN_ICON_HTML = (
    '<i class="dropdown-btn-icon">'
    '<span class="glyphicon glyphicon-menu-down" aria-hidden="true"></span>'
    "</i>"
)
SITE_NAV_BUTTON_HTML = (
    '<div id="site-nav-btn-wrap">'
    '<div id="site-nav-btn">'
    '<div class="menu-top-bar"></div>'
    '<div class="menu-middle-bar"></div>'
    '<div class="menu-bottom-bar"></div>'
    "</div>"
    "</div>"
)


def _nested_list(item: Tag) -> Tag | None:
    nested = item.find(["ul", "ol"], recursive=False)
    return nested if isinstance(nested, Tag) else None


def _previous_element(tag: Tag) -> Tag | None:
    """Return the previous sibling tag, skipping whitespace-only text."""
    for sibling in tag.previous_siblings:
        if isinstance(sibling, Tag):
            return sibling
        if isinstance(sibling, NavigableString) and sibling.strip():
            return None
    return None


def _format_list(soup: BeautifulSoup, nav_list: Tag, *, allow_dropdown: bool) -> None:
    nav_list["style"] = NAV_LIST_STYLE
    for item in nav_list.find_all("li", recursive=False):
        item["style"] = NAV_ITEM_STYLE
        nested = _nested_list(item)
        if nested is None:
            continue
        has_link = item.find("a", recursive=False) is not None
        if has_link or not allow_dropdown:
            _format_list(soup, nested, allow_dropdown=False)
            continue
        nested.extract()
        title = item.decode_contents(formatter=None).strip()
        item.clear()
        button = BeautifulSoup(
            f'<button class="dropdown-btn">{title} {DROPDOWN_ICON_HTML}</button>',
            "html.parser",
        )
        item.append(button)
        container = soup.new_tag("div", attrs={"class": "dropdown-container"})
        _format_list(soup, nested, allow_dropdown=True)
        container.append(nested)
        item.append(container)


def format_site_nav(nav_html: str) -> str:
    """Turn the first list of ``nav_html`` into collapsible site navigation.

    Items whose only content is a label followed by a nested list become a
    ``dropdown-btn`` button with the nested list inside a
    ``dropdown-container``. Items that contain a link are never collapsible;
    their nested lists are styled recursively as plain lists. Anything other
    than the first list is dropped.

    >>> html = format_site_nav("<ul><li>Docs<ul><li><a href='a'>A</a></li></ul></li></ul>")
    >>> 'class="dropdown-btn"' in html and 'class="dropdown-container"' in html
    True
    """
    soup = BeautifulSoup(nav_html, "html.parser")
    nav_list = soup.find(["ul", "ol"])
    if nav_list is None:
        return nav_html
    _format_list(soup, nav_list, allow_dropdown=True)
    return nav_list.decode(formatter=None)


def wrap_with_site_nav(content: str, nav_html: str) -> str:
    """Place ``content`` and ``nav_html`` in the two-pane ``flex-body`` layout.

    The container and the page-content pane carry ``markdown="1"`` so markdown
    inside the content pane is still rendered when the page is converted to
    HTML.
    """
    return (
        '<div id="flex-body" markdown="1">\n'
        f'<div id="site-nav">\n{nav_html}\n</div>\n'
        f"{SITE_NAV_BUTTON_HTML}\n"
        f'<div id="page-content" markdown="1">\n\n{content}\n\n</div>\n'
        "</div>"
    )


def format_footer(html: str) -> str:
    """Keep only the last ``<footer>``, moved to the top level after a spacer.

    Earlier footers are removed. The surviving footer is moved out of any
    enclosing elements to sit right after its outermost ancestor, preceded by
    a ``<div id="flex-div"></div>`` unless one is already there.
    """
    if "<footer" not in html:
        return html
    soup = BeautifulSoup(html, "html.parser")
    footers = soup.find_all("footer")
    if not footers:
        return html
    *earlier, footer = footers
    for extra in earlier:
        extra.decompose()
    outermost: Tag = footer
    while isinstance(outermost.parent, Tag) and outermost.parent is not soup:
        outermost = outermost.parent
    if outermost is not footer:
        outermost.insert_after(footer.extract())
    spacer = _previous_element(footer)
    if not (isinstance(spacer, Tag) and spacer.get("id") == "flex-div"):
        footer.insert_before(soup.new_tag("div", attrs={"id": "flex-div"}))
    return soup.decode(formatter=None)


__all__ = [
    "SITE_NAV_BUTTON_HTML",
    "format_footer",
    "format_site_nav",
    "wrap_with_site_nav",
]
