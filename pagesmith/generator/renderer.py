"""Render markdown to HTML and post-process the result."""

from __future__ import annotations

import re
import typing as typ
from html import escape

from bs4 import BeautifulSoup
from bs4.builder import HTMLParserTreeBuilder
from markdown import Markdown
from pygments.formatters.html import HtmlFormatter

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

CODE_BLOCK_PATTERN = re.compile(r"```([A-Za-z0-9_+#.-]+)?[^\n]*\n(.*?)```", re.DOTALL)
FENCED_INDENT_PATTERN = re.compile(r"^[ ]{1,3}([`~]{3,})", re.MULTILINE)
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
INLINE_CONTENT_TAGS = frozenset(
    [
        *HEADING_TAGS,
        "a", "abbr", "b", "button", "caption", "code", "dd", "del", "dt", "em",
        "figcaption", "i", "ins", "kbd", "label", "li", "mark", "p", "pre", "q",
        "s", "small", "span", "strong", "sub", "summary", "sup", "td", "textarea",
        "th", "u",
    ]
)  # fmt: skip


class HtmlContentRenderer:
    """Render markdown with embedded HTML into page markup.

    Parameters
    ----------
    pygments_style : str, optional
        Name of the Pygments style used for highlighted code blocks.
    """

    def __init__(self, pygments_style: str = "default") -> None:
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def markdown(self, text: str) -> str:
        """Render markdown into HTML.

        Raw HTML blocks pass through untouched unless they carry a
        ``markdown="1"`` attribute, in which case their body is rendered too.
        """
        normalized = FENCED_INDENT_PATTERN.sub(r"\1", text)
        if not normalized.strip():
            return ""
        extensions: list[Extension | str] = ["extra", "toc", "sane_lists", "codehilite"]
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        html = md.convert(normalized)
        return self._annotate_codehilite(html, normalized)

    def _annotate_codehilite(self, html: str, source_markdown: str) -> str:
        """Attach language metadata to each highlighted block in converted markdown."""
        languages = [
            match.group(1) or "text"
            for match in CODE_BLOCK_PATTERN.finditer(source_markdown)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(match: re.Match[str]) -> str:
            lang = next(lang_iter, "text")
            return (
                f'<div class="codehilite" data-language="{escape(lang, quote=True)}">'
            )

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


def collect_headings(html: str, level: int) -> dict[str, str]:
    """Return heading id to heading text for ``h1`` through ``h<level>``.

    Headings without an ``id`` are skipped.

    >>> collect_headings('<h1 id="a">A</h1><h3 id="c">C</h3>', 2)
    {'a': 'A'}
    """
    if level <= 0:
        return {}
    soup = BeautifulSoup(html, "html.parser")
    headings: dict[str, str] = {}
    for heading in soup.find_all(HEADING_TAGS[:level]):
        heading_id = heading.get("id")
        if heading_id:
            headings[str(heading_id)] = heading.get_text(" ", strip=True)
    return headings


def beautify(html: str) -> str:
    """Pretty-print ``html``, one block per line, keeping inline runs intact.

    Elements holding inline content are written as they are, so no whitespace
    is added around ``<strong>``, ``<a>`` or ``<code>``.

    >>> "<p>a<strong>b</strong>c</p>" in beautify("<div><p>a<strong>b</strong>c</p></div>")
    True
    """
    builder = HTMLParserTreeBuilder(preserve_whitespace_tags=INLINE_CONTENT_TAGS)
    return BeautifulSoup(html, builder=builder).prettify(formatter="minimal").rstrip()


__all__ = [
    "CODE_BLOCK_PATTERN",
    "HtmlContentRenderer",
    "beautify",
    "collect_headings",
]
