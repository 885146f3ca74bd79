"""Tests for include expansion and cross-site base URL resolution."""

from __future__ import annotations

import logging
import typing as typ

import pytest

from pagesmith.errors import GenerationError
from pagesmith.generator import (
    BoilerplateInclude,
    DynamicInclude,
    HtmlContentRenderer,
    MarkupContext,
    MarkupResolver,
    MissingInclude,
    StaticInclude,
)
from pagesmith.variables import VariableRenderer

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    WriteFiles = cabc.Callable[[cabc.Mapping[str, str]], Path]


def _resolver(root: Path, *sub_sites: str) -> MarkupResolver:
    boundaries = frozenset({root, *(root / sub for sub in sub_sites)})
    variables = VariableRenderer(root, boundaries)
    return MarkupResolver(root, boundaries, variables, HtmlContentRenderer())


async def _expand(resolver: MarkupResolver, path: Path):
    return await resolver.include_file(path, MarkupContext(cwf=path))


@pytest.mark.asyncio
async def test_static_include_is_inlined_without_front_matter(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {
            "index.md": '# Home\n\n<include src="parts/intro.md" />\n',
            "parts/intro.md": "<frontmatter>title: Intro</frontmatter>\nHello\n",
        },
    )

    expanded = await _expand(_resolver(site_root), site_root / "index.md")

    assert expanded.markup == "# Home\n\n\nHello\n\n"
    assert expanded.edges == [StaticInclude(to=site_root / "parts" / "intro.md")]


@pytest.mark.asyncio
async def test_boilerplate_renders_as_if_at_src(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {
            "docs/page.md": '<include src="notes.md" boilerplate="note.md" />',
            "docs/local.md": "local text",
            "_pagesmith/boilerplates/note.md": 'Note: <include src="local.md" />',
        },
    )

    expanded = await _expand(_resolver(site_root), site_root / "docs" / "page.md")

    assert expanded.markup == "Note: local text"
    assert expanded.edges == [
        BoilerplateInclude(to=site_root / "_pagesmith" / "boilerplates" / "note.md"),
        StaticInclude(to=site_root / "docs" / "local.md"),
    ]


@pytest.mark.asyncio
async def test_dynamic_include_emits_placeholder_and_edge(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {
            "docs/page.md": '<include src="frag.md" dynamic></include>',
            "docs/frag.md": "fragment",
        },
    )
    page = site_root / "docs" / "page.md"

    expanded = await _expand(_resolver(site_root), page)

    assert expanded.markup == (
        '<div data-include-src="{{ hostBaseUrl }}/docs/frag._include_.html"></div>'
    )
    fragment = site_root / "docs" / "frag.md"
    assert expanded.edges == [
        DynamicInclude(from_path=page, to=fragment, as_if_to=fragment)
    ]


@pytest.mark.asyncio
async def test_missing_include_is_recorded_and_logged(
    site_root: Path, write_files: WriteFiles, caplog: pytest.LogCaptureFixture
) -> None:
    write_files({"index.md": '<include src="nowhere.md" />'})

    with caplog.at_level(logging.WARNING, logger="pagesmith"):
        expanded = await _expand(_resolver(site_root), site_root / "index.md")

    assert expanded.edges == [MissingInclude(reference=site_root / "nowhere.md")]
    assert 'class="include-error"' in expanded.markup
    assert "Missing include" in caplog.text


@pytest.mark.asyncio
async def test_static_include_cycle_raises(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {"a.md": '<include src="b.md" />', "b.md": '<include src="a.md" />'},
    )

    with pytest.raises(GenerationError, match="Cyclic include"):
        await _expand(_resolver(site_root), site_root / "a.md")


@pytest.mark.asyncio
async def test_base_url_prefixed_src_resolves_from_site_root(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {
            "sub/site.yaml": "pages: []\n",
            "sub/deep/page.md": '<include src="{{ baseUrl }}/shared.md" />',
            "sub/shared.md": "sub shared",
        },
    )

    expanded = await _expand(
        _resolver(site_root, "sub"), site_root / "sub" / "deep" / "page.md"
    )

    assert expanded.markup == "sub shared"


@pytest.mark.asyncio
async def test_cross_site_content_keeps_its_own_base_url(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files(
        {
            "index.md": '<include src="sub/part.md" />\n[home]({{ baseUrl }}/index.html)',
            "sub/part.md": "[sub]({{ baseUrl }}/x.html)\n",
        },
    )
    resolver = _resolver(site_root, "sub")
    context = MarkupContext(cwf=site_root / "index.md")

    expanded = await resolver.include_file(site_root / "index.md", context)
    resolved = resolver.resolve_base_url(expanded.markup, context)

    assert "pagesmith:base" not in resolved
    assert "[sub]({{ hostBaseUrl }}/sub/x.html)" in resolved
    assert "[home]({{ baseUrl }}/index.html)" in resolved


def test_nested_markers_resolve_innermost_first(site_root: Path) -> None:
    resolver = _resolver(site_root, "sub")
    markup = (
        "<!--pagesmith:base sub-->{{ baseUrl }}/a "
        "<!--pagesmith:base -->{{ baseUrl }}/b<!--/pagesmith:base-->"
        "<!--/pagesmith:base-->"
    )

    resolved = resolver.resolve_base_url(
        markup, MarkupContext(cwf=site_root / "sub" / "x.md")
    )

    assert resolved == "{{ baseUrl }}/a {{ hostBaseUrl }}/b"


@pytest.mark.asyncio
async def test_render_file_converts_markdown(
    site_root: Path, write_files: WriteFiles
) -> None:
    write_files({"page.md": "# Title\n\nSome *text*.\n"})

    html = await _resolver(site_root).render_file(site_root / "page.md")

    assert '<h1 id="title">Title</h1>' in html
    assert "<em>text</em>" in html
