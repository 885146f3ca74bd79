"""Behaviour tests for incremental and lazy rebuilds.

The scenarios build a small site with two pages sharing a dynamic fragment and
a third page that does not use it. They edit the fragment and check that only
its dependents are regenerated, then rebuild the site lazily and open a page
that was not built up front.

Usage
-----
Run ``pytest tests/bdd/test_incremental_rebuild.py -v``.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from pagesmith.site import Site

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "incremental_rebuild.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]

SHARED_FRAGMENT_SITE = {
    "site.yaml": (
        "pages:\n"
        "  - src: index.md\n"
        "  - src: about.md\n"
        "  - src: standalone.md\n"
    ),
    "index.md": '# Home\n\n<include src="fragment.md" dynamic />\n',
    "about.md": '# About\n\n<include src="fragment.md" dynamic />\n',
    "standalone.md": "# Standalone\n",
    "fragment.md": "Original fragment\n",
}


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {}


@given("a site where two pages share a dynamic fragment")
def given_shared_fragment_site(
    write_files: typ.Callable[[dict[str, str]], Path], scenario_state: ScenarioState
) -> None:
    """Write the site and remember its root."""
    scenario_state["root"] = write_files(SHARED_FRAGMENT_SITE)


@when("the site is generated")
def when_generated(scenario_state: ScenarioState) -> None:
    site = Site(scenario_state["root"])
    asyncio.run(site.generate())
    scenario_state["site"] = site


@when(parsers.parse('the site is generated lazily from "{landing}"'))
def when_generated_lazily(scenario_state: ScenarioState, landing: str) -> None:
    site = Site(scenario_state["root"], one_page=landing, debounce_delay=0.01)
    asyncio.run(site.generate())
    scenario_state["site"] = site


@when("the shared fragment is edited")
def when_fragment_edited(scenario_state: ScenarioState) -> None:
    site: Site = scenario_state["site"]
    fragment = site.root_path / "fragment.md"
    fragment.write_text("Edited fragment\n", encoding="utf-8")
    scenario_state["rebuilt"] = asyncio.run(site.regenerate_affected_pages([fragment]))


@when(parsers.parse('the reader opens "{url}"'))
def when_reader_opens(scenario_state: ScenarioState, url: str) -> None:
    site: Site = scenario_state["site"]
    scenario_state["opened"] = asyncio.run(site.change_current_page(url))


@then(parsers.parse('only "{sources}" are rebuilt'))
def then_only_sources_rebuilt(scenario_state: ScenarioState, sources: str) -> None:
    expected = sorted(source.strip() for source in sources.split(","))
    rebuilt = sorted(page.src for page in scenario_state["rebuilt"])
    assert rebuilt == expected, f"expected {expected} to be rebuilt, got {rebuilt}"


@then(parsers.parse('the fragment output contains "{text}"'))
def then_fragment_contains(scenario_state: ScenarioState, text: str) -> None:
    site: Site = scenario_state["site"]
    fragment = site.output_path / "fragment._include_.html"
    content = fragment.read_text(encoding="utf-8")
    assert text in content, f"{fragment} does not contain {text!r}"


@then(parsers.parse('"{written}" is written but "{pending}" is not'))
def then_only_landing_written(
    scenario_state: ScenarioState, written: str, pending: str
) -> None:
    output = scenario_state["site"].output_path
    assert (output / written).exists(), f"{written} should have been generated"
    assert not (output / pending).exists(), f"{pending} should still be pending"


@then(parsers.parse('"{written}" is written'))
def then_page_written(scenario_state: ScenarioState, written: str) -> None:
    output = scenario_state["site"].output_path
    assert scenario_state["opened"] is True, "the opened page was not pending"
    assert (output / written).exists(), f"{written} should have been generated"
