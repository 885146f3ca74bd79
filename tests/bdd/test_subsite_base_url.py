"""Behaviour tests for base URL resolution across sub-sites.

A sub-site is any folder below the root holding its own ``site.yaml``. These
scenarios check that a ``{{ baseUrl }}`` link always points inside the site
owning the file it was written in, both for pages of the sub-site and for
content included across the sub-site boundary in either direction.

Usage
-----
Run ``pytest tests/bdd/test_subsite_base_url.py -v``.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from pagesmith.site import Site

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "subsite_base_url.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {}


@given(parsers.parse('a site with a "{subsite}" sub-site served under "{base_url}"'))
def given_subsite(
    write_files: typ.Callable[[dict[str, str]], Path],
    scenario_state: ScenarioState,
    subsite: str,
    base_url: str,
) -> None:
    """Write a root site whose index includes a snippet from the sub-site.

    The sub-site's intro page links inside the sub-site and includes a file
    of the root site that links back to the root index.
    """
    scenario_state["root"] = write_files(
        {
            "site.yaml": (
                f"base_url: {base_url}\n"
                "pages:\n"
                "  - src: index.md\n"
                f"  - src: {subsite}/intro.md\n"
            ),
            "index.md": f'# Home\n\n<include src="{subsite}/snippet.md" />\n',
            "shared/home.md": "[home]({{ baseUrl }}/index.html)\n",
            f"{subsite}/site.yaml": "pages: []\n",
            f"{subsite}/snippet.md": "[setup]({{ baseUrl }}/setup.html)\n",
            f"{subsite}/intro.md": (
                "# Intro\n\n"
                "[setup]({{ baseUrl }}/setup.html)\n\n"
                '<include src="../shared/home.md" />\n'
            ),
        }
    )


@when("the site is generated")
def when_generated(scenario_state: ScenarioState) -> None:
    site = Site(scenario_state["root"])
    asyncio.run(site.generate())
    scenario_state["site"] = site


@then(parsers.parse('the "{text}" link in "{page}" points to "{href}"'))
def then_link_points_to(
    scenario_state: ScenarioState, text: str, page: str, href: str
) -> None:
    output = scenario_state["site"].output_path / page
    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")
    links = {link.get_text(strip=True): link.get("href") for link in soup.find_all("a")}
    assert links.get(text) == href, f"{page} links: {links}"
