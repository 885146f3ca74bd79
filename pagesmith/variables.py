"""Render user-defined variables into markup with Jinja2.

Every (sub)site may declare variables in ``_pagesmith/variables.md``::

    <variable name="product">Pagesmith</variable>
    <variable name="tagline">{{ product }} builds sites</variable>

The :class:`VariableRenderer` keeps one variable map per site root and a cache
of compiled templates. The cache is process-lifetime state: it is dropped with
:meth:`VariableRenderer.invalidate_cache` whenever the variables file changes
or pages are added or removed, never implicitly.
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bs4 import BeautifulSoup
from jinja2 import Environment, Template, TemplateError

from .baseurl import site_root_for
from .errors import GenerationError
from .fsutil import normalize_path
from .logging import get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = get_logger("variables")

BASE_URL_TOKEN = "{{ baseUrl }}"
HOST_BASE_URL_TOKEN = "{{ hostBaseUrl }}"
BASE_URL_PATTERN = re.compile(r"\{\{\s*baseUrl\s*\}\}")
HOST_BASE_URL_PATTERN = re.compile(r"\{\{\s*hostBaseUrl\s*\}\}")

# Base-URL tokens survive expansion untouched and are substituted per page.
_PRESERVED_TOKENS = {"baseUrl": BASE_URL_TOKEN, "hostBaseUrl": HOST_BASE_URL_TOKEN}


class VariableRenderer:
    """Render strings against per-site user variables.

    Parameters
    ----------
    root_path : Path
        Processing root of the site.
    boundaries : Set[Path]
        Sub-site boundary directories used to pick the variable map of a file.
    """

    def __init__(self, root_path: Path, boundaries: cabc.Set[Path]) -> None:
        self.root_path = normalize_path(root_path)
        self.boundaries = boundaries
        self.env = Environment(autoescape=False, keep_trailing_newline=True)
        self._compiled: dict[str, Template] = {}
        self._user_variables: dict[Path, dict[str, str]] = {}

    def render_string(
        self, template: str, variables: cabc.Mapping[str, typ.Any]
    ) -> str:
        """Render ``template`` with ``variables``, reusing compiled templates."""
        compiled = self._compiled.get(template)
        if compiled is None:
            compiled = self.env.from_string(template)
            self._compiled[template] = compiled
        return compiled.render(**variables)

    def render_for_file(self, template: str, file_path: Path) -> str:
        """Render ``template`` with the variables of the site owning ``file_path``.

        Raises
        ------
        GenerationError
            If the template is not valid Jinja2 markup.
        """
        variables = {**self.variables_for(file_path), **_PRESERVED_TOKENS}
        try:
            return self.render_string(template, variables)
        except TemplateError as exc:
            msg = f"Failed to render variables in '{file_path}': {exc}"
            raise GenerationError(msg, path=file_path) from exc

    @staticmethod
    def substitute_base_url(text: str, base_url: str, host_base_url: str) -> str:
        """Replace the base-URL tokens left in ``text`` by expansion."""
        substituted = BASE_URL_PATTERN.sub(lambda _match: base_url, text)
        return HOST_BASE_URL_PATTERN.sub(lambda _match: host_base_url, substituted)

    def invalidate_cache(self) -> None:
        """Drop every compiled template."""
        self._compiled.clear()

    def reset_user_variables(self) -> None:
        """Forget all user variables and compiled templates."""
        self._user_variables.clear()
        self.invalidate_cache()

    def add_user_variable(self, site_root: Path, name: str, value: str) -> None:
        """Register ``name`` for the site rooted at ``site_root``."""
        self._user_variables.setdefault(normalize_path(site_root), {})[name] = value

    def add_user_variable_for_all_sites(self, name: str, value: str) -> None:
        """Register ``name`` for the root site and every sub-site."""
        for site_root in self.boundaries:
            self.add_user_variable(site_root, name, value)

    def render_and_add_user_variable(
        self, site_root: Path, name: str, template: str
    ) -> None:
        """Render ``template`` with the variables defined so far, then register it."""
        variables = {
            **self._user_variables.get(normalize_path(site_root), {}),
            **_PRESERVED_TOKENS,
        }
        try:
            rendered = self.env.from_string(template).render(**variables)
        except TemplateError as exc:
            msg = f"Failed to render variable '{name}' of site '{site_root}': {exc}"
            raise GenerationError(msg, path=site_root) from exc
        self.add_user_variable(site_root, name, rendered)

    def variables_for(self, file_path: Path) -> dict[str, str]:
        """Return the variable map of the (sub)site owning ``file_path``."""
        site_root = site_root_for(file_path, self.root_path, self.boundaries)
        return dict(self._user_variables.get(site_root, {}))

    def load_variables_file(self, site_root: Path, variables_path: Path) -> None:
        """Parse ``<variable>`` elements from ``variables_path`` into ``site_root``.

        A missing file is reported as a warning and leaves the site with no
        user variables beyond the built-in ones.
        """
        try:
            content = variables_path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not read variables file %s: %s", variables_path, exc)
            return
        soup = BeautifulSoup(content, "html.parser")
        for element in soup.find_all(["variable", "span"]):
            name = element.get("name") or element.get("id")
            if not name:
                continue
            value = element.decode_contents(formatter=None)
            self.render_and_add_user_variable(site_root, str(name), value)

    def set_timestamp(self, time_zone: str | None = None) -> str:
        """Publish a ``timestamp`` variable for every site and return it."""
        now = dt.datetime.now(dt.UTC)
        if time_zone:
            try:
                now = now.astimezone(ZoneInfo(time_zone))
            except ZoneInfoNotFoundError:
                logger.warning("Unknown time zone %r; using UTC", time_zone)
        stamp = now.strftime("%a, %d %b %Y %H:%M:%S %Z")
        self.add_user_variable_for_all_sites("timestamp", stamp)
        return stamp


__all__ = [
    "BASE_URL_PATTERN",
    "BASE_URL_TOKEN",
    "HOST_BASE_URL_TOKEN",
    "VariableRenderer",
]
