"""Utility helpers shared by the pagesmith configuration loader."""

from __future__ import annotations

import typing as typ

from .models import PageEntry, SiteConfigError


def _string_list(value: object, *, field: str) -> list[str]:
    """Normalize a string or list of strings into a list of non-empty strings."""
    match value:
        case None:
            return []
        case str() as text:
            return [text] if text.strip() else []
        case list() | tuple():
            normalized: list[str] = []
            for item in value:
                if not isinstance(item, str):
                    msg = f"Field '{field}' must contain only strings, got {item!r}."
                    raise SiteConfigError(msg)
                if item.strip():
                    normalized.append(item)
            return normalized
        case _:
            msg = f"Field '{field}' must be a string or a list of strings."
            raise SiteConfigError(msg)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_bool(value: object, *, field: str) -> bool | None:
    """Return ``value`` as a bool, accepting the legacy ``"yes"``/``"no"`` strings."""
    match value:
        case None:
            return None
        case bool():
            return value
        case "yes":
            return True
        case "no":
            return False
        case _:
            msg = f"Field '{field}' must be a boolean, got {value!r}."
            raise SiteConfigError(msg)


def _normalize_base_url(value: object) -> str:
    """Return the base URL without a trailing slash (``"/"`` becomes ``""``)."""
    text = _optional_str(value) or ""
    return text.rstrip("/")


def _build_page_entry(index: int, payload: object) -> PageEntry:
    """Build a PageEntry from one item of the ``pages`` list."""
    if not isinstance(payload, dict):
        msg = f"Entry {index} of 'pages' must be a mapping."
        raise SiteConfigError(msg)
    src = _string_list(payload.get("src"), field=f"pages[{index}].src")
    glob = _string_list(payload.get("glob"), field=f"pages[{index}].glob")
    if not src and not glob:
        msg = f"Entry {index} of 'pages' needs a 'src' or a 'glob'."
        raise SiteConfigError(msg)
    frontmatter = payload.get("frontmatter")
    if frontmatter is not None and not isinstance(frontmatter, dict):
        msg = f"Field 'pages[{index}].frontmatter' must be a mapping."
        raise SiteConfigError(msg)
    return PageEntry(
        src=src,
        glob=glob,
        glob_exclude=_string_list(
            payload.get("glob_exclude"), field=f"pages[{index}].glob_exclude"
        ),
        title=_optional_str(payload.get("title")),
        layout=_optional_str(payload.get("layout")),
        searchable=_optional_bool(
            payload.get("searchable"), field=f"pages[{index}].searchable"
        ),
        frontmatter=dict(frontmatter) if frontmatter is not None else None,
    )


def _heading_level(value: object) -> int:
    """Validate the heading indexing level (0 disables heading collection)."""
    if value is None:
        return 3
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 6:
        msg = "Field 'heading_indexing_level' must be an integer between 0 and 6."
        raise SiteConfigError(msg)
    return value


def _as_mapping(value: object, *, field: str) -> typ.Mapping[str, typ.Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Field '{field}' must be a mapping."
        raise SiteConfigError(msg)
    return value


__all__ = [
    "_as_mapping",
    "_build_page_entry",
    "_heading_level",
    "_normalize_base_url",
    "_optional_bool",
    "_optional_str",
    "_string_list",
]
