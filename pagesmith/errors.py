"""Exceptions raised while generating pages and fragments."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class GenerationError(RuntimeError):
    """Raised when a page or fragment cannot be generated.

    Attributes
    ----------
    path : Path | None
        Source file that was being generated when the failure occurred.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class MissingIncludeError(GenerationError):
    """Describes an include whose target does not exist.

    Missing includes never abort a build: the markup resolver records the
    reference as a dependency and logs this error as a warning, so creating
    the file later triggers a rebuild of the including page.
    """

    def __init__(self, reference: Path, *, included_from: Path) -> None:
        msg = f"Missing include '{reference}' referenced from '{included_from}'"
        super().__init__(msg, path=included_from)
        self.reference = reference


__all__ = ["GenerationError", "MissingIncludeError"]
