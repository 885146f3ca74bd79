"""Filesystem and path helpers shared by the site model and the pipeline.

Reads and writes are exposed as coroutines that hand the blocking call to a
worker thread, so page generation tasks suspend at file I/O and interleave on
the event loop.
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path, PurePosixPath

URL_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://|^//")


def is_url(target: str | os.PathLike[str]) -> bool:
    """Return True when ``target`` looks like an absolute or protocol-relative URL."""
    return bool(URL_PATTERN.match(str(target)))


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Return an absolute, lexically normalized path without resolving symlinks."""
    return Path(os.path.abspath(path))


def is_inside(path: Path, root: Path) -> bool:
    """Return True when ``path`` equals ``root`` or lies beneath it."""
    return path == root or path.is_relative_to(root)


def set_extension(path: str, extension: str) -> str:
    """Replace the suffix of a POSIX ``path`` with ``extension``."""
    posix = PurePosixPath(path)
    return str(posix.with_name(posix.stem + extension))


def remove_extension(path: Path) -> Path:
    """Return ``path`` without its final suffix."""
    return path.with_name(path.stem) if path.suffix else path


def ensure_posix(path: str | os.PathLike[str]) -> str:
    """Return ``path`` with forward slashes."""
    return str(path).replace(os.sep, "/")


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


async def output_file(path: Path, text: str) -> None:
    """Write ``text`` to ``path``, creating parent directories as needed."""
    await asyncio.to_thread(_write_text, path, text)


async def read_file(path: Path) -> str:
    """Read a UTF-8 file without blocking the event loop."""
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


__all__ = [
    "ensure_posix",
    "is_inside",
    "is_url",
    "normalize_path",
    "output_file",
    "read_file",
    "remove_extension",
    "set_extension",
]
