"""Incremental site builder for markdown sources with includes and sub-sites.

This package exposes the CLI entry points behind the ``pagesmith`` console
script, which builds a site and can keep rebuilding the pages affected by each
file change.

Exports
-------
- ``app``: Cyclopts application holding the ``build`` and ``watch`` commands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from pagesmith import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
