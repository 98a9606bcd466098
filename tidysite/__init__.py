"""Build the tidymodels-style tutorial and reference website.

This package turns front-matter articles with executable code chunks and
package documentation indexes into a static, navigable HTML site. The CLI in
:mod:`tidysite.cli` drives :class:`tidysite.builder.SiteBuilder`.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from tidysite import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
