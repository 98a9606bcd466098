"""Cyclopts CLI entrypoint for building the tidysite static website.

The ``tidysite`` console script defined here builds the whole site, or a single
section plus the shared pages that list it, from ``config/site.yaml``. Every
file written is printed as ``wrote <path>``; build failures are printed after
the build finishes and make the command exit with status 1.

Examples
--------
Build the whole site with the default configuration:

>>> from tidysite.cli import main
>>> main()  # doctest: +SKIP

Rebuild one section into a scratch directory:

>>> from tidysite.cli import app
>>> app.run(["section", "learn", "--output-dir", "dist"])  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .builder import SiteBuilder
from .config import load_site_config
from .log import setup_logging

if typ.TYPE_CHECKING:
    from .errors import BuildReport

DEFAULT_CONFIG = Path("config/site.yaml")

app = App(name="tidysite", config=cyclopts.config.Env("TIDYSITE_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _report(report: BuildReport) -> None:
    """Print written files and failures; exit with status 1 on failure."""
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    if report.ok:
        return
    for failure in report.failures:
        print(f"failed [{failure.kind}] {failure.message}")
    raise SystemExit(1)


@app.command(help="Build every section, catalog, and shared page of the site.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="TIDYSITE_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="TIDYSITE_OUTPUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug output", env_var="TIDYSITE_VERBOSE")
    ] = False,
) -> None:
    """Build the complete site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``TIDYSITE_CONFIG``).
    output_dir : Path or None, optional
        Override for the configured output directory.
    verbose : bool, optional
        Enable debug logging.

    Raises
    ------
    SystemExit
        With status 1 when any article, catalog, or package failed.
    """
    setup_logging(2 if verbose else 1)
    site_config = load_site_config(config)
    _report(SiteBuilder(site_config, output_dir=output_dir).build())


@app.command(help="Build one section plus the home, tag, and category pages.")
def section(
    name: str,
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="TIDYSITE_CONFIG")
    ] = DEFAULT_CONFIG,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="TIDYSITE_OUTPUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug output", env_var="TIDYSITE_VERBOSE")
    ] = False,
) -> None:
    """Build the section ``name``.

    Other sections are loaded, not rendered, so the sidebar and tag pages
    still list them.

    Raises
    ------
    SiteConfigError
        If ``name`` is not a configured section.
    SystemExit
        With status 1 when any article, catalog, or package failed.
    """
    setup_logging(2 if verbose else 1)
    site_config = load_site_config(config)
    _report(SiteBuilder(site_config, output_dir=output_dir).build_section(name))


def main() -> None:
    """Invoke the Cyclopts application that powers the ``tidysite`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
