"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .helpers import (
    _build_authors,
    _build_catalog_config,
    _build_reference_config,
    _build_render_settings,
    _build_sections,
    _build_theme_config,
    _resolve_path,
)
from .models import CatalogConfig, SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing the site, sections, and catalogs.

    Relative paths inside the file resolve against the file's directory.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/site.yaml``).

    Returns
    -------
    SiteConfig
        Parsed configuration with theme, render settings, reference sources,
        sections, authors, and catalogs.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    SiteConfigError
        If the top-level structure is not a mapping, a catalog is invalid, or
        a catalog points at an unknown section.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tidysite.config import load_site_config
    >>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
    >>> sorted(config.sections)  # doctest: +SKIP
    ['find', 'learn', 'start']
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise SiteConfigError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    root = path.resolve().parent

    content_dir = _resolve_path(raw.get("content_dir"), root, "content")
    output_dir = _resolve_path(raw.get("output_dir"), root, "public")
    cache_dir = _resolve_path(raw.get("cache_dir"), root, ".tidysite-cache")

    sections = _build_sections(raw.get("sections"), content_dir)
    catalogs: dict[str, CatalogConfig] = {}
    for key, payload in (raw.get("catalogs") or {}).items():
        match payload:
            case dict():
                catalogs[key] = _build_catalog_config(key, payload, root)
            case _:
                continue
    for catalog in catalogs.values():
        if catalog.section not in sections:
            msg = (
                f"Catalog '{catalog.key}' refers to unknown section "
                f"'{catalog.section}'."
            )
            raise SiteConfigError(msg)

    return SiteConfig(
        content_dir=content_dir,
        output_dir=output_dir,
        cache_dir=cache_dir,
        theme=_build_theme_config(raw.get("site") or {}),
        render=_build_render_settings(raw.get("render") or {}),
        reference=_build_reference_config(raw.get("reference") or {}, root),
        sections=sections,
        authors=_build_authors(raw.get("authors")),
        catalogs=catalogs,
    )


__all__ = ["load_site_config"]
