"""Load and validate the tidysite site configuration.

This subpackage parses ``site.yaml``, resolves content/output paths relative to
the file, and produces the typed dataclasses (:class:`SiteConfig`,
:class:`CatalogConfig`, :class:`RenderSettings`, ...) that the builder
consumes. The primary entry point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from tidysite.config import load_site_config
>>> site = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> site.catalogs["functions"].packages  # doctest: +SKIP
('parsnip', 'recipes', 'tune')
"""

from .loader import load_site_config
from .models import (
    AuthorConfig,
    CatalogConfig,
    PackageSource,
    ReferenceConfig,
    RenderSettings,
    SectionConfig,
    SiteConfig,
    SiteConfigError,
    ThemeConfig,
)

__all__ = [
    "AuthorConfig",
    "CatalogConfig",
    "PackageSource",
    "ReferenceConfig",
    "RenderSettings",
    "SectionConfig",
    "SiteConfig",
    "SiteConfigError",
    "ThemeConfig",
    "load_site_config",
]
