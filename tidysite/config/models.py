"""Typed dataclasses describing tidysite configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from tidysite._constants import DEFAULT_INDEX_URL_TEMPLATE


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True, frozen=True)
class ThemeConfig:
    """Visual theming applied to every generated page."""

    site_name: str = "tidymodels"
    tagline: str = "Tutorials and reference"
    base_url: str = "/"
    footer_note: str = ""


@dc.dataclass(slots=True, frozen=True)
class RenderSettings:
    """Explicit rendering defaults handed to the content renderer.

    Attributes
    ----------
    pygments_style : str
        Pygments style used for highlighted chunks and prose code blocks.
    fig_width : float
        Default figure width in inches.
    fig_height : float
        Default figure height in inches.
    dpi : int
        Pixels per inch used to size captured images.
    """

    pygments_style: str = "friendly"
    fig_width: float = 7.0
    fig_height: float = 5.0
    dpi: int = 72


@dc.dataclass(slots=True, frozen=True)
class PackageSource:
    """Where the documentation index for one package is found."""

    name: str
    index_url: str | None = None
    index_path: Path | None = None


@dc.dataclass(slots=True, frozen=True)
class ReferenceConfig:
    """Settings for resolving package documentation indexes."""

    index_url_template: str = DEFAULT_INDEX_URL_TEMPLATE
    timeout: float = 30.0
    max_workers: int = 4
    packages: dict[str, PackageSource] = dc.field(default_factory=dict)

    def source_for(self, package: str) -> PackageSource:
        """Return the configured source for ``package`` or a templated default."""
        configured = self.packages.get(package)
        if configured is not None:
            return configured
        return PackageSource(
            name=package, index_url=self.index_url_template.format(package=package)
        )


@dc.dataclass(slots=True, frozen=True)
class SectionConfig:
    """A content section rendered from one subdirectory of the content tree."""

    key: str
    title: str
    path: Path
    weight: int = 0
    description: str = ""


@dc.dataclass(slots=True, frozen=True)
class AuthorConfig:
    """Display metadata for an article author."""

    name: str
    url: str | None = None
    avatar: str | None = None


@dc.dataclass(slots=True, frozen=True)
class CatalogConfig:
    """A reference table built from package documentation indexes.

    Attributes
    ----------
    key : str
        Catalog identifier, also used as the page slug.
    title : str
        Page title.
    section : str
        Section key the catalog page lives in.
    weight : int
        Ordering key among the section's pages.
    packages : tuple[str, ...]
        Packages whose documentation indexes provide the base rows.
    pattern : str | None
        Regular expression a symbol name must match to be included.
    records_path : Path | None
        YAML file with secondary attribute records.
    attributes : tuple[str, ...]
        Attribute names summarised from the secondary records.
    join : str
        ``"left"`` keeps only documented symbols; ``"full"`` also appends
        records without a documented symbol.
    description : str
        Intro text rendered above the table.
    """

    key: str
    title: str
    section: str
    weight: int = 0
    packages: tuple[str, ...] = ()
    pattern: str | None = None
    records_path: Path | None = None
    attributes: tuple[str, ...] = ()
    join: str = "left"
    description: str = ""


@dc.dataclass(slots=True)
class SiteConfig:
    """Fully resolved site configuration."""

    content_dir: Path
    output_dir: Path
    cache_dir: Path
    theme: ThemeConfig = dc.field(default_factory=ThemeConfig)
    render: RenderSettings = dc.field(default_factory=RenderSettings)
    reference: ReferenceConfig = dc.field(default_factory=ReferenceConfig)
    sections: dict[str, SectionConfig] = dc.field(default_factory=dict)
    authors: dict[str, AuthorConfig] = dc.field(default_factory=dict)
    catalogs: dict[str, CatalogConfig] = dc.field(default_factory=dict)

    def get_section(self, key: str) -> SectionConfig:
        """Return the section named ``key``."""
        try:
            return self.sections[key]
        except KeyError as exc:
            available = ", ".join(sorted(self.sections))
            msg = f"Unknown section '{key}'. Known sections: {available}"
            raise SiteConfigError(msg) from exc

    def ordered_sections(self) -> list[SectionConfig]:
        """Return sections ordered by weight, then title."""
        return sorted(self.sections.values(), key=lambda s: (s.weight, s.title))


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
]
