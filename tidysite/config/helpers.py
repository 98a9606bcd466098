"""Utility helpers shared by the tidysite configuration loader."""

from __future__ import annotations

import re
import typing as typ
from pathlib import Path

from .models import (
    AuthorConfig,
    CatalogConfig,
    PackageSource,
    ReferenceConfig,
    RenderSettings,
    SectionConfig,
    SiteConfigError,
    ThemeConfig,
)

JOIN_KINDS = frozenset({"left", "full"})


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _string_tuple(value: object | None) -> tuple[str, ...]:
    """Normalize a scalar or list into a tuple of non-empty strings."""
    match value:
        case None:
            return ()
        case str() as text:
            return (text.strip(),) if text.strip() else ()
        case list() | tuple():
            return tuple(str(item).strip() for item in value if str(item).strip())
        case _:
            msg = f"Expected a string or list of strings, got {type(value).__name__}"
            raise SiteConfigError(msg)


def _resolve_path(value: object | None, root: Path, default: str) -> Path:
    """Resolve ``value`` (or ``default``) relative to the config directory."""
    path = Path(str(value)) if value else Path(default)
    if path.is_absolute():
        return path
    return root / path


def _title_from_key(key: str) -> str:
    return re.sub(r"[-_]+", " ", key).strip().title()


def _build_theme_config(payload: typ.Mapping[str, typ.Any]) -> ThemeConfig:
    """Build a ThemeConfig from the ``site`` mapping."""
    base = ThemeConfig()
    base_url = str(payload.get("base_url", base.base_url))
    if not base_url.endswith("/"):
        base_url = f"{base_url}/"
    return ThemeConfig(
        site_name=payload.get("title", base.site_name),
        tagline=payload.get("tagline", base.tagline),
        base_url=base_url,
        footer_note=payload.get("footer_note", base.footer_note),
    )


def _build_render_settings(payload: typ.Mapping[str, typ.Any]) -> RenderSettings:
    """Build RenderSettings, validating numeric fields."""
    base = RenderSettings()
    try:
        return RenderSettings(
            pygments_style=payload.get("pygments_style", base.pygments_style),
            fig_width=float(payload.get("fig_width", base.fig_width)),
            fig_height=float(payload.get("fig_height", base.fig_height)),
            dpi=int(payload.get("dpi", base.dpi)),
        )
    except (TypeError, ValueError) as exc:
        msg = f"Invalid render settings: {exc}"
        raise SiteConfigError(msg) from exc


def _build_reference_config(
    payload: typ.Mapping[str, typ.Any], root: Path
) -> ReferenceConfig:
    """Build the ReferenceConfig, including per-package index overrides."""
    base = ReferenceConfig()
    packages: dict[str, PackageSource] = {}
    for name, entry in (payload.get("packages") or {}).items():
        if not isinstance(entry, dict):
            continue
        index_path = entry.get("index_path")
        packages[name] = PackageSource(
            name=name,
            index_url=_optional_str(entry.get("index_url")),
            index_path=_resolve_path(index_path, root, "") if index_path else None,
        )
    max_workers = int(payload.get("max_workers", base.max_workers))
    if max_workers < 1:
        msg = "reference.max_workers must be at least 1"
        raise SiteConfigError(msg)
    return ReferenceConfig(
        index_url_template=payload.get("index_url_template", base.index_url_template),
        timeout=float(payload.get("timeout", base.timeout)),
        max_workers=max_workers,
        packages=packages,
    )


def _build_sections(
    payload: typ.Mapping[str, typ.Any] | None, content_dir: Path
) -> dict[str, SectionConfig]:
    """Return configured sections, or one per content subdirectory."""
    sections: dict[str, SectionConfig] = {}
    if payload:
        for key, entry in payload.items():
            entry = entry if isinstance(entry, dict) else {}
            sections[key] = SectionConfig(
                key=key,
                title=entry.get("title") or _title_from_key(key),
                path=content_dir / str(entry.get("path", key)),
                weight=int(entry.get("weight", 0)),
                description=entry.get("description", ""),
            )
        return sections

    if content_dir.is_dir():
        for child in sorted(content_dir.iterdir()):
            if child.is_dir() and not child.name.startswith((".", "_")):
                sections[child.name] = SectionConfig(
                    key=child.name, title=_title_from_key(child.name), path=child
                )
    return sections


def _build_authors(payload: typ.Mapping[str, typ.Any] | None) -> dict[str, AuthorConfig]:
    authors: dict[str, AuthorConfig] = {}
    for name, entry in (payload or {}).items():
        entry = entry if isinstance(entry, dict) else {}
        authors[name] = AuthorConfig(
            name=name,
            url=_optional_str(entry.get("url")),
            avatar=_optional_str(entry.get("avatar")),
        )
    return authors


def _build_catalog_config(
    key: str, payload: typ.Mapping[str, typ.Any], root: Path
) -> CatalogConfig:
    """Build one CatalogConfig, validating the regex and join kind."""
    section = _optional_str(payload.get("section"))
    if not section:
        msg = f"Catalog '{key}' is missing 'section'."
        raise SiteConfigError(msg)
    packages = _string_tuple(payload.get("packages"))
    if not packages:
        msg = f"Catalog '{key}' must list at least one package."
        raise SiteConfigError(msg)
    pattern = _optional_str(payload.get("pattern"))
    if pattern:
        try:
            re.compile(pattern)
        except re.error as exc:
            msg = f"Catalog '{key}' has an invalid pattern {pattern!r}: {exc}"
            raise SiteConfigError(msg) from exc
    join = str(payload.get("join", "left")).lower()
    if join not in JOIN_KINDS:
        msg = f"Catalog '{key}' has unknown join '{join}'; expected left or full."
        raise SiteConfigError(msg)
    records = payload.get("records_path")
    return CatalogConfig(
        key=key,
        title=payload.get("title") or _title_from_key(key),
        section=section,
        weight=int(payload.get("weight", 0)),
        packages=packages,
        pattern=pattern,
        records_path=_resolve_path(records, root, "") if records else None,
        attributes=_string_tuple(payload.get("attributes")),
        join=join,
        description=payload.get("description", ""),
    )


__all__ = [
    "JOIN_KINDS",
    "_build_authors",
    "_build_catalog_config",
    "_build_reference_config",
    "_build_render_settings",
    "_build_sections",
    "_build_theme_config",
    "_optional_str",
    "_resolve_path",
    "_string_tuple",
]
