"""Orchestrate a full or single-section site build.

:class:`SiteBuilder` wires the pipeline together: documentation indexes are
fetched once per package and joined into catalogs, articles are loaded and
rendered in their own evaluation contexts, and the assembler writes every
page with navigation computed from the pages that actually rendered. Each
fatal :class:`~tidysite.errors.BuildError` is recorded against the document,
catalog, or package it concerns and the build carries on, so the returned
:class:`~tidysite.errors.BuildReport` lists every failure at once.

Example
-------
>>> from pathlib import Path
>>> from tidysite.builder import SiteBuilder
>>> from tidysite.config import load_site_config
>>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> report = SiteBuilder(config).build()  # doctest: +SKIP
>>> report.ok  # doctest: +SKIP
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import posixpath
import typing as typ

from tidysite._constants import ARTICLE_SUFFIXES
from tidysite.articles import Article, load_article
from tidysite.catalog import Catalog, CatalogBuilder
from tidysite.errors import ArticleParseError, BuildError, BuildReport
from tidysite.reference import MetadataExtractor, filter_entries
from tidysite.render import (
    ArticleLinkExtension,
    ChunkCache,
    ContentRenderer,
    RenderedContent,
)
from tidysite.site import PageRef, SiteAssembler

if typ.TYPE_CHECKING:
    from pathlib import Path

    from tidysite.config import CatalogConfig, SectionConfig, SiteConfig

logger = logging.getLogger(__name__)


def discover_articles(directory: Path) -> list[Path]:
    """Return article sources under ``directory`` in a stable order.

    Files whose name starts with ``_`` or ``.`` are skipped. When one
    directory holds several sources with the same stem (``index.Rmd`` next to
    a knitted ``index.md``), only the first by suffix preference is kept.
    """
    if not directory.is_dir():
        return []
    preference = {suffix: rank for rank, suffix in enumerate(ARTICLE_SUFFIXES)}
    chosen: dict[tuple[Path, str], Path] = {}
    for path in sorted(directory.rglob("*")):
        if not path.is_file() or path.suffix not in preference:
            continue
        if path.name.startswith(("_", ".")):
            continue
        key = (path.parent, path.stem)
        current = chosen.get(key)
        if current is None or preference[path.suffix] < preference[current.suffix]:
            chosen[key] = path
    return sorted(chosen.values())


@dc.dataclass(slots=True)
class _SectionPlan:
    """Everything the builder knows about one section during a pass."""

    config: SectionConfig
    selected: bool
    articles: list[Article] = dc.field(default_factory=list)
    rendered: list[RenderedContent] = dc.field(default_factory=list)
    catalogs: list[Catalog] = dc.field(default_factory=list)
    catalog_configs: list[CatalogConfig] = dc.field(default_factory=list)


class SiteBuilder:
    """Build the site described by a :class:`~tidysite.config.SiteConfig`."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        extractor: MetadataExtractor | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        config : SiteConfig
            Parsed site configuration.
        output_dir : Path, optional
            Override for ``config.output_dir``.
        extractor : MetadataExtractor, optional
            Extractor used for documentation indexes; defaults to one built
            from ``config.reference``.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        self.extractor = extractor or MetadataExtractor(config.reference)
        self.assembler = SiteAssembler(
            config, templates_dir=templates_dir, output_dir=self.output_dir
        )
        self.renderer = ContentRenderer(
            config.render,
            cache=ChunkCache(config.cache_dir),
            link_extension_factory=self._link_extension,
        )
        self._source_urls: dict[str, str] = {}

    def build(self) -> BuildReport:
        """Build every section, catalog, and shared page."""
        return self._run(set(self.config.sections))

    def build_section(self, key: str) -> BuildReport:
        """Build one section plus the shared pages that list it.

        Raises
        ------
        SiteConfigError
            If ``key`` names no configured section.
        """
        self.config.get_section(key)
        return self._run({key})

    def _run(self, selected: set[str]) -> BuildReport:
        report = BuildReport()
        plans = {
            section.key: _SectionPlan(config=section, selected=section.key in selected)
            for section in self.config.ordered_sections()
        }
        for catalog_config in self.config.catalogs.values():
            plans[catalog_config.section].catalog_configs.append(catalog_config)

        for plan in plans.values():
            plan.articles = self._load_section(plan, report)
        self._source_urls = self._index_sources(plans.values())

        for plan in plans.values():
            if plan.selected:
                plan.rendered = self._render_articles(plan.articles, report)
        self._build_catalogs([p for p in plans.values() if p.selected], report)

        section_refs = {key: self._section_refs(plan) for key, plan in plans.items()}
        self.assembler.set_navigation(section_refs)

        listed_articles: list[Article] = []
        for key, plan in plans.items():
            refs = section_refs[key]
            if not plan.selected:
                listed_articles.extend(plan.articles)
                continue
            listed_articles.extend(content.article for content in plan.rendered)
            for content in plan.rendered:
                page = self.assembler.assemble_article(content, refs)
                report.written.extend(self.assembler.write_page(page))
            for catalog in plan.catalogs:
                page = self.assembler.assemble_catalog(catalog, refs)
                report.written.extend(self.assembler.write_page(page))
            report.written.append(self.assembler.write_section_index(plan.config, refs))

        report.written.extend(self.assembler.write_taxonomies(listed_articles))
        report.written.append(self.assembler.write_home())
        report.written.append(self.assembler.write_stylesheet(self.renderer.stylesheet))
        logger.info(
            "Wrote %d files with %d failure(s)", len(report.written), len(report.failures)
        )
        return report

    def _load_section(self, plan: _SectionPlan, report: BuildReport) -> list[Article]:
        articles: list[Article] = []
        seen: dict[str, str] = {
            config.key: f"catalog '{config.key}'" for config in plan.catalog_configs
        }
        for path in discover_articles(plan.config.path):
            try:
                article = load_article(path, section=plan.config.key)
                if article.slug in seen:
                    other = seen[article.slug]
                    detail = f"slug '{article.slug}' is already used by {other}"
                    raise ArticleParseError(path, detail)
            except BuildError as exc:
                if plan.selected:
                    logger.error("%s", exc)
                    report.record(exc)
                else:
                    logger.debug("Skipping %s in an unselected section: %s", path, exc)
                continue
            seen[article.slug] = str(path)
            articles.append(article)
        logger.info("Loaded %d article(s) from %s", len(articles), plan.config.path)
        return articles

    def _render_articles(
        self, articles: cabc.Iterable[Article], report: BuildReport
    ) -> list[RenderedContent]:
        rendered: list[RenderedContent] = []
        for article in articles:
            try:
                rendered.append(self.renderer.render(article))
            except BuildError as exc:
                logger.error("%s", exc)
                report.record(exc)
        return rendered

    def _build_catalogs(
        self, plans: cabc.Sequence[_SectionPlan], report: BuildReport
    ) -> None:
        configs = [config for plan in plans for config in plan.catalog_configs]
        if not configs:
            return
        packages = [package for config in configs for package in config.packages]
        resolved, failures = self.extractor.extract_many(packages)
        for package in dict.fromkeys(packages):
            if package in failures:
                report.record(failures[package])

        for plan in plans:
            for config in plan.catalog_configs:
                missing = [name for name in config.packages if name in failures]
                if missing:
                    logger.warning(
                        "Skipping catalog %s; unavailable package(s): %s",
                        config.key,
                        ", ".join(missing),
                    )
                    continue
                entries = [
                    entry for name in config.packages for entry in resolved[name]
                ]
                try:
                    catalog = CatalogBuilder(config).build(
                        filter_entries(entries, config.pattern)
                    )
                except BuildError as exc:
                    logger.error("%s", exc)
                    report.record(exc)
                    continue
                plan.catalogs.append(catalog)

    def _section_refs(self, plan: _SectionPlan) -> list[PageRef]:
        if plan.selected:
            articles: cabc.Iterable[Article] = (c.article for c in plan.rendered)
            catalogs: cabc.Iterable[Catalog | CatalogConfig] = plan.catalogs
        else:
            articles = plan.articles
            catalogs = plan.catalog_configs
        refs = [self.assembler.article_ref(article) for article in articles]
        refs.extend(self.assembler.catalog_ref(catalog) for catalog in catalogs)
        return refs

    def _index_sources(self, plans: cabc.Iterable[_SectionPlan]) -> dict[str, str]:
        urls: dict[str, str] = {}
        for plan in plans:
            for article in plan.articles:
                key = self._content_key(article.source_path)
                if key is not None:
                    urls[key] = self.assembler.page_url(article.section, article.slug)
        return urls

    def _content_key(self, path: Path) -> str | None:
        try:
            relative = path.resolve().relative_to(self.config.content_dir.resolve())
        except ValueError:
            return None
        return relative.as_posix()

    def _link_extension(self, article: Article) -> ArticleLinkExtension | None:
        key = self._content_key(article.source_path)
        if key is None:
            return None
        return ArticleLinkExtension(posixpath.dirname(key), self._source_urls.get)


__all__ = ["SiteBuilder", "discover_articles"]
