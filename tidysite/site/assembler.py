"""Compose rendered articles and catalogs into themed HTML pages.

:class:`SiteAssembler` owns the Jinja environment and the URL layout. Every
page lives at ``<output>/<section>/<slug>/index.html`` and links to its
siblings, tag and category listings, and the sidebar of all sections. Optional
page furniture (author, banner, date) is simply left out when the article does
not provide it.

Example
-------
>>> from pathlib import Path
>>> from tidysite.config import load_site_config
>>> from tidysite.site import SiteAssembler
>>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
>>> assembler = SiteAssembler(config)  # doctest: +SKIP
>>> assembler.page_url("start", "models")  # doctest: +SKIP
'/start/models/'
"""

from __future__ import annotations

import collections
import collections.abc as cabc
import logging
import re
import shutil
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from tidysite._constants import PAGE_FILENAME
from tidysite.render import HtmlContentRenderer

from .models import AuthorBlock, Banner, NavLink, Page, PageRef
from .navigation import build_toc, neighbours, sidebar_groups, slugify

if typ.TYPE_CHECKING:
    from tidysite.articles import Article
    from tidysite.catalog import Catalog
    from tidysite.config import CatalogConfig, SectionConfig, SiteConfig
    from tidysite.render import RenderedContent

logger = logging.getLogger(__name__)

REMOTE_URL_PATTERN = re.compile(r"^(?:[a-z][a-z0-9+.-]*:)?//", re.IGNORECASE)
STYLESHEET_PATH = "assets/pygments.css"
TAXONOMY_KINDS = ("tags", "categories")


class SiteAssembler:
    """Build :class:`Page` values and write them with the package templates."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        templates_dir: Path | None = None,
        output_dir: Path | None = None,
    ) -> None:
        """Initialize the assembler.

        Parameters
        ----------
        config : SiteConfig
            Site configuration providing theme, sections, and authors.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package templates.
        output_dir : Path, optional
            Override for the output directory; defaults to ``config.output_dir``.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        self.base_url = config.theme.base_url
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.markdown = HtmlContentRenderer(config.render.pygments_style)
        self._navigation: list[tuple[str, str, str, list[PageRef]]] = []

    # URL layout

    def page_url(self, section: str, slug: str) -> str:
        """Return the site URL of page ``slug`` in ``section``."""
        return f"{self.base_url}{section}/{slug}/"

    def section_url(self, section: str) -> str:
        """Return the site URL of a section index page."""
        return f"{self.base_url}{section}/"

    def taxonomy_url(self, kind: str, name: str) -> str:
        """Return the listing URL for tag or category ``name``."""
        return f"{self.base_url}{kind}/{_term_slug(name)}/"

    def output_path(self, *parts: str) -> Path:
        """Return the ``index.html`` path under the output directory for ``parts``."""
        return self.output_dir.joinpath(*parts, PAGE_FILENAME)

    def article_ref(self, article: Article) -> PageRef:
        """Return the sibling reference for ``article``."""
        return PageRef(
            title=article.title,
            weight=article.weight,
            slug=article.slug,
            url=self.page_url(article.section, article.slug),
            description=article.description,
        )

    def catalog_ref(self, catalog: Catalog | CatalogConfig) -> PageRef:
        """Return the sibling reference for a built or configured catalog."""
        return PageRef(
            title=catalog.title,
            weight=catalog.weight,
            slug=catalog.key,
            url=self.page_url(catalog.section, catalog.key),
            description=catalog.description,
        )

    def set_navigation(self, section_refs: cabc.Mapping[str, list[PageRef]]) -> None:
        """Record every section's pages for the sidebar, in section order."""
        self._navigation = [
            (
                section.key,
                section.title,
                self.section_url(section.key),
                list(section_refs.get(section.key, [])),
            )
            for section in self.config.ordered_sections()
        ]

    # Page assembly

    def assemble_article(
        self, content: RenderedContent, siblings: cabc.Iterable[PageRef]
    ) -> Page:
        """Wrap rendered article content with navigation and page furniture."""
        article = content.article
        body, toc = build_toc(content.html)
        prev, nxt = neighbours(siblings, article.slug)
        url = self.page_url(article.section, article.slug)
        return Page(
            kind="article",
            title=article.title,
            url=url,
            section=article.section,
            content_html=body,
            output_path=self.output_path(article.section, article.slug),
            description=article.description,
            toc=toc,
            prev=prev,
            next=nxt,
            tags=self._taxonomy_links("tags", article.tags),
            categories=self._taxonomy_links("categories", article.categories),
            author=self._author_block(article.author),
            banner=self._banner(article, url),
            date=article.date,
        )

    def assemble_catalog(
        self, catalog: Catalog, siblings: cabc.Iterable[PageRef]
    ) -> Page:
        """Wrap a catalog table with its description and navigation."""
        body, toc = build_toc(self.markdown.markdown(catalog.description))
        prev, nxt = neighbours(siblings, catalog.key)
        return Page(
            kind="catalog",
            title=catalog.title,
            url=self.page_url(catalog.section, catalog.key),
            section=catalog.section,
            content_html=body,
            output_path=self.output_path(catalog.section, catalog.key),
            toc=toc,
            prev=prev,
            next=nxt,
            catalog={"columns": list(catalog.columns), "rows": catalog.rows()},
        )

    def _taxonomy_links(self, kind: str, names: cabc.Iterable[str]) -> list[NavLink]:
        return [
            NavLink(label=name, url=self.taxonomy_url(kind, name))
            for name in sorted(names, key=str.casefold)
        ]

    def _author_block(self, name: str | None) -> AuthorBlock | None:
        if not name:
            return None
        entry = self.config.authors.get(name)
        if entry is None:
            return AuthorBlock(name=name)
        return AuthorBlock(name=name, url=entry.url, avatar=entry.avatar)

    def _banner(self, article: Article, page_url: str) -> Banner | None:
        photo = article.photo
        if photo is None or not photo.url:
            return None
        if REMOTE_URL_PATTERN.match(photo.url):
            return Banner(src=photo.url, credit=photo.author, credit_url=photo.author_url)
        source = article.source_path.parent / photo.url
        if not source.is_file():
            logger.debug(
                "Banner %s for %s not found; omitting it", source, article.source_path
            )
            return None
        return Banner(
            src=f"{page_url}{source.name}",
            credit=photo.author,
            credit_url=photo.author_url,
            source=source,
        )

    # Writing

    def write_page(self, page: Page) -> list[Path]:
        """Render ``page`` to disk, copying a local banner beside it."""
        template_name = (
            "catalog_page.jinja" if page.kind == "catalog" else "article_page.jinja"
        )
        written = [self._write(page.output_path, template_name, page.url, page=page)]
        if page.banner is not None and page.banner.source is not None:
            target = page.output_path.parent / page.banner.source.name
            shutil.copyfile(page.banner.source, target)
            written.append(target)
        return written

    def write_taxonomies(self, articles: cabc.Iterable[Article]) -> list[Path]:
        """Write one listing page per tag and per category, plus their indexes.

        Listings are sorted by article title.
        """
        articles = list(articles)
        written: list[Path] = []
        for kind in TAXONOMY_KINDS:
            groups: dict[str, list[PageRef]] = collections.defaultdict(list)
            labels: dict[str, str] = {}
            for article in articles:
                for name in getattr(article, kind):
                    slug = _term_slug(name)
                    labels.setdefault(slug, name)
                    groups[slug].append(self.article_ref(article))
            terms: list[dict[str, typ.Any]] = []
            for slug in sorted(groups):
                refs = sorted(groups[slug], key=lambda ref: (ref.title, ref.url))
                label = labels[slug]
                url = f"{self.base_url}{kind}/{slug}/"
                terms.append({"label": label, "href": url, "count": len(refs)})
                written.append(
                    self._write(
                        self.output_path(kind, slug),
                        "taxonomy_page.jinja",
                        url,
                        kind=kind,
                        term=label,
                        refs=refs,
                    )
                )
            if terms:
                written.append(
                    self._write(
                        self.output_path(kind),
                        "taxonomy_index.jinja",
                        f"{self.base_url}{kind}/",
                        kind=kind,
                        terms=terms,
                    )
                )
        return written

    def write_section_index(
        self, section: SectionConfig, refs: cabc.Iterable[PageRef]
    ) -> Path:
        """Write the landing page listing a section's pages in order."""
        ordered = sorted(refs, key=lambda ref: ref.order_key)
        description = self.markdown.markdown(section.description)
        return self._write(
            self.output_path(section.key),
            "section_index.jinja",
            self.section_url(section.key),
            section=section,
            description_html=description,
            refs=ordered,
        )

    def write_home(self) -> Path:
        """Write the site home page listing every section."""
        return self._write(
            self.output_dir / PAGE_FILENAME, "home.jinja", self.base_url
        )

    def write_stylesheet(self, css: str) -> Path:
        """Write the Pygments stylesheet shared by every page."""
        path = self.output_dir / STYLESHEET_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(css, encoding="utf-8")
        return path

    def _write(
        self, path: Path, template_name: str, active_url: str, **context: typ.Any
    ) -> Path:
        template = self.env.get_template(template_name)
        html = template.render(
            theme=self.config.theme,
            base_url=self.base_url,
            stylesheet_url=f"{self.base_url}{STYLESHEET_PATH}",
            nav_groups=sidebar_groups(self._navigation, active_url),
            **context,
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.debug("Wrote %s", path)
        return path


def _term_slug(name: str) -> str:
    return slugify(name) or "untitled"


__all__ = ["STYLESHEET_PATH", "SiteAssembler"]
