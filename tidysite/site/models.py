"""Dataclasses passed from the site assembler to the page templates."""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


@dc.dataclass(slots=True, frozen=True)
class NavLink:
    """A labelled link to another generated page."""

    label: str
    url: str


@dc.dataclass(slots=True, frozen=True)
class PageRef:
    """A page's position within its section.

    Attributes
    ----------
    title : str
        Page title, also the secondary ordering key.
    weight : int
        Primary ordering key.
    slug : str
        URL-safe identifier and final tiebreaker.
    url : str
        Site URL of the page.
    description : str
        Summary shown on listing pages.
    """

    title: str
    weight: int
    slug: str
    url: str
    description: str = ""

    @property
    def order_key(self) -> tuple[int, str, str]:
        """Return the ``(weight, title, slug)`` sort key."""
        return (self.weight, self.title, self.slug)

    def link(self) -> NavLink:
        """Return a :class:`NavLink` pointing at this page."""
        return NavLink(label=self.title, url=self.url)


@dc.dataclass(slots=True, frozen=True)
class TocItem:
    """One ``h2``/``h3`` heading of the rendered content."""

    label: str
    anchor: str
    level: int


@dc.dataclass(slots=True, frozen=True)
class AuthorBlock:
    """Author display information; ``url`` and ``avatar`` come from config."""

    name: str
    url: str | None = None
    avatar: str | None = None


@dc.dataclass(slots=True, frozen=True)
class Banner:
    """Banner image shown above the article body.

    ``source`` is set for local images, which are copied beside the page
    when it is written; remote images leave it ``None``.
    """

    src: str
    credit: str | None = None
    credit_url: str | None = None
    source: Path | None = None


@dc.dataclass(slots=True)
class Page:
    """A fully assembled page ready to render.

    Attributes
    ----------
    kind : str
        ``"article"`` or ``"catalog"``.
    title : str
        Page title.
    url : str
        Site URL of the page.
    section : str
        Owning section key.
    content_html : str
        Rendered body with heading ids applied.
    output_path : Path
        Destination of the HTML file.
    description : str
        Summary shown under the title.
    toc : list[TocItem]
        Table of contents built from the body headings.
    prev : NavLink | None
        Preceding sibling in the section.
    next : NavLink | None
        Following sibling in the section.
    tags : list[NavLink]
        Links to tag listing pages.
    categories : list[NavLink]
        Links to category listing pages.
    author : AuthorBlock | None
        Author block, omitted when the article names no author.
    banner : Banner | None
        Banner image, omitted when absent or missing on disk.
    date : str | None
        Publication date as written in the front matter.
    catalog : dict[str, typ.Any] | None
        Table columns and rows for catalog pages.
    """

    kind: str
    title: str
    url: str
    section: str
    content_html: str
    output_path: Path
    description: str = ""
    toc: list[TocItem] = dc.field(default_factory=list)
    prev: NavLink | None = None
    next: NavLink | None = None
    tags: list[NavLink] = dc.field(default_factory=list)
    categories: list[NavLink] = dc.field(default_factory=list)
    author: AuthorBlock | None = None
    banner: Banner | None = None
    date: str | None = None
    catalog: dict[str, typ.Any] | None = None


__all__ = ["AuthorBlock", "Banner", "NavLink", "Page", "PageRef", "TocItem"]
