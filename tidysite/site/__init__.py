"""Assemble rendered content into navigable, themed HTML pages."""

from .assembler import STYLESHEET_PATH, SiteAssembler
from .models import AuthorBlock, Banner, NavLink, Page, PageRef, TocItem
from .navigation import build_toc, neighbours, order_siblings, slugify

__all__ = [
    "STYLESHEET_PATH",
    "AuthorBlock",
    "Banner",
    "NavLink",
    "Page",
    "PageRef",
    "SiteAssembler",
    "TocItem",
    "build_toc",
    "neighbours",
    "order_siblings",
    "slugify",
]
