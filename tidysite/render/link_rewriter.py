"""Rewrite relative links between article sources to generated page URLs."""

from __future__ import annotations

import collections.abc as cabc
import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from tidysite._constants import ARTICLE_SUFFIXES

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from markdown import Markdown
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any

UrlResolver = cabc.Callable[[str], str | None]


class ArticleLinkExtension(Extension):
    """Point links such as ``../models/index.Rmd`` at the rendered page.

    ``base_dir`` is the linking article's directory relative to the content
    root (POSIX form); ``resolve`` maps a content-relative source path to the
    page URL, returning ``None`` for paths that are not articles.
    """

    def __init__(self, base_dir: str, resolve: UrlResolver) -> None:
        super().__init__()
        self.base_dir = base_dir
        self.resolve = resolve

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the article-link treeprocessor on the Markdown instance."""
        processor = ArticleLinkTreeprocessor(md, self.base_dir, self.resolve)
        md.treeprocessors.register(processor, "tidysite_article_links", 15)


class ArticleLinkTreeprocessor(Treeprocessor):
    """Rewrite anchors whose target is another article source file."""

    def __init__(self, md: Markdown, base_dir: str, resolve: UrlResolver) -> None:
        super().__init__(md)
        self.base_dir = base_dir
        self.resolve = resolve

    def run(self, root: Element) -> Element:
        """Rewrite relative anchors in the parsed markdown tree."""
        for element in root.iter():
            if element.tag == "a":
                rewritten = self.rewrite(element.get("href"))
                if rewritten:
                    element.set("href", rewritten)
        return root

    def rewrite(self, target: str | None) -> str | None:
        """Return the page URL for an article source link, else ``None``."""
        if not target or target.startswith(("#", "//", "/")) or "://" in target:
            return None
        lower = target.lower()
        if lower.startswith(("mailto:", "tel:", "data:", "javascript:")):
            return None
        parsed = urlsplit(target)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        if not parsed.path.endswith(ARTICLE_SUFFIXES):
            return None

        joined = posixpath.normpath(posixpath.join(self.base_dir, parsed.path))
        if joined.startswith("../") or joined in (".", ".."):
            return None
        url = self.resolve(joined)
        if url is None:
            return None
        if parsed.fragment:
            url = f"{url}#{parsed.fragment}"
        return url


__all__ = ["ArticleLinkExtension", "ArticleLinkTreeprocessor", "UrlResolver"]
