"""Ordering, prev/next links, and heading anchors for assembled pages.

Siblings are ordered by ``(weight, title, slug)``, never by file name or load
order, so prev/next links are stable however the content directory is
walked.

Example
-------
>>> from tidysite.site.models import PageRef
>>> refs = [
...     PageRef("Tune", 3, "tune", "/start/tune/"),
...     PageRef("Models", 1, "models", "/start/models/"),
...     PageRef("Recipes", 2, "recipes", "/start/recipes/"),
... ]
>>> prev, nxt = neighbours(refs, "recipes")
>>> (prev.label, nxt.label)
('Models', 'Tune')
"""

from __future__ import annotations

import collections.abc as cabc
import re
import typing as typ
from html import unescape

from .models import NavLink, PageRef, TocItem

HEADING_PATTERN = re.compile(
    r"<h(?P<level>[23])(?P<attrs>(?:\s[^>]*)?)>(?P<body>.*?)</h(?P=level)>",
    re.IGNORECASE | re.DOTALL,
)
ID_PATTERN = re.compile(r"""\sid=(["'])(?P<id>.*?)\1""", re.IGNORECASE)
TAG_PATTERN = re.compile(r"<[^>]+>")


def slugify(value: str) -> str:
    """Convert a string into a lowercase hyphen-separated slug.

    Examples
    --------
    >>> slugify("Tidy Modeling: Part 2")
    'tidy-modeling-part-2'
    """
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def unique_anchor(base: str, used: set[str]) -> str:
    """Return a unique anchor, appending numeric suffixes and mutating ``used``."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def order_siblings(refs: cabc.Iterable[PageRef]) -> list[PageRef]:
    """Return ``refs`` sorted by weight, then title, then slug."""
    return sorted(refs, key=lambda ref: ref.order_key)


def neighbours(
    refs: cabc.Iterable[PageRef], slug: str
) -> tuple[NavLink | None, NavLink | None]:
    """Return the previous and next links around ``slug`` among ``refs``.

    Raises
    ------
    KeyError
        If ``slug`` is not one of the siblings.
    ValueError
        If more than one sibling uses ``slug``.
    """
    ordered = order_siblings(refs)
    matches = sum(1 for ref in ordered if ref.slug == slug)
    if matches > 1:
        msg = f"'{slug}' is used by {matches} of the section's pages."
        raise ValueError(msg)
    for index, ref in enumerate(ordered):
        if ref.slug == slug:
            prev = ordered[index - 1].link() if index > 0 else None
            nxt = ordered[index + 1].link() if index + 1 < len(ordered) else None
            return prev, nxt
    msg = f"'{slug}' is not among the section's pages."
    raise KeyError(msg)


def build_toc(html: str) -> tuple[str, list[TocItem]]:
    """Collect ``h2``/``h3`` headings and give each a page-unique ``id``.

    Existing ids are kept unless an earlier heading already claimed them;
    headings without one get an id slugified from their text.

    Returns
    -------
    tuple[str, list[TocItem]]
        The HTML with heading ids applied, and the headings in order.

    Examples
    --------
    >>> html, toc = build_toc('<h2 id="fit">Fit</h2><p>x</p><h2>Fit</h2>')
    >>> [item.anchor for item in toc]
    ['fit', 'fit-2']
    """
    used: set[str] = set()
    items: list[TocItem] = []

    def _repl(match: re.Match[str]) -> str:
        level = int(match.group("level"))
        attrs = match.group("attrs") or ""
        body = match.group("body")
        label = unescape(TAG_PATTERN.sub("", body)).strip()
        existing = ID_PATTERN.search(attrs)
        base = existing.group("id") if existing else slugify(label)
        anchor = unique_anchor(base or f"section-{len(items) + 1}", used)
        items.append(TocItem(label=label, anchor=anchor, level=level))
        attrs = ID_PATTERN.sub("", attrs)
        return f'<h{level} id="{anchor}"{attrs}>{body}</h{level}>'

    return HEADING_PATTERN.sub(_repl, html), items


def sidebar_groups(
    sections: cabc.Sequence[tuple[str, str, str, list[PageRef]]], active_url: str | None
) -> list[dict[str, typ.Any]]:
    """Build sidebar navigation groups, marking the page at ``active_url``.

    Each input tuple is ``(key, title, url, refs)``.
    """
    groups: list[dict[str, typ.Any]] = []
    for key, title, url, refs in sections:
        entries = [
            {"label": ref.title, "href": ref.url, "is_active": ref.url == active_url}
            for ref in order_siblings(refs)
        ]
        groups.append(
            {
                "key": key,
                "label": title,
                "href": url,
                "is_open": any(entry["is_active"] for entry in entries),
                "entries": entries,
            }
        )
    return groups


__all__ = [
    "build_toc",
    "neighbours",
    "order_siblings",
    "sidebar_groups",
    "slugify",
    "unique_anchor",
]
