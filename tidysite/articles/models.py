"""Dataclasses describing loaded articles and their chunk options."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ
from pathlib import Path

OPTION_ALIASES = {
    "fig.height": "fig_height",
    "fig.width": "fig_width",
}
RESULTS_MODES = frozenset({"markup", "hide", "asis"})


@dc.dataclass(slots=True, frozen=True)
class ChunkOptions:
    """Effective options for one code chunk.

    Values layer immutably: site defaults, then the article's
    ``chunk_options`` front matter, then the chunk header. Each layer is
    applied with :meth:`merged`, which returns a new value.

    Attributes
    ----------
    include : bool
        Emit anything at all for the chunk.
    echo : bool
        Emit the chunk source.
    eval : bool
        Execute the chunk.
    message : bool
        Keep text written to stderr.
    warning : bool
        Keep Python warnings raised while executing.
    fig_height : float
        Image height in inches.
    fig_width : float
        Image width in inches.
    cache : bool
        Reuse a stored result keyed by label and content hash.
    results : str
        ``"markup"`` (default), ``"hide"``, or ``"asis"``.
    """

    include: bool = True
    echo: bool = True
    eval: bool = True
    message: bool = True
    warning: bool = True
    fig_height: float = 5.0
    fig_width: float = 7.0
    cache: bool = False
    results: str = "markup"

    def merged(self, overrides: cabc.Mapping[str, typ.Any]) -> ChunkOptions:
        """Return a copy with known ``overrides`` applied.

        Dotted knitr names (``fig.height``) are accepted; unknown option names
        are ignored.

        Examples
        --------
        >>> base = ChunkOptions()
        >>> layered = base.merged({"echo": False, "fig.height": 3})
        >>> (base.echo, layered.echo, layered.fig_height)
        (True, False, 3.0)
        """
        known = {field.name for field in dc.fields(self)}
        changes: dict[str, typ.Any] = {}
        for raw_name, value in overrides.items():
            name = OPTION_ALIASES.get(raw_name, raw_name)
            if name not in known:
                continue
            changes[name] = _coerce_option(name, value)
        return dc.replace(self, **changes) if changes else self

    def digest_items(self) -> tuple[tuple[str, object], ...]:
        """Return a stable tuple of option values used in cache keys."""
        return tuple((field.name, getattr(self, field.name)) for field in dc.fields(self))


def _coerce_option(name: str, value: object) -> object:
    if name in {"fig_height", "fig_width"}:
        try:
            return float(typ.cast("float", value))
        except (TypeError, ValueError) as exc:
            msg = f"Chunk option '{name}' must be numeric, got {value!r}"
            raise ValueError(msg) from exc
    if name == "results":
        text = str(value)
        if text not in RESULTS_MODES:
            msg = f"Chunk option 'results' must be one of {sorted(RESULTS_MODES)}"
            raise ValueError(msg)
        return text
    if not isinstance(value, bool):
        msg = f"Chunk option '{name}' must be TRUE or FALSE, got {value!r}"
        raise ValueError(msg)
    return value


@dc.dataclass(slots=True, frozen=True)
class ProseSegment:
    """Markdown text passed through to the output."""

    markdown: str


@dc.dataclass(slots=True, frozen=True)
class CodeSegment:
    """A fenced, optionally executable code chunk.

    Attributes
    ----------
    engine : str
        Language named in the chunk header (``python``, ``r``, ...).
    label : str
        Chunk identity, unique within the article.
    code : str
        Chunk source without the fences.
    options : dict[str, object]
        Options given in the chunk header, unmerged.
    position : int
        1-based position among the article's code chunks.
    """

    engine: str
    label: str
    code: str
    options: dict[str, object]
    position: int


Segment = ProseSegment | CodeSegment


@dc.dataclass(slots=True, frozen=True)
class PhotoCredit:
    """Banner image and its credit line."""

    url: str
    author: str | None = None
    author_url: str | None = None


@dc.dataclass(slots=True, frozen=True)
class Article:
    """A loaded source document.

    Attributes
    ----------
    title : str
        Page title.
    weight : int
        Ordering key among the section's pages.
    tags : frozenset[str]
        Tag names; each links to a tag listing page.
    categories : frozenset[str]
        Category names.
    description : str
        Short summary shown under the title and in listings.
    segments : tuple[Segment, ...]
        Ordered body segments.
    slug : str
        URL-safe identifier derived from the file or bundle name.
    section : str
        Key of the section the article belongs to.
    source_path : Path
        File the article was loaded from.
    author : str | None
        Author display name.
    date : str | None
        Publication date as written in the front matter.
    photo : PhotoCredit | None
        Banner image metadata.
    chunk_defaults : dict[str, object]
        Article-wide chunk option overrides.
    """

    title: str
    weight: int
    tags: frozenset[str]
    categories: frozenset[str]
    description: str
    segments: tuple[Segment, ...]
    slug: str
    section: str
    source_path: Path
    author: str | None = None
    date: str | None = None
    photo: PhotoCredit | None = None
    chunk_defaults: dict[str, object] = dc.field(default_factory=dict)

    @property
    def code_segments(self) -> list[CodeSegment]:
        """Return the article's code chunks in body order."""
        return [seg for seg in self.segments if isinstance(seg, CodeSegment)]


__all__ = [
    "Article",
    "ChunkOptions",
    "CodeSegment",
    "PhotoCredit",
    "ProseSegment",
    "Segment",
]
