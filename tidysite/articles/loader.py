r"""Parse article sources into :class:`~tidysite.articles.models.Article` values.

An article is a text file with a YAML front-matter block followed by a body of
Markdown prose and fenced chunks whose info string is wrapped in braces::

    ```{python fit-model, echo=FALSE, fig.height=4}
    model = fit(data)
    ```

The first token inside the braces is the engine, an optional bare second token
is the chunk label, and ``name=value`` pairs are chunk options. R-style
``TRUE``/``FALSE`` literals are accepted so existing R Markdown sources load
unchanged. Plain fenced blocks without braces stay part of the prose.

Example
-------
>>> from pathlib import Path
>>> from tidysite.articles import load_article
>>> article = load_article(Path("content/start/models/index.Rmd"), section="start")  # doctest: +SKIP
>>> article.slug  # doctest: +SKIP
'models'
"""

from __future__ import annotations

import ast
import logging
import re
import typing as typ
from pathlib import Path

from tidysite._constants import UNNAMED_CHUNK_TEMPLATE
from tidysite.errors import ArticleParseError

from .front_matter import (
    optional_text,
    photo_credit,
    split_front_matter,
    string_set,
    validate_required,
)
from .models import Article, ChunkOptions, CodeSegment, ProseSegment, Segment

logger = logging.getLogger(__name__)

CHUNK_PATTERN = re.compile(
    r"^(?P<fence>`{3,})[ \t]*\{(?P<header>[^}\n]*)\}[ \t]*\r?\n"
    r"(?P<code>.*?)"
    r"^(?P=fence)[ \t]*\r?$\n?",
    re.MULTILINE | re.DOTALL,
)
R_LITERALS = {"TRUE": "True", "FALSE": "False", "T": "True", "F": "False", "NULL": "None"}
R_LITERAL_PATTERN = re.compile(r"\b(TRUE|FALSE|T|F|NULL)\b")
LABEL_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def load_article(path: Path, *, section: str) -> Article:
    """Load one article source from ``path``.

    Parameters
    ----------
    path : Path
        Source file. ``index.*`` files inside a bundle directory take the
        directory name as slug; other files use their stem.
    section : str
        Key of the section that owns the article.

    Returns
    -------
    Article
        Immutable article with front-matter attributes and body segments.

    Raises
    ------
    MalformedFrontMatterError
        When the front matter is missing, unparsable, or lacks ``title`` or
        ``weight``.
    ArticleParseError
        When a chunk header cannot be parsed or a chunk label repeats,
        or the file cannot be read as UTF-8 text.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ArticleParseError(path, f"cannot read source: {exc}") from exc
    return parse_article(text, path, section=section)


def parse_article(text: str, path: Path, *, section: str) -> Article:
    """Parse article ``text`` as if it were loaded from ``path``."""
    meta, body = split_front_matter(text, path)
    title, weight = validate_required(meta, path)
    chunk_defaults = meta.get("chunk_options") or {}
    if not isinstance(chunk_defaults, dict):
        raise ArticleParseError(path, "front matter 'chunk_options' must be a mapping")
    try:
        ChunkOptions().merged(chunk_defaults)
    except ValueError as exc:
        raise ArticleParseError(path, str(exc)) from exc

    return Article(
        title=title,
        weight=weight,
        tags=string_set(meta, "tags", path),
        categories=string_set(meta, "categories", path),
        description=optional_text(meta, "description") or "",
        segments=parse_segments(body, path),
        slug=_article_slug(path),
        section=section,
        source_path=path,
        author=optional_text(meta, "author"),
        date=optional_text(meta, "date"),
        photo=photo_credit(meta, path),
        chunk_defaults=dict(chunk_defaults),
    )


def parse_segments(body: str, document: Path | str) -> tuple[Segment, ...]:
    """Split ``body`` into prose and code segments, in document order."""
    segments: list[Segment] = []
    labels: set[str] = set()
    cursor = 0
    position = 0
    for match in CHUNK_PATTERN.finditer(body):
        prose = body[cursor : match.start()]
        if prose.strip():
            segments.append(ProseSegment(markdown=prose))
        position += 1
        engine, label, options = parse_chunk_header(match.group("header"), document)
        label = label or UNNAMED_CHUNK_TEMPLATE.format(index=position)
        if label in labels:
            raise ArticleParseError(document, f"duplicate chunk label '{label}'")
        labels.add(label)
        try:
            ChunkOptions().merged(options)
        except ValueError as exc:
            raise ArticleParseError(document, f"chunk '{label}': {exc}") from exc
        segments.append(
            CodeSegment(
                engine=engine,
                label=label,
                code=match.group("code").rstrip("\n"),
                options=options,
                position=position,
            )
        )
        cursor = match.end()
    tail = body[cursor:]
    if tail.strip():
        segments.append(ProseSegment(markdown=tail))
    return tuple(segments)


def parse_chunk_header(
    header: str, document: Path | str
) -> tuple[str, str | None, dict[str, object]]:
    """Parse a chunk header into ``(engine, label, options)``.

    Examples
    --------
    >>> parse_chunk_header("python fit, echo=FALSE, fig.height=4", "doc")
    ('python', 'fit', {'echo': False, 'fig.height': 4})
    >>> parse_chunk_header("r", "doc")
    ('r', None, {})
    """
    stripped = header.strip()
    if not stripped:
        raise ArticleParseError(document, "chunk header names no engine")
    engine_match = re.match(r"([A-Za-z][A-Za-z0-9_]*)[ \t]*,?", stripped)
    if engine_match is None:
        raise ArticleParseError(document, f"chunk header {{{header}}} names no engine")
    engine = engine_match.group(1).lower()
    rest = stripped[engine_match.end() :]

    label: str | None = None
    options: dict[str, object] = {}
    for index, part in enumerate(_split_top_level(rest)):
        name, sep, raw_value = part.partition("=")
        if not sep:
            candidate = part.strip().strip("'\"")
            if index == 0 and LABEL_PATTERN.match(candidate):
                label = candidate
                continue
            raise ArticleParseError(document, f"cannot parse chunk option {part.strip()!r}")
        name = name.strip()
        value = _literal(raw_value.strip(), document, name)
        if name == "label":
            label = str(value)
        else:
            options[name] = value
    return engine, label, options


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are outside quotes and brackets."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for char in text:
        if quote:
            current.append(char)
            if char == quote:
                quote = None
            continue
        if char in "'\"":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return [part for part in parts if part.strip()]


def _literal(raw: str, document: Path | str, name: str) -> object:
    """Evaluate an option value written as a Python or R literal."""
    source = raw
    if not raw.startswith(("'", '"')):
        source = R_LITERAL_PATTERN.sub(lambda m: R_LITERALS[m.group(1)], raw)
    try:
        return typ.cast("object", ast.literal_eval(source))
    except (ValueError, SyntaxError) as exc:
        msg = f"chunk option '{name}' has an unsupported value {raw!r}"
        raise ArticleParseError(document, msg) from exc


def _article_slug(path: Path) -> str:
    stem = path.stem
    if stem.lower() in {"index", "_index"}:
        stem = path.parent.name
    slug = re.sub(r"[^a-z0-9]+", "-", stem.lower()).strip("-")
    return slug or "article"


__all__ = ["load_article", "parse_article", "parse_chunk_header", "parse_segments"]
