r"""Split and validate the YAML front matter of article sources.

Example
-------
>>> text = "---\ntitle: Build a model\nweight: 1\n---\nBody"
>>> meta, body = split_front_matter(text, "start/models/index.Rmd")
>>> meta["title"], body
('Build a model', 'Body')
"""

from __future__ import annotations

import datetime as dt
import re
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tidysite.errors import MalformedFrontMatterError

from .models import PhotoCredit

FRONT_MATTER_PATTERN = re.compile(
    r"\A\ufeff?---[ \t]*\r?\n(?P<meta>.*?)^(?:---|\.\.\.)[ \t]*\r?$\n?",
    re.MULTILINE | re.DOTALL,
)
REQUIRED_FIELDS = ("title", "weight")


def split_front_matter(
    text: str, document: Path | str
) -> tuple[dict[str, typ.Any], str]:
    """Return the parsed front-matter mapping and the remaining body.

    Raises
    ------
    MalformedFrontMatterError
        When the document has no front-matter block, the block is not valid
        YAML, or it does not hold a mapping.
    """
    match = FRONT_MATTER_PATTERN.match(text)
    if match is None:
        raise MalformedFrontMatterError(document, "front matter", "missing")
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(match.group("meta")) or {}
    except YAMLError as exc:
        raise MalformedFrontMatterError(
            document, "front matter", f"not valid YAML ({exc})"
        ) from exc
    if not isinstance(loaded, dict):
        raise MalformedFrontMatterError(document, "front matter", "not a mapping")
    return dict(loaded), text[match.end() :]


def validate_required(meta: typ.Mapping[str, typ.Any], document: Path | str) -> tuple[str, int]:
    """Return the validated ``(title, weight)`` pair.

    Examples
    --------
    >>> validate_required({"title": "Tune", "weight": "3"}, "doc")
    ('Tune', 3)
    """
    for field in REQUIRED_FIELDS:
        if meta.get(field) is None or str(meta.get(field)).strip() == "":
            raise MalformedFrontMatterError(document, field)
    title = str(meta["title"]).strip()
    weight = meta["weight"]
    if isinstance(weight, bool):
        raise MalformedFrontMatterError(document, "weight", "not an integer")
    try:
        return title, int(weight)
    except (TypeError, ValueError) as exc:
        raise MalformedFrontMatterError(document, "weight", "not an integer") from exc


def string_set(
    meta: typ.Mapping[str, typ.Any], field: str, document: Path | str
) -> frozenset[str]:
    """Return ``meta[field]`` as a set of strings; a scalar becomes one item."""
    value = meta.get(field)
    match value:
        case None:
            return frozenset()
        case str():
            return frozenset({value.strip()}) if value.strip() else frozenset()
        case list() | tuple():
            return frozenset(str(item).strip() for item in value if str(item).strip())
        case _:
            raise MalformedFrontMatterError(document, field, "not a list of strings")


def optional_text(meta: typ.Mapping[str, typ.Any], field: str) -> str | None:
    """Return a stripped string for ``field``, dates rendered ISO style."""
    value = meta.get(field)
    match value:
        case None:
            return None
        case dt.datetime() | dt.date():
            return value.isoformat()
        case _:
            text = str(value).strip()
            return text or None


def photo_credit(
    meta: typ.Mapping[str, typ.Any], document: Path | str
) -> PhotoCredit | None:
    """Return the banner photo metadata, or ``None`` when absent.

    ``photo`` may be a URL string or a mapping with ``url``, ``author`` and
    ``author_url`` keys. A mapping without ``url`` counts as absent.
    """
    value = meta.get("photo")
    match value:
        case None:
            return None
        case str():
            return PhotoCredit(url=value.strip()) if value.strip() else None
        case dict():
            url = optional_text(value, "url")
            if not url:
                return None
            return PhotoCredit(
                url=url,
                author=optional_text(value, "author"),
                author_url=optional_text(value, "author_url"),
            )
        case _:
            raise MalformedFrontMatterError(document, "photo", "not a URL or mapping")


__all__ = [
    "REQUIRED_FIELDS",
    "optional_text",
    "photo_credit",
    "split_front_matter",
    "string_set",
    "validate_required",
]
