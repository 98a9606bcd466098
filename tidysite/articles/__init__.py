"""Load front-matter articles into immutable document models."""

from .loader import load_article, parse_article, parse_chunk_header, parse_segments
from .models import (
    Article,
    ChunkOptions,
    CodeSegment,
    PhotoCredit,
    ProseSegment,
    Segment,
)

__all__ = [
    "Article",
    "ChunkOptions",
    "CodeSegment",
    "PhotoCredit",
    "ProseSegment",
    "Segment",
    "load_article",
    "parse_article",
    "parse_chunk_header",
    "parse_segments",
]
