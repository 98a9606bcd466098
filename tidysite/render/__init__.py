"""Execute article chunks and render them into HTML fragments."""

from .cache import CachedChunk, ChunkCache
from .content import ContentRenderer, RenderedContent
from .executor import ChunkOutput, EvaluationContext
from .link_rewriter import ArticleLinkExtension
from .renderer import HtmlContentRenderer

__all__ = [
    "ArticleLinkExtension",
    "CachedChunk",
    "ChunkCache",
    "ChunkOutput",
    "ContentRenderer",
    "EvaluationContext",
    "HtmlContentRenderer",
    "RenderedContent",
]
