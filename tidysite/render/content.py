"""Render loaded articles into HTML content fragments.

:class:`ContentRenderer` walks an article's segments left to right. Prose is
converted with :class:`~tidysite.render.renderer.HtmlContentRenderer`; code
chunks run in the article's own :class:`~tidysite.render.executor.EvaluationContext`
and their outputs are placed directly after the chunk source. The first chunk
that raises stops the article and surfaces as
:class:`~tidysite.errors.ExecutionFailureError`.

Example
-------
>>> from pathlib import Path
>>> from tidysite.articles import load_article
>>> from tidysite.config import RenderSettings
>>> from tidysite.render import ContentRenderer
>>> article = load_article(Path("content/start/models/index.Rmd"), section="start")  # doctest: +SKIP
>>> content = ContentRenderer(RenderSettings()).render(article)  # doctest: +SKIP
>>> content.html.startswith("<")  # doctest: +SKIP
True
"""

from __future__ import annotations

import dataclasses as dc
import logging
import typing as typ

from tidysite._constants import EXECUTABLE_ENGINES
from tidysite.articles import Article, ChunkOptions, CodeSegment, ProseSegment
from tidysite.errors import ExecutionFailureError

from .executor import ChunkOutput, EvaluationContext
from .renderer import HtmlContentRenderer

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from tidysite.config import RenderSettings

    from .cache import ChunkCache

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class RenderedContent:
    """The rendered body of one article.

    Attributes
    ----------
    article : Article
        The source article.
    fragments : tuple[str, ...]
        HTML fragments in document order: prose, chunk source, chunk outputs.
    """

    article: Article
    fragments: tuple[str, ...]

    @property
    def html(self) -> str:
        """Return the fragments joined into one HTML string."""
        return "\n".join(self.fragments)


class ContentRenderer:
    """Execute and render article bodies with explicit render settings."""

    def __init__(
        self,
        settings: RenderSettings,
        *,
        cache: ChunkCache | None = None,
        link_extension_factory: typ.Callable[[Article], Extension | None] | None = None,
    ) -> None:
        """Initialize the renderer.

        Parameters
        ----------
        settings : RenderSettings
            Pygments style, default figure size, and dpi.
        cache : ChunkCache, optional
            Store used by chunks with ``cache=TRUE``; without one those chunks
            simply execute.
        link_extension_factory : callable, optional
            Returns the Markdown link extension for a given article.
        """
        self.settings = settings
        self.cache = cache
        self._link_extension_factory = link_extension_factory
        self.base_options = ChunkOptions(
            fig_height=settings.fig_height, fig_width=settings.fig_width
        )
        self._stylesheet = HtmlContentRenderer(settings.pygments_style).stylesheet

    @property
    def stylesheet(self) -> str:
        """Return the CSS for highlighted code."""
        return self._stylesheet

    def render(self, article: Article) -> RenderedContent:
        """Render ``article`` in a fresh evaluation context.

        Raises
        ------
        ExecutionFailureError
            When a chunk raises; later chunks are not executed.
        """
        extension = (
            self._link_extension_factory(article)
            if self._link_extension_factory
            else None
        )
        html = HtmlContentRenderer(self.settings.pygments_style, link_extension=extension)
        context = EvaluationContext(article.slug)
        article_options = self.base_options.merged(article.chunk_defaults)
        fragments: list[str] = []
        for segment in article.segments:
            match segment:
                case ProseSegment(markdown=text):
                    rendered = html.markdown(text)
                    if rendered:
                        fragments.append(rendered)
                case CodeSegment():
                    options = article_options.merged(segment.options)
                    fragments.extend(
                        self._render_chunk(article, segment, options, context, html)
                    )
        logger.debug("Rendered %s (%d fragments)", article.source_path, len(fragments))
        return RenderedContent(article=article, fragments=tuple(fragments))

    def _render_chunk(
        self,
        article: Article,
        segment: CodeSegment,
        options: ChunkOptions,
        context: EvaluationContext,
        html: HtmlContentRenderer,
    ) -> list[str]:
        outputs = self._execute(article, segment, options, context)
        if not options.include:
            return []
        fragments: list[str] = []
        if options.echo:
            fragments.append(html.chunk_source(segment))
        for output in outputs:
            fragment = self._render_output(output, options, segment, html)
            if fragment:
                fragments.append(fragment)
        return fragments

    def _execute(
        self,
        article: Article,
        segment: CodeSegment,
        options: ChunkOptions,
        context: EvaluationContext,
    ) -> list[ChunkOutput]:
        if not options.eval:
            return []
        if segment.engine not in EXECUTABLE_ENGINES:
            logger.debug(
                "Chunk %s in %s uses engine %r; shown without executing",
                segment.label,
                article.source_path,
                segment.engine,
            )
            return []

        key = None
        if options.cache and self.cache is not None:
            identity = f"{article.section}-{article.slug}"
            key = self.cache.key(identity, segment, options)
            cached = self.cache.load(key)
            if cached is not None:
                context.namespace.update(cached.bindings)
                return list(cached.outputs)

        before = context.snapshot()
        try:
            outputs = context.run(segment.code, label=segment.label)
        except (Exception, SystemExit) as exc:  # noqa: BLE001 - chunk code may raise anything
            raise ExecutionFailureError(
                str(article.source_path),
                segment.position,
                segment.label,
                f"{type(exc).__name__}: {exc}",
            ) from exc

        if key is not None and self.cache is not None:
            self.cache.store(key, outputs, context.changed_since(before))
        return outputs

    def _render_output(
        self,
        output: ChunkOutput,
        options: ChunkOptions,
        segment: CodeSegment,
        html: HtmlContentRenderer,
    ) -> str | None:
        kind = output.kind
        if kind == "message" and not options.message:
            return None
        if kind == "warning" and not options.warning:
            return None
        if kind in {"text", "table"} and options.results == "hide":
            return None
        if kind == "text" and options.results == "asis":
            return html.markdown(output.content)
        if kind == "table":
            return html.chunk_table(output.content)
        if kind == "image":
            width = round(options.fig_width * self.settings.dpi)
            height = round(options.fig_height * self.settings.dpi)
            return html.chunk_image(output.content, width, height, segment.label)
        return html.chunk_text(kind, output.content)


__all__ = ["ContentRenderer", "RenderedContent"]
