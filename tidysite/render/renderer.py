"""HTML for article prose, chunk source, and captured chunk output."""

from __future__ import annotations

import typing as typ
from html import escape

from markdown import Markdown
from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension

    from tidysite.articles import CodeSegment
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

ENGINE_LEXERS = {"py": "python", "sh": "bash", "rscript": "r"}
MARKDOWN_EXTENSIONS = ("fenced_code", "codehilite", "tables", "sane_lists", "toc")


class HtmlContentRenderer:
    """Render prose and code chunks with one Pygments style.

    Every fragment for a chunk carries the chunk label, so a rendered page can
    be traced back to the chunk that produced each block.
    """

    def __init__(
        self, pygments_style: str = "friendly", link_extension: Extension | None = None
    ) -> None:
        """Initialize a renderer with a pygments style and optional link extension.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for chunk source and prose code.
        link_extension : Extension, optional
            Markdown extension that rewrites links between article sources;
            pass ``None`` to leave links untouched.
        """
        self.pygments_style = pygments_style
        self._formatter = HtmlFormatter(style=pygments_style, cssclass="codehilite")
        self._link_extension = link_extension

    @property
    def stylesheet(self) -> str:
        """Return the CSS used for highlighted code blocks."""
        return self._formatter.get_style_defs(".codehilite")

    def markdown(self, text: str) -> str:
        """Render markdown into HTML; headings receive ``id`` attributes."""
        if not text.strip():
            return ""
        extensions: list[Extension | str] = list(MARKDOWN_EXTENSIONS)
        if self._link_extension:
            extensions.append(self._link_extension)
        md = Markdown(
            extensions=extensions,
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                },
                "toc": {"permalink": False},
            },
        )
        return md.convert(text)

    def chunk_source(self, segment: CodeSegment) -> str:
        """Return the highlighted source of ``segment`` wrapped with its label.

        Engines without a Pygments lexer are shown as plain text.

        Examples
        --------
        >>> from tidysite.articles import CodeSegment
        >>> chunk = CodeSegment("r", "fit", "lm(y ~ x)", {}, 1)
        >>> HtmlContentRenderer().chunk_source(chunk)[:60]  # doctest: +SKIP
        '<div class="chunk-source" id="chunk-fit" data-engine="r"><d'
        """
        engine = segment.engine.lower()
        try:
            lexer = get_lexer_by_name(ENGINE_LEXERS.get(engine, engine))
        except ClassNotFound:
            lexer = get_lexer_by_name("text")
        code = highlight(segment.code, lexer, self._formatter)
        return (
            f'<div class="chunk-source" id="chunk-{escape(segment.label, quote=True)}" '
            f'data-engine="{escape(engine, quote=True)}">{code}</div>'
        )

    @staticmethod
    def chunk_text(kind: str, content: str) -> str:
        """Return captured text output, messages, or warnings as a ``pre`` block."""
        text = content.rstrip("\n")
        return (
            f'<pre class="chunk-output chunk-output--{kind}">'
            f"<code>{escape(text)}</code></pre>"
        )

    @staticmethod
    def chunk_table(content: str) -> str:
        """Wrap HTML produced by ``_repr_html_``."""
        return f'<div class="chunk-output chunk-output--table">{content}</div>'

    @staticmethod
    def chunk_image(src: str, width: int, height: int, label: str) -> str:
        """Return an ``img`` tag for a captured figure sized in pixels."""
        return (
            f'<img class="chunk-output chunk-output--image" '
            f'src="{escape(src, quote=True)}" '
            f'width="{width}" height="{height}" '
            f'alt="{escape(label, quote=True)}">'
        )


__all__ = ["ENGINE_LEXERS", "HtmlContentRenderer"]
