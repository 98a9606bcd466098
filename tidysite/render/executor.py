r"""Execute code chunks in a private, persistent per-article namespace.

Each article gets one :class:`EvaluationContext`. Chunks run strictly in
document order, so a name bound by an earlier chunk is visible to every later
one. While a chunk runs, stdout, stderr, Python warnings, ``display(obj)``
calls, and the value of a trailing expression are recorded as
:class:`ChunkOutput` items in the order they happen.

Rich values follow the IPython display protocol: ``_repr_html_`` becomes a
table/HTML output, ``_repr_png_`` and ``_repr_svg_`` become images, anything
else falls back to ``repr``.

Example
-------
>>> ctx = EvaluationContext("example")
>>> [out.content for out in ctx.run("x = 2\nprint(x + 1)", label="a")]
['3\n']
>>> [out.content for out in ctx.run("x * 10", label="b")]
['20']
"""

from __future__ import annotations

import ast
import base64
import builtins
import contextlib
import io
import typing as typ
import warnings

import msgspec

OUTPUT_KINDS = frozenset({"text", "message", "warning", "table", "image"})
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class ChunkOutput(msgspec.Struct, frozen=True):
    """One captured result of executing a chunk.

    ``kind`` is one of ``text``, ``message``, ``warning``, ``table``, or
    ``image``. Image ``content`` is a base64 data URI; ``mime`` records its
    media type.
    """

    kind: str
    content: str
    mime: str = "text/plain"


class _Recorder:
    """Collect outputs in order, merging adjacent text of the same kind."""

    def __init__(self) -> None:
        self.outputs: list[ChunkOutput] = []

    def text(self, kind: str, data: str) -> None:
        if not data:
            return
        if self.outputs and self.outputs[-1].kind == kind and kind in {"text", "message"}:
            last = self.outputs.pop()
            data = last.content + data
        self.outputs.append(ChunkOutput(kind=kind, content=data))

    def rich(self, value: object) -> None:
        self.outputs.append(_rich_output(value))


class _RecordingStream(io.TextIOBase):
    def __init__(self, recorder: _Recorder, kind: str) -> None:
        self._recorder = recorder
        self._kind = kind

    def writable(self) -> bool:
        return True

    def write(self, data: str) -> int:
        self._recorder.text(self._kind, data)
        return len(data)


def _rich_output(value: object) -> ChunkOutput:
    """Convert a displayed value into a chunk output."""
    html = _call_repr(value, "_repr_html_")
    if html:
        return ChunkOutput(kind="table", content=str(html), mime="text/html")
    png = _call_repr(value, "_repr_png_")
    if png is None and isinstance(value, bytes | bytearray):
        if bytes(value[:8]) == PNG_SIGNATURE:
            png = bytes(value)
    if png:
        data = png if isinstance(png, bytes | bytearray) else base64.b64decode(str(png))
        encoded = base64.b64encode(bytes(data)).decode("ascii")
        return ChunkOutput(
            kind="image", content=f"data:image/png;base64,{encoded}", mime="image/png"
        )
    svg = _call_repr(value, "_repr_svg_")
    if svg:
        encoded = base64.b64encode(str(svg).encode("utf-8")).decode("ascii")
        return ChunkOutput(
            kind="image",
            content=f"data:image/svg+xml;base64,{encoded}",
            mime="image/svg+xml",
        )
    return ChunkOutput(kind="text", content=repr(value))


def _call_repr(value: object, method: str) -> typ.Any:
    # Classes expose the protocol methods unbound; only instances are asked.
    if isinstance(value, type):
        return None
    hook = getattr(value, method, None)
    if hook is None or not callable(hook):
        return None
    return hook()


class EvaluationContext:
    """A private namespace shared by the chunks of one article."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.namespace: dict[str, typ.Any] = {
            "__name__": f"__article_{name}__",
            "__builtins__": builtins,
        }
        self._recorder: _Recorder | None = None
        self.namespace["display"] = self._display

    def run(self, code: str, *, label: str) -> list[ChunkOutput]:
        """Execute ``code`` and return the outputs it produced, in order.

        Exceptions raised by the chunk propagate unchanged; bindings made
        before the failure remain in the namespace.
        """
        filename = f"<{self.name}:{label}>"
        tree = ast.parse(code, filename=filename, mode="exec")
        trailing: ast.Expression | None = None
        if tree.body and isinstance(tree.body[-1], ast.Expr):
            last = tree.body.pop()
            trailing = ast.Expression(body=typ.cast("ast.Expr", last).value)

        recorder = _Recorder()
        self._recorder = recorder
        try:
            with (
                contextlib.redirect_stdout(_RecordingStream(recorder, "text")),
                contextlib.redirect_stderr(_RecordingStream(recorder, "message")),
                warnings.catch_warnings(),
            ):
                warnings.simplefilter("always")
                warnings.showwarning = _warning_hook(recorder)
                exec(compile(tree, filename, "exec"), self.namespace)  # noqa: S102
                if trailing is not None:
                    value = eval(compile(trailing, filename, "eval"), self.namespace)  # noqa: S307
                    if value is not None:
                        recorder.rich(value)
        finally:
            self._recorder = None
        return recorder.outputs

    def snapshot(self) -> dict[str, int]:
        """Return the identity of every bound value, for change detection."""
        return {name: id(value) for name, value in self.namespace.items()}

    def changed_since(self, before: dict[str, int]) -> dict[str, typ.Any]:
        """Return bindings that are new or rebound since ``before``."""
        return {
            name: value
            for name, value in self.namespace.items()
            if not name.startswith("__")
            and name != "display"
            and before.get(name) != id(value)
        }

    def _display(self, *values: object) -> None:
        if self._recorder is None:
            msg = "display() can only be called while a chunk is running"
            raise RuntimeError(msg)
        for value in values:
            self._recorder.rich(value)


def _warning_hook(recorder: _Recorder) -> typ.Callable[..., None]:
    def _show(
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: typ.TextIO | None = None,
        line: str | None = None,
    ) -> None:
        recorder.text("warning", f"{category.__name__}: {message}\n")

    return _show


__all__ = ["OUTPUT_KINDS", "ChunkOutput", "EvaluationContext"]
