"""Tests for chunk execution and article content rendering."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest
from bs4 import BeautifulSoup

from tidysite.articles import Article, parse_article
from tidysite.config import RenderSettings
from tidysite.errors import ExecutionFailureError
from tidysite.render import (
    ArticleLinkExtension,
    ChunkCache,
    ContentRenderer,
    EvaluationContext,
)

SOURCE = Path("content/learn/example/index.Rmd")


def _article(body: str, *, front: str = "") -> Article:
    text = f"---\ntitle: Example\nweight: 1\n{dedent(front)}---\n{dedent(body)}"
    return parse_article(text, SOURCE, section="learn")


def _outputs(html: str, kind: str = "text") -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    return [
        node.get_text()
        for node in soup.select(f"pre.chunk-output--{kind} code")
    ]


@pytest.fixture
def renderer() -> ContentRenderer:
    return ContentRenderer(RenderSettings())


def test_bindings_persist_across_chunks(renderer: ContentRenderer) -> None:
    """A name bound in one chunk is visible to every later chunk."""
    article = _article(
        """
        ```{python a}
        x = 2
        ```

        Between the chunks.

        ```{python b}
        print(x * 3)
        ```

        ```{python c}
        x + 40
        ```
        """
    )
    html = renderer.render(article).html

    assert _outputs(html) == ["6", "42"]
    soup = BeautifulSoup(html, "html.parser")
    blocks = [node["id"] for node in soup.select("div.chunk-source")]
    assert blocks == ["chunk-a", "chunk-b", "chunk-c"]


def test_outputs_follow_their_chunk(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{python first}
        print("one")
        ```

        ```{python second}
        print("two")
        ```
        """
    )
    fragments = renderer.render(article).fragments

    assert 'id="chunk-first"' in fragments[0]
    assert "one" in fragments[1]
    assert 'id="chunk-second"' in fragments[2]
    assert "two" in fragments[3]


def test_include_false_executes_without_output(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{python setup, include=FALSE}
        y = 5
        print("hidden")
        ```

        ```{python show}
        print(y)
        ```
        """
    )
    html = renderer.render(article).html

    assert "chunk-setup" not in html
    assert "hidden" not in html
    assert _outputs(html) == ["5"]


def test_echo_false_hides_source_only(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{python quiet, echo=FALSE}
        print("result")
        ```
        """
    )
    html = renderer.render(article).html

    assert "chunk-quiet" not in html
    assert _outputs(html) == ["result"]


def test_eval_false_shows_source_without_running(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{python skipped, eval=FALSE}
        raise RuntimeError("must not run")
        ```
        """
    )
    html = renderer.render(article).html

    assert 'id="chunk-skipped"' in html
    assert _outputs(html) == []


def test_other_engines_are_displayed_not_executed(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{r fit}
        lm(width ~ initial_volume, data = urchins)
        ```
        """
    )
    html = renderer.render(article).html

    assert 'id="chunk-fit"' in html
    assert "initial_volume" in html


def test_failure_names_chunk_and_stops_the_article(
    renderer: ContentRenderer, tmp_path: Path
) -> None:
    """The first failing chunk aborts the rest of the article."""
    marker = tmp_path / "ran.txt"
    article = _article(
        f"""
        ```{{python ok}}
        value = 1
        ```

        ```{{python boom}}
        value / 0
        ```

        ```{{python after}}
        __import__("pathlib").Path(r"{marker}").write_text("ran")
        ```
        """
    )

    with pytest.raises(ExecutionFailureError) as excinfo:
        renderer.render(article)

    error = excinfo.value
    assert error.position == 2
    assert error.label == "boom"
    assert "ZeroDivisionError" in error.message
    assert error.subject == str(SOURCE)
    assert not marker.exists(), "chunks after the failure must not execute"


def test_rendering_twice_is_byte_identical() -> None:
    article = _article(
        """
        ## Results

        ```{python table}
        rows = {"b": 2, "a": 1}
        for key in sorted(rows):
            print(key, rows[key])
        ```

        ```{python}
        sorted(rows.items())
        ```
        """
    )
    first = ContentRenderer(RenderSettings()).render(article).html
    second = ContentRenderer(RenderSettings()).render(article).html

    assert first == second


def test_message_and_warning_suppression(renderer: ContentRenderer) -> None:
    body = """
        ```{python noisy}
        import sys
        import warnings
        print("to stderr", file=sys.stderr)
        warnings.warn("deprecated thing")
        print("kept")
        ```
        """
    shown = renderer.render(_article(body)).html
    assert _outputs(shown, "message") == ["to stderr"]
    assert _outputs(shown, "warning") == ["UserWarning: deprecated thing"]

    hidden = renderer.render(
        _article(body, front="chunk_options:\n  message: false\n  warning: false\n")
    ).html
    assert _outputs(hidden, "message") == []
    assert _outputs(hidden, "warning") == []
    assert _outputs(hidden) == ["kept"]


def test_results_hide_keeps_running(renderer: ContentRenderer) -> None:
    article = _article(
        """
        ```{python a, results='hide'}
        print("invisible")
        z = 3
        ```

        ```{python b}
        z
        ```
        """
    )
    assert _outputs(renderer.render(article).html) == ["3"]


def test_display_protocol_outputs(renderer: ContentRenderer) -> None:
    """Rich values become tables and images sized from the figure options."""
    article = _article(
        """
        ```{python rich, fig.width=4, fig.height=3}
        class Table:
            def _repr_html_(self):
                return "<table><tr><td>cell</td></tr></table>"

        class Plot:
            def _repr_png_(self):
                return bytes([137, 80, 78, 71, 13, 10, 26, 10]) + bytes(8)

        display(Table())
        Plot()
        ```
        """
    )
    html = renderer.render(article).html
    soup = BeautifulSoup(html, "html.parser")

    table = soup.select_one("div.chunk-output--table td")
    assert table is not None and table.get_text() == "cell"
    image = soup.select_one("img.chunk-output--image")
    assert image is not None
    assert image["src"].startswith("data:image/png;base64,")
    assert (image["width"], image["height"]) == ("288", "216")


def test_cached_chunk_is_replayed_without_execution(tmp_path: Path) -> None:
    counter = tmp_path / "count.txt"
    counter.write_text("", encoding="utf-8")
    article = _article(
        f"""
        ```{{python slow, cache=TRUE}}
        count_file = __import__("pathlib").Path(r"{counter}")
        count_file.write_text(count_file.read_text() + "x")
        total = len(count_file.read_text())
        print(total)
        ```

        ```{{python uses}}
        print(total * 10)
        ```
        """
    )
    cache = ChunkCache(tmp_path / "cache")

    first = ContentRenderer(RenderSettings(), cache=cache).render(article).html
    second = ContentRenderer(RenderSettings(), cache=cache).render(article).html

    assert counter.read_text(encoding="utf-8") == "x", "cached chunk ran twice"
    assert _outputs(first) == ["1", "10"]
    assert second == first


def test_evaluation_context_reports_new_bindings() -> None:
    context = EvaluationContext("scratch")
    context.run("a = 1", label="one")
    before = context.snapshot()
    context.run("b = 2\na = 3", label="two")

    assert context.changed_since(before) == {"a": 3, "b": 2}


def test_prose_renders_as_markdown(renderer: ContentRenderer) -> None:
    html = renderer.render(_article("## Heading\n\nSome *emphasis*.\n")).html
    soup = BeautifulSoup(html, "html.parser")
    heading = soup.select_one("h2")
    assert heading is not None and heading.get_text() == "Heading"
    assert soup.select_one("em") is not None


def test_links_to_other_articles_are_rewritten() -> None:
    def _resolve(path: str) -> str | None:
        return {"start/models/index.Rmd": "/start/models/"}.get(path)

    renderer = ContentRenderer(
        RenderSettings(),
        link_extension_factory=lambda _article: ArticleLinkExtension(
            "learn/example", _resolve
        ),
    )
    html = renderer.render(
        _article("See [models](../../start/models/index.Rmd#fit) first.\n")
    ).html

    soup = BeautifulSoup(html, "html.parser")
    link = soup.select_one("a")
    assert link is not None
    assert link["href"] == "/start/models/#fit"


@pytest.mark.parametrize("call", ["sys.exit(0)", "sys.exit(3)", "raise SystemExit"])
def test_exiting_chunk_fails_only_its_article(
    renderer: ContentRenderer, call: str
) -> None:
    """An interpreter exit inside a chunk is a chunk failure, not a process exit."""
    article = _article(
        f"""
        ```{{python quit}}
        import sys
        {call}
        ```
        """
    )

    with pytest.raises(ExecutionFailureError) as excinfo:
        renderer.render(article)

    assert excinfo.value.label == "quit"
    assert "SystemExit" in excinfo.value.message


def test_cache_entries_do_not_leak_between_sections(tmp_path: Path) -> None:
    """Bundles sharing a slug in different sections keep separate cache entries."""
    cache = ChunkCache(tmp_path / "cache")
    renderer = ContentRenderer(RenderSettings(), cache=cache)
    body = "```{python setup}\nn = %d\n```\n\n```{python show, cache=TRUE}\nprint(n)\n```\n"
    outputs: list[list[str]] = []
    for section, value in [("start", 1), ("learn", 2)]:
        article = parse_article(
            f"---\ntitle: Models\nweight: 1\n---\n{body % value}",
            Path(f"content/{section}/models/index.Rmd"),
            section=section,
        )
        outputs.append(_outputs(renderer.render(article).html))

    assert outputs == [["1"], ["2"]], f"cached output crossed sections: {outputs!r}"


def test_chunk_source_names_its_engine(renderer: ContentRenderer) -> None:
    html = renderer.render(_article("```{r fit}\nlm(y ~ x)\n```\n")).html
    block = BeautifulSoup(html, "html.parser").select_one("div.chunk-source")
    assert block is not None
    assert (block["id"], block["data-engine"]) == ("chunk-fit", "r")
