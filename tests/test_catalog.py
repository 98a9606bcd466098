"""Unit tests for catalog joins and table views."""

from __future__ import annotations

import typing as typ
from textwrap import dedent

import pytest

from tidysite.catalog import (
    CatalogBuilder,
    TableView,
    join_attributes,
    load_records,
    summarise_attributes,
)
from tidysite.config import CatalogConfig
from tidysite.errors import RecordsUnavailableError
from tidysite.reference import ReferenceEntry

if typ.TYPE_CHECKING:
    from pathlib import Path

ENGINE_RECORDS = [
    {"alias": "linear_reg", "mode": "regression", "engine": "lm"},
    {"alias": "linear_reg", "mode": "regression", "engine": "glmnet"},
    {"alias": "linear_reg", "mode": "regression", "engine": "glmnet"},
    {"alias": "boost_tree", "mode": "classification", "engine": "xgboost"},
    {"alias": "boost_tree", "mode": "regression", "engine": ["xgboost", "C5.0"]},
]


def _entries() -> list[ReferenceEntry]:
    return [
        ReferenceEntry("linear_reg", "parsnip", "Linear regression"),
        ReferenceEntry("boost_tree", "parsnip", "Boosted trees"),
        ReferenceEntry("null_model", "parsnip", "Null model"),
    ]


def test_summary_is_sorted_and_deduplicated() -> None:
    """Engines ``{glmnet, glmnet, lm}`` summarise to ``"glmnet, lm"``."""
    summary = summarise_attributes(ENGINE_RECORDS, ("mode", "engine"))

    assert summary["linear_reg"] == {"mode": "regression", "engine": "glmnet, lm"}
    assert summary["boost_tree"] == {
        "mode": "classification, regression",
        "engine": "C5.0, xgboost",
    }


def test_summary_skips_records_without_key() -> None:
    summary = summarise_attributes(
        [{"engine": "lm"}, {"alias": "", "engine": "glm"}], ("engine",)
    )
    assert summary == {}


def test_left_join_keeps_entries_without_records() -> None:
    """A documented symbol with no tuning metadata keeps empty cells."""
    summary = summarise_attributes(ENGINE_RECORDS, ("mode", "engine"))
    joined = join_attributes(_entries(), summary, ("mode", "engine"))

    assert [row.name for row in joined] == ["linear_reg", "boost_tree", "null_model"]
    null_model = joined[2]
    assert null_model.attributes == {"mode": "", "engine": ""}, (
        f"expected empty attributes for unmatched rows, got {null_model.attributes!r}"
    )


def test_full_join_appends_unmatched_records() -> None:
    summary = summarise_attributes(
        [*ENGINE_RECORDS, {"alias": "penalty", "engine": "glmnet"}], ("engine",)
    )
    joined = join_attributes(_entries(), summary, ("engine",), full=True)

    assert [row.name for row in joined][-1] == "penalty"
    assert joined[-1].package == ""
    assert joined[-1].attributes == {"engine": "glmnet"}


def test_join_uses_alias_when_present() -> None:
    entries = [ReferenceEntry("linear-reg", "parsnip", alias="linear_reg")]
    summary = summarise_attributes(ENGINE_RECORDS, ("engine",))
    joined = join_attributes(entries, summary, ("engine",))
    assert joined[0].attributes["engine"] == "glmnet, lm"


def test_builder_reads_records_file(tmp_path: Path) -> None:
    records_path = tmp_path / "engines.yaml"
    records_path.write_text(
        dedent(
            """
            records:
              - alias: linear_reg
                engine: lm
              - alias: linear_reg
                engine: glmnet
            """
        ),
        encoding="utf-8",
    )
    config = CatalogConfig(
        key="models",
        title="Models",
        section="find",
        packages=("parsnip",),
        records_path=records_path,
        attributes=("engine",),
    )

    catalog = CatalogBuilder(config).build(_entries())

    assert catalog.columns == ("name", "package", "title", "engine")
    rows = catalog.rows()
    assert rows[0]["engine"] == "glmnet, lm"
    assert rows[2]["engine"] == ""
    assert "url" in rows[0]


def test_unreadable_records_file_is_reported(tmp_path: Path) -> None:
    broken = tmp_path / "broken.yaml"
    broken.write_text("just a string\n", encoding="utf-8")

    with pytest.raises(RecordsUnavailableError):
        load_records(broken)
    with pytest.raises(RecordsUnavailableError):
        load_records(tmp_path / "missing.yaml")


@pytest.fixture
def view() -> TableView:
    rows = [
        {"name": "step_rm", "package": "recipes", "title": "Remove variables"},
        {"name": "linear_reg", "package": "parsnip", "title": "Linear regression"},
        {"name": "step_date", "package": "recipes", "title": "Date features"},
        {"name": "tune_grid", "package": "tune", "title": "Grid search"},
    ]
    return TableView.over(rows, ("name", "package", "title"))


def test_filters_are_anded_across_columns(view: TableView) -> None:
    filtered = view.where(package="RECIPES").where(title="date")
    assert [row["name"] for row in filtered.rows] == ["step_date"]


def test_filters_accept_regular_expressions(view: TableView) -> None:
    filtered = view.where(name="^(step|tune)_")
    assert [row["name"] for row in filtered.rows] == ["step_rm", "step_date", "tune_grid"]


def test_empty_pattern_clears_column_filter(view: TableView) -> None:
    filtered = view.where(package="tune").where(package="")
    assert len(filtered.rows) == 4


def test_every_column_sorts_in_both_directions(view: TableView) -> None:
    for column in view.columns:
        ascending = [row[column] for row in view.order_by(column).rows]
        descending = [row[column] for row in view.order_by(column, descending=True).rows]
        assert ascending == sorted(ascending, key=str.casefold)
        assert descending == sorted(descending, key=str.casefold, reverse=True)


def test_views_do_not_mutate_each_other(view: TableView) -> None:
    """Deriving a view leaves the original re-evaluating the same rows."""
    narrowed = view.where(package="parsnip").order_by("name")
    assert [row["name"] for row in narrowed.rows] == ["linear_reg"]
    assert [row["name"] for row in view.rows] == [
        "step_rm",
        "linear_reg",
        "step_date",
        "tune_grid",
    ]


def test_unknown_column_is_rejected(view: TableView) -> None:
    with pytest.raises(KeyError):
        view.where(engine="lm")
    with pytest.raises(KeyError):
        view.order_by("engine")


def test_catalog_view_filters_and_sorts_joined_rows() -> None:
    config = CatalogConfig(
        key="models",
        title="Models",
        section="find",
        packages=("parsnip",),
        attributes=("mode", "engine"),
    )
    catalog = CatalogBuilder(config).build(_entries(), ENGINE_RECORDS)

    view = catalog.view()
    assert view.columns == catalog.columns
    assert len(view.rows) == 3

    regression = view.where(mode="regression").order_by("name", descending=True)
    assert [row["name"] for row in regression.rows] == ["linear_reg", "boost_tree"]
    assert [row["engine"] for row in view.where(engine="^glmnet").rows] == ["glmnet, lm"]
