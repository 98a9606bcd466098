"""Behaviour tests for documentation indexes that cannot be fetched.

Backed by ``features/source_unavailable.feature``. Index requests are answered
by the stub sessions from ``tests/conftest.py`` so no network is used.
"""

from __future__ import annotations

import functools
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, scenarios, then, when

from tidysite import cli
from tidysite.builder import SiteBuilder
from tidysite.config import load_site_config
from tidysite.reference import MetadataExtractor

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture

    from tidysite.errors import BuildReport

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "source_unavailable.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given('a site with a catalog for "recipes" and a catalog for "notapkg"')
def given_two_catalogs(
    tmp_path: Path,
    index_url: typ.Callable[[str], str],
    index_routes: dict[str, typ.Any],
    scenario_state: dict[str, object],
) -> None:
    """Configure one healthy catalog and one pointing at a missing package."""
    template = index_url("PACKAGE").replace("PACKAGE", "{package}")
    config_path = tmp_path / "site.yaml"
    config_path.write_text(
        f"""\
reference:
  index_url_template: "{template}"
sections:
  find:
    title: Find
catalogs:
  recipes:
    section: find
    packages: [recipes]
  missing:
    section: find
    packages: [notapkg]
""",
        encoding="utf-8",
    )
    index_routes[index_url("recipes")] = [{"name": "step_rm", "url": "step_rm.html"}]
    scenario_state["config_path"] = config_path
    scenario_state["output_dir"] = tmp_path / "public"


@given('the documentation index for "notapkg" returns 404')
def given_missing_index(
    index_url: typ.Callable[[str], str], index_routes: dict[str, typ.Any]
) -> None:
    index_routes[index_url("notapkg")] = 404


@when("I build the site")
def when_build_site(
    scenario_state: dict[str, object], session_factory: typ.Any
) -> None:
    """Build the site with an extractor backed by the stub sessions."""
    config = load_site_config(scenario_state["config_path"])  # type: ignore[arg-type]
    extractor = MetadataExtractor(config.reference, session_factory=session_factory)
    scenario_state["extractor"] = extractor
    scenario_state["report"] = SiteBuilder(config, extractor=extractor).build()


@then('the build reports a source_unavailable failure naming "notapkg"')
def then_failure_names_package(scenario_state: dict[str, object]) -> None:
    report: BuildReport = scenario_state["report"]  # type: ignore[assignment]
    failures = [(f.kind, f.subject) for f in report.failures]
    assert failures == [("source_unavailable", "notapkg")], (
        f"expected exactly one failure for notapkg, got {failures!r}"
    )
    assert "notapkg" in report.failures[0].message


@then('the catalog for "recipes" is written')
def then_recipes_catalog_written(scenario_state: dict[str, object]) -> None:
    output_dir: Path = scenario_state["output_dir"]  # type: ignore[assignment]
    page = output_dir / "find" / "recipes" / "index.html"
    assert page.is_file(), "the healthy catalog should still be written"
    assert "step_rm" in page.read_text(encoding="utf-8")


@then('no catalog page is written for "notapkg"')
def then_missing_catalog_absent(scenario_state: dict[str, object]) -> None:
    output_dir: Path = scenario_state["output_dir"]  # type: ignore[assignment]
    assert not (output_dir / "find" / "missing").exists()


@then("the build exits with status 1 from the command line")
def then_cli_exits_nonzero(
    scenario_state: dict[str, object],
    mocker: MockerFixture,
    capsys: pytest.CaptureFixture[str],
) -> None:
    extractor: MetadataExtractor = scenario_state["extractor"]  # type: ignore[assignment]
    mocker.patch.object(
        cli, "SiteBuilder", functools.partial(SiteBuilder, extractor=extractor)
    )
    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=scenario_state["config_path"])  # type: ignore[arg-type]

    assert excinfo.value.code == 1
    assert "failed [source_unavailable]" in capsys.readouterr().out
