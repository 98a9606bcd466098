"""Unit tests for site configuration loading."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from tidysite.config import SiteConfigError, load_site_config


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "site.yaml"
    path.write_text(dedent(text).lstrip(), encoding="utf-8")
    return path


def test_defaults_resolve_relative_to_config_file(tmp_path: Path) -> None:
    config = load_site_config(_write_config(tmp_path, "site:\n  title: Demo\n"))
    root = tmp_path.resolve()

    assert config.content_dir == root / "content"
    assert config.output_dir == root / "public"
    assert config.cache_dir == root / ".tidysite-cache"
    assert config.theme.site_name == "Demo"
    assert config.theme.base_url == "/"
    assert config.render.fig_width == 7.0
    assert config.reference.max_workers == 4


def test_full_configuration(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        site:
          title: tidymodels
          base_url: /docs
        output_dir: /srv/site
        render:
          pygments_style: monokai
          fig_width: 6
          dpi: 96
        reference:
          timeout: 5
          packages:
            recipes:
              index_path: indexes/recipes.json
        sections:
          start:
            title: Get Started
            weight: 1
          learn:
            path: articles
            weight: 2
        authors:
          Max Kuhn:
            url: https://example.invalid/max
        catalogs:
          functions:
            section: learn
            packages: [recipes, tune]
            pattern: "^step_"
            join: FULL
            records_path: data/records.yaml
            attributes: engine
        """,
    )
    config = load_site_config(path)
    root = tmp_path.resolve()

    assert config.theme.base_url == "/docs/", "base_url gains a trailing slash"
    assert config.output_dir == Path("/srv/site")
    assert config.render.pygments_style == "monokai"
    assert (config.render.fig_width, config.render.dpi) == (6.0, 96)
    assert config.reference.timeout == 5.0
    assert config.reference.source_for("recipes").index_path == (
        root / "indexes" / "recipes.json"
    )
    assert config.reference.source_for("tune").index_url == (
        "https://tune.tidymodels.org/reference/index.json"
    )
    assert [s.key for s in config.ordered_sections()] == ["start", "learn"]
    assert config.sections["learn"].title == "Learn"
    assert config.sections["learn"].path == root / "content" / "articles"
    assert config.authors["Max Kuhn"].url == "https://example.invalid/max"

    catalog = config.catalogs["functions"]
    assert catalog.packages == ("recipes", "tune")
    assert catalog.join == "full"
    assert catalog.attributes == ("engine",)
    assert catalog.records_path == root / "data" / "records.yaml"
    assert catalog.title == "Functions"


def test_sections_are_discovered_when_not_configured(tmp_path: Path) -> None:
    for name in ["start", "learn", "_drafts"]:
        (tmp_path / "content" / name).mkdir(parents=True)

    config = load_site_config(_write_config(tmp_path, "site: {}\n"))

    assert sorted(config.sections) == ["learn", "start"]
    assert config.sections["start"].title == "Start"


@pytest.mark.parametrize(
    ("catalog", "message"),
    [
        ("section: nowhere\npackages: [recipes]", "unknown section"),
        ("packages: [recipes]", "missing 'section'"),
        ("section: start\npackages: []", "at least one package"),
        ("section: start\npackages: [recipes]\njoin: inner", "unknown join"),
        ("section: start\npackages: [recipes]\npattern: '('", "invalid pattern"),
    ],
)
def test_invalid_catalogs_are_rejected(
    tmp_path: Path, catalog: str, message: str
) -> None:
    body = "\n".join(f"    {line}" for line in catalog.splitlines())
    text = f"sections:\n  start: {{}}\ncatalogs:\n  broken:\n{body}\n"
    path = tmp_path / "site.yaml"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(SiteConfigError, match=message):
        load_site_config(path)


def test_invalid_worker_count_is_rejected(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "reference:\n  max_workers: 0\n")
    with pytest.raises(SiteConfigError, match="max_workers"):
        load_site_config(path)


def test_non_mapping_document_is_rejected(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "- just\n- a list\n")
    with pytest.raises(SiteConfigError, match="mapping"):
        load_site_config(path)


def test_missing_file_is_reported(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_site_config(tmp_path / "absent.yaml")


def test_unknown_section_lookup_lists_known_sections(tmp_path: Path) -> None:
    config = load_site_config(_write_config(tmp_path, "sections:\n  start: {}\n"))
    with pytest.raises(SiteConfigError, match="Known sections: start"):
        config.get_section("learn")
