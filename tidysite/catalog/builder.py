"""Join reference entries with secondary attribute records.

Catalog pages such as the model list show, for every documented symbol, the
modes and engines declared for it elsewhere. Secondary records are grouped by
their join key, each attribute is reduced to a sorted, de-duplicated,
comma-joined string, and the result is outer-joined onto the reference
entries so that a symbol without records keeps empty attribute cells.

Example
-------
>>> records = [
...     {"alias": "linear_reg", "engine": "lm", "mode": "regression"},
...     {"alias": "linear_reg", "engine": "glmnet", "mode": "regression"},
...     {"alias": "linear_reg", "engine": "glmnet", "mode": "regression"},
... ]
>>> summarise_attributes(records, ("mode", "engine"))["linear_reg"]["engine"]
'glmnet, lm'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from tidysite.errors import RecordsUnavailableError
from tidysite.reference import ReferenceEntry

from .table import TableView

if typ.TYPE_CHECKING:
    from pathlib import Path

    from tidysite.config import CatalogConfig

logger = logging.getLogger(__name__)

BASE_COLUMNS = ("name", "package", "title")
JOIN_FIELD = "alias"


def summarise_attributes(
    records: cabc.Iterable[cabc.Mapping[str, typ.Any]],
    attributes: cabc.Sequence[str],
    *,
    key: str = JOIN_FIELD,
) -> dict[str, dict[str, str]]:
    """Group ``records`` by ``key`` and summarise each attribute.

    Parameters
    ----------
    records : iterable of mappings
        Secondary records; an attribute value may be a scalar or a list.
    attributes : sequence of str
        Attribute names to summarise.
    key : str, optional
        Field used to group records. Defaults to ``"alias"``.

    Returns
    -------
    dict[str, dict[str, str]]
        For each key, one string per attribute: the distinct non-empty values
        sorted and joined with ``", "``. Insertion order follows the first
        appearance of each key.
    """
    grouped: dict[str, dict[str, set[str]]] = {}
    for record in records:
        group = record.get(key)
        if group is None or str(group).strip() == "":
            continue
        values = grouped.setdefault(str(group), {name: set() for name in attributes})
        for name in attributes:
            values[name].update(_attribute_values(record.get(name)))
    return {
        group: {name: ", ".join(sorted(found)) for name, found in values.items()}
        for group, values in grouped.items()
    }


def _attribute_values(value: object) -> list[str]:
    match value:
        case None:
            return []
        case list() | tuple() | set() | frozenset():
            return [str(item).strip() for item in value if str(item).strip()]
        case _:
            text = str(value).strip()
            return [text] if text else []


def join_attributes(
    entries: cabc.Iterable[ReferenceEntry],
    summary: cabc.Mapping[str, cabc.Mapping[str, str]],
    attributes: cabc.Sequence[str],
    *,
    full: bool = False,
) -> list[ReferenceEntry]:
    """Outer-join summarised attributes onto ``entries``.

    Every entry is kept; entries whose join key is absent from ``summary`` get
    an empty string for each attribute. With ``full=True`` summary keys that
    match no entry are appended as rows with an empty package.
    """
    joined: list[ReferenceEntry] = []
    seen: set[str] = set()
    for entry in entries:
        found = summary.get(entry.join_key, {})
        seen.add(entry.join_key)
        joined.append(
            dc.replace(
                entry,
                attributes={name: found.get(name, "") for name in attributes},
            )
        )
    if full:
        for group, found in summary.items():
            if group in seen:
                continue
            joined.append(
                ReferenceEntry(
                    name=group,
                    package="",
                    alias=group,
                    attributes={name: found.get(name, "") for name in attributes},
                )
            )
    return joined


def load_records(path: Path) -> list[dict[str, typ.Any]]:
    """Load secondary attribute records from a YAML list of mappings.

    Raises
    ------
    RecordsUnavailableError
        When the file cannot be read or parsed, or is not a list of mappings.
    """
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or []
    except (OSError, YAMLError) as exc:
        raise RecordsUnavailableError(path, str(exc)) from exc
    if isinstance(loaded, dict):
        loaded = loaded.get("records") or []
    if not isinstance(loaded, list):
        raise RecordsUnavailableError(path, "expected a list of mappings")
    return [dict(item) for item in loaded if isinstance(item, dict)]


@dc.dataclass(slots=True, frozen=True)
class Catalog:
    """A built reference table ready for rendering.

    Attributes
    ----------
    key : str
        Catalog identifier.
    title : str
        Page title.
    section : str
        Section key the catalog page belongs to.
    weight : int
        Ordering key among the section's pages.
    description : str
        Intro markdown shown above the table.
    columns : tuple[str, ...]
        Column names, base columns first, then attribute columns.
    entries : tuple[ReferenceEntry, ...]
        Joined rows in source order.
    """

    key: str
    title: str
    section: str
    weight: int
    description: str
    columns: tuple[str, ...]
    entries: tuple[ReferenceEntry, ...]

    def rows(self) -> list[dict[str, str]]:
        """Return the rows as column-name dictionaries, with the link URL."""
        rows: list[dict[str, str]] = []
        for entry in self.entries:
            row = {"name": entry.name, "package": entry.package, "title": entry.title}
            row.update(entry.attributes)
            row["url"] = entry.url
            rows.append(row)
        return rows

    def view(self) -> TableView:
        """Return an unfiltered, unsorted view over the rows."""
        return TableView.over(self.rows(), self.columns)


class CatalogBuilder:
    """Build :class:`Catalog` values from reference entries and records."""

    def __init__(self, config: CatalogConfig) -> None:
        self.config = config

    def build(
        self,
        entries: cabc.Sequence[ReferenceEntry],
        records: cabc.Sequence[cabc.Mapping[str, typ.Any]] | None = None,
    ) -> Catalog:
        """Join ``entries`` with ``records`` into a catalog.

        ``records`` defaults to the catalog's ``records_path`` file, or no
        records when none is configured.
        """
        attributes = self.config.attributes
        if records is None:
            records = (
                load_records(self.config.records_path)
                if self.config.records_path
                else []
            )
        rows: list[ReferenceEntry] = list(entries)
        if attributes:
            summary = summarise_attributes(records, attributes)
            rows = join_attributes(
                rows, summary, attributes, full=self.config.join == "full"
            )
        logger.debug("Catalog %s has %d rows", self.config.key, len(rows))
        return Catalog(
            key=self.config.key,
            title=self.config.title,
            section=self.config.section,
            weight=self.config.weight,
            description=self.config.description,
            columns=(*BASE_COLUMNS, *attributes),
            entries=tuple(rows),
        )


__all__ = [
    "BASE_COLUMNS",
    "Catalog",
    "CatalogBuilder",
    "join_attributes",
    "load_records",
    "summarise_attributes",
]
