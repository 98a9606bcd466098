"""Immutable, filterable, and sortable views over catalog rows."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import re


@dc.dataclass(slots=True, frozen=True)
class TableView:
    """Filters and a sort order layered over a fixed set of rows.

    ``where`` and ``order_by`` return new views; the source rows are never
    touched, so one catalog can back any number of independent views and
    every view re-evaluates against the same stored rows.

    Examples
    --------
    >>> view = TableView.over(
    ...     [{"name": "step_rm", "package": "recipes"},
    ...      {"name": "linear_reg", "package": "parsnip"}],
    ...     ("name", "package"),
    ... )
    >>> [row["name"] for row in view.where(package="rec").rows]
    ['step_rm']
    >>> [row["name"] for row in view.order_by("name").rows]
    ['linear_reg', 'step_rm']
    """

    source: tuple[cabc.Mapping[str, str], ...]
    columns: tuple[str, ...]
    filters: tuple[tuple[str, str], ...] = ()
    sort_column: str | None = None
    descending: bool = False

    @classmethod
    def over(
        cls, rows: cabc.Iterable[cabc.Mapping[str, str]], columns: cabc.Sequence[str]
    ) -> TableView:
        """Return an unfiltered view over ``rows``."""
        return cls(source=tuple(rows), columns=tuple(columns))

    def where(self, **patterns: str) -> TableView:
        """Return a view that also requires each column to match its pattern.

        Patterns are case-insensitive regular expressions searched within the
        cell text; an empty pattern clears that column's filter. Filters on
        different columns combine with a logical AND.
        """
        merged = dict(self.filters)
        for column, pattern in patterns.items():
            self._check_column(column)
            if pattern:
                re.compile(pattern, re.IGNORECASE)
                merged[column] = pattern
            else:
                merged.pop(column, None)
        return dc.replace(self, filters=tuple(sorted(merged.items())))

    def order_by(self, column: str, *, descending: bool = False) -> TableView:
        """Return a view sorted by ``column``; ties keep source order."""
        self._check_column(column)
        return dc.replace(self, sort_column=column, descending=descending)

    @property
    def rows(self) -> list[cabc.Mapping[str, str]]:
        """Evaluate the filters and sort against the stored rows."""
        compiled = [
            (column, re.compile(pattern, re.IGNORECASE))
            for column, pattern in self.filters
        ]
        selected = [
            row
            for row in self.source
            if all(regex.search(str(row.get(column, ""))) for column, regex in compiled)
        ]
        if self.sort_column is not None:
            column = self.sort_column
            selected.sort(
                key=lambda row: str(row.get(column, "")).casefold(),
                reverse=self.descending,
            )
        return selected

    def _check_column(self, column: str) -> None:
        if column not in self.columns:
            available = ", ".join(self.columns)
            msg = f"Unknown column '{column}'. Known columns: {available}"
            raise KeyError(msg)


__all__ = ["TableView"]
