"""Failure taxonomy for site builds.

Fatal conditions are raised as :class:`BuildError` subclasses close to where
they happen. :class:`~tidysite.builder.SiteBuilder` catches them per document
or catalog and records a :class:`BuildFailure` in the :class:`BuildReport`, so
one broken article never hides failures elsewhere.

Example
-------
>>> from tidysite.errors import SourceUnavailableError
>>> err = SourceUnavailableError("parsnip", "HTTP 404")
>>> str(err)
"Documentation index for package 'parsnip' is unavailable: HTTP 404"
"""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path


class BuildError(RuntimeError):
    """Base class for fatal, per-document build failures."""

    kind = "build_error"

    @property
    def subject(self) -> str:
        """Return the identity of the document, package, or catalog affected."""
        return ""


class SourceUnavailableError(BuildError):
    """Raised when a package documentation index cannot be resolved."""

    kind = "source_unavailable"

    def __init__(self, package: str, reason: str) -> None:
        self.package = package
        self.reason = reason
        msg = f"Documentation index for package '{package}' is unavailable: {reason}"
        super().__init__(msg)

    @property
    def subject(self) -> str:
        return self.package


class MalformedFrontMatterError(BuildError):
    """Raised when required article metadata is missing or invalid."""

    kind = "malformed_front_matter"

    def __init__(self, document: Path | str, field: str, problem: str = "missing") -> None:
        self.document = str(document)
        self.field = field
        msg = f"{self.document}: front matter field '{field}' is {problem}"
        super().__init__(msg)

    @property
    def subject(self) -> str:
        return self.document


class ArticleParseError(BuildError):
    """Raised when an article cannot be read or its body cannot be used."""

    kind = "article_parse_error"

    def __init__(self, document: Path | str, detail: str) -> None:
        self.document = str(document)
        msg = f"{self.document}: {detail}"
        super().__init__(msg)

    @property
    def subject(self) -> str:
        return self.document


class ExecutionFailureError(BuildError):
    """Raised when a code chunk raises while an article is rendered."""

    kind = "execution_failure"

    def __init__(self, document: str, position: int, label: str, message: str) -> None:
        self.document = document
        self.position = position
        self.label = label
        self.message = message
        msg = f"{document}: chunk #{position} ('{label}') failed: {message}"
        super().__init__(msg)

    @property
    def subject(self) -> str:
        return self.document


class RecordsUnavailableError(BuildError):
    """Raised when a catalog's attribute records file cannot be used."""

    kind = "records_unavailable"

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        msg = f"Attribute records '{self.path}' are unusable: {reason}"
        super().__init__(msg)

    @property
    def subject(self) -> str:
        return self.path


@dc.dataclass(slots=True, frozen=True)
class BuildFailure:
    """A fatal failure recorded for one document, catalog, or package."""

    kind: str
    subject: str
    message: str

    @classmethod
    def from_error(cls, error: BuildError) -> BuildFailure:
        """Capture the kind, subject, and message of ``error``."""
        return cls(kind=error.kind, subject=error.subject, message=str(error))


@dc.dataclass(slots=True)
class BuildReport:
    """Aggregate outcome of a build pass.

    Attributes
    ----------
    written : list[Path]
        Files written to the output directory, in write order.
    failures : list[BuildFailure]
        Every fatal failure encountered; the build continues past each one.
    """

    written: list[Path] = dc.field(default_factory=list)
    failures: list[BuildFailure] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return ``True`` when no fatal failure was recorded."""
        return not self.failures

    def record(self, error: BuildError) -> None:
        """Append ``error`` to the failure list."""
        self.failures.append(BuildFailure.from_error(error))


__all__ = [
    "ArticleParseError",
    "BuildError",
    "BuildFailure",
    "BuildReport",
    "ExecutionFailureError",
    "MalformedFrontMatterError",
    "RecordsUnavailableError",
    "SourceUnavailableError",
]
