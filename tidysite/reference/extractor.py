r"""Resolve package documentation indexes into reference entries.

Each documented package publishes a JSON index of its exported topics. The
:class:`MetadataExtractor` fetches those indexes (over HTTP with retries, or
from a local file when the package is configured with ``index_path``), keeps
the symbols whose name matches an inclusion pattern, and returns a flat,
order-preserving list of :class:`ReferenceEntry` records.

An index that cannot be resolved raises :class:`SourceUnavailableError`
naming the package; packages are never dropped silently.

Example
-------
>>> from tidysite.config import ReferenceConfig
>>> from tidysite.reference import MetadataExtractor
>>> extractor = MetadataExtractor(ReferenceConfig())
>>> entries = extractor.extract(["recipes"], pattern=r"^step_")  # doctest: +SKIP
>>> entries[0].name  # doctest: +SKIP
'step_BoxCox'
"""

from __future__ import annotations

import collections.abc as cabc
import concurrent.futures as cf
import dataclasses as dc
import json
import logging
import re
import threading
import typing as typ
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from tidysite.errors import SourceUnavailableError

if typ.TYPE_CHECKING:
    from tidysite.config import PackageSource, ReferenceConfig

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class ReferenceEntry:
    """One documented symbol exported by a package.

    Attributes
    ----------
    name : str
        Exported symbol name (for example ``step_date``).
    package : str
        Package whose index listed the symbol.
    title : str
        Short description from the documentation index.
    url : str
        Absolute URL of the symbol's reference page.
    alias : str | None
        Key used to join secondary attributes; ``None`` means ``name``.
    attributes : dict[str, str]
        Summarised secondary attributes (for example ``mode`` or ``engine``).
    """

    name: str
    package: str
    title: str = ""
    url: str = ""
    alias: str | None = None
    attributes: dict[str, str] = dc.field(default_factory=dict)

    @property
    def join_key(self) -> str:
        """Return the key used when joining secondary attribute records."""
        return self.alias or self.name


def filter_entries(
    entries: cabc.Iterable[ReferenceEntry], pattern: str | re.Pattern[str] | None
) -> list[ReferenceEntry]:
    """Return the entries whose name matches ``pattern``, preserving order.

    ``pattern`` uses :func:`re.search` semantics; ``None`` keeps everything.

    Examples
    --------
    >>> rows = [ReferenceEntry("step_date", "recipes"),
    ...         ReferenceEntry("check_class", "recipes"),
    ...         ReferenceEntry("step_rm", "recipes")]
    >>> [row.name for row in filter_entries(rows, r"^step_")]
    ['step_date', 'step_rm']
    """
    if pattern is None:
        return list(entries)
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [entry for entry in entries if compiled.search(entry.name)]


class MetadataExtractor:
    """Fetch, cache, and filter package documentation indexes."""

    def __init__(
        self,
        config: ReferenceConfig,
        *,
        session_factory: cabc.Callable[[], requests.Session] | None = None,
    ) -> None:
        """Initialize the extractor.

        Parameters
        ----------
        config : ReferenceConfig
            URL template, timeout, worker count, and per-package overrides.
        session_factory : callable, optional
            Factory for the ``requests.Session`` used per fetch; defaults to a
            session with retrying adapters mounted.
        """
        self.config = config
        self._session_factory = session_factory or _retrying_session
        self._indexes: dict[str, tuple[ReferenceEntry, ...]] = {}
        self._lock = threading.Lock()

    def extract(
        self, packages: cabc.Sequence[str], pattern: str | None = None
    ) -> list[ReferenceEntry]:
        """Return matching entries for ``packages`` in package order.

        Raises
        ------
        SourceUnavailableError
            Raised for the first package (in ``packages`` order) whose index
            cannot be resolved.
        """
        resolved, failures = self.extract_many(packages)
        for package in packages:
            if package in failures:
                raise failures[package]
        entries: list[ReferenceEntry] = []
        for package in packages:
            entries.extend(resolved[package])
        return filter_entries(entries, pattern)

    def extract_many(
        self, packages: cabc.Iterable[str]
    ) -> tuple[dict[str, tuple[ReferenceEntry, ...]], dict[str, SourceUnavailableError]]:
        """Resolve every distinct package, fetching uncached ones in parallel.

        Returns
        -------
        tuple[dict, dict]
            Entries keyed by package name, and failures keyed by package
            name. Neither depends on fetch completion order.
        """
        wanted = list(dict.fromkeys(packages))
        pending = [name for name in wanted if name not in self._indexes]
        failures: dict[str, SourceUnavailableError] = {}
        if pending:
            workers = min(self.config.max_workers, len(pending))
            with cf.ThreadPoolExecutor(max_workers=workers) as pool:
                futures = {pool.submit(self._load_index, name): name for name in pending}
                for future in cf.as_completed(futures):
                    name = futures[future]
                    try:
                        entries = future.result()
                    except SourceUnavailableError as exc:
                        logger.error("%s", exc)
                        failures[name] = exc
                        continue
                    with self._lock:
                        self._indexes[name] = entries
        resolved = {
            name: self._indexes[name] for name in wanted if name in self._indexes
        }
        return resolved, failures

    def _load_index(self, package: str) -> tuple[ReferenceEntry, ...]:
        source = self.config.source_for(package)
        if source.index_path is not None:
            text, base_url = self._read_local(source)
        else:
            text, base_url = self._fetch_remote(source)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SourceUnavailableError(package, f"invalid JSON index ({exc})") from exc
        entries = _parse_index(package, payload, base_url)
        logger.info("Resolved %d topics for %s", len(entries), package)
        return entries

    @staticmethod
    def _read_local(source: PackageSource) -> tuple[str, str]:
        path = source.index_path
        if path is None:
            raise SourceUnavailableError(source.name, "no local index path configured")
        try:
            return path.read_text(encoding="utf-8"), source.index_url or ""
        except OSError as exc:
            raise SourceUnavailableError(source.name, f"cannot read {path}: {exc}") from exc

    def _fetch_remote(self, source: PackageSource) -> tuple[str, str]:
        url = source.index_url or self.config.index_url_template.format(
            package=source.name
        )
        logger.debug("Fetching documentation index for %s from %s", source.name, url)
        session = self._session_factory()
        try:
            resp = session.get(url, timeout=self.config.timeout)
            resp.raise_for_status()
            return resp.text, url
        except requests.RequestException as exc:
            raise SourceUnavailableError(source.name, str(exc)) from exc
        finally:
            session.close()


def _retrying_session() -> requests.Session:
    """Return a session that retries transient server errors."""
    session = requests.Session()
    retry = Retry(
        total=5,
        read=5,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _parse_index(
    package: str, payload: object, base_url: str
) -> tuple[ReferenceEntry, ...]:
    """Normalise an index payload into entries, rejecting unusable shapes."""
    match payload:
        case list():
            topics = payload
        case {"topics": list() as listed}:
            topics = listed
        case _:
            raise SourceUnavailableError(package, "index is neither a list nor has 'topics'")

    entries: list[ReferenceEntry] = []
    for topic in topics:
        if not isinstance(topic, dict) or not topic.get("name"):
            continue
        url = str(topic.get("url") or "")
        if url and base_url:
            url = urljoin(base_url, url)
        alias = topic.get("alias")
        if alias is None and isinstance(topic.get("aliases"), list) and topic["aliases"]:
            alias = topic["aliases"][0]
        entries.append(
            ReferenceEntry(
                name=str(topic["name"]),
                package=package,
                title=str(topic.get("title") or "").strip(),
                url=url,
                alias=str(alias) if alias else None,
            )
        )
    return tuple(entries)


__all__ = ["MetadataExtractor", "ReferenceEntry", "filter_entries"]
