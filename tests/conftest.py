"""Shared fixtures for tidysite tests.

``index_routes`` maps documentation index URLs to what the stub session should
answer: a JSON-serialisable payload, an HTTP status code, or an exception to
raise. ``session_factory`` hands that table to :class:`StubSession` instances
so extractor tests never touch the network.
"""

from __future__ import annotations

import json
import threading
import typing as typ
from pathlib import Path
from textwrap import dedent

import pytest
import requests

from tidysite.config import ReferenceConfig

INDEX_URL_TEMPLATE = "https://docs.invalid/{package}/reference/index.json"


class StubResponse:
    """Minimal stand-in for :class:`requests.Response`."""

    def __init__(self, url: str, status_code: int, text: str) -> None:
        self.url = url
        self.status_code = status_code
        self.text = text

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            msg = f"{self.status_code} Client Error for url: {self.url}"
            raise requests.HTTPError(msg, response=self)  # type: ignore[arg-type]


class StubSession:
    """Serve documentation indexes from an in-memory routing table."""

    def __init__(self, routes: dict[str, typ.Any], calls: list[str]) -> None:
        self._routes = routes
        self._calls = calls

    def get(self, url: str, timeout: float = 30) -> StubResponse:  # noqa: ARG002
        self._calls.append(url)
        answer = self._routes.get(url, 404)
        if callable(answer):
            answer = answer()
        if isinstance(answer, BaseException):
            raise answer
        if isinstance(answer, int):
            return StubResponse(url, answer, "")
        if isinstance(answer, str):
            return StubResponse(url, 200, answer)
        return StubResponse(url, 200, json.dumps(answer))

    def close(self) -> None:
        return None


class SessionFactory:
    """Callable session factory that records every requested URL."""

    def __init__(self, routes: dict[str, typ.Any]) -> None:
        self.routes = routes
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def __call__(self) -> StubSession:
        with self._lock:
            return StubSession(self.routes, self.calls)


@pytest.fixture
def index_url() -> typ.Callable[[str], str]:
    """Return a function mapping a package name to its stub index URL."""

    def _url(package: str) -> str:
        return INDEX_URL_TEMPLATE.format(package=package)

    return _url


@pytest.fixture
def index_routes() -> dict[str, typ.Any]:
    """Return the mutable URL routing table used by the stub sessions."""
    return {}


@pytest.fixture
def session_factory(index_routes: dict[str, typ.Any]) -> SessionFactory:
    """Return a factory producing stub sessions backed by ``index_routes``."""
    return SessionFactory(index_routes)


@pytest.fixture
def write_article() -> typ.Callable[..., Path]:
    """Return a helper that writes an article source with front matter."""

    def _write(path: Path, front_matter: str, body: str = "") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = f"---\n{dedent(front_matter).strip()}\n---\n{dedent(body)}"
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def reference_config() -> ReferenceConfig:
    """Return a reference config that resolves indexes from the stub URLs."""
    return ReferenceConfig(index_url_template=INDEX_URL_TEMPLATE, timeout=5.0)
