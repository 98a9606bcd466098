"""On-disk cache for chunks rendered with ``cache=TRUE``.

A cache entry is keyed by the article's section and slug, the chunk label, and
a SHA-256 digest of the chunk engine, source, and effective options, so
editing a chunk or its options invalidates the entry. Entries hold the captured
outputs (JSON via msgspec) and the bindings the chunk created (pickle), letting
a hit replay both without re-executing the code.
"""

from __future__ import annotations

import dataclasses as dc
import hashlib
import logging
import pickle
import typing as typ

import msgspec

from tidysite._constants import CACHE_ENTRY_TEMPLATE

from .executor import ChunkOutput

if typ.TYPE_CHECKING:
    from pathlib import Path

    from tidysite.articles import ChunkOptions, CodeSegment

logger = logging.getLogger(__name__)

_OUTPUTS_DECODER = msgspec.json.Decoder(list[ChunkOutput])


@dc.dataclass(slots=True, frozen=True)
class CachedChunk:
    """Outputs and bindings replayed on a cache hit."""

    outputs: list[ChunkOutput]
    bindings: dict[str, typ.Any]


class ChunkCache:
    """Store and retrieve cached chunk results under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @staticmethod
    def key(article: str, segment: CodeSegment, options: ChunkOptions) -> str:
        """Return the entry name for ``segment`` rendered with ``options``."""
        hasher = hashlib.sha256()
        hasher.update(segment.engine.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(segment.code.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(repr(options.digest_items()).encode("utf-8"))
        digest = hasher.hexdigest()[:16]
        return CACHE_ENTRY_TEMPLATE.format(
            article=article, label=segment.label, digest=digest
        )

    def load(self, key: str) -> CachedChunk | None:
        """Return the cached entry for ``key``, or ``None`` on a miss."""
        outputs_path = self.root / f"{key}.json"
        bindings_path = self.root / f"{key}.pkl"
        if not outputs_path.exists() or not bindings_path.exists():
            return None
        try:
            outputs = _OUTPUTS_DECODER.decode(outputs_path.read_bytes())
            bindings = pickle.loads(bindings_path.read_bytes())  # noqa: S301
        except (OSError, msgspec.DecodeError, pickle.UnpicklingError, EOFError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, exc)
            return None
        logger.debug("Cache hit for %s", key)
        return CachedChunk(outputs=outputs, bindings=bindings)

    def store(
        self, key: str, outputs: list[ChunkOutput], bindings: dict[str, typ.Any]
    ) -> bool:
        """Persist an entry; return ``False`` when the bindings cannot be pickled."""
        try:
            payload = pickle.dumps(bindings)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            logger.warning("Not caching %s: bindings are not picklable (%s)", key, exc)
            return False
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / f"{key}.json").write_bytes(msgspec.json.encode(outputs))
        (self.root / f"{key}.pkl").write_bytes(payload)
        return True


__all__ = ["CachedChunk", "ChunkCache"]
