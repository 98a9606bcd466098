"""Resolve package documentation indexes into reference entries."""

from .extractor import MetadataExtractor, ReferenceEntry, filter_entries

__all__ = ["MetadataExtractor", "ReferenceEntry", "filter_entries"]
