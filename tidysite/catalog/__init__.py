"""Reference tables built from documentation indexes and attribute records."""

from .builder import (
    Catalog,
    CatalogBuilder,
    join_attributes,
    load_records,
    summarise_attributes,
)
from .table import TableView

__all__ = [
    "Catalog",
    "CatalogBuilder",
    "TableView",
    "join_attributes",
    "load_records",
    "summarise_attributes",
]
