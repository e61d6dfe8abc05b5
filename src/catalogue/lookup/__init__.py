"""Catalog lookup adapters.

- FakeCatalog for development and testing
- RepositoryCatalog for the catalogue domain's Product repository
"""

from catalogue.lookup.fake_adapter import FakeCatalog
from catalogue.lookup.port import CatalogLookup, ProductNotFound, ProductReference
from catalogue.lookup.repository_adapter import RepositoryCatalog

__all__ = [
    "CatalogLookup",
    "FakeCatalog",
    "ProductNotFound",
    "ProductReference",
    "RepositoryCatalog",
]
