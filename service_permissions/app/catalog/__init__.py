"""
Catalog package for Permissions Service.

Builds immutable PolicyCatalog snapshots from JSON/YAML documents and
holds the active snapshot for the service. Refreshes replace the whole
snapshot in one assignment; readers never observe a partially updated
catalog and never need a lock.
"""

from .loader import catalog_from_document, load_catalog_file
from .store import CatalogStore

__all__ = [
    "catalog_from_document",
    "load_catalog_file",
    "CatalogStore",
]
