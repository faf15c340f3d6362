"""
Active catalog snapshot holder for Permissions Service.
"""

import threading
from pathlib import Path
from typing import Optional, Union

from shared.logging import get_logger

from ..policies.catalog import PolicyCatalog
from .loader import load_catalog_file


class CatalogStore:
    """Holds the active PolicyCatalog and swaps it atomically.

    Readers call snapshot() and evaluate against the returned object; the
    reference they hold is never mutated. Writers serialize on a lock only
    to keep version numbers monotonic.
    """

    def __init__(self, initial: Optional[PolicyCatalog] = None):
        self.logger = get_logger("permissions.catalog_store")
        self._lock = threading.Lock()
        self._generation = 0
        self._catalog = (initial or PolicyCatalog.empty()).with_version(self._next_version())

    def _next_version(self) -> str:
        self._generation += 1
        return str(self._generation)

    def snapshot(self) -> PolicyCatalog:
        """Current catalog snapshot."""
        return self._catalog

    @property
    def version(self) -> Optional[str]:
        return self._catalog.version

    def swap(self, catalog: PolicyCatalog, source: Optional[str] = None) -> PolicyCatalog:
        """Replace the active snapshot and return it, stamped with a new version."""
        with self._lock:
            stamped = catalog.with_version(self._next_version(), source=source)
            previous = self._catalog
            self._catalog = stamped

        self.logger.info(
            "Catalog snapshot swapped",
            previous_version=previous.version,
            version=stamped.version,
            source=stamped.source,
            **stamped.stats()
        )
        return stamped

    def load_file(self, path: Union[str, Path]) -> PolicyCatalog:
        """Load a catalog file and make it active.

        If loading fails the error propagates and the previous snapshot
        stays active.
        """
        catalog = load_catalog_file(path)
        return self.swap(catalog, source=str(path))
