"""
Catalog loading for Permissions Service.
"""

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import pydantic
import yaml

from shared.errors import CatalogError
from shared.logging import get_logger

from ..policies.catalog import PolicyCatalog
from ..policies.models import CatalogDocument

logger = get_logger("permissions.catalog_loader")

SUPPORTED_SUFFIXES = (".json", ".yaml", ".yml")


def catalog_from_document(
    document: Union[Mapping[str, Any], CatalogDocument],
    version: Optional[str] = None,
    source: Optional[str] = None,
) -> PolicyCatalog:
    """Build a catalog from a parsed document.

    Schema violations raise CatalogError. Dangling references and empty
    statements are allowed and only logged.
    """
    if isinstance(document, CatalogDocument):
        parsed = document
    else:
        if document is None:
            document = {}
        if not isinstance(document, Mapping):
            raise CatalogError(
                "Catalog document must be a mapping",
                details={"source": source, "type": type(document).__name__}
            )
        try:
            parsed = CatalogDocument.model_validate(document)
        except pydantic.ValidationError as e:
            raise CatalogError(
                "Catalog document is invalid",
                details={"source": source, "errors": e.errors(include_url=False, include_context=False, include_input=False)}
            ) from e

    catalog = PolicyCatalog(
        users=[u.to_user() for u in parsed.users],
        groups=[g.to_group() for g in parsed.groups],
        policies=[p.to_policy() for p in parsed.policies],
        version=version,
        source=source,
    )

    for issue in catalog.find_issues():
        logger.warning(
            "Catalog integrity issue",
            kind=issue.kind,
            entity_id=issue.entity_id,
            detail=issue.detail,
            source=source
        )

    return catalog


def load_catalog_file(path: Union[str, Path], version: Optional[str] = None) -> PolicyCatalog:
    """Load a catalog from a .json, .yaml or .yml file."""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix not in SUPPORTED_SUFFIXES:
        raise CatalogError(
            f"Unsupported catalog file type: {suffix or '(none)'}",
            details={"path": str(path), "supported": list(SUPPORTED_SUFFIXES)}
        )

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(
            "Catalog file could not be read",
            details={"path": str(path), "error": str(e)}
        ) from e

    try:
        if suffix == ".json":
            document = json.loads(text) if text.strip() else {}
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise CatalogError(
            "Catalog file could not be parsed",
            details={"path": str(path), "error": str(e)}
        ) from e

    catalog = catalog_from_document(document, version=version, source=str(path))
    logger.info("Catalog loaded", path=str(path), **catalog.stats())
    return catalog
