"""
Permissions service for the Access Layer.
"""

from typing import Dict, Optional

from fastapi import Depends

from shared.base_service import BaseService
from shared.errors import CatalogError, ValidationError

from .authz import PermissionGuard
from .catalog.loader import catalog_from_document
from .catalog.store import CatalogStore
from .policies.catalog import PolicyCatalog
from .policies.checker import PermissionChecker, PermissionDecision
from .policies.models import (
    CatalogDocument,
    PermissionCheckRequest, PermissionCheckResponse,
    BatchPermissionCheckRequest, BatchPermissionCheckResponse,
    GrantResponse, UserGrantsResponse,
    CatalogIssueResponse, CatalogStatusResponse,
)
from .policies.resolver import iter_grants

CATALOG_RESOURCE = "catalog"
UPDATE_CATALOG_ACTION = "permissions:UpdateCatalog"


def _to_response(decision: PermissionDecision, catalog_version: Optional[str]) -> PermissionCheckResponse:
    return PermissionCheckResponse(
        allowed=decision.allowed,
        reason=decision.reason,
        matched_policy=decision.matched_policy,
        matched_group=decision.matched_group,
        evaluation_time_ms=decision.evaluation_time_ms,
        catalog_version=catalog_version
    )


class PermissionsService(BaseService):
    """Permissions service implementation."""

    def __init__(self):
        super().__init__("permissions", 8014)

        self.checker = PermissionChecker()
        self.store = CatalogStore()
        self.guard = PermissionGuard(self.store, self.checker, self.config.user_header)

        if self.config.catalog_file:
            self._load_configured_catalog()

        self._setup_permissions_routes()

    def _load_configured_catalog(self) -> PolicyCatalog:
        try:
            catalog = self.store.load_file(self.config.catalog_file)
        except CatalogError:
            self.metrics.record_catalog_reload("error")
            raise
        self.metrics.record_catalog_reload("ok", catalog.stats())
        return catalog

    def _setup_permissions_routes(self):
        """Set up permission-specific routes."""

        if self.config.protect_catalog_routes:
            catalog_admin = [Depends(self.guard.require(UPDATE_CATALOG_ACTION, resource=CATALOG_RESOURCE))]
        else:
            catalog_admin = []

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "permissions",
                "message": "Access Layer - Permissions Service",
                "version": "1.0.0",
                "capabilities": ["permission_check", "batch_check", "grant_resolution", "catalog_reload"]
            }

        @self.app.post("/permissions/check", response_model=PermissionCheckResponse)
        async def check_permission(request: PermissionCheckRequest):
            """Check whether a user may perform an action on a resource."""
            catalog = self.store.snapshot()
            decision = self.checker.check(request.user_id, request.resource, request.action, catalog)
            self.metrics.record_permission_check(decision.allowed, decision.evaluation_time_ms / 1000)

            self.logger.info(
                "Permission check completed",
                user_id=request.user_id,
                resource=request.resource,
                action=request.action,
                allowed=decision.allowed,
                policy_id=decision.matched_policy,
                catalog_version=catalog.version,
                evaluation_time_ms=round(decision.evaluation_time_ms, 3)
            )

            return _to_response(decision, catalog.version)

        @self.app.post("/permissions/check/batch", response_model=BatchPermissionCheckResponse)
        async def check_permissions_batch(request: BatchPermissionCheckRequest):
            """Check several (resource, action) pairs for one user against one snapshot."""
            if len(request.checks) > self.config.max_batch_size:
                raise ValidationError(
                    "Too many checks in batch",
                    details={"max_batch_size": self.config.max_batch_size, "received": len(request.checks)}
                )

            catalog = self.store.snapshot()
            decisions = self.checker.check_many(
                request.user_id,
                [(item.resource, item.action) for item in request.checks],
                catalog
            )
            for decision in decisions:
                self.metrics.record_permission_check(decision.allowed, decision.evaluation_time_ms / 1000)

            self.logger.info(
                "Batch permission check completed",
                user_id=request.user_id,
                checks=len(decisions),
                allowed=sum(1 for d in decisions if d.allowed),
                catalog_version=catalog.version
            )

            return BatchPermissionCheckResponse(
                user_id=request.user_id,
                catalog_version=catalog.version,
                results=[_to_response(d, catalog.version) for d in decisions]
            )

        @self.app.get("/permissions/users/{user_id}/grants", response_model=UserGrantsResponse)
        async def get_user_grants(user_id: str):
            """List every statement reachable from a user."""
            catalog = self.store.snapshot()
            grants = [
                GrantResponse(
                    group_id=grant.group_id,
                    policy_id=grant.policy_id,
                    statement_index=grant.statement_index,
                    actions=sorted(grant.statement.actions),
                    resources=sorted(grant.statement.resources)
                )
                for grant in iter_grants(user_id, catalog)
            ]
            return UserGrantsResponse(
                user_id=user_id,
                found=catalog.get_user(user_id) is not None,
                catalog_version=catalog.version,
                grants=grants
            )

        @self.app.get("/permissions/catalog", response_model=CatalogStatusResponse)
        async def get_catalog_status():
            """Summarize the active catalog snapshot."""
            return self._catalog_status(self.store.snapshot())

        @self.app.put("/permissions/catalog", response_model=CatalogStatusResponse, dependencies=catalog_admin)
        async def replace_catalog(document: CatalogDocument):
            """Replace the active catalog with the posted document."""
            catalog = self.store.swap(catalog_from_document(document, source="api"))
            self.metrics.record_catalog_reload("ok", catalog.stats())
            return self._catalog_status(catalog)

        @self.app.post("/permissions/catalog/reload", response_model=CatalogStatusResponse, dependencies=catalog_admin)
        def reload_catalog():
            """Reload the catalog from the configured file."""
            if not self.config.catalog_file:
                raise CatalogError("No catalog file configured")
            return self._catalog_status(self._load_configured_catalog())

    def _catalog_status(self, catalog: PolicyCatalog) -> CatalogStatusResponse:
        return CatalogStatusResponse(
            version=catalog.version,
            source=catalog.source,
            counts=catalog.stats(),
            issues=[
                CatalogIssueResponse(kind=i.kind, entity_id=i.entity_id, detail=i.detail)
                for i in catalog.find_issues()
            ]
        )

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check permissions service dependencies."""
        catalog = self.store.snapshot()
        return {"catalog": f"version {catalog.version}"}


def create_app():
    """Create permissions service application."""
    service = PermissionsService()
    return service.app


if __name__ == "__main__":
    service = PermissionsService()
    service.run()
