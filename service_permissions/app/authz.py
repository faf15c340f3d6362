"""
Request authorization guard for Permissions Service routes.

Extracts the caller from a request header, takes the action from the route
and the resource either as a constant or from a path parameter, then gates
the request on a permission check against the active catalog snapshot.
"""

from typing import Awaitable, Callable, Optional

from fastapi import Request

from shared.errors import AuthenticationError, AuthorizationError
from shared.logging import get_logger, set_user_context

from .catalog.store import CatalogStore
from .policies.checker import PermissionChecker, PermissionDecision


class PermissionGuard:
    """Authorization guard backed by the permission checker."""

    def __init__(self, store: CatalogStore, checker: PermissionChecker, user_header: str = "X-User-Id"):
        self.store = store
        self.checker = checker
        self.user_header = user_header
        self.logger = get_logger("permissions.guard")

    def authorize(self, user_id: str, resource: Optional[str], action: str) -> PermissionDecision:
        """Raise AuthorizationError unless the user may perform the action."""
        catalog = self.store.snapshot()
        decision = self.checker.check(user_id, resource, action, catalog)

        if not decision.allowed:
            self.logger.warning(
                "Request denied",
                user_id=user_id,
                resource=resource,
                action=action,
                reason=decision.reason
            )
            raise AuthorizationError(
                f"Access denied: {decision.reason}",
                details={"resource": resource, "action": action, "catalog_version": catalog.version}
            )

        self.logger.info(
            "Request authorized",
            user_id=user_id,
            resource=resource,
            action=action,
            policy_id=decision.matched_policy
        )
        return decision

    def require(
        self,
        action: str,
        resource: Optional[str] = None,
        resource_param: Optional[str] = None,
    ) -> Callable[[Request], Awaitable[str]]:
        """Build a FastAPI dependency that returns the authorized user id."""
        if (resource is None) == (resource_param is None):
            raise ValueError("Exactly one of resource or resource_param must be given")

        async def dependency(request: Request) -> str:
            user_id = request.headers.get(self.user_header)
            if not user_id:
                raise AuthenticationError(f"{self.user_header} header required")

            set_user_context(user_id)
            target = resource if resource is not None else request.path_params.get(resource_param)
            self.authorize(user_id, target, action)
            return user_id

        return dependency
