"""
Policy evaluation package.

Defines the user/group/policy/statement model and the evaluation engine
used by the Permissions Service. A user is granted an action on a resource
when any statement of any policy attached to any of the user's groups lists
both the action and the resource.

Modules of interest:
- models: Entities plus request/response and document models.
- catalog: Identifier lookup and the immutable PolicyCatalog snapshot.
- resolver: Expansion of a user into the grants reachable from it.
- checker: Statement matching and the public evaluation entry points.
"""

from .models import Statement, Policy, UserGroup, User
from .catalog import PolicyCatalog, find_by_id, index_by_id
from .resolver import Grant, iter_grants, resolve_statements
from .checker import PermissionChecker, PermissionDecision, statement_matches, has_permission

__all__ = [
    "Statement",
    "Policy",
    "UserGroup",
    "User",
    "PolicyCatalog",
    "find_by_id",
    "index_by_id",
    "Grant",
    "iter_grants",
    "resolve_statements",
    "PermissionChecker",
    "PermissionDecision",
    "statement_matches",
    "has_permission",
]
