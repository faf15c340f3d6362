"""
Permission evaluation for Permissions Service.
"""

import time
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from shared.logging import get_logger

from .catalog import PolicyCatalog
from .models import Statement, User, UserGroup, Policy
from .resolver import Grant, iter_grants

REASON_USER_NOT_FOUND = "User not found"
REASON_NO_GROUPS = "User has no groups"
REASON_NO_MATCH = "No statement grants the action on the resource"


def statement_matches(statement: Statement, action: str, resource: str) -> bool:
    """True iff the statement lists both the action and the resource.

    Exact, case-sensitive membership; no wildcards or normalization.
    """
    return action in statement.actions and resource in statement.resources


def has_permission(
    user_id: str,
    resource: str,
    action: str,
    users: Sequence[User],
    groups: Sequence[UserGroup],
    policies: Sequence[Policy],
) -> bool:
    """Whether any policy reachable from the user grants `action` on `resource`.

    Unknown identifiers at any level simply grant nothing, so this never
    raises for well-formed inputs. Callers evaluating repeatedly against the
    same collections should build a PolicyCatalog once and use
    PermissionChecker instead.
    """
    catalog = PolicyCatalog(users, groups, policies)
    return any(
        statement_matches(grant.statement, action, resource)
        for grant in iter_grants(user_id, catalog)
    )


@dataclass
class PermissionDecision:
    """Result of a permission check."""
    allowed: bool
    reason: str
    matched_grant: Optional[Grant] = None
    evaluation_time_ms: float = 0.0

    @property
    def matched_policy(self) -> Optional[str]:
        return self.matched_grant.policy_id if self.matched_grant else None

    @property
    def matched_group(self) -> Optional[str]:
        return self.matched_grant.group_id if self.matched_grant else None


class PermissionChecker:
    """Stateless evaluator over a PolicyCatalog snapshot.

    A single instance may be shared across threads; it keeps nothing
    between calls.
    """

    def __init__(self):
        self.logger = get_logger("permissions.checker")

    def check(self, user_id: str, resource: str, action: str, catalog: PolicyCatalog) -> PermissionDecision:
        """Evaluate one request, stopping at the first matching grant."""
        start_time = time.perf_counter()

        user = catalog.get_user(user_id)
        if user is None:
            reason = REASON_USER_NOT_FOUND
        elif not user.group_ids:
            reason = REASON_NO_GROUPS
        else:
            reason = REASON_NO_MATCH
            for grant in iter_grants(user_id, catalog):
                if statement_matches(grant.statement, action, resource):
                    decision = PermissionDecision(
                        allowed=True,
                        reason=f"Granted by policy '{grant.policy_id}' via group '{grant.group_id}'",
                        matched_grant=grant,
                        evaluation_time_ms=(time.perf_counter() - start_time) * 1000
                    )
                    self.logger.debug(
                        "Permission granted",
                        user_id=user_id,
                        resource=resource,
                        action=action,
                        policy_id=grant.policy_id,
                        group_id=grant.group_id
                    )
                    return decision

        self.logger.debug(
            "Permission denied",
            user_id=user_id,
            resource=resource,
            action=action,
            reason=reason
        )
        return PermissionDecision(
            allowed=False,
            reason=reason,
            evaluation_time_ms=(time.perf_counter() - start_time) * 1000
        )

    def allows(self, user_id: str, resource: str, action: str, catalog: PolicyCatalog) -> bool:
        """Boolean form of check()."""
        return self.check(user_id, resource, action, catalog).allowed

    def check_many(
        self,
        user_id: str,
        requests: Iterable[Tuple[str, str]],
        catalog: PolicyCatalog,
    ) -> List[PermissionDecision]:
        """Evaluate (resource, action) pairs independently against one snapshot."""
        return [self.check(user_id, resource, action, catalog) for resource, action in requests]
