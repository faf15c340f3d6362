"""
Resolution of a user into the statements reachable from it.
"""

from dataclasses import dataclass
from typing import Iterator, List

from .catalog import PolicyCatalog
from .models import Statement


@dataclass(frozen=True)
class Grant:
    """A statement together with the group and policy it was reached through."""
    group_id: str
    policy_id: str
    statement_index: int
    statement: Statement


def iter_grants(user_id: str, catalog: PolicyCatalog) -> Iterator[Grant]:
    """Yield every grant reachable from `user_id`, lazily.

    Order is user -> group -> policy -> statement, following the order of
    the identifier lists. Unknown users, groups and policies contribute
    nothing. Repeated references are expanded again.
    """
    user = catalog.get_user(user_id)
    if user is None:
        return

    for group_id in user.group_ids:
        group = catalog.get_group(group_id)
        if group is None:
            continue

        for policy_id in group.policy_ids:
            policy = catalog.get_policy(policy_id)
            if policy is None:
                continue

            for index, statement in enumerate(policy.statements):
                yield Grant(group.group_id, policy.policy_id, index, statement)


def resolve_statements(user_id: str, catalog: PolicyCatalog) -> List[Statement]:
    """All statements reachable from a user; duplicates are kept."""
    return [grant.statement for grant in iter_grants(user_id, catalog)]
