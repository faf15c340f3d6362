"""
Catalog lookup for Permissions Service.

A PolicyCatalog is an immutable snapshot of users, groups and policies,
indexed by identifier. Lookups return None for unknown identifiers; a
missing entity is a normal outcome during evaluation, never an error.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from .models import User, UserGroup, Policy

T = TypeVar("T")


def find_by_id(identifier: str, entities: Iterable[T], key: Callable[[T], str]) -> Optional[T]:
    """Linear scan for the first entity whose key equals `identifier`."""
    for entity in entities:
        if key(entity) == identifier:
            return entity
    return None


def index_by_id(entities: Iterable[T], key: Callable[[T], str]) -> Dict[str, T]:
    """Map identifier -> entity. The first occurrence of a duplicate wins."""
    index: Dict[str, T] = {}
    for entity in entities:
        index.setdefault(key(entity), entity)
    return index


def _user_key(user: User) -> str:
    return user.user_id


def _group_key(group: UserGroup) -> str:
    return group.group_id


def _policy_key(policy: Policy) -> str:
    return policy.policy_id


@dataclass(frozen=True)
class CatalogIssue:
    """Integrity problem in a catalog. Reported, never raised."""
    kind: str
    entity_id: str
    detail: str


class PolicyCatalog:
    """Immutable, pre-indexed snapshot of users, groups and policies."""

    def __init__(
        self,
        users: Iterable[User] = (),
        groups: Iterable[UserGroup] = (),
        policies: Iterable[Policy] = (),
        version: Optional[str] = None,
        source: Optional[str] = None,
    ):
        self._users = tuple(users)
        self._groups = tuple(groups)
        self._policies = tuple(policies)
        self._user_index: Mapping[str, User] = MappingProxyType(index_by_id(self._users, _user_key))
        self._group_index: Mapping[str, UserGroup] = MappingProxyType(index_by_id(self._groups, _group_key))
        self._policy_index: Mapping[str, Policy] = MappingProxyType(index_by_id(self._policies, _policy_key))
        self.version = version
        self.source = source

    @classmethod
    def empty(cls, version: Optional[str] = None) -> "PolicyCatalog":
        return cls(version=version)

    @property
    def users(self) -> Sequence[User]:
        return self._users

    @property
    def groups(self) -> Sequence[UserGroup]:
        return self._groups

    @property
    def policies(self) -> Sequence[Policy]:
        return self._policies

    def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by ID."""
        return self._user_index.get(user_id)

    def get_group(self, group_id: str) -> Optional[UserGroup]:
        """Get a group by ID."""
        return self._group_index.get(group_id)

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        """Get a policy by ID."""
        return self._policy_index.get(policy_id)

    def with_version(self, version: str, source: Optional[str] = None) -> "PolicyCatalog":
        """Copy of this snapshot stamped with a new version."""
        return PolicyCatalog(
            self._users,
            self._groups,
            self._policies,
            version=version,
            source=source if source is not None else self.source,
        )

    def stats(self) -> Dict[str, int]:
        """Get catalog statistics."""
        return {
            "users": len(self._users),
            "groups": len(self._groups),
            "policies": len(self._policies),
            "statements": sum(len(p.statements) for p in self._policies),
        }

    def find_issues(self) -> List[CatalogIssue]:
        """Report integrity problems that evaluation silently tolerates."""
        issues: List[CatalogIssue] = []

        issues.extend(_duplicates("user", self._users, _user_key))
        issues.extend(_duplicates("group", self._groups, _group_key))
        issues.extend(_duplicates("policy", self._policies, _policy_key))

        for user in self._users:
            for group_id in user.group_ids:
                if group_id not in self._group_index:
                    issues.append(CatalogIssue(
                        "dangling_group", user.user_id, f"group '{group_id}' does not exist"
                    ))

        for group in self._groups:
            for policy_id in group.policy_ids:
                if policy_id not in self._policy_index:
                    issues.append(CatalogIssue(
                        "dangling_policy", group.group_id, f"policy '{policy_id}' does not exist"
                    ))

        for policy in self._policies:
            if not policy.statements:
                issues.append(CatalogIssue("empty_policy", policy.policy_id, "policy has no statements"))
            for position, statement in enumerate(policy.statements):
                if not statement.actions or not statement.resources:
                    issues.append(CatalogIssue(
                        "empty_statement",
                        policy.policy_id,
                        f"statement {position} has an empty action or resource set"
                    ))

        return issues

    def __repr__(self) -> str:
        return f"PolicyCatalog(version={self.version!r}, {self.stats()})"


def _duplicates(kind: str, entities: Sequence[T], key: Callable[[T], str]) -> List[CatalogIssue]:
    seen = set()
    issues = []
    for entity in entities:
        identifier = key(entity)
        if identifier in seen:
            issues.append(CatalogIssue(
                f"duplicate_{kind}", identifier, f"{kind} '{identifier}' defined more than once; first wins"
            ))
        seen.add(identifier)
    return issues
