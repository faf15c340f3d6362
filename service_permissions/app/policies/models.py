"""
Permission data models for Permissions Service.
"""

from typing import Dict, Iterable, Optional, List, Tuple, FrozenSet, Union
from dataclasses import dataclass, field

from pydantic import BaseModel, Field


def _as_frozenset(values: Union[str, Iterable[str], None]) -> FrozenSet[str]:
    """Normalize an action/resource collection to a frozenset.

    A bare string is one value, not a sequence of characters.
    """
    if values is None:
        return frozenset()
    if isinstance(values, str):
        return frozenset((values,))
    return frozenset(values)


def _as_tuple(values: Union[str, Iterable, None]) -> Tuple:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class Statement:
    """Atomic grant of every action in `actions` on every resource in `resources`.

    Empty sets are allowed; such a statement never matches anything.
    """
    actions: FrozenSet[str] = field(default_factory=frozenset)
    resources: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "actions", _as_frozenset(self.actions))
        object.__setattr__(self, "resources", _as_frozenset(self.resources))


@dataclass(frozen=True)
class Policy:
    """Named collection of statements."""
    policy_id: str
    statements: Tuple[Statement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "statements", _as_tuple(self.statements))


@dataclass(frozen=True)
class UserGroup:
    """Named collection of policy identifiers."""
    group_id: str
    policy_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "policy_ids", _as_tuple(self.policy_ids))


@dataclass(frozen=True)
class User:
    """Principal; a named collection of group identifiers."""
    user_id: str
    group_ids: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "group_ids", _as_tuple(self.group_ids))


# Catalog document models (JSON/YAML files and PUT /permissions/catalog)

class StatementDocument(BaseModel):
    """Statement as it appears in a catalog document."""
    actions: List[str] = Field(default_factory=list, description="Allowed actions")
    resources: List[str] = Field(default_factory=list, description="Allowed resources")

    def to_statement(self) -> Statement:
        return Statement(actions=self.actions, resources=self.resources)


class PolicyDocument(BaseModel):
    """Policy as it appears in a catalog document."""
    policy_id: str = Field(..., description="Policy ID")
    statements: List[StatementDocument] = Field(default_factory=list, description="Policy statements")

    def to_policy(self) -> Policy:
        return Policy(
            policy_id=self.policy_id,
            statements=[s.to_statement() for s in self.statements]
        )


class UserGroupDocument(BaseModel):
    """Group as it appears in a catalog document."""
    group_id: str = Field(..., description="Group ID")
    policy_ids: List[str] = Field(default_factory=list, description="Attached policy IDs")

    def to_group(self) -> UserGroup:
        return UserGroup(group_id=self.group_id, policy_ids=self.policy_ids)


class UserDocument(BaseModel):
    """User as it appears in a catalog document."""
    user_id: str = Field(..., description="User ID")
    group_ids: List[str] = Field(default_factory=list, description="Group memberships")

    def to_user(self) -> User:
        return User(user_id=self.user_id, group_ids=self.group_ids)


class CatalogDocument(BaseModel):
    """Full catalog of users, groups and policies."""
    users: List[UserDocument] = Field(default_factory=list)
    groups: List[UserGroupDocument] = Field(default_factory=list)
    policies: List[PolicyDocument] = Field(default_factory=list)


# API models

class PermissionCheckRequest(BaseModel):
    """Request model for a permission check."""
    user_id: str = Field(..., description="User ID")
    resource: str = Field(..., description="Resource to access")
    action: str = Field(..., description="Action to perform")


class PermissionCheckResponse(BaseModel):
    """Response model for a permission check."""
    allowed: bool = Field(..., description="Whether the action is allowed")
    reason: Optional[str] = Field(None, description="Reason for the decision")
    matched_policy: Optional[str] = Field(None, description="Policy that granted the action")
    matched_group: Optional[str] = Field(None, description="Group the policy was reached through")
    evaluation_time_ms: float = Field(0.0, description="Evaluation time in milliseconds")
    catalog_version: Optional[str] = Field(None, description="Catalog snapshot the decision used")


class ResourceAction(BaseModel):
    """A single (resource, action) pair within a batch."""
    resource: str
    action: str


class BatchPermissionCheckRequest(BaseModel):
    """Request model for checking several pairs for one user."""
    user_id: str = Field(..., description="User ID")
    checks: List[ResourceAction] = Field(default_factory=list, description="Pairs to check")


class BatchPermissionCheckResponse(BaseModel):
    """Response model for a batch check, in request order."""
    user_id: str
    catalog_version: Optional[str] = None
    results: List[PermissionCheckResponse]


class GrantResponse(BaseModel):
    """One statement reachable from a user, with the path that reached it."""
    group_id: str
    policy_id: str
    statement_index: int
    actions: List[str]
    resources: List[str]


class UserGrantsResponse(BaseModel):
    """Resolved grants for a user."""
    user_id: str
    found: bool
    catalog_version: Optional[str] = None
    grants: List[GrantResponse]


class CatalogIssueResponse(BaseModel):
    """Integrity issue found in a catalog."""
    kind: str
    entity_id: str
    detail: str


class CatalogStatusResponse(BaseModel):
    """Active catalog snapshot summary."""
    version: Optional[str]
    source: Optional[str]
    counts: Dict[str, int]
    issues: List[CatalogIssueResponse]
