"""
Shared fixtures for Permissions Service tests.

Every fixture builds fresh objects, so no test can observe another's data.
"""

from pathlib import Path

import pytest

from service_permissions.app.policies.catalog import PolicyCatalog
from service_permissions.app.policies.models import Policy, Statement, User, UserGroup

EXAMPLE_CATALOG = Path(__file__).resolve().parent.parent / "config" / "catalog.example.yaml"


def build_users():
    return [
        User("user1", ["group1", "group2"]),
        User("user2", ["group2", "group3"]),
        User("user4", ["group4"]),
    ]


def build_groups():
    return [
        UserGroup("group1", ["policy1"]),
        UserGroup("group2", ["policy2", "policy3"]),
        UserGroup("group3", ["policy3"]),
        UserGroup("group4", ["policy4"]),
    ]


def build_policies():
    return [
        Policy("policy1", [
            Statement(actions=["s3:GetObject", "s3:PutObject"], resources=["bucket1"]),
        ]),
        Policy("policy2", [
            Statement(actions=["ec2:StartInstance"], resources=["instance123"]),
        ]),
        Policy("policy3", [
            Statement(actions=["s3:GetObject"], resources=["bucket2", "bucket3"]),
        ]),
        Policy("policy4", [
            Statement(actions=["s3:GetObject"], resources=["bucket4"]),
            Statement(actions=["s3:PutObject"], resources=["bucket5"]),
        ]),
    ]


def build_catalog_document():
    return {
        "users": [
            {"user_id": u.user_id, "group_ids": list(u.group_ids)} for u in build_users()
        ],
        "groups": [
            {"group_id": g.group_id, "policy_ids": list(g.policy_ids)} for g in build_groups()
        ],
        "policies": [
            {
                "policy_id": p.policy_id,
                "statements": [
                    {"actions": sorted(s.actions), "resources": sorted(s.resources)}
                    for s in p.statements
                ],
            }
            for p in build_policies()
        ],
    }


@pytest.fixture
def users():
    return build_users()


@pytest.fixture
def groups():
    return build_groups()


@pytest.fixture
def policies():
    return build_policies()


@pytest.fixture
def catalog(users, groups, policies):
    """Catalog with user1/user2/user4, group1-4 and policy1-4."""
    return PolicyCatalog(users, groups, policies, version="test")


@pytest.fixture
def catalog_document():
    return build_catalog_document()


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep ACCESS_* variables and .env files from leaking into tests."""
    monkeypatch.chdir(tmp_path)
    for name in ("ACCESS_CATALOG_FILE", "ACCESS_PROTECT_CATALOG_ROUTES", "ACCESS_MAX_BATCH_SIZE",
                 "ACCESS_USER_HEADER", "ACCESS_ENV", "ACCESS_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def example_catalog_path():
    """Path of the example catalog shipped with the service."""
    return EXAMPLE_CATALOG
