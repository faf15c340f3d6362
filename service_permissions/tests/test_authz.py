"""
Unit tests for the request authorization guard.
"""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from shared.base_service import BaseService
from shared.errors import AuthorizationError
from service_permissions.app.authz import PermissionGuard
from service_permissions.app.catalog.store import CatalogStore
from service_permissions.app.policies.catalog import PolicyCatalog
from service_permissions.app.policies.checker import PermissionChecker
from service_permissions.app.policies.models import Policy, Statement, User, UserGroup


@pytest.fixture
def store(users, groups, policies):
    users = users + [User("clerk", ["order-clerks"])]
    groups = groups + [UserGroup("order-clerks", ["orders-write"])]
    policies = policies + [
        Policy("orders-write", [
            Statement(actions=["orders:Update", "orders:Read"], resources=["order-1", "order-2"]),
        ])
    ]
    store = CatalogStore()
    store.swap(PolicyCatalog(users, groups, policies))
    return store


@pytest.fixture
def guard(store):
    return PermissionGuard(store, PermissionChecker())


@pytest.fixture
def orders_client(guard):
    """An order service that gates updates on the guard."""
    service = BaseService("orders", 8100)

    @service.app.put("/orders/{order_id}")
    async def update_order(order_id: str, user_id: str = Depends(guard.require("orders:Update", resource_param="order_id"))):
        return {"order_id": order_id, "updated_by": user_id}

    @service.app.get("/buckets/bucket1/object")
    async def get_object(user_id: str = Depends(guard.require("s3:GetObject", resource="bucket1"))):
        return {"read_by": user_id}

    return TestClient(service.app)


class TestPermissionGuard:
    """Test cases for PermissionGuard.authorize."""

    def test_authorize_allowed(self, guard):
        decision = guard.authorize("user1", "bucket1", "s3:GetObject")

        assert decision.allowed is True
        assert decision.matched_policy == "policy1"

    def test_authorize_denied(self, guard):
        with pytest.raises(AuthorizationError) as exc_info:
            guard.authorize("user1", "bucket6", "s3:DeleteObject")

        assert exc_info.value.status_code == 403
        assert exc_info.value.details["resource"] == "bucket6"
        assert exc_info.value.details["action"] == "s3:DeleteObject"

    def test_authorize_unknown_user(self, guard):
        with pytest.raises(AuthorizationError, match="User not found"):
            guard.authorize("intruder", "bucket1", "s3:GetObject")

    def test_authorize_uses_latest_snapshot(self, guard, store):
        guard.authorize("user1", "bucket1", "s3:GetObject")

        store.swap(PolicyCatalog())

        with pytest.raises(AuthorizationError):
            guard.authorize("user1", "bucket1", "s3:GetObject")

    def test_require_needs_exactly_one_resource_source(self, guard):
        with pytest.raises(ValueError):
            guard.require("orders:Update")

        with pytest.raises(ValueError):
            guard.require("orders:Update", resource="order-1", resource_param="order_id")


class TestGuardedRoutes:
    """Test cases for routes protected by PermissionGuard.require."""

    def test_resource_from_path_allowed(self, orders_client):
        response = orders_client.put("/orders/order-1", headers={"X-User-Id": "clerk"})

        assert response.status_code == 200
        assert response.json() == {"order_id": "order-1", "updated_by": "clerk"}

    def test_resource_from_path_denied(self, orders_client):
        response = orders_client.put("/orders/order-3", headers={"X-User-Id": "clerk"})

        assert response.status_code == 403
        assert response.json()["code"] == "AUTHORIZATION_ERROR"

    def test_user_without_grant_denied(self, orders_client):
        response = orders_client.put("/orders/order-1", headers={"X-User-Id": "user1"})

        assert response.status_code == 403

    def test_missing_user_header(self, orders_client):
        response = orders_client.put("/orders/order-1")

        assert response.status_code == 401
        assert response.json()["message"] == "X-User-Id header required"

    def test_constant_resource(self, orders_client):
        assert orders_client.get("/buckets/bucket1/object", headers={"X-User-Id": "user1"}).status_code == 200
        assert orders_client.get("/buckets/bucket1/object", headers={"X-User-Id": "user2"}).status_code == 403

    def test_custom_user_header(self, store):
        guard = PermissionGuard(store, PermissionChecker(), user_header="X-Principal")
        service = BaseService("orders", 8100)

        @service.app.get("/orders/{order_id}")
        async def read_order(order_id: str, user_id: str = Depends(guard.require("orders:Read", resource_param="order_id"))):
            return {"order_id": order_id}

        client = TestClient(service.app)

        assert client.get("/orders/order-2", headers={"X-Principal": "clerk"}).status_code == 200
        assert client.get("/orders/order-2", headers={"X-User-Id": "clerk"}).status_code == 401
