"""
Unit tests for catalog loading and snapshot swapping.
"""

import json

import pytest
import yaml

from shared.errors import CatalogError
from service_permissions.app.catalog.loader import catalog_from_document, load_catalog_file
from service_permissions.app.catalog.store import CatalogStore
from service_permissions.app.policies.catalog import PolicyCatalog
from service_permissions.app.policies.checker import PermissionChecker
from service_permissions.app.policies.models import CatalogDocument, User


class TestCatalogFromDocument:
    """Test cases for building catalogs from parsed documents."""

    def test_builds_entities(self, catalog_document):
        catalog = catalog_from_document(catalog_document, version="1", source="memory")

        assert catalog.version == "1"
        assert catalog.source == "memory"
        assert catalog.stats() == {"users": 3, "groups": 4, "policies": 4, "statements": 5}
        assert catalog.get_policy("policy1").statements[0].actions == frozenset({"s3:GetObject", "s3:PutObject"})

    def test_accepts_parsed_model(self, catalog_document):
        catalog = catalog_from_document(CatalogDocument.model_validate(catalog_document))

        assert catalog.get_user("user2").group_ids == ("group2", "group3")

    def test_missing_sections_default_to_empty(self):
        catalog = catalog_from_document({"users": [{"user_id": "u"}]})

        assert catalog.stats() == {"users": 1, "groups": 0, "policies": 0, "statements": 0}
        assert catalog.get_user("u").group_ids == ()

    def test_none_document_is_empty_catalog(self):
        assert catalog_from_document(None).stats()["users"] == 0

    def test_missing_identifier_is_rejected(self):
        with pytest.raises(CatalogError) as exc_info:
            catalog_from_document({"users": [{"group_ids": ["g"]}]})

        assert exc_info.value.code == "CATALOG_ERROR"
        assert exc_info.value.details["errors"]

    def test_wrong_type_is_rejected(self):
        with pytest.raises(CatalogError):
            catalog_from_document({"policies": [{"policy_id": "p", "statements": "nope"}]})

    def test_non_mapping_is_rejected(self):
        with pytest.raises(CatalogError) as exc_info:
            catalog_from_document(["users"])

        assert exc_info.value.details["type"] == "list"

    def test_dangling_references_are_not_errors(self):
        catalog = catalog_from_document({
            "users": [{"user_id": "u", "group_ids": ["ghost"]}],
            "policies": [{"policy_id": "p", "statements": [{"actions": [], "resources": ["r"]}]}],
        })

        kinds = {issue.kind for issue in catalog.find_issues()}
        assert kinds == {"dangling_group", "empty_statement"}


class TestLoadCatalogFile:
    """Test cases for loading catalog files."""

    def test_load_yaml(self, tmp_path, catalog_document):
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(catalog_document))

        catalog = load_catalog_file(path)

        assert catalog.source == str(path)
        assert PermissionChecker().allows("user1", "bucket1", "s3:GetObject", catalog) is True

    def test_load_json(self, tmp_path, catalog_document):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(catalog_document))

        catalog = load_catalog_file(str(path))

        assert PermissionChecker().allows("user2", "bucket2", "s3:GetObject", catalog) is True

    def test_load_example_catalog(self, example_catalog_path):
        catalog = load_catalog_file(example_catalog_path)
        checker = PermissionChecker()

        assert catalog.find_issues() == []
        assert checker.allows("user4", "bucket5", "s3:PutObject", catalog) is True
        assert checker.allows("user1", "bucket3", "s3:PutObject", catalog) is False

    def test_empty_files_are_empty_catalogs(self, tmp_path):
        (tmp_path / "empty.yml").write_text("")
        (tmp_path / "empty.json").write_text("")

        assert load_catalog_file(tmp_path / "empty.yml").stats()["policies"] == 0
        assert load_catalog_file(tmp_path / "empty.json").stats()["policies"] == 0

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "catalog.toml"
        path.write_text("")

        with pytest.raises(CatalogError, match="Unsupported catalog file type"):
            load_catalog_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="could not be read"):
            load_catalog_file(tmp_path / "missing.yaml")

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_bytes(b"users:\n  - user_id: \xff\xfe\n")

        with pytest.raises(CatalogError, match="could not be read") as exc_info:
            load_catalog_file(path)

        assert exc_info.value.details["path"] == str(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("users: [unclosed\n")

        with pytest.raises(CatalogError, match="could not be parsed"):
            load_catalog_file(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{\"users\": ")

        with pytest.raises(CatalogError, match="could not be parsed"):
            load_catalog_file(path)


class TestCatalogStore:
    """Test cases for CatalogStore."""

    def test_starts_with_empty_snapshot(self):
        store = CatalogStore()

        assert store.version == "1"
        assert store.snapshot().stats()["users"] == 0

    def test_initial_catalog_is_stamped(self, catalog):
        store = CatalogStore(catalog)

        assert store.snapshot().get_user("user1") is not None
        assert store.version == "1"

    def test_swap_bumps_version(self, catalog):
        store = CatalogStore()

        swapped = store.swap(catalog, source="test")

        assert swapped.version == "2"
        assert swapped.source == "test"
        assert store.snapshot() is swapped

    def test_previous_snapshot_is_untouched_by_swap(self, catalog):
        store = CatalogStore(catalog)
        held = store.snapshot()

        store.swap(PolicyCatalog([User("someone-else")]))

        assert held.get_user("user1") is not None
        assert held.version == "1"
        assert store.snapshot().get_user("user1") is None

    def test_load_file(self, tmp_path, catalog_document):
        path = tmp_path / "catalog.yaml"
        path.write_text(yaml.safe_dump(catalog_document))
        store = CatalogStore()

        loaded = store.load_file(path)

        assert loaded.version == "2"
        assert loaded.source == str(path)
        assert store.snapshot().stats()["users"] == 3

    def test_failed_load_keeps_previous_snapshot(self, tmp_path, catalog):
        store = CatalogStore(catalog)
        before = store.snapshot()

        with pytest.raises(CatalogError):
            store.load_file(tmp_path / "missing.yaml")

        assert store.snapshot() is before
        assert store.version == "1"
