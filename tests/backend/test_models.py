"""
Tests for spec models.

These tests cover:
- Key pattern parsing and effective index names
- TTL and password reference validation
- Manifest validation and JSON loading shape
"""

import pytest
from pydantic import ValidationError

from mongo_bootstrap.models.specs import (
    ApplyResult,
    BootstrapManifest,
    CollectionSpec,
    IndexSpec,
    Outcome,
    PasswordRef,
    RoleGrant,
    SpecKind,
    UserSpec,
)


class TestIndexSpec:
    """Tests for IndexSpec parsing and naming."""

    def test_keys_accept_mapping_in_declared_order(self):
        spec = IndexSpec(
            database="db", collection="c", keys={"sessionId": 1, "createdAt": -1}
        )
        assert spec.key_list() == [("sessionId", 1), ("createdAt", -1)]

    def test_effective_name_follows_mongodb_convention(self):
        spec = IndexSpec(
            database="db", collection="c", keys=[("sessionId", 1), ("createdAt", -1)]
        )
        assert spec.effective_name == "sessionId_1_createdAt_-1"
        assert spec.qualified_name == "db.c.sessionId_1_createdAt_-1"

    def test_explicit_name_wins(self):
        spec = IndexSpec(database="db", collection="c", keys={"a": 1}, name="x")
        assert spec.effective_name == "x"
        assert spec.create_options() == {"name": "x"}

    def test_index_type_token_accepted(self):
        spec = IndexSpec(database="db", collection="c", keys={"question": "text"})
        assert spec.effective_name == "question_text"

    def test_unknown_direction_rejected(self):
        with pytest.raises(ValidationError):
            IndexSpec(database="db", collection="c", keys={"a": 2})

    def test_empty_keys_rejected(self):
        with pytest.raises(ValidationError):
            IndexSpec(database="db", collection="c", keys={})

    def test_ttl_option_passed_through(self):
        spec = IndexSpec(
            database="db", collection="c", keys={"expiresAt": 1}, expire_after_seconds=0
        )
        assert spec.create_options() == {"name": "expiresAt_1", "expireAfterSeconds": 0}

    def test_ttl_requires_single_field(self):
        with pytest.raises(ValidationError):
            IndexSpec(
                database="db",
                collection="c",
                keys={"a": 1, "b": 1},
                expire_after_seconds=60,
            )

    def test_replace_defaults_to_false(self):
        spec = IndexSpec(database="db", collection="c", keys={"a": 1})
        assert spec.replace is False

    def test_specs_are_frozen(self):
        spec = IndexSpec(database="db", collection="c", keys={"a": 1})
        with pytest.raises(ValidationError):
            spec.unique = True


class TestUserSpec:
    """Tests for UserSpec and password references."""

    def test_password_ref_requires_a_source(self):
        with pytest.raises(ValidationError):
            PasswordRef()

    def test_roles_accept_pairs(self):
        spec = UserSpec(
            name="svc",
            password={"env": "PW"},
            roles=[("readWrite", "app_db"), {"role": "dbAdmin", "db": "app_db"}],
        )
        assert spec.roles == (
            RoleGrant(role="readWrite", db="app_db"),
            RoleGrant(role="dbAdmin", db="app_db"),
        )
        assert spec.database == "admin"

    def test_role_set_ignores_order(self):
        a = UserSpec(name="u", password={"env": "PW"}, roles=[("r1", "d"), ("r2", "d")])
        b = UserSpec(name="u", password={"env": "PW"}, roles=[("r2", "d"), ("r1", "d")])
        assert a.role_set() == b.role_set()


class TestCollectionSpec:
    """Tests for CollectionSpec create options."""

    def test_no_validator_means_no_options(self):
        assert CollectionSpec(name="c", database="db").create_options() == {}

    def test_validator_options(self, events_collection, events_validator):
        assert events_collection.create_options() == {
            "validator": events_validator,
            "validationLevel": "strict",
            "validationAction": "error",
        }

    def test_invalid_validation_level_rejected(self):
        with pytest.raises(ValidationError):
            CollectionSpec(name="c", database="db", validation_level="lenient")


class TestManifest:
    """Tests for BootstrapManifest."""

    def test_duplicate_collection_rejected(self):
        with pytest.raises(ValidationError):
            BootstrapManifest(
                collections=[
                    CollectionSpec(name="c", database="db"),
                    CollectionSpec(name="c", database="db"),
                ]
            )

    def test_same_name_in_other_database_allowed(self):
        manifest = BootstrapManifest(
            collections=[
                CollectionSpec(name="c", database="db1"),
                CollectionSpec(name="c", database="db2"),
            ]
        )
        assert len(manifest.collections) == 2

    def test_specs_in_declaration_order(self, svc_user, events_collection, events_type_index):
        manifest = BootstrapManifest(
            users=[svc_user],
            collections=[events_collection],
            indexes=[events_type_index],
        )
        assert [spec.kind for spec in manifest.specs()] == [
            SpecKind.USER,
            SpecKind.COLLECTION,
            SpecKind.INDEX,
        ]

    def test_manifest_from_json(self):
        raw = """
        {
          "users": [{"name": "svc", "database": "app_db",
                     "password": {"env": "SVC_PASSWORD"},
                     "roles": [{"role": "readWrite", "db": "app_db"}]}],
          "collections": [{"name": "events", "database": "app_db",
                           "validator": {"$jsonSchema": {"required": ["type"]}}}],
          "indexes": [{"database": "app_db", "collection": "events",
                       "keys": {"type": 1}, "unique": true}]
        }
        """
        manifest = BootstrapManifest.model_validate_json(raw)
        assert manifest.users[0].password.env == "SVC_PASSWORD"
        assert manifest.indexes[0].unique is True
        assert manifest.indexes[0].key_list() == [("type", 1)]


class TestApplyResult:
    """Tests for ApplyResult."""

    @pytest.mark.parametrize(
        "outcome,ok",
        [
            (Outcome.CREATED, True),
            (Outcome.ALREADY_EXISTS, True),
            (Outcome.CONFLICT, False),
            (Outcome.FAILED, False),
        ],
    )
    def test_ok_only_for_created_or_existing(self, outcome, ok):
        result = ApplyResult(kind=SpecKind.INDEX, name="db.c.x", outcome=outcome)
        assert result.ok is ok
