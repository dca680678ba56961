"""
Global test fixtures for mongo-bootstrap.

This module provides shared fixtures for all tests including:
- An in-memory admin handle that mimics MongoDB metadata queries
- Mock MongoDB (mongomock-motor) for handle-level index tests
- Password resolver and bootstrap service factories
- The "svc / events" example specs
"""

import sys
from copy import deepcopy
from pathlib import Path
from typing import Any, Optional

import pytest
import pytest_asyncio
from pymongo.errors import OperationFailure

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from mongo_bootstrap.core.secrets import PasswordResolver  # noqa: E402
from mongo_bootstrap.models.specs import (  # noqa: E402
    CollectionSpec,
    IndexSpec,
    PasswordRef,
    RoleGrant,
    UserSpec,
)
from mongo_bootstrap.services.bootstrap_service import BootstrapService  # noqa: E402


# =============================================================================
# In-memory Admin Handle
# =============================================================================

class FakeAdminHandle:
    """
    In-memory stand-in for AdminHandle.

    Stores users, collection options and indexes the way the server reports
    them, and records every mutating call in `calls`.
    """

    def __init__(self):
        self.users: dict[tuple[str, str], dict[str, Any]] = {}
        self.collections: dict[tuple[str, str], dict[str, Any]] = {}
        self.indexes: dict[tuple[str, str], dict[str, dict[str, Any]]] = {}
        self.calls: list[tuple] = []
        self.closed = False

    async def get_user(self, db_name: str, name: str) -> Optional[dict]:
        user = self.users.get((db_name, name))
        return deepcopy(user) if user else None

    async def create_user(self, db_name, name, password, roles):
        self.calls.append(("create_user", db_name, name))
        self.users[(db_name, name)] = {
            "user": name,
            "db": db_name,
            "roles": list(roles),
            "_password": password,
        }

    async def get_collection_info(self, db_name: str, name: str) -> Optional[dict]:
        options = self.collections.get((db_name, name))
        if options is None:
            return None
        return {"name": name, "type": "collection", "options": deepcopy(options)}

    async def create_collection(self, db_name, name, **options):
        self.calls.append(("create_collection", db_name, name))
        validator = options.get("validator")
        if validator is not None and not isinstance(validator.get("$jsonSchema", {}), dict):
            raise OperationFailure("$jsonSchema must be an object", code=2)
        self.collections[(db_name, name)] = deepcopy(options)
        self.indexes.setdefault((db_name, name), {"_id_": {"key": [("_id", 1)], "v": 2}})

    async def index_information(self, db_name, collection):
        return deepcopy(self.indexes.get((db_name, collection), {}))

    async def create_index(self, db_name, collection, keys, **options):
        self.calls.append(("create_index", db_name, collection, options.get("name")))
        info: dict[str, Any] = {"key": list(keys), "v": 2}
        if options.get("unique"):
            info["unique"] = True
        if options.get("expireAfterSeconds") is not None:
            info["expireAfterSeconds"] = options["expireAfterSeconds"]
        indexes = self.indexes.setdefault(
            (db_name, collection), {"_id_": {"key": [("_id", 1)], "v": 2}}
        )
        indexes[options["name"]] = info
        return options["name"]

    async def drop_index(self, db_name, collection, name):
        self.calls.append(("drop_index", db_name, collection, name))
        del self.indexes[(db_name, collection)][name]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_handle() -> FakeAdminHandle:
    return FakeAdminHandle()


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def environ() -> dict:
    """Environment used for password resolution."""
    return {"SVC_PASSWORD": "s3cret", "MONGO_INITDB_ROOT_PASSWORD": "root-pass"}


@pytest.fixture
def resolver(environ, tmp_path) -> PasswordResolver:
    return PasswordResolver(
        secrets_dir=str(tmp_path),
        insecure_default="change-me",
        environ=environ,
    )


@pytest.fixture
def service(fake_handle, resolver) -> BootstrapService:
    return BootstrapService(fake_handle, resolver, apply_timeout=1.0)


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.
    """
    try:
        from mongomock_motor import AsyncMongoMockClient
        client = AsyncMongoMockClient()
        yield client
        client.close()
    except ImportError:
        pytest.skip("mongomock-motor not installed")


# =============================================================================
# Spec Fixtures
# =============================================================================

@pytest.fixture
def svc_user() -> UserSpec:
    return UserSpec(
        name="svc",
        database="app_db",
        password=PasswordRef(env="SVC_PASSWORD"),
        roles=(RoleGrant(role="readWrite", db="app_db"),),
    )


@pytest.fixture
def events_validator() -> dict:
    return {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["type"],
            "properties": {"type": {"bsonType": "string"}},
        }
    }


@pytest.fixture
def events_collection(events_validator) -> CollectionSpec:
    return CollectionSpec(name="events", database="app_db", validator=events_validator)


@pytest.fixture
def events_type_index() -> IndexSpec:
    return IndexSpec(database="app_db", collection="events", keys={"type": 1})


@pytest.fixture
def events_specs(svc_user, events_collection, events_type_index) -> list:
    return [svc_user, events_collection, events_type_index]
