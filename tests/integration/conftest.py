"""
Integration test fixtures.

These tests require a running MongoDB reachable at MONGO_TEST_URI.
Mark with @pytest.mark.integration to skip in normal test runs.
"""
import os
import uuid

import pytest
from pymongo import MongoClient
from pymongo.errors import PyMongoError


@pytest.fixture
def live_mongo_uri():
    """MongoDB URI for live tests; skips when the server is unreachable."""
    uri = os.getenv("MONGO_TEST_URI", "mongodb://localhost:27017")
    client = MongoClient(uri, serverSelectionTimeoutMS=2000)
    try:
        client.admin.command("ping")
    except PyMongoError:
        pytest.skip(f"No MongoDB reachable at {uri}")
    finally:
        client.close()
    return uri


@pytest.fixture
def live_db_name(live_mongo_uri):
    """A throwaway database, dropped with its users after the test."""
    db_name = f"bootstrap_it_{uuid.uuid4().hex[:8]}"
    yield db_name
    client = MongoClient(live_mongo_uri)
    try:
        client[db_name].command("dropAllUsersFromDatabase")
        client.drop_database(db_name)
    finally:
        client.close()
