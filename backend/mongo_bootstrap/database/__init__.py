"""
Database module - admin connection, database definitions and manifest registry.
"""
from mongo_bootstrap.database.connections import AdminHandle, connect
from mongo_bootstrap.database.databases import admin_db, ai_memory_db
from mongo_bootstrap.database.registry import default_manifest, load_manifest, resolve_manifest

__all__ = [
    "AdminHandle",
    "connect",
    "admin_db",
    "ai_memory_db",
    "default_manifest",
    "load_manifest",
    "resolve_manifest",
]
