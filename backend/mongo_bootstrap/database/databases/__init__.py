"""
Database definitions: users, collections, validators and indexes.
"""
from mongo_bootstrap.database.databases import admin_db, ai_memory_db

__all__ = ["admin_db", "ai_memory_db"]
