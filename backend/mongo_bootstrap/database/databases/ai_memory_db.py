"""
AI memory database configuration.
Stores chat memory, sessions and long-term summaries for the AI agent.

Structure:
- chat_memory: Individual conversation messages grouped by session
- ai_sessions: Session context and state (expires via TTL on expiresAt)
- memory_summaries: Summarized conversations for long-term retention
"""
from typing import Any

from mongo_bootstrap.database.databases import admin_db
from mongo_bootstrap.models.specs import (
    CollectionSpec,
    IndexSpec,
    PasswordRef,
    RoleGrant,
    UserSpec,
)

DB_NAME = "n8n_ai_memory"


class Collections:
    """Collection names in the AI memory database."""
    CHAT_MEMORY = "chat_memory"
    AI_SESSIONS = "ai_sessions"
    MEMORY_SUMMARIES = "memory_summaries"

    # Index definitions for each collection
    INDEXES: dict[str, list[dict[str, Any]]] = {
        "chat_memory": [
            {"keys": [("sessionId", 1), ("createdAt", 1)]},
            {"keys": [("sessionId", 1), ("messageType", 1)]},
            {"keys": [("createdAt", 1)]},
        ],
        "ai_sessions": [
            {"keys": [("sessionId", 1)], "unique": True},
            {"keys": [("userId", 1)]},
            {"keys": [("lastAccessedAt", 1)]},
            {"keys": [("expiresAt", 1)], "expire_after_seconds": 0},  # TTL index
        ],
        "memory_summaries": [
            {"keys": [("sessionId", 1)]},
            {"keys": [("keywords", 1)]},
            {"keys": [("importance", -1)]},
            {"keys": [("createdAt", 1)]},
        ],
    }


def _field(bson_type: str, description: str, **extra: Any) -> dict[str, Any]:
    return {"bsonType": bson_type, "description": description, **extra}


VALIDATORS: dict[str, dict[str, Any]] = {
    Collections.CHAT_MEMORY: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["sessionId", "messageType", "content", "createdAt"],
            "properties": {
                "sessionId": _field("string", "Session identifier for grouping related messages"),
                "messageType": _field(
                    "string",
                    "Type of message in the conversation",
                    enum=["human", "ai", "system"],
                ),
                "content": _field("string", "The actual message content"),
                "metadata": _field("object", "Additional metadata for the message"),
                "createdAt": _field("date", "Timestamp when the message was created"),
                "embedding": _field("array", "Vector embedding for semantic search (optional)"),
            },
        }
    },
    Collections.AI_SESSIONS: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["sessionId", "userId", "createdAt"],
            "properties": {
                "sessionId": _field("string", "Unique session identifier"),
                "userId": _field("string", "User identifier associated with the session"),
                "context": _field("object", "Session context and state information"),
                "metadata": _field("object", "Additional session metadata"),
                "createdAt": _field("date", "Session creation timestamp"),
                "lastAccessedAt": _field("date", "Last time the session was accessed"),
                "expiresAt": _field("date", "Session expiration timestamp"),
            },
        }
    },
    Collections.MEMORY_SUMMARIES: {
        "$jsonSchema": {
            "bsonType": "object",
            "required": ["sessionId", "summary", "createdAt"],
            "properties": {
                "sessionId": _field("string", "Associated session identifier"),
                "summary": _field("string", "Summarized conversation or context"),
                "keywords": _field(
                    "array",
                    "Extracted keywords for search",
                    items={"bsonType": "string"},
                ),
                "importance": _field(
                    "number",
                    "Importance score for retention priority",
                    minimum=0,
                    maximum=10,
                ),
                "createdAt": _field("date", "Summary creation timestamp"),
                "embedding": _field("array", "Vector embedding for semantic search"),
            },
        }
    },
}


def user_specs(db_name: str = DB_NAME) -> list[UserSpec]:
    """Application user scoped to the memory database (matches the connection string)."""
    return [
        UserSpec(
            name=admin_db.ADMIN_USER,
            database=db_name,
            password=PasswordRef(env=admin_db.PASSWORD_ENV, allow_insecure_default=True),
            roles=(
                RoleGrant(role="readWrite", db=db_name),
                RoleGrant(role="dbAdmin", db=db_name),
            ),
        )
    ]


def collection_specs(db_name: str = DB_NAME) -> list[CollectionSpec]:
    return [
        CollectionSpec(name=name, database=db_name, validator=validator)
        for name, validator in VALIDATORS.items()
    ]


def index_specs(db_name: str = DB_NAME) -> list[IndexSpec]:
    specs = []
    for collection_name, indexes in Collections.INDEXES.items():
        for index_def in indexes:
            specs.append(
                IndexSpec(database=db_name, collection=collection_name, **index_def)
            )
    return specs
