"""
Administrative MongoDB connection.

The handle is passed explicitly to the bootstrap engine; every call names
the database scope it works in.
"""
import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mongo_bootstrap.config import Settings
from mongo_bootstrap.core.errors import DatabaseConnectionError

logger = logging.getLogger("mongo_bootstrap.connections")


class AdminHandle:
    """Metadata queries and admin commands over one MongoDB client."""

    def __init__(self, client: AsyncIOMotorClient):
        self.client = client

    def database(self, db_name: str) -> AsyncIOMotorDatabase:
        """Get a specific MongoDB database by name."""
        return self.client[db_name]

    # ==================== Users ====================

    async def get_user(self, db_name: str, name: str) -> Optional[dict[str, Any]]:
        """Return the usersInfo document for a user, or None if absent."""
        result = await self.database(db_name).command(
            "usersInfo", {"user": name, "db": db_name}
        )
        users = result.get("users", [])
        return users[0] if users else None

    async def create_user(
        self,
        db_name: str,
        name: str,
        password: str,
        roles: list[dict[str, str]],
    ) -> None:
        await self.database(db_name).command(
            "createUser", name, pwd=password, roles=roles
        )

    # ==================== Collections ====================

    async def get_collection_info(self, db_name: str, name: str) -> Optional[dict[str, Any]]:
        """Return the listCollections entry for a collection, or None if absent."""
        cursor = await self.database(db_name).list_collections(filter={"name": name})
        infos = await cursor.to_list(length=1)
        return infos[0] if infos else None

    async def create_collection(self, db_name: str, name: str, **options: Any) -> None:
        await self.database(db_name).create_collection(name, **options)

    # ==================== Indexes ====================

    async def index_information(self, db_name: str, collection: str) -> dict[str, dict[str, Any]]:
        """Existing indexes keyed by name. Empty if the collection is absent."""
        return await self.database(db_name)[collection].index_information()

    async def create_index(
        self,
        db_name: str,
        collection: str,
        keys: list[tuple[str, Any]],
        **options: Any,
    ) -> str:
        return await self.database(db_name)[collection].create_index(keys, **options)

    async def drop_index(self, db_name: str, collection: str, name: str) -> None:
        await self.database(db_name)[collection].drop_index(name)

    def close(self) -> None:
        self.client.close()


async def connect(settings: Settings) -> AdminHandle:
    """
    Establish the administrative connection.

    Raises:
        DatabaseConnectionError: If the server cannot be reached or
            rejects the credentials
    """
    kwargs: dict[str, Any] = {
        "serverSelectionTimeoutMS": int(settings.connect_timeout_seconds * 1000),
    }
    if settings.mongo_initdb_root_username and settings.mongo_initdb_root_password:
        kwargs["username"] = settings.mongo_initdb_root_username
        kwargs["password"] = settings.mongo_initdb_root_password

    try:
        client = AsyncIOMotorClient(settings.mongo_uri, **kwargs)
    except PyMongoError as e:
        raise DatabaseConnectionError(f"Invalid MongoDB configuration: {e}") from e

    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        client.close()
        raise DatabaseConnectionError(f"Cannot connect to MongoDB: {e}") from e

    logger.info("Connected to MongoDB")
    return AdminHandle(client)
