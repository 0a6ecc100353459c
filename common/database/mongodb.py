"""
Motor connection manager.

Owns the single AsyncIOMotorClient of the process. Services never hold the
client; they receive `MongoDB.db` once at startup and pick their collections
from it. Indexes are created by the services after connecting.

Example:
    from common.database import MongoDB

    main_db = MongoDB()
    await main_db.connect(uri="mongodb://localhost:27017", database_name="mindbridge")
    init_all_services(db=main_db.db)
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


def mask_uri(uri: str) -> str:
    """Strip credentials from a connection string for logging."""
    return uri.split("@")[-1] if "@" in uri else uri


class MongoDB:
    """Connect, expose and close one database."""

    def __init__(self):
        self._client: Optional[AsyncIOMotorClient] = None
        self._database_name: Optional[str] = None

    async def connect(
        self,
        uri: str,
        database_name: str,
        timeout_ms: int = 5000,
    ) -> None:
        """
        Open the client and ping the server.

        Datetimes come back timezone-aware so stored `createdAt` and
        `joinedAt` values compare with `datetime.now(timezone.utc)`.

        Raises:
            PyMongoError: If the server is not reachable within `timeout_ms`
        """
        logger.info(f"Connecting to MongoDB: {mask_uri(uri)}")

        client = AsyncIOMotorClient(
            uri,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
            tz_aware=True,
        )
        try:
            await client.admin.command("ping")
        except PyMongoError as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            client.close()
            raise

        self._client = client
        self._database_name = database_name
        logger.info(f"Connected to MongoDB database: {database_name}")

    async def disconnect(self) -> None:
        if self._client:
            logger.info(f"Disconnecting from MongoDB database: {self._database_name}")
            self._client.close()
            self._client = None
            self._database_name = None

    async def ping(self) -> bool:
        """True if the server answers right now."""
        if not self._client:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def db(self) -> AsyncIOMotorDatabase:
        if not self._client or not self._database_name:
            raise RuntimeError("Database not connected")
        return self._client[self._database_name]
