import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from config import Settings

logger = logging.getLogger(__name__)

client: Optional[AsyncIOMotorClient] = None
db: Optional[AsyncIOMotorDatabase] = None


def connect(settings: Settings) -> AsyncIOMotorDatabase:
    global client, db
    client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True)
    db = client[settings.db_name]
    logger.info("Connected to MongoDB database %s", settings.db_name)
    return db


def close() -> None:
    global client, db
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None


def get_db() -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the active database handle."""
    if db is None:
        raise RuntimeError("Database is not connected")
    return db


async def init_indexes(database) -> None:
    await database.users.create_index("email", unique=True)
    await database.users.create_index([("role", ASCENDING), ("is_active", ASCENDING), ("blood_type", ASCENDING)])
    await database.blood_requests.create_index(
        [("blood_type", ASCENDING), ("status", ASCENDING), ("created_at", DESCENDING)]
    )
    await database.blood_requests.create_index([("location.city", ASCENDING), ("status", ASCENDING)])
    await database.blood_requests.create_index("requested_by")
    # MongoDB removes a request once expires_at has passed
    await database.blood_requests.create_index("expires_at", expireAfterSeconds=0)
    logger.info("Database indexes ensured")
