# users_api/db/database.py
import motor.motor_asyncio
import logging
from typing import Optional, Dict, Any
from pymongo.errors import PyMongoError

from users_api.core.config import settings

logger = logging.getLogger(__name__)

# Set by connect_to_mongo() at startup
_client: Optional[motor.motor_asyncio.AsyncIOMotorClient] = None
_db: Optional[motor.motor_asyncio.AsyncIOMotorDatabase] = None


async def connect_to_mongo() -> bool:
    """Opens the client for ``settings.MONGODB_URL`` and pings it. Returns False on failure."""
    global _client, _db

    if _db is not None:
        return True
    if not settings.MONGODB_URL:
        logger.error("MONGODB_URL is not configured; user endpoints will return 503.")
        return False

    logger.info(f"Connecting to MongoDB database '{settings.DB_NAME}'...")
    client = motor.motor_asyncio.AsyncIOMotorClient(
        settings.MONGODB_URL,
        tls=settings.MONGODB_TLS,
        serverSelectionTimeoutMS=10000,
        maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
        appname=settings.PROJECT_NAME,
    )
    try:
        await client.admin.command('ping')
    except PyMongoError as e:
        logger.error(f"Could not reach MongoDB: {e}", exc_info=True)
        client.close()
        return False

    _client = client
    _db = client[settings.DB_NAME]
    logger.info(f"Connected to MongoDB database '{settings.DB_NAME}'")
    return True


async def close_mongo_connection():
    global _client, _db
    if _client is None:
        return
    _client.close()
    _client = None
    _db = None
    logger.info("MongoDB connection closed.")


def get_database() -> Optional[motor.motor_asyncio.AsyncIOMotorDatabase]:
    return _db


async def check_database_health() -> Dict[str, Any]:
    """Pings the server and reports how many user documents are stored."""
    health_info: Dict[str, Any] = {
        "status": "OK",
        "connected": False,
        "database": settings.DB_NAME,
        "users_collection": settings.USERS_COLLECTION,
        "user_count": None,
        "error": None,
    }

    db_instance = get_database()
    if db_instance is None:
        health_info.update(status="ERROR", error="Database not connected")
        return health_info

    try:
        await db_instance.client.admin.command('ping')
        health_info["connected"] = True
        health_info["user_count"] = await db_instance[settings.USERS_COLLECTION].estimated_document_count()
    except PyMongoError as e:
        logger.error(f"Database health check failed: {e}")
        health_info.update(status="ERROR", error=str(e))
    return health_info
