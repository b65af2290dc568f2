import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from splitledger.core.config import settings

logger = logging.getLogger("splitledger.db")

class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    # Create indexes
    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes.

    groups and member_groups are only read by _id. The expense log is read
    per group in id order, and the unique key rejects a replayed posting.
    """
    await mongodb.db["group_expenses"].create_index(
        [("group_id", 1), ("id", 1)], unique=True
    )

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
