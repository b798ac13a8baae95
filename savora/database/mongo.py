import logging

import motor.motor_asyncio
from pymongo import ASCENDING, DESCENDING

from savora import config

logger = logging.getLogger(__name__)

client = motor.motor_asyncio.AsyncIOMotorClient(config.MONGO_URI)
db = client[config.DATABASE_NAME]

USERS = "users"
RECIPES = "recipes"
INGREDIENTS = "ingredients"


def get_db():
    """FastAPI dependency; overridden in tests."""
    return db


async def ensure_indexes(database=None) -> None:
    database = database if database is not None else db
    await database[USERS].create_index([("email", ASCENDING)], unique=True)
    # strength 2 = case-insensitive comparison
    await database[INGREDIENTS].create_index(
        [("name", ASCENDING)],
        unique=True,
        collation={"locale": "en", "strength": 2},
    )
    await database[RECIPES].create_index([("createdAt", DESCENDING)])
    logger.info("MongoDB indexes ensured on %s", database.name)
