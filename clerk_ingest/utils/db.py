import logging
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from clerk_ingest.models.user import USER_DOCUMENTS
from clerk_ingest.services.config import Settings

logger = logging.getLogger("uvicorn.error")


async def init_db(settings: Settings) -> AsyncIOMotorClient:
    if not settings.MONGO_URI or not settings.DB_NAME:
        raise ValueError("Missing MONGO_URI or DB_NAME in environment variables")

    logger.info("Connecting to MongoDB...")
    client = AsyncIOMotorClient(settings.MONGO_URI)
    db = client[settings.DB_NAME]

    # Also creates the unique clerk_id index on every user collection
    logger.info("Initializing Beanie with models...")
    await init_beanie(database=db, document_models=USER_DOCUMENTS)

    logger.info("Database initialized successfully.")
    return client


def close_db(client: AsyncIOMotorClient) -> None:
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed.")
