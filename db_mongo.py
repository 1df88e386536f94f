from motor.motor_asyncio import AsyncIOMotorClient
import os
from dotenv import load_dotenv

load_dotenv()

# MongoDB connection string
MONGO_DETAILS = os.getenv("MONGO_URI", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("MONGO_DATABASE", "mentor_matching")

_client: AsyncIOMotorClient | None = None


def get_client() -> AsyncIOMotorClient:
    """Open the shared client on first use. Owned by the app lifespan."""
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(MONGO_DETAILS)
    return _client


def get_database():
    return get_client()[DATABASE_NAME]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
