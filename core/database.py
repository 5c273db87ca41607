from motor.motor_asyncio import AsyncIOMotorClient

from core.config import settings
from core.logger import setup_logger
from core.stores import MemoryDocumentStore, MongoDocumentStore
from core.transactions import DocumentStore

logger = setup_logger("database")

USERS = "users"
SHOPS = "shops"
EXCHANGE_REQUESTS = "exchange_requests"


class Database:
    _client: AsyncIOMotorClient = None
    _db = None
    _store: DocumentStore = None

    @classmethod
    async def connect(cls):
        """Open the configured document store."""
        if settings.store_backend == "memory":
            cls._store = MemoryDocumentStore()
            logger.info("Using in-memory document store")
            return

        try:
            cls._client = AsyncIOMotorClient(settings.mongo_uri)
            cls._db = cls._client[settings.db_name]
            # Verify connection
            await cls._client.admin.command('ping')
            cls._store = MongoDocumentStore(cls._client, cls._db)
            logger.info(f"Connected to MongoDB database {settings.db_name}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise e

    @classmethod
    async def close(cls):
        """Close connection to MongoDB."""
        if cls._client:
            cls._client.close()
            cls._client = None
            cls._db = None
            logger.info("Closed MongoDB connection")
        cls._store = None

    @classmethod
    def store(cls) -> DocumentStore:
        """Get the transactional document store every service writes through."""
        if cls._store is None:
            raise ConnectionError("Database not initialized. Call connect() first.")
        return cls._store

    @classmethod
    def use_store(cls, store: DocumentStore):
        """Install a store directly (tests, scripts)."""
        cls._store = store
