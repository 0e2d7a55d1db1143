import re
import logging
from contextlib import asynccontextmanager

import motor.motor_asyncio
from beanie import init_beanie

from fincare.database.models import DOCUMENT_MODELS
from fincare.core import Settings

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Global client and database instances
client = None
database = None


def _mask_mongo_uri(uri: str) -> str:
    # Never log full connection URIs which may contain credentials
    m = re.match(r'(?P<prefix>mongodb(?:\+srv)?://)(?:(?P<creds>[^@]+)@)?(?P<rest>.+)', uri or "")
    if not m:
        return "mongodb://<redacted>"
    host_part = m.group('rest').split('/')[0]
    return f"{m.group('prefix')}***@{host_part}"


async def init_db():
    global client, database
    try:
        mongodb_uri = Settings.MONGODB_URI
        mongodb_db_name = Settings.MONGODB_DB_NAME

        if not mongodb_uri:
            logger.error("MONGODB_URI is not set in environment variables")
            raise ValueError("MONGODB_URI is not set in environment variables")
        if not mongodb_db_name:
            logger.error("MONGODB_DB_NAME is not set in environment variables")
            raise ValueError("MONGODB_DB_NAME is not set in environment variables")

        logger.info("Attempting to connect to MongoDB at: %s", _mask_mongo_uri(mongodb_uri))
        logger.info("Database name: %s", mongodb_db_name)

        client = motor.motor_asyncio.AsyncIOMotorClient(
            mongodb_uri,
            tls=Settings.MONGODB_TLS,
            serverSelectionTimeoutMS=30000,
            connectTimeoutMS=30000,
            socketTimeoutMS=30000,
            retryWrites=True,
            w='majority'
        )

        logger.info("Testing MongoDB connection...")
        await client.admin.command('ping')
        logger.info("Successfully connected to MongoDB!")

        database = client[mongodb_db_name]

        logger.info("Initializing Beanie with %d document models...", len(DOCUMENT_MODELS))
        await init_beanie(database, document_models=DOCUMENT_MODELS)
        logger.info("Beanie initialized successfully!")

        return database

    except ValueError as e:
        logger.error(f"Configuration error: {str(e)}")
        raise RuntimeError(f"Configuration error: {str(e)}") from e
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        logger.error(f"Exception type: {type(e)}")
        raise


def get_database():
    """Get the initialized database instance"""
    if database is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return database


def get_client():
    """Get the initialized Motor client (needed to open sessions)"""
    if client is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return client


@asynccontextmanager
async def transaction():
    """Open a session and run the enclosed writes as one multi-document transaction.

    Pass the yielded session to every Beanie call inside the block. The
    transaction commits when the block exits normally and aborts if it raises.
    Requires a replica set or sharded cluster.
    """
    async with await get_client().start_session() as session:
        async with session.start_transaction():
            yield session
