import logging
from contextlib import contextmanager

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from clinic_api.config import settings
from clinic_api.errors import ConflictError, StoreError

logger = logging.getLogger(__name__)

PATIENTS = "patients"
USERS = "users"


def create_client() -> AsyncIOMotorClient:
    return AsyncIOMotorClient(settings.MONGO_URI)


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    await db.get_collection(USERS).create_index("email", unique=True)
    logger.info("Indexes ensured on database %s", db.name)


def get_database(request: Request) -> AsyncIOMotorDatabase:
    """FastAPI dependency returning the database bound at startup."""
    return request.app.state.db


def patient_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db.get_collection(PATIENTS)


def user_collection(db: AsyncIOMotorDatabase) -> AsyncIOMotorCollection:
    return db.get_collection(USERS)


@contextmanager
def store_errors(action: str):
    """Translate driver failures raised inside the block into API errors."""
    try:
        yield
    except DuplicateKeyError as exc:
        raise ConflictError("Record already exists.", str(exc)) from exc
    except PyMongoError as exc:
        logger.error("Store failure while %s: %s", action, exc)
        raise StoreError(f"Server error while {action}.", str(exc)) from exc
