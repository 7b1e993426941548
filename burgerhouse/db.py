import logging
from typing import Optional

from fastapi import HTTPException
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from . import config

log = logging.getLogger("burgerhouse.db")

_client: Optional[MongoClient] = None
_db: Optional[Database] = None


def connect() -> Optional[Database]:
    """Return the process-wide database handle, creating the client on first use.

    Returns None when MONGODB_URI is not configured or the client could not be
    built; callers decide whether that is fatal.
    """
    global _client, _db
    if _db is not None:
        return _db
    if not config.MONGODB_URI:
        log.error("MONGODB_URI not set; database routes will answer 503")
        return None
    try:
        _client = MongoClient(config.MONGODB_URI, serverSelectionTimeoutMS=3000)
        _db = _client[config.DB_NAME]
    except PyMongoError:
        log.exception("Mongo client init failed")
        _client = None
        _db = None
    return _db


def use_database(database: Optional[Database]) -> None:
    """Swap the database handle (tests, scripts)."""
    global _db
    _db = database


def get_db() -> Database:
    database = connect()
    if database is None:
        raise HTTPException(status_code=503, detail="Database is not configured")
    return database


def ping() -> bool:
    database = connect()
    if database is None:
        return False
    try:
        database.client.admin.command("ping")
        return True
    except Exception:
        return False


def ensure_indexes(database: Database) -> None:
    try:
        database["users"].create_index([("email", ASCENDING)], unique=True)
        database["categories"].create_index([("slug", ASCENDING)], unique=True)
        database["products"].create_index([("category", ASCENDING)])
        database["products"].create_index([("isAvailable", ASCENDING)])
        database["orders"].create_index([("user", ASCENDING)])
        database["orders"].create_index([("status", ASCENDING)])
        database["orders"].create_index([("orderNumber", ASCENDING)], unique=True)
        database["orders"].create_index([("createdAt", DESCENDING)])
        database["visitors"].create_index([("date", ASCENDING)], unique=True)
    except PyMongoError:
        log.exception("ensure_indexes failed")
