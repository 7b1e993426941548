"""Serverless entry point: exposes the ASGI app and seeds on cold start."""
import logging

from burgerhouse import db, seed
from burgerhouse.main import app

log = logging.getLogger("burgerhouse.api")

_database = db.connect()
if _database is not None:
    seed.run_all(_database)
else:
    log.warning("Cold start without a database; data routes will answer 503")

__all__ = ["app"]
