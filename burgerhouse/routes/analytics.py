import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .. import analytics
from ..db import get_db

log = logging.getLogger("burgerhouse.routes.analytics")

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


@router.post("/visit")
def track_visit(db: Database = Depends(get_db)):
    try:
        analytics.record_visit(db)
    except PyMongoError:
        log.exception("Visitor track error")
        return JSONResponse(status_code=500, content={"success": False})
    return {"success": True}


@router.get("/visit")
def todays_visits(db: Database = Depends(get_db)):
    return analytics.visit_count(db)
