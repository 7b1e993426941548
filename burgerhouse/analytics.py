import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.database import Database

from . import config
from .models import utcnow

log = logging.getLogger("burgerhouse.analytics")


def date_key(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def today_key(today: Optional[date] = None) -> str:
    return date_key(today or datetime.now().date())


def record_visit(db: Database, today: Optional[date] = None) -> int:
    """Atomically bump today's counter; returns the new count."""
    key = today_key(today)
    now = utcnow()
    doc = db["visitors"].find_one_and_update(
        {"date": key},
        {"$inc": {"count": 1}, "$set": {"updatedAt": now}, "$setOnInsert": {"createdAt": now}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int((doc or {}).get("count", 0))


def visit_count(db: Database, today: Optional[date] = None) -> Dict[str, Any]:
    key = today_key(today)
    doc = db["visitors"].find_one({"date": key})
    return {"date": key, "count": int((doc or {}).get("count", 0))}


def visitor_series(db: Database, days: Optional[int] = None, today: Optional[date] = None) -> Dict[str, Any]:
    """Daily visitor counts for the trailing window, oldest first, zero-filled."""
    days = days or config.VISITOR_DAYS
    today = today or datetime.now().date()
    start = today - timedelta(days=days - 1)

    counts: Dict[str, int] = {}
    for d in db["visitors"].find({"date": {"$gte": date_key(start)}}).sort("date", ASCENDING):
        counts[d["date"]] = int(d.get("count") or 0)

    series: List[Dict[str, Any]] = []
    for i in range(days):
        key = date_key(start + timedelta(days=i))
        series.append({"date": key, "count": counts.get(key, 0)})

    return {
        "series": series,
        "today": counts.get(date_key(today), 0),
        "total": sum(p["count"] for p in series),
        "days": days,
    }
