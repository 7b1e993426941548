import logging
from datetime import datetime, time as dtime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pymongo import ReturnDocument
from pymongo.database import Database

from .. import analytics, config, mailer
from ..db import get_db
from ..models import ORDER_STATUSES, OrderStatusReq, serialize, to_object_id, utcnow
from ..query import merge_filters, page_params, paginate, search_filter, sort_spec
from ..realtime import SSE_HEADERS, broadcast_event, broadcaster
from ..security import require_admin

log = logging.getLogger("burgerhouse.routes.admin")

router = APIRouter(prefix="/api/admin", tags=["Admin"])

ORDER_SEARCH_FIELDS = ("orderNumber", "email", "phone", "deliveryDetails.fullName")
ORDER_SORT_FIELDS = ("createdAt", "updatedAt", "totalAmount", "status", "orderNumber")
USER_PROJECTION = {"name": 1, "email": 1, "role": 1, "authProvider": 1, "createdAt": 1}


def _populate_order_users(db: Database, orders):
    ids = list({o["user"] for o in orders if o.get("user") is not None})
    by_id = {}
    if ids:
        for u in db["users"].find({"_id": {"$in": ids}}, {"name": 1, "email": 1}):
            by_id[u["_id"]] = u
    for o in orders:
        o["user"] = by_id.get(o.get("user"), o.get("user"))
    return orders


def _start_of_local_day(now: Optional[datetime] = None) -> datetime:
    # Local midnight expressed as naive UTC, matching stored timestamps.
    today = (now or datetime.now()).date()
    local_midnight = datetime.combine(today, dtime.min).astimezone()
    return local_midnight.astimezone(timezone.utc).replace(tzinfo=None)


# ---------------- Orders ----------------
@router.get("/orders")
def list_orders(
    status: Optional[str] = None,
    search: Optional[str] = Query(default=None, max_length=100),
    sort: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
    _admin=Depends(require_admin),
    db: Database = Depends(get_db),
):
    status_filter: Dict[str, Any] = {}
    if status and status != "all":
        if status not in ORDER_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")
        status_filter = {"status": status}

    page, limit, skip = page_params(page, limit, default_limit=config.DEFAULT_PAGE_SIZE)
    flt = merge_filters(status_filter, search_filter(search, ORDER_SEARCH_FIELDS))
    result = paginate(db["orders"], flt, sort_spec(sort, ORDER_SORT_FIELDS), page, limit, skip)
    result["items"] = _populate_order_users(db, result["items"])
    return serialize(result)


@router.get("/orders/stream")
async def order_stream(request: Request, _admin=Depends(require_admin)):
    return StreamingResponse(
        broadcaster.stream(request.is_disconnected),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/orders/{order_id}")
def get_order(order_id: str, _admin=Depends(require_admin), db: Database = Depends(get_db)):
    order = db["orders"].find_one({"_id": to_object_id(order_id, "order ID")})
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return serialize(_populate_order_users(db, [order])[0])


@router.put("/orders/{order_id}")
def update_order_status(
    order_id: str,
    req: OrderStatusReq,
    background: BackgroundTasks,
    _admin=Depends(require_admin),
    db: Database = Depends(get_db),
):
    oid = to_object_id(order_id, "order ID")
    if not req.status or req.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")

    order = db["orders"].find_one_and_update(
        {"_id": oid},
        {"$set": {"status": req.status, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    log.info("Order %s -> %s", order.get("orderNumber"), req.status)
    broadcast_event("order_updated", {
        "orderId": order["_id"],
        "orderNumber": order.get("orderNumber"),
        "status": order["status"],
        "updatedAt": order.get("updatedAt"),
    })
    background.add_task(mailer.send_order_status_email, dict(order), req.status)

    return serialize({
        "message": "Order status updated successfully",
        "order": _populate_order_users(db, [order])[0],
    })


# ---------------- Users ----------------
@router.get("/users")
def list_users(
    page: int = 1,
    limit: Optional[int] = None,
    _admin=Depends(require_admin),
    db: Database = Depends(get_db),
):
    base = {"role": {"$ne": "admin"}}
    page, limit, skip = page_params(page, limit)
    result = paginate(db["users"], base, sort_spec(None, ("createdAt",)), page, limit, skip, USER_PROJECTION)
    today_new = db["users"].count_documents({**base, "createdAt": {"$gte": _start_of_local_day()}})
    return serialize({
        "users": result["items"],
        "total": result["total"],
        "page": result["page"],
        "limit": result["limit"],
        "todayNew": today_new,
    })


# ---------------- Analytics ----------------
@router.get("/analytics/visitors")
def visitor_analytics(_admin=Depends(require_admin), db: Database = Depends(get_db)):
    return analytics.visitor_series(db)
