import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..db import get_db
from ..models import (
    DEFAULT_ORDER_STATUS,
    PAYMENT_METHOD,
    PlaceOrderReq,
    generate_order_number,
    is_valid_phone,
    normalize_phone,
    order_summary,
    serialize,
    to_object_id,
    utcnow,
)
from ..realtime import broadcast_event
from ..security import current_user

log = logging.getLogger("burgerhouse.routes.orders")

router = APIRouter(prefix="/api/orders", tags=["Orders"])

ORDER_NUMBER_ATTEMPTS = 3


def _priced_items(db: Database, req: PlaceOrderReq) -> List[Dict[str, Any]]:
    """Resolve requested product ids against the catalog; prices come from the DB."""
    wanted: Dict[Any, int] = {}
    for it in req.items:
        oid = to_object_id(it.product, "product ID")
        wanted[oid] = wanted.get(oid, 0) + it.quantity

    products = {p["_id"]: p for p in db["products"].find({"_id": {"$in": list(wanted)}})}
    items = []
    for oid, qty in wanted.items():
        product = products.get(oid)
        if product is None:
            raise HTTPException(status_code=400, detail=f"Product {oid} no longer exists")
        if not product.get("isAvailable", True):
            raise HTTPException(status_code=400, detail=f"{product.get('name', 'Product')} is currently unavailable")
        items.append({
            "product": oid,
            "name": product.get("name", ""),
            "price": float(product.get("price") or 0),
            "quantity": qty,
            "image": product.get("image") or "",
        })
    return items


def order_created_payload(order: Dict[str, Any]) -> Dict[str, Any]:
    details = order.get("deliveryDetails") or {}
    return {
        "orderId": order["_id"],
        "orderNumber": order.get("orderNumber"),
        "totalAmount": order.get("totalAmount"),
        "status": order.get("status"),
        "createdAt": order.get("createdAt"),
        "customerName": details.get("fullName"),
        "phone": order.get("phone"),
        "items": [{"name": it.get("name"), "quantity": it.get("quantity")} for it in order.get("items") or []],
    }


@router.post("", status_code=201)
def place_order(req: PlaceOrderReq, auth: Dict[str, Any] = Depends(current_user), db: Database = Depends(get_db)):
    if not req.email or not req.phone or req.deliveryDetails is None:
        raise HTTPException(status_code=400, detail="Missing required fields: email, phone, or delivery details")
    if not is_valid_phone(req.phone):
        raise HTTPException(status_code=400, detail="Invalid phone number format")

    details = req.deliveryDetails
    fields = {
        "fullName": (details.fullName or "").strip(),
        "address": (details.address or "").strip(),
        "city": (details.city or "").strip(),
        "postalCode": (details.postalCode or "").strip(),
    }
    if not all(fields.values()):
        raise HTTPException(
            status_code=400,
            detail="All delivery details are required (fullName, address, city, postalCode)",
        )
    fields["location"] = details.location.model_dump() if details.location else None

    if not req.items:
        raise HTTPException(status_code=400, detail="Order must have at least one item")
    items = _priced_items(db, req)
    total = round(sum(it["price"] * it["quantity"] for it in items), 2)

    now = utcnow()
    order = {
        "user": to_object_id(auth["userId"], "user ID"),
        "email": req.email.strip().lower(),
        "phone": normalize_phone(req.phone),
        "deliveryDetails": fields,
        "items": items,
        "totalAmount": total,
        "paymentMethod": PAYMENT_METHOD,
        "status": DEFAULT_ORDER_STATUS,
        "createdAt": now,
        "updatedAt": now,
    }

    for attempt in range(ORDER_NUMBER_ATTEMPTS):
        order["orderNumber"] = generate_order_number()
        order.pop("_id", None)
        try:
            order["_id"] = db["orders"].insert_one(order).inserted_id
            break
        except DuplicateKeyError:
            log.warning("orderNumber collision (%s), retrying", order["orderNumber"])
        except PyMongoError:
            log.exception("Error creating order for user=%s", auth["userId"])
            raise HTTPException(status_code=500, detail="Failed to create order. Please try again.")
    else:
        raise HTTPException(status_code=500, detail="Failed to create order. Please try again.")

    log.info("Order %s placed by %s (%.2f)", order["orderNumber"], auth.get("email"), total)
    broadcast_event("order_created", order_created_payload(order))

    return {"message": "Order placed successfully!", "order": order_summary(order)}


@router.get("")
def my_orders(auth: Dict[str, Any] = Depends(current_user), db: Database = Depends(get_db)):
    user_id = to_object_id(auth["userId"], "user ID")
    cur = db["orders"].find({"user": user_id}).sort([("createdAt", DESCENDING), ("_id", DESCENDING)])
    return serialize(list(cur))
