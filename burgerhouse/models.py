import re
import random
import string
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import HTTPException
from pydantic import BaseModel, Field

# ---------------- Enums ----------------
ROLES = ("admin", "user")

ORDER_STATUSES = ("received", "preparing", "out_for_delivery", "delivered", "cancelled")
DEFAULT_ORDER_STATUS = "received"
PAYMENT_METHOD = "cash_on_delivery"

PASSWORD_MIN_LEN = 6
CATEGORY_NAME_MAX = 50
PRODUCT_NAME_MAX = 100
PRODUCT_DESC_MAX = 500

# Sri Lankan numbers: 0771234567, +94771234567, 94771234567
PHONE_RE = re.compile(r"^(\+?94|0)?[0-9]{9}$")

_BASE36 = string.digits + string.ascii_uppercase


# ---------------- Utilities ----------------
def utcnow() -> datetime:
    # Naive UTC; pymongo stores naive datetimes as UTC.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_object_id(value: Any, what: str = "ID") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {what}")
    return ObjectId(value)


def serialize(value: Any) -> Any:
    """JSON-safe copy of a Mongo document (or anything nested inside one)."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.isoformat(timespec="milliseconds") + "Z"
        return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (name or "").lower())
    return slug.strip("-")


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(_BASE36[r])
    return "".join(reversed(out))


def generate_order_number(now_ms: Optional[int] = None) -> str:
    ts = _base36(now_ms if now_ms is not None else int(time.time() * 1000))
    rnd = "".join(random.choices(_BASE36, k=4))
    return f"BH-{ts}-{rnd}"


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s", "", phone or "")


def is_valid_phone(phone: str) -> bool:
    return bool(PHONE_RE.match(normalize_phone(phone)))


# ---------------- Request Models ----------------
class SignupReq(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., max_length=200)


class LoginReq(BaseModel):
    email: str = Field(..., max_length=254)
    password: str = Field(..., max_length=200)


class ForgotPasswordReq(BaseModel):
    email: Optional[str] = None


class ResetPasswordReq(BaseModel):
    token: Optional[str] = None
    password: Optional[str] = None


class CategoryReq(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = ""


class ProductReq(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    image: Optional[str] = None
    isAvailable: Optional[bool] = None


class Location(BaseModel):
    lat: float
    lng: float


class DeliveryDetails(BaseModel):
    fullName: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postalCode: Optional[str] = None
    location: Optional[Location] = None


class OrderItemReq(BaseModel):
    product: str
    quantity: int = Field(default=1, ge=1, le=99)


class PlaceOrderReq(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    deliveryDetails: Optional[DeliveryDetails] = None
    items: List[OrderItemReq] = Field(default_factory=list)


class OrderStatusReq(BaseModel):
    status: Optional[str] = None


class ContactReq(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[str] = Field(default=None, max_length=254)
    subject: Optional[str] = Field(default=None, max_length=200)
    message: Optional[str] = Field(default=None, max_length=5000)


# ---------------- Documents ----------------
def new_user_doc(name: str, email: str, password_hash: str, role: str = "user") -> Dict[str, Any]:
    now = utcnow()
    return {
        "name": name.strip(),
        "email": email.strip().lower(),
        "password": password_hash,
        "role": role if role in ROLES else "user",
        "authProvider": "local",
        "createdAt": now,
        "updatedAt": now,
    }


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role", "user"),
    }


def order_summary(order: Dict[str, Any]) -> Dict[str, Any]:
    items = order.get("items") or []
    return serialize({
        "_id": order["_id"],
        "orderNumber": order.get("orderNumber"),
        "totalAmount": order.get("totalAmount"),
        "status": order.get("status"),
        "paymentMethod": order.get("paymentMethod"),
        "deliveryDetails": order.get("deliveryDetails"),
        "itemCount": len(items),
        "items": [
            {"name": it.get("name"), "quantity": it.get("quantity"), "price": it.get("price")}
            for it in items
        ],
        "createdAt": order.get("createdAt"),
    })
