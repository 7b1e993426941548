import re
from datetime import datetime

import pytest
from bson import ObjectId
from fastapi import HTTPException

from burgerhouse import mailer
from burgerhouse.models import (
    generate_order_number,
    is_valid_phone,
    serialize,
    slugify,
    to_object_id,
)
from burgerhouse.query import page_params, search_filter, sort_spec


@pytest.mark.parametrize("name,slug", [
    ("Burgers", "burgers"),
    ("Fries & Sides", "fries-sides"),
    ("--Ice  Cream--", "ice-cream"),
    ("Kottu 2.0", "kottu-2-0"),
])
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_order_number_shape():
    number = generate_order_number(now_ms=36 ** 3)
    assert re.match(r"^BH-1000-[0-9A-Z]{4}$", number)


@pytest.mark.parametrize("phone,ok", [
    ("0771234567", True),
    ("+94771234567", True),
    ("94771234567", True),
    ("077 123 4567", True),
    ("771234567", True),
    ("12345", False),
    ("+1 555 123 4567", False),
])
def test_phone_validation(phone, ok):
    assert is_valid_phone(phone) is ok


def test_serialize_nested_document():
    oid = ObjectId()
    doc = {"_id": oid, "items": [{"product": oid}], "createdAt": datetime(2026, 1, 2, 3, 4, 5)}
    assert serialize(doc) == {
        "_id": str(oid),
        "items": [{"product": str(oid)}],
        "createdAt": "2026-01-02T03:04:05.000Z",
    }


def test_to_object_id_rejects_garbage():
    with pytest.raises(HTTPException) as exc:
        to_object_id("nope", "order ID")
    assert exc.value.status_code == 400
    assert exc.value.detail == "Invalid order ID"


def test_page_params_clamps():
    assert page_params(0, 500) == (1, 100, 0)
    assert page_params(3, 10) == (3, 10, 20)
    assert page_params(2, None) == (1, None, 0)
    assert page_params(None, None, default_limit=20) == (1, 20, 0)


def test_sort_spec():
    assert sort_spec("-totalAmount", ("totalAmount",)) == [("totalAmount", -1), ("_id", -1)]
    assert sort_spec("totalAmount", ("totalAmount",)) == [("totalAmount", 1), ("_id", 1)]
    with pytest.raises(HTTPException):
        sort_spec("password", ("totalAmount",))


def test_search_filter_escapes_user_text():
    flt = search_filter("a.b*", ("name",))
    assert flt == {"$or": [{"name": {"$regex": re.escape("a.b*"), "$options": "i"}}]}
    assert search_filter("   ", ("name",)) == {}


def test_order_status_email_rendering():
    order = {
        "orderNumber": "BH-X-ABCD",
        "email": "a@b.c",
        "totalAmount": 1750,
        "deliveryDetails": {"fullName": "Nimal <script>"},
        "items": [{"name": "Classic Beef Burger", "price": 1450, "quantity": 1}],
    }
    rendered = mailer.render_order_status(order, "preparing")
    assert rendered["subject"] == "Your Order is Being Prepared - Burger House"
    assert "BH-X-ABCD" in rendered["text"]
    assert "Rs. 1,750.00" in rendered["html"]
    assert "<script>" not in rendered["html"]
    assert mailer.render_order_status(order, "teleported") is None


def test_send_email_without_smtp_only_logs():
    assert mailer.send_email("a@b.c", "Hi", "<p>Hi</p>", "Hi") is False
    assert mailer.send_email("", "Hi", "<p>Hi</p>", "Hi") is False
