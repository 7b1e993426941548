from datetime import date, datetime, timedelta, timezone

import pytest

from burgerhouse import analytics, mailer
from burgerhouse.models import new_user_doc
from burgerhouse.routes import admin as admin_routes
from burgerhouse.routes import orders as order_routes

from .conftest import USER_EMAIL


@pytest.fixture()
def events(monkeypatch):
    sent = []
    recorder = lambda event, data: sent.append((event, data))
    monkeypatch.setattr(order_routes, "broadcast_event", recorder)
    monkeypatch.setattr(admin_routes, "broadcast_event", recorder)
    return sent


@pytest.fixture()
def mails(monkeypatch):
    sent = []
    monkeypatch.setattr(mailer, "send_order_status_email", lambda order, status: sent.append((order, status)))
    return sent


@pytest.fixture()
def orders(user_client, menu, events):
    placed = []
    for name, phone in (("Nimal Perera", "0771111111"), ("Kamala Silva", "0772222222"), ("Sunil Fernando", "0773333333")):
        body = {
            "email": USER_EMAIL,
            "phone": phone,
            "deliveryDetails": {"fullName": name, "address": "1 Main St", "city": "Galle", "postalCode": "80000"},
            "items": [{"product": str(menu["French Fries"]["_id"]), "quantity": 1}],
        }
        resp = user_client.post("/api/orders", json=body)
        assert resp.status_code == 201, resp.text
        placed.append(resp.json()["order"])
    return placed


def test_admin_routes_reject_customers(user_client, anon_client):
    for path in ("/api/admin/orders", "/api/admin/users", "/api/admin/analytics/visitors", "/api/admin/orders/stream"):
        assert user_client.get(path).status_code == 401
        assert anon_client.get(path).status_code == 401


def test_list_orders_paged_newest_first(admin_client, orders):
    page = admin_client.get("/api/admin/orders", params={"limit": 2}).json()
    assert page["total"] == 3
    assert page["pages"] == 2
    assert [o["_id"] for o in page["items"]] == [orders[2]["_id"], orders[1]["_id"]]
    assert page["items"][0]["user"]["email"] == USER_EMAIL

    rest = admin_client.get("/api/admin/orders", params={"limit": 2, "page": 2}).json()
    assert [o["_id"] for o in rest["items"]] == [orders[0]["_id"]]


def test_page_and_limit_are_clamped(admin_client, orders):
    low = admin_client.get("/api/admin/orders", params={"limit": 0, "page": 0})
    assert low.status_code == 200
    body = low.json()
    assert (body["page"], body["limit"], body["pages"]) == (1, 1, 3)
    assert [o["_id"] for o in body["items"]] == [orders[2]["_id"]]

    high = admin_client.get("/api/admin/orders", params={"limit": 500}).json()
    assert high["limit"] == 100
    assert len(high["items"]) == 3

    users = admin_client.get("/api/admin/users", params={"limit": 0, "page": 0})
    assert users.status_code == 200
    assert users.json()["limit"] == 1


def test_list_orders_search_and_status(admin_client, orders, events, mails):
    found = admin_client.get("/api/admin/orders", params={"search": "kamala"}).json()
    assert [o["_id"] for o in found["items"]] == [orders[1]["_id"]]

    admin_client.put(f"/api/admin/orders/{orders[0]['_id']}", json={"status": "preparing"})
    preparing = admin_client.get("/api/admin/orders", params={"status": "preparing"}).json()
    assert [o["_id"] for o in preparing["items"]] == [orders[0]["_id"]]
    assert admin_client.get("/api/admin/orders", params={"status": "all"}).json()["total"] == 3
    assert admin_client.get("/api/admin/orders", params={"status": "lost"}).status_code == 400
    assert admin_client.get("/api/admin/orders", params={"sort": "password"}).status_code == 400


def test_sort_by_amount(admin_client, orders):
    items = admin_client.get("/api/admin/orders", params={"sort": "totalAmount"}).json()["items"]
    assert len(items) == 3


def test_get_order(admin_client, orders):
    resp = admin_client.get(f"/api/admin/orders/{orders[0]['_id']}")
    assert resp.status_code == 200
    assert resp.json()["orderNumber"] == orders[0]["orderNumber"]
    assert admin_client.get("/api/admin/orders/xyz").status_code == 400
    assert admin_client.get("/api/admin/orders/" + "0" * 24).status_code == 404


def test_update_status_broadcasts_and_emails(admin_client, orders, events, mails):
    events.clear()
    resp = admin_client.put(f"/api/admin/orders/{orders[0]['_id']}", json={"status": "out_for_delivery"})
    assert resp.status_code == 200
    assert resp.json()["order"]["status"] == "out_for_delivery"

    assert [e for e, _ in events] == ["order_updated"]
    assert events[0][1]["orderNumber"] == orders[0]["orderNumber"]
    assert events[0][1]["status"] == "out_for_delivery"

    assert len(mails) == 1
    assert mails[0][1] == "out_for_delivery"
    assert mails[0][0]["email"] == USER_EMAIL


def test_update_status_validation(admin_client, orders, events, mails):
    events.clear()
    bad = admin_client.put(f"/api/admin/orders/{orders[0]['_id']}", json={"status": "teleported"})
    assert bad.status_code == 400
    missing = admin_client.put("/api/admin/orders/" + "0" * 24, json={"status": "delivered"})
    assert missing.status_code == 404
    assert events == []
    assert mails == []


def test_list_users_excludes_admins(admin_client, users):
    body = admin_client.get("/api/admin/users").json()
    assert body["total"] == 1
    assert [u["email"] for u in body["users"]] == [USER_EMAIL]
    assert "password" not in body["users"][0]
    assert body["todayNew"] == 1


def test_today_new_counts_from_local_midnight(admin_client, users, database):
    start = admin_routes._start_of_local_day()
    late = new_user_doc("Late", "late@example.com", "x")
    late["createdAt"] = start - timedelta(seconds=1)
    early = new_user_doc("Early", "early@example.com", "x")
    early["createdAt"] = start
    database["users"].insert_many([late, early])

    body = admin_client.get("/api/admin/users").json()
    assert body["total"] == 3
    assert body["todayNew"] == 2


def test_start_of_local_day_is_local_midnight_in_utc():
    start = admin_routes._start_of_local_day(datetime(2026, 3, 3, 15, 30))
    assert start.tzinfo is None
    local = start.replace(tzinfo=timezone.utc).astimezone()
    assert (local.date(), local.hour, local.minute) == (date(2026, 3, 3), 0, 0)


def test_visitor_analytics(admin_client, anon_client, database):
    for _ in range(3):
        assert anon_client.post("/api/analytics/visit").json() == {"success": True}
    assert anon_client.get("/api/analytics/visit").json()["count"] == 3

    body = admin_client.get("/api/admin/analytics/visitors").json()
    assert body["days"] == 14
    assert len(body["series"]) == 14
    assert body["today"] == 3
    assert body["total"] == 3
    assert body["series"][-1]["count"] == 3


def test_visitor_series_zero_fills(database):
    database["visitors"].insert_many([
        {"date": "2026-03-01", "count": 4},
        {"date": "2026-03-03", "count": 2},
        {"date": "2026-02-01", "count": 99},
    ])
    body = analytics.visitor_series(database, days=3, today=date(2026, 3, 3))
    assert body["series"] == [
        {"date": "2026-03-01", "count": 4},
        {"date": "2026-03-02", "count": 0},
        {"date": "2026-03-03", "count": 2},
    ]
    assert body["today"] == 2
    assert body["total"] == 6
