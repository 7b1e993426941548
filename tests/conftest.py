import os

os.environ.pop("MONGODB_URI", None)
os.environ.pop("MONGO_URI", None)
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASSWORD", None)
os.environ.setdefault("JWT_SECRET", "test-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

from burgerhouse import db
from burgerhouse.main import app
from burgerhouse.models import new_user_doc
from burgerhouse.seed import bootstrap_menu_if_empty
from burgerhouse.security import create_token, hash_password

ADMIN_EMAIL = "boss@burgerhouse.test"
USER_EMAIL = "diner@example.com"
PASSWORD = "secret123"


@pytest.fixture()
def database():
    client = mongomock.MongoClient()
    database = client["burger-house-test"]
    db.ensure_indexes(database)
    db.use_database(database)
    try:
        yield database
    finally:
        db.use_database(None)


@pytest.fixture()
def users(database):
    admin = new_user_doc("Boss", ADMIN_EMAIL, hash_password(PASSWORD), role="admin")
    user = new_user_doc("Diner", USER_EMAIL, hash_password(PASSWORD))
    admin["_id"] = database["users"].insert_one(admin).inserted_id
    user["_id"] = database["users"].insert_one(user).inserted_id
    return {"admin": admin, "user": user}


@pytest.fixture()
def menu(database):
    bootstrap_menu_if_empty(database)
    return {p["name"]: p for p in database["products"].find({})}


def _client_as(user=None):
    client = TestClient(app)
    if user is not None:
        token = create_token(str(user["_id"]), user["email"], user["role"])
        client.cookies.set("auth_token", token)
    return client


@pytest.fixture()
def anon_client(database):
    return _client_as()


@pytest.fixture()
def user_client(users):
    return _client_as(users["user"])


@pytest.fixture()
def admin_client(users):
    return _client_as(users["admin"])
