from datetime import timedelta

from burgerhouse import mailer
from burgerhouse.models import utcnow
from burgerhouse.security import create_token, decode_token, hash_password, verify_password

from .conftest import PASSWORD, USER_EMAIL


def test_password_hash_roundtrip():
    hashed = hash_password("pa55word")
    assert hashed != "pa55word"
    assert verify_password("pa55word", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("pa55word", None)


def test_token_carries_identity_and_rejects_tampering():
    token = create_token("abc123", "a@b.c", "admin")
    payload = decode_token(token)
    assert payload["userId"] == "abc123"
    assert payload["role"] == "admin"
    assert decode_token(token + "x") is None
    assert decode_token(None) is None


def test_signup_sets_cookie(anon_client, database):
    resp = anon_client.post("/api/auth/signup", json={"name": "New", "email": "New@Example.com", "password": PASSWORD})
    assert resp.status_code == 201
    assert "auth_token=" in resp.headers["set-cookie"]
    assert resp.json()["user"]["email"] == "new@example.com"
    stored = database["users"].find_one({"email": "new@example.com"})
    assert stored["role"] == "user"
    assert stored["password"] != PASSWORD


def test_signup_rejects_short_password_and_duplicates(anon_client, users):
    short = anon_client.post("/api/auth/signup", json={"name": "X", "email": "x@example.com", "password": "123"})
    assert short.status_code == 400
    dup = anon_client.post("/api/auth/signup", json={"name": "X", "email": USER_EMAIL.upper(), "password": PASSWORD})
    assert dup.status_code == 409


def test_signup_without_password_is_a_400_with_message(anon_client, database):
    resp = anon_client.post("/api/auth/signup", json={"name": "X", "email": "x@example.com"})
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert isinstance(detail, str)
    assert detail.startswith("password:")
    assert database["users"].count_documents({}) == 0


def test_login(anon_client, users):
    bad = anon_client.post("/api/auth/login", json={"email": USER_EMAIL, "password": "nope"})
    assert bad.status_code == 401
    ok = anon_client.post("/api/auth/login", json={"email": USER_EMAIL, "password": PASSWORD})
    assert ok.status_code == 200
    assert "auth_token=" in ok.headers["set-cookie"]
    assert ok.json()["user"]["role"] == "user"


def test_verify(anon_client, user_client):
    assert anon_client.get("/api/auth/verify").status_code == 401
    resp = user_client.get("/api/auth/verify")
    assert resp.status_code == 200
    body = resp.json()
    assert body["authenticated"] is True
    assert body["user"]["email"] == USER_EMAIL


def test_logout_clears_cookie(user_client):
    resp = user_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert "auth_token=" in resp.headers["set-cookie"]


def test_forgot_password_does_not_reveal_accounts(anon_client, users, monkeypatch):
    sent = []
    monkeypatch.setattr(mailer, "send_password_reset_email", lambda user, url: sent.append(url))
    unknown = anon_client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
    known = anon_client.post("/api/auth/forgot-password", json={"email": USER_EMAIL})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json() == known.json()
    assert len(sent) == 1
    assert "/admin/reset-password?token=" in sent[0]


def test_reset_password_flow(anon_client, users, database, monkeypatch):
    sent = []
    monkeypatch.setattr(mailer, "send_password_reset_email", lambda user, url: sent.append(url))
    anon_client.post("/api/auth/forgot-password", json={"email": USER_EMAIL})
    token = sent[0].split("token=")[1]

    assert anon_client.post("/api/auth/reset-password", json={"token": token, "password": "123"}).status_code == 400
    resp = anon_client.post("/api/auth/reset-password", json={"token": token, "password": "brandnew1"})
    assert resp.status_code == 200

    user = database["users"].find_one({"email": USER_EMAIL})
    assert "resetToken" not in user
    login = anon_client.post("/api/auth/login", json={"email": USER_EMAIL, "password": "brandnew1"})
    assert login.status_code == 200
    # token is single use
    again = anon_client.post("/api/auth/reset-password", json={"token": token, "password": "another1"})
    assert again.status_code == 400


def test_expired_reset_token_rejected(anon_client, users, database):
    database["users"].update_one(
        {"email": USER_EMAIL},
        {"$set": {"resetToken": "t" * 64, "resetTokenExpiry": utcnow() - timedelta(minutes=1)}},
    )
    resp = anon_client.post("/api/auth/reset-password", json={"token": "t" * 64, "password": "brandnew1"})
    assert resp.status_code == 400
