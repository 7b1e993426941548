import secrets
import string
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Cookie, HTTPException, Response

from . import config
from .models import utcnow

log = logging.getLogger("burgerhouse.security")

_RESET_ALPHABET = string.ascii_letters + string.digits


# ---------------- Passwords ----------------
def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode()


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
    except ValueError:
        return False


def generate_reset_token(length: int = 64) -> str:
    return "".join(secrets.choice(_RESET_ALPHABET) for _ in range(length))


# ---------------- Tokens ----------------
def create_token(user_id: str, email: str, role: str) -> str:
    now = utcnow()
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(days=config.JWT_EXPIRES_DAYS),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        log.debug("Rejected auth token: %s", exc)
        return None
    if not payload.get("userId"):
        return None
    return payload


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=config.AUTH_COOKIE,
        value=token,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
        max_age=config.JWT_EXPIRES_DAYS * 24 * 60 * 60,
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=config.AUTH_COOKIE, path="/")


# ---------------- Dependencies ----------------
def optional_user(auth_token: Optional[str] = Cookie(default=None)) -> Optional[Dict[str, Any]]:
    return decode_token(auth_token)


def current_user(auth_token: Optional[str] = Cookie(default=None)) -> Dict[str, Any]:
    payload = decode_token(auth_token)
    if payload is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return payload


def require_admin(auth_token: Optional[str] = Cookie(default=None)) -> Dict[str, Any]:
    payload = decode_token(auth_token)
    if payload is None or payload.get("role") != "admin":
        raise HTTPException(status_code=401, detail="Unauthorized. Admin access required.")
    return payload
