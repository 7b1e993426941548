import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

from .. import config, mailer
from ..db import get_db
from ..models import (
    PASSWORD_MIN_LEN,
    ForgotPasswordReq,
    LoginReq,
    ResetPasswordReq,
    SignupReq,
    new_user_doc,
    public_user,
    utcnow,
)
from ..security import (
    clear_auth_cookie,
    create_token,
    generate_reset_token,
    hash_password,
    optional_user,
    set_auth_cookie,
    verify_password,
)

log = logging.getLogger("burgerhouse.routes.auth")

router = APIRouter(prefix="/api/auth", tags=["Auth"])

RESET_SENT_MESSAGE = "If an account exists with this email, a reset link has been sent."


def _login_response(user: Dict[str, Any], message: str, status_code: int = 200) -> JSONResponse:
    token = create_token(str(user["_id"]), user["email"], user.get("role", "user"))
    resp = JSONResponse(status_code=status_code, content={"message": message, "user": public_user(user)})
    set_auth_cookie(resp, token)
    return resp


@router.post("/signup", status_code=201)
def signup(req: SignupReq, db: Database = Depends(get_db)):
    email = req.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if len(req.password) < PASSWORD_MIN_LEN:
        raise HTTPException(status_code=400, detail=f"Password must be at least {PASSWORD_MIN_LEN} characters")
    if not req.name.strip():
        raise HTTPException(status_code=400, detail="Name is required")

    doc = new_user_doc(req.name, email, hash_password(req.password))
    try:
        if db["users"].find_one({"email": email}, {"_id": 1}):
            raise HTTPException(status_code=409, detail="An account with this email already exists")
        doc["_id"] = db["users"].insert_one(doc).inserted_id
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="An account with this email already exists")
    log.info("New user signed up: %s", email)
    return _login_response(doc, "Account created", status_code=201)


@router.post("/login")
def login(req: LoginReq, db: Database = Depends(get_db)):
    user = db["users"].find_one({"email": req.email.strip().lower()})
    if not user or not verify_password(req.password, user.get("password")):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _login_response(user, "Login successful")


@router.post("/logout")
def logout(response: Response):
    clear_auth_cookie(response)
    return {"message": "Logged out"}


@router.get("/verify")
def verify(auth: Optional[Dict[str, Any]] = Depends(optional_user)):
    if auth is None:
        return JSONResponse(status_code=401, content={"authenticated": False})
    return {
        "authenticated": True,
        "user": {"userId": auth["userId"], "email": auth.get("email"), "role": auth.get("role")},
    }


@router.post("/forgot-password")
def forgot_password(req: ForgotPasswordReq, db: Database = Depends(get_db)):
    email = (req.email or "").strip().lower()
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")

    user = db["users"].find_one({"email": email})
    # Same answer whether or not the account exists.
    if not user:
        return {"success": True, "message": RESET_SENT_MESSAGE}

    token = generate_reset_token()
    try:
        db["users"].update_one(
            {"_id": user["_id"]},
            {"$set": {
                "resetToken": token,
                "resetTokenExpiry": utcnow() + timedelta(minutes=config.RESET_TOKEN_TTL_MIN),
                "updatedAt": utcnow(),
            }},
        )
    except PyMongoError:
        log.exception("Storing reset token failed for %s", email)
        raise HTTPException(status_code=500, detail="Internal server error")

    reset_url = f"{config.APP_URL}/admin/reset-password?token={token}"
    mailer.send_password_reset_email(user, reset_url)
    return {"success": True, "message": RESET_SENT_MESSAGE}


@router.post("/reset-password")
def reset_password(req: ResetPasswordReq, db: Database = Depends(get_db)):
    if not req.token or not req.password:
        raise HTTPException(status_code=400, detail="Token and password are required")
    if len(req.password) < PASSWORD_MIN_LEN:
        raise HTTPException(status_code=400, detail=f"Password must be at least {PASSWORD_MIN_LEN} characters")

    user = db["users"].find_one({"resetToken": req.token, "resetTokenExpiry": {"$gt": utcnow()}})
    if not user:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    db["users"].update_one(
        {"_id": user["_id"]},
        {
            "$set": {"password": hash_password(req.password), "updatedAt": utcnow()},
            "$unset": {"resetToken": "", "resetTokenExpiry": ""},
        },
    )
    log.info("Password reset for %s", user.get("email"))
    return {"success": True, "message": "Password reset successfully"}
