# solarshop/sessions.py
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .config import Config
from .db import get_db
from .errors import Forbidden, Unauthorized
from .models import User

JWT_ALGO = "HS256"

# auto_error=False so anonymous callers reach endpoints that allow them
security = HTTPBearer(auto_error=False)


class SessionUser(BaseModel):
    id: int
    email: str
    name: str
    is_admin: bool = False


def is_admin_email(email: str) -> bool:
    return (email or "").strip().lower() in Config.ADMIN_EMAILS


def create_token(user: User) -> str:
    exp = datetime.now(timezone.utc) + timedelta(minutes=Config.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": str(user.id), "email": user.email, "exp": exp}
    return jwt.encode(payload, Config.SECRET_KEY, algorithm=JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, Config.SECRET_KEY, algorithms=[JWT_ALGO])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def _session_user(token: str, db: Session) -> SessionUser:
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token payload")

    user = db.get(User, user_id)
    if not user:
        raise Unauthorized("User not found")

    return SessionUser(
        id=user.id,
        email=user.email,
        name=user.name,
        is_admin=is_admin_email(user.email),
    )


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[SessionUser]:
    if credentials is None:
        return None
    return _session_user(credentials.credentials, db)


def get_current_user(
    user: Optional[SessionUser] = Depends(get_optional_user),
) -> SessionUser:
    if user is None:
        raise Unauthorized()
    return user


def require_admin(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    if not user.is_admin:
        raise Forbidden("Admin only")
    return user
