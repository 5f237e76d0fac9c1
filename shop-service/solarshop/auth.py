from fastapi import APIRouter, Depends, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .db import get_db
from .errors import Conflict, InvalidRequest, Unauthorized
from .models import User
from .schemas import UserLogin, UserRegister
from .sessions import SessionUser, create_token, get_current_user, is_admin_email

router = APIRouter()

MIN_PASSWORD_LENGTH = 8

# ------------------------------
# Password hashing
# ------------------------------
pwd_context = CryptContext(
    schemes=["sha256_crypt"],
    deprecated="auto",
)

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


def _user_out(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "is_admin": is_admin_email(user.email),
    }


# ------------------------------
# Endpoints
# ------------------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user: UserRegister, db: Session = Depends(get_db)):
    """
    Registration:
    - Normalise email
    - Reject duplicates
    - Hash password
    - Store
    """
    email = user.email.strip().lower()
    name = user.name.strip()

    if not name:
        raise InvalidRequest("Name is required")
    if len(user.password) < MIN_PASSWORD_LENGTH:
        raise InvalidRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise Conflict("An account with this email already exists.")

    user_obj = User(
        email=email,
        name=name,
        password_hash=hash_password(user.password),
    )
    db.add(user_obj)
    db.commit()
    db.refresh(user_obj)

    return {"message": "User created successfully!", "user": _user_out(user_obj)}


@router.post("/login")
def login(user: UserLogin, db: Session = Depends(get_db)):
    email = user.email.strip().lower()
    user_obj = db.query(User).filter(User.email == email).first()

    if not user_obj or not verify_password(user.password, user_obj.password_hash):
        raise Unauthorized("Invalid credentials")

    return {
        "access_token": create_token(user_obj),
        "token_type": "bearer",
        "user": _user_out(user_obj),
    }


@router.get("/me")
def me(current: SessionUser = Depends(get_current_user)):
    return current
