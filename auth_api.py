import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, EmailStr
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, doc_to_public, get_db, utcnow
from schemas import User as UserSchema
from security import get_current_user, hash_password, public_user, token_for_user, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    name: str
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, db: Database = Depends(get_db)):
    name = body.name.strip()
    email = body.email.strip().lower()
    if not name or not body.password:
        raise HTTPException(status_code=400, detail="All fields are required")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if body.confirm_password is not None and body.password != body.confirm_password:
        raise HTTPException(status_code=400, detail="Passwords do not match")
    if db["user"].find_one({"email": email}):
        raise HTTPException(status_code=400, detail="User with this email already exists")

    if not 2 <= len(name) <= 100:
        raise HTTPException(status_code=400, detail="Name must be between 2 and 100 characters")

    user = UserSchema(name=name, email=email, password_hash=hash_password(body.password), role="customer")
    try:
        uid = create_document(db, "user", user)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User with this email already exists")

    saved = db["user"].find_one({"email": email})
    logger.info("User registered: %s (%s)", email, uid)
    return AuthResponse(access_token=token_for_user(saved), user=public_user(saved))


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Database = Depends(get_db)):
    email = body.email.strip().lower()
    user = db["user"].find_one({"email": email})
    if not user or not user.get("password_hash") or not verify_password(body.password, user["password_hash"]):
        logger.info("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account is deactivated")

    db["user"].update_one({"_id": user["_id"]}, {"$set": {"last_login": utcnow()}})
    logger.info("Login successful: %s", email)
    return AuthResponse(access_token=token_for_user(user), user=public_user(user))


@router.get("/me")
def me(current=Depends(get_current_user)):
    return {"user": doc_to_public(current)}


@router.post("/logout")
def logout(current=Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    return {"success": True, "message": "Logout successful (remove token client-side)"}
