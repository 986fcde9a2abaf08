import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from pymongo import ReturnDocument
from pymongo.database import Database

from auth_api import MIN_PASSWORD_LENGTH
from database import doc_to_public, get_db, parse_object_id, utcnow
from schemas import PHONE_PATTERN, Address
from security import get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/profile", tags=["profile"])


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    address: Optional[Address] = None


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str


@router.get("")
def get_profile(db: Database = Depends(get_db), current=Depends(get_current_user)):
    uid = str(current["_id"])
    orders = db["order"].find({"user_id": uid}).sort("created_at", -1).limit(10)
    return {
        "success": True,
        "user": doc_to_public(current),
        "orders": [doc_to_public(o) for o in orders],
        "orders_count": db["order"].count_documents({"user_id": uid}),
    }


@router.put("")
def update_profile(body: ProfileUpdateRequest, db: Database = Depends(get_db), current=Depends(get_current_user)):
    updates = body.model_dump(exclude_none=True)
    if "name" in updates:
        updates["name"] = updates["name"].strip()
    updates["updated_at"] = utcnow()
    user = db["user"].find_one_and_update(
        {"_id": current["_id"]},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    return {"success": True, "message": "Profile updated successfully", "user": doc_to_public(user)}


@router.put("/change-password")
def change_password(body: ChangePasswordRequest, db: Database = Depends(get_db), current=Depends(get_current_user)):
    if not body.current_password or not body.new_password:
        raise HTTPException(status_code=400, detail="Both passwords are required")
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"New password must be at least {MIN_PASSWORD_LENGTH} characters")
    if not verify_password(body.current_password, current.get("password_hash", "")):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    db["user"].update_one(
        {"_id": current["_id"]},
        {"$set": {"password_hash": hash_password(body.new_password), "updated_at": utcnow()}},
    )
    logger.info("Password changed for %s", current.get("email"))
    return {"success": True, "message": "Password changed successfully"}


@router.get("/orders")
def list_my_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
    current=Depends(get_current_user),
):
    query = {"user_id": str(current["_id"])}
    cursor = db["order"].find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
    total = db["order"].count_documents(query)
    return {
        "success": True,
        "orders": [doc_to_public(o) for o in cursor],
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
    }


@router.get("/orders/{order_id}")
def get_my_order(order_id: str, db: Database = Depends(get_db), current=Depends(get_current_user)):
    doc = db["order"].find_one({"_id": parse_object_id(order_id, "Order not found"), "user_id": str(current["_id"])})
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"success": True, "order": doc_to_public(doc)}
