import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, EmailStr
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import doc_to_public, get_db, parse_object_id, utcnow
from products_api import ProductCreateRequest, ProductUpdateRequest, create_product, delete_product, update_product
from schemas import ORDER_STATUSES, ROLES, OrderStatus, Role, Setting
from security import get_current_admin
from seed import seed_data

logger = logging.getLogger(__name__)

# Every route in this router is admin-only
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])

LOW_STOCK_THRESHOLD = 10
PERIOD_FORMATS = {"daily": "%Y-%m-%d", "monthly": "%Y-%m", "yearly": "%Y"}


class UserUpdateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class RoleUpdateRequest(BaseModel):
    role: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------

def _attach_customers(db: Database, orders: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    orders = [doc_to_public(o) for o in orders]
    ids = {parse_object_id(o["user_id"]) for o in orders if o.get("user_id")}
    users = {str(u["_id"]): u for u in db["user"].find({"_id": {"$in": list(ids)}})}
    for o in orders:
        u = users.get(o.get("user_id"))
        o["user"] = {"id": o.get("user_id"), "name": u.get("name"), "email": u.get("email")} if u else None
    return orders


def sales_by_period(orders: Iterable[Dict[str, Any]], period: str) -> List[Dict[str, Any]]:
    fmt = PERIOD_FORMATS[period]
    buckets: Dict[str, List[float]] = defaultdict(list)
    for o in orders:
        buckets[o["created_at"].strftime(fmt)].append(float(o.get("total_price", 0)))
    return [
        {
            "period": key,
            "total_sales": round(sum(totals), 2),
            "order_count": len(totals),
            "avg_order_value": round(sum(totals) / len(totals), 2),
        }
        for key, totals in sorted(buckets.items())
    ]


def top_products(orders: Iterable[Dict[str, Any]], limit: int) -> List[Dict[str, Any]]:
    stats: Dict[str, Dict[str, Any]] = {}
    for o in orders:
        for item in o.get("order_items", []):
            s = stats.setdefault(item["product_id"], {
                "product_id": item["product_id"],
                "name": item.get("name"),
                "total_sold": 0,
                "total_revenue": 0.0,
                "_prices": [],
            })
            s["total_sold"] += item["quantity"]
            s["total_revenue"] += item["price"] * item["quantity"]
            s["_prices"].append(item["price"])
    ranked = sorted(stats.values(), key=lambda s: s["total_sold"], reverse=True)[:limit]
    for s in ranked:
        prices = s.pop("_prices")
        s["total_revenue"] = round(s["total_revenue"], 2)
        s["avg_price"] = round(sum(prices) / len(prices), 2)
    return ranked


def _load_user(db: Database, user_id: str) -> Dict[str, Any]:
    user = db["user"].find_one({"_id": parse_object_id(user_id, "User not found")})
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ----------------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------------

@router.get("/dashboard/stats")
def dashboard_stats(db: Database = Depends(get_db)):
    since = utcnow() - timedelta(days=30)
    recent_orders = _attach_customers(db, db["order"].find({}).sort("created_at", -1).limit(10))
    recent_sales = sales_by_period(db["order"].find({"is_paid": True, "created_at": {"$gte": since}}), "daily")
    order_status = [
        {"status": row["_id"], "count": row["count"]}
        for row in db["order"].aggregate([{"$group": {"_id": "$status", "count": {"$sum": 1}}}])
    ]
    return {
        "success": True,
        "stats": {
            "users": db["user"].count_documents({}),
            "products": db["product"].count_documents({}),
            "orders": db["order"].count_documents({}),
            "recent_orders": len(recent_orders),
            "total_sales": round(sum(day["total_sales"] for day in recent_sales), 2),
        },
        "recent_orders": recent_orders,
        "recent_sales": recent_sales,
        "top_products": top_products(db["order"].find({}), 5),
        "order_status": sorted(order_status, key=lambda r: r["status"] or ""),
    }


# ----------------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------------

@router.get("/users")
def list_users(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100), db: Database = Depends(get_db)):
    cursor = db["user"].find({}).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
    total = db["user"].count_documents({})
    return {
        "success": True,
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
        "users": [doc_to_public(u) for u in cursor],
    }


@router.get("/users/{user_id}")
def get_user(user_id: str, db: Database = Depends(get_db)):
    user = _load_user(db, user_id)
    orders = db["order"].find({"user_id": str(user["_id"])}).sort("created_at", -1).limit(10)
    return {"success": True, "user": doc_to_public(user), "recent_orders": [doc_to_public(o) for o in orders]}


@router.put("/users/{user_id}")
def update_user(user_id: str, body: UserUpdateRequest, db: Database = Depends(get_db), admin=Depends(get_current_admin)):
    target = parse_object_id(user_id, "User not found")
    if target == admin["_id"]:
        if body.role and body.role != admin.get("role"):
            raise HTTPException(status_code=400, detail="Cannot change your own role")
        if body.is_active is False:
            raise HTTPException(status_code=400, detail="Cannot deactivate your own account")

    updates = body.model_dump(exclude_none=True)
    if "email" in updates:
        updates["email"] = updates["email"].strip().lower()
        taken = db["user"].find_one({"email": updates["email"]})
        if taken and taken["_id"] != target:
            raise HTTPException(status_code=400, detail="User with this email already exists")
    if "name" in updates:
        updates["name"] = updates["name"].strip()
    updates["updated_at"] = utcnow()
    try:
        user = db["user"].find_one_and_update(
            {"_id": target},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="User with this email already exists")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin %s updated user %s", admin.get("email"), user_id)
    return {"success": True, "message": "User updated successfully", "user": doc_to_public(user)}


@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Database = Depends(get_db), admin=Depends(get_current_admin)):
    target = parse_object_id(user_id, "User not found")
    if target == admin["_id"]:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    res = db["user"].delete_one({"_id": target})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin %s deleted user %s", admin.get("email"), user_id)
    return {"success": True, "message": "User deleted successfully"}


@router.put("/users/{user_id}/role")
def update_user_role(user_id: str, body: RoleUpdateRequest, db: Database = Depends(get_db), admin=Depends(get_current_admin)):
    if body.role not in ROLES:
        raise HTTPException(status_code=400, detail="Valid role is required (customer or admin)")
    target = parse_object_id(user_id, "User not found")
    if target == admin["_id"]:
        raise HTTPException(status_code=400, detail="Cannot change your own role")
    user = db["user"].find_one_and_update(
        {"_id": target},
        {"$set": {"role": body.role, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    logger.info("Admin %s set role of %s to %s", admin.get("email"), user_id, body.role)
    return {"success": True, "message": f"User role updated to {body.role}", "user": doc_to_public(user)}


# ----------------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------------

@router.get("/products")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None),
    stock_status: Optional[Literal["low", "out"]] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {}
    if category:
        query["category"] = category
    if stock_status == "low":
        query["stock"] = {"$lt": LOW_STOCK_THRESHOLD}
    elif stock_status == "out":
        query["stock"] = 0
    if is_active is not None:
        query["is_active"] = is_active

    cursor = db["product"].find(query).sort("created_at", -1).skip((page - 1) * limit).limit(limit)
    total = db["product"].count_documents(query)
    return {
        "success": True,
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit),
        "products": [doc_to_public(p) for p in cursor],
    }


@router.post("/products", status_code=201)
def admin_create_product(body: ProductCreateRequest, db: Database = Depends(get_db)):
    return {"success": True, "message": "Product created successfully", "product": create_product(db, body)}


@router.put("/products/{product_id}")
def admin_update_product(product_id: str, body: ProductUpdateRequest, db: Database = Depends(get_db)):
    return {"success": True, "message": "Product updated successfully", "product": update_product(db, product_id, body)}


@router.delete("/products/{product_id}")
def admin_delete_product(product_id: str, db: Database = Depends(get_db)):
    delete_product(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}


@router.get("/categories")
def list_categories(db: Database = Depends(get_db)):
    return {"success": True, "categories": sorted(db["product"].distinct("category"))}


# ----------------------------------------------------------------------------
# Analytics
# ----------------------------------------------------------------------------

@router.get("/analytics/sales")
def sales_analytics(
    period: Literal["daily", "monthly", "yearly"] = Query("monthly"),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"is_paid": True}
    if year:
        query["created_at"] = {"$gte": datetime(year, 1, 1), "$lte": datetime(year, 12, 31, 23, 59, 59, 999999)}
    return {"success": True, "period": period, "sales_data": sales_by_period(db["order"].find(query), period)}


@router.get("/analytics/products")
def product_analytics(limit: int = Query(10, ge=1, le=100), db: Database = Depends(get_db)):
    stats = top_products(db["order"].find({}), limit)
    for stat in stats:
        product = db["product"].find_one({"_id": parse_object_id(stat["product_id"])}, {"stock": 1, "category": 1})
        if product:
            stat["stock"] = product.get("stock")
            stat["category"] = product.get("category")
    return {"success": True, "top_products": stats}


# ----------------------------------------------------------------------------
# Orders
# ----------------------------------------------------------------------------

@router.get("/orders")
def list_orders(status: Optional[OrderStatus] = Query(None), db: Database = Depends(get_db)):
    query = {"status": status} if status else {}
    orders = _attach_customers(db, db["order"].find(query).sort("created_at", -1))
    return {"success": True, "orders": orders}


@router.put("/orders/{order_id}/status")
def update_order_status(order_id: str, body: StatusUpdateRequest, db: Database = Depends(get_db)):
    if body.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Valid status is required")
    now = utcnow()
    updates: Dict[str, Any] = {"status": body.status, "updated_at": now}
    if body.status == "delivered":
        updates.update({"is_delivered": True, "delivered_at": now})
    order = db["order"].find_one_and_update(
        {"_id": parse_object_id(order_id, "Order not found")},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s status set to %s", order_id, body.status)
    return {"success": True, "message": f"Order status updated to {body.status}", "order": doc_to_public(order)}


@router.put("/orders/{order_id}/deliver")
def mark_delivered(order_id: str, db: Database = Depends(get_db)):
    now = utcnow()
    order = db["order"].find_one_and_update(
        {"_id": parse_object_id(order_id, "Order not found")},
        {"$set": {"is_delivered": True, "delivered_at": now, "status": "delivered", "updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    logger.info("Order %s marked delivered", order_id)
    return {"success": True, "message": "Order marked as delivered", "order": doc_to_public(order)}


# ----------------------------------------------------------------------------
# Settings and seeding
# ----------------------------------------------------------------------------

def load_settings(db: Database) -> Setting:
    doc = db["setting"].find_one({}) or {}
    return Setting(**{k: v for k, v in doc.items() if k in Setting.model_fields})


@router.get("/settings")
def get_settings(db: Database = Depends(get_db)):
    return {"success": True, "settings": load_settings(db).model_dump()}


@router.put("/settings")
def update_settings(body: Setting, db: Database = Depends(get_db), admin=Depends(get_current_admin)):
    db["setting"].update_one({}, {"$set": {**body.model_dump(), "updated_at": utcnow()}}, upsert=True)
    logger.info("Store settings updated by %s", admin.get("email"))
    return {"success": True, "message": "Settings updated successfully", "settings": body.model_dump()}


@router.post("/seed")
def trigger_seed(db: Database = Depends(get_db)):
    return {"success": True, **seed_data(db)}
