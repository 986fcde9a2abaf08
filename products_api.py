import logging
import math
import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, doc_to_public, get_db, parse_object_id, utcnow
from schemas import Currency, Product as ProductSchema
from security import get_current_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

SORT_MAP = {
    "price_asc": ("price", 1),
    "price_desc": ("price", -1),
    "rating": ("rating", -1),
    "newest": ("created_at", -1),
}


class ProductCreateRequest(ProductSchema):
    pass


class ProductUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    currency: Optional[Currency] = None
    category: Optional[str] = None
    image: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    rating: Optional[float] = Field(None, ge=0, le=5)
    num_reviews: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    discount: Optional[float] = Field(None, ge=0, le=100)
    features: Optional[List[str]] = None
    brand: Optional[str] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[str]] = None

    @field_validator("price")
    @classmethod
    def two_decimals(cls, v: Optional[float]) -> Optional[float]:
        return round(v, 2) if v is not None else v


# ----------------------------------------------------------------------------
# Shared helpers (also used by the admin console)
# ----------------------------------------------------------------------------

def create_product(db: Database, body: ProductCreateRequest) -> Dict[str, Any]:
    pid = create_document(db, "product", body)
    logger.info("Product created: %s (%s)", body.name, pid)
    return doc_to_public(db["product"].find_one({"_id": parse_object_id(pid)}))


def update_product(db: Database, product_id: str, body: ProductUpdateRequest) -> Dict[str, Any]:
    update = body.model_dump(exclude_none=True)
    update["updated_at"] = utcnow()
    doc = db["product"].find_one_and_update(
        {"_id": parse_object_id(product_id, "Product not found")},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Product updated: %s", product_id)
    return doc_to_public(doc)


def delete_product(db: Database, product_id: str) -> None:
    res = db["product"].delete_one({"_id": parse_object_id(product_id, "Product not found")})
    if res.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Product deleted: %s", product_id)


# ----------------------------------------------------------------------------
# Public catalog
# ----------------------------------------------------------------------------

@router.get("")
def list_products(
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None, description="price_asc|price_desc|rating|newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query: Dict[str, Any] = {"is_active": True}
    if category:
        query["category"] = category
    if min_price is not None or max_price is not None:
        query["price"] = {}
        if min_price is not None:
            query["price"]["$gte"] = min_price
        if max_price is not None:
            query["price"]["$lte"] = max_price
    if search:
        pattern = re.escape(search)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
            {"category": {"$regex": pattern, "$options": "i"}},
        ]

    cursor = db["product"].find(query)
    if sort in SORT_MAP:
        field, direction = SORT_MAP[sort]
        cursor = cursor.sort(field, direction)
    cursor = cursor.skip((page - 1) * limit).limit(limit)

    total = db["product"].count_documents(query)
    categories = sorted(db["product"].distinct("category", {"is_active": True}))
    return {
        "success": True,
        "products": [doc_to_public(p) for p in cursor],
        "total": total,
        "pages": math.ceil(total / limit),
        "current_page": page,
        "categories": categories,
    }


@router.get("/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    doc = db["product"].find_one({"_id": parse_object_id(product_id, "Product not found")})
    if not doc or not doc.get("is_active", True):
        raise HTTPException(status_code=404, detail="Product not found")

    related = db["product"].find({
        "category": doc.get("category"),
        "_id": {"$ne": doc["_id"]},
        "is_active": True,
    }).limit(4)
    return {
        "success": True,
        "product": doc_to_public(doc),
        "related_products": [doc_to_public(r) for r in related],
    }


# ----------------------------------------------------------------------------
# Admin-only catalog management
# ----------------------------------------------------------------------------

@router.post("", status_code=201)
def admin_create_product(body: ProductCreateRequest, db: Database = Depends(get_db), user=Depends(get_current_admin)):
    return {"success": True, "message": "Product created successfully", "product": create_product(db, body)}


@router.put("/{product_id}")
def admin_update_product(product_id: str, body: ProductUpdateRequest, db: Database = Depends(get_db), user=Depends(get_current_admin)):
    return {"success": True, "message": "Product updated successfully", "product": update_product(db, product_id, body)}


@router.delete("/{product_id}")
def admin_delete_product(product_id: str, db: Database = Depends(get_db), user=Depends(get_current_admin)):
    delete_product(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}
