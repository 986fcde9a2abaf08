import logging
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database
from pymongo.errors import PyMongoError

import cart_store
from config import settings
from database import create_document, doc_to_public, get_db, parse_object_id, utcnow
from schemas import Address, Order as OrderSchema, OrderItem, PaymentResult
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


class OrderLineRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class CheckoutRequest(BaseModel):
    order_items: List[OrderLineRequest] = []
    shipping_address: Optional[Address] = None
    payment_method: str = "card"


def calculate_totals(items: List[OrderItem]) -> Dict[str, float]:
    """Items total plus the fixed shipping fee and tax on the items."""
    items_price = round(sum(i.price * i.quantity for i in items), 2)
    shipping_price = round(settings.SHIPPING_PRICE, 2)
    tax_price = round(items_price * settings.TAX_RATE, 2)
    return {
        "items_price": items_price,
        "shipping_price": shipping_price,
        "tax_price": tax_price,
        "total_price": round(items_price + shipping_price + tax_price, 2),
    }


def _merge_lines(lines: List[OrderLineRequest]) -> List[OrderLineRequest]:
    merged: Dict[str, int] = {}
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return [OrderLineRequest(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def _restock(db: Database, decremented: List[Tuple[ObjectId, int]]) -> None:
    for product_id, qty in decremented:
        db["product"].update_one({"_id": product_id}, {"$inc": {"stock": qty}})


def place_order(db: Database, user: Dict[str, Any], body: CheckoutRequest) -> Dict[str, Any]:
    uid = str(user["_id"])
    lines = body.order_items or [
        OrderLineRequest(product_id=i["product_id"], quantity=i["quantity"]) for i in cart_store.cart_items(uid)
    ]
    if not lines:
        raise HTTPException(status_code=400, detail="No order items provided")

    shipping_address = body.shipping_address
    if shipping_address is None and user.get("address"):
        shipping_address = Address(**user["address"])
    if shipping_address is None or not (shipping_address.street and shipping_address.city):
        raise HTTPException(status_code=400, detail="Shipping address is required")

    # Validate every line against current stock before touching anything
    products = []
    for line in _merge_lines(lines):
        product = db["product"].find_one({"_id": parse_object_id(line.product_id, f"Product not found: {line.product_id}")})
        if not product:
            raise HTTPException(status_code=404, detail=f"Product not found: {line.product_id}")
        if not product.get("is_active", True):
            raise HTTPException(status_code=400, detail=f"Product is no longer available: {product.get('name')}")
        if product.get("stock", 0) < line.quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock for {product.get('name')}. Available: {product.get('stock', 0)}",
            )
        products.append((product, line.quantity))

    decremented: List[Tuple[ObjectId, int]] = []
    for product, qty in products:
        res = db["product"].update_one(
            {"_id": product["_id"], "stock": {"$gte": qty}},
            {"$inc": {"stock": -qty}, "$set": {"updated_at": utcnow()}},
        )
        if res.matched_count == 0:
            _restock(db, decremented)
            logger.warning("Stock changed during checkout for %s; rolled back %d item(s)", product["_id"], len(decremented))
            current = db["product"].find_one({"_id": product["_id"]}) or {}
            raise HTTPException(
                status_code=400,
                detail=f"Insufficient stock for {product.get('name')}. Available: {current.get('stock', 0)}",
            )
        decremented.append((product["_id"], qty))

    items = [
        OrderItem(
            product_id=str(product["_id"]),
            name=product.get("name"),
            quantity=qty,
            price=float(product.get("price", 0)),
            image=product.get("image"),
        )
        for product, qty in products
    ]
    order = OrderSchema(
        user_id=uid,
        order_items=items,
        shipping_address=shipping_address,
        payment_method=body.payment_method,
        **calculate_totals(items),
    )
    try:
        oid = create_document(db, "order", order)
    except PyMongoError:
        _restock(db, decremented)
        logger.exception("Failed to save order for user %s; stock restored", uid)
        raise

    if body.order_items:
        cart_store.discard_items(uid, [i.product_id for i in items])
    else:
        cart_store.clear_cart(uid)
    logger.info("Order %s created for user %s, total %.2f", oid, uid, order.total_price)
    return doc_to_public(db["order"].find_one({"_id": ObjectId(oid)}))


def get_order_for(db: Database, order_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
    doc = db["order"].find_one({"_id": parse_object_id(order_id, "Order not found")})
    if not doc:
        raise HTTPException(status_code=404, detail="Order not found")
    if doc.get("user_id") != str(user["_id"]) and user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Not authorized to view this order")
    return doc


# ----------------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------------

@router.post("", status_code=201)
def create_order(body: CheckoutRequest, db: Database = Depends(get_db), current=Depends(get_current_user)):
    return place_order(db, current, body)


@router.get("/my/orders")
def my_orders(db: Database = Depends(get_db), current=Depends(get_current_user)):
    cursor = db["order"].find({"user_id": str(current["_id"])}).sort("created_at", -1)
    return [doc_to_public(o) for o in cursor]


@router.get("/{order_id}")
def get_order(order_id: str, db: Database = Depends(get_db), current=Depends(get_current_user)):
    return doc_to_public(get_order_for(db, order_id, current))


@router.put("/{order_id}/pay")
def pay_order(order_id: str, body: PaymentResult, db: Database = Depends(get_db), current=Depends(get_current_user)):
    doc = get_order_for(db, order_id, current)
    now = utcnow()
    db["order"].update_one(
        {"_id": doc["_id"]},
        {"$set": {"is_paid": True, "paid_at": now, "payment_result": body.model_dump(), "updated_at": now}},
    )
    logger.info("Order %s marked paid", order_id)
    return doc_to_public(db["order"].find_one({"_id": doc["_id"]}))
