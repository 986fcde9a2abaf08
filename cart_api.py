from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.database import Database

import cart_store
from database import get_db, parse_object_id
from security import get_current_user

router = APIRouter(prefix="/api/cart", tags=["cart"])


class AddCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)


class UpdateCartRequest(BaseModel):
    quantity: int = Field(..., ge=1)


@router.get("")
def get_cart(current=Depends(get_current_user)):
    return {"success": True, "cart": cart_store.get_cart(str(current["_id"]))}


@router.post("/add")
def add_to_cart(body: AddCartRequest, db: Database = Depends(get_db), current=Depends(get_current_user)):
    product = db["product"].find_one({"_id": parse_object_id(body.product_id, "Product not found")})
    if not product or not product.get("is_active", True):
        raise HTTPException(status_code=404, detail="Product not found")
    cart = cart_store.add_item(
        str(current["_id"]),
        product_id=str(product["_id"]),
        name=product.get("name"),
        price=float(product.get("price", 0)),
        image=product.get("image"),
        quantity=body.quantity,
    )
    return {"success": True, "message": "Item added to cart", "cart": cart}


@router.put("/item/{product_id}")
def update_cart_item(product_id: str, body: UpdateCartRequest, current=Depends(get_current_user)):
    try:
        cart = cart_store.update_item(str(current["_id"]), product_id, body.quantity)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Item quantity updated", "cart": cart}


@router.delete("/item/{product_id}")
def remove_from_cart(product_id: str, current=Depends(get_current_user)):
    try:
        cart = cart_store.remove_item(str(current["_id"]), product_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": "Item removed from cart", "cart": cart}


@router.delete("")
def clear_cart(current=Depends(get_current_user)):
    cart_store.clear_cart(str(current["_id"]))
    return {"success": True, "message": "Cart cleared", "cart": cart_store.get_cart(str(current["_id"]))}
