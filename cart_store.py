"""
In-memory carts keyed by user id.

Carts live only in this process and are lost on restart. Handlers run on
FastAPI's threadpool, so every mutation goes through a single lock.
"""

import threading
from copy import deepcopy
from typing import Any, Dict, List, Optional

_carts: Dict[str, Dict[str, Any]] = {}
_lock = threading.Lock()


def _empty() -> Dict[str, Any]:
    return {"items": [], "total": 0}


def _recalculate(cart: Dict[str, Any]) -> None:
    cart["total"] = round(sum(item["price"] * item["quantity"] for item in cart["items"]), 2)


def _find(cart: Dict[str, Any], product_id: str) -> Optional[Dict[str, Any]]:
    for item in cart["items"]:
        if item["product_id"] == product_id:
            return item
    return None


def get_cart(user_id: str) -> Dict[str, Any]:
    with _lock:
        return deepcopy(_carts.get(user_id) or _empty())


def add_item(user_id: str, product_id: str, name: str, price: float, image: Optional[str], quantity: int = 1) -> Dict[str, Any]:
    with _lock:
        cart = _carts.setdefault(user_id, _empty())
        item = _find(cart, product_id)
        if item:
            item["quantity"] += quantity
            # keep the denormalised price current
            item["price"] = price
        else:
            cart["items"].append({
                "product_id": product_id,
                "name": name,
                "price": price,
                "image": image,
                "quantity": quantity,
            })
        _recalculate(cart)
        return deepcopy(cart)


def update_item(user_id: str, product_id: str, quantity: int) -> Dict[str, Any]:
    """Set an item's quantity. Raises LookupError if the cart or item is missing."""
    with _lock:
        cart = _carts.get(user_id)
        if cart is None:
            raise LookupError("Cart not found")
        item = _find(cart, product_id)
        if item is None:
            raise LookupError("Item not found in cart")
        item["quantity"] = quantity
        _recalculate(cart)
        return deepcopy(cart)


def remove_item(user_id: str, product_id: str) -> Dict[str, Any]:
    """Drop an item. Raises LookupError if the user has no cart."""
    with _lock:
        cart = _carts.get(user_id)
        if cart is None:
            raise LookupError("Cart not found")
        cart["items"] = [i for i in cart["items"] if i["product_id"] != product_id]
        _recalculate(cart)
        return deepcopy(cart)


def clear_cart(user_id: str) -> None:
    with _lock:
        if user_id in _carts:
            _carts[user_id] = _empty()


def discard_items(user_id: str, product_ids: List[str]) -> None:
    """Drop the given products from the cart, if present."""
    with _lock:
        cart = _carts.get(user_id)
        if cart is None:
            return
        cart["items"] = [i for i in cart["items"] if i["product_id"] not in product_ids]
        _recalculate(cart)


def cart_items(user_id: str) -> List[Dict[str, Any]]:
    return get_cart(user_id)["items"]


def reset() -> None:
    with _lock:
        _carts.clear()
