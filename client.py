"""HTTP client for the storefront API.

Mirrors the state the storefront front-end keeps: the signed-in user and
token, the catalog page last fetched, the cart and the user's orders. Every
cart call replaces the local cart with the server's copy.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

EMPTY_CART = {"items": [], "total": 0}


class StorefrontAPIError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, detail: Any):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class StoreState(BaseModel):
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    products: List[Dict[str, Any]] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    cart: Dict[str, Any] = Field(default_factory=lambda: dict(EMPTY_CART))
    orders: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None


class StorefrontClient:
    """Sync client; pass ``http`` to reuse an existing ``httpx.Client``."""

    def __init__(self, base_url: str = "http://localhost:8000", token: Optional[str] = None,
                 timeout: float = 10.0, http: Optional[httpx.Client] = None):
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_http = http is None
        self.state = StoreState(token=token)

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _headers(self) -> dict:
        if self.state.token:
            return {"Authorization": f"Bearer {self.state.token}"}
        return {}

    def _request(self, method: str, url: str, **kwargs) -> Any:
        response = self._http.request(method, url, headers=self._headers(), **kwargs)
        if response.is_success:
            return response.json()
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        logger.debug("%s %s failed with %s: %s", method, url, response.status_code, detail)
        raise StorefrontAPIError(response.status_code, detail)

    # -- auth ---------------------------------------------------------------

    def _authenticate(self, data: dict) -> dict:
        self.state.token = data["access_token"]
        self.state.user = data["user"]
        return data["user"]

    def register(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/register", json={"name": name, "email": email, "password": password})
        return self._authenticate(data)

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        return self._authenticate(data)

    def me(self) -> dict:
        self.state.user = self._request("GET", "/api/auth/me")["user"]
        return self.state.user

    def logout(self) -> None:
        """Forget the token and reset the cart and orders."""
        self.state = StoreState()

    # -- products -----------------------------------------------------------

    def list_products(self, **filters) -> list:
        params = {k: v for k, v in filters.items() if v is not None}
        data = self._request("GET", "/api/products", params=params)
        self.state.products = data["products"]
        self.state.categories = data["categories"]
        return self.state.products

    def get_product(self, product_id: str) -> dict:
        return self._request("GET", f"/api/products/{product_id}")["product"]

    # -- cart ---------------------------------------------------------------

    def get_cart(self) -> dict:
        if not self.state.is_authenticated:
            return self.state.cart
        try:
            self.state.cart = self._request("GET", "/api/cart")["cart"]
        except StorefrontAPIError as e:
            # an expired session just means an empty cart
            if e.status_code != 401:
                raise
            self.state.cart = dict(EMPTY_CART)
        return self.state.cart

    def add_to_cart(self, product_id: str, quantity: int = 1) -> dict:
        data = self._request("POST", "/api/cart/add", json={"product_id": product_id, "quantity": quantity})
        self.state.cart = data["cart"]
        return self.state.cart

    def update_cart_item(self, product_id: str, quantity: int) -> dict:
        data = self._request("PUT", f"/api/cart/item/{product_id}", json={"quantity": quantity})
        self.state.cart = data["cart"]
        return self.state.cart

    def remove_from_cart(self, product_id: str) -> dict:
        data = self._request("DELETE", f"/api/cart/item/{product_id}")
        self.state.cart = data["cart"]
        return self.state.cart

    def clear_cart(self) -> dict:
        self._request("DELETE", "/api/cart")
        self.state.cart = dict(EMPTY_CART)
        return self.state.cart

    # -- orders -------------------------------------------------------------

    def create_order(self, shipping_address: Optional[Dict[str, Any]] = None, payment_method: str = "card",
                     order_items: Optional[List[Dict[str, Any]]] = None) -> dict:
        payload: Dict[str, Any] = {"payment_method": payment_method, "order_items": order_items or []}
        if shipping_address is not None:
            payload["shipping_address"] = shipping_address
        order = self._request("POST", "/api/orders", json=payload)
        self.state.orders.insert(0, order)
        # the server drops the purchased lines from the cart
        self.get_cart()
        return order

    def my_orders(self) -> list:
        self.state.orders = self._request("GET", "/api/orders/my/orders")
        return self.state.orders

    def get_order(self, order_id: str) -> dict:
        return self._request("GET", f"/api/orders/{order_id}")

    def pay_order(self, order_id: str, payment_result: Optional[Dict[str, Any]] = None) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/pay", json=payment_result or {})
