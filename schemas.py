"""
Database Schemas for the storefront API

Each Pydantic model represents a collection in MongoDB.
Collection name is the lowercase of the class name by default.

We store:
- User (credentials, role, address)
- Product
- Order (line items are a snapshot taken at checkout)
- Setting (single document holding store settings)

The cart is deliberately not a collection; see cart_store.py.
"""

from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import List, Literal, Optional
from datetime import datetime

Role = Literal["customer", "admin"]
OrderStatus = Literal["pending", "processing", "shipped", "delivered", "cancelled"]
Currency = Literal["ZAR", "USD", "EUR"]

ROLES = ("customer", "admin")
ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

PHONE_PATTERN = r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$"


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "United States"

    @field_validator("street", "city", "state", "zip_code", "country")
    @classmethod
    def strip_parts(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., min_length=2, max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Email address, stored lower-cased")

    # Auth fields (stored in DB, but not returned in public responses)
    password_hash: str = Field(..., description="Hashed password")
    role: Role = Field("customer", description="customer | admin")

    address: Optional[Address] = Field(None, description="Default shipping address")
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    is_active: bool = Field(True, description="Whether user is active")
    email_verified: bool = False
    last_login: Optional[datetime] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "product"
    """
    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field(..., description="Product description")
    price: float = Field(..., ge=0, description="Unit price")
    currency: Currency = "ZAR"
    category: str = Field(..., description="Product category")
    image: str = Field(..., description="Image URL")
    stock: int = Field(0, ge=0, description="Available inventory")
    rating: float = Field(0, ge=0, le=5, description="Average rating 0-5")
    num_reviews: int = Field(0, ge=0)
    is_active: bool = True
    discount: float = Field(0, ge=0, le=100, description="Discount percentage")
    features: List[str] = Field(default_factory=list)
    brand: Optional[str] = None
    colors: List[str] = Field(default_factory=list)
    sizes: List[str] = Field(default_factory=list)

    @field_validator("price")
    @classmethod
    def two_decimals(cls, v: float) -> float:
        return round(v, 2)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class OrderItem(BaseModel):
    product_id: str
    name: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price frozen at purchase time")
    image: Optional[str] = None


class PaymentResult(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "order"
    """
    user_id: str
    order_items: List[OrderItem]
    shipping_address: Address
    payment_method: str = "card"
    payment_result: Optional[PaymentResult] = None
    items_price: float
    tax_price: float
    shipping_price: float
    total_price: float
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    status: OrderStatus = Field("pending", description="pending | processing | shipped | delivered | cancelled")


class Setting(BaseModel):
    """
    Store settings, a single document
    Collection name: "setting"
    """
    store_name: str = "e-Store"
    store_description: str = "Your premier e-commerce destination"
    contact_email: str = "contact@yourstore.com"
    support_phone: str = "+27 11 123 4567"
    default_shipping_fee: float = Field(45.0, ge=0)
    free_shipping_threshold: float = Field(500.0, ge=0)
    vat_rate: float = Field(15, ge=0, le=100)
    require_email_verification: bool = False
    session_timeout: int = Field(60, ge=1, description="Minutes")
    maintenance_mode: bool = False
    enable_logging: bool = True
    log_level: Literal["debug", "info", "warning", "error"] = "info"
