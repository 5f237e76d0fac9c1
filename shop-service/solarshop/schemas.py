"""
Request and response bodies.

Checkout, cart and webhook payloads are validated here before any
handler touches the database.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field


# ------------------------------
# Auth
# ------------------------------
class UserRegister(BaseModel):
    name: str
    email: EmailStr
    password: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


# ------------------------------
# Catalog
# ------------------------------
class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price: float
    wattage: Optional[float] = None
    category: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    archived: bool = False
    created_at: Optional[datetime] = None


class ArticleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    category: Optional[str] = None
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    published_at: Optional[datetime] = None


class TestimonialOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_name: str
    client_title_company: Optional[str] = None
    quote: str
    rating: Optional[int] = None
    image_url: Optional[str] = None
    is_featured: bool = False
    approved: bool = False
    created_at: Optional[datetime] = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    type: str = "image"
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    highlights: Optional[List[str]] = None
    display_order: int = 0
    created_at: Optional[datetime] = None


class ServiceCategoryNode(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    parent_id: Optional[int] = None
    display_order: int = 0
    href: str
    subcategories: List["ServiceCategoryNode"] = []


class TestimonialSubmit(BaseModel):
    client_name: str = ""
    email: str = ""
    quote: str = ""
    consent: bool = False


class SubscribePayload(BaseModel):
    email: EmailStr


# ------------------------------
# Cart / wishlist
# ------------------------------
class CartAdd(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0)


class CartUpdate(BaseModel):
    product_id: int
    # 0 removes the line
    quantity: int


class CartRemove(BaseModel):
    product_id: Optional[int] = None


class WishlistPayload(BaseModel):
    product_id: int


# ------------------------------
# Checkout / payments
# ------------------------------
class CheckoutLine(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    price: Optional[float] = None


class ShippingDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    # older storefront builds post full_name / fullName
    name: str = Field(validation_alias=AliasChoices("name", "full_name", "fullName"))
    email: Optional[EmailStr] = None
    phone: str
    address: str

    def is_complete(self) -> bool:
        return bool(self.name and self.phone and self.address)


class CheckoutRequest(BaseModel):
    cart_items: List[CheckoutLine] = []
    shipping_details: Optional[ShippingDetails] = None
    total: Optional[float] = None
    reference: Optional[str] = None


class PaymentInitRequest(BaseModel):
    amount: float
    email: EmailStr
    metadata: Dict[str, Any] = {}


class OrderStatusUpdate(BaseModel):
    status: str


class TestimonialApproval(BaseModel):
    approved: bool


class ChargeData(BaseModel):
    model_config = ConfigDict(extra="allow")

    reference: Optional[str] = None
    amount: Optional[int] = None  # minor units
    # Paystack sends an empty string when no metadata was attached
    metadata: Any = None


class WebhookEvent(BaseModel):
    event: str
    data: ChargeData = ChargeData()
