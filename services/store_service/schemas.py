"""Pydantic schemas for store service.

API payloads use camelCase keys on the wire (``hasMore``, ``addressId``...);
Python code uses snake_case attribute names.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel
from services.store_service.models import OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Money stays exact in Python and goes out as a JSON number.
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


# ============================================================================
# CATALOG SCHEMAS
# ============================================================================


class Product(CamelModel):
    id: str
    name: str = ""
    price: Amount = Decimal("0")
    stock: int = 0
    image: str = ""  # proxy URL in listings, direct URL in detail
    description: str = ""
    type: str = ""
    unit: str = ""


class ProductPage(CamelModel):
    products: list[Product]
    has_more: bool = False
    next_page_token: str = ""


class ProductListResponse(ProductPage):
    success: bool = True


class ProductDetailResponse(CamelModel):
    success: bool = True
    product: Product


class Category(CamelModel):
    id: str
    name: str
    color: Optional[int] = None


class CategoryListResponse(CamelModel):
    success: bool = True
    categories: list[Category]


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemRequest(CamelModel):
    id: str
    quantity: int


class OrderCreateRequest(CamelModel):
    items: list[OrderItemRequest] = []
    address_id: Optional[int] = None


class OrderCreateResponse(CamelModel):
    success: bool = True
    message: str = "Order created"
    order_id: str


class ShippingAddress(CamelModel):
    recipient_name: str = ""
    phone: str = ""
    address: str = ""


class OrderLine(CamelModel):
    product_id: str
    quantity: int
    amount: Amount


class Order(CamelModel):
    id: str
    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderLine] = []
    total: Amount = Decimal("0")
    created_at: datetime
    address: ShippingAddress


class OrderListResponse(CamelModel):
    success: bool = True
    orders: list[Order]
    total: int


class OrderDetailResponse(CamelModel):
    success: bool = True
    order: Order
