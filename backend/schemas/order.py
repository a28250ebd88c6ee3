from decimal import Decimal
from pydantic import Field
from typing import Annotated, List, Literal, Optional
from datetime import datetime

from schemas.base import ORMBase
from models.order import OrderStatus

MoneyIn = Annotated[Decimal, Field(ge=0, max_digits=12, decimal_places=2)]


# Postal address embedded in an order
class Address(ORMBase):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = ""
    zip_code: str = Field(min_length=1)
    country: str = "Bangladesh"
    phone: Optional[str] = None
    thana: Optional[str] = None
    landmark: Optional[str] = None
    instructions: Optional[str] = None


# Input schema for one order line, copied from the cart at checkout
class OrderItemIn(ORMBase):
    product_id: int
    product_name: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    size: str = ""
    color: str = ""
    price: MoneyIn
    # Must equal price * quantity; computed when omitted
    total: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)


# Order header as submitted by the checkout form
class OrderDraft(ORMBase):
    order_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    status: Literal["pending"] = "pending"
    subtotal: MoneyIn
    tax: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    shipping: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    total: MoneyIn
    shipping_address: Address
    # Falls back to the shipping address
    billing_address: Optional[Address] = None
    payment_method: str = Field(min_length=1)
    payment_status: Literal["pending"] = "pending"


# Input schema for POST /api/orders
class OrderCreatePayload(OrderDraft):
    items: List[OrderItemIn] = Field(min_length=1)


# Output schema for an individual order line item
class OrderItemOut(ORMBase):
    id: int
    order_id: int
    product_id: int
    product_name: str
    quantity: int
    size: str
    color: str
    price: Decimal
    total: Decimal
    created_at: Optional[datetime] = None


# Output schema representing the full order details
class OrderResponse(ORMBase):
    id: int
    user_id: int
    order_number: str
    status: str
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal
    shipping_address: Address
    billing_address: Address
    payment_method: str
    payment_status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemOut]


# Schema for updating order status
class OrderStatusPatch(ORMBase):
    status: OrderStatus
