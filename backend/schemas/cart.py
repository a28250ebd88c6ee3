from decimal import Decimal
from datetime import datetime
from pydantic import Field
from typing import List, Optional

from schemas.base import ORMBase
from schemas.product import ProductSummary

# Request schema for adding an item to the cart
class CartAddItem(ORMBase):
    product_id: int
    quantity: int = Field(default=1, ge=1)
    size: str = ""
    color: str = ""
    # Unit price shown to the customer; current catalog price when omitted
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)

# Request schema for updating cart item quantity
class CartUpdateItem(ORMBase):
    quantity: int = Field(ge=1)

# Response schema for a single cart line item
class CartItemOut(ORMBase):
    id: int
    cart_id: int
    product_id: int
    size: str
    color: str
    quantity: int
    price: Decimal
    created_at: Optional[datetime] = None

# Cart line joined with the live product row
class CartItemWithProduct(CartItemOut):
    product: Optional[ProductSummary] = None

class CartOut(ORMBase):
    id: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class CartSummary(ORMBase):
    item_count: int
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

# Response schema for GET /api/cart
class CartResponse(ORMBase):
    cart: CartOut
    items: List[CartItemWithProduct]
    summary: CartSummary
