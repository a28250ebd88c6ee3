from datetime import datetime
from typing import Optional

from schemas.base import ORMBase
from schemas.product import ProductSummary


class WishlistAdd(ORMBase):
    product_id: int


class WishlistOut(ORMBase):
    id: int
    user_id: int
    product_id: int
    created_at: Optional[datetime] = None


class WishlistWithProduct(WishlistOut):
    product: Optional[ProductSummary] = None
