# backend/schemas/product.py
from decimal import Decimal
from pydantic import Field
from typing import Optional, List
from datetime import datetime

from schemas.base import ORMBase


# Shared base attributes for product entities
class ProductBase(ORMBase):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    sku: str = Field(min_length=1)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    original_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(default=0, ge=0)
    category_id: Optional[int] = None
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    age_group: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    image_url: Optional[str] = None
    reference_images: List[str] = Field(default_factory=list)


# Schema for creating or fully replacing a product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductEditRequest(ORMBase):
    """Schema for PATCH requests - all fields optional."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    original_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    age_group: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    image_url: Optional[str] = None
    reference_images: Optional[List[str]] = None


# Full product representation including ID
class ProductOut(ProductBase):
    id: int
    rating: Decimal = Decimal("0")
    review_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Compact product view embedded in cart and wishlist rows
class ProductSummary(ORMBase):
    id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    original_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    stock: int
    sizes: List[str] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)
    rating: Decimal = Decimal("0")
    review_count: int = 0
