from pydantic import Field
from typing import Optional
from datetime import datetime

from schemas.base import ORMBase


class CategoryCreate(ORMBase):
    name: str = Field(min_length=1)
    # Derived from the name when omitted
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryUpdate(ORMBase):
    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None


class CategoryOut(ORMBase):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
