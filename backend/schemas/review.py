from datetime import datetime
from pydantic import Field
from typing import Optional

from schemas.base import ORMBase


class ReviewCreate(ORMBase):
    product_id: int
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewOut(ORMBase):
    id: int
    user_id: int
    product_id: int
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    is_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Public reviewer details, no email
class ReviewAuthor(ORMBase):
    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class ReviewWithUser(ReviewOut):
    user: Optional[ReviewAuthor] = None
