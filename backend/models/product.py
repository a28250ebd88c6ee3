# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, ForeignKey, DateTime, JSON, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base, utcnow

# Model Product
# A single catalog entry. Price fields are fixed-point money values,
# stock is guarded by a check constraint so it can never drop below zero.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    sku = Column(String, unique=True, nullable=False, index=True)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    original_price = Column(Numeric(10, 2), nullable=True)

    stock = Column(Integer, CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
                   nullable=False, default=0)

    category_id = Column(Integer, ForeignKey("categories.id"), index=True, nullable=True)

    # Variant options and media
    sizes = Column(JSON, nullable=False, default=list)
    colors = Column(JSON, nullable=False, default=list)
    age_group = Column(String, nullable=True, index=True)
    image_url = Column(String, nullable=True)
    reference_images = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)

    # Denormalised review aggregate
    rating = Column(Numeric(3, 2), nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products")
