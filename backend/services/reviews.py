# backend/services/reviews.py
from decimal import Decimal
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from models.users import User
from models.product import Product
from models.order import Order, OrderItem
from models.review import Review
from schemas.review import ReviewCreate
from utils.errors import NotFoundError


def product_reviews(db: Session, product_id: int) -> List[Review]:
    return (
        db.query(Review)
        .filter(Review.product_id == product_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )


def _has_ordered(db: Session, user: User, product_id: int) -> bool:
    return db.query(OrderItem.id).join(Order, OrderItem.order_id == Order.id).filter(
        Order.user_id == user.id, OrderItem.product_id == product_id
    ).first() is not None


def _refresh_rating(db: Session, product: Product) -> None:
    avg, count = db.query(func.avg(Review.rating), func.count(Review.id)).filter(
        Review.product_id == product.id
    ).one()
    product.review_count = count or 0
    product.rating = Decimal(str(avg or 0)).quantize(Decimal("0.01"))


def create_review(db: Session, user: User, payload: ReviewCreate) -> Review:
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise NotFoundError("Product not found")

    review = Review(
        user_id=user.id,
        product_id=product.id,
        rating=payload.rating,
        title=payload.title,
        comment=payload.comment,
        is_verified=_has_ordered(db, user, product.id),
    )
    db.add(review)
    db.flush()
    _refresh_rating(db, product)
    db.commit()
    db.refresh(review)
    return review
