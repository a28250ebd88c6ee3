# backend/services/wishlist.py
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from models.users import User
from models.product import Product
from models.wishlist import Wishlist
from utils.errors import ConflictError, NotFoundError


def list_wishlist(db: Session, user: User) -> List[Wishlist]:
    return (
        db.query(Wishlist)
        .options(joinedload(Wishlist.product))
        .filter(Wishlist.user_id == user.id)
        .order_by(Wishlist.created_at.desc(), Wishlist.id.desc())
        .all()
    )


def add_to_wishlist(db: Session, user: User, product_id: int) -> Wishlist:
    if not db.query(Product.id).filter(Product.id == product_id).first():
        raise NotFoundError("Product not found")
    if db.query(Wishlist.id).filter(Wishlist.user_id == user.id, Wishlist.product_id == product_id).first():
        raise ConflictError("Product already in wishlist")

    entry = Wishlist(user_id=user.id, product_id=product_id)
    db.add(entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Product already in wishlist")
    db.refresh(entry)
    return entry


def remove_from_wishlist(db: Session, user: User, product_id: int) -> None:
    deleted = (
        db.query(Wishlist)
        .filter(Wishlist.user_id == user.id, Wishlist.product_id == product_id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Wishlist item not found")
    db.commit()
