# backend/services/cart.py
"""Cart store.

Every function takes the principal's cart (or the principal) explicitly.
Quantities are not capped against stock here; the order workflow re-checks
stock when the order is committed.
"""
from decimal import Decimal
from typing import List

from sqlalchemy.orm import Session, joinedload

from models.users import User
from models.product import Product
from models.cart import Cart, CartItem
from utils.errors import InvalidRequestError, NotFoundError
from utils.pricing import money, summarize


def get_or_create_cart(db: Session, user: User) -> Cart:
    # Retrieve the user's cart or create it on first access
    cart = db.query(Cart).filter(Cart.user_id == user.id).first()
    if not cart:
        cart = Cart(user_id=user.id)
        db.add(cart)
        db.commit()
        db.refresh(cart)
    return cart


def get_item(db: Session, cart: Cart, item_id: int) -> CartItem:
    item = db.query(CartItem).filter(CartItem.id == item_id, CartItem.cart_id == cart.id).first()
    if not item:
        raise NotFoundError("Cart item not found")
    return item


def add_item(db: Session, cart: Cart, product: Product, size: str, color: str,
             quantity: int, price: Decimal) -> CartItem:
    """Add a product variant, merging into an existing (product, size, color) row."""
    if quantity < 1:
        raise InvalidRequestError("Quantity must be a positive integer")

    item = db.query(CartItem).filter(
        CartItem.cart_id == cart.id,
        CartItem.product_id == product.id,
        CartItem.size == size,
        CartItem.color == color,
    ).first()

    if item:
        # The first recorded unit price is kept
        item.quantity += quantity
    else:
        item = CartItem(
            cart_id=cart.id,
            product_id=product.id,
            size=size,
            color=color,
            quantity=quantity,
            price=money(price),
        )
        db.add(item)

    db.commit()
    db.refresh(item)
    return item


def update_item_quantity(db: Session, cart: Cart, item_id: int, quantity: int) -> CartItem:
    if quantity < 1:
        raise InvalidRequestError("Quantity must be a positive integer")
    item = get_item(db, cart, item_id)
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item


def remove_item(db: Session, cart: Cart, item_id: int) -> None:
    item = get_item(db, cart, item_id)
    db.delete(item)
    db.commit()


def clear(db: Session, cart: Cart) -> int:
    deleted = db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
    db.commit()
    return deleted


def list_items(db: Session, cart: Cart) -> List[CartItem]:
    # Items come with their live product row; quantity and price stay the item's own
    return (
        db.query(CartItem)
        .options(joinedload(CartItem.product))
        .filter(CartItem.cart_id == cart.id)
        .order_by(CartItem.id)
        .all()
    )


def cart_summary(items: List[CartItem]) -> dict:
    return summarize((it.price, it.quantity) for it in items)
