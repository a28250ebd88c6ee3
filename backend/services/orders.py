# backend/services/orders.py
"""Order workflow and status lifecycle.

``create_order`` persists the order, its line items and the stock decrements
in one transaction. Stock is decremented with a conditional relative UPDATE
executed by the database, so concurrent orders for the same product cannot
lose updates or push stock below zero. Clearing the cart is the caller's
separate step after a successful commit.
"""
import logging
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from database import utcnow
from models.users import User
from models.product import Product
from models.order import Order, OrderItem, OrderStatus
from schemas.order import OrderDraft, OrderItemIn
from utils.errors import (
    StoreError, InvalidRequestError, NotFoundError, ForbiddenError, ConflictError,
    InsufficientStockError, InvalidTransitionError, OrderCreationError,
)
from utils.pricing import money, line_total, generate_order_number

logger = logging.getLogger(__name__)

# Legal status moves. Forward skips are allowed, terminal states have no exits.
TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({
        OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED,
    }),
    OrderStatus.PROCESSING: frozenset({
        OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED,
    }),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


def _validate_amounts(draft: OrderDraft, line_items: Sequence[OrderItemIn]) -> List[tuple]:
    """Check line and header arithmetic. Returns (line, frozen total) pairs."""
    if not line_items:
        raise InvalidRequestError("Order must contain at least one item")

    priced = []
    for line in line_items:
        if line.quantity < 1:
            raise InvalidRequestError(f"Invalid quantity for product {line.product_id}")
        total = line_total(line.price, line.quantity)
        if line.total is not None and money(line.total) != total:
            raise InvalidRequestError(
                f"Line total for product {line.product_id} must equal price x quantity ({total})"
            )
        priced.append((line, total))

    subtotal = money(sum(t for _, t in priced))
    if money(draft.subtotal) != subtotal:
        raise InvalidRequestError(f"Subtotal does not match order items ({subtotal})")

    expected_total = money(money(draft.subtotal) + money(draft.tax) + money(draft.shipping))
    if money(draft.total) != expected_total:
        raise InvalidRequestError(f"Total must equal subtotal + tax + shipping ({expected_total})")

    return priced


def _decrement_stock(db: Session, product_id: int, quantity: int) -> None:
    result = db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if db.query(Product.id).filter(Product.id == product_id).first() is None:
            raise NotFoundError(f"Product {product_id} not found")
        raise InsufficientStockError(product_id, quantity)


def _restock(db: Session, product_id: int, quantity: int) -> None:
    db.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(stock=Product.stock + quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )


def _number_taken(db: Session, order_number: str) -> bool:
    return db.query(Order.id).filter(Order.order_number == order_number).first() is not None


def create_order(db: Session, user: User, draft: OrderDraft, line_items: Sequence[OrderItemIn]) -> Order:
    priced = _validate_amounts(draft, line_items)

    # Archived products stay in order history but cannot be bought
    product_ids = {line.product_id for line, _ in priced}
    available = {
        pid for (pid,) in db.query(Product.id).filter(
            Product.id.in_(sorted(product_ids)), Product.is_active.is_(True)
        )
    }
    missing = sorted(product_ids - available)
    if missing:
        raise NotFoundError(f"Product {missing[0]} not found")

    order_number = draft.order_number or generate_order_number()
    if _number_taken(db, order_number):
        if draft.order_number:
            raise ConflictError(f"Order number {order_number} already exists")
        # A generated number the caller never chose is simply drawn again
        order_number = generate_order_number()
        if _number_taken(db, order_number):
            raise ConflictError(f"Order number {order_number} already exists")

    shipping_address = draft.shipping_address.model_dump()
    billing_address = (draft.billing_address or draft.shipping_address).model_dump()

    order = Order(
        user_id=user.id,
        order_number=order_number,
        status=OrderStatus.PENDING.value,
        subtotal=money(draft.subtotal),
        tax=money(draft.tax),
        shipping=money(draft.shipping),
        total=money(draft.total),
        shipping_address=shipping_address,
        billing_address=billing_address,
        payment_method=draft.payment_method,
        payment_status=draft.payment_status,
    )

    try:
        db.add(order)
        try:
            db.flush()
        except IntegrityError:
            # Lost a race with another order using the same number
            raise ConflictError(f"Order number {order_number} already exists")

        db.add_all([
            OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                size=line.size,
                color=line.color,
                price=money(line.price),
                total=total,
            )
            for line, total in priced
        ])
        db.flush()

        # Fixed product order keeps row locks acquired in the same sequence across transactions
        for line, _ in sorted(priced, key=lambda p: p[0].product_id):
            _decrement_stock(db, line.product_id, line.quantity)

        db.commit()
    except StoreError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Order %s rolled back", order_number)
        raise OrderCreationError("Failed to create order") from exc

    logger.info("Order %s created for user %s (%d items, total %s)",
                order_number, user.id, len(priced), order.total)
    return get_order(db, user, order.id)


def list_orders(db: Session, user: Optional[User] = None, status: Optional[str] = None) -> List[Order]:
    """Orders with items, newest first. All orders when ``user`` is None."""
    q = db.query(Order).options(joinedload(Order.items))
    if user is not None:
        q = q.filter(Order.user_id == user.id)
    if status:
        q = q.filter(Order.status == status)
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def get_order(db: Session, principal: User, order_id: int) -> Order:
    order = db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()
    # Other customers' orders are reported as missing
    if not order or (order.user_id != principal.id and not principal.is_admin):
        raise NotFoundError("Order not found")
    return order


def set_status(db: Session, principal: User, order_id: int, new_status) -> Order:
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")

    order = db.query(Order).options(joinedload(Order.items)).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")

    try:
        target = OrderStatus(new_status)
    except ValueError:
        raise InvalidRequestError(f"Unknown order status: {new_status}")

    current = OrderStatus(order.status)
    if target == current:
        return order
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)

    try:
        if target == OrderStatus.CANCELLED:
            # Return reserved quantities to stock
            for item in sorted(order.items, key=lambda it: it.product_id):
                _restock(db, item.product_id, item.quantity)
        order.status = target.value
        order.updated_at = utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Status change of order %s to %s rolled back", order_id, target.value)
        raise

    logger.info("Order %s status %s -> %s", order.order_number, current.value, target.value)
    db.refresh(order)
    return order
