# backend/routes/orders.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, Query, status
from sqlalchemy.orm import Session
import logging

from database import get_db
from utils.tokenJWT import get_current_user, role_required
from utils.audit import write_log, client_ip
from utils.errors import StoreError
from models.users import User
from models.order import Order, OrderStatus
from services import orders as order_service
from services import cart as cart_service
from schemas.order import OrderResponse, OrderStatusPatch, OrderCreatePayload

router = APIRouter(prefix="/api/orders", tags=["Orders"])
admin_router = APIRouter(prefix="/api/admin/orders", tags=["Admin"])
logger = logging.getLogger(__name__)

# Place an order from the submitted cart snapshot, then empty the cart
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        order = order_service.create_order(db, current_user, payload, payload.items)
    except StoreError as e:
        write_log(
            db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="FAIL",
            ip=client_ip(request),
            meta={"order_number": payload.order_number, "reason": e.detail},
        )
        raise

    # Second phase: the order is committed, a leftover cart is recoverable
    try:
        cart = cart_service.get_or_create_cart(db, current_user)
        cart_service.clear(db, cart)
    except Exception:
        db.rollback()
        logger.exception("Failed to clear cart of user %s after order %s", current_user.id, order.order_number)

    write_log(
        db, user_id=current_user.id, action="ORDER_CREATE", resource="orders", status="SUCCESS",
        ip=client_ip(request),
        meta={"order_id": order.id, "order_number": order.order_number,
              "items": len(order.items), "total": str(order.total)},
    )
    return order


# List the caller's orders with their items
@router.get("", response_model=List[OrderResponse])
def list_my_orders(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return order_service.list_orders(db, current_user)


# Get details of a specific order
@router.get("/{order_id}", response_model=OrderResponse)
def get_order_detail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return order_service.get_order(db, current_user, order_id)


# List all orders (Admin only)
@admin_router.get("", response_model=List[OrderResponse])
def list_all_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin"))
):
    return order_service.list_orders(db, status=status.value if status else None)


# Change order status along the lifecycle (Admin only)
@admin_router.patch("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    try:
        before = db.query(Order.status).filter(Order.id == order_id).scalar()
        order = order_service.set_status(db, current_user, order_id, payload.status)
    except StoreError as e:
        write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="FAIL",
                  ip=client_ip(request),
                  meta={"order_id": order_id, "new": payload.status.value, "reason": e.detail})
        raise

    write_log(db, user_id=current_user.id, action="ORDER_STATUS_CHANGE", resource="orders", status="SUCCESS",
              ip=client_ip(request), meta={"order_id": order.id, "old": before, "new": order.status})
    db.refresh(order)
    return order
