# backend/routes/admin.py
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import List, Optional, Literal
from sqlalchemy import func
from sqlalchemy.orm import Session
from database import get_db
from models.users import User
from models.product import Product
from models.order import Order, OrderStatus
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from utils.search import LIKE_ESCAPE, contains_pattern
from schemas.base import ORMBase
from schemas.user import RoleUpdate, UserResponse

router = APIRouter(prefix="/api/admin", tags=["Admin"])

# Schema for paginated user list response
class PaginatedUsersResponse(ORMBase):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int

# Dashboard figures
class AdminStats(ORMBase):
    total_revenue: Decimal
    total_orders: int
    total_products: int
    total_customers: int


# Dashboard summary (Admin only)
@router.get("/stats", response_model=AdminStats)
def get_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin"))
):
    # Cancelled orders do not count towards revenue
    revenue = db.query(func.coalesce(func.sum(Order.total), 0)).filter(
        Order.status != OrderStatus.CANCELLED.value
    ).scalar()
    return {
        "total_revenue": Decimal(str(revenue or 0)).quantize(Decimal("0.01")),
        "total_orders": db.query(func.count(Order.id)).scalar() or 0,
        "total_products": db.query(func.count(Product.id)).filter(Product.is_active.is_(True)).scalar() or 0,
        "total_customers": db.query(func.count(User.id)).filter(User.role == "customer").scalar() or 0,
    }


# Retrieve a list of users with filtering, sorting, and pagination (Admin only)
@router.get("/users", response_model=PaginatedUsersResponse)
def get_all_users(
    q: Optional[str] = Query(None, description="Search by email"),
    last_name: Optional[str] = Query(None, alias="lastName", description="Search by last name"),
    role: Optional[str] = Query(None, description="Filter by role"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    sort_by: Literal["id", "email", "role", "first_name", "last_name"] = Query("id", alias="sortBy"),
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin"))
):
    query = db.query(User)

    # Filter by email
    if q:
        query = query.filter(User.email.ilike(contains_pattern(q.lower()), escape=LIKE_ESCAPE))

    # Filter by role
    if role:
        query = query.filter(func.lower(User.role) == role.lower())

    # Filter by last name
    if last_name:
        query = query.filter(User.last_name.ilike(contains_pattern(last_name), escape=LIKE_ESCAPE))

    # Apply sorting based on selected field and order
    sort_map = {
        "id": User.id,
        "email": User.email,
        "role": User.role,
        "first_name": User.first_name,
        "last_name": User.last_name,
    }
    col = sort_map.get(sort_by, User.id)
    query = query.order_by(col.asc() if order == "asc" else col.desc())

    # Apply pagination
    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {
        "items": users,
        "total": total,
        "page": page,
        "page_size": page_size,
    }


# Update user role (Admin only)
@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(
    user_id: int,
    new_role: RoleUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin"))
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Prevent an admin from locking themselves out
    if user.id == current_user.id and new_role.role != "admin":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot remove your own admin role")

    old_role = user.role
    user.role = new_role.role
    db.commit()

    write_log(db, user_id=current_user.id, action="USER_ROLE_CHANGE", resource="users", status="SUCCESS",
              ip=client_ip(request), meta={"user_id": user.id, "old": old_role, "new": new_role.role})
    db.refresh(user)
    return user
