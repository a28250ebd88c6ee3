# backend/routes/products.py
from decimal import Decimal
from typing import Optional, List
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from models.users import User
from services import catalog
from services import reviews as review_service
import schemas.product as product_schemas
from schemas.review import ReviewWithUser

router = APIRouter(prefix="/api/products", tags=["Products"])
admin_router = APIRouter(prefix="/api/admin/products", tags=["Admin"])


# =========================
# PRODUCT LIST
# =========================
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    category: List[str] = Query([], description="Category name, repeatable"),
    age_group: List[str] = Query([], alias="ageGroup", description="Age group, repeatable"),
    price_min: Optional[Decimal] = Query(None, alias="priceMin", ge=0),
    price_max: Optional[Decimal] = Query(None, alias="priceMax", ge=0),
    search: Optional[str] = Query(None, description="Search in name and description"),
    featured: bool = Query(False),
    limit: int = Query(24, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return catalog.list_products(
        db, category=category, age_group=age_group, price_min=price_min, price_max=price_max,
        search=search, featured=featured, limit=limit, offset=offset,
    )


@router.get("/featured", response_model=List[product_schemas.ProductOut])
def list_featured_products(db: Session = Depends(get_db)):
    return catalog.featured_products(db)


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)


@router.get("/{product_id}/reviews", response_model=List[ReviewWithUser])
def get_product_reviews(product_id: int, db: Session = Depends(get_db)):
    catalog.get_product(db, product_id)
    return review_service.product_reviews(db, product_id)


# =========================
# ADMIN: CREATE
# =========================
@admin_router.post("", response_model=product_schemas.ProductOut, status_code=status.HTTP_201_CREATED)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    product = catalog.create_product(db, payload)
    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id, "sku": product.sku}
    )
    db.refresh(product)
    return product


# =========================
# ADMIN: FULL UPDATE (PUT)
# =========================
@admin_router.put("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: int,
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    product = catalog.update_product(db, product_id, payload)
    write_log(
        db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": product.id}
    )
    db.refresh(product)
    return product


# =========================
# ADMIN: PARTIAL UPDATE (PATCH)
# =========================
@admin_router.patch("/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    product = catalog.update_product(db, product_id, payload, partial=True)
    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request),
        meta={"id": product.id, "fields": sorted(payload.model_dump(exclude_unset=True))}
    )
    db.refresh(product)
    return product


# =========================
# ADMIN: DELETE
# =========================
@admin_router.delete("/{product_id}")
def delete_product(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    deleted = catalog.delete_product(db, product_id)
    write_log(
        db, user_id=current_user.id, action="PRODUCT_DELETE" if deleted else "PRODUCT_ARCHIVE",
        resource="products", status="SUCCESS", ip=client_ip(request), meta={"id": product_id}
    )
    if deleted:
        return {"message": "Product deleted successfully"}
    return {"message": "Product has order history and was deactivated"}
