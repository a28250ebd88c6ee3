# backend/routes/categories.py
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import role_required
from utils.audit import write_log, client_ip
from models.users import User
from services import catalog
from schemas.category import CategoryCreate, CategoryUpdate, CategoryOut
import schemas.product as product_schemas

router = APIRouter(prefix="/api/categories", tags=["Categories"])
admin_router = APIRouter(prefix="/api/admin/categories", tags=["Admin"])


# Categories ordered by name
@router.get("", response_model=List[CategoryOut])
def get_categories(db: Session = Depends(get_db)):
    return catalog.list_categories(db)


# Active products of one category
@router.get("/{category_id}/products", response_model=List[product_schemas.ProductOut])
def get_category_products(category_id: int, db: Session = Depends(get_db)):
    catalog.get_category(db, category_id)
    return catalog.products_by_category(db, category_id)


@admin_router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    category = catalog.create_category(db, payload)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id, "slug": category.slug})
    db.refresh(category)
    return category


@admin_router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    category = catalog.update_category(db, category_id, payload)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category.id})
    db.refresh(category)
    return category


@admin_router.delete("/{category_id}")
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(role_required("admin")),
):
    catalog.delete_category(db, category_id)
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              status="SUCCESS", ip=client_ip(request), meta={"id": category_id})
    return {"message": "Category deleted successfully"}
