# backend/services/catalog.py
import re
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.category import Category
from models.product import Product
from models.cart import CartItem
from models.order import OrderItem
from models.review import Review
from models.wishlist import Wishlist
from schemas.category import CategoryCreate, CategoryUpdate
from schemas.product import ProductCreate, ProductEditRequest
from utils.errors import ConflictError, NotFoundError
from utils.search import LIKE_ESCAPE, contains_pattern

FEATURED_LIMIT = 8


def slugify(value: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")
    return slug or "category"


def _norm_sku(sku: Optional[str]) -> Optional[str]:
    if sku is None:
        return None
    return sku.strip().upper() or None


# ---- PRODUCTS ----

def list_products(
    db: Session,
    category: Sequence[str] = (),
    age_group: Sequence[str] = (),
    price_min: Optional[Decimal] = None,
    price_max: Optional[Decimal] = None,
    search: Optional[str] = None,
    featured: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Product]:
    """Active products matching every given filter, newest first."""
    query = db.query(Product).filter(Product.is_active.is_(True))

    if category:
        query = query.join(Category, Product.category_id == Category.id).filter(Category.name.in_(list(category)))
    if age_group:
        query = query.filter(Product.age_group.in_(list(age_group)))
    if price_min is not None:
        query = query.filter(Product.price >= price_min)
    if price_max is not None:
        query = query.filter(Product.price <= price_max)
    if search:
        like = contains_pattern(search)
        query = query.filter(or_(
            Product.name.ilike(like, escape=LIKE_ESCAPE),
            Product.description.ilike(like, escape=LIKE_ESCAPE),
        ))
    if featured:
        query = query.filter(Product.is_featured.is_(True))

    query = query.order_by(Product.created_at.desc(), Product.id.desc())
    if offset:
        query = query.offset(offset)
    if limit:
        query = query.limit(limit)
    return query.all()


def featured_products(db: Session) -> List[Product]:
    return list_products(db, featured=True, limit=FEATURED_LIMIT)


def products_by_category(db: Session, category_id: int) -> List[Product]:
    return (
        db.query(Product)
        .filter(Product.category_id == category_id, Product.is_active.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _check_sku_free(db: Session, sku: str, product_id: Optional[int] = None) -> None:
    q = db.query(Product.id).filter(Product.sku == sku)
    if product_id is not None:
        q = q.filter(Product.id != product_id)
    if q.first():
        raise ConflictError("Product SKU already exists")


def _check_category(db: Session, category_id: Optional[int]) -> None:
    if category_id is not None and not db.query(Category.id).filter(Category.id == category_id).first():
        raise NotFoundError("Category not found")


def create_product(db: Session, payload: ProductCreate) -> Product:
    data = payload.model_dump()
    data["sku"] = _norm_sku(data["sku"])
    _check_sku_free(db, data["sku"])
    _check_category(db, data.get("category_id"))

    product = Product(**data)
    db.add(product)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Product SKU already exists")
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, payload, partial: bool = False) -> Product:
    """Replace (PUT) or patch (PATCH) product fields. Never touches rating aggregates."""
    product = get_product(db, product_id)
    data = payload.model_dump(exclude_unset=partial)
    if partial:
        # Explicit nulls on non-nullable columns are ignored
        data = {k: v for k, v in data.items()
                if v is not None or k in ("description", "original_price", "category_id", "age_group", "image_url")}

    if "sku" in data:
        data["sku"] = _norm_sku(data["sku"])
        _check_sku_free(db, data["sku"], product.id)
    if "category_id" in data:
        _check_category(db, data["category_id"])

    for key, value in data.items():
        setattr(product, key, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Product SKU already exists")
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: int) -> bool:
    """Remove a product. Returns False when it was archived instead.

    Products referenced by order history are deactivated rather than deleted.
    """
    product = get_product(db, product_id)
    db.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.query(Wishlist).filter(Wishlist.product_id == product.id).delete(synchronize_session=False)

    if db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first():
        product.is_active = False
        db.commit()
        return False

    db.query(Review).filter(Review.product_id == product.id).delete(synchronize_session=False)
    db.delete(product)
    db.commit()
    return True


# ---- CATEGORIES ----

def list_categories(db: Session) -> List[Category]:
    return db.query(Category).order_by(Category.name).all()


def get_category(db: Session, category_id: int) -> Category:
    category = db.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def _check_category_unique(db: Session, name: Optional[str], slug: Optional[str],
                           category_id: Optional[int] = None) -> None:
    conds = []
    if name is not None:
        conds.append(Category.name == name)
    if slug is not None:
        conds.append(Category.slug == slug)
    if not conds:
        return
    q = db.query(Category.id).filter(or_(*conds))
    if category_id is not None:
        q = q.filter(Category.id != category_id)
    if q.first():
        raise ConflictError("Category name or slug already exists")


def create_category(db: Session, payload: CategoryCreate) -> Category:
    data = payload.model_dump()
    data["name"] = data["name"].strip()
    data["slug"] = slugify(data.get("slug") or data["name"])
    _check_category_unique(db, data["name"], data["slug"])

    category = Category(**data)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def update_category(db: Session, category_id: int, payload: CategoryUpdate) -> Category:
    category = get_category(db, category_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is not None:
        data["name"] = data["name"].strip()
    if data.get("slug") is not None:
        data["slug"] = slugify(data["slug"])
    data = {k: v for k, v in data.items() if v is not None or k in ("description", "image_url")}
    _check_category_unique(db, data.get("name"), data.get("slug"), category.id)

    for key, value in data.items():
        setattr(category, key, value)
    db.commit()
    db.refresh(category)
    return category


def delete_category(db: Session, category_id: int) -> None:
    category = get_category(db, category_id)
    # Products stay in the catalog without a category
    db.query(Product).filter(Product.category_id == category.id).update(
        {Product.category_id: None}, synchronize_session=False
    )
    db.delete(category)
    db.commit()
