# backend/routes/cart.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product
from services import cart as cart_service
from schemas.cart import CartAddItem, CartUpdateItem, CartItemOut, CartResponse

router = APIRouter(prefix="/api/cart", tags=["Cart"])

def _check_variant(product: Product, size: str, color: str):
    # Only options the product actually offers can be added
    if product.sizes and size not in product.sizes:
        raise HTTPException(status_code=400, detail=f"Size '{size}' is not available for this product")
    if product.colors and color not in product.colors:
        raise HTTPException(status_code=400, detail=f"Color '{color}' is not available for this product")

def _check_stock(product: Product, quantity: int):
    # Presentation-level guard; the order workflow re-checks at commit time
    if product.stock is not None and quantity > product.stock:
        raise HTTPException(status_code=400, detail="Insufficient stock")

@router.get("", response_model=CartResponse)
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.get_or_create_cart(db, current_user)
    items = cart_service.list_items(db, cart)
    return {"cart": cart, "items": items, "summary": cart_service.cart_summary(items)}

@router.post("/add", response_model=CartItemOut, status_code=status.HTTP_200_OK)
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product or not product.is_active:
        raise HTTPException(status_code=404, detail="Product not found")

    _check_variant(product, payload.size, payload.color)
    _check_stock(product, payload.quantity)

    cart = cart_service.get_or_create_cart(db, current_user)
    # Snapshot the price shown to the customer, or the current catalog price
    price = payload.price if payload.price is not None else product.price
    item = cart_service.add_item(db, cart, product, payload.size, payload.color, payload.quantity, price)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": product.id, "size": payload.size, "color": payload.color,
              "qty": payload.quantity, "item_id": item.id},
    )
    db.refresh(item)
    return item

@router.patch("/items/{item_id}", response_model=CartItemOut)
def update_cart_item(
    item_id: int,
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.get_or_create_cart(db, current_user)
    item = cart_service.get_item(db, cart, item_id)

    # Validate stock for the new quantity
    if item.product is not None:
        _check_stock(item.product, payload.quantity)

    item = cart_service.update_item_quantity(db, cart, item_id, payload.quantity)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id, "qty": payload.quantity},
    )
    db.refresh(item)
    return item

@router.delete("/items/{item_id}")
def delete_cart_item(
    item_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.get_or_create_cart(db, current_user)
    cart_service.remove_item(db, cart, item_id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_DELETE",
        resource="cart",
        status="SUCCESS",
        ip=client_ip(request),
        meta={"item_id": item_id},
    )
    return {"message": "Item removed from cart"}
