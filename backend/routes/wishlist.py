# backend/routes/wishlist.py
from typing import List
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from services import wishlist as wishlist_service
from schemas.wishlist import WishlistAdd, WishlistOut, WishlistWithProduct

router = APIRouter(prefix="/api/wishlist", tags=["Wishlist"])


@router.get("", response_model=List[WishlistWithProduct])
def get_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return wishlist_service.list_wishlist(db, current_user)


@router.post("", response_model=WishlistOut, status_code=status.HTTP_201_CREATED)
def add_to_wishlist(
    payload: WishlistAdd,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    entry = wishlist_service.add_to_wishlist(db, current_user, payload.product_id)
    write_log(db, user_id=current_user.id, action="WISHLIST_ADD", resource="wishlist",
              status="SUCCESS", ip=client_ip(request), meta={"product_id": payload.product_id})
    db.refresh(entry)
    return entry


@router.delete("/{product_id}")
def remove_from_wishlist(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    wishlist_service.remove_from_wishlist(db, current_user, product_id)
    write_log(db, user_id=current_user.id, action="WISHLIST_REMOVE", resource="wishlist",
              status="SUCCESS", ip=client_ip(request), meta={"product_id": product_id})
    return {"message": "Item removed from wishlist"}
