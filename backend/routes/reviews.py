# backend/routes/reviews.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from models.users import User
from services import reviews as review_service
from schemas.review import ReviewCreate, ReviewOut

router = APIRouter(prefix="/api/reviews", tags=["Reviews"])


# Post a review as the current user
@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    review = review_service.create_review(db, current_user, payload)
    write_log(db, user_id=current_user.id, action="REVIEW_CREATE", resource="reviews",
              status="SUCCESS", ip=client_ip(request),
              meta={"review_id": review.id, "product_id": review.product_id, "rating": review.rating})
    db.refresh(review)
    return review
