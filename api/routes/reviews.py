# api/routes/reviews.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.reviews import ReviewService
from api.deps import get_current_user
from api.schemas.review import Review, ReviewCreate, ReviewUpdate

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=list[Review])
def get_reviews(
    book_id: Optional[str] = Query(None),
    user_id: Optional[str] = Query(None),
    min_rating: Optional[int] = Query(None, ge=1, le=5),
    db: Session = Depends(get_db),
):
    return ReviewService(db).get_reviews(book_id=book_id, user_id=user_id, min_rating=min_rating)


@router.get("/check/{book_id}")
def has_user_reviewed_book(
    book_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"reviewed": ReviewService(db).has_user_reviewed_book(user.id, book_id)}


@router.post("", response_model=Review, status_code=status.HTTP_201_CREATED)
def create_review(
    data: ReviewCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewService(db).create_review(user, data.book_id, data.rating, data.comment)


@router.get("/{review_id}", response_model=Review)
def get_review(review_id: str, db: Session = Depends(get_db)):
    return ReviewService(db).get_review(review_id)


@router.put("/{review_id}", response_model=Review)
def update_review(
    review_id: str,
    data: ReviewUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ReviewService(db).update_review(user, review_id, rating=data.rating, comment=data.comment)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(
    review_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ReviewService(db).delete_review(user, review_id)
