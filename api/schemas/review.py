# api/schemas/review.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from api.schemas.book import BookSummary
from api.schemas.user import UserSummary


class ReviewCreate(BaseModel):
    book_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class Review(BaseModel):
    id: str
    book_id: str
    user_id: str
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    book: Optional[BookSummary] = None

    model_config = ConfigDict(from_attributes=True)


class AverageRating(BaseModel):
    book_id: str
    average_rating: Optional[float] = None
    review_count: int
