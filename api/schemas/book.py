# api/schemas/book.py
from datetime import datetime
from typing import Annotated, Optional, List
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from core.constants import BookCondition
from core.sa.repositories.book import validate_cover_image_url
from api.schemas.user import UserSummary

# Empty string clears the cover
CoverImageUrl = Annotated[Optional[str], AfterValidator(validate_cover_image_url)]


class BookBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=200)
    isbn: Optional[str] = Field(None, max_length=20)
    genre: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    cover_image_url: CoverImageUrl = None
    condition: BookCondition = BookCondition.GOOD
    borrowable: bool = True


class BookCreate(BookBase):
    pass


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, min_length=1, max_length=200)
    isbn: Optional[str] = Field(None, max_length=20)
    genre: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    cover_image_url: CoverImageUrl = None
    condition: Optional[BookCondition] = None
    borrowable: Optional[bool] = None


class Book(BaseModel):
    id: str
    owner_id: str
    title: str
    author: str
    isbn: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    condition: str
    borrowable: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookWithOwner(Book):
    owner: Optional[UserSummary] = None


class BookDetail(BookWithOwner):
    average_rating: Optional[float] = None
    review_count: int = 0


class AdminBook(BookWithOwner):
    flagged: bool = False
    flagged_at: Optional[datetime] = None
    flagged_reason: Optional[str] = None


class BookList(BaseModel):
    items: List[BookWithOwner]
    total: int
    page: int
    size: int

    model_config = ConfigDict(from_attributes=True)


class BookSummary(BaseModel):
    """Book fields embedded in borrow requests and reviews"""
    id: str
    title: str
    author: str
    cover_image_url: Optional[str] = None
    owner_id: str

    model_config = ConfigDict(from_attributes=True)


class BookSearchResult(BaseModel):
    id: str
    title: str
    authors: List[str] = []
    description: Optional[str] = None
    categories: List[str] = []
    image_url: Optional[str] = None
    isbn: Optional[str] = None
    page_count: Optional[int] = None
    publisher: Optional[str] = None
    published_date: Optional[str] = None
    genre: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
