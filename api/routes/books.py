# api/routes/books.py

from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, PermissionDeniedError
from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.sa.repositories.book import BookRepository
from core.sa.repositories.review import ReviewRepository
from core.services.communities import CommunityService
from core.services.storage import ImageStorage, read_upload
from api.deps import get_current_user
from api.routes.users import get_storage
from api.schemas.book import Book, BookCreate, BookUpdate, BookDetail, BookList
from api.schemas.community import Community
from api.schemas.review import Review, AverageRating

router = APIRouter(prefix="/books", tags=["books"])


def _get_owned_book(repo: BookRepository, book_id: str, user: UserModel):
    book = repo.get_by_id(book_id)
    if not book:
        raise NotFoundError("Book", book_id)
    if book.owner_id != user.id:
        raise PermissionDeniedError("You can only change your own books")
    return book


@router.get("", response_model=BookList)
def get_books(
    genre: Optional[str] = Query(None, description="Only books in this genre"),
    borrowable: Optional[bool] = Query(None, description="Only books that can (or cannot) be borrowed"),
    owner_id: Optional[str] = Query(None, description="Only books owned by this user"),
    search: Optional[str] = Query(None, description="Search title or author"),
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(20, ge=1, le=100, description="Items per page"),
    db: Session = Depends(get_db)
):
    """
    Get a paginated list of books, newest first.

    Args:
        genre: Optional genre filter
        borrowable: Optional availability filter
        owner_id: Optional owner filter
        search: Optional case-insensitive title/author search
        page: Page number (1-based)
        size: Number of items per page
        db: Database session

    Returns:
        BookList with each book's owner
    """
    repo = BookRepository(db)
    filters = dict(genre=genre, borrowable=borrowable, owner_id=owner_id, search=search)

    # Calculate offset for pagination
    offset = (page - 1) * size

    return BookList(
        items=repo.list_books(**filters, limit=size, offset=offset),
        total=repo.count_books(**filters),
        page=page,
        size=size,
    )


@router.get("/available", response_model=BookList)
def get_available_books(
    genre: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Books that can be borrowed right now."""
    return get_books(genre=genre, borrowable=True, owner_id=None, search=search, page=page, size=size, db=db)


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(
    data: BookCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return BookRepository(db).create_book(user.id, **data.model_dump(mode="json"))


@router.get("/{book_id}", response_model=BookDetail)
def get_book(book_id: str, db: Session = Depends(get_db)):
    """Get a book with its owner and rating summary."""
    book = BookRepository(db).get_with_owner(book_id)
    if not book:
        raise NotFoundError("Book", book_id)

    reviews = ReviewRepository(db)
    detail = BookDetail.model_validate(book)
    detail.average_rating = reviews.get_average_rating(book_id)
    detail.review_count = reviews.count_for_book(book_id)
    return detail


@router.put("/{book_id}", response_model=Book)
def update_book(
    book_id: str,
    data: BookUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = BookRepository(db)
    _get_owned_book(repo, book_id, user)
    return repo.update_book(book_id, **data.model_dump(mode="json", exclude_unset=True))


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    repo = BookRepository(db)
    _get_owned_book(repo, book_id, user)
    repo.delete_book(book_id)


@router.post("/{book_id}/cover", response_model=Book)
def upload_book_cover(
    book_id: str,
    file: UploadFile = File(...),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_storage),
):
    repo = BookRepository(db)
    _get_owned_book(repo, book_id, user)
    url = storage.save_book_cover(book_id, read_upload(file.file))
    return repo.set_cover_image(book_id, url)


@router.get("/{book_id}/reviews", response_model=list[Review])
def get_book_reviews(book_id: str, db: Session = Depends(get_db)):
    return ReviewRepository(db).list_reviews(book_id=book_id)


@router.get("/{book_id}/rating", response_model=AverageRating)
def get_book_average_rating(book_id: str, db: Session = Depends(get_db)):
    reviews = ReviewRepository(db)
    return AverageRating(
        book_id=book_id,
        average_rating=reviews.get_average_rating(book_id),
        review_count=reviews.count_for_book(book_id),
    )


@router.get("/{book_id}/communities", response_model=list[Community])
def get_book_communities(book_id: str, db: Session = Depends(get_db)):
    return CommunityService(db).get_book_communities(book_id)
