from typing import List, Optional
from datetime import datetime, UTC
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from core.constants import BookCondition
from core.sa.models import Book

# (max length, required)
BOOK_FIELD_LIMITS = {
    "title": (500, True),
    "author": (200, True),
    "isbn": (20, False),
    "genre": (100, False),
    "description": (2000, False),
}

EDITABLE_FIELDS = {"title", "author", "isbn", "genre", "description", "cover_image_url", "condition", "borrowable"}


_http_url = TypeAdapter(AnyHttpUrl)


def validate_cover_image_url(value: Optional[str]) -> Optional[str]:
    """Blank means no cover; anything else must be an http(s) URL.

    Raises:
        ValueError: If the value is not a valid URL
    """
    value = (value or "").strip()
    if not value:
        return None
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("Cover image URL must be a valid URL")
    return value


def clean_book_fields(fields: dict, partial: bool = False) -> dict:
    """Validate and normalise book input.

    Optional text fields given as empty strings are stored as NULL.

    Args:
        fields: Raw field values
        partial: True for updates, where missing required fields are allowed

    Returns:
        A new dict of cleaned values

    Raises:
        ValueError: If a value is missing, too long or not allowed
    """
    cleaned = {}
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown book field(s): {', '.join(sorted(unknown))}")

    for name, (max_length, required) in BOOK_FIELD_LIMITS.items():
        if name not in fields:
            if required and not partial:
                raise ValueError(f"{name.capitalize()} is required")
            continue
        value = fields[name]
        value = value.strip() if isinstance(value, str) else value
        if not value:
            if required:
                raise ValueError(f"{name.capitalize()} is required")
            value = None
        elif len(value) > max_length:
            raise ValueError(f"{name.capitalize()} must be at most {max_length} characters")
        cleaned[name] = value

    if "cover_image_url" in fields:
        cleaned["cover_image_url"] = validate_cover_image_url(fields["cover_image_url"])

    if "condition" in fields:
        try:
            cleaned["condition"] = BookCondition(fields["condition"]).value
        except ValueError:
            allowed = ", ".join(c.value for c in BookCondition)
            raise ValueError(f"Condition must be one of: {allowed}")

    if "borrowable" in fields and fields["borrowable"] is not None:
        cleaned["borrowable"] = bool(fields["borrowable"])

    return cleaned


class BookRepository:
    """Repository for managing Book entities."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def create_book(self, owner_id: str, **fields) -> Book:
        """Create a book owned by a user.

        Args:
            owner_id: ID of the owning user
            **fields: title, author and optional isbn, genre, description,
                cover_image_url, condition, borrowable

        Returns:
            The created Book

        Raises:
            ValueError: If the input is invalid
        """
        cleaned = clean_book_fields(fields)
        cleaned.setdefault("condition", BookCondition.GOOD.value)
        book = Book(owner_id=owner_id, **cleaned)
        self.session.add(book)
        self.session.commit()
        return book

    def get_by_id(self, book_id: str) -> Optional[Book]:
        return self.session.get(Book, book_id)

    def get_with_owner(self, book_id: str) -> Optional[Book]:
        return (
            self.session.query(Book)
            .options(joinedload(Book.owner))
            .filter(Book.id == book_id)
            .first()
        )

    def list_books(
        self,
        genre: Optional[str] = None,
        borrowable: Optional[bool] = None,
        owner_id: Optional[str] = None,
        search: Optional[str] = None,
        flagged: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Book]:
        """List books with optional filters, newest first.

        Args:
            genre: Exact genre
            borrowable: Only books that are (or are not) available to borrow
            owner_id: Only books owned by this user
            search: Case-insensitive match on title or author
            flagged: Only flagged (or unflagged) books
            limit: Maximum number of books
            offset: Number of books to skip

        Returns:
            List of Book objects with their owner loaded
        """
        q = self._filtered(genre, borrowable, owner_id, search, flagged)
        q = q.options(joinedload(Book.owner)).order_by(Book.created_at.desc()).offset(offset)
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def count_books(
        self,
        genre: Optional[str] = None,
        borrowable: Optional[bool] = None,
        owner_id: Optional[str] = None,
        search: Optional[str] = None,
        flagged: Optional[bool] = None,
    ) -> int:
        return self._filtered(genre, borrowable, owner_id, search, flagged).count()

    def _filtered(self, genre, borrowable, owner_id, search, flagged):
        q = self.session.query(Book)
        if genre:
            q = q.filter(Book.genre == genre)
        if borrowable is not None:
            q = q.filter(Book.borrowable == borrowable)
        if owner_id:
            q = q.filter(Book.owner_id == owner_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(Book.title.ilike(pattern), Book.author.ilike(pattern)))
        if flagged is not None:
            q = q.filter(Book.flagged == flagged)
        return q

    def update_book(self, book_id: str, **fields) -> Optional[Book]:
        """Update a book's details.

        Returns:
            The updated Book if found, None otherwise

        Raises:
            ValueError: If the input is invalid
        """
        book = self.get_by_id(book_id)
        if not book:
            return None

        for key, value in clean_book_fields(fields, partial=True).items():
            setattr(book, key, value)
        self.session.commit()
        return book

    def set_cover_image(self, book_id: str, url: str) -> Optional[Book]:
        book = self.get_by_id(book_id)
        if not book:
            return None
        book.cover_image_url = url
        self.session.commit()
        return book

    def flag_book(self, book_id: str, reason: str) -> Optional[Book]:
        book = self.get_by_id(book_id)
        if not book:
            return None
        book.flagged = True
        book.flagged_at = datetime.now(UTC)
        book.flagged_reason = reason
        self.session.commit()
        return book

    def unflag_book(self, book_id: str) -> Optional[Book]:
        book = self.get_by_id(book_id)
        if not book:
            return None
        book.flagged = False
        book.flagged_at = None
        book.flagged_reason = None
        self.session.commit()
        return book

    def delete_book(self, book_id: str) -> bool:
        """Delete a book and its requests, reviews and community links.

        Returns:
            True if the book was deleted, False if not found
        """
        book = self.get_by_id(book_id)
        if not book:
            return False
        self.session.delete(book)
        self.session.commit()
        return True

