from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError

from core.exceptions import ConflictError
from core.sa.models import Review


def _check_rating(rating: int) -> None:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValueError("Rating must be between 1 and 5")


class ReviewRepository:
    """Repository for managing Review entities."""

    def __init__(self, session: Session):
        self.session = session

    def create_review(self, book_id: str, user_id: str, rating: int, comment: Optional[str] = None) -> Review:
        """Create a review.

        Args:
            book_id: The reviewed book
            user_id: The reviewing user
            rating: Whole number from 1 to 5
            comment: Optional free text

        Returns:
            The created Review

        Raises:
            ValueError: If the rating is out of range
            ConflictError: If the user already reviewed this book
        """
        _check_rating(rating)
        if self.get_user_review(book_id, user_id):
            raise ConflictError("You have already reviewed this book")

        review = Review(book_id=book_id, user_id=user_id, rating=rating, comment=(comment or "").strip() or None)
        self.session.add(review)
        try:
            self.session.commit()
            return review
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You have already reviewed this book")

    def get_by_id(self, review_id: str) -> Optional[Review]:
        return (
            self.session.query(Review)
            .options(joinedload(Review.user), joinedload(Review.book))
            .filter(Review.id == review_id)
            .first()
        )

    def get_user_review(self, book_id: str, user_id: str) -> Optional[Review]:
        return (
            self.session.query(Review)
            .filter(Review.book_id == book_id, Review.user_id == user_id)
            .first()
        )

    def list_reviews(
        self,
        book_id: Optional[str] = None,
        user_id: Optional[str] = None,
        min_rating: Optional[int] = None,
    ) -> List[Review]:
        """List reviews, newest first, with reviewer and book loaded."""
        q = self.session.query(Review).options(joinedload(Review.user), joinedload(Review.book))
        if book_id:
            q = q.filter(Review.book_id == book_id)
        if user_id:
            q = q.filter(Review.user_id == user_id)
        if min_rating is not None:
            q = q.filter(Review.rating >= min_rating)
        return q.order_by(Review.created_at.desc()).all()

    def update_review(self, review_id: str, rating: Optional[int] = None, comment: Optional[str] = None) -> Optional[Review]:
        review = self.get_by_id(review_id)
        if not review:
            return None
        if rating is not None:
            _check_rating(rating)
            review.rating = rating
        if comment is not None:
            review.comment = comment.strip() or None
        self.session.commit()
        return review

    def delete_review(self, review_id: str) -> bool:
        review = self.session.get(Review, review_id)
        if not review:
            return False
        self.session.delete(review)
        self.session.commit()
        return True

    def get_average_rating(self, book_id: str) -> Optional[float]:
        """Average rating of a book, or None if it has no reviews."""
        average = self.session.query(func.avg(Review.rating)).filter(Review.book_id == book_id).scalar()
        return round(float(average), 2) if average is not None else None

    def count_for_book(self, book_id: str) -> int:
        return self.session.query(func.count(Review.id)).filter(Review.book_id == book_id).scalar()
