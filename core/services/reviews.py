# core/services/reviews.py
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import ActivityType
from core.exceptions import NotFoundError, PermissionDeniedError
from core.sa.models import Review, Book, User
from core.sa.repositories.review import ReviewRepository
from core.services.communities import CommunityService


class ReviewService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = ReviewRepository(session)

    def get_review(self, review_id: str) -> Review:
        review = self.repo.get_by_id(review_id)
        if not review:
            raise NotFoundError("Review", review_id)
        return review

    def get_reviews(self, book_id: Optional[str] = None, user_id: Optional[str] = None,
                    min_rating: Optional[int] = None) -> List[Review]:
        return self.repo.list_reviews(book_id=book_id, user_id=user_id, min_rating=min_rating)

    def create_review(self, user: User, book_id: str, rating: int, comment: Optional[str] = None) -> Review:
        book = self.session.get(Book, book_id)
        if not book:
            raise NotFoundError("Book", book_id)
        review = self.repo.create_review(book_id, user.id, rating, comment)
        CommunityService(self.session).record_book_activity(
            book_id, ActivityType.REVIEW_POSTED, user.id,
            {"book_id": book_id, "book_title": book.title, "rating": rating},
        )
        return review

    def _get_own(self, user: User, review_id: str) -> Review:
        review = self.get_review(review_id)
        if review.user_id != user.id:
            raise PermissionDeniedError("You can only change your own reviews")
        return review

    def update_review(self, user: User, review_id: str, rating: Optional[int] = None,
                      comment: Optional[str] = None) -> Review:
        self._get_own(user, review_id)
        return self.repo.update_review(review_id, rating=rating, comment=comment)

    def delete_review(self, user: User, review_id: str) -> None:
        self._get_own(user, review_id)
        self.repo.delete_review(review_id)

    def get_book_average_rating(self, book_id: str) -> Optional[float]:
        return self.repo.get_average_rating(book_id)

    def has_user_reviewed_book(self, user_id: str, book_id: str) -> bool:
        return self.repo.get_user_review(book_id, user_id) is not None
