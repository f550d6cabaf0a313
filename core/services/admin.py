# core/services/admin.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.constants import AdminNotificationType, BorrowRequestStatus, UserGroup
from core.exceptions import NotFoundError, PermissionDeniedError
from core.realtime import notifications_channel, publish_after_commit
from core.sa.models import Book, BorrowRequest, User
from core.sa.repositories.book import BookRepository
from core.sa.repositories.notification import NotificationRepository
from core.sa.repositories.review import ReviewRepository
from core.sa.repositories.user import UserRepository, AuthSessionRepository
from core.services.lending import LendingService
from core.services.notifications import notification_event

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_MESSAGE = "Approved by admin"


def validate_system_notification(title: str, message: str, type: str) -> AdminNotificationType:
    """Check an admin notification's text and type.

    Raises:
        ValueError: If the title or message length is out of range or the type is unknown
    """
    title = (title or "").strip()
    message = (message or "").strip()
    if not 5 <= len(title) <= 100:
        raise ValueError("Title must be between 5 and 100 characters")
    if not 10 <= len(message) <= 500:
        raise ValueError("Message must be between 10 and 500 characters")
    try:
        return AdminNotificationType(type)
    except ValueError:
        raise ValueError(f"Notification type must be one of: {', '.join(t.value for t in AdminNotificationType)}")


class AdminService:
    """Moderation and overrides. Every method expects an admin caller."""

    def __init__(self, session: Session, admin: User):
        if not admin or not admin.is_admin:
            raise PermissionDeniedError("Admin access required")
        self.session = session
        self.admin = admin
        self.users = UserRepository(session)
        self.books = BookRepository(session)
        self.reviews = ReviewRepository(session)
        self.notifications = NotificationRepository(session)
        self.lending = LendingService(session)

    # Dashboard

    def get_stats(self) -> dict:
        requests_by_status = self.lending.repo.count_by_status()
        return {
            "total_users": self.users.count_users(),
            "suspended_users": self.users.count_users(suspended=True),
            "total_books": self.books.count_books(),
            "borrowable_books": self.books.count_books(borrowable=True),
            "flagged_books": self.books.count_books(flagged=True),
            "total_borrow_requests": sum(requests_by_status.values()),
            "pending_requests": requests_by_status[BorrowRequestStatus.PENDING.value],
            "active_borrows": requests_by_status[BorrowRequestStatus.BORROWED.value],
            "completed_borrows": requests_by_status[BorrowRequestStatus.RETURNED.value],
            "requests_by_status": requests_by_status,
        }

    def get_genre_distribution(self) -> List[dict]:
        rows = (
            self.session.query(Book.genre, func.count(Book.id))
            .group_by(Book.genre)
            .all()
        )
        distribution = [{"genre": genre or "Unknown", "count": count} for genre, count in rows]
        return sorted(distribution, key=lambda d: d["count"], reverse=True)

    # Listings

    def get_all_users(self, search: Optional[str] = None, suspended: Optional[bool] = None) -> List[User]:
        return self.users.list_users(search=search, suspended=suspended)

    def get_all_books(self, flagged: Optional[bool] = None, search: Optional[str] = None) -> List[Book]:
        return self.books.list_books(flagged=flagged, search=search)

    def get_all_borrow_requests(self, status: Optional[str] = None) -> List[BorrowRequest]:
        return self.lending.get_borrow_requests(status=status)

    def get_user_activity_history(self, user_id: str) -> List[dict]:
        self._get_user(user_id)
        return self.users.get_activity_history(user_id)

    # Users

    def _get_user(self, user_id: str) -> User:
        user = self.users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def update_user_admin_status(self, user_id: str, is_admin: bool) -> User:
        self._get_user(user_id)
        if user_id == self.admin.id and not is_admin:
            raise ValueError("You cannot remove your own admin access")
        logger.info("Admin %s set is_admin=%s for user %s", self.admin.id, is_admin, user_id)
        return self.users.set_admin(user_id, is_admin)

    def suspend_user(self, user_id: str, reason: str) -> User:
        self._get_user(user_id)
        if user_id == self.admin.id:
            raise ValueError("You cannot suspend yourself")
        if not (reason or "").strip():
            raise ValueError("A reason is required to suspend a user")
        user = self.users.suspend_user(user_id, reason.strip())
        AuthSessionRepository(self.session).revoke_all_for_user(user_id)
        logger.info("Admin %s suspended user %s", self.admin.id, user_id)
        return user

    def unsuspend_user(self, user_id: str) -> User:
        self._get_user(user_id)
        logger.info("Admin %s unsuspended user %s", self.admin.id, user_id)
        return self.users.unsuspend_user(user_id)

    def update_user_profile(self, user_id: str, **fields) -> User:
        self._get_user(user_id)
        allowed = {k: v for k, v in fields.items() if k in ("name", "bio", "avatar_url") and v is not None}
        return self.users.update_user(user_id, **allowed)

    def delete_user(self, user_id: str) -> None:
        self._get_user(user_id)
        if user_id == self.admin.id:
            raise ValueError("You cannot delete your own account from the admin panel")
        self.users.delete_user(user_id)
        logger.info("Admin %s deleted user %s", self.admin.id, user_id)

    # Books and reviews

    def _get_book(self, book_id: str) -> Book:
        book = self.books.get_by_id(book_id)
        if not book:
            raise NotFoundError("Book", book_id)
        return book

    def update_book(self, book_id: str, **fields) -> Book:
        self._get_book(book_id)
        return self.books.update_book(book_id, **fields)

    def flag_book(self, book_id: str, reason: str) -> Book:
        self._get_book(book_id)
        if not (reason or "").strip():
            raise ValueError("A reason is required to flag a book")
        logger.info("Admin %s flagged book %s", self.admin.id, book_id)
        return self.books.flag_book(book_id, reason.strip())

    def unflag_book(self, book_id: str) -> Book:
        self._get_book(book_id)
        return self.books.unflag_book(book_id)

    def delete_book(self, book_id: str) -> None:
        self._get_book(book_id)
        self.books.delete_book(book_id)
        logger.info("Admin %s deleted book %s", self.admin.id, book_id)

    def get_all_reviews(self, book_id: Optional[str] = None):
        return self.reviews.list_reviews(book_id=book_id)

    def delete_review(self, review_id: str) -> None:
        if not self.reviews.delete_review(review_id):
            raise NotFoundError("Review", review_id)

    # Borrow request overrides

    def approve_request(self, request_id: str, due_date: datetime, message: Optional[str] = None) -> BorrowRequest:
        logger.info("Admin %s approving request %s", self.admin.id, request_id)
        return self.lending.approve_borrow_request(
            None, request_id, due_date, response_message=message or DEFAULT_APPROVAL_MESSAGE
        )

    def deny_request(self, request_id: str, reason: str) -> BorrowRequest:
        if not (reason or "").strip():
            raise ValueError("A reason is required to deny a request")
        logger.info("Admin %s denying request %s", self.admin.id, request_id)
        return self.lending.deny_borrow_request(None, request_id, reason)

    def cancel_request(self, request_id: str) -> None:
        logger.info("Admin %s cancelling request %s", self.admin.id, request_id)
        self.lending.delete_borrow_request(None, request_id)

    def mark_as_returned(self, request_id: str) -> BorrowRequest:
        logger.info("Admin %s marking request %s returned", self.admin.id, request_id)
        return self.lending.force_return(request_id)

    # System notifications

    def _send(self, user_ids: List[str], title: str, message: str, type: str) -> int:
        notification_type = validate_system_notification(title, message, type)
        if not user_ids:
            return 0
        created = self.notifications.create_many(user_ids, notification_type, title.strip(), message.strip(),
                                                 commit=False)
        for notification in created:
            publish_after_commit(self.session, notifications_channel(notification.user_id),
                                 notification_event(notification))
        self.session.commit()
        sent = len(created)
        logger.info("Admin %s sent %s notification to %d user(s)", self.admin.id, notification_type.value, sent)
        return sent

    def send_broadcast_notification(self, title: str, message: str,
                                    type: str = AdminNotificationType.ANNOUNCEMENT) -> int:
        return self._send(self.users.get_user_ids_for_group(UserGroup.ALL), title, message, type)

    def send_group_notification(self, group: str, title: str, message: str,
                                type: str = AdminNotificationType.ANNOUNCEMENT) -> int:
        return self._send(self.users.get_user_ids_for_group(UserGroup(group)), title, message, type)

    def send_user_notification(self, user_id: str, title: str, message: str,
                               type: str = AdminNotificationType.INFO) -> int:
        self._get_user(user_id)
        return self._send([user_id], title, message, type)
