# core/services/notifications.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import NotificationType
from core.exceptions import NotFoundError
from core.realtime import notifications_channel, publish_after_commit
from core.sa.models import Notification, BorrowRequest, User
from core.sa.repositories.notification import NotificationRepository

logger = logging.getLogger(__name__)


def notification_event(notification: Notification) -> dict:
    return {
        "event": "INSERT",
        "table": "notification",
        "record": {
            "id": notification.id,
            "user_id": notification.user_id,
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "payload": notification.payload or {},
            "read": notification.read,
            "created_at": notification.created_at.isoformat() if notification.created_at else None,
        },
    }


class NotificationService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = NotificationRepository(session)

    def create_notification(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> Notification:
        """Store a notification and push it to the user's change feed."""
        notification = self.repo.create(user_id, type, title, message, payload, commit=False)
        publish_after_commit(self.session, notifications_channel(user_id), notification_event(notification))
        self.session.commit()
        logger.info("Notified user %s (%s)", user_id, notification.type)
        return notification

    def try_create_notification(self, *args, **kwargs) -> Optional[Notification]:
        """Create a notification, logging instead of raising on failure.

        Used for side effects of a workflow that has already committed.
        """
        try:
            return self.create_notification(*args, **kwargs)
        except Exception:
            self.session.rollback()
            logger.exception("Failed to create notification for user %s", args[0] if args else kwargs.get("user_id"))
            return None

    def get_notifications(
        self,
        user_id: Optional[str] = None,
        type: Optional[str] = None,
        read: Optional[bool] = None,
    ) -> List[Notification]:
        return self.repo.list_notifications(user_id=user_id, type=type, read=read)

    def get_unread_notifications(self, user_id: str) -> List[Notification]:
        return self.repo.list_notifications(user_id=user_id, read=False)

    def get_unread_count(self, user_id: str) -> int:
        return self.repo.count_unread(user_id)

    def _get_own(self, user: User, notification_id: str) -> Notification:
        notification = self.repo.get_by_id(notification_id)
        # Other users' notifications are reported as missing
        if not notification or notification.user_id != user.id:
            raise NotFoundError("Notification", notification_id)
        return notification

    def mark_as_read(self, user: User, notification_id: str) -> Notification:
        self._get_own(user, notification_id)
        return self.repo.mark_read(notification_id)

    def mark_all_as_read(self, user: User) -> int:
        return self.repo.mark_all_read(user.id)

    def delete_notification(self, user: User, notification_id: str) -> None:
        self._get_own(user, notification_id)
        self.repo.delete(notification_id)

    # Borrow request helpers

    def notify_borrow_request(self, borrow_request: BorrowRequest, borrower_name: str) -> Optional[Notification]:
        return self.try_create_notification(
            borrow_request.owner_id,
            NotificationType.BORROW_REQUEST,
            "New Borrow Request",
            f"{borrower_name} wants to borrow your book",
            {"book_id": borrow_request.book_id, "request_id": borrow_request.id},
        )

    def notify_request_approved(self, borrow_request: BorrowRequest, book_title: str) -> Optional[Notification]:
        return self.try_create_notification(
            borrow_request.borrower_id,
            NotificationType.REQUEST_APPROVED,
            "Request Approved",
            f"Your request to borrow \"{book_title}\" was approved",
            {"book_id": borrow_request.book_id, "request_id": borrow_request.id},
        )

    def notify_request_denied(self, borrow_request: BorrowRequest, book_title: str) -> Optional[Notification]:
        return self.try_create_notification(
            borrow_request.borrower_id,
            NotificationType.REQUEST_DENIED,
            "Request Denied",
            f"Your request to borrow \"{book_title}\" was denied",
            {"book_id": borrow_request.book_id, "request_id": borrow_request.id},
        )

    def notify_book_returned(self, borrow_request: BorrowRequest, book_title: str) -> Optional[Notification]:
        return self.try_create_notification(
            borrow_request.borrower_id,
            NotificationType.BOOK_RETURNED,
            "Return Confirmed",
            f"The owner confirmed the return of \"{book_title}\"",
            {"book_id": borrow_request.book_id, "request_id": borrow_request.id},
        )
