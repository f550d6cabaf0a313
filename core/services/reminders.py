# core/services/reminders.py
import logging
from datetime import datetime, timedelta, UTC
from typing import Dict, Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.constants import BorrowRequestStatus, NotificationType
from core.sa.models import BorrowRequest
from core.sa.repositories.borrow_request import BorrowRequestRepository
from core.sa.repositories.notification import NotificationRepository
from core.services.notifications import NotificationService

logger = logging.getLogger(__name__)

DUE_SOON_STATUSES = (BorrowRequestStatus.APPROVED, BorrowRequestStatus.BORROWED)
OVERDUE_STATUSES = (BorrowRequestStatus.BORROWED, BorrowRequestStatus.RETURN_INITIATED)


class ReminderService:
    """Due-date reminders, meant to be run periodically (see `bookshare reminders send`).

    Each user gets at most one reminder of each type per request, so the
    scan can run as often as needed.
    """

    def __init__(self, session: Session):
        self.session = session
        self.requests = BorrowRequestRepository(session)
        self.notification_repo = NotificationRepository(session)
        self.notifications = NotificationService(session)

    def _notify_once(self, user_id: str, type: NotificationType, borrow_request: BorrowRequest,
                     title: str, message: str) -> bool:
        if self.notification_repo.exists_for_request(user_id, type, borrow_request.id):
            return False
        payload = {
            "request_id": borrow_request.id,
            "book_id": borrow_request.book_id,
            "due_date": borrow_request.due_date.isoformat(),
        }
        return self.notifications.try_create_notification(user_id, type, title, message, payload) is not None

    def send_due_reminders(self, now: Optional[datetime] = None, due_soon_days: Optional[int] = None) -> Dict[str, int]:
        """Send due-soon and overdue notices.

        Args:
            now: Reference time, defaults to the current time
            due_soon_days: How far ahead counts as "due soon"

        Returns:
            Counts of notifications sent, keyed by "due_soon" and "overdue"
        """
        now = now or datetime.now(UTC)
        window = timedelta(days=due_soon_days if due_soon_days is not None else settings.due_soon_days)
        sent = {"due_soon": 0, "overdue": 0}

        for borrow_request in self.requests.list_due_between(DUE_SOON_STATUSES, now, now + window):
            title = borrow_request.book.title
            if self._notify_once(
                borrow_request.borrower_id, NotificationType.DUE_SOON, borrow_request,
                "Book Due Soon", f"\"{title}\" is due back on {borrow_request.due_date:%Y-%m-%d}",
            ):
                sent["due_soon"] += 1

        for borrow_request in self.requests.list_overdue(OVERDUE_STATUSES, now):
            title = borrow_request.book.title
            if self._notify_once(
                borrow_request.borrower_id, NotificationType.OVERDUE, borrow_request,
                "Book Overdue", f"\"{title}\" was due back on {borrow_request.due_date:%Y-%m-%d}",
            ):
                sent["overdue"] += 1
            if self._notify_once(
                borrow_request.owner_id, NotificationType.OVERDUE, borrow_request,
                "Book Overdue", f"{borrow_request.borrower.name} has not returned \"{title}\" yet",
            ):
                sent["overdue"] += 1

        logger.info("Reminders sent: %d due soon, %d overdue", sent["due_soon"], sent["overdue"])
        return sent
