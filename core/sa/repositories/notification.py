from typing import List, Optional
from datetime import datetime, UTC
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.constants import NotificationType
from core.sa.models import Notification


class NotificationRepository:
    """Repository for managing Notification entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
        commit: bool = True,
    ) -> Notification:
        """Create a notification for a user.

        Args:
            user_id: Recipient
            type: A NotificationType value
            title: Short heading
            message: Body text
            payload: Extra JSON data such as request_id or book_id
            commit: Commit immediately; pass False to join a larger unit of work

        Returns:
            The created Notification

        Raises:
            ValueError: If the type is not a known notification type
        """
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            message=message,
            payload=payload or {},
            read=False,
        )
        self.session.add(notification)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return notification

    def create_many(self, user_ids: List[str], type: str, title: str, message: str,
                    commit: bool = True) -> List[Notification]:
        """Send the same notification to several users in one unit of work."""
        type = NotificationType(type).value
        now = datetime.now(UTC)
        notifications = [
            Notification(user_id=user_id, type=type, title=title, message=message,
                         payload={}, read=False, created_at=now, updated_at=now)
            for user_id in user_ids
        ]
        self.session.add_all(notifications)
        if commit:
            self.session.commit()
        else:
            self.session.flush()
        return notifications

    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        return self.session.get(Notification, notification_id)

    def list_notifications(
        self,
        user_id: Optional[str] = None,
        type: Optional[str] = None,
        read: Optional[bool] = None,
    ) -> List[Notification]:
        """List notifications, newest first."""
        q = self.session.query(Notification)
        if user_id:
            q = q.filter(Notification.user_id == user_id)
        if type:
            q = q.filter(Notification.type == NotificationType(type).value)
        if read is not None:
            q = q.filter(Notification.read == read)
        return q.order_by(Notification.created_at.desc()).all()

    def count_unread(self, user_id: str) -> int:
        return (
            self.session.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .scalar()
        )

    def mark_read(self, notification_id: str) -> Optional[Notification]:
        notification = self.get_by_id(notification_id)
        if not notification:
            return None
        notification.read = True
        self.session.commit()
        return notification

    def mark_all_read(self, user_id: str) -> int:
        count = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .update({Notification.read: True}, synchronize_session="fetch")
        )
        self.session.commit()
        return count

    def delete(self, notification_id: str) -> bool:
        notification = self.get_by_id(notification_id)
        if not notification:
            return False
        self.session.delete(notification)
        self.session.commit()
        return True

    def exists_for_request(self, user_id: str, type: str, request_id: str) -> bool:
        """Whether the user already got a notification of this type about a request."""
        candidates = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id, Notification.type == NotificationType(type).value)
            .all()
        )
        return any((n.payload or {}).get("request_id") == request_id for n in candidates)
