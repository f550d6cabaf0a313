# core/services/messaging.py
import logging
from typing import List

from sqlalchemy.orm import Session

from core.constants import NotificationType
from core.exceptions import PermissionDeniedError
from core.realtime import messages_channel, publish_after_commit
from core.sa.models import Message, BorrowRequest, User
from core.sa.repositories.message import MessageRepository
from core.services.lending import LendingService
from core.services.notifications import NotificationService

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
PREVIEW_LENGTH = 50


def message_event(message: Message) -> dict:
    return {
        "event": "INSERT",
        "table": "message",
        "record": {
            "id": message.id,
            "borrow_request_id": message.borrow_request_id,
            "sender_id": message.sender_id,
            "content": message.content,
            "read_by_owner": message.read_by_owner,
            "read_by_borrower": message.read_by_borrower,
            "created_at": message.created_at.isoformat() if message.created_at else None,
        },
    }


class MessagingService:
    """Chat between the owner and the borrower of a borrow request."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = MessageRepository(session)
        self.lending = LendingService(session)
        self.notifications = NotificationService(session)

    def _get_request_for(self, user: User, request_id: str) -> BorrowRequest:
        borrow_request = self.lending.get_borrow_request(request_id)
        if not borrow_request.is_participant(user.id):
            raise PermissionDeniedError("Only the owner and borrower can access this conversation")
        return borrow_request

    def get_messages_by_request(self, user: User, request_id: str) -> List[Message]:
        self._get_request_for(user, request_id)
        return self.repo.list_for_request(request_id)

    def send_message(self, sender: User, request_id: str, content: str) -> Message:
        """Post a message and notify the other participant.

        Raises:
            ValueError: If the message is empty or too long
            PermissionDeniedError: If the sender is not part of the request
        """
        borrow_request = self._get_request_for(sender, request_id)
        content = (content or "").strip()
        if not content:
            raise ValueError("Message cannot be empty")
        if len(content) > MAX_MESSAGE_LENGTH:
            raise ValueError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")

        is_owner = sender.id == borrow_request.owner_id
        message = Message(
            borrow_request_id=borrow_request.id,
            sender_id=sender.id,
            content=content,
            # The sender has read their own message
            read_by_owner=is_owner,
            read_by_borrower=not is_owner,
        )
        self.repo.add(message)
        publish_after_commit(self.session, messages_channel(borrow_request.id), message_event(message))
        self.session.commit()

        recipient_id = borrow_request.other_participant_id(sender.id)
        book_title = borrow_request.book.title
        self.notifications.try_create_notification(
            recipient_id,
            NotificationType.NEW_MESSAGE,
            "New Message",
            f"{sender.name} sent you a message about \"{book_title}\"",
            {
                "request_id": borrow_request.id,
                "book_id": borrow_request.book_id,
                "message_preview": content[:PREVIEW_LENGTH],
            },
        )
        return message

    def mark_messages_as_read(self, user: User, request_id: str) -> int:
        borrow_request = self._get_request_for(user, request_id)
        return self.repo.mark_read(borrow_request, user.id)

    def get_unread_message_count(self, user: User, request_id: str) -> int:
        borrow_request = self._get_request_for(user, request_id)
        return self.repo.count_unread(borrow_request, user.id)

    def get_total_unread_count(self, user: User) -> int:
        return self.repo.count_unread_total(user.id)
