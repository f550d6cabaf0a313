from typing import List
from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session, joinedload

from core.sa.models import Message, BorrowRequest


class MessageRepository:
    """Repository for chat messages on borrow requests."""

    def __init__(self, session: Session):
        self.session = session

    def list_for_request(self, request_id: str) -> List[Message]:
        """Messages for a request, oldest first, with sender loaded."""
        return (
            self.session.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.borrow_request_id == request_id)
            .order_by(Message.created_at.asc())
            .all()
        )

    def add(self, message: Message) -> Message:
        self.session.add(message)
        self.session.flush()
        return message

    def mark_read(self, borrow_request: BorrowRequest, user_id: str) -> int:
        """Mark the other participant's messages as read on the user's side.

        Returns:
            Number of messages updated
        """
        read_column = Message.read_by_owner if user_id == borrow_request.owner_id else Message.read_by_borrower
        count = (
            self.session.query(Message)
            .filter(
                Message.borrow_request_id == borrow_request.id,
                Message.sender_id != user_id,
                read_column.is_(False),
            )
            .update({read_column: True}, synchronize_session="fetch")
        )
        self.session.commit()
        return count

    def count_unread(self, borrow_request: BorrowRequest, user_id: str) -> int:
        read_column = Message.read_by_owner if user_id == borrow_request.owner_id else Message.read_by_borrower
        return (
            self.session.query(func.count(Message.id))
            .filter(
                Message.borrow_request_id == borrow_request.id,
                Message.sender_id != user_id,
                read_column.is_(False),
            )
            .scalar()
        )

    def count_unread_total(self, user_id: str) -> int:
        """Unread messages across every request the user takes part in."""
        return (
            self.session.query(func.count(Message.id))
            .join(BorrowRequest, Message.borrow_request_id == BorrowRequest.id)
            .filter(
                Message.sender_id != user_id,
                or_(
                    and_(BorrowRequest.owner_id == user_id, Message.read_by_owner.is_(False)),
                    and_(BorrowRequest.borrower_id == user_id, Message.read_by_borrower.is_(False)),
                ),
            )
            .scalar()
        )
