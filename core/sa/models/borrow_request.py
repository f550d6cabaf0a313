# core/sa/models/borrow_request.py
from datetime import datetime
from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, UTCDateTime, utcnow
from core.constants import BorrowRequestStatus


class BorrowRequest(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = 'borrow_request'

    book_id: Mapped[str] = mapped_column(ForeignKey('book.id', ondelete='CASCADE'), nullable=False, index=True)
    borrower_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    owner_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=BorrowRequestStatus.PENDING.value, index=True)
    request_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    response_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    requested_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    approved_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    returned_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Handover (owner to borrower)
    handover_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    handover_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    handover_datetime: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    handover_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    handover_tracking: Mapped[str | None] = mapped_column(String(255), nullable=True)
    handover_completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Return (borrower to owner)
    return_method: Mapped[str | None] = mapped_column(String(20), nullable=True)
    return_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    return_datetime: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    return_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    return_tracking: Mapped[str | None] = mapped_column(String(255), nullable=True)
    return_initiated_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Relationships
    book = relationship('Book', back_populates='borrow_requests')
    borrower = relationship('User', foreign_keys=[borrower_id], back_populates='borrow_requests')
    owner = relationship('User', foreign_keys=[owner_id], back_populates='incoming_requests')
    messages = relationship(
        'Message', back_populates='borrow_request', cascade='all, delete-orphan',
        order_by='Message.created_at'
    )

    def is_participant(self, user_id: str) -> bool:
        return user_id in (self.borrower_id, self.owner_id)

    def other_participant_id(self, user_id: str) -> str:
        return self.owner_id if user_id == self.borrower_id else self.borrower_id

    def __repr__(self):
        return f"<BorrowRequest {self.id} {self.status}>"
