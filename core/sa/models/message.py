# core/sa/models/message.py
from sqlalchemy import Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Message(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Chat message between the two participants of a borrow request"""
    __tablename__ = 'message'

    borrow_request_id: Mapped[str] = mapped_column(
        ForeignKey('borrow_request.id', ondelete='CASCADE'), nullable=False, index=True
    )
    sender_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    read_by_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    read_by_borrower: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    borrow_request = relationship('BorrowRequest', back_populates='messages')
    sender = relationship('User')
