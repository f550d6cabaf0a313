# core/sa/models/book.py
from datetime import datetime
from sqlalchemy import String, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, UTCDateTime
from core.constants import BookCondition


class Book(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = 'book'

    owner_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[str] = mapped_column(String(200), nullable=False)
    isbn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    condition: Mapped[str] = mapped_column(String(20), nullable=False, default=BookCondition.GOOD.value)
    borrowable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    flagged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    flagged_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    flagged_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    owner = relationship('User', back_populates='books')
    borrow_requests = relationship('BorrowRequest', back_populates='book', cascade='all, delete-orphan')
    reviews = relationship('Review', back_populates='book', cascade='all, delete-orphan')
    book_communities = relationship('BookCommunity', back_populates='book', cascade='all, delete-orphan')
    communities = relationship('Community', secondary='book_community', viewonly=True)

    def __repr__(self):
        return f"<Book {self.title!r} by {self.author}>"
