# core/sa/models/review.py
from sqlalchemy import Integer, Text, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Review(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = 'review'

    book_id: Mapped[str] = mapped_column(ForeignKey('book.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    book = relationship('Book', back_populates='reviews')
    user = relationship('User', back_populates='reviews')

    __table_args__ = (
        UniqueConstraint('book_id', 'user_id', name='uix_review_book_user'),
        CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating_range'),
    )
