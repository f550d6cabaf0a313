# core/sa/models/user.py
from datetime import datetime
from sqlalchemy import String, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, UTCDateTime, utcnow


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = 'user'

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    suspended_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    books = relationship('Book', back_populates='owner', cascade='all, delete-orphan')
    borrow_requests = relationship(
        'BorrowRequest', foreign_keys='BorrowRequest.borrower_id',
        back_populates='borrower', cascade='all, delete-orphan'
    )
    incoming_requests = relationship(
        'BorrowRequest', foreign_keys='BorrowRequest.owner_id',
        back_populates='owner', cascade='all, delete-orphan'
    )
    reviews = relationship('Review', back_populates='user', cascade='all, delete-orphan')
    notifications = relationship('Notification', back_populates='user', cascade='all, delete-orphan')
    sessions = relationship('AuthSession', back_populates='user', cascade='all, delete-orphan')
    memberships = relationship('CommunityMember', back_populates='user', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<User {self.email}>"


class AuthSession(Base, TimestampMixin):
    """Bearer token issued at sign in"""
    __tablename__ = 'auth_session'

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    user = relationship('User', back_populates='sessions')

    @property
    def is_active(self) -> bool:
        return self.revoked_at is None and self.expires_at > utcnow()
