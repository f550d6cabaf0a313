# core/sa/models/community.py
from datetime import datetime
from sqlalchemy import String, Boolean, Text, ForeignKey, UniqueConstraint, JSON
from sqlalchemy.orm import relationship, Mapped, mapped_column
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, UTCDateTime, utcnow
from core.constants import CommunityRole, MembershipStatus, InvitationStatus


class Community(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = 'community'

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by: Mapped[str | None] = mapped_column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True)

    # Relationships
    creator = relationship('User', foreign_keys=[created_by])
    members = relationship('CommunityMember', back_populates='community', cascade='all, delete-orphan')
    book_communities = relationship('BookCommunity', back_populates='community', cascade='all, delete-orphan')
    activities = relationship('CommunityActivity', back_populates='community', cascade='all, delete-orphan')
    invitations = relationship('CommunityInvitation', back_populates='community', cascade='all, delete-orphan')


class CommunityMember(Base, UUIDPrimaryKeyMixin):
    __tablename__ = 'community_member'

    community_id: Mapped[str] = mapped_column(ForeignKey('community.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=CommunityRole.MEMBER.value)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=MembershipStatus.APPROVED.value)
    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    community = relationship('Community', back_populates='members')
    user = relationship('User', back_populates='memberships')

    __table_args__ = (
        UniqueConstraint('community_id', 'user_id', name='uix_community_member_community_user'),
    )

    @property
    def is_manager(self) -> bool:
        """Owners and admins can manage members, books and invitations"""
        return (
            self.status == MembershipStatus.APPROVED.value
            and self.role in (CommunityRole.OWNER.value, CommunityRole.ADMIN.value)
        )


class BookCommunity(Base, UUIDPrimaryKeyMixin):
    __tablename__ = 'book_community'

    book_id: Mapped[str] = mapped_column(ForeignKey('book.id', ondelete='CASCADE'), nullable=False, index=True)
    community_id: Mapped[str] = mapped_column(ForeignKey('community.id', ondelete='CASCADE'), nullable=False, index=True)
    added_by: Mapped[str | None] = mapped_column(ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    added_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    book = relationship('Book', back_populates='book_communities')
    community = relationship('Community', back_populates='book_communities')

    __table_args__ = (
        UniqueConstraint('book_id', 'community_id', name='uix_book_community_book_community'),
    )


class CommunityActivity(Base, UUIDPrimaryKeyMixin):
    __tablename__ = 'community_activity'

    community_id: Mapped[str] = mapped_column(ForeignKey('community.id', ondelete='CASCADE'), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    user_id: Mapped[str | None] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=True)
    # "metadata" is reserved on declarative classes
    activity_metadata: Mapped[dict | None] = mapped_column('metadata', JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    community = relationship('Community', back_populates='activities')
    user = relationship('User')


class CommunityInvitation(Base, UUIDPrimaryKeyMixin):
    __tablename__ = 'community_invitation'

    community_id: Mapped[str] = mapped_column(ForeignKey('community.id', ondelete='CASCADE'), nullable=False, index=True)
    inviter_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False)
    invitee_id: Mapped[str] = mapped_column(ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=InvitationStatus.PENDING.value)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    responded_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    community = relationship('Community', back_populates='invitations')
    inviter = relationship('User', foreign_keys=[inviter_id])
    invitee = relationship('User', foreign_keys=[invitee_id])

    __table_args__ = (
        UniqueConstraint('community_id', 'invitee_id', name='uix_community_invitation_community_invitee'),
    )
