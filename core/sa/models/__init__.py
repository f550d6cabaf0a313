# core/sa/models/__init__.py
from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin, UTCDateTime
from .user import User, AuthSession
from .book import Book
from .borrow_request import BorrowRequest
from .review import Review
from .notification import Notification
from .message import Message
from .community import Community, CommunityMember, BookCommunity, CommunityActivity, CommunityInvitation

__all__ = [
    'Base',
    'TimestampMixin',
    'UUIDPrimaryKeyMixin',
    'UTCDateTime',
    'User',
    'AuthSession',
    'Book',
    'BorrowRequest',
    'Review',
    'Notification',
    'Message',
    'Community',
    'CommunityMember',
    'BookCommunity',
    'CommunityActivity',
    'CommunityInvitation',
]
