# core/sa/__init__.py
from .database import Database
from .models import (
    Base, User, AuthSession, Book, BorrowRequest, Review, Notification, Message,
    Community, CommunityMember, BookCommunity, CommunityActivity, CommunityInvitation
)

__all__ = [
    'Database',
    'Base',
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
