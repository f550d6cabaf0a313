# core/sa/repositories/__init__.py
from .user import UserRepository, AuthSessionRepository
from .book import BookRepository
from .borrow_request import BorrowRequestRepository
from .review import ReviewRepository
from .notification import NotificationRepository
from .message import MessageRepository
from .community import CommunityRepository

__all__ = [
    'UserRepository',
    'AuthSessionRepository',
    'BookRepository',
    'BorrowRequestRepository',
    'ReviewRepository',
    'NotificationRepository',
    'MessageRepository',
    'CommunityRepository',
]
