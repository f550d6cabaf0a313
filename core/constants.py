# core/constants.py
from enum import Enum
from typing import Dict, FrozenSet


class BookCondition(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class BorrowRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    BORROWED = "borrowed"
    RETURN_INITIATED = "return_initiated"
    RETURNED = "returned"
    DENIED = "denied"


class HandoverMethod(str, Enum):
    SHIP = "ship"
    MEETUP = "meetup"
    PICKUP = "pickup"


class ReturnMethod(str, Enum):
    SHIP = "ship"
    MEETUP = "meetup"
    DROPOFF = "dropoff"


class NotificationType(str, Enum):
    BORROW_REQUEST = "borrow_request"
    REQUEST_APPROVED = "request_approved"
    REQUEST_DENIED = "request_denied"
    BOOK_RETURNED = "book_returned"
    DUE_SOON = "due_soon"
    OVERDUE = "overdue"
    NEW_MESSAGE = "new_message"
    COMMUNITY_JOIN_REQUEST = "community_join_request"
    COMMUNITY_INVITATION = "community_invitation"
    ANNOUNCEMENT = "announcement"
    ALERT = "alert"
    INFO = "info"


class AdminNotificationType(str, Enum):
    ANNOUNCEMENT = "announcement"
    ALERT = "alert"
    INFO = "info"


class UserGroup(str, Enum):
    ALL = "all"
    ADMINS = "admins"
    BORROWERS = "borrowers"
    LENDERS = "lenders"
    SUSPENDED = "suspended"

    @property
    def label(self) -> str:
        return USER_GROUP_LABELS[self]


USER_GROUP_LABELS: Dict[UserGroup, str] = {
    UserGroup.ALL: "All Users",
    UserGroup.ADMINS: "Administrators",
    UserGroup.BORROWERS: "Active Borrowers",
    UserGroup.LENDERS: "Active Lenders",
    UserGroup.SUSPENDED: "Suspended Users",
}


class CommunityRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class MembershipStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class ActivityType(str, Enum):
    MEMBER_JOINED = "member_joined"
    BOOK_ADDED = "book_added"
    BORROW_CREATED = "borrow_created"
    BORROW_RETURNED = "borrow_returned"
    REVIEW_POSTED = "review_posted"


# A borrower may hold at most one request per book in any of these
ACTIVE_REQUEST_STATUSES: FrozenSet[BorrowRequestStatus] = frozenset({
    BorrowRequestStatus.PENDING,
    BorrowRequestStatus.APPROVED,
    BorrowRequestStatus.BORROWED,
    BorrowRequestStatus.RETURN_INITIATED,
})

# Statuses in which the book is out of the owner's hands (or about to be)
BORROWED_STATUSES: FrozenSet[BorrowRequestStatus] = frozenset({
    BorrowRequestStatus.APPROVED,
    BorrowRequestStatus.BORROWED,
    BorrowRequestStatus.RETURN_INITIATED,
})

BORROW_REQUEST_TRANSITIONS: Dict[BorrowRequestStatus, FrozenSet[BorrowRequestStatus]] = {
    BorrowRequestStatus.PENDING: frozenset({BorrowRequestStatus.APPROVED, BorrowRequestStatus.DENIED}),
    BorrowRequestStatus.APPROVED: frozenset({BorrowRequestStatus.BORROWED}),
    BorrowRequestStatus.BORROWED: frozenset({BorrowRequestStatus.RETURN_INITIATED}),
    BorrowRequestStatus.RETURN_INITIATED: frozenset({BorrowRequestStatus.RETURNED}),
    BorrowRequestStatus.RETURNED: frozenset(),
    BorrowRequestStatus.DENIED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Check whether a borrow request may move from current to target status"""
    try:
        return BorrowRequestStatus(target) in BORROW_REQUEST_TRANSITIONS[BorrowRequestStatus(current)]
    except ValueError:
        return False


GENRES = [
    "Fiction",
    "Non-Fiction",
    "Mystery",
    "Thriller",
    "Romance",
    "Science Fiction",
    "Fantasy",
    "Biography",
    "History",
    "Self-Help",
    "Poetry",
    "Other",
]
