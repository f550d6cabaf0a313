from typing import List, Optional
from datetime import datetime, UTC
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from core.constants import BorrowRequestStatus, BORROWED_STATUSES, UserGroup
from core.exceptions import ConflictError
from core.sa.models import User, Book, BorrowRequest, Review, AuthSession


class UserRepository:
    """Repository for managing User entities."""

    def __init__(self, session: Session):
        """Initialize the repository with a database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def create_user(self, email: str, name: str, password_hash: str, is_admin: bool = False) -> User:
        """Create a new user.

        Args:
            email: Login email, stored lower case
            name: Display name
            password_hash: Already-hashed password
            is_admin: Whether the user can use the admin endpoints

        Returns:
            The created User object

        Raises:
            ConflictError: If a user with the given email already exists
        """
        email = email.strip().lower()
        if self.get_by_email(email):
            raise ConflictError(f"User with email '{email}' already exists")

        user = User(email=email, name=name.strip(), password_hash=password_hash, is_admin=is_admin)
        self.session.add(user)
        try:
            self.session.commit()
            return user
        except IntegrityError:
            self.session.rollback()
            raise ConflictError(f"User with email '{email}' already exists")

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.query(User).filter(User.email == email.strip().lower()).first()

    def update_user(self, user_id: str, **fields) -> Optional[User]:
        """Update a user's profile fields.

        Args:
            user_id: The ID of the user to update
            **fields: Columns to change (name, bio, avatar_url, password_hash, ...)

        Returns:
            The updated User object if found, None otherwise
        """
        user = self.get_by_id(user_id)
        if not user:
            return None

        for key, value in fields.items():
            setattr(user, key, value)
        self.session.commit()
        return user

    def set_admin(self, user_id: str, is_admin: bool) -> Optional[User]:
        return self.update_user(user_id, is_admin=is_admin)

    def suspend_user(self, user_id: str, reason: str) -> Optional[User]:
        return self.update_user(
            user_id, suspended=True, suspended_at=datetime.now(UTC), suspended_reason=reason
        )

    def unsuspend_user(self, user_id: str) -> Optional[User]:
        return self.update_user(user_id, suspended=False, suspended_at=None, suspended_reason=None)

    def delete_user(self, user_id: str) -> bool:
        """Delete a user along with their books, requests, reviews and notifications.

        Returns:
            True if the user was deleted, False if not found
        """
        user = self.get_by_id(user_id)
        if not user:
            return False
        self.session.delete(user)
        self.session.commit()
        return True

    def search_users(self, query: str, limit: int = 10) -> List[User]:
        """Search users by name or email.

        Args:
            query: Text to match, case-insensitive. Under two characters matches nothing.
            limit: Maximum number of users to return

        Returns:
            Matching users ordered by name
        """
        query = (query or "").strip()
        if len(query) < 2:
            return []

        pattern = f"%{query}%"
        return (
            self.session.query(User)
            .filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
            .order_by(User.name)
            .limit(limit)
            .all()
        )

    def list_users(self, search: Optional[str] = None, suspended: Optional[bool] = None) -> List[User]:
        """List all users, newest first, for the admin screens."""
        q = self.session.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        if suspended is not None:
            q = q.filter(User.suspended == suspended)
        return q.order_by(User.created_at.desc()).all()

    def count_users(self, suspended: Optional[bool] = None) -> int:
        q = self.session.query(func.count(User.id))
        if suspended is not None:
            q = q.filter(User.suspended == suspended)
        return q.scalar()

    def get_user_stats(self, user_id: str) -> Optional[dict]:
        """Get lending statistics for a user.

        Args:
            user_id: The ID of the user

        Returns:
            Dictionary with books_owned, books_shared, books_borrowed and
            total_exchanges, or None if the user does not exist
        """
        if not self.get_by_id(user_id):
            return None

        books_owned = self.session.query(func.count(Book.id)).filter(Book.owner_id == user_id).scalar()
        books_shared = (
            self.session.query(func.count(Book.id))
            .filter(Book.owner_id == user_id, Book.borrowable.is_(True))
            .scalar()
        )
        books_borrowed = (
            self.session.query(func.count(BorrowRequest.id))
            .filter(
                BorrowRequest.borrower_id == user_id,
                BorrowRequest.status.in_([s.value for s in BORROWED_STATUSES])
            )
            .scalar()
        )
        total_exchanges = (
            self.session.query(func.count(BorrowRequest.id))
            .filter(
                or_(BorrowRequest.owner_id == user_id, BorrowRequest.borrower_id == user_id),
                BorrowRequest.status == BorrowRequestStatus.RETURNED.value
            )
            .scalar()
        )

        return {
            "books_owned": books_owned,
            "books_shared": books_shared,
            "books_borrowed": books_borrowed,
            "total_exchanges": total_exchanges,
        }

    def get_user_ids_for_group(self, group: UserGroup) -> List[str]:
        """Resolve a notification target group to user IDs.

        Borrowers are users who have made at least one borrow request and
        lenders are users who own at least one book.
        """
        group = UserGroup(group)
        q = self.session.query(User.id)
        if group == UserGroup.ADMINS:
            q = q.filter(User.is_admin.is_(True))
        elif group == UserGroup.SUSPENDED:
            q = q.filter(User.suspended.is_(True))
        elif group == UserGroup.BORROWERS:
            q = q.filter(User.id.in_(self.session.query(BorrowRequest.borrower_id).distinct()))
        elif group == UserGroup.LENDERS:
            q = q.filter(User.id.in_(self.session.query(Book.owner_id).distinct()))
        return [row[0] for row in q.all()]

    def get_activity_history(self, user_id: str) -> List[dict]:
        """Books added, requests made and reviews posted by a user, newest first."""
        events = []
        for book in self.session.query(Book).filter(Book.owner_id == user_id).all():
            events.append({
                "type": "book_added",
                "created_at": book.created_at,
                "description": f"Added \"{book.title}\"",
                "book_id": book.id,
            })
        for request in self.session.query(BorrowRequest).filter(BorrowRequest.borrower_id == user_id).all():
            events.append({
                "type": "borrow_request",
                "created_at": request.created_at,
                "description": f"Requested \"{request.book.title}\" ({request.status})",
                "book_id": request.book_id,
            })
        for review in self.session.query(Review).filter(Review.user_id == user_id).all():
            events.append({
                "type": "review",
                "created_at": review.created_at,
                "description": f"Reviewed \"{review.book.title}\" ({review.rating}/5)",
                "book_id": review.book_id,
            })
        return sorted(events, key=lambda e: e["created_at"], reverse=True)


class AuthSessionRepository:
    """Repository for bearer-token sessions."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, token: str, user_id: str, expires_at: datetime) -> AuthSession:
        auth_session = AuthSession(token=token, user_id=user_id, expires_at=expires_at)
        self.session.add(auth_session)
        self.session.commit()
        return auth_session

    def get(self, token: str) -> Optional[AuthSession]:
        return self.session.get(AuthSession, token)

    def revoke(self, token: str) -> bool:
        auth_session = self.get(token)
        if not auth_session or auth_session.revoked_at is not None:
            return False
        auth_session.revoked_at = datetime.now(UTC)
        self.session.commit()
        return True

    def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every live session of a user, e.g. after suspension."""
        count = (
            self.session.query(AuthSession)
            .filter(AuthSession.user_id == user_id, AuthSession.revoked_at.is_(None))
            .update({AuthSession.revoked_at: datetime.now(UTC)}, synchronize_session="fetch")
        )
        self.session.commit()
        return count
