# core/services/auth.py
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC

from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash, check_password_hash

from core.config import settings
from core.exceptions import AuthenticationError, PermissionDeniedError
from core.sa.models import User
from core.sa.repositories.user import UserRepository, AuthSessionRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass
class SignedInSession:
    access_token: str
    expires_at: datetime
    user: User


def _check_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AuthService:
    """Email and password accounts with opaque bearer tokens."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)
        self.sessions = AuthSessionRepository(session)

    def _issue_session(self, user: User) -> SignedInSession:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(UTC) + timedelta(days=settings.session_ttl_days)
        self.sessions.create(token, user.id, expires_at)
        return SignedInSession(access_token=token, expires_at=expires_at, user=user)

    def sign_up(self, email: str, password: str, name: str) -> SignedInSession:
        """Create an account and sign it in.

        Raises:
            ValueError: If the email, password or name is missing or invalid
            ConflictError: If the email is already registered
        """
        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValueError("A valid email address is required")
        if not (name or "").strip():
            raise ValueError("Name is required")
        _check_password_strength(password)

        user = self.users.create_user(email=email, name=name, password_hash=generate_password_hash(password))
        logger.info("New account %s", user.id)
        return self._issue_session(user)

    def sign_in(self, email: str, password: str) -> SignedInSession:
        user = self.users.get_by_email(email or "")
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise AuthenticationError("Invalid email or password")
        if user.suspended:
            raise PermissionDeniedError("Your account has been suspended")
        return self._issue_session(user)

    def sign_out(self, token: str) -> None:
        self.sessions.revoke(token)

    def get_current_user(self, token: str) -> User:
        """Resolve a bearer token to its user.

        Raises:
            AuthenticationError: If the token is unknown, revoked or expired
            PermissionDeniedError: If the user is suspended
        """
        auth_session = self.sessions.get(token) if token else None
        if not auth_session or not auth_session.is_active:
            raise AuthenticationError("Not authenticated")
        user = auth_session.user
        if user.suspended:
            raise PermissionDeniedError("Your account has been suspended")
        return user

    def update_password(self, user: User, current_password: str, new_password: str) -> None:
        if not check_password_hash(user.password_hash, current_password or ""):
            raise AuthenticationError("Current password is incorrect")
        _check_password_strength(new_password)
        self.users.update_user(user.id, password_hash=generate_password_hash(new_password))
        logger.info("Password changed for user %s", user.id)
