# api/deps.py
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from core.exceptions import AuthenticationError, PermissionDeniedError
from core.sa.database import get_db
from core.sa.models import User
from core.services.auth import AuthService

# Missing or non-bearer credentials come through as None and are rejected below with 401
bearer_scheme = HTTPBearer(auto_error=False)


def get_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header"""
    if credentials is None:
        return None
    return credentials.credentials.strip() or None


def get_current_user(
    token: Optional[str] = Depends(get_token),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise AuthenticationError("Not authenticated")
    return AuthService(db).get_current_user(token)


def get_optional_user(
    token: Optional[str] = Depends(get_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if not token:
        return None
    try:
        return AuthService(db).get_current_user(token)
    except AuthenticationError:
        return None


def get_admin_user(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admin access required")
    return user
