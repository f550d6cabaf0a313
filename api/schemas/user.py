# api/schemas/user.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Public view of a user, embedded in books, requests and messages"""
    id: str
    name: str
    avatar_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class User(UserSummary):
    email: str
    bio: Optional[str] = None
    is_admin: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminUser(User):
    suspended: bool = False
    suspended_at: Optional[datetime] = None
    suspended_reason: Optional[str] = None


class UserList(BaseModel):
    items: List[UserSummary]
    total: int

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = Field(None, max_length=1000)


class UserStats(BaseModel):
    books_owned: int
    books_shared: int
    books_borrowed: int
    total_exchanges: int
