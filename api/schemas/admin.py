# api/schemas/admin.py
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field


class AdminStats(BaseModel):
    total_users: int
    suspended_users: int
    total_books: int
    borrowable_books: int
    flagged_books: int
    total_borrow_requests: int
    pending_requests: int
    active_borrows: int
    completed_borrows: int
    requests_by_status: Dict[str, int]


class GenreCount(BaseModel):
    genre: str
    count: int


class ActivityEntry(BaseModel):
    type: str
    created_at: datetime
    description: str
    book_id: Optional[str] = None


class AdminStatusUpdate(BaseModel):
    is_admin: bool


class Suspend(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class Flag(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


class AdminApprove(BaseModel):
    due_date: datetime
    message: Optional[str] = Field(None, max_length=1000)


class AdminDeny(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class RecentActivity(BaseModel):
    id: str
    type: str
    description: str
    timestamp: datetime
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    book_id: Optional[str] = None
    book_title: Optional[str] = None


class BorrowActivityDay(BaseModel):
    date: str
    requests: int
    approvals: int
    returns: int


class UserGrowthDay(BaseModel):
    date: str
    total_users: int
    new_users: int


class ActiveUser(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    total_borrows: int
    total_lends: int
    active_requests: int


class PopularBook(BaseModel):
    id: str
    title: str
    author: str
    cover_image_url: Optional[str] = None
    genre: Optional[str] = None
    owner_id: str
    owner_name: str
    total_borrows: int
    average_rating: Optional[float] = None


class BorrowDuration(BaseModel):
    average_days: float
    median_days: float
    min_days: int
    max_days: int
    total_completed_borrows: int


class UserRetention(BaseModel):
    total_users: int
    active_users_last_7_days: int
    active_users_last_30_days: int
    retention_rate_7_days: float
    retention_rate_30_days: float
    new_users_last_7_days: int
    new_users_last_30_days: int


class PlatformKPIs(BaseModel):
    total_users: int
    total_books: int
    total_borrows: int
    active_borrows: int
    completed_borrows: int
    average_books_per_user: float
    average_borrows_per_book: float
    user_growth_rate_30_days: float
    book_growth_rate_30_days: float
    borrow_growth_rate_30_days: float
