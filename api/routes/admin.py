# api/routes/admin.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.constants import BorrowRequestStatus
from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.admin import AdminService
from core.services.analytics import AnalyticsService
from api.deps import get_admin_user
from api.schemas.admin import (
    AdminStats, GenreCount, ActivityEntry, AdminStatusUpdate, Suspend, Flag, AdminApprove, AdminDeny,
    RecentActivity, BorrowActivityDay, UserGrowthDay, ActiveUser, PopularBook, BorrowDuration, UserRetention,
    PlatformKPIs,
)
from api.schemas.book import AdminBook, Book, BookUpdate
from api.schemas.borrow_request import BorrowRequest
from api.schemas.notification import SystemNotification, GroupNotification, UserNotification, NotificationsSent
from api.schemas.review import Review
from api.schemas.user import AdminUser, ProfileUpdate

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(
    admin: UserModel = Depends(get_admin_user),
    db: Session = Depends(get_db),
) -> AdminService:
    return AdminService(db, admin)


@router.get("/stats", response_model=AdminStats)
def get_stats(service: AdminService = Depends(get_admin_service)):
    return service.get_stats()


@router.get("/stats/genres", response_model=list[GenreCount])
def get_genre_distribution(service: AdminService = Depends(get_admin_service)):
    return service.get_genre_distribution()


def get_analytics_service(
    admin: UserModel = Depends(get_admin_user),
    db: Session = Depends(get_db),
) -> AnalyticsService:
    return AnalyticsService(db, admin)


@router.get("/stats/activity", response_model=list[RecentActivity])
def get_recent_activity(
    limit: int = Query(20, ge=1, le=100),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.get_recent_activity(limit)


@router.get("/stats/borrow-activity", response_model=list[BorrowActivityDay])
def get_borrow_activity(analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.get_borrow_activity()


@router.get("/stats/user-growth", response_model=list[UserGrowthDay])
def get_user_growth(analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.get_user_growth()


@router.get("/stats/active-users", response_model=list[ActiveUser])
def get_most_active_users(
    limit: int = Query(10, ge=1, le=100),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.get_most_active_users(limit)


@router.get("/stats/popular-books", response_model=list[PopularBook])
def get_most_borrowed_books(
    limit: int = Query(10, ge=1, le=100),
    analytics: AnalyticsService = Depends(get_analytics_service),
):
    return analytics.get_most_borrowed_books(limit)


@router.get("/stats/borrow-duration", response_model=BorrowDuration)
def get_borrow_duration(analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.get_borrow_duration()


@router.get("/stats/retention", response_model=UserRetention)
def get_user_retention(analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.get_user_retention()


@router.get("/stats/kpis", response_model=PlatformKPIs)
def get_platform_kpis(analytics: AnalyticsService = Depends(get_analytics_service)):
    return analytics.get_platform_kpis()


# Users

@router.get("/users", response_model=list[AdminUser])
def get_all_users(
    search: Optional[str] = Query(None),
    suspended: Optional[bool] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_all_users(search=search, suspended=suspended)


@router.get("/users/{user_id}/activity", response_model=list[ActivityEntry])
def get_user_activity_history(user_id: str, service: AdminService = Depends(get_admin_service)):
    return service.get_user_activity_history(user_id)


@router.put("/users/{user_id}", response_model=AdminUser)
def update_user_profile(user_id: str, data: ProfileUpdate, service: AdminService = Depends(get_admin_service)):
    return service.update_user_profile(user_id, **data.model_dump(exclude_unset=True))


@router.put("/users/{user_id}/admin", response_model=AdminUser)
def update_user_admin_status(
    user_id: str,
    data: AdminStatusUpdate,
    service: AdminService = Depends(get_admin_service),
):
    return service.update_user_admin_status(user_id, data.is_admin)


@router.post("/users/{user_id}/suspend", response_model=AdminUser)
def suspend_user(user_id: str, data: Suspend, service: AdminService = Depends(get_admin_service)):
    return service.suspend_user(user_id, data.reason)


@router.post("/users/{user_id}/unsuspend", response_model=AdminUser)
def unsuspend_user(user_id: str, service: AdminService = Depends(get_admin_service)):
    return service.unsuspend_user(user_id)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, service: AdminService = Depends(get_admin_service)):
    service.delete_user(user_id)


# Books and reviews

@router.get("/books", response_model=list[AdminBook])
def get_all_books(
    flagged: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_all_books(flagged=flagged, search=search)


@router.put("/books/{book_id}", response_model=Book)
def update_book(book_id: str, data: BookUpdate, service: AdminService = Depends(get_admin_service)):
    return service.update_book(book_id, **data.model_dump(mode="json", exclude_unset=True))


@router.post("/books/{book_id}/flag", response_model=AdminBook)
def flag_book(book_id: str, data: Flag, service: AdminService = Depends(get_admin_service)):
    return service.flag_book(book_id, data.reason)


@router.post("/books/{book_id}/unflag", response_model=AdminBook)
def unflag_book(book_id: str, service: AdminService = Depends(get_admin_service)):
    return service.unflag_book(book_id)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(book_id: str, service: AdminService = Depends(get_admin_service)):
    service.delete_book(book_id)


@router.get("/reviews", response_model=list[Review])
def get_all_reviews(book_id: Optional[str] = Query(None), service: AdminService = Depends(get_admin_service)):
    return service.get_all_reviews(book_id=book_id)


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(review_id: str, service: AdminService = Depends(get_admin_service)):
    service.delete_review(review_id)


# Borrow requests

@router.get("/borrow-requests", response_model=list[BorrowRequest])
def get_all_borrow_requests(
    status: Optional[BorrowRequestStatus] = Query(None),
    service: AdminService = Depends(get_admin_service),
):
    return service.get_all_borrow_requests(status=status)


@router.post("/borrow-requests/{request_id}/approve", response_model=BorrowRequest)
def admin_approve_request(request_id: str, data: AdminApprove, service: AdminService = Depends(get_admin_service)):
    return service.approve_request(request_id, data.due_date, data.message)


@router.post("/borrow-requests/{request_id}/deny", response_model=BorrowRequest)
def admin_deny_request(request_id: str, data: AdminDeny, service: AdminService = Depends(get_admin_service)):
    return service.deny_request(request_id, data.reason)


@router.post("/borrow-requests/{request_id}/return", response_model=BorrowRequest)
def admin_mark_as_returned(request_id: str, service: AdminService = Depends(get_admin_service)):
    return service.mark_as_returned(request_id)


@router.delete("/borrow-requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_cancel_request(request_id: str, service: AdminService = Depends(get_admin_service)):
    service.cancel_request(request_id)


# System notifications

@router.post("/notifications/broadcast", response_model=NotificationsSent)
def send_broadcast_notification(data: SystemNotification, service: AdminService = Depends(get_admin_service)):
    return NotificationsSent(sent=service.send_broadcast_notification(data.title, data.message, data.type))


@router.post("/notifications/group", response_model=NotificationsSent)
def send_group_notification(data: GroupNotification, service: AdminService = Depends(get_admin_service)):
    return NotificationsSent(sent=service.send_group_notification(data.group, data.title, data.message, data.type))


@router.post("/notifications/user", response_model=NotificationsSent)
def send_user_notification(data: UserNotification, service: AdminService = Depends(get_admin_service)):
    return NotificationsSent(sent=service.send_user_notification(data.user_id, data.title, data.message, data.type))
