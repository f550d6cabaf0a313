# api/routes/notifications.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.constants import NotificationType
from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.notifications import NotificationService
from api.deps import get_current_user
from api.schemas.message import UnreadCount
from api.schemas.notification import Notification

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[Notification])
def get_my_notifications(
    type: Optional[NotificationType] = Query(None, description="Only notifications of this type"),
    read: Optional[bool] = Query(None, description="Only read or unread notifications"),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService(db).get_notifications(user_id=user.id, type=type, read=read)


@router.get("/unread", response_model=list[Notification])
def get_unread_notifications(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService(db).get_unread_notifications(user.id)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UnreadCount(count=NotificationService(db).get_unread_count(user.id))


@router.post("/read-all", response_model=UnreadCount)
def mark_all_as_read(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark every notification read. Returns how many changed."""
    return UnreadCount(count=NotificationService(db).mark_all_as_read(user))


@router.post("/{notification_id}/read", response_model=Notification)
def mark_notification_as_read(
    notification_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return NotificationService(db).mark_as_read(user, notification_id)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    NotificationService(db).delete_notification(user, notification_id)
