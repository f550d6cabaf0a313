# api/routes/messages.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.messaging import MessagingService
from api.deps import get_current_user
from api.schemas.message import Message, MessageCreate, UnreadCount

router = APIRouter(tags=["messages"])


@router.get("/borrow-requests/{request_id}/messages", response_model=list[Message])
def get_messages(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Conversation for a borrow request, oldest first."""
    return MessagingService(db).get_messages_by_request(user, request_id)


@router.post(
    "/borrow-requests/{request_id}/messages",
    response_model=Message,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    request_id: str,
    data: MessageCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return MessagingService(db).send_message(user, request_id, data.content)


@router.post("/borrow-requests/{request_id}/messages/read", response_model=UnreadCount)
def mark_messages_as_read(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Mark the other participant's messages as read. Returns how many changed."""
    return UnreadCount(count=MessagingService(db).mark_messages_as_read(user, request_id))


@router.get("/borrow-requests/{request_id}/messages/unread-count", response_model=UnreadCount)
def get_unread_message_count(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UnreadCount(count=MessagingService(db).get_unread_message_count(user, request_id))


@router.get("/messages/unread-count", response_model=UnreadCount)
def get_total_unread_count(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return UnreadCount(count=MessagingService(db).get_total_unread_count(user))
