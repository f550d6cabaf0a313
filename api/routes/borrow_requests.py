# api/routes/borrow_requests.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.constants import BorrowRequestStatus
from core.exceptions import PermissionDeniedError
from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.lending import LendingService, HandoverDetails, ReturnDetails
from api.deps import get_current_user
from api.schemas.borrow_request import (
    BorrowRequest, BorrowRequestCreate, Approve, Deny, TrackingUpdate, InitiateReturn
)

router = APIRouter(prefix="/borrow-requests", tags=["borrow-requests"])


@router.get("/mine", response_model=list[BorrowRequest])
def get_my_borrow_requests(
    status: Optional[BorrowRequestStatus] = Query(None, description="Only requests in this status"),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Requests the current user has made."""
    return LendingService(db).get_my_borrow_requests(user, status)


@router.get("/incoming", response_model=list[BorrowRequest])
def get_incoming_borrow_requests(
    status: Optional[BorrowRequestStatus] = Query(None, description="Only requests in this status"),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Requests for books the current user owns."""
    return LendingService(db).get_incoming_borrow_requests(user, status)


@router.get("", response_model=list[BorrowRequest])
def get_borrow_requests(
    book_id: Optional[str] = Query(None),
    status: Optional[BorrowRequestStatus] = Query(None),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Requests the current user is part of, as borrower or owner."""
    service = LendingService(db)
    requests = service.repo.list_for_participant(user.id)
    if book_id:
        requests = [r for r in requests if r.book_id == book_id]
    if status:
        requests = [r for r in requests if r.status == status.value]
    return requests


@router.post("", response_model=BorrowRequest, status_code=status.HTTP_201_CREATED)
def create_borrow_request(
    data: BorrowRequestCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LendingService(db).create_borrow_request(user, data.book_id, data.request_message)


@router.get("/{request_id}", response_model=BorrowRequest)
def get_borrow_request(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    borrow_request = LendingService(db).get_borrow_request(request_id)
    if not borrow_request.is_participant(user.id) and not user.is_admin:
        raise PermissionDeniedError("You are not part of this borrow request")
    return borrow_request


@router.post("/{request_id}/approve", response_model=BorrowRequest)
def approve_borrow_request(
    request_id: str,
    data: Approve,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    handover = HandoverDetails(
        method=data.handover_method,
        address=data.handover_address,
        scheduled_at=data.handover_datetime,
        instructions=data.handover_instructions,
    )
    return LendingService(db).approve_borrow_request(
        user, request_id, data.due_date, handover, data.response_message
    )


@router.post("/{request_id}/deny", response_model=BorrowRequest)
def deny_borrow_request(
    request_id: str,
    data: Deny,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LendingService(db).deny_borrow_request(user, request_id, data.response_message)


@router.put("/{request_id}/tracking", response_model=BorrowRequest)
def update_handover_tracking(
    request_id: str,
    data: TrackingUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LendingService(db).update_handover_tracking(user, request_id, data.tracking)


@router.post("/{request_id}/handover", response_model=BorrowRequest)
def mark_handover_complete(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LendingService(db).mark_handover_complete(user, request_id)


@router.post("/{request_id}/return", response_model=BorrowRequest)
def initiate_return(
    request_id: str,
    data: InitiateReturn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    details = ReturnDetails(
        method=data.return_method,
        address=data.return_address,
        scheduled_at=data.return_datetime,
        instructions=data.return_instructions,
        tracking=data.return_tracking,
    )
    return LendingService(db).initiate_return(user, request_id, details)


@router.post("/{request_id}/confirm-return", response_model=BorrowRequest)
def confirm_return(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return LendingService(db).confirm_return(user, request_id)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_borrow_request(
    request_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    LendingService(db).delete_borrow_request(user, request_id)
