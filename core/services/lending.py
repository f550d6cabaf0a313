# core/services/lending.py
"""Borrow request lifecycle.

    pending -> approved -> borrowed -> return_initiated -> returned
    pending -> denied

Every status change is checked against BORROW_REQUEST_TRANSITIONS. A
change that also flips the book's availability writes both rows in the
same commit. Notifications and community activity are written after that
commit; if they fail the error is logged and the status change stands.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import (
    ActivityType, BorrowRequestStatus, HandoverMethod, ReturnMethod, can_transition
)
from core.exceptions import InvalidTransitionError, NotFoundError, PermissionDeniedError, ConflictError
from core.sa.models import BorrowRequest, Book, User
from core.sa.repositories.borrow_request import BorrowRequestRepository
from core.services.communities import CommunityService
from core.services.notifications import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class HandoverDetails:
    method: HandoverMethod
    address: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    instructions: Optional[str] = None


@dataclass
class ReturnDetails:
    method: ReturnMethod
    address: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    instructions: Optional[str] = None
    tracking: Optional[str] = None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


class LendingService:
    def __init__(self, session: Session):
        self.session = session
        self.repo = BorrowRequestRepository(session)
        self.notifications = NotificationService(session)
        self.communities = CommunityService(session)

    # Queries

    def get_borrow_request(self, request_id: str) -> BorrowRequest:
        borrow_request = self.repo.get_by_id(request_id)
        if not borrow_request:
            raise NotFoundError("Borrow request", request_id)
        return borrow_request

    def get_borrow_requests(
        self,
        borrower_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        book_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[BorrowRequest]:
        return self.repo.list_requests(borrower_id=borrower_id, owner_id=owner_id, book_id=book_id, status=status)

    def get_my_borrow_requests(self, user: User, status: Optional[str] = None) -> List[BorrowRequest]:
        """Requests the user has made"""
        return self.repo.list_requests(borrower_id=user.id, status=status)

    def get_incoming_borrow_requests(self, user: User, status: Optional[str] = None) -> List[BorrowRequest]:
        """Requests for books the user owns"""
        return self.repo.list_requests(owner_id=user.id, status=status)

    # Transition plumbing

    def _transition(self, borrow_request: BorrowRequest, target: BorrowRequestStatus) -> None:
        if not can_transition(borrow_request.status, target):
            raise InvalidTransitionError(borrow_request.status, target.value)
        logger.info(
            "Borrow request %s: %s -> %s", borrow_request.id, borrow_request.status, target.value
        )
        borrow_request.status = target.value

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    @staticmethod
    def _require_owner(borrow_request: BorrowRequest, user: User) -> None:
        if borrow_request.owner_id != user.id:
            raise PermissionDeniedError("Only the book owner can do this")

    @staticmethod
    def _require_borrower(borrow_request: BorrowRequest, user: User) -> None:
        if borrow_request.borrower_id != user.id:
            raise PermissionDeniedError("Only the borrower can do this")

    # Workflow

    def create_borrow_request(self, borrower: User, book_id: str, request_message: Optional[str] = None) -> BorrowRequest:
        """Ask to borrow a book.

        Args:
            borrower: The requesting user
            book_id: The book to borrow
            request_message: Optional note to the owner

        Returns:
            The new pending BorrowRequest

        Raises:
            NotFoundError: If the book does not exist
            ValueError: If the borrower owns the book or it is not available
            ConflictError: If the borrower already has an open request for the book
        """
        book = self.session.get(Book, book_id)
        if not book:
            raise NotFoundError("Book", book_id)
        if book.owner_id == borrower.id:
            raise ValueError("You cannot borrow your own book")

        existing = self.repo.get_active_request(borrower.id, book_id)
        if existing:
            if existing.status == BorrowRequestStatus.PENDING.value:
                raise ConflictError("You already have a pending request for this book")
            if existing.status == BorrowRequestStatus.APPROVED.value:
                raise ConflictError("You already have an approved request for this book")
            raise ConflictError("You are already borrowing this book")

        if not book.borrowable:
            raise ValueError("This book is not available to borrow")

        borrow_request = BorrowRequest(
            book_id=book.id,
            borrower_id=borrower.id,
            owner_id=book.owner_id,
            status=BorrowRequestStatus.PENDING.value,
            request_message=_blank_to_none(request_message),
            requested_at=datetime.now(UTC),
        )
        self.repo.add(borrow_request)
        self._commit()
        logger.info("User %s requested book %s (%s)", borrower.id, book.id, borrow_request.id)

        self.notifications.notify_borrow_request(borrow_request, borrower.name)
        self.communities.record_book_activity(
            book.id, ActivityType.BORROW_CREATED, borrower.id,
            {"book_id": book.id, "book_title": book.title, "request_id": borrow_request.id},
        )
        return self.get_borrow_request(borrow_request.id)

    def approve_borrow_request(
        self,
        owner: Optional[User],
        request_id: str,
        due_date: datetime,
        handover: Optional[HandoverDetails] = None,
        response_message: Optional[str] = None,
    ) -> BorrowRequest:
        """Approve a pending request and take the book off the shelf.

        Args:
            owner: The book owner, or None for an admin override
            request_id: The request to approve
            due_date: When the book should come back
            handover: How the book will reach the borrower
            response_message: Optional note to the borrower
        """
        borrow_request = self.get_borrow_request(request_id)
        if owner is not None:
            self._require_owner(borrow_request, owner)
        due_date = _as_utc(due_date)
        if due_date is None:
            raise ValueError("A due date is required to approve a request")
        # Another request for the same book is already approved and not yet returned
        if borrow_request.status == BorrowRequestStatus.PENDING.value and not borrow_request.book.borrowable:
            raise ConflictError("This book is already lent out")

        now = datetime.now(UTC)
        self._transition(borrow_request, BorrowRequestStatus.APPROVED)
        borrow_request.approved_at = now
        borrow_request.due_date = due_date
        borrow_request.response_message = _blank_to_none(response_message)
        if handover is not None:
            borrow_request.handover_method = HandoverMethod(handover.method).value
            borrow_request.handover_address = _blank_to_none(handover.address)
            borrow_request.handover_datetime = _as_utc(handover.scheduled_at)
            borrow_request.handover_instructions = _blank_to_none(handover.instructions)
        borrow_request.book.borrowable = False
        self._commit()

        self.notifications.notify_request_approved(borrow_request, borrow_request.book.title)
        return borrow_request

    def deny_borrow_request(self, owner: Optional[User], request_id: str,
                            response_message: Optional[str] = None) -> BorrowRequest:
        borrow_request = self.get_borrow_request(request_id)
        if owner is not None:
            self._require_owner(borrow_request, owner)

        self._transition(borrow_request, BorrowRequestStatus.DENIED)
        borrow_request.response_message = _blank_to_none(response_message)
        self._commit()

        self.notifications.notify_request_denied(borrow_request, borrow_request.book.title)
        return borrow_request

    def update_handover_tracking(self, owner: User, request_id: str, tracking: str) -> BorrowRequest:
        """Attach a shipping tracking number while the book is on its way."""
        borrow_request = self.get_borrow_request(request_id)
        self._require_owner(borrow_request, owner)
        if borrow_request.status != BorrowRequestStatus.APPROVED.value:
            raise ValueError("Tracking can only be added to an approved request")
        borrow_request.handover_tracking = _blank_to_none(tracking)
        self._commit()
        return borrow_request

    def mark_handover_complete(self, actor: User, request_id: str) -> BorrowRequest:
        """Confirm the borrower has the book. Either participant can confirm."""
        borrow_request = self.get_borrow_request(request_id)
        if not borrow_request.is_participant(actor.id):
            raise PermissionDeniedError("Only the owner or borrower can confirm the handover")

        self._transition(borrow_request, BorrowRequestStatus.BORROWED)
        borrow_request.handover_completed_at = datetime.now(UTC)
        self._commit()
        return borrow_request

    def initiate_return(self, borrower: User, request_id: str, details: ReturnDetails) -> BorrowRequest:
        borrow_request = self.get_borrow_request(request_id)
        self._require_borrower(borrow_request, borrower)

        self._transition(borrow_request, BorrowRequestStatus.RETURN_INITIATED)
        borrow_request.return_method = ReturnMethod(details.method).value
        borrow_request.return_address = _blank_to_none(details.address)
        borrow_request.return_datetime = _as_utc(details.scheduled_at)
        borrow_request.return_instructions = _blank_to_none(details.instructions)
        borrow_request.return_tracking = _blank_to_none(details.tracking)
        borrow_request.return_initiated_at = datetime.now(UTC)
        self._commit()
        return borrow_request

    def confirm_return(self, owner: User, request_id: str) -> BorrowRequest:
        """Owner confirms the book is back; it becomes available again."""
        borrow_request = self.get_borrow_request(request_id)
        self._require_owner(borrow_request, owner)
        self._transition(borrow_request, BorrowRequestStatus.RETURNED)
        return self._complete_return(borrow_request)

    def force_return(self, request_id: str) -> BorrowRequest:
        """Admin override: close out a loan from any in-progress status."""
        borrow_request = self.get_borrow_request(request_id)
        if borrow_request.status not in (
            BorrowRequestStatus.APPROVED.value,
            BorrowRequestStatus.BORROWED.value,
            BorrowRequestStatus.RETURN_INITIATED.value,
        ):
            raise InvalidTransitionError(borrow_request.status, BorrowRequestStatus.RETURNED.value)
        logger.info("Borrow request %s: %s -> returned (admin)", borrow_request.id, borrow_request.status)
        borrow_request.status = BorrowRequestStatus.RETURNED.value
        return self._complete_return(borrow_request)

    def _complete_return(self, borrow_request: BorrowRequest) -> BorrowRequest:
        now = datetime.now(UTC)
        borrow_request.returned_at = now
        borrow_request.book.borrowable = True
        self._commit()

        book = borrow_request.book
        self.notifications.notify_book_returned(borrow_request, book.title)
        duration_days = None
        if borrow_request.approved_at:
            duration_days = math.ceil((now - borrow_request.approved_at).total_seconds() / 86400)
        self.communities.record_book_activity(
            book.id, ActivityType.BORROW_RETURNED, borrow_request.borrower_id,
            {"book_id": book.id, "book_title": book.title, "duration_days": duration_days},
        )
        return borrow_request

    def delete_borrow_request(self, actor: Optional[User], request_id: str) -> None:
        """Withdraw a request.

        The borrower may withdraw while it is still pending. An admin
        (actor None) may cancel at any stage; if the book was out on loan it
        becomes available again.
        """
        borrow_request = self.get_borrow_request(request_id)
        if actor is not None:
            self._require_borrower(borrow_request, actor)
            if borrow_request.status != BorrowRequestStatus.PENDING.value:
                raise ValueError("Only pending requests can be withdrawn")
        elif borrow_request.status in (
            BorrowRequestStatus.APPROVED.value,
            BorrowRequestStatus.BORROWED.value,
            BorrowRequestStatus.RETURN_INITIATED.value,
        ):
            borrow_request.book.borrowable = True
        self.repo.delete(borrow_request)
        logger.info("Borrow request %s deleted", request_id)
