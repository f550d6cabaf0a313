from typing import Dict, List, Optional
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from core.constants import ACTIVE_REQUEST_STATUSES, BorrowRequestStatus
from core.sa.models import BorrowRequest


class BorrowRequestRepository:
    """Repository for reading and writing BorrowRequest rows.

    Status changes and their side effects live in core.services.lending;
    this class only loads and stores records.
    """

    def __init__(self, session: Session):
        self.session = session

    def _with_details(self):
        return self.session.query(BorrowRequest).options(
            joinedload(BorrowRequest.book),
            joinedload(BorrowRequest.borrower),
            joinedload(BorrowRequest.owner),
        )

    def get_by_id(self, request_id: str) -> Optional[BorrowRequest]:
        return self._with_details().filter(BorrowRequest.id == request_id).first()

    def list_requests(
        self,
        borrower_id: Optional[str] = None,
        owner_id: Optional[str] = None,
        book_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[BorrowRequest]:
        """List borrow requests with optional filters, newest first.

        Args:
            borrower_id: Only requests made by this user
            owner_id: Only requests for books owned by this user
            book_id: Only requests for this book
            status: Only requests in this status

        Returns:
            BorrowRequest objects with book, borrower and owner loaded
        """
        q = self._with_details()
        if borrower_id:
            q = q.filter(BorrowRequest.borrower_id == borrower_id)
        if owner_id:
            q = q.filter(BorrowRequest.owner_id == owner_id)
        if book_id:
            q = q.filter(BorrowRequest.book_id == book_id)
        if status:
            q = q.filter(BorrowRequest.status == BorrowRequestStatus(status).value)
        return q.order_by(BorrowRequest.created_at.desc()).all()

    def list_for_participant(self, user_id: str) -> List[BorrowRequest]:
        """Requests where the user is borrower or owner, newest first."""
        return (
            self._with_details()
            .filter((BorrowRequest.borrower_id == user_id) | (BorrowRequest.owner_id == user_id))
            .order_by(BorrowRequest.created_at.desc())
            .all()
        )

    def get_active_request(self, borrower_id: str, book_id: str) -> Optional[BorrowRequest]:
        """Find the borrower's open request for a book, if any."""
        return (
            self.session.query(BorrowRequest)
            .filter(
                BorrowRequest.borrower_id == borrower_id,
                BorrowRequest.book_id == book_id,
                BorrowRequest.status.in_([s.value for s in ACTIVE_REQUEST_STATUSES])
            )
            .first()
        )

    def add(self, borrow_request: BorrowRequest) -> BorrowRequest:
        self.session.add(borrow_request)
        self.session.flush()
        return borrow_request

    def delete(self, borrow_request: BorrowRequest) -> None:
        self.session.delete(borrow_request)
        self.session.commit()

    def list_due_between(self, statuses, start: datetime, end: datetime) -> List[BorrowRequest]:
        """Requests in the given statuses whose due date falls in [start, end)."""
        return (
            self._with_details()
            .filter(
                BorrowRequest.status.in_([BorrowRequestStatus(s).value for s in statuses]),
                BorrowRequest.due_date.is_not(None),
                BorrowRequest.due_date >= start,
                BorrowRequest.due_date < end,
            )
            .all()
        )

    def list_overdue(self, statuses, now: datetime) -> List[BorrowRequest]:
        return (
            self._with_details()
            .filter(
                BorrowRequest.status.in_([BorrowRequestStatus(s).value for s in statuses]),
                BorrowRequest.due_date.is_not(None),
                BorrowRequest.due_date < now,
            )
            .all()
        )

    def count_by_status(self) -> Dict[str, int]:
        rows = (
            self.session.query(BorrowRequest.status, func.count(BorrowRequest.id))
            .group_by(BorrowRequest.status)
            .all()
        )
        counts = {status.value: 0 for status in BorrowRequestStatus}
        counts.update({status: count for status, count in rows})
        return counts

