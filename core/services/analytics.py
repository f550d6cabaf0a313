# core/services/analytics.py
"""Admin dashboard analytics: activity feed, charts, leaderboards and KPIs.

Counts and rankings are aggregated in the database. Day-by-day series are
bucketed in Python over a bounded window so the same code runs on SQLite
and PostgreSQL.
"""
import logging
import math
import statistics
from datetime import datetime, timedelta, UTC
from typing import Dict, List, Optional

from sqlalchemy import func, select, union, union_all
from sqlalchemy.orm import Session

from core.constants import ACTIVE_REQUEST_STATUSES, BORROWED_STATUSES, BorrowRequestStatus
from core.exceptions import PermissionDeniedError
from core.sa.models import AuthSession, Book, BorrowRequest, Message, Review, User

logger = logging.getLogger(__name__)

CHART_DAYS = 30


def _round1(value: float) -> float:
    return round(value, 1)


def _growth_rate(total: int, before: int) -> float:
    """Percentage growth from `before` to `total`, 0 when there was nothing before"""
    if not before:
        return 0.0
    return _round1((total - before) / before * 100)


def _day(value: datetime) -> str:
    return value.astimezone(UTC).date().isoformat()


class AnalyticsService:
    """Read-only platform metrics. Every method expects an admin caller."""

    def __init__(self, session: Session, admin: User, now: Optional[datetime] = None):
        if not admin or not admin.is_admin:
            raise PermissionDeniedError("Admin access required")
        self.session = session
        self.now = now or datetime.now(UTC)

    def _count(self, column, *criteria) -> int:
        return self.session.query(func.count(column)).filter(*criteria).scalar() or 0

    # Activity feed

    def get_recent_activity(self, limit: int = 20) -> List[dict]:
        """Sign ups, new books and request events merged newest first.

        Each source contributes its ten most recent rows before merging.
        """
        activities = []

        for user in self.session.query(User).order_by(User.created_at.desc()).limit(10):
            activities.append({
                "id": f"user-{user.id}",
                "type": "user_signup",
                "description": f"{user.name} joined BookShare",
                "timestamp": user.created_at,
                "user_id": user.id,
                "user_name": user.name,
            })

        for book in self.session.query(Book).order_by(Book.created_at.desc()).limit(10):
            owner_name = book.owner.name if book.owner else "Someone"
            activities.append({
                "id": f"book-{book.id}",
                "type": "book_added",
                "description": f"{owner_name} added \"{book.title}\"",
                "timestamp": book.created_at,
                "user_id": book.owner_id,
                "user_name": owner_name,
                "book_id": book.id,
                "book_title": book.title,
            })

        requests = self.session.query(BorrowRequest).order_by(BorrowRequest.requested_at.desc()).limit(10)
        for request in requests:
            title = request.book.title
            borrower_name = request.borrower.name
            book_fields = {"book_id": request.book_id, "book_title": title}
            activities.append({
                "id": f"request-{request.id}",
                "type": "borrow_request",
                "description": f"{borrower_name} requested \"{title}\"",
                "timestamp": request.requested_at,
                "user_id": request.borrower_id,
                "user_name": borrower_name,
                **book_fields,
            })
            if request.approved_at and request.status in {s.value for s in BORROWED_STATUSES}:
                activities.append({
                    "id": f"approved-{request.id}",
                    "type": "request_approved",
                    "description": f"Request for \"{title}\" was approved",
                    "timestamp": request.approved_at,
                    **book_fields,
                })
            elif request.status == BorrowRequestStatus.DENIED.value:
                activities.append({
                    "id": f"denied-{request.id}",
                    "type": "request_denied",
                    "description": f"Request for \"{title}\" was denied",
                    "timestamp": request.updated_at,
                    **book_fields,
                })
            elif request.status == BorrowRequestStatus.RETURNED.value and request.returned_at:
                activities.append({
                    "id": f"returned-{request.id}",
                    "type": "book_returned",
                    "description": f"\"{title}\" was returned",
                    "timestamp": request.returned_at,
                    **book_fields,
                })

        activities.sort(key=lambda a: a["timestamp"], reverse=True)
        return activities[:limit]

    # Charts

    def get_borrow_activity(self) -> List[dict]:
        """Requests, approvals and returns per day for requests made in the last 30 days"""
        since = self.now - timedelta(days=CHART_DAYS)
        rows = (
            self.session.query(BorrowRequest.requested_at, BorrowRequest.approved_at, BorrowRequest.returned_at)
            .filter(BorrowRequest.requested_at >= since)
            .all()
        )
        by_day: Dict[str, Dict[str, int]] = {}

        def bump(when: Optional[datetime], key: str) -> None:
            if when is None:
                return
            counts = by_day.setdefault(_day(when), {"requests": 0, "approvals": 0, "returns": 0})
            counts[key] += 1

        for requested_at, approved_at, returned_at in rows:
            bump(requested_at, "requests")
            bump(approved_at, "approvals")
            bump(returned_at, "returns")

        return [{"date": day, **counts} for day, counts in sorted(by_day.items())]

    def get_user_growth(self) -> List[dict]:
        """One entry per day for the last 30 days with new and cumulative users"""
        today = self.now.astimezone(UTC).date()
        first_day = today - timedelta(days=CHART_DAYS - 1)
        window_start = datetime(first_day.year, first_day.month, first_day.day, tzinfo=UTC)

        total = self._count(User.id, User.created_at < window_start)
        new_by_day: Dict[str, int] = {}
        for (created_at,) in self.session.query(User.created_at).filter(User.created_at >= window_start):
            day = _day(created_at)
            new_by_day[day] = new_by_day.get(day, 0) + 1

        growth = []
        for offset in range(CHART_DAYS):
            day = (first_day + timedelta(days=offset)).isoformat()
            new_users = new_by_day.get(day, 0)
            total += new_users
            growth.append({"date": day, "total_users": total, "new_users": new_users})
        return growth

    # Leaderboards

    def get_most_active_users(self, limit: int = 10) -> List[dict]:
        """Users ranked by requests made plus requests received"""
        borrows = (
            select(BorrowRequest.borrower_id.label("user_id"), func.count().label("total"))
            .group_by(BorrowRequest.borrower_id)
            .subquery()
        )
        lends = (
            select(BorrowRequest.owner_id.label("user_id"), func.count().label("total"))
            .group_by(BorrowRequest.owner_id)
            .subquery()
        )
        active_statuses = [s.value for s in ACTIVE_REQUEST_STATUSES]
        involvement = union_all(
            select(BorrowRequest.borrower_id.label("user_id")).where(BorrowRequest.status.in_(active_statuses)),
            select(BorrowRequest.owner_id.label("user_id")).where(BorrowRequest.status.in_(active_statuses)),
        ).subquery()
        active = (
            select(involvement.c.user_id, func.count().label("total"))
            .group_by(involvement.c.user_id)
            .subquery()
        )

        total_borrows = func.coalesce(borrows.c.total, 0)
        total_lends = func.coalesce(lends.c.total, 0)
        rows = (
            self.session.query(User, total_borrows, total_lends, func.coalesce(active.c.total, 0))
            .outerjoin(borrows, borrows.c.user_id == User.id)
            .outerjoin(lends, lends.c.user_id == User.id)
            .outerjoin(active, active.c.user_id == User.id)
            .order_by((total_borrows + total_lends).desc(), User.name)
            .limit(limit)
            .all()
        )
        return [
            {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "avatar_url": user.avatar_url,
                "total_borrows": borrowed,
                "total_lends": lent,
                "active_requests": in_flight,
            }
            for user, borrowed, lent, in_flight in rows
        ]

    def get_most_borrowed_books(self, limit: int = 10) -> List[dict]:
        """Books ranked by how many borrow requests they have received"""
        borrow_counts = (
            select(BorrowRequest.book_id, func.count().label("total"))
            .group_by(BorrowRequest.book_id)
            .subquery()
        )
        ratings = (
            select(Review.book_id, func.avg(Review.rating).label("average"))
            .group_by(Review.book_id)
            .subquery()
        )
        total_borrows = func.coalesce(borrow_counts.c.total, 0)
        rows = (
            self.session.query(Book, User.name, total_borrows, ratings.c.average)
            .join(User, Book.owner_id == User.id)
            .outerjoin(borrow_counts, borrow_counts.c.book_id == Book.id)
            .outerjoin(ratings, ratings.c.book_id == Book.id)
            .order_by(total_borrows.desc(), Book.title)
            .limit(limit)
            .all()
        )
        return [
            {
                "id": book.id,
                "title": book.title,
                "author": book.author,
                "cover_image_url": book.cover_image_url,
                "genre": book.genre,
                "owner_id": book.owner_id,
                "owner_name": owner_name,
                "total_borrows": borrowed,
                "average_rating": round(float(average), 2) if average is not None else None,
            }
            for book, owner_name, borrowed, average in rows
        ]

    # Metrics

    def get_borrow_duration(self) -> dict:
        """Days from approval to return over completed loans, partial days rounded up"""
        rows = (
            self.session.query(BorrowRequest.approved_at, BorrowRequest.returned_at)
            .filter(
                BorrowRequest.status == BorrowRequestStatus.RETURNED.value,
                BorrowRequest.approved_at.isnot(None),
                BorrowRequest.returned_at.isnot(None),
            )
            .all()
        )
        if not rows:
            return {"average_days": 0, "median_days": 0, "min_days": 0, "max_days": 0,
                    "total_completed_borrows": 0}

        durations = [math.ceil((returned - approved).total_seconds() / 86400) for approved, returned in rows]
        return {
            "average_days": _round1(statistics.mean(durations)),
            "median_days": _round1(statistics.median(durations)),
            "min_days": min(durations),
            "max_days": max(durations),
            "total_completed_borrows": len(durations),
        }

    def _active_user_count(self, since: datetime) -> int:
        """Distinct users who signed in, listed a book, requested, reviewed or chatted since a time"""
        active = union(
            select(AuthSession.user_id).where(AuthSession.created_at >= since),
            select(Book.owner_id).where(Book.created_at >= since),
            select(BorrowRequest.borrower_id).where(BorrowRequest.requested_at >= since),
            select(Review.user_id).where(Review.created_at >= since),
            select(Message.sender_id).where(Message.created_at >= since),
        ).subquery()
        return self.session.execute(select(func.count()).select_from(active)).scalar_one()

    def get_user_retention(self) -> dict:
        week_ago = self.now - timedelta(days=7)
        month_ago = self.now - timedelta(days=30)
        total_users = self._count(User.id)
        active_7 = self._active_user_count(week_ago)
        active_30 = self._active_user_count(month_ago)
        return {
            "total_users": total_users,
            "active_users_last_7_days": active_7,
            "active_users_last_30_days": active_30,
            "retention_rate_7_days": _round1(active_7 / total_users * 100) if total_users else 0.0,
            "retention_rate_30_days": _round1(active_30 / total_users * 100) if total_users else 0.0,
            "new_users_last_7_days": self._count(User.id, User.created_at >= week_ago),
            "new_users_last_30_days": self._count(User.id, User.created_at >= month_ago),
        }

    def get_platform_kpis(self) -> dict:
        month_ago = self.now - timedelta(days=30)
        total_users = self._count(User.id)
        total_books = self._count(Book.id)
        total_borrows = self._count(BorrowRequest.id)
        lent_out = [s.value for s in BORROWED_STATUSES]

        kpis = {
            "total_users": total_users,
            "total_books": total_books,
            "total_borrows": total_borrows,
            "active_borrows": self._count(BorrowRequest.id, BorrowRequest.status.in_(lent_out)),
            "completed_borrows": self._count(
                BorrowRequest.id, BorrowRequest.status == BorrowRequestStatus.RETURNED.value
            ),
            "average_books_per_user": _round1(total_books / total_users) if total_users else 0.0,
            "average_borrows_per_book": _round1(total_borrows / total_books) if total_books else 0.0,
            "user_growth_rate_30_days": _growth_rate(
                total_users, self._count(User.id, User.created_at < month_ago)
            ),
            "book_growth_rate_30_days": _growth_rate(
                total_books, self._count(Book.id, Book.created_at < month_ago)
            ),
            "borrow_growth_rate_30_days": _growth_rate(
                total_borrows, self._count(BorrowRequest.id, BorrowRequest.requested_at < month_ago)
            ),
        }
        logger.debug("Platform KPIs: %s", kpis)
        return kpis
