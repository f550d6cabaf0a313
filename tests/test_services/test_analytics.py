# tests/test_services/test_analytics.py

import pytest
from datetime import datetime, UTC, timedelta
from core.constants import BorrowRequestStatus
from core.exceptions import PermissionDeniedError
from core.sa.models import AuthSession, Review
from core.sa.repositories.book import BookRepository
from core.services.analytics import AnalyticsService

@pytest.fixture
def analytics(db_session, admin_user):
    return AnalyticsService(db_session, admin_user)

@pytest.fixture
def second_book(db_session, owner):
    return BookRepository(db_session).create_book(owner.id, title="Dune", author="Frank Herbert")

def _returned(db_session, make_request, book, user, approved_days_ago, loan_length):
    borrow_request = make_request(book, user, BorrowRequestStatus.RETURNED)
    borrow_request.approved_at = datetime.now(UTC) - timedelta(days=approved_days_ago)
    borrow_request.returned_at = borrow_request.approved_at + loan_length
    db_session.commit()
    return borrow_request

def test_requires_admin(db_session, owner):
    with pytest.raises(PermissionDeniedError):
        AnalyticsService(db_session, owner)

def test_recent_activity(db_session, analytics, make_request, sample_book, borrower):
    make_request(sample_book, borrower)
    _returned(db_session, make_request, sample_book, borrower, 3, timedelta(days=2))

    activity = analytics.get_recent_activity()
    types = {item["type"] for item in activity}
    assert {"user_signup", "book_added", "borrow_request", "book_returned"} <= types
    timestamps = [item["timestamp"] for item in activity]
    assert timestamps == sorted(timestamps, reverse=True)
    signup = next(item for item in activity if item["id"] == f"user-{borrower.id}")
    assert signup["description"] == "Ben Borrower joined BookShare"
    assert len(analytics.get_recent_activity(limit=2)) == 2

def test_borrow_activity(db_session, analytics, make_request, sample_book, borrower, stranger):
    make_request(sample_book, borrower, BorrowRequestStatus.APPROVED)
    make_request(sample_book, stranger)
    old = make_request(sample_book, stranger, BorrowRequestStatus.DENIED)
    old.requested_at = datetime.now(UTC) - timedelta(days=45)
    db_session.commit()

    today = datetime.now(UTC).date().isoformat()
    assert analytics.get_borrow_activity() == [
        {"date": today, "requests": 2, "approvals": 1, "returns": 0},
    ]

def test_user_growth(db_session, analytics, owner, borrower):
    owner.created_at = datetime.now(UTC) - timedelta(days=60)
    db_session.commit()

    growth = analytics.get_user_growth()
    assert len(growth) == 30
    assert growth[-1]["date"] == datetime.now(UTC).date().isoformat()
    assert growth[0]["total_users"] == 1
    # borrower and the admin signed up today
    assert growth[-1]["new_users"] == 2
    assert growth[-1]["total_users"] == 3

def test_most_active_users(analytics, make_request, sample_book, second_book, owner, borrower, stranger):
    make_request(sample_book, borrower)
    make_request(second_book, borrower, BorrowRequestStatus.RETURNED)
    make_request(second_book, stranger, BorrowRequestStatus.DENIED)

    ranked = analytics.get_most_active_users(limit=3)
    assert [(u["name"], u["total_borrows"], u["total_lends"]) for u in ranked] == [
        ("Olivia Owner", 0, 3),
        ("Ben Borrower", 2, 0),
        ("Sam Stranger", 1, 0),
    ]
    assert ranked[0]["active_requests"] == 1
    assert ranked[1]["active_requests"] == 1
    assert ranked[2]["active_requests"] == 0

def test_most_borrowed_books(db_session, analytics, make_request, sample_book, second_book, borrower, stranger):
    make_request(second_book, borrower, BorrowRequestStatus.RETURNED)
    make_request(second_book, stranger)
    make_request(sample_book, stranger, BorrowRequestStatus.DENIED)
    db_session.add_all([
        Review(book_id=second_book.id, user_id=borrower.id, rating=5),
        Review(book_id=second_book.id, user_id=stranger.id, rating=4),
    ])
    db_session.commit()

    popular = analytics.get_most_borrowed_books()
    assert [(b["title"], b["total_borrows"]) for b in popular] == [("Dune", 2), ("Project Hail Mary", 1)]
    assert popular[0]["average_rating"] == 4.5
    assert popular[0]["owner_name"] == "Olivia Owner"
    assert popular[1]["average_rating"] is None

def test_borrow_duration(db_session, analytics, make_request, sample_book, borrower):
    assert analytics.get_borrow_duration() == {
        "average_days": 0, "median_days": 0, "min_days": 0, "max_days": 0, "total_completed_borrows": 0,
    }
    _returned(db_session, make_request, sample_book, borrower, 20, timedelta(days=3))
    _returned(db_session, make_request, sample_book, borrower, 20, timedelta(days=5, hours=1))
    _returned(db_session, make_request, sample_book, borrower, 20, timedelta(days=10))
    make_request(sample_book, borrower, BorrowRequestStatus.BORROWED)

    assert analytics.get_borrow_duration() == {
        "average_days": 6.3, "median_days": 6, "min_days": 3, "max_days": 10, "total_completed_borrows": 3,
    }

def test_user_retention(db_session, analytics, make_request, sample_book, borrower, stranger):
    make_request(sample_book, borrower)
    ten_days_ago = datetime.now(UTC) - timedelta(days=10)
    db_session.add(AuthSession(token="old-session", user_id=stranger.id, created_at=ten_days_ago,
                               expires_at=ten_days_ago + timedelta(days=30)))
    db_session.commit()

    retention = analytics.get_user_retention()
    assert retention["total_users"] == 4
    # owner listed a book and borrower made a request this week; stranger last signed in ten days ago
    assert retention["active_users_last_7_days"] == 2
    assert retention["active_users_last_30_days"] == 3
    assert retention["retention_rate_7_days"] == 50.0
    assert retention["retention_rate_30_days"] == 75.0
    assert retention["new_users_last_7_days"] == 4

def test_platform_kpis(db_session, analytics, make_request, sample_book, second_book, borrower, stranger):
    make_request(second_book, borrower, BorrowRequestStatus.BORROWED)
    make_request(sample_book, borrower, BorrowRequestStatus.RETURNED)
    old = make_request(sample_book, stranger)
    old.requested_at = datetime.now(UTC) - timedelta(days=40)
    db_session.commit()

    kpis = analytics.get_platform_kpis()
    assert kpis["total_users"] == 4
    assert kpis["total_books"] == 2
    assert kpis["total_borrows"] == 3
    assert kpis["active_borrows"] == 1
    assert kpis["completed_borrows"] == 1
    assert kpis["average_books_per_user"] == 0.5
    assert kpis["average_borrows_per_book"] == 1.5
    assert kpis["borrow_growth_rate_30_days"] == 200.0
    assert kpis["user_growth_rate_30_days"] == 0.0
