# tests/test_services/test_admin.py

import pytest
from unittest.mock import patch
from datetime import datetime, UTC, timedelta
from core.constants import BorrowRequestStatus
from core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from core.sa.models import Book, BorrowRequest, Notification, Review
from core.services.admin import AdminService, validate_system_notification
from core.services.auth import AuthService

@pytest.fixture
def admin(db_session, admin_user):
    return AdminService(db_session, admin_user)

def test_requires_admin(db_session, owner):
    with pytest.raises(PermissionDeniedError):
        AdminService(db_session, owner)

def test_get_stats(admin, sample_book, borrower, stranger, make_request):
    make_request(sample_book, borrower)
    make_request(sample_book, stranger, BorrowRequestStatus.BORROWED)

    stats = admin.get_stats()
    assert stats["total_users"] == 4
    assert stats["total_books"] == 1
    assert stats["borrowable_books"] == 0
    assert stats["total_borrow_requests"] == 2
    assert stats["pending_requests"] == 1
    assert stats["active_borrows"] == 1
    assert stats["requests_by_status"]["denied"] == 0

def test_genre_distribution(db_session, admin, owner, sample_book):
    db_session.add_all([
        Book(owner_id=owner.id, title="Dune", author="Frank Herbert", genre="Science Fiction"),
        Book(owner_id=owner.id, title="Untitled", author="Anon"),
    ])
    db_session.commit()
    assert admin.get_genre_distribution() == [
        {"genre": "Science Fiction", "count": 2},
        {"genre": "Unknown", "count": 1},
    ]

def test_suspend_user_revokes_sessions(db_session, admin, borrower):
    session = AuthService(db_session)._issue_session(borrower)
    suspended = admin.suspend_user(borrower.id, " Spamming requests ")
    assert suspended.suspended is True
    assert suspended.suspended_reason == "Spamming requests"

    admin.unsuspend_user(borrower.id)
    # Lifting the suspension does not bring old sessions back
    with pytest.raises(AuthenticationError):
        AuthService(db_session).get_current_user(session.access_token)

def test_suspend_needs_reason_and_other_user(admin, admin_user, borrower):
    with pytest.raises(ValueError, match="reason"):
        admin.suspend_user(borrower.id, "  ")
    with pytest.raises(ValueError, match="yourself"):
        admin.suspend_user(admin_user.id, "Testing")
    with pytest.raises(NotFoundError):
        admin.suspend_user("missing", "Testing")

def test_admin_status(admin, admin_user, owner):
    assert admin.update_user_admin_status(owner.id, True).is_admin is True
    with pytest.raises(ValueError, match="own admin access"):
        admin.update_user_admin_status(admin_user.id, False)

def test_update_user_profile(admin, owner):
    updated = admin.update_user_profile(owner.id, name="Olivia O.", bio=None, email="ignored@example.com")
    assert updated.name == "Olivia O."
    assert updated.email == "olivia.owner@example.com"

def test_delete_user(admin, admin_user, owner):
    admin.delete_user(owner.id)
    assert admin.get_all_users(search="olivia") == []
    with pytest.raises(ValueError):
        admin.delete_user(admin_user.id)

def test_flag_and_list_books(admin, sample_book):
    with pytest.raises(ValueError, match="reason"):
        admin.flag_book(sample_book.id, "")
    admin.flag_book(sample_book.id, "Counterfeit copy")
    assert [b.id for b in admin.get_all_books(flagged=True)] == [sample_book.id]
    admin.unflag_book(sample_book.id)
    assert admin.get_all_books(flagged=True) == []

def test_update_and_delete_book(admin, sample_book):
    assert admin.update_book(sample_book.id, genre="Fiction").genre == "Fiction"
    admin.delete_book(sample_book.id)
    with pytest.raises(NotFoundError):
        admin.delete_book(sample_book.id)

def test_delete_review(db_session, admin, sample_book, borrower):
    review = Review(book_id=sample_book.id, user_id=borrower.id, rating=1, comment="Spam")
    db_session.add(review)
    db_session.commit()
    assert len(admin.get_all_reviews(book_id=sample_book.id)) == 1
    admin.delete_review(review.id)
    assert admin.get_all_reviews() == []
    with pytest.raises(NotFoundError):
        admin.delete_review(review.id)

def test_approve_request_override(admin, pending_request, borrower, db_session):
    due = datetime.now(UTC) + timedelta(days=7)
    approved = admin.approve_request(pending_request.id, due)
    assert approved.status == "approved"
    assert approved.response_message == "Approved by admin"
    assert db_session.query(Notification).filter_by(user_id=borrower.id, type="request_approved").count() == 1

def test_deny_request_override(admin, pending_request):
    with pytest.raises(ValueError, match="reason"):
        admin.deny_request(pending_request.id, "")
    denied = admin.deny_request(pending_request.id, "Duplicate account")
    assert denied.status == "denied"
    assert denied.response_message == "Duplicate account"

def test_cancel_and_mark_returned(db_session, admin, sample_book, borrower, stranger, make_request):
    out = make_request(sample_book, borrower, BorrowRequestStatus.RETURN_INITIATED)
    assert admin.mark_as_returned(out.id).status == "returned"

    waiting = make_request(sample_book, stranger)
    admin.cancel_request(waiting.id)
    assert db_session.query(BorrowRequest).filter_by(id=waiting.id).count() == 0

@pytest.mark.parametrize("title, message, type, error", [
    ("Hi", "A long enough message", "info", "Title"),
    ("Maintenance", "Too short", "info", "Message"),
    ("Maintenance", "The site will be down tonight", "party", "type"),
])
def test_validate_system_notification(title, message, type, error):
    with pytest.raises(ValueError, match=error):
        validate_system_notification(title, message, type)

def test_broadcast_and_group_notifications(db_session, admin, owner, borrower, sample_book, pending_request):
    assert admin.send_broadcast_notification("Maintenance", "The site will be down tonight") == 3
    assert admin.send_group_notification("lenders", "Thanks lenders", "You keep the shelves full", "info") == 1
    assert admin.send_user_notification(borrower.id, "Heads up", "Please return your books", "alert") == 1

    lender_notes = db_session.query(Notification).filter_by(user_id=owner.id).all()
    assert {n.type for n in lender_notes} >= {"announcement", "info"}
    with pytest.raises(NotFoundError):
        admin.send_user_notification("missing", "Heads up", "Please return your books")

def test_system_notifications_reach_the_change_feed(admin, owner, borrower):
    with patch("core.realtime.feed.publish") as publish:
        assert admin.send_user_notification(borrower.id, "Maintenance", "The site is down tonight", "alert") == 1
    publish.assert_called_once()
    channel, event = publish.call_args.args
    assert channel == f"notifications:{borrower.id}"
    assert event["record"]["type"] == "alert"
    assert event["record"]["id"]

    with patch("core.realtime.feed.publish") as publish:
        sent = admin.send_broadcast_notification("Maintenance", "The site will be down tonight")
    channels = {call.args[0] for call in publish.call_args_list}
    assert publish.call_count == sent
    assert {f"notifications:{owner.id}", f"notifications:{borrower.id}"} <= channels
