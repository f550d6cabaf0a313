# tests/test_services/test_reminders.py

import pytest
from datetime import datetime, UTC, timedelta
from core.constants import BorrowRequestStatus
from core.sa.models import Notification
from core.services.reminders import ReminderService

@pytest.fixture
def reminders(db_session):
    return ReminderService(db_session)

@pytest.fixture
def now():
    return datetime.now(UTC)

def test_due_soon_reminder(db_session, reminders, sample_book, borrower, owner, make_request, now):
    borrow_request = make_request(sample_book, borrower, BorrowRequestStatus.BORROWED,
                                  due_date=now + timedelta(hours=6))
    assert reminders.send_due_reminders(now=now) == {"due_soon": 1, "overdue": 0}

    notification = db_session.query(Notification).filter_by(user_id=borrower.id).one()
    assert notification.type == "due_soon"
    assert notification.payload["request_id"] == borrow_request.id
    assert db_session.query(Notification).filter_by(user_id=owner.id).count() == 0

def test_overdue_notifies_both_sides(db_session, reminders, sample_book, borrower, owner, make_request, now):
    make_request(sample_book, borrower, BorrowRequestStatus.RETURN_INITIATED, due_date=now - timedelta(days=1))
    assert reminders.send_due_reminders(now=now) == {"due_soon": 0, "overdue": 2}

    owner_note = db_session.query(Notification).filter_by(user_id=owner.id).one()
    assert owner_note.type == "overdue"
    assert "Ben Borrower" in owner_note.message

def test_reminders_are_sent_once(reminders, sample_book, borrower, make_request, now):
    make_request(sample_book, borrower, BorrowRequestStatus.BORROWED, due_date=now + timedelta(hours=6))
    assert reminders.send_due_reminders(now=now)["due_soon"] == 1
    assert reminders.send_due_reminders(now=now)["due_soon"] == 0

def test_due_soon_window(reminders, sample_book, borrower, make_request, now):
    make_request(sample_book, borrower, BorrowRequestStatus.APPROVED, due_date=now + timedelta(days=3))
    assert reminders.send_due_reminders(now=now, due_soon_days=1)["due_soon"] == 0
    assert reminders.send_due_reminders(now=now, due_soon_days=5)["due_soon"] == 1

def test_finished_loans_are_ignored(reminders, sample_book, borrower, make_request, now):
    make_request(sample_book, borrower, BorrowRequestStatus.RETURNED, due_date=now - timedelta(days=3))
    make_request(sample_book, borrower, BorrowRequestStatus.PENDING, due_date=now + timedelta(hours=1))
    assert reminders.send_due_reminders(now=now) == {"due_soon": 0, "overdue": 0}
