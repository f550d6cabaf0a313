# tests/test_sa/test_models.py
import pytest
from datetime import datetime, UTC, timedelta
from sqlalchemy.exc import IntegrityError
from core.sa.models import (
    User, Book, BorrowRequest, Review, Notification, Message, AuthSession,
    Community, CommunityMember, CommunityActivity
)

def test_user_defaults(db_session, owner):
    """New users get a UUID, timestamps and no special rights"""
    user = db_session.get(User, owner.id)
    assert len(user.id) == 36
    assert user.is_admin is False
    assert user.suspended is False
    assert user.created_at is not None

def test_datetimes_come_back_in_utc(db_session, sample_book):
    """Timestamps read from SQLite are timezone-aware"""
    db_session.expire_all()
    book = db_session.get(Book, sample_book.id)
    assert book.created_at.tzinfo is not None
    assert book.created_at.utcoffset() == timedelta(0)

def test_naive_datetimes_are_stored_as_utc(db_session, pending_request):
    """A naive due date is treated as UTC rather than local time"""
    pending_request.due_date = datetime(2030, 1, 15, 12, 0)
    db_session.commit()
    db_session.expire_all()

    borrow_request = db_session.get(BorrowRequest, pending_request.id)
    assert borrow_request.due_date == datetime(2030, 1, 15, 12, 0, tzinfo=UTC)

def test_borrow_request_participants(pending_request, owner, borrower, stranger):
    assert pending_request.is_participant(owner.id)
    assert pending_request.is_participant(borrower.id)
    assert not pending_request.is_participant(stranger.id)
    assert pending_request.other_participant_id(owner.id) == borrower.id
    assert pending_request.other_participant_id(borrower.id) == owner.id

def test_review_rating_check_constraint(db_session, sample_book, borrower):
    """The database rejects ratings outside 1-5"""
    db_session.add(Review(book_id=sample_book.id, user_id=borrower.id, rating=6))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

def test_review_unique_per_user_and_book(db_session, sample_book, borrower):
    db_session.add(Review(book_id=sample_book.id, user_id=borrower.id, rating=4))
    db_session.commit()
    db_session.add(Review(book_id=sample_book.id, user_id=borrower.id, rating=2))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

def test_auth_session_is_active(db_session, owner):
    now = datetime.now(UTC)
    live = AuthSession(token="live", user_id=owner.id, expires_at=now + timedelta(hours=1))
    expired = AuthSession(token="expired", user_id=owner.id, expires_at=now - timedelta(seconds=1))
    revoked = AuthSession(token="revoked", user_id=owner.id, expires_at=now + timedelta(hours=1), revoked_at=now)
    db_session.add_all([live, expired, revoked])
    db_session.commit()

    assert live.is_active
    assert not expired.is_active
    assert not revoked.is_active

def test_deleting_user_cascades(db_session, owner, borrower, sample_book, pending_request):
    """Removing an owner removes their books and the requests for them"""
    db_session.add(Message(borrow_request_id=pending_request.id, sender_id=borrower.id, content="Hi"))
    db_session.add(Notification(user_id=owner.id, type="borrow_request", title="t", message="m"))
    db_session.commit()

    db_session.delete(db_session.get(User, owner.id))
    db_session.commit()

    assert db_session.query(Book).count() == 0
    assert db_session.query(BorrowRequest).count() == 0
    assert db_session.query(Message).count() == 0
    assert db_session.query(Notification).count() == 0
    assert db_session.get(User, borrower.id) is not None

def test_community_member_is_manager(db_session, owner, borrower, stranger):
    community = Community(name="Readers", created_by=owner.id)
    db_session.add(community)
    db_session.flush()
    owner_member = CommunityMember(community_id=community.id, user_id=owner.id, role="owner")
    admin_member = CommunityMember(community_id=community.id, user_id=borrower.id, role="admin", status="pending")
    plain_member = CommunityMember(community_id=community.id, user_id=stranger.id, role="member")
    db_session.add_all([owner_member, admin_member, plain_member])
    db_session.commit()

    assert owner_member.is_manager
    # Pending admins cannot manage yet
    assert not admin_member.is_manager
    assert not plain_member.is_manager

def test_activity_metadata_column(db_session, owner):
    community = Community(name="Readers", created_by=owner.id)
    db_session.add(community)
    db_session.flush()
    db_session.add(CommunityActivity(community_id=community.id, type="book_added",
                                     activity_metadata={"book_title": "Dune"}))
    db_session.commit()
    db_session.expire_all()

    activity = db_session.query(CommunityActivity).one()
    assert activity.activity_metadata == {"book_title": "Dune"}
