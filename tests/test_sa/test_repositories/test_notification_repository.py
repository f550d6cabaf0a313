# tests/test_sa/test_repositories/test_notification_repository.py

import pytest
from core.constants import NotificationType
from core.sa.repositories.notification import NotificationRepository

@pytest.fixture
def notification_repo(db_session):
    return NotificationRepository(db_session)

def test_create_notification(notification_repo, owner):
    notification = notification_repo.create(owner.id, "borrow_request", "New Borrow Request", "Ben wants it",
                                            {"request_id": "r1"})
    assert notification.read is False
    assert notification.type == NotificationType.BORROW_REQUEST.value
    assert notification.payload == {"request_id": "r1"}

def test_create_rejects_unknown_type(notification_repo, owner):
    with pytest.raises(ValueError):
        notification_repo.create(owner.id, "party_invite", "Hi", "There")

def test_unread_count_and_mark_all_read(notification_repo, owner, borrower):
    for _ in range(3):
        notification_repo.create(owner.id, "info", "Title", "Message")
    notification_repo.create(borrower.id, "info", "Title", "Message")

    assert notification_repo.count_unread(owner.id) == 3
    assert notification_repo.mark_all_read(owner.id) == 3
    assert notification_repo.count_unread(owner.id) == 0
    assert notification_repo.count_unread(borrower.id) == 1
    assert all(n.read for n in notification_repo.list_notifications(user_id=owner.id))

def test_list_notifications_filters(notification_repo, owner):
    first = notification_repo.create(owner.id, "info", "Title", "Message")
    notification_repo.create(owner.id, "alert", "Title", "Message")
    notification_repo.mark_read(first.id)

    assert len(notification_repo.list_notifications(user_id=owner.id)) == 2
    assert [n.type for n in notification_repo.list_notifications(user_id=owner.id, read=False)] == ["alert"]
    assert [n.id for n in notification_repo.list_notifications(type=NotificationType.INFO)] == [first.id]

def test_create_many(notification_repo, owner, borrower):
    created = notification_repo.create_many([owner.id, borrower.id], "announcement", "Hello", "Welcome all")
    assert sorted(n.user_id for n in created) == sorted([owner.id, borrower.id])
    assert all(n.id for n in created)
    assert notification_repo.count_unread(owner.id) == 1

def test_exists_for_request(notification_repo, owner):
    notification_repo.create(owner.id, "due_soon", "Due", "Soon", {"request_id": "r1"})
    assert notification_repo.exists_for_request(owner.id, "due_soon", "r1")
    assert not notification_repo.exists_for_request(owner.id, "due_soon", "r2")
    assert not notification_repo.exists_for_request(owner.id, "overdue", "r1")

def test_delete(notification_repo, owner):
    notification = notification_repo.create(owner.id, "info", "Title", "Message")
    assert notification_repo.delete(notification.id) is True
    assert notification_repo.get_by_id(notification.id) is None
    assert notification_repo.delete(notification.id) is False
