# tests/test_services/test_communities.py

import pytest
from core.constants import ActivityType, NotificationType
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from core.sa.models import CommunityActivity, Notification
from core.services.communities import CommunityService
from core.services.lending import LendingService

@pytest.fixture
def communities(db_session):
    return CommunityService(db_session)

@pytest.fixture
def community(communities, owner):
    return communities.create_community(owner, name="  Downtown Readers ", description="Swap books downtown",
                                        location="Springfield")

@pytest.fixture
def private_community(communities, owner):
    return communities.create_community(owner, name="Secret Society", is_private=True, requires_approval=True)

def _activity_types(db_session, community):
    return [a.type for a in db_session.query(CommunityActivity).filter_by(community_id=community.id).all()]

# Communities

def test_create_community_makes_owner(communities, community, owner):
    assert community.name == "Downtown Readers"
    detail = communities.get_community_by_id(community.id, owner)
    assert detail["member_count"] == 1
    assert detail["book_count"] == 0
    assert detail["user_role"] == "owner"
    assert detail["user_status"] == "approved"

def test_create_community_requires_name(communities, owner):
    with pytest.raises(ValueError, match="name is required"):
        communities.create_community(owner, name="   ")

def test_get_communities_filters(communities, community, private_community):
    assert len(communities.get_communities()) == 2
    assert [c.id for c in communities.get_communities(is_private=True)] == [private_community.id]
    assert [c.id for c in communities.get_communities(search="swap")] == [community.id]
    assert [c.id for c in communities.get_communities(location="spring")] == [community.id]

def test_update_community_requires_manager(communities, community, borrower):
    communities.join_community(borrower, community.id)
    with pytest.raises(PermissionDeniedError):
        communities.update_community(borrower, community.id, name="Mine now")

def test_update_community(communities, community, owner):
    updated = communities.update_community(owner, community.id, description="", location="Shelbyville")
    assert updated.description is None
    assert updated.location == "Shelbyville"
    assert updated.name == "Downtown Readers"

def test_only_owner_deletes_community(communities, community, owner, borrower):
    communities.join_community(borrower, community.id)
    with pytest.raises(PermissionDeniedError):
        communities.delete_community(borrower, community.id)
    communities.delete_community(owner, community.id)
    with pytest.raises(NotFoundError):
        communities.get_community_by_id(community.id)

# Membership

def test_join_public_community(db_session, communities, community, borrower):
    member = communities.join_community(borrower, community.id)
    assert member.status == "approved"
    assert member.role == "member"
    assert _activity_types(db_session, community) == [ActivityType.MEMBER_JOINED.value]

def test_join_twice(communities, community, borrower):
    communities.join_community(borrower, community.id)
    with pytest.raises(ConflictError, match="already a member"):
        communities.join_community(borrower, community.id)

def test_join_private_community_needs_approval(db_session, communities, private_community, owner, borrower):
    member = communities.join_community(borrower, private_community.id)
    assert member.status == "pending"
    with pytest.raises(ConflictError, match="already pending"):
        communities.join_community(borrower, private_community.id)

    notification = db_session.query(Notification).filter_by(user_id=owner.id).one()
    assert notification.type == NotificationType.COMMUNITY_JOIN_REQUEST.value
    assert [m.user_id for m in communities.get_pending_join_requests(owner, private_community.id)] == [borrower.id]
    assert _activity_types(db_session, private_community) == []

    approved = communities.approve_member(owner, private_community.id, borrower.id)
    assert approved.status == "approved"
    assert _activity_types(db_session, private_community) == [ActivityType.MEMBER_JOINED.value]
    assert len(communities.get_community_members(private_community.id)) == 2

def test_get_my_communities(communities, community, private_community, borrower):
    communities.join_community(borrower, community.id)
    communities.join_community(borrower, private_community.id)
    mine = communities.get_my_communities(borrower)
    # Pending memberships are not listed
    assert [entry["community"].id for entry in mine] == [community.id]
    assert mine[0]["role"] == "member"

def test_update_member_role(communities, community, owner, borrower, stranger):
    communities.join_community(borrower, community.id)
    communities.join_community(stranger, community.id)

    promoted = communities.update_member_role(owner, community.id, borrower.id, "admin")
    assert promoted.role == "admin"
    with pytest.raises(PermissionDeniedError):
        communities.update_member_role(borrower, community.id, stranger.id, "admin")
    with pytest.raises(ValueError, match="transfer ownership"):
        communities.update_member_role(owner, community.id, stranger.id, "owner")

def test_remove_member(communities, community, owner, borrower):
    communities.join_community(borrower, community.id)
    communities.remove_member(owner, community.id, borrower.id)
    assert [m.user_id for m in communities.get_community_members(community.id)] == [owner.id]

def test_owner_cannot_be_removed_or_leave(communities, community, owner, borrower):
    communities.join_community(borrower, community.id)
    communities.update_member_role(owner, community.id, borrower.id, "admin")
    with pytest.raises(PermissionDeniedError):
        communities.remove_member(borrower, community.id, owner.id)
    with pytest.raises(PermissionDeniedError, match="transfer ownership"):
        communities.leave_community(owner, community.id)

def test_leave_community(communities, community, borrower):
    communities.join_community(borrower, community.id)
    communities.leave_community(borrower, community.id)
    with pytest.raises(NotFoundError):
        communities.leave_community(borrower, community.id)

def test_transfer_ownership(communities, community, owner, borrower, stranger):
    communities.join_community(borrower, community.id)
    with pytest.raises(ValueError, match="approved member"):
        communities.transfer_ownership(owner, community.id, stranger.id)

    new_owner = communities.transfer_ownership(owner, community.id, borrower.id)
    assert new_owner.role == "owner"
    assert communities.get_community_by_id(community.id, owner)["user_role"] == "admin"
    with pytest.raises(PermissionDeniedError):
        communities.transfer_ownership(owner, community.id, borrower.id)

# Books and activity

def test_share_book(db_session, communities, community, owner, sample_book):
    link = communities.add_book_to_community(owner, community.id, sample_book.id)
    assert link.added_by == owner.id
    assert [b.id for b in communities.get_community_books(community.id)] == [sample_book.id]
    assert [c.id for c in communities.get_book_communities(sample_book.id)] == [community.id]

    activity = communities.get_community_activity(community.id)
    assert activity[0].type == ActivityType.BOOK_ADDED.value
    assert activity[0].activity_metadata == {"book_id": sample_book.id, "book_title": "Project Hail Mary"}

    with pytest.raises(ConflictError):
        communities.add_book_to_community(owner, community.id, sample_book.id)

def test_share_book_rules(communities, community, owner, borrower, sample_book):
    with pytest.raises(PermissionDeniedError, match="member"):
        communities.add_book_to_community(borrower, community.id, sample_book.id)
    communities.join_community(borrower, community.id)
    with pytest.raises(PermissionDeniedError, match="your own books"):
        communities.add_book_to_community(borrower, community.id, sample_book.id)

def test_remove_book_from_community(communities, community, owner, borrower, sample_book):
    communities.add_book_to_community(owner, community.id, sample_book.id)
    communities.join_community(borrower, community.id)
    with pytest.raises(PermissionDeniedError):
        communities.remove_book_from_community(borrower, community.id, sample_book.id)
    communities.remove_book_from_community(owner, community.id, sample_book.id)
    assert communities.get_community_books(community.id) == []

def test_lending_records_activity_in_shared_communities(db_session, communities, community, owner, borrower,
                                                        sample_book):
    communities.add_book_to_community(owner, community.id, sample_book.id)
    lending = LendingService(db_session)
    borrow_request = lending.create_borrow_request(borrower, sample_book.id)

    types = _activity_types(db_session, community)
    assert ActivityType.BORROW_CREATED.value in types
    created = next(a for a in communities.get_community_activity(community.id)
                   if a.type == ActivityType.BORROW_CREATED.value)
    assert created.activity_metadata["request_id"] == borrow_request.id

def test_record_activity_never_raises(communities, community):
    communities.record_activity(community.id, "not_an_activity")
    assert communities.get_community_activity(community.id) == []

# Invitations

def test_invitation_flow(db_session, communities, private_community, owner, borrower):
    invitation = communities.invite_user_to_community(owner, private_community.id, borrower.id)
    assert invitation.status == "pending"
    notification = db_session.query(Notification).filter_by(user_id=borrower.id).one()
    assert notification.type == NotificationType.COMMUNITY_INVITATION.value
    assert notification.payload["invitation_id"] == invitation.id

    assert [i.id for i in communities.get_my_invitations(borrower)] == [invitation.id]
    assert [i.id for i in communities.get_community_invitations(owner, private_community.id)] == [invitation.id]

    member = communities.accept_invitation(borrower, invitation.id)
    assert member.status == "approved"
    assert communities.get_my_invitations(borrower) == []
    with pytest.raises(ValueError, match="already been accepted"):
        communities.accept_invitation(borrower, invitation.id)

def test_invite_rules(communities, community, owner, borrower, stranger):
    with pytest.raises(NotFoundError):
        communities.invite_user_to_community(owner, community.id, "missing")
    communities.join_community(borrower, community.id)
    with pytest.raises(ConflictError, match="already a member"):
        communities.invite_user_to_community(owner, community.id, borrower.id)
    with pytest.raises(PermissionDeniedError):
        communities.invite_user_to_community(borrower, community.id, stranger.id)

    communities.invite_user_to_community(owner, community.id, stranger.id)
    with pytest.raises(ConflictError, match="already been invited"):
        communities.invite_user_to_community(owner, community.id, stranger.id)

def test_reject_then_reinvite(communities, community, owner, borrower, stranger):
    invitation = communities.invite_user_to_community(owner, community.id, stranger.id)
    with pytest.raises(PermissionDeniedError):
        communities.reject_invitation(borrower, invitation.id)

    rejected = communities.reject_invitation(stranger, invitation.id)
    assert rejected.status == "rejected"
    assert rejected.responded_at is not None

    again = communities.invite_user_to_community(owner, community.id, stranger.id)
    assert again.id == invitation.id
    assert again.status == "pending"

def test_cancel_invitation(communities, community, owner, stranger):
    invitation = communities.invite_user_to_community(owner, community.id, stranger.id)
    with pytest.raises(PermissionDeniedError):
        communities.cancel_invitation(stranger, invitation.id)
    communities.cancel_invitation(owner, invitation.id)
    with pytest.raises(NotFoundError):
        communities.accept_invitation(stranger, invitation.id)
