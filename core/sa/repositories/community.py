from typing import List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from core.constants import MembershipStatus, InvitationStatus
from core.sa.models import (
    Community, CommunityMember, BookCommunity, CommunityActivity, CommunityInvitation, Book
)


class CommunityRepository:
    """Repository for communities and their members, books, activity and invitations.

    Permission checks are done in core.services.communities.
    """

    def __init__(self, session: Session):
        self.session = session

    # Communities

    def get_by_id(self, community_id: str) -> Optional[Community]:
        return self.session.get(Community, community_id)

    def list_communities(
        self,
        is_private: Optional[bool] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
    ) -> List[Community]:
        q = self.session.query(Community)
        if is_private is not None:
            q = q.filter(Community.is_private == is_private)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(Community.name.ilike(pattern), Community.description.ilike(pattern)))
        if location and location.strip():
            q = q.filter(Community.location.ilike(f"%{location.strip()}%"))
        return q.order_by(Community.created_at.desc()).all()

    def list_for_user(self, user_id: str) -> List[CommunityMember]:
        """Approved memberships of a user, with the community loaded."""
        return (
            self.session.query(CommunityMember)
            .options(joinedload(CommunityMember.community))
            .filter(
                CommunityMember.user_id == user_id,
                CommunityMember.status == MembershipStatus.APPROVED.value,
            )
            .order_by(CommunityMember.joined_at.desc())
            .all()
        )

    def count_members(self, community_id: str) -> int:
        return (
            self.session.query(func.count(CommunityMember.id))
            .filter(
                CommunityMember.community_id == community_id,
                CommunityMember.status == MembershipStatus.APPROVED.value,
            )
            .scalar()
        )

    def count_books(self, community_id: str) -> int:
        return (
            self.session.query(func.count(BookCommunity.id))
            .filter(BookCommunity.community_id == community_id)
            .scalar()
        )

    # Members

    def get_member(self, community_id: str, user_id: str) -> Optional[CommunityMember]:
        return (
            self.session.query(CommunityMember)
            .filter(CommunityMember.community_id == community_id, CommunityMember.user_id == user_id)
            .first()
        )

    def list_members(self, community_id: str, status: Optional[str] = None) -> List[CommunityMember]:
        q = (
            self.session.query(CommunityMember)
            .options(joinedload(CommunityMember.user))
            .filter(CommunityMember.community_id == community_id)
        )
        if status:
            q = q.filter(CommunityMember.status == MembershipStatus(status).value)
        return q.order_by(CommunityMember.joined_at.asc()).all()

    def list_manager_ids(self, community_id: str) -> List[str]:
        return [m.user_id for m in self.list_members(community_id, MembershipStatus.APPROVED) if m.is_manager]

    # Books

    def get_book_link(self, book_id: str, community_id: str) -> Optional[BookCommunity]:
        return (
            self.session.query(BookCommunity)
            .filter(BookCommunity.book_id == book_id, BookCommunity.community_id == community_id)
            .first()
        )

    def list_books(self, community_id: str) -> List[Book]:
        return (
            self.session.query(Book)
            .options(joinedload(Book.owner))
            .join(BookCommunity, BookCommunity.book_id == Book.id)
            .filter(BookCommunity.community_id == community_id)
            .order_by(BookCommunity.added_at.desc())
            .all()
        )

    def list_book_community_ids(self, book_id: str) -> List[str]:
        return [
            row[0] for row in
            self.session.query(BookCommunity.community_id).filter(BookCommunity.book_id == book_id).all()
        ]

    def list_book_communities(self, book_id: str) -> List[Community]:
        return (
            self.session.query(Community)
            .join(BookCommunity, BookCommunity.community_id == Community.id)
            .filter(BookCommunity.book_id == book_id)
            .order_by(Community.name)
            .all()
        )

    # Activity

    def add_activity(
        self,
        community_id: str,
        type: str,
        user_id: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> CommunityActivity:
        activity = CommunityActivity(
            community_id=community_id, type=type, user_id=user_id, activity_metadata=metadata or {}
        )
        self.session.add(activity)
        self.session.flush()
        return activity

    def list_activity(self, community_id: str, limit: int = 50) -> List[CommunityActivity]:
        return (
            self.session.query(CommunityActivity)
            .options(joinedload(CommunityActivity.user))
            .filter(CommunityActivity.community_id == community_id)
            .order_by(CommunityActivity.created_at.desc())
            .limit(limit)
            .all()
        )

    # Invitations

    def get_invitation(self, invitation_id: str) -> Optional[CommunityInvitation]:
        return (
            self.session.query(CommunityInvitation)
            .options(joinedload(CommunityInvitation.community))
            .filter(CommunityInvitation.id == invitation_id)
            .first()
        )

    def get_invitation_for(self, community_id: str, invitee_id: str) -> Optional[CommunityInvitation]:
        return (
            self.session.query(CommunityInvitation)
            .filter(
                CommunityInvitation.community_id == community_id,
                CommunityInvitation.invitee_id == invitee_id,
            )
            .first()
        )

    def list_invitations(
        self,
        community_id: Optional[str] = None,
        invitee_id: Optional[str] = None,
        status: Optional[str] = InvitationStatus.PENDING.value,
    ) -> List[CommunityInvitation]:
        q = self.session.query(CommunityInvitation).options(
            joinedload(CommunityInvitation.community),
            joinedload(CommunityInvitation.inviter),
            joinedload(CommunityInvitation.invitee),
        )
        if community_id:
            q = q.filter(CommunityInvitation.community_id == community_id)
        if invitee_id:
            q = q.filter(CommunityInvitation.invitee_id == invitee_id)
        if status:
            q = q.filter(CommunityInvitation.status == InvitationStatus(status).value)
        return q.order_by(CommunityInvitation.created_at.desc()).all()
