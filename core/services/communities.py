# core/services/communities.py
import logging
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from core.constants import (
    ActivityType, CommunityRole, InvitationStatus, MembershipStatus, NotificationType
)
from core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from core.sa.models import Community, CommunityMember, BookCommunity, CommunityInvitation, User, Book
from core.sa.repositories.community import CommunityRepository
from core.sa.repositories.user import UserRepository
from core.services.notifications import NotificationService

logger = logging.getLogger(__name__)

COMMUNITY_FIELDS = {"name", "description", "avatar_url", "location", "is_private", "requires_approval"}


def _clean_community_fields(fields: dict, partial: bool = False) -> dict:
    unknown = set(fields) - COMMUNITY_FIELDS
    if unknown:
        raise ValueError(f"Unknown community field(s): {', '.join(sorted(unknown))}")

    cleaned = dict(fields)
    if "name" in fields or not partial:
        name = (fields.get("name") or "").strip()
        if not name:
            raise ValueError("Community name is required")
        if len(name) > 100:
            raise ValueError("Community name must be at most 100 characters")
        cleaned["name"] = name
    for key in ("description", "avatar_url", "location"):
        if key in cleaned:
            cleaned[key] = (cleaned[key] or "").strip() or None
    if cleaned.get("description") and len(cleaned["description"]) > 500:
        raise ValueError("Description must be at most 500 characters")
    return cleaned


class CommunityService:
    """Community membership, book sharing, activity and invitation rules."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = CommunityRepository(session)
        self.notifications = NotificationService(session)

    # Lookups and permission checks

    def _get_community(self, community_id: str) -> Community:
        community = self.repo.get_by_id(community_id)
        if not community:
            raise NotFoundError("Community", community_id)
        return community

    def _require_member(self, community_id: str, user: User) -> CommunityMember:
        member = self.repo.get_member(community_id, user.id)
        if not member or member.status != MembershipStatus.APPROVED.value:
            raise PermissionDeniedError("You must be a member of this community")
        return member

    def _require_manager(self, community_id: str, user: User) -> CommunityMember:
        member = self.repo.get_member(community_id, user.id)
        if not member or not member.is_manager:
            raise PermissionDeniedError("Only community owners and admins can do this")
        return member

    def _require_owner(self, community_id: str, user: User) -> CommunityMember:
        member = self.repo.get_member(community_id, user.id)
        if not member or member.role != CommunityRole.OWNER.value:
            raise PermissionDeniedError("Only the community owner can do this")
        return member

    # Communities

    def get_communities(
        self,
        is_private: Optional[bool] = None,
        search: Optional[str] = None,
        location: Optional[str] = None,
    ) -> List[Community]:
        return self.repo.list_communities(is_private=is_private, search=search, location=location)

    def get_my_communities(self, user: User) -> List[dict]:
        """Communities the user is an approved member of, with their role."""
        return [
            {
                "community": membership.community,
                "role": membership.role,
                "status": membership.status,
                "joined_at": membership.joined_at,
            }
            for membership in self.repo.list_for_user(user.id)
        ]

    def get_community_by_id(self, community_id: str, user: Optional[User] = None) -> dict:
        """A community with member and book counts and the caller's membership."""
        community = self._get_community(community_id)
        member = self.repo.get_member(community_id, user.id) if user else None
        return {
            "community": community,
            "member_count": self.repo.count_members(community_id),
            "book_count": self.repo.count_books(community_id),
            "user_role": member.role if member else None,
            "user_status": member.status if member else None,
        }

    def create_community(self, user: User, **fields) -> Community:
        """Create a community. The creator becomes its approved owner."""
        community = Community(created_by=user.id, **_clean_community_fields(fields))
        self.session.add(community)
        self.session.flush()
        self.session.add(CommunityMember(
            community_id=community.id,
            user_id=user.id,
            role=CommunityRole.OWNER.value,
            status=MembershipStatus.APPROVED.value,
        ))
        self.session.commit()
        logger.info("User %s created community %s", user.id, community.id)
        return community

    def update_community(self, user: User, community_id: str, **fields) -> Community:
        community = self._get_community(community_id)
        self._require_manager(community_id, user)
        for key, value in _clean_community_fields(fields, partial=True).items():
            setattr(community, key, value)
        self.session.commit()
        return community

    def delete_community(self, user: User, community_id: str) -> None:
        community = self._get_community(community_id)
        self._require_owner(community_id, user)
        self.session.delete(community)
        self.session.commit()
        logger.info("User %s deleted community %s", user.id, community_id)

    # Members

    def get_community_members(self, community_id: str) -> List[CommunityMember]:
        self._get_community(community_id)
        return self.repo.list_members(community_id, MembershipStatus.APPROVED)

    def get_pending_join_requests(self, user: User, community_id: str) -> List[CommunityMember]:
        self._get_community(community_id)
        self._require_manager(community_id, user)
        return self.repo.list_members(community_id, MembershipStatus.PENDING)

    def join_community(self, user: User, community_id: str) -> CommunityMember:
        """Join a community.

        Private communities that require approval put the membership in
        pending and notify their owners and admins. Everything else is
        approved straight away.

        Raises:
            ConflictError: If the user is already a member or has a pending request
        """
        community = self._get_community(community_id)
        existing = self.repo.get_member(community_id, user.id)
        if existing:
            if existing.status == MembershipStatus.PENDING.value:
                raise ConflictError("Your request to join is already pending")
            raise ConflictError("You are already a member of this community")

        needs_approval = community.is_private and community.requires_approval
        member = CommunityMember(
            community_id=community_id,
            user_id=user.id,
            role=CommunityRole.MEMBER.value,
            status=MembershipStatus.PENDING.value if needs_approval else MembershipStatus.APPROVED.value,
        )
        self.session.add(member)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("You are already a member of this community")

        if needs_approval:
            for manager_id in self.repo.list_manager_ids(community_id):
                self.notifications.try_create_notification(
                    manager_id,
                    NotificationType.COMMUNITY_JOIN_REQUEST,
                    "New Join Request",
                    f"{user.name} wants to join {community.name}",
                    {"community_id": community_id, "user_id": user.id},
                )
        else:
            self.record_activity(community_id, ActivityType.MEMBER_JOINED, user.id)
        return member

    def approve_member(self, user: User, community_id: str, member_user_id: str) -> CommunityMember:
        self._require_manager(community_id, user)
        member = self.repo.get_member(community_id, member_user_id)
        if not member:
            raise NotFoundError("Membership", member_user_id)
        if member.status == MembershipStatus.APPROVED.value:
            return member
        member.status = MembershipStatus.APPROVED.value
        member.joined_at = datetime.now(UTC)
        self.session.commit()
        self.record_activity(community_id, ActivityType.MEMBER_JOINED, member_user_id)
        return member

    def update_member_role(self, user: User, community_id: str, member_user_id: str, role: str) -> CommunityMember:
        """Change a member's role between admin and member (owner only)."""
        self._require_owner(community_id, user)
        role = CommunityRole(role)
        if role == CommunityRole.OWNER:
            raise ValueError("Use transfer ownership to make someone the owner")
        member = self.repo.get_member(community_id, member_user_id)
        if not member:
            raise NotFoundError("Membership", member_user_id)
        if member.role == CommunityRole.OWNER.value:
            raise PermissionDeniedError("The owner's role cannot be changed")
        member.role = role.value
        self.session.commit()
        return member

    def remove_member(self, user: User, community_id: str, member_user_id: str) -> None:
        """Remove a member, or reject a pending join request."""
        self._require_manager(community_id, user)
        member = self.repo.get_member(community_id, member_user_id)
        if not member:
            raise NotFoundError("Membership", member_user_id)
        if member.role == CommunityRole.OWNER.value:
            raise PermissionDeniedError("The community owner cannot be removed")
        self.session.delete(member)
        self.session.commit()

    def leave_community(self, user: User, community_id: str) -> None:
        member = self.repo.get_member(community_id, user.id)
        if not member:
            raise NotFoundError("Membership", user.id)
        if member.role == CommunityRole.OWNER.value:
            raise PermissionDeniedError(
                "Community owner cannot leave. Please transfer ownership or delete the community."
            )
        self.session.delete(member)
        self.session.commit()

    def transfer_ownership(self, user: User, community_id: str, new_owner_id: str) -> CommunityMember:
        """Hand the community to another approved member; the old owner becomes an admin."""
        current = self.repo.get_member(community_id, user.id)
        if not current or current.role != CommunityRole.OWNER.value:
            raise PermissionDeniedError("Only the community owner can transfer ownership.")
        new_owner = self.repo.get_member(community_id, new_owner_id)
        if not new_owner or new_owner.status != MembershipStatus.APPROVED.value:
            raise ValueError("New owner must be an approved member.")
        if new_owner.user_id == user.id:
            return current

        current.role = CommunityRole.ADMIN.value
        new_owner.role = CommunityRole.OWNER.value
        self.session.commit()
        logger.info("Community %s transferred from %s to %s", community_id, user.id, new_owner_id)
        return new_owner

    # Books

    def add_book_to_community(self, user: User, community_id: str, book_id: str) -> BookCommunity:
        self._get_community(community_id)
        self._require_member(community_id, user)
        book = self.session.get(Book, book_id)
        if not book:
            raise NotFoundError("Book", book_id)
        if book.owner_id != user.id:
            raise PermissionDeniedError("You can only share your own books")
        if self.repo.get_book_link(book_id, community_id):
            raise ConflictError("This book is already in the community")

        link = BookCommunity(book_id=book_id, community_id=community_id, added_by=user.id)
        self.session.add(link)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("This book is already in the community")

        self.record_activity(
            community_id, ActivityType.BOOK_ADDED, user.id, {"book_id": book.id, "book_title": book.title}
        )
        return link

    def remove_book_from_community(self, user: User, community_id: str, book_id: str) -> None:
        """Remove a shared book. The book's owner or a community admin may do this."""
        link = self.repo.get_book_link(book_id, community_id)
        if not link:
            raise NotFoundError("Community book", book_id)
        if link.book.owner_id != user.id:
            self._require_manager(community_id, user)
        self.session.delete(link)
        self.session.commit()

    def get_community_books(self, community_id: str) -> List[Book]:
        self._get_community(community_id)
        return self.repo.list_books(community_id)

    def get_book_communities(self, book_id: str) -> List[Community]:
        return self.repo.list_book_communities(book_id)

    # Activity

    def get_community_activity(self, community_id: str, limit: int = 50):
        self._get_community(community_id)
        return self.repo.list_activity(community_id, limit=limit)

    def create_activity(self, community_id: str, type: str, user_id: Optional[str] = None,
                        metadata: Optional[dict] = None):
        activity = self.repo.add_activity(community_id, ActivityType(type).value, user_id, metadata)
        self.session.commit()
        return activity

    def record_activity(self, community_id: str, type: str, user_id: Optional[str] = None,
                        metadata: Optional[dict] = None) -> None:
        """Best-effort activity logging; failures are logged, never raised."""
        try:
            self.create_activity(community_id, type, user_id, metadata)
        except Exception:
            self.session.rollback()
            logger.exception("Failed to record %s activity for community %s", type, community_id)

    def record_book_activity(self, book_id: str, type: str, user_id: Optional[str] = None,
                             metadata: Optional[dict] = None) -> None:
        """Record an activity in every community the book is shared with."""
        for community_id in self.repo.list_book_community_ids(book_id):
            self.record_activity(community_id, type, user_id, metadata)

    # Invitations

    def invite_user_to_community(self, user: User, community_id: str, invitee_id: str) -> CommunityInvitation:
        community = self._get_community(community_id)
        self._require_manager(community_id, user)
        invitee = UserRepository(self.session).get_by_id(invitee_id)
        if not invitee:
            raise NotFoundError("User", invitee_id)
        if self.repo.get_member(community_id, invitee_id):
            raise ConflictError("User is already a member of this community")

        invitation = self.repo.get_invitation_for(community_id, invitee_id)
        if invitation and invitation.status == InvitationStatus.PENDING.value:
            raise ConflictError("User has already been invited")
        if invitation:
            # Re-inviting after an earlier rejection reuses the row
            invitation.status = InvitationStatus.PENDING.value
            invitation.inviter_id = user.id
            invitation.responded_at = None
            invitation.created_at = datetime.now(UTC)
        else:
            invitation = CommunityInvitation(community_id=community_id, inviter_id=user.id, invitee_id=invitee_id)
            self.session.add(invitation)
        self.session.commit()

        self.notifications.try_create_notification(
            invitee_id,
            NotificationType.COMMUNITY_INVITATION,
            "Community Invitation",
            f"{user.name} invited you to join {community.name}",
            {"community_id": community_id, "invitation_id": invitation.id},
        )
        return invitation

    def get_community_invitations(self, user: User, community_id: str) -> List[CommunityInvitation]:
        self._require_manager(community_id, user)
        return self.repo.list_invitations(community_id=community_id)

    def get_my_invitations(self, user: User) -> List[CommunityInvitation]:
        return self.repo.list_invitations(invitee_id=user.id)

    def _get_pending_invitation(self, invitation_id: str) -> CommunityInvitation:
        invitation = self.repo.get_invitation(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation", invitation_id)
        if invitation.status != InvitationStatus.PENDING.value:
            raise ValueError(f"Invitation has already been {invitation.status}")
        return invitation

    def accept_invitation(self, user: User, invitation_id: str) -> CommunityMember:
        invitation = self._get_pending_invitation(invitation_id)
        if invitation.invitee_id != user.id:
            raise PermissionDeniedError("This invitation is not for you")

        member = self.repo.get_member(invitation.community_id, user.id)
        if member:
            member.status = MembershipStatus.APPROVED.value
        else:
            member = CommunityMember(
                community_id=invitation.community_id,
                user_id=user.id,
                role=CommunityRole.MEMBER.value,
                status=MembershipStatus.APPROVED.value,
            )
            self.session.add(member)
        invitation.status = InvitationStatus.ACCEPTED.value
        invitation.responded_at = datetime.now(UTC)
        self.session.commit()

        self.record_activity(invitation.community_id, ActivityType.MEMBER_JOINED, user.id)
        return member

    def reject_invitation(self, user: User, invitation_id: str) -> CommunityInvitation:
        invitation = self._get_pending_invitation(invitation_id)
        if invitation.invitee_id != user.id:
            raise PermissionDeniedError("This invitation is not for you")
        invitation.status = InvitationStatus.REJECTED.value
        invitation.responded_at = datetime.now(UTC)
        self.session.commit()
        return invitation

    def cancel_invitation(self, user: User, invitation_id: str) -> None:
        invitation = self.repo.get_invitation(invitation_id)
        if not invitation:
            raise NotFoundError("Invitation", invitation_id)
        if invitation.inviter_id != user.id:
            self._require_manager(invitation.community_id, user)
        self.session.delete(invitation)
        self.session.commit()
