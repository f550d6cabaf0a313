# api/routes/communities.py
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from core.sa.database import get_db
from core.sa.models import User as UserModel
from core.services.communities import CommunityService
from api.deps import get_current_user, get_optional_user
from api.schemas.book import BookWithOwner
from api.schemas.community import (
    Community, CommunityCreate, CommunityUpdate, CommunityDetail, MyCommunity, Member,
    RoleUpdate, OwnershipTransfer, BookLink, Activity, InvitationCreate, Invitation
)

router = APIRouter(prefix="/communities", tags=["communities"])
invitations_router = APIRouter(prefix="/invitations", tags=["communities"])


@router.get("", response_model=list[Community])
def get_communities(
    is_private: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search name or description"),
    location: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    return CommunityService(db).get_communities(is_private=is_private, search=search, location=location)


@router.get("/mine", response_model=list[MyCommunity])
def get_my_communities(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return [
        MyCommunity(
            **Community.model_validate(entry["community"]).model_dump(),
            role=entry["role"],
            status=entry["status"],
            joined_at=entry["joined_at"],
        )
        for entry in CommunityService(db).get_my_communities(user)
    ]


@router.post("", response_model=Community, status_code=status.HTTP_201_CREATED)
def create_community(
    data: CommunityCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).create_community(user, **data.model_dump())


@router.get("/{community_id}", response_model=CommunityDetail)
def get_community(
    community_id: str,
    user: Optional[UserModel] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """A community with member and book counts, plus the caller's role if signed in."""
    entry = CommunityService(db).get_community_by_id(community_id, user)
    return CommunityDetail(
        **Community.model_validate(entry["community"]).model_dump(),
        member_count=entry["member_count"],
        book_count=entry["book_count"],
        user_role=entry["user_role"],
        user_status=entry["user_status"],
    )


@router.put("/{community_id}", response_model=Community)
def update_community(
    community_id: str,
    data: CommunityUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).update_community(user, community_id, **data.model_dump(exclude_unset=True))


@router.delete("/{community_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_community(
    community_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService(db).delete_community(user, community_id)


# Members

@router.get("/{community_id}/members", response_model=list[Member])
def get_community_members(community_id: str, db: Session = Depends(get_db)):
    return CommunityService(db).get_community_members(community_id)


@router.get("/{community_id}/join-requests", response_model=list[Member])
def get_pending_join_requests(
    community_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).get_pending_join_requests(user, community_id)


@router.post("/{community_id}/join", response_model=Member, status_code=status.HTTP_201_CREATED)
def join_community(
    community_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).join_community(user, community_id)


@router.post("/{community_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_community(
    community_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService(db).leave_community(user, community_id)


@router.post("/{community_id}/members/{member_user_id}/approve", response_model=Member)
def approve_member(
    community_id: str,
    member_user_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).approve_member(user, community_id, member_user_id)


@router.put("/{community_id}/members/{member_user_id}/role", response_model=Member)
def update_member_role(
    community_id: str,
    member_user_id: str,
    data: RoleUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).update_member_role(user, community_id, member_user_id, data.role)


@router.delete("/{community_id}/members/{member_user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    community_id: str,
    member_user_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService(db).remove_member(user, community_id, member_user_id)


@router.post("/{community_id}/transfer-ownership", response_model=Member)
def transfer_ownership(
    community_id: str,
    data: OwnershipTransfer,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).transfer_ownership(user, community_id, data.new_owner_id)


# Books

@router.get("/{community_id}/books", response_model=list[BookWithOwner])
def get_community_books(community_id: str, db: Session = Depends(get_db)):
    return CommunityService(db).get_community_books(community_id)


@router.post("/{community_id}/books/{book_id}", response_model=BookLink, status_code=status.HTTP_201_CREATED)
def add_book_to_community(
    community_id: str,
    book_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).add_book_to_community(user, community_id, book_id)


@router.delete("/{community_id}/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_book_from_community(
    community_id: str,
    book_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService(db).remove_book_from_community(user, community_id, book_id)


# Activity

@router.get("/{community_id}/activity", response_model=list[Activity])
def get_community_activity(
    community_id: str,
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return CommunityService(db).get_community_activity(community_id, limit=limit)


# Invitations

@router.get("/{community_id}/invitations", response_model=list[Invitation])
def get_community_invitations(
    community_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).get_community_invitations(user, community_id)


@router.post("/{community_id}/invitations", response_model=Invitation, status_code=status.HTTP_201_CREATED)
def invite_user(
    community_id: str,
    data: InvitationCreate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).invite_user_to_community(user, community_id, data.invitee_id)


@invitations_router.get("", response_model=list[Invitation])
def get_my_invitations(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).get_my_invitations(user)


@invitations_router.post("/{invitation_id}/accept", response_model=Member)
def accept_invitation(
    invitation_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).accept_invitation(user, invitation_id)


@invitations_router.post("/{invitation_id}/reject", response_model=Invitation)
def reject_invitation(
    invitation_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CommunityService(db).reject_invitation(user, invitation_id)


@invitations_router.delete("/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_invitation(
    invitation_id: str,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    CommunityService(db).cancel_invitation(user, invitation_id)
