# api/schemas/community.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from core.constants import CommunityRole, MembershipStatus, InvitationStatus
from api.schemas.user import UserSummary


class CommunityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    is_private: bool = False
    requires_approval: bool = False


class CommunityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    avatar_url: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    is_private: Optional[bool] = None
    requires_approval: Optional[bool] = None


class Community(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    location: Optional[str] = None
    is_private: bool
    requires_approval: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommunityDetail(Community):
    member_count: int = 0
    book_count: int = 0
    user_role: Optional[CommunityRole] = None
    user_status: Optional[MembershipStatus] = None


class MyCommunity(Community):
    role: CommunityRole
    status: MembershipStatus
    joined_at: datetime


class Member(BaseModel):
    id: str
    community_id: str
    user_id: str
    role: CommunityRole
    status: MembershipStatus
    joined_at: datetime
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    role: CommunityRole


class OwnershipTransfer(BaseModel):
    new_owner_id: str


class BookLink(BaseModel):
    id: str
    book_id: str
    community_id: str
    added_by: Optional[str] = None
    added_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Activity(BaseModel):
    id: str
    community_id: str
    type: str
    user_id: Optional[str] = None
    metadata: Optional[dict] = Field(None, validation_alias="activity_metadata")
    created_at: datetime
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class InvitationCreate(BaseModel):
    invitee_id: str


class Invitation(BaseModel):
    id: str
    community_id: str
    inviter_id: str
    invitee_id: str
    status: InvitationStatus
    created_at: datetime
    responded_at: Optional[datetime] = None
    community: Optional[Community] = None
    inviter: Optional[UserSummary] = None
    invitee: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)
