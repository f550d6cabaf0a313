# api/schemas/message.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from api.schemas.user import UserSummary


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class Message(BaseModel):
    id: str
    borrow_request_id: str
    sender_id: str
    content: str
    read_by_owner: bool
    read_by_borrower: bool
    created_at: datetime
    sender: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    count: int
