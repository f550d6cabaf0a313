# api/schemas/borrow_request.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from core.constants import BorrowRequestStatus, HandoverMethod, ReturnMethod
from api.schemas.book import BookSummary
from api.schemas.user import UserSummary


class BorrowRequestCreate(BaseModel):
    book_id: str
    request_message: Optional[str] = Field(None, max_length=1000)


class Approve(BaseModel):
    due_date: datetime
    handover_method: HandoverMethod
    handover_address: Optional[str] = Field(None, max_length=500)
    handover_datetime: Optional[datetime] = None
    handover_instructions: Optional[str] = Field(None, max_length=1000)
    response_message: Optional[str] = Field(None, max_length=1000)


class Deny(BaseModel):
    response_message: Optional[str] = Field(None, max_length=1000)


class TrackingUpdate(BaseModel):
    tracking: str = Field(..., min_length=1, max_length=255)


class InitiateReturn(BaseModel):
    return_method: ReturnMethod
    return_address: Optional[str] = Field(None, max_length=500)
    return_datetime: Optional[datetime] = None
    return_instructions: Optional[str] = Field(None, max_length=1000)
    return_tracking: Optional[str] = Field(None, max_length=255)


class BorrowRequest(BaseModel):
    id: str
    book_id: str
    borrower_id: str
    owner_id: str
    status: BorrowRequestStatus
    request_message: Optional[str] = None
    response_message: Optional[str] = None
    requested_at: datetime
    approved_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    returned_at: Optional[datetime] = None

    handover_method: Optional[HandoverMethod] = None
    handover_address: Optional[str] = None
    handover_datetime: Optional[datetime] = None
    handover_instructions: Optional[str] = None
    handover_tracking: Optional[str] = None
    handover_completed_at: Optional[datetime] = None

    return_method: Optional[ReturnMethod] = None
    return_address: Optional[str] = None
    return_datetime: Optional[datetime] = None
    return_instructions: Optional[str] = None
    return_tracking: Optional[str] = None
    return_initiated_at: Optional[datetime] = None

    created_at: datetime
    updated_at: datetime

    book: Optional[BookSummary] = None
    borrower: Optional[UserSummary] = None
    owner: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)
