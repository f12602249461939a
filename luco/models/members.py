"""
Member and Subscriber Data Models

Members are registered club members with a monthly subscription amount;
subscribers are phone numbers opted in to SMS promotions.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from luco.models.shared import FirestoreBaseModel


class BaseMember(BaseModel):
    username: str = Field(..., min_length=3, description="Unique username")
    phone: str = Field(..., min_length=9, description="Unique phone number")
    subscription_amount: int = Field(..., ge=0, description="Subscription in UGX")


class Member(BaseMember, FirestoreBaseModel):
    """Member document model for the members collection."""

    id: str = Field(..., description="Document ID")
    password_hash: Optional[str] = Field(None, description="Hashed password")
    joined_at: Optional[datetime] = Field(None, description="Join timestamp")


class MemberCreate(BaseMember):
    password: str = Field(..., min_length=6)


class MemberLogin(BaseModel):
    username: str
    password: str


class MemberUpdate(BaseModel):
    username: str = Field(..., min_length=3)
    subscription_amount: int = Field(..., ge=0)


class MemberResponse(BaseMember):
    id: str
    joined_at: Optional[datetime] = None


class Subscriber(FirestoreBaseModel):
    """Subscriber document model for the subscribers collection."""

    id: str = Field(..., description="Document ID")
    phone: str = Field(..., description="Normalised phone number")
    subscribed_at: Optional[datetime] = Field(None, description="Subscription timestamp")


class SubscribeRequest(BaseModel):
    phone: str = Field(..., min_length=9)


class BatchDeleteRequest(BaseModel):
    subscriber_ids: List[str] = Field(..., min_length=1)


class BulkSmsRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=918)
    # Defaults to every subscriber when omitted
    phone_numbers: Optional[List[str]] = None


class BulkSmsResponse(BaseModel):
    recipients: int
    segments: int
    message: str
