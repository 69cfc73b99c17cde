"""
Newsletter Domain Models

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, EmailStr, field_validator
from typing import Optional
from datetime import datetime


SUBSCRIBER_STATUSES = ("subscribed", "unsubscribed", "bounced")
SUBSCRIBER_SOURCES = ("website", "checkout", "popup", "footer", "import", "manual", "chat")


class Subscriber(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    status: str = "subscribed"
    source: str = "website"
    ip_address: Optional[str] = None
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_subscribed(self) -> bool:
        return self.status == "subscribed"

    def to_dict(self) -> dict:
        return self.model_dump()


class SubscribeRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)
    source: str = "website"

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()

    @field_validator("source")
    @classmethod
    def _check_source(cls, v):
        if v not in SUBSCRIBER_SOURCES:
            raise ValueError(f"source must be one of: {', '.join(SUBSCRIBER_SOURCES)}")
        return v


class UnsubscribeRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v):
        return v.lower()
