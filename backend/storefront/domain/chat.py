"""
Live Chat Domain Models

Visitors chat with the store team; the bot collects name and email first
and hands out the chat coupon once the email is captured.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime


CHAT_STATUSES = ("active", "waiting", "pending", "closed")
MESSAGE_SENDERS = ("visitor", "admin", "system", "bot")

# Visitor-side conversation states
STATE_WAITING_NAME = "waiting_name"
STATE_WAITING_EMAIL = "waiting_email"
STATE_ACTIVE_CHAT = "active_chat"


class ChatMessage(BaseModel):
    id: Optional[int] = None
    chat_id: Optional[int] = None
    sender: str
    sender_name: Optional[str] = None
    text: str
    read: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Chat(BaseModel):
    """
    Chat session of one visitor

    Fields:
        visitor_id: Client-generated id kept in the visitor's browser
        visitor_name / visitor_email: Collected by the pre-chat form or the bot
        visitor_ip / visitor_browser / visitor_device: Connection metadata
        status: active, waiting, pending, closed
        messages: Ordered conversation
    """

    id: int
    visitor_id: str
    visitor_name: Optional[str] = ""
    visitor_email: Optional[str] = ""
    visitor_ip: Optional[str] = None
    visitor_browser: Optional[str] = None
    visitor_device: Optional[str] = None
    status: str = "active"
    messages: List[ChatMessage] = Field(default_factory=list)
    last_message_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    closed_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("messages", mode="before")
    @classmethod
    def _none_to_list(cls, v):
        return v or []

    @property
    def state(self) -> str:
        if not (self.visitor_name or "").strip():
            return STATE_WAITING_NAME
        if not (self.visitor_email or "").strip():
            return STATE_WAITING_EMAIL
        return STATE_ACTIVE_CHAT

    @property
    def unread_count(self) -> int:
        """Visitor messages the team has not read yet"""
        return sum(1 for message in self.messages if message.sender == "visitor" and not message.read)

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None

    def to_dict(self, include_messages: bool = True) -> dict:
        data = self.model_dump(exclude={"messages"})
        data['chat_state'] = self.state
        data['unread_count'] = self.unread_count
        last = self.last_message
        data['last_message'] = last.model_dump() if last else None
        if include_messages:
            data['messages'] = [message.model_dump() for message in self.messages]
        return data


class ChatSettings(BaseModel):
    """Bot and team settings; a single row"""

    welcome_message: str = Field("Welcome to LUXE FASHION! 👋 How can we help you today?", max_length=500)
    ask_name_message: str = Field("Before we begin, may I know your name please?", max_length=500)
    ask_email_message: str = Field(
        "Thank you, {name}! Could you share your email so we can assist you better?",
        max_length=500,
    )
    coupon_message: str = Field(
        "🎉 Here's an exclusive coupon just for you: **{coupon}** for 80% OFF your order! "
        "Our team will be with you shortly. Feel free to ask anything!",
        max_length=1000,
    )
    offline_message: str = Field(
        "Our team is currently offline. Please leave your message and we will get back to you soon!",
        max_length=500,
    )
    coupon_code: str = "LUXE80"
    is_online: bool = True
    auto_reply_enabled: bool = True
    business_hours_start: str = "09:00"
    business_hours_end: str = "21:00"
    active_agent_name: str = "Emily"
    active_agent_avatar: str = "👩"

    model_config = ConfigDict(from_attributes=True)

    @field_validator("coupon_code")
    @classmethod
    def _upper_code(cls, v):
        return v.strip().upper()


class ChatSettingsUpdate(BaseModel):
    welcome_message: Optional[str] = Field(None, max_length=500)
    ask_name_message: Optional[str] = Field(None, max_length=500)
    ask_email_message: Optional[str] = Field(None, max_length=500)
    coupon_message: Optional[str] = Field(None, max_length=1000)
    offline_message: Optional[str] = Field(None, max_length=500)
    coupon_code: Optional[str] = Field(None, min_length=3, max_length=30)
    is_online: Optional[bool] = None
    auto_reply_enabled: Optional[bool] = None
    business_hours_start: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    business_hours_end: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    active_agent_name: Optional[str] = Field(None, max_length=50)
    active_agent_avatar: Optional[str] = Field(None, max_length=10)


class AdminReplyRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class VisitorMessageRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class VisitorConnectRequest(BaseModel):
    visitor_id: str = Field(..., min_length=1, max_length=100)
    visitor_name: Optional[str] = Field(None, max_length=50)
    visitor_email: Optional[str] = Field(None, max_length=254)
