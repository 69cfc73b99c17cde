"""
Live chat sessions, messages and bot settings
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from storefront.core.database import Base


class Chat(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, index=True)
    visitor_id = Column(String(100), nullable=False, index=True)
    visitor_name = Column(String(50), nullable=False, default="")
    visitor_email = Column(String(254), nullable=False, default="")
    visitor_ip = Column(String(64))
    visitor_browser = Column(String(50))
    visitor_device = Column(String(20))
    status = Column(String(20), nullable=False, default="active", index=True)
    last_message_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    closed_at = Column(DateTime(timezone=True))
    closed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    messages = relationship("ChatMessage", back_populates="chat", cascade="all, delete-orphan")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    chat_id = Column(Integer, ForeignKey("chats.id", ondelete="CASCADE"), index=True, nullable=False)
    sender = Column(String(20), nullable=False)
    sender_name = Column(String(50))
    text = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    chat = relationship("Chat", back_populates="messages")


class ChatSettings(Base):
    """
    Single-row table (id = 1)
    """
    __tablename__ = "chat_settings"

    id = Column(Integer, primary_key=True)
    welcome_message = Column(String(500), nullable=False)
    ask_name_message = Column(String(500), nullable=False)
    ask_email_message = Column(String(500), nullable=False)
    coupon_message = Column(String(1000), nullable=False)
    offline_message = Column(String(500), nullable=False)
    coupon_code = Column(String(30), nullable=False)
    is_online = Column(Boolean, nullable=False, default=True)
    auto_reply_enabled = Column(Boolean, nullable=False, default=True)
    business_hours_start = Column(String(5), nullable=False, default="09:00")
    business_hours_end = Column(String(5), nullable=False, default="21:00")
    active_agent_name = Column(String(50), nullable=False, default="Emily")
    active_agent_avatar = Column(String(10), nullable=False, default="👩")

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
