"""
Live Chat Service - visitor conversations and the coupon bot

Bot flow for a new visitor (auto replies enabled):

    waiting_name  -> visitor sends a name  -> bot asks for the email
    waiting_email -> visitor sends an email -> newsletter signup + coupon
    active_chat   -> messages go to the team

Every operation returns the messages it created so the WebSocket layer can
fan them out.

Author: TM3
Date: 2025-10-17
"""
import logging
import re
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Tuple

from pydantic import EmailStr, TypeAdapter, ValidationError

from storefront.core.config import settings
from storefront.domain.chat import (
    Chat,
    ChatMessage,
    ChatSettings,
    STATE_WAITING_NAME,
    STATE_WAITING_EMAIL,
)
from storefront.domain.pagination import normalize_paging, build_pagination
from storefront.repositories.chat_repository import ChatRepository
from storefront.services.newsletter_service import NewsletterService

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 50

WELCOME_TEMPLATE = "Hi {name}! 👋 Welcome to {store}. I'm {agent}. How can I help you today?"
CLOSE_TEMPLATE = "This conversation has been closed. Thank you for chatting with {store}! 🙏"
INVALID_EMAIL_MESSAGE = (
    "That doesn't look like a valid email. "
    "Please enter your email address (e.g. name@example.com)"
)

_email_adapter = TypeAdapter(EmailStr)


def parse_user_agent(ua: Optional[str]) -> Dict[str, str]:
    """Rough browser/device detection for the admin inbox"""
    if not ua:
        return {"browser": "Unknown", "device": "Unknown"}

    lowered = ua.lower()

    if "mobile" in lowered or "iphone" in lowered or ("android" in lowered and "mobile" in lowered):
        device = "Mobile"
    elif "tablet" in lowered or "ipad" in lowered:
        device = "Tablet"
    else:
        device = "Desktop"

    if re.search(r"edg(e|a|ios)?/", lowered):
        browser = "Edge"
    elif "opr/" in lowered or "opera" in lowered:
        browser = "Opera"
    elif "chrome/" in lowered and "chromium" not in lowered:
        browser = "Chrome"
    elif "firefox/" in lowered:
        browser = "Firefox"
    elif "safari/" in lowered and "chrome" not in lowered:
        browser = "Safari"
    else:
        browser = "Unknown"

    return {"browser": browser, "device": device}


def is_valid_email(value: str) -> bool:
    try:
        _email_adapter.validate_python(value)
        return True
    except ValidationError:
        return False


class ChatService:
    """
    Chat sessions for visitors and the admin inbox
    """

    def __init__(self, chat_repo: Optional[ChatRepository] = None,
                 newsletter_service: Optional[NewsletterService] = None):
        self.chat_repo = chat_repo or ChatRepository()
        self.newsletter_service = newsletter_service or NewsletterService()

    def get_settings(self) -> ChatSettings:
        return self.chat_repo.get_settings()

    def update_settings(self, fields: Dict[str, Any]) -> ChatSettings:
        if fields.get("coupon_code"):
            fields["coupon_code"] = fields["coupon_code"].strip().upper()
        settings_ = self.chat_repo.update_settings(fields)
        logger.info(f"Chat settings updated: {', '.join(sorted(fields))}")
        return settings_

    def _bot(self, chat_settings: ChatSettings, text: str) -> Dict[str, Any]:
        return {"sender": "system", "sender_name": chat_settings.active_agent_name, "text": text}

    # ------------------------------------------------------------------
    # Visitor side
    # ------------------------------------------------------------------

    def connect(self, visitor_id: str, visitor_name: Optional[str] = None,
                visitor_email: Optional[str] = None, ip: Optional[str] = None,
                user_agent: Optional[str] = None) -> Tuple[Chat, ChatSettings]:
        """
        Resume the visitor's open chat or start a new one
        """
        if not visitor_id or not visitor_id.strip():
            raise ValueError("Visitor ID is required")

        chat_settings = self.chat_repo.get_settings()
        name = (visitor_name or "").strip()[:MAX_NAME_LENGTH]
        email = (visitor_email or "").strip().lower()
        if email and not is_valid_email(email):
            email = ""

        agent = parse_user_agent(user_agent)
        chat = self.chat_repo.find_open_by_visitor(visitor_id)

        if chat is None:
            chat = self.chat_repo.create(
                visitor_id,
                visitor_name=name,
                visitor_email=email,
                visitor_ip=ip,
                visitor_browser=agent["browser"],
                visitor_device=agent["device"],
            )
            logger.info(f"Chat started for visitor {visitor_id} ({name or 'unnamed'}) {agent['browser']}/{agent['device']}")
            name_missing = email_missing = True
        else:
            name_missing = not (chat.visitor_name or "").strip()
            email_missing = not (chat.visitor_email or "").strip()

            updates: Dict[str, Any] = {}
            if ip and not chat.visitor_ip:
                updates["visitor_ip"] = ip
            if agent["browser"] != "Unknown" and not chat.visitor_browser:
                updates["visitor_browser"] = agent["browser"]
            if name_missing and name:
                updates["visitor_name"] = name
            if email_missing and email:
                updates["visitor_email"] = email
            if updates:
                self.chat_repo.update(chat.id, updates)

        if chat_settings.auto_reply_enabled and not chat.messages:
            if name_missing and email_missing and name and email:
                welcome = WELCOME_TEMPLATE.format(
                    name=name, store=settings.STORE_NAME, agent=chat_settings.active_agent_name
                )
                self.chat_repo.add_messages(chat.id, [self._bot(chat_settings, welcome)])
            elif name_missing and not name:
                self.chat_repo.add_messages(chat.id, [self._bot(chat_settings, chat_settings.ask_name_message)])

        return self.chat_repo.find_by_id(chat.id), chat_settings

    def visitor_message(self, visitor_id: str, text: str) -> Tuple[Chat, List[ChatMessage]]:
        """
        Store a visitor message and run the bot step for the chat's state

        Returns:
            Tuple of (updated chat, messages created: visitor message first)
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Message cannot be empty")

        chat = self.chat_repo.find_open_by_visitor(visitor_id)
        if chat is None:
            raise LookupError("Chat session not found. Please refresh.")

        chat_settings = self.chat_repo.get_settings()
        state = chat.state

        messages = [{
            "sender": "visitor",
            "sender_name": chat.visitor_name or "Visitor",
            "text": text,
        }]
        updates: Dict[str, Any] = {}

        if chat_settings.auto_reply_enabled and state == STATE_WAITING_NAME:
            updates["visitor_name"] = text[:MAX_NAME_LENGTH]
            messages.append(self._bot(
                chat_settings,
                chat_settings.ask_email_message.replace("{name}", updates["visitor_name"])
            ))

        elif chat_settings.auto_reply_enabled and state == STATE_WAITING_EMAIL:
            if is_valid_email(text):
                email = text.lower()
                updates["visitor_email"] = email
                self.newsletter_service.subscribe_quietly(email, chat.visitor_name or None, "chat")
                messages.append(self._bot(
                    chat_settings,
                    chat_settings.coupon_message.replace("{coupon}", chat_settings.coupon_code)
                ))
                logger.info(f"Chat coupon {chat_settings.coupon_code} revealed to {email}")
            else:
                messages.append(self._bot(chat_settings, INVALID_EMAIL_MESSAGE))

        if chat.status == "pending":
            updates["status"] = "active"

        if updates:
            self.chat_repo.update(chat.id, updates)
        saved = self.chat_repo.add_messages(chat.id, messages)

        return self.chat_repo.find_by_id(chat.id), saved

    # ------------------------------------------------------------------
    # Admin side
    # ------------------------------------------------------------------

    def list_chats(self, status: Optional[str] = None, search: Optional[str] = None,
                   page: int = 1, limit: int = 50) -> Dict[str, Any]:
        page, limit, offset = normalize_paging(page, limit, 50, 100)
        chats, total = self.chat_repo.find_all(status=status, search=search, limit=limit, offset=offset)
        return {
            "chats": [chat.to_dict(include_messages=False) for chat in chats],
            "pagination": build_pagination(page, limit, total),
            "status_counts": self.chat_repo.status_counts(),
        }

    def get_chat(self, chat_id: int, mark_read: bool = True) -> Optional[Chat]:
        chat = self.chat_repo.find_by_id(chat_id)
        if chat and mark_read and chat.unread_count:
            self.chat_repo.mark_read(chat_id)
            chat = self.chat_repo.find_by_id(chat_id)
        return chat

    def admin_reply(self, chat_id: int, text: str, agent_name: Optional[str] = None) -> Optional[Tuple[Chat, ChatMessage]]:
        text = (text or "").strip()
        if not text:
            raise ValueError("Reply cannot be empty")

        chat = self.chat_repo.find_by_id(chat_id)
        if not chat:
            return None
        if chat.status == "closed":
            raise ValueError("This chat is closed")

        if not agent_name:
            agent_name = self.chat_repo.get_settings().active_agent_name

        if chat.status == "pending":
            self.chat_repo.update(chat_id, {"status": "active"})

        saved = self.chat_repo.add_messages(chat_id, [
            {"sender": "admin", "sender_name": agent_name, "text": text}
        ])
        self.chat_repo.mark_read(chat_id)
        return self.chat_repo.find_by_id(chat_id), saved[0]

    def mark_read(self, chat_id: int) -> int:
        return self.chat_repo.mark_read(chat_id)

    def close(self, chat_id: int, admin_id: int) -> Optional[Tuple[Chat, ChatMessage]]:
        chat = self.chat_repo.find_by_id(chat_id)
        if not chat:
            return None
        if chat.status == "closed":
            raise ValueError("This chat is already closed")

        saved = self.chat_repo.add_messages(chat_id, [{
            "sender": "system",
            "sender_name": settings.STORE_NAME,
            "text": CLOSE_TEMPLATE.format(store=settings.STORE_NAME),
        }])
        self.chat_repo.update(chat_id, {
            "status": "closed",
            "closed_at": datetime.now(timezone.utc),
            "closed_by": admin_id,
        })
        logger.info(f"Chat {chat_id} closed by admin {admin_id}")
        return self.chat_repo.find_by_id(chat_id), saved[0]

    def delete_chat(self, chat_id: int) -> bool:
        return self.chat_repo.delete(chat_id)


# Singleton instance for easy import
_chat_service: Optional[ChatService] = None

def get_chat_service() -> ChatService:
    """Get the singleton chat service instance"""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service
