"""
Unit tests for the live chat service and its coupon bot

Author: TM3
Date: 2025-10-17
"""
import pytest
from unittest.mock import MagicMock

from storefront.domain.chat import ChatMessage, ChatSettings
from storefront.services.chat_service import (
    ChatService,
    INVALID_EMAIL_MESSAGE,
    parse_user_agent,
    is_valid_email,
)


CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Mobile Safari/537.36"
)
EDGE_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36 Edg/126.0.0.0"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_5 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.5 Safari/604.1"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:127.0) Gecko/20100101 Firefox/127.0"


class TestParseUserAgent:

    @pytest.mark.parametrize("ua,browser,device", [
        (CHROME_ANDROID, "Chrome", "Mobile"),
        (EDGE_WINDOWS, "Edge", "Desktop"),
        (SAFARI_IPAD, "Safari", "Tablet"),
        (FIREFOX_LINUX, "Firefox", "Desktop"),
        ("curl/8.0", "Unknown", "Desktop"),
    ])
    def test_detection(self, ua, browser, device):
        assert parse_user_agent(ua) == {"browser": browser, "device": device}

    def test_missing_header(self):
        assert parse_user_agent(None) == {"browser": "Unknown", "device": "Unknown"}

    def test_email_check(self):
        assert is_valid_email("jane@example.com")
        assert not is_valid_email("jane at example")


@pytest.fixture
def chat_repo(chat_settings):
    repo = MagicMock()
    repo.get_settings.return_value = chat_settings
    repo.add_messages.side_effect = lambda chat_id, messages: [
        ChatMessage(id=i + 1, chat_id=chat_id, **message) for i, message in enumerate(messages)
    ]
    return repo


@pytest.fixture
def newsletter_service():
    return MagicMock()


@pytest.fixture
def service(chat_repo, newsletter_service):
    return ChatService(chat_repo=chat_repo, newsletter_service=newsletter_service)


class TestConnect:

    def test_new_anonymous_visitor_is_asked_for_name(self, service, chat_repo, make_chat, chat_settings):
        chat = make_chat()
        chat_repo.find_open_by_visitor.return_value = None
        chat_repo.create.return_value = chat
        chat_repo.find_by_id.return_value = chat

        service.connect("v-123", user_agent=FIREFOX_LINUX, ip="10.0.0.1")

        assert chat_repo.create.call_args[1]['visitor_browser'] == "Firefox"
        bot = chat_repo.add_messages.call_args[0][1][0]
        assert bot == {"sender": "system", "sender_name": "Emily", "text": chat_settings.ask_name_message}

    def test_prechat_form_gets_personal_welcome(self, service, chat_repo, make_chat):
        chat = make_chat(visitor_name="Jane", visitor_email="jane@example.com")
        chat_repo.find_open_by_visitor.return_value = None
        chat_repo.create.return_value = chat
        chat_repo.find_by_id.return_value = chat

        service.connect("v-123", visitor_name="Jane", visitor_email="JANE@example.com")

        assert chat_repo.create.call_args[1]['visitor_email'] == "jane@example.com"
        text = chat_repo.add_messages.call_args[0][1][0]['text']
        assert text.startswith("Hi Jane!")
        assert "LUXE FASHION" in text

    def test_invalid_prechat_email_is_dropped(self, service, chat_repo, make_chat):
        chat_repo.find_open_by_visitor.return_value = None
        chat_repo.create.return_value = make_chat()
        chat_repo.find_by_id.return_value = make_chat()

        service.connect("v-123", visitor_name="Jane", visitor_email="not-an-email")

        assert chat_repo.create.call_args[1]['visitor_email'] == ""
        # Name is known, so no bot prompt on connect
        chat_repo.add_messages.assert_not_called()

    def test_resumed_chat_with_history_gets_no_bot_message(self, service, chat_repo, make_chat):
        chat = make_chat(messages=[{'sender': 'visitor', 'text': 'hello'}])
        chat_repo.find_open_by_visitor.return_value = chat
        chat_repo.find_by_id.return_value = chat

        service.connect("v-123", visitor_name="Jane")

        chat_repo.update.assert_called_once_with(5, {"visitor_name": "Jane"})
        chat_repo.add_messages.assert_not_called()

    def test_visitor_id_required(self, service):
        with pytest.raises(ValueError, match="Visitor ID is required"):
            service.connect("  ")


class TestVisitorMessage:

    def test_name_step_asks_for_email(self, service, chat_repo, make_chat):
        chat_repo.find_open_by_visitor.return_value = make_chat()
        chat_repo.find_by_id.return_value = make_chat(visitor_name="Jane")

        _, messages = service.visitor_message("v-123", "  Jane  ")

        chat_repo.update.assert_called_once_with(5, {"visitor_name": "Jane"})
        assert [m.sender for m in messages] == ["visitor", "system"]
        assert messages[1].text.startswith("Thank you, Jane!")

    def test_email_step_reveals_coupon(self, service, chat_repo, newsletter_service, make_chat):
        chat_repo.find_open_by_visitor.return_value = make_chat(visitor_name="Jane")
        chat_repo.find_by_id.return_value = make_chat(visitor_name="Jane", visitor_email="jane@example.com")

        _, messages = service.visitor_message("v-123", "Jane@Example.com")

        newsletter_service.subscribe_quietly.assert_called_once_with("jane@example.com", "Jane", "chat")
        chat_repo.update.assert_called_once_with(5, {"visitor_email": "jane@example.com"})
        assert "**LUXE80**" in messages[1].text

    def test_bad_email_asks_again(self, service, chat_repo, newsletter_service, make_chat):
        chat_repo.find_open_by_visitor.return_value = make_chat(visitor_name="Jane")
        chat_repo.find_by_id.return_value = make_chat(visitor_name="Jane")

        _, messages = service.visitor_message("v-123", "my email is jane")

        assert messages[1].text == INVALID_EMAIL_MESSAGE
        newsletter_service.subscribe_quietly.assert_not_called()
        chat_repo.update.assert_not_called()

    def test_active_chat_goes_to_team(self, service, chat_repo, make_chat):
        chat = make_chat(visitor_name="Jane", visitor_email="jane@example.com", status="pending")
        chat_repo.find_open_by_visitor.return_value = chat
        chat_repo.find_by_id.return_value = chat

        _, messages = service.visitor_message("v-123", "Do you ship to Canada?")

        assert len(messages) == 1
        assert messages[0].sender_name == "Jane"
        chat_repo.update.assert_called_once_with(5, {"status": "active"})

    def test_bot_disabled(self, service, chat_repo, make_chat):
        chat_repo.get_settings.return_value = ChatSettings(auto_reply_enabled=False)
        chat_repo.find_open_by_visitor.return_value = make_chat()
        chat_repo.find_by_id.return_value = make_chat()

        _, messages = service.visitor_message("v-123", "hello")

        assert len(messages) == 1
        chat_repo.update.assert_not_called()

    def test_no_open_chat(self, service, chat_repo):
        chat_repo.find_open_by_visitor.return_value = None

        with pytest.raises(LookupError, match="Please refresh"):
            service.visitor_message("v-123", "hello")

    def test_empty_message(self, service):
        with pytest.raises(ValueError, match="cannot be empty"):
            service.visitor_message("v-123", "   ")


class TestAdminSide:

    def test_reply_to_closed_chat(self, service, chat_repo, make_chat):
        chat_repo.find_by_id.return_value = make_chat(status="closed")

        with pytest.raises(ValueError, match="closed"):
            service.admin_reply(5, "Hello")

    def test_reply_uses_active_agent(self, service, chat_repo, make_chat):
        chat_repo.find_by_id.return_value = make_chat(status="pending")

        chat, message = service.admin_reply(5, " Hello Jane ")

        assert message.sender == "admin"
        assert message.sender_name == "Emily"
        assert message.text == "Hello Jane"
        chat_repo.update.assert_called_once_with(5, {"status": "active"})
        chat_repo.mark_read.assert_called_once_with(5)

    def test_close(self, service, chat_repo, make_chat):
        chat_repo.find_by_id.return_value = make_chat()

        _, message = service.close(5, admin_id=1)

        assert message.sender_name == "LUXE FASHION"
        fields = chat_repo.update.call_args[0][1]
        assert fields["status"] == "closed"
        assert fields["closed_by"] == 1

    def test_close_twice(self, service, chat_repo, make_chat):
        chat_repo.find_by_id.return_value = make_chat(status="closed")

        with pytest.raises(ValueError, match="already closed"):
            service.close(5, admin_id=1)

    def test_get_chat_marks_unread(self, service, chat_repo, make_chat):
        chat_repo.find_by_id.return_value = make_chat(messages=[{'sender': 'visitor', 'text': 'hi'}])

        service.get_chat(5)

        chat_repo.mark_read.assert_called_once_with(5)

    def test_update_settings_uppercases_code(self, service, chat_repo):
        service.update_settings({"coupon_code": " luxe50 "})

        chat_repo.update_settings.assert_called_once_with({"coupon_code": "LUXE50"})
