"""
Tests for notification sinks and the permission collaborator.
"""

import io
from unittest.mock import Mock, patch

import pytest
import requests

from naver_monitor.components.notifier import (
    ConsoleNotifier,
    DiscordNotifier,
    NotificationPermission,
    NotifierFactory,
    SlackNotifier,
    TelegramNotifier,
)
from naver_monitor.models.config import NotifierConfig
from naver_monitor.models.notification import Importance, Notification

pytestmark = pytest.mark.unit


@pytest.fixture
def notification():
    return Notification(
        title="Keyword Found!",
        body="SAMSUNG\n삼성전자 신제품 출시\n갤럭시 새 모델 공개",
    )


class TestConsoleNotifier:
    """Test cases for ConsoleNotifier."""

    def test_writes_title_and_body(self, notification):
        stream = io.StringIO()
        result = ConsoleNotifier(stream).notify(notification)

        assert result.success is True
        assert result.sink == "console"
        output = stream.getvalue()
        assert "!! [Keyword Alerts] Keyword Found!" in output
        assert "삼성전자 신제품 출시" in output

    def test_low_importance_marker(self, notification):
        notification.importance = Importance.LOW
        stream = io.StringIO()
        ConsoleNotifier(stream).notify(notification)

        assert stream.getvalue().startswith("-- ")

    def test_invalid_notification_fails_without_raising(self):
        stream = io.StringIO()
        result = ConsoleNotifier(stream).notify(Notification(title="", body="x"))

        assert result.success is False
        assert "title cannot be empty" in result.error_message
        assert stream.getvalue() == ""

    def test_long_description_is_still_delivered(self):
        stream = io.StringIO()
        notification = Notification(
            title="Keyword Found!", body="SAMSUNG\n삼성전자\n" + "설명" * 3000
        )

        result = ConsoleNotifier(stream).notify(notification)

        assert result.success is True
        assert "SAMSUNG" in stream.getvalue()

    def test_connection(self):
        assert ConsoleNotifier(io.StringIO()).test_connection() is True


class TestTelegramNotifier:
    """Test cases for TelegramNotifier."""

    def setup_method(self):
        self.notifier = TelegramNotifier(bot_token="123:abc", chat_id="42")

    def test_send_message(self, notification):
        response = Mock()
        response.json.return_value = {"ok": True}

        with patch.object(self.notifier.session, "post", return_value=response) as post:
            result = self.notifier.notify(notification)

        assert result.success is True
        url = post.call_args[0][0]
        payload = post.call_args[1]["json"]
        assert url == "https://api.telegram.org/bot123:abc/sendMessage"
        assert payload["chat_id"] == "42"
        assert payload["text"].startswith("Keyword Found!\nSAMSUNG")
        assert payload["disable_notification"] is False

    def test_api_error_reported_in_result(self, notification):
        response = Mock()
        response.json.return_value = {"ok": False, "description": "chat not found"}

        with patch.object(self.notifier.session, "post", return_value=response):
            result = self.notifier.notify(notification)

        assert result.success is False
        assert "chat not found" in result.error_message

    def test_http_error_reported_in_result(self, notification):
        with patch.object(
            self.notifier.session,
            "post",
            side_effect=requests.exceptions.ConnectionError("down"),
        ):
            result = self.notifier.notify(notification)

        assert result.success is False

    def test_connection(self):
        response = Mock()
        response.json.return_value = {"ok": True, "result": {"username": "bot"}}

        with patch.object(self.notifier.session, "get", return_value=response):
            assert self.notifier.test_connection() is True

    def test_connection_failure(self):
        with patch.object(
            self.notifier.session, "get", side_effect=requests.exceptions.Timeout()
        ):
            assert self.notifier.test_connection() is False


class TestWebhookNotifiers:
    """Test cases for Discord and Slack sinks."""

    def test_discord_payload(self, notification):
        notifier = DiscordNotifier("https://discord.com/api/webhooks/1/abc")

        with patch.object(notifier.session, "post", return_value=Mock()) as post:
            result = notifier.notify(notification)

        assert result.success is True
        embed = post.call_args[1]["json"]["embeds"][0]
        assert embed["title"] == "Keyword Found!"
        assert embed["description"] == notification.body

    def test_slack_requires_ok_body(self, notification):
        notifier = SlackNotifier("https://hooks.slack.com/services/T/B/X")

        with patch.object(notifier.session, "post", return_value=Mock(text="ok")):
            assert notifier.notify(notification).success is True

        with patch.object(
            notifier.session, "post", return_value=Mock(text="invalid_payload")
        ):
            assert notifier.notify(notification).success is False

    def test_slack_connection_check(self):
        notifier = SlackNotifier("https://hooks.slack.com/services/T/B/X")
        response = Mock(status_code=400, text="no_text")

        with patch.object(notifier.session, "post", return_value=response):
            assert notifier.test_connection() is True

    def test_close_releases_session(self):
        notifier = DiscordNotifier("https://discord.com/api/webhooks/1/x")

        with patch.object(notifier.session, "close") as close:
            notifier.close()

        close.assert_called_once()

    def test_console_close_is_noop(self):
        ConsoleNotifier(io.StringIO()).close()


class TestNotificationPermission:
    """Test cases for NotificationPermission."""

    def test_not_requested_initially(self):
        permission = NotificationPermission(Mock())

        assert permission.requested is False
        assert permission.granted is False

    def test_granted_when_sink_reachable(self, mock_notifier):
        permission = NotificationPermission(mock_notifier)

        assert permission.request() is True
        assert permission.granted is True

    def test_denied_when_sink_unreachable(self, mock_notifier):
        mock_notifier.test_connection.return_value = False
        permission = NotificationPermission(mock_notifier)

        assert permission.request() is False
        assert permission.requested is True
        assert permission.granted is False

    def test_check_exception_counts_as_denied(self, mock_notifier):
        mock_notifier.test_connection.side_effect = RuntimeError("boom")

        assert NotificationPermission(mock_notifier).request() is False

    def test_granted_permission_is_not_rechecked(self, mock_notifier):
        permission = NotificationPermission(mock_notifier)
        permission.request()
        permission.request()

        mock_notifier.test_connection.assert_called_once()


class TestNotifierFactory:
    """Test cases for NotifierFactory."""

    def test_console_default(self):
        assert isinstance(
            NotifierFactory.create_notifier(NotifierConfig()), ConsoleNotifier
        )

    def test_telegram(self):
        config = NotifierConfig(
            type="telegram", telegram={"bot_token": "t", "chat_id": "c"}
        )
        notifier = NotifierFactory.create_notifier(config)

        assert isinstance(notifier, TelegramNotifier)
        assert notifier.chat_id == "c"

    def test_missing_settings_raise(self):
        with pytest.raises(ValueError, match="webhook_url"):
            NotifierFactory.create_notifier(NotifierConfig(type="discord", discord={}))

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError, match="Unsupported notifier type"):
            NotifierFactory.create_notifier(NotifierConfig(type="pager"))
