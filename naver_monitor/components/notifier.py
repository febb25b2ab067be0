"""
Notification sinks for the Naver News Keyword Monitor.

This module delivers keyword-match notifications to the console or to a
messaging platform, and provides the permission collaborator that decides
whether notifications may be delivered at all.
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Dict, Optional, TextIO

import requests

from ..interfaces import INotifier
from ..models.config import NotifierConfig
from ..models.delivery import DeliveryResult
from ..models.notification import Importance, Notification

logger = logging.getLogger(__name__)


class BaseNotifier(ABC):
    """Base class for notification sinks. Delivery is a single attempt."""

    name = "base"

    def notify(self, notification: Notification) -> DeliveryResult:
        """
        Deliver a notification.

        Sink errors are reported in the result rather than raised.
        """
        try:
            notification.validate()
            self._send(notification)
        except Exception as e:
            logger.error(f"{self.name} notification failed: {e}")
            return DeliveryResult.failed(self.name, str(e))

        logger.info(f"Notification delivered via {self.name}: {notification.title}")
        return DeliveryResult.delivered(self.name)

    @abstractmethod
    def _send(self, notification: Notification) -> None:
        """
        Platform-specific delivery.

        Raises:
            Exception: If sending fails
        """

    @abstractmethod
    def test_connection(self) -> bool:
        """Test connection to the sink."""

    def close(self) -> None:
        """Release any resources held by the sink."""


class ConsoleNotifier(BaseNotifier):
    """Writes notifications to a text stream."""

    name = "console"

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def _send(self, notification: Notification) -> None:
        marker = "!!" if notification.importance == Importance.HIGH else "--"
        self.stream.write(
            f"{marker} [{notification.channel_name}] {notification.title}\n"
            f"{notification.body}\n"
        )
        self.stream.flush()

    def test_connection(self) -> bool:
        return True


class HTTPNotifier(BaseNotifier):
    """Base class for sinks reached over HTTP."""

    def __init__(self, timeout: int = 30):
        self.timeout = timeout
        self.session = requests.Session()

    def close(self) -> None:
        self.session.close()


class TelegramNotifier(HTTPNotifier):
    """Telegram Bot API notification sink."""

    name = "telegram"

    def __init__(self, bot_token: str, chat_id: str, timeout: int = 30):
        """
        Initialize Telegram notifier.

        Args:
            bot_token: Telegram bot token
            chat_id: Target chat ID for messages
            timeout: Request timeout in seconds
        """
        super().__init__(timeout)
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.base_url = f"https://api.telegram.org/bot{bot_token}"

    def _send(self, notification: Notification) -> None:
        payload = {
            "chat_id": self.chat_id,
            "text": notification.as_text(),
            "disable_notification": notification.importance == Importance.LOW,
        }

        response = self.session.post(
            f"{self.base_url}/sendMessage", json=payload, timeout=self.timeout
        )
        response.raise_for_status()

        result = response.json()
        if not result.get("ok"):
            raise Exception(
                f"Telegram API error: {result.get('description', 'Unknown error')}"
            )

    def test_connection(self) -> bool:
        try:
            response = self.session.get(f"{self.base_url}/getMe", timeout=10)
            response.raise_for_status()

            result = response.json()
            if result.get("ok"):
                bot_info = result.get("result", {})
                logger.info(
                    f"Connected to Telegram bot: {bot_info.get('username', 'Unknown')}"
                )
                return True

            logger.error(
                f"Telegram API error: {result.get('description', 'Unknown error')}"
            )
            return False

        except Exception as e:
            logger.error(f"Failed to connect to Telegram: {e}")
            return False


class DiscordNotifier(HTTPNotifier):
    """Discord webhook notification sink."""

    name = "discord"

    def __init__(self, webhook_url: str, timeout: int = 30):
        super().__init__(timeout)
        self.webhook_url = webhook_url

    def _send(self, notification: Notification) -> None:
        payload = {
            "username": notification.channel_name,
            "embeds": [
                {"title": notification.title, "description": notification.body}
            ],
        }

        response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
        response.raise_for_status()

    def test_connection(self) -> bool:
        # GET on a webhook URL returns its metadata without posting a message
        try:
            response = self.session.get(self.webhook_url, timeout=10)
            response.raise_for_status()
            logger.info("Discord webhook connection test successful")
            return True

        except Exception as e:
            logger.error(f"Failed to connect to Discord webhook: {e}")
            return False


class SlackNotifier(HTTPNotifier):
    """Slack incoming webhook notification sink."""

    name = "slack"

    def __init__(self, webhook_url: str, timeout: int = 30):
        super().__init__(timeout)
        self.webhook_url = webhook_url

    def _send(self, notification: Notification) -> None:
        payload = {"text": f"*{notification.title}*\n{notification.body}"}

        response = self.session.post(self.webhook_url, json=payload, timeout=self.timeout)
        response.raise_for_status()

        if response.text.strip() != "ok":
            raise Exception(f"Slack webhook error: {response.text}")

    def test_connection(self) -> bool:
        # Slack webhooks accept only POST; an empty payload yields a 400
        # "no_text" without posting anything, which proves the hook exists.
        try:
            response = self.session.post(self.webhook_url, json={}, timeout=10)
            if response.status_code == 400 and "no_text" in response.text:
                logger.info("Slack webhook connection test successful")
                return True

            logger.error(f"Slack webhook test failed: {response.text}")
            return False

        except Exception as e:
            logger.error(f"Failed to connect to Slack webhook: {e}")
            return False


class NotificationPermission:
    """
    Notification permission collaborator.

    Permission is requested once at startup. A sink that cannot be reached
    counts as not granted; checking continues but delivery is suppressed.
    """

    def __init__(self, notifier: INotifier):
        self.notifier = notifier
        self._granted: Optional[bool] = None

    @property
    def granted(self) -> bool:
        return bool(self._granted)

    @property
    def requested(self) -> bool:
        return self._granted is not None

    def request(self) -> bool:
        """Check the sink and remember the answer."""
        if self._granted:
            return True

        try:
            self._granted = bool(self.notifier.test_connection())
        except Exception as e:
            logger.error(f"Notification permission check failed: {e}")
            self._granted = False

        if not self._granted:
            logger.warning("Notification permission not granted; alerts will be suppressed")

        return self._granted


class NotifierFactory:
    """Factory for creating notification sinks."""

    @staticmethod
    def create_notifier(config: NotifierConfig) -> BaseNotifier:
        """
        Create the notifier selected by the configuration.

        Raises:
            ValueError: If the type is not supported or settings are missing
        """
        notifier_type = config.type.lower()
        settings: Dict[str, str] = config.platform_settings()

        if notifier_type == "console":
            return ConsoleNotifier()

        if notifier_type == "telegram":
            for key in ["bot_token", "chat_id"]:
                if key not in settings:
                    raise ValueError(f"Missing required Telegram config: {key}")

            return TelegramNotifier(
                bot_token=settings["bot_token"], chat_id=settings["chat_id"]
            )

        if notifier_type == "discord":
            if "webhook_url" not in settings:
                raise ValueError("Missing required Discord config: webhook_url")

            return DiscordNotifier(webhook_url=settings["webhook_url"])

        if notifier_type == "slack":
            if "webhook_url" not in settings:
                raise ValueError("Missing required Slack config: webhook_url")

            return SlackNotifier(webhook_url=settings["webhook_url"])

        raise ValueError(f"Unsupported notifier type: {config.type}")
