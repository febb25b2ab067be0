"""
Notification payload models.
"""

from dataclasses import dataclass
from enum import Enum

# Keeps title, newline and body inside Telegram's 4096 character message limit
MAX_BODY_LENGTH = 3800
TRUNCATION_MARKER = "..."


class Importance(Enum):
    """Notification importance, mirrored onto the delivery channel."""

    LOW = "low"
    DEFAULT = "default"
    HIGH = "high"


@dataclass
class Notification:
    """Title/body notification ready for delivery."""

    title: str
    body: str
    channel_id: str = "keyword_channel"
    channel_name: str = "Keyword Alerts"
    importance: Importance = Importance.HIGH
    notification_id: int = 0

    def __post_init__(self):
        if isinstance(self.body, str) and len(self.body) > MAX_BODY_LENGTH:
            keep = MAX_BODY_LENGTH - len(TRUNCATION_MARKER)
            self.body = self.body[:keep] + TRUNCATION_MARKER

    def validate(self) -> bool:
        """Validate notification data."""
        if not isinstance(self.title, str):
            raise ValueError("title must be a string")

        if not self.title.strip():
            raise ValueError("title cannot be empty")

        if len(self.title) > 200:
            raise ValueError("title too long (max 200 characters)")

        if not isinstance(self.body, str):
            raise ValueError("body must be a string")

        if not self.channel_id or not self.channel_id.strip():
            raise ValueError("channel_id cannot be empty")

        if not isinstance(self.importance, Importance):
            raise ValueError("importance must be an Importance enum")

        return True

    def as_text(self) -> str:
        """Plain-text rendering used by text-only sinks."""
        return f"{self.title}\n{self.body}"
