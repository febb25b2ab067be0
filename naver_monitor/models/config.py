"""
Configuration models for the system.
"""

import codecs
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlparse

DEFAULT_SOURCE_URL = "https://news.naver.com/main/list.naver?mode=LSD&mid=sec&sid1=001"


@dataclass
class SourceConfig:
    """Where the listing page lives and how to read it."""

    url: str = DEFAULT_SOURCE_URL
    user_agent: str = "Mozilla/5.0"
    encoding: str = "EUC-KR"
    timeout: int = 10
    container_selectors: List[str] = field(
        default_factory=lambda: ["ul.type06", "ul.type07"]
    )
    item_selector: str = "li"
    title_selector: str = "dt > a"
    description_selector: str = "dd"

    def validate(self) -> bool:
        """Validate source configuration."""
        if not self.url or not self.url.strip():
            raise ValueError("Source URL cannot be empty")

        parsed_url = urlparse(self.url)
        if not parsed_url.scheme or not parsed_url.netloc:
            raise ValueError(f"Invalid source URL format: {self.url}")

        if parsed_url.scheme not in ["http", "https"]:
            raise ValueError(f"Source URL must use HTTP or HTTPS: {self.url}")

        if not self.user_agent or not self.user_agent.strip():
            raise ValueError("User agent cannot be empty")

        try:
            codecs.lookup(self.encoding)
        except LookupError:
            raise ValueError(f"Unknown source encoding: {self.encoding}")

        if not isinstance(self.timeout, int) or self.timeout <= 0:
            raise ValueError("Source timeout must be a positive integer")

        if not isinstance(self.container_selectors, list) or not self.container_selectors:
            raise ValueError("At least one container selector must be configured")

        for selector in self.container_selectors:
            if not isinstance(selector, str) or not selector.strip():
                raise ValueError("All container selectors must be non-empty strings")

        for name in ["item_selector", "title_selector", "description_selector"]:
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} cannot be empty")

        return True

    def item_selector_group(self) -> str:
        """CSS selector group matching every listing item."""
        return ", ".join(
            f"{container} {self.item_selector}" for container in self.container_selectors
        )


@dataclass
class SchedulerConfig:
    """Polling timer settings."""

    interval_seconds: float = 3.0

    def validate(self) -> bool:
        if not isinstance(self.interval_seconds, (int, float)):
            raise ValueError("Polling interval must be a number")

        if self.interval_seconds < 1:
            raise ValueError("Polling interval must be at least 1 second")

        if self.interval_seconds > 3600:
            raise ValueError("Polling interval cannot exceed 3600 seconds")

        return True


@dataclass
class ConditionSourceConfig:
    """Spreadsheet holding the condition/tag table."""

    path: Optional[str] = None
    sheet: Optional[str] = None
    watch_interval_seconds: int = 30

    def validate(self) -> bool:
        if self.path is not None:
            if not isinstance(self.path, str) or not self.path.strip():
                raise ValueError("Condition file path cannot be empty")

            if not self.path.lower().endswith(".xlsx"):
                raise ValueError("Condition file must be an .xlsx spreadsheet")

        if self.sheet is not None and not str(self.sheet).strip():
            raise ValueError("Condition sheet name cannot be empty")

        if (
            not isinstance(self.watch_interval_seconds, int)
            or self.watch_interval_seconds <= 0
        ):
            raise ValueError("Condition watch interval must be a positive integer")

        return True


@dataclass
class NotifierConfig:
    """Configuration for the notification sink."""

    type: str = "console"  # "console", "telegram", "discord", "slack"
    channel_id: str = "keyword_channel"
    channel_name: str = "Keyword Alerts"
    importance: str = "high"
    telegram: Optional[Dict[str, str]] = None
    discord: Optional[Dict[str, str]] = None
    slack: Optional[Dict[str, str]] = None

    def validate(self) -> bool:
        """Validate notifier configuration."""
        if not self.type:
            raise ValueError("Notifier type cannot be empty")

        valid_types = ["console", "telegram", "discord", "slack"]
        if self.type not in valid_types:
            raise ValueError(f"Notifier type must be one of: {valid_types}")

        if not self.channel_id or not self.channel_id.strip():
            raise ValueError("Notification channel id cannot be empty")

        valid_importance = ["low", "default", "high"]
        if self.importance not in valid_importance:
            raise ValueError(
                f"Notification importance must be one of: {valid_importance}"
            )

        if self.type == "telegram":
            if not self.telegram:
                raise ValueError(
                    "Telegram configuration required when type is 'telegram'"
                )

            for key in ["bot_token", "chat_id"]:
                if key not in self.telegram or not self.telegram[key]:
                    raise ValueError(f"Telegram configuration must include '{key}'")

        elif self.type == "discord":
            if not self.discord:
                raise ValueError(
                    "Discord configuration required when type is 'discord'"
                )

            webhook_url = self.discord.get("webhook_url")
            if not webhook_url:
                raise ValueError("Discord configuration must include 'webhook_url'")

            if not webhook_url.startswith("https://discord.com/api/webhooks/"):
                raise ValueError("Invalid Discord webhook URL format")

        elif self.type == "slack":
            if not self.slack:
                raise ValueError("Slack configuration required when type is 'slack'")

            webhook_url = self.slack.get("webhook_url")
            if not webhook_url:
                raise ValueError("Slack configuration must include 'webhook_url'")

            if not webhook_url.startswith("https://hooks.slack.com/"):
                raise ValueError("Invalid Slack webhook URL format")

        return True

    def platform_settings(self) -> Dict[str, str]:
        """Settings block for the selected notifier type."""
        return getattr(self, self.type, None) or {}


@dataclass
class LoggingConfig:
    directory: str = "logs"
    level: str = "INFO"

    def validate(self) -> bool:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")

        if not self.directory or not self.directory.strip():
            raise ValueError("Log directory cannot be empty")

        return True


@dataclass
class Configuration:
    """System configuration."""

    source: SourceConfig = field(default_factory=SourceConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    conditions: ConditionSourceConfig = field(default_factory=ConditionSourceConfig)
    notifier: NotifierConfig = field(default_factory=NotifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> bool:
        """Validate system configuration."""
        self.source.validate()
        self.scheduler.validate()
        self.conditions.validate()
        self.notifier.validate()
        self.logging.validate()

        return True
