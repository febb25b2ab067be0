"""
Configuration management for the Naver News Keyword Monitor.
"""

import json
import os
from typing import Any, Dict, Optional

import yaml

from ..models.config import (
    ConditionSourceConfig,
    Configuration,
    LoggingConfig,
    NotifierConfig,
    SchedulerConfig,
    SourceConfig,
)

DEFAULT_CONFIG_PATHS = [
    "config/config.yaml",
    "config/config.yml",
    "config/config.json",
    "config.yaml",
    "config.yml",
    "config.json",
]


class ConfigurationManager:
    """Manages loading, validation, and reloading of system configuration."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file. If None, standard
                locations are searched and built-in defaults are used when
                none exists.
        """
        self.config_path = config_path or self._find_config_file()
        self._config: Optional[Configuration] = None
        self._last_modified: Optional[float] = None

    def _find_config_file(self) -> Optional[str]:
        for path in DEFAULT_CONFIG_PATHS:
            if os.path.exists(path):
                return path
        return None

    def load_config(self) -> Configuration:
        """
        Load configuration from file, or defaults when no file is in use.

        Returns:
            Configuration object with validated settings.

        Raises:
            FileNotFoundError: If an explicit configuration file doesn't exist.
            ValueError: If configuration is invalid or file cannot be read.
        """
        if self.config_path is None:
            config = Configuration()
            config.validate()
            self._config = config
            return config

        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        try:
            raw_config = self._read_file(self.config_path)
            raw_config = self._expand_env_vars(raw_config)

            config = self._parse_config(raw_config)
            config.validate()

            self._config = config
            self._last_modified = os.path.getmtime(self.config_path)

            return config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {e}")
        except ValueError:
            raise
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")

    @staticmethod
    def _read_file(path: str) -> Dict[str, Any]:
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith(".json"):
                raw_config = json.load(f)
            else:
                raw_config = yaml.safe_load(f)

        if raw_config is None:
            return {}

        if not isinstance(raw_config, dict):
            raise ValueError("Configuration root must be a mapping")

        return raw_config

    def _expand_env_vars(self, obj: Any) -> Any:
        """Recursively expand ``${VAR_NAME}`` values from the environment."""
        if isinstance(obj, dict):
            return {key: self._expand_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [self._expand_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            if obj.startswith("${") and obj.endswith("}"):
                var_name = obj[2:-1]
                env_value = os.getenv(var_name)
                if env_value is None:
                    raise ValueError(f"Environment variable '{var_name}' not found")
                return env_value
            return obj
        else:
            return obj

    def _parse_config(self, raw_config: Dict[str, Any]) -> Configuration:
        """Parse raw configuration dictionary into Configuration object."""
        defaults = SourceConfig()

        source_data = raw_config.get("source", {}) or {}
        source = SourceConfig(
            url=source_data.get("url", defaults.url),
            user_agent=source_data.get("user_agent", defaults.user_agent),
            encoding=source_data.get("encoding", defaults.encoding),
            timeout=source_data.get("timeout", defaults.timeout),
            container_selectors=source_data.get(
                "container_selectors", defaults.container_selectors
            ),
            item_selector=source_data.get("item_selector", defaults.item_selector),
            title_selector=source_data.get("title_selector", defaults.title_selector),
            description_selector=source_data.get(
                "description_selector", defaults.description_selector
            ),
        )

        scheduler_data = raw_config.get("scheduler", {}) or {}
        scheduler = SchedulerConfig(
            interval_seconds=scheduler_data.get("interval_seconds", 3.0)
        )

        conditions_data = raw_config.get("conditions", {}) or {}
        conditions = ConditionSourceConfig(
            path=conditions_data.get("path"),
            sheet=conditions_data.get("sheet"),
            watch_interval_seconds=conditions_data.get("watch_interval_seconds", 30),
        )

        notifier_data = raw_config.get("notifier", {}) or {}
        notifier = NotifierConfig(
            type=notifier_data.get("type", "console"),
            channel_id=notifier_data.get("channel_id", "keyword_channel"),
            channel_name=notifier_data.get("channel_name", "Keyword Alerts"),
            importance=notifier_data.get("importance", "high"),
            telegram=notifier_data.get("telegram"),
            discord=notifier_data.get("discord"),
            slack=notifier_data.get("slack"),
        )

        logging_data = raw_config.get("logging", {}) or {}
        logging_config = LoggingConfig(
            directory=logging_data.get("directory", "logs"),
            level=logging_data.get("level", "INFO"),
        )

        return Configuration(
            source=source,
            scheduler=scheduler,
            conditions=conditions,
            notifier=notifier,
            logging=logging_config,
        )

    def get_config(self) -> Configuration:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    def reload_if_changed(self) -> bool:
        """
        Reload configuration if file has been modified.

        Returns:
            True if configuration was reloaded, False otherwise.
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return False

        current_modified = os.path.getmtime(self.config_path)

        if self._last_modified is None or current_modified > self._last_modified:
            try:
                self.load_config()
                return True
            except (ValueError, FileNotFoundError):
                # If reload fails, keep current config
                self._last_modified = current_modified
                return False

        return False

    def get_config_template(self) -> Dict[str, Any]:
        """Template configuration dictionary with every supported key."""
        defaults = SourceConfig()
        return {
            "source": {
                "url": defaults.url,
                "user_agent": defaults.user_agent,
                "encoding": defaults.encoding,
                "timeout": defaults.timeout,
                "container_selectors": list(defaults.container_selectors),
                "item_selector": defaults.item_selector,
                "title_selector": defaults.title_selector,
                "description_selector": defaults.description_selector,
            },
            "scheduler": {"interval_seconds": 3},
            "conditions": {
                "path": "conditions.xlsx",
                "sheet": None,
                "watch_interval_seconds": 30,
            },
            "notifier": {
                "type": "console",
                "channel_id": "keyword_channel",
                "channel_name": "Keyword Alerts",
                "importance": "high",
                "telegram": {
                    "bot_token": "${TELEGRAM_BOT_TOKEN}",
                    "chat_id": "${TELEGRAM_CHAT_ID}",
                },
            },
            "logging": {"directory": "logs", "level": "INFO"},
        }
