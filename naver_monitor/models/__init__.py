"""
Data models for the Naver News Keyword Monitor.

This module contains all data classes and type definitions used throughout
the application for representing posts, conditions, configuration, and
monitor state.
"""

from .condition import ConditionTable, EvalFailed, EvalOutcome, Matched
from .config import (
    ConditionSourceConfig,
    Configuration,
    LoggingConfig,
    NotifierConfig,
    SchedulerConfig,
    SourceConfig,
)
from .delivery import DeliveryResult
from .notification import Importance, Notification
from .post import MatchResult, Post, TickResult, TickStatus
from .state import MonitorState

__all__ = [
    "Post",
    "MatchResult",
    "TickResult",
    "TickStatus",
    "ConditionTable",
    "EvalOutcome",
    "Matched",
    "EvalFailed",
    "Notification",
    "Importance",
    "DeliveryResult",
    "MonitorState",
    "Configuration",
    "SourceConfig",
    "SchedulerConfig",
    "ConditionSourceConfig",
    "NotifierConfig",
    "LoggingConfig",
]
