"""
Core components for the Naver News Keyword Monitor.

This module contains the components that fetch the listing page, extract
posts, evaluate keyword conditions, run the polling pipeline and deliver
notifications.
"""

from .condition_evaluator import ConditionEvaluator, apply_logic, tokenize
from .condition_loader import ConditionTableLoader
from .match_pipeline import MatchPipeline
from .notifier import (
    ConsoleNotifier,
    DiscordNotifier,
    NotificationPermission,
    NotifierFactory,
    SlackNotifier,
    TelegramNotifier,
)
from .page_fetcher import PageFetcher
from .post_extractor import PostExtractor
from .scheduler import Scheduler

__all__ = [
    "ConditionEvaluator",
    "apply_logic",
    "tokenize",
    "ConditionTableLoader",
    "MatchPipeline",
    "ConsoleNotifier",
    "TelegramNotifier",
    "DiscordNotifier",
    "SlackNotifier",
    "NotificationPermission",
    "NotifierFactory",
    "PageFetcher",
    "PostExtractor",
    "Scheduler",
]
