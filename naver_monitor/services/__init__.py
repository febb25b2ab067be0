"""
Service layer for the Naver News Keyword Monitor.
"""

from .config_manager import ConfigurationManager

__all__ = [
    "ConfigurationManager",
]
