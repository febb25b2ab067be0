"""
Shared monitor state.

Holds the values the outside world observes: the displayed posts, the
feedback line, the loading/checking flags and the installed condition table.
Every field is replaced as a whole value; nothing is mutated in place.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple

from .condition import ConditionTable
from .post import Post


class MonitorState:
    """Explicit state owned by the orchestrator and shared by its components."""

    def __init__(self, conditions: Optional[ConditionTable] = None):
        self._posts: Tuple[Post, ...] = ()
        self._feedback: str = ""
        self._conditions: ConditionTable = conditions or ConditionTable.empty()
        self.is_loading = False
        self.is_checking = False
        self.last_updated: Optional[datetime] = None

    @property
    def posts(self) -> Tuple[Post, ...]:
        return self._posts

    @property
    def feedback(self) -> str:
        return self._feedback

    @property
    def conditions(self) -> ConditionTable:
        return self._conditions

    def replace_posts(self, posts: Iterable[Post]) -> None:
        self._posts = tuple(posts)
        self.last_updated = datetime.now()

    def set_feedback(self, message: str) -> None:
        self._feedback = message

    def install_conditions(self, table: ConditionTable) -> None:
        """Swap in a new condition table; the previous one is discarded."""
        self._conditions = table

    def snapshot(self) -> Dict[str, Any]:
        """Point-in-time view for status reporting."""
        return {
            "post_count": len(self._posts),
            "condition_count": len(self._conditions),
            "feedback": self._feedback,
            "is_loading": self.is_loading,
            "is_checking": self.is_checking,
            "last_updated": self.last_updated.isoformat()
            if self.last_updated
            else None,
        }
