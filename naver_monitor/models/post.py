"""
Post and match result models for the Naver News Keyword Monitor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Post:
    """A single listing entry extracted from the news page."""

    title: str
    description: str

    def contains(self, keyword: str) -> bool:
        """Case-sensitive substring check against title and description."""
        return keyword in self.title or keyword in self.description


@dataclass(frozen=True)
class MatchResult:
    """The first condition/post pair found to match during a tick."""

    condition: str
    tag: str
    post: Post

    def notification_body(self) -> str:
        """Body text shown in the notification."""
        return f"{self.tag}\n{self.post.title}\n{self.post.description}"

    def feedback_message(self) -> str:
        """Human-readable description of the match."""
        return (
            f"Match found for condition: {self.condition}\n"
            f"Tag: {self.tag}\n"
            f"Post Title: {self.post.title}\n"
            f"Post Description: {self.post.description}"
        )


class TickStatus(Enum):
    """Outcome of a single poll tick."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class TickResult:
    """Summary of what a poll tick did."""

    status: TickStatus
    post_count: int = 0
    match: Optional[MatchResult] = None
    error: Optional[str] = None

    def validate(self) -> bool:
        """Validate tick result consistency."""
        if not isinstance(self.status, TickStatus):
            raise ValueError("status must be a TickStatus enum")

        if self.post_count < 0:
            raise ValueError("post_count cannot be negative")

        if self.status == TickStatus.MATCHED and self.match is None:
            raise ValueError("match is required when status is MATCHED")

        if self.status != TickStatus.MATCHED and self.match is not None:
            raise ValueError("match is only allowed when status is MATCHED")

        if self.status == TickStatus.FAILED and not self.error:
            raise ValueError("error should be provided when status is FAILED")

        return True
