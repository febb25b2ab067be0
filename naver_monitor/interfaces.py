"""
Protocol interfaces for the Naver News Keyword Monitor.

This module defines the protocol interfaces that establish system
boundaries and enable dependency injection throughout the application.
The page fetcher, notification sink, permission check and condition source
are external collaborators; everything else is the monitor's own logic.
"""

from typing import TYPE_CHECKING, List, Protocol

from .models.condition import ConditionTable, EvalOutcome
from .models.delivery import DeliveryResult
from .models.notification import Notification
from .models.post import Post, TickResult

if TYPE_CHECKING:
    from .models.config import Configuration


class IPageFetcher(Protocol):
    """Protocol for retrieving and decoding the listing page."""

    def fetch(self) -> str:
        """Fetch the page and return its decoded text."""
        ...


class IPostExtractor(Protocol):
    """Protocol for turning markup into posts."""

    def extract(self, markup: str) -> List[Post]:
        """Extract posts in document order."""
        ...


class IConditionEvaluator(Protocol):
    """Protocol for evaluating a condition expression against a post."""

    def evaluate(self, condition: str, post: Post) -> bool:
        """Return True if the post satisfies the condition."""
        ...

    def evaluate_outcome(self, condition: str, post: Post) -> EvalOutcome:
        """Evaluate and report failures instead of collapsing them."""
        ...


class IConditionSource(Protocol):
    """Protocol for loading a condition table from an external file."""

    def load(self, path: str) -> ConditionTable:
        """Load a complete replacement table."""
        ...


class INotifier(Protocol):
    """Protocol for the notification sink."""

    def notify(self, notification: Notification) -> DeliveryResult:
        """Deliver a notification."""
        ...

    def test_connection(self) -> bool:
        """Check the sink is reachable."""
        ...

    def close(self) -> None:
        """Release any resources held by the sink."""
        ...


class INotificationPermission(Protocol):
    """Protocol for the notification permission collaborator."""

    @property
    def granted(self) -> bool:
        ...

    def request(self) -> bool:
        """Check and, if needed, request permission."""
        ...


class IMatchPipeline(Protocol):
    """Protocol for one fetch-evaluate-notify cycle."""

    async def run_tick(self) -> TickResult:
        ...


class IConfigurationManager(Protocol):
    """Protocol for managing system configuration."""

    def load_config(self) -> "Configuration":
        ...

    def get_config(self) -> "Configuration":
        ...

    def reload_if_changed(self) -> bool:
        ...
