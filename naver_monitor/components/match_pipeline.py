"""
Fetch-evaluate-notify pipeline.

One tick fetches the listing page, extracts posts, checks them against the
installed condition table and notifies on the first match. A tick never
raises: any failure is logged, recorded and reflected in the feedback line,
and the previously displayed posts are kept.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

from ..interfaces import (
    IConditionEvaluator,
    INotificationPermission,
    INotifier,
    IPageFetcher,
    IPostExtractor,
)
from ..models.condition import ConditionTable
from ..models.delivery import DeliveryResult
from ..models.notification import Importance, Notification
from ..models.post import MatchResult, Post, TickResult, TickStatus
from ..models.state import MonitorState
from ..utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    categorize,
    get_error_tracker,
)

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Keyword Found!"
NO_MATCH_FEEDBACK = "No matches found. Refreshing..."
FAILURE_FEEDBACK = "Failed to fetch news. Retrying..."


class MatchPipeline:
    """Runs a single poll tick against the shared monitor state."""

    def __init__(
        self,
        fetcher: IPageFetcher,
        extractor: IPostExtractor,
        evaluator: IConditionEvaluator,
        notifier: INotifier,
        state: MonitorState,
        permission: Optional[INotificationPermission] = None,
        channel_id: str = "keyword_channel",
        channel_name: str = "Keyword Alerts",
        importance: Importance = Importance.HIGH,
    ):
        """
        Initialize the pipeline.

        Args:
            fetcher: Retrieves the decoded listing page
            extractor: Turns markup into posts
            evaluator: Evaluates conditions against posts
            notifier: Notification sink
            state: Shared monitor state (posts, feedback, conditions, flags)
            permission: Notification permission; None means always allowed
            channel_id: Notification channel id
            channel_name: Notification channel display name
            importance: Notification importance
        """
        self.fetcher = fetcher
        self.extractor = extractor
        self.evaluator = evaluator
        self.notifier = notifier
        self.state = state
        self.permission = permission
        self.channel_id = channel_id
        self.channel_name = channel_name
        self.importance = importance

        self.stats: Dict[str, int] = {
            "ticks": 0,
            "matches": 0,
            "no_matches": 0,
            "failures": 0,
            "notifications_sent": 0,
            "notifications_suppressed": 0,
        }

    async def run_tick(self) -> TickResult:
        """Run one fetch-evaluate-notify cycle."""
        self.state.is_loading = True
        self.stats["ticks"] += 1

        try:
            # The request blocks, so it runs in the default executor
            markup = await asyncio.get_running_loop().run_in_executor(
                None, self.fetcher.fetch
            )
            posts = self.extractor.extract(markup)

            match = self.find_first_match(posts, self.state.conditions)

            if match is not None:
                self._notify(match)
                self.state.set_feedback(match.feedback_message())
                self.stats["matches"] += 1
                result = TickResult(
                    status=TickStatus.MATCHED, post_count=len(posts), match=match
                )
            else:
                self.state.set_feedback(NO_MATCH_FEEDBACK)
                self.stats["no_matches"] += 1
                result = TickResult(status=TickStatus.NO_MATCH, post_count=len(posts))

            self.state.replace_posts(posts)

        except Exception as e:
            self._handle_failure(e)
            result = TickResult(status=TickStatus.FAILED, error=str(e) or type(e).__name__)

        finally:
            self.state.is_loading = False

        logger.debug(
            f"Tick finished: status={result.status.value}, posts={result.post_count}"
        )
        return result

    def find_first_match(
        self, posts: Iterable[Post], table: ConditionTable
    ) -> Optional[MatchResult]:
        """
        Find the first matching post/condition pair.

        Posts are scanned in extraction order and, for each post, conditions
        in table order. Scanning stops at the first match.
        """
        conditions = table.pairs()
        if not conditions:
            return None

        for post in posts:
            for condition, tag in conditions:
                if self.evaluator.evaluate(condition, post):
                    logger.info(
                        f"Match found for condition '{condition}' (tag: {tag}): {post.title}"
                    )
                    return MatchResult(condition=condition, tag=tag, post=post)

        return None

    def build_notification(self, match: MatchResult) -> Notification:
        return Notification(
            title=NOTIFICATION_TITLE,
            body=match.notification_body(),
            channel_id=self.channel_id,
            channel_name=self.channel_name,
            importance=self.importance,
        )

    def _notify(self, match: MatchResult) -> Optional[DeliveryResult]:
        if self.permission is not None and not self.permission.granted:
            self.stats["notifications_suppressed"] += 1
            logger.info(
                f"Notification permission not granted, suppressing alert for: {match.post.title}"
            )
            return None

        try:
            delivery = self.notifier.notify(self.build_notification(match))
        except Exception as e:
            logger.error(f"Notifier raised while delivering alert: {e}")
            get_error_tracker().record_error(
                component="match_pipeline",
                category=ErrorCategory.NOTIFICATION,
                severity=ErrorSeverity.MEDIUM,
                message=f"Notification delivery failed: {e}",
                exception=e,
                context={"tag": match.tag, "post_title": match.post.title},
            )
            return None

        if delivery.success:
            self.stats["notifications_sent"] += 1
        else:
            logger.warning(f"Notification not delivered: {delivery.error_message}")

        return delivery

    def _handle_failure(self, error: Exception) -> None:
        self.stats["failures"] += 1
        category = categorize(error)

        logger.error(f"Error fetching data: {error}")
        get_error_tracker().record_error(
            component="match_pipeline",
            category=category,
            severity=ErrorSeverity.MEDIUM
            if category != ErrorCategory.SYSTEM
            else ErrorSeverity.HIGH,
            message=f"Tick aborted: {error}",
            exception=error,
        )

        self.state.set_feedback(FAILURE_FEEDBACK)
