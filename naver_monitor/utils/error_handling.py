"""
Error handling utilities for the Naver News Keyword Monitor.

This module defines the monitor's exception taxonomy, a process-wide error
tracker, an error-recording decorator, and the graceful degradation manager
used when a collaborator (such as the notification sink) is unavailable.
"""

import asyncio
import functools
import traceback
from collections import Counter, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional

from .logging import get_logger


class MonitorError(Exception):
    """Base class for errors raised by monitor components."""


class FetchError(MonitorError):
    """The listing page could not be retrieved."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(MonitorError):
    """The response body could not be decoded with the configured encoding."""


class ParseError(MonitorError):
    """The decoded markup could not be parsed into posts."""


class ConditionEvalError(MonitorError):
    """A condition expression is malformed."""


class FileLoadError(MonitorError):
    """The condition spreadsheet could not be read."""


class ErrorSeverity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Which stage of the monitor an error came from."""

    NETWORK = "network"
    DECODING = "decoding"
    PARSING = "parsing"
    CONDITION_EVALUATION = "condition_evaluation"
    CONDITION_LOADING = "condition_loading"
    NOTIFICATION = "notification"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


# Which category a monitor exception is filed under
EXCEPTION_CATEGORIES = {
    FetchError: ErrorCategory.NETWORK,
    DecodeError: ErrorCategory.DECODING,
    ParseError: ErrorCategory.PARSING,
    ConditionEvalError: ErrorCategory.CONDITION_EVALUATION,
    FileLoadError: ErrorCategory.CONDITION_LOADING,
}


def categorize(exception: BaseException) -> ErrorCategory:
    """Map an exception onto its error category."""
    for exception_type, category in EXCEPTION_CATEGORIES.items():
        if isinstance(exception, exception_type):
            return category
    return ErrorCategory.SYSTEM


def _format_traceback(exception: Optional[BaseException]) -> str:
    if exception is None:
        return ""
    return "".join(
        traceback.format_exception(type(exception), exception, exception.__traceback__)
    )


@dataclass
class ErrorInfo:
    """One recorded error."""

    timestamp: datetime
    component: str
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    exception_type: str
    traceback: str
    context: Dict[str, Any]

    @property
    def key(self) -> str:
        return f"{self.component}.{self.category.value}.{self.severity.value}"


class ErrorTracker:
    """
    In-memory record of recent errors.

    Keeps a bounded history overall and per component, plus running counts
    keyed by ``component.category.severity`` that are never trimmed.
    """

    PER_COMPONENT_HISTORY = 100

    def __init__(self, max_errors: int = 1000):
        self.max_errors = max_errors
        self.errors: Deque[ErrorInfo] = deque(maxlen=max_errors)
        self.error_counts: Counter = Counter()
        self.component_errors: Dict[str, Deque[ErrorInfo]] = {}
        self.logger = get_logger("error_tracker")

    def record_error(
        self,
        component: str,
        category: ErrorCategory,
        severity: ErrorSeverity,
        message: str,
        exception: Optional[BaseException] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> ErrorInfo:
        """
        Record an error and log it at warning level.

        Args:
            component: Component that hit the error
            category: Stage the error belongs to
            severity: How badly the monitor is affected
            message: Human-readable summary
            exception: The exception, when there is one
            context: Extra fields such as the condition or file path
        """
        info = ErrorInfo(
            timestamp=datetime.now(),
            component=component,
            category=category,
            severity=severity,
            message=message,
            exception_type=type(exception).__name__ if exception else "Unknown",
            traceback=_format_traceback(exception),
            context=context or {},
        )

        self.errors.append(info)
        self.error_counts[info.key] += 1
        self.component_errors.setdefault(
            component, deque(maxlen=self.PER_COMPONENT_HISTORY)
        ).append(info)

        self.logger.warning(
            f"Error recorded: {message}",
            extra={
                "error_component": component,
                "category": category.value,
                "severity": severity.value,
                "exception_type": info.exception_type,
                "context": info.context,
            },
        )
        return info

    def get_error_stats(self) -> Dict[str, Any]:
        one_hour_ago = datetime.now() - timedelta(hours=1)
        by_category = Counter(error.category for error in self.errors)

        return {
            "total_errors": len(self.errors),
            "errors_last_hour": sum(1 for e in self.errors if e.timestamp >= one_hour_ago),
            "error_counts": dict(self.error_counts),
            "component_error_counts": {
                name: len(history) for name, history in self.component_errors.items()
            },
            "category_breakdown": {
                category.value: by_category[category] for category in ErrorCategory
            },
        }

    def get_component_errors(self, component: str, limit: int = 10) -> List[ErrorInfo]:
        """Most recent errors for one component, oldest first."""
        history = list(self.component_errors.get(component, ()))
        return history[-limit:]

    def clear(self) -> None:
        self.errors.clear()
        self.error_counts.clear()
        self.component_errors.clear()


_error_tracker: Optional[ErrorTracker] = None


def get_error_tracker() -> ErrorTracker:
    global _error_tracker
    if _error_tracker is None:
        _error_tracker = ErrorTracker()
    return _error_tracker


def with_error_handling(
    component: str,
    category: Optional[ErrorCategory] = None,
    severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    fallback_value: Any = None,
    suppress_exceptions: bool = False,
):
    """
    Record exceptions raised by the decorated function.

    Works on plain and coroutine functions. The exception is re-raised
    unless ``suppress_exceptions`` is set, in which case ``fallback_value``
    is returned instead.

    Args:
        component: Component the function belongs to
        category: Error category; derived from the exception type when None
        severity: Severity to record
        fallback_value: Return value when the exception is suppressed
        suppress_exceptions: Swallow the exception after recording it
    """

    def decorator(func: Callable) -> Callable:
        def on_error(error: Exception) -> Any:
            get_error_tracker().record_error(
                component=component,
                category=category or categorize(error),
                severity=severity,
                message=f"Error in {func.__name__}: {error}",
                exception=error,
                context={"function": func.__name__},
            )
            if not suppress_exceptions:
                raise error

            get_logger(component).warning(
                f"Suppressing exception in {func.__name__}: {error}"
            )
            return fallback_value

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    return on_error(e)

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                return on_error(e)

        return sync_wrapper

    return decorator


@dataclass
class Degradation:
    """Why a component is running with reduced functionality."""

    reason: str
    fallback_behavior: str
    severity: ErrorSeverity
    since: datetime = field(default_factory=datetime.now)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "reason": self.reason,
            "fallback_behavior": self.fallback_behavior,
            "severity": self.severity.value,
            "since": self.since.isoformat(),
        }


class GracefulDegradation:
    """
    Registry of degraded components.

    The monitor keeps polling while a collaborator is unavailable; for
    example checking continues with alerts suppressed when notification
    permission is denied.
    """

    def __init__(self):
        self._degraded: Dict[str, Degradation] = {}
        self.logger = get_logger("graceful_degradation")

    def degrade_component(
        self,
        component: str,
        reason: str,
        fallback_behavior: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
    ) -> None:
        degradation = Degradation(reason, fallback_behavior, severity)
        self._degraded[component] = degradation

        self.logger.warning(
            f"Component degraded: {component}",
            extra={"degraded_component": component, **degradation.as_dict()},
        )

    def restore_component(self, component: str) -> None:
        if self._degraded.pop(component, None) is not None:
            self.logger.info(f"Component restored: {component}")

    def is_degraded(self, component: str) -> bool:
        return component in self._degraded

    def get_degradation_info(self, component: str) -> Optional[Degradation]:
        return self._degraded.get(component)

    def get_all_degraded(self) -> Dict[str, Dict[str, Any]]:
        """Degraded components as plain dicts for status reporting."""
        return {name: info.as_dict() for name, info in self._degraded.items()}


_degradation_manager: Optional[GracefulDegradation] = None


def get_degradation_manager() -> GracefulDegradation:
    global _degradation_manager
    if _degradation_manager is None:
        _degradation_manager = GracefulDegradation()
    return _degradation_manager
