"""
Main application orchestrator for the Naver News Keyword Monitor.

This module wires the monitor's components together, exposes the three user
controls (select condition file, start checking, stop checking), watches the
configuration and condition files for changes, and handles graceful shutdown.
"""

import asyncio
import signal
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from .components.condition_evaluator import ConditionEvaluator
from .components.condition_loader import ConditionTableLoader
from .components.match_pipeline import MatchPipeline
from .components.notifier import NotificationPermission, NotifierFactory
from .components.page_fetcher import PageFetcher
from .components.post_extractor import PostExtractor
from .components.scheduler import Scheduler
from .interfaces import INotifier
from .models.config import Configuration
from .models.notification import Importance
from .models.state import MonitorState
from .services.config_manager import ConfigurationManager
from .utils.error_handling import (
    ErrorCategory,
    ErrorSeverity,
    FileLoadError,
    get_degradation_manager,
    get_error_tracker,
    with_error_handling,
)
from .utils.logging import get_logger, get_logging_stats, setup_logging


class ApplicationOrchestrator:
    """
    Coordinates the monitor's components and their lifecycle.

    The orchestrator owns the shared MonitorState; the pipeline and the
    scheduler read and replace its values.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        conditions_path: Optional[str] = None,
        notifier: Optional[INotifier] = None,
    ):
        """
        Initialize the application orchestrator.

        Args:
            config_path: Path to configuration file. If None, uses default paths.
            conditions_path: Condition spreadsheet; overrides the configured path.
            notifier: Notification sink to use instead of the configured one.
        """
        self.logger = get_logger("orchestrator")

        self.config_path = config_path
        self.conditions_path = conditions_path
        self._conditions_override = conditions_path
        self._notifier_override = notifier

        self._running = False
        self._shutdown_event: Optional[asyncio.Event] = None

        self.error_tracker = get_error_tracker()
        self.degradation_manager = get_degradation_manager()

        self.state = MonitorState()

        self._config_manager: Optional[ConfigurationManager] = None
        self._config: Optional[Configuration] = None
        self._loader: Optional[ConditionTableLoader] = None
        self._notifier: Optional[INotifier] = None
        self._permission: Optional[NotificationPermission] = None
        self._pipeline: Optional[MatchPipeline] = None
        self._scheduler: Optional[Scheduler] = None

        self._startup_time: Optional[datetime] = None

    @property
    def config(self) -> Optional[Configuration]:
        return self._config

    @property
    def pipeline(self) -> Optional[MatchPipeline]:
        return self._pipeline

    @property
    def scheduler(self) -> Optional[Scheduler]:
        return self._scheduler

    @with_error_handling(
        component="orchestrator",
        category=ErrorCategory.CONFIGURATION,
        severity=ErrorSeverity.CRITICAL,
        fallback_value=False,
        suppress_exceptions=True,
    )
    def initialize(self, configure_logging: bool = True) -> bool:
        """
        Load configuration and build all components.

        Returns:
            True if initialization succeeded, False otherwise.
        """
        self._config_manager = ConfigurationManager(self.config_path)
        self._config = self._config_manager.load_config()

        if configure_logging:
            setup_logging(self._config.logging.directory, self._config.logging.level)
            self.logger = get_logger("orchestrator")

        self.logger.info(
            "Initializing Naver News Keyword Monitor",
            extra={"config_path": self._config_manager.config_path},
        )

        self._loader = ConditionTableLoader(sheet=self._config.conditions.sheet)
        self._build_notifier(self._config)
        self._pipeline = self._build_pipeline(self._config)
        self._scheduler = Scheduler(
            self._pipeline,
            self.state,
            interval_seconds=self._config.scheduler.interval_seconds,
        )

        self._request_permission()

        conditions_path = self.conditions_path or self._config.conditions.path
        if conditions_path:
            self.select_condition_file(conditions_path)

        self._startup_time = datetime.now()
        self.logger.info("System initialization completed successfully")
        return True

    def _build_notifier(self, config: Configuration) -> None:
        self._notifier = self._notifier_override or NotifierFactory.create_notifier(
            config.notifier
        )
        self._permission = NotificationPermission(self._notifier)

    def _build_pipeline(self, config: Configuration) -> MatchPipeline:
        return MatchPipeline(
            fetcher=PageFetcher(config.source),
            extractor=PostExtractor(config.source),
            evaluator=ConditionEvaluator(),
            notifier=self._notifier,
            state=self.state,
            permission=self._permission,
            channel_id=config.notifier.channel_id,
            channel_name=config.notifier.channel_name,
            importance=Importance(config.notifier.importance),
        )

    def _request_permission(self) -> None:
        """Ask for notification permission once; denial only suppresses alerts."""
        if self._permission.request():
            self.degradation_manager.restore_component("notifier")
            return

        self.degradation_manager.degrade_component(
            "notifier",
            "Notification permission not granted",
            "Checking continues; matches are reported in feedback only",
            ErrorSeverity.MEDIUM,
        )

    def select_condition_file(self, path: str) -> bool:
        """
        Load a condition spreadsheet and install it as the active table.

        On failure the currently installed table is kept unchanged.

        Returns:
            True if the new table was installed.
        """
        try:
            table = self._loader.load(path)
        except FileLoadError as e:
            self.logger.error(
                "Failed to load condition file", extra={"path": path, "error": str(e)}
            )
            self.error_tracker.record_error(
                component="orchestrator",
                category=ErrorCategory.CONDITION_LOADING,
                severity=ErrorSeverity.MEDIUM,
                message=f"Failed to load condition file: {e}",
                exception=e,
                context={"path": path},
            )
            return False

        self.state.install_conditions(table)
        self.conditions_path = path
        self.logger.info(
            "Condition table installed",
            extra={"path": path, "condition_count": len(table)},
        )
        return True

    def start_checking(self, immediate: bool = True) -> bool:
        """
        Start periodic checking.

        Args:
            immediate: Run the first tick now instead of after one period

        Returns:
            True if checking started, False if it was already running.
        """
        if not self._scheduler.start():
            return False

        if len(self.state.conditions) == 0:
            self.logger.warning("Checking started with an empty condition table")

        if immediate:
            self._scheduler.tick_now()
        return True

    def stop_checking(self) -> None:
        """Stop periodic checking; a tick already running is allowed to finish."""
        self._scheduler.stop()

    async def _watch_files(self) -> None:
        """Pick up edits to the configuration and condition files."""
        table = self._loader.reload_if_changed()
        if table is not None:
            self.state.install_conditions(table)
            self.logger.info(
                "Condition file changed, table reloaded",
                extra={"condition_count": len(table)},
            )

        if self._config_manager.reload_if_changed():
            self._apply_config(self._config_manager.get_config())

    def _apply_config(self, new_config: Configuration) -> None:
        """Update running components from a reloaded configuration."""
        old_config = self._config

        if new_config.scheduler != old_config.scheduler:
            self._scheduler.interval_seconds = new_config.scheduler.interval_seconds
            self.logger.info(
                "Polling interval updated",
                extra={"interval_seconds": new_config.scheduler.interval_seconds},
            )

        if new_config.source != old_config.source:
            old_fetcher = self._pipeline.fetcher
            self._pipeline.fetcher = PageFetcher(new_config.source)
            self._pipeline.extractor = PostExtractor(new_config.source)
            old_fetcher.close()
            self.logger.info("Listing source updated")

        if new_config.notifier != old_config.notifier:
            old_notifier = self._notifier
            try:
                self._build_notifier(new_config)
            except ValueError as e:
                self.logger.error("Failed to update notifier", extra={"error": str(e)})
            else:
                self._pipeline.notifier = self._notifier
                self._pipeline.permission = self._permission
                self._pipeline.channel_id = new_config.notifier.channel_id
                self._pipeline.channel_name = new_config.notifier.channel_name
                self._pipeline.importance = Importance(new_config.notifier.importance)
                self._request_permission()
                if old_notifier is not self._notifier:
                    old_notifier.close()
                self.logger.info("Notifier updated")

        old_source = (old_config.conditions.path, old_config.conditions.sheet)
        new_source = (new_config.conditions.path, new_config.conditions.sheet)
        if new_source != old_source:
            self._loader = ConditionTableLoader(sheet=new_config.conditions.sheet)
            # A --conditions path given at launch wins over the configured one
            path = self._conditions_override or new_config.conditions.path
            if path:
                self.select_condition_file(path)
            self.logger.info(
                "Condition source updated",
                extra={"path": path, "sheet": new_config.conditions.sheet},
            )

        self._config = new_config

    def _setup_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Map SIGINT/SIGTERM onto a graceful shutdown."""

        def handler(signum, frame):
            self.logger.info(
                "Received shutdown signal, initiating graceful shutdown",
                extra={"signal": signum},
            )
            loop.call_soon_threadsafe(self._shutdown_event.set)

        signal.signal(signal.SIGINT, handler)
        if sys.platform == "win32":
            signal.signal(signal.SIGBREAK, handler)
        else:
            signal.signal(signal.SIGTERM, handler)

    async def run(self, install_signal_handlers: bool = True) -> None:
        """Run the complete application lifecycle until shutdown is requested."""
        self._shutdown_event = asyncio.Event()

        if not self.initialize():
            self.logger.error("System initialization failed")
            return

        if install_signal_handlers:
            self._setup_signal_handlers(asyncio.get_running_loop())

        self._running = True
        try:
            self.start_checking()

            while not self._shutdown_event.is_set():
                try:
                    await asyncio.wait_for(
                        self._shutdown_event.wait(),
                        timeout=self._config.conditions.watch_interval_seconds,
                    )
                except asyncio.TimeoutError:
                    await self._watch_files()

        except Exception as e:
            self.logger.error(f"Unexpected error in application: {e}", exc_info=True)
        finally:
            await self.shutdown()

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    async def shutdown(self) -> None:
        """Stop checking and wait for the in-flight tick."""
        if not self._running:
            return

        self.logger.info("Initiating graceful shutdown...")
        self._running = False

        if self._scheduler:
            await self._scheduler.shutdown()

        if self._pipeline:
            self._pipeline.fetcher.close()
        if self._notifier and self._notifier is not self._notifier_override:
            self._notifier.close()

        uptime = datetime.now() - self._startup_time if self._startup_time else None
        self.logger.info(f"System shutdown complete. Uptime: {uptime}")

    def get_system_status(self) -> Dict[str, Any]:
        """Get current system status information."""
        return {
            "running": self._running,
            "startup_time": self._startup_time.isoformat()
            if self._startup_time
            else None,
            "state": self.state.snapshot(),
            "conditions_path": self.conditions_path,
            "notifications_permitted": self._permission.granted
            if self._permission
            else False,
            "pipeline_stats": dict(self._pipeline.stats) if self._pipeline else {},
            "skipped_ticks": self._scheduler.skipped_ticks if self._scheduler else 0,
            "degraded_components": self.degradation_manager.get_all_degraded(),
            "errors": self.error_tracker.get_error_stats(),
            "logging": get_logging_stats(),
        }
