"""
Integration tests for the application orchestrator.
"""

import asyncio
import os
from unittest.mock import Mock, patch

import pytest
import yaml

from naver_monitor.components.match_pipeline import NO_MATCH_FEEDBACK
from naver_monitor.main import build_parser
from naver_monitor.models.post import TickStatus
from naver_monitor.orchestrator import ApplicationOrchestrator

pytestmark = pytest.mark.integration


@pytest.fixture
def conditions_file(write_workbook):
    return write_workbook([("애플 AND 실적", "APPLE"), ("삼성전자 AND 출시", "SAMSUNG")])


@pytest.fixture
def config_file(tmp_path, conditions_file):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "scheduler": {"interval_seconds": 60},
                "conditions": {"path": str(conditions_file), "watch_interval_seconds": 1},
                "logging": {"directory": str(tmp_path / "logs")},
            }
        ),
        encoding="utf-8",
    )
    return path


def edit_config(config_file, section, **values):
    """Update one config section on disk and move its mtime forward."""
    data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    data.setdefault(section, {}).update(values)
    config_file.write_text(yaml.safe_dump(data, allow_unicode=True), encoding="utf-8")
    later = os.path.getmtime(config_file) + 10
    os.utime(config_file, (later, later))


@pytest.fixture
def listing_response(listing_bytes):
    return Mock(status_code=200, content=listing_bytes)


@pytest.fixture
def orchestrator(config_file, mock_notifier):
    orchestrator = ApplicationOrchestrator(str(config_file), notifier=mock_notifier)
    assert orchestrator.initialize(configure_logging=False) is True
    return orchestrator


class TestInitialization:
    """Test cases for building the application."""

    def test_components_are_built(self, orchestrator):
        assert orchestrator.pipeline is not None
        assert orchestrator.scheduler is not None
        assert orchestrator.scheduler.interval_seconds == 60

    def test_configured_condition_file_is_installed(self, orchestrator):
        assert orchestrator.state.conditions.pairs() == (
            ("애플 AND 실적", "APPLE"),
            ("삼성전자 AND 출시", "SAMSUNG"),
        )

    def test_conditions_argument_overrides_config(
        self, config_file, mock_notifier, write_workbook
    ):
        override = write_workbook([("날씨", "WEATHER")], name="override.xlsx")
        orchestrator = ApplicationOrchestrator(
            str(config_file), str(override), notifier=mock_notifier
        )
        orchestrator.initialize(configure_logging=False)

        assert dict(orchestrator.state.conditions) == {"날씨": "WEATHER"}

    def test_permission_granted(self, orchestrator, mock_notifier):
        mock_notifier.test_connection.assert_called_once()
        assert orchestrator.get_system_status()["notifications_permitted"] is True
        assert not orchestrator.degradation_manager.is_degraded("notifier")

    def test_permission_denied_degrades_notifier(self, config_file, mock_notifier):
        mock_notifier.test_connection.return_value = False
        orchestrator = ApplicationOrchestrator(str(config_file), notifier=mock_notifier)

        assert orchestrator.initialize(configure_logging=False) is True
        assert orchestrator.degradation_manager.is_degraded("notifier")

    def test_invalid_config_fails_initialization(self, tmp_path, mock_notifier):
        path = tmp_path / "config.yaml"
        path.write_text("scheduler:\n  interval_seconds: 0\n")

        orchestrator = ApplicationOrchestrator(str(path), notifier=mock_notifier)

        assert orchestrator.initialize(configure_logging=False) is False
        assert orchestrator.error_tracker.get_component_errors("orchestrator")


class TestConditionSelection:
    """Test cases for selecting condition files."""

    def test_failed_selection_keeps_current_table(self, orchestrator, tmp_path):
        before = orchestrator.state.conditions

        assert orchestrator.select_condition_file(str(tmp_path / "missing.xlsx")) is False
        assert orchestrator.select_condition_file(str(tmp_path / "rules.csv")) is False
        assert orchestrator.state.conditions is before

    def test_successful_selection_replaces_table(self, orchestrator, write_workbook):
        path = write_workbook([("날씨", "WEATHER")], name="weather.xlsx")

        assert orchestrator.select_condition_file(str(path)) is True
        assert dict(orchestrator.state.conditions) == {"날씨": "WEATHER"}
        assert orchestrator.conditions_path == str(path)

    @pytest.mark.asyncio
    async def test_edited_condition_file_is_reloaded(self, orchestrator, conditions_file, write_workbook):
        write_workbook([("날씨", "WEATHER")])
        later = os.path.getmtime(conditions_file) + 10
        os.utime(conditions_file, (later, later))

        await orchestrator._watch_files()

        assert dict(orchestrator.state.conditions) == {"날씨": "WEATHER"}

    @pytest.mark.asyncio
    async def test_edited_config_updates_interval(self, orchestrator, config_file):
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        data["scheduler"]["interval_seconds"] = 15
        config_file.write_text(yaml.safe_dump(data), encoding="utf-8")
        later = os.path.getmtime(config_file) + 10
        os.utime(config_file, (later, later))

        await orchestrator._watch_files()

        assert orchestrator.scheduler.interval_seconds == 15
        assert orchestrator.config.scheduler.interval_seconds == 15

    @pytest.mark.asyncio
    async def test_edited_config_switches_condition_file(
        self, orchestrator, config_file, write_workbook
    ):
        other = write_workbook([("날씨", "WEATHER")], name="other.xlsx", sheet_title="Other")
        edit_config(config_file, "conditions", path=str(other), sheet="Other")

        await orchestrator._watch_files()

        assert dict(orchestrator.state.conditions) == {"날씨": "WEATHER"}
        assert orchestrator.conditions_path == str(other)
        assert orchestrator.config.conditions.sheet == "Other"

        # Later edits to the new file are picked up through the rebuilt loader
        write_workbook([("비", "RAIN")], name="other.xlsx", sheet_title="Other")
        later = os.path.getmtime(other) + 10
        os.utime(other, (later, later))
        await orchestrator._watch_files()

        assert dict(orchestrator.state.conditions) == {"비": "RAIN"}

    @pytest.mark.asyncio
    async def test_conditions_argument_survives_config_edit(
        self, config_file, mock_notifier, write_workbook
    ):
        override = write_workbook([("날씨", "WEATHER")], name="override.xlsx")
        orchestrator = ApplicationOrchestrator(
            str(config_file), str(override), notifier=mock_notifier
        )
        orchestrator.initialize(configure_logging=False)

        other = write_workbook([("비", "RAIN")], name="other.xlsx")
        edit_config(config_file, "conditions", path=str(other))
        await orchestrator._watch_files()

        assert dict(orchestrator.state.conditions) == {"날씨": "WEATHER"}
        assert orchestrator.conditions_path == str(override)

    @pytest.mark.asyncio
    async def test_edited_source_closes_old_session(self, orchestrator, config_file):
        old_fetcher = orchestrator.pipeline.fetcher
        old_fetcher.session = Mock()
        edit_config(config_file, "source", timeout=5)

        await orchestrator._watch_files()

        old_fetcher.session.close.assert_called_once()
        assert orchestrator.pipeline.fetcher is not old_fetcher
        assert orchestrator.pipeline.fetcher.source.timeout == 5


class TestChecking:
    """Test cases for starting and stopping checks."""

    @pytest.mark.asyncio
    async def test_start_runs_first_tick_immediately(
        self, orchestrator, mock_notifier, listing_response
    ):
        with patch("requests.Session.get", return_value=listing_response):
            assert orchestrator.start_checking() is True
            await orchestrator.scheduler.shutdown()

        result = orchestrator.scheduler.last_result
        assert result.status == TickStatus.MATCHED
        assert result.match.tag == "APPLE"
        mock_notifier.notify.assert_called_once()
        assert len(orchestrator.state.posts) == 3

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self, orchestrator, listing_response):
        with patch("requests.Session.get", return_value=listing_response):
            assert orchestrator.start_checking(immediate=False) is True
            assert orchestrator.start_checking(immediate=False) is False
            orchestrator.stop_checking()

        assert orchestrator.state.is_checking is False

    @pytest.mark.asyncio
    async def test_checking_with_empty_table(self, mock_notifier, listing_response, tmp_path):
        path = tmp_path / "bare.yaml"
        path.write_text("scheduler:\n  interval_seconds: 60\n")
        orchestrator = ApplicationOrchestrator(str(path), notifier=mock_notifier)
        orchestrator.initialize(configure_logging=False)

        with patch("requests.Session.get", return_value=listing_response):
            orchestrator.start_checking()
            await orchestrator.scheduler.shutdown()

        assert orchestrator.scheduler.last_result.status == TickStatus.NO_MATCH
        assert orchestrator.state.feedback == NO_MATCH_FEEDBACK
        mock_notifier.notify.assert_not_called()


class TestRun:
    """Test cases for the full lifecycle."""

    @pytest.mark.asyncio
    async def test_run_until_shutdown_requested(
        self, config_file, mock_notifier, listing_response
    ):
        orchestrator = ApplicationOrchestrator(str(config_file), notifier=mock_notifier)

        with patch("requests.Session.get", return_value=listing_response), patch(
            "naver_monitor.orchestrator.setup_logging"
        ) as setup_logging:
            task = asyncio.create_task(orchestrator.run(install_signal_handlers=False))
            await asyncio.sleep(0.1)

            assert orchestrator.get_system_status()["running"] is True
            orchestrator.request_shutdown()
            await asyncio.wait_for(task, timeout=5)

        setup_logging.assert_called_once()
        status = orchestrator.get_system_status()
        assert status["running"] is False
        assert status["pipeline_stats"]["matches"] == 1
        assert status["state"]["is_checking"] is False

    @pytest.mark.asyncio
    async def test_watch_interval_follows_reloaded_config(
        self, config_file, mock_notifier, listing_response
    ):
        orchestrator = ApplicationOrchestrator(str(config_file), notifier=mock_notifier)
        timeouts = []

        async def fake_wait_for(awaitable, timeout):
            awaitable.close()
            timeouts.append(timeout)
            if len(timeouts) == 2:
                orchestrator.request_shutdown()
                return True
            raise asyncio.TimeoutError

        async def reload_config():
            orchestrator.config.conditions.watch_interval_seconds = 7

        with patch("requests.Session.get", return_value=listing_response), patch(
            "naver_monitor.orchestrator.setup_logging"
        ), patch("naver_monitor.orchestrator.asyncio.wait_for", fake_wait_for), patch.object(
            orchestrator, "_watch_files", side_effect=reload_config
        ):
            await orchestrator.run(install_signal_handlers=False)

        assert timeouts == [1, 7]

    @pytest.mark.asyncio
    async def test_run_returns_when_initialization_fails(self, tmp_path, mock_notifier):
        path = tmp_path / "config.yaml"
        path.write_text("notifier:\n  type: pager\n")
        orchestrator = ApplicationOrchestrator(str(path), notifier=mock_notifier)

        await asyncio.wait_for(orchestrator.run(install_signal_handlers=False), timeout=5)

        assert orchestrator.get_system_status()["running"] is False


class TestCommandLine:
    def test_parser(self):
        args = build_parser().parse_args(["config.yaml", "--conditions", "keywords.xlsx"])

        assert args.config == "config.yaml"
        assert args.conditions == "keywords.xlsx"

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.conditions is None
