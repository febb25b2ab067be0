"""
Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Naver News Keyword Monitor test suite.
"""

from pathlib import Path
from typing import Iterable, Sequence
from unittest.mock import Mock

import pytest
from openpyxl import Workbook

from naver_monitor.models.condition import ConditionTable
from naver_monitor.models.config import Configuration, SourceConfig
from naver_monitor.models.delivery import DeliveryResult
from naver_monitor.models.post import Post
from naver_monitor.models.state import MonitorState
from naver_monitor.utils import error_handling


LISTING_HTML = """
<html>
<head><meta charset="euc-kr"></head>
<body>
<div class="list_body newsflash_body">
  <ul class="type06_headline">
    <li>
      <dl>
        <dt><a href="https://n.news.naver.com/article/001/0000000001">  삼성전자 신제품 출시  </a></dt>
        <dd><span class="lede">갤럭시 새 모델 공개</span> <span class="writing">연합뉴스</span></dd>
      </dl>
    </li>
  </ul>
  <ul class="type06">
    <li>
      <dl>
        <dt><a href="https://n.news.naver.com/article/001/0000000002">애플 실적 발표</a></dt>
        <dd>아이폰 판매 증가</dd>
      </dl>
    </li>
    <li>
      <dl>
        <dt><a href="https://n.news.naver.com/article/001/0000000003">날씨 소식</a></dt>
      </dl>
    </li>
  </ul>
  <ul class="type07">
    <li>
      <dl>
        <dd>제목 없는 기사</dd>
      </dl>
    </li>
  </ul>
</div>
</body>
</html>
"""


@pytest.fixture(autouse=True)
def fresh_error_tracking():
    """Give each test its own error tracker and degradation manager."""
    error_handling._error_tracker = None
    error_handling._degradation_manager = None
    yield
    error_handling._error_tracker = None
    error_handling._degradation_manager = None


@pytest.fixture
def listing_html():
    return LISTING_HTML


@pytest.fixture
def listing_bytes():
    """The listing page as the server sends it, EUC-KR encoded."""
    return LISTING_HTML.encode("euc-kr")


@pytest.fixture
def source_config():
    return SourceConfig()


@pytest.fixture
def default_configuration():
    return Configuration()


@pytest.fixture
def sample_post():
    return Post(title="삼성전자 신제품 출시", description="갤럭시 새 모델 공개")


@pytest.fixture
def sample_posts():
    return [
        Post(title="삼성전자 신제품 출시", description="갤럭시 새 모델 공개"),
        Post(title="애플 실적 발표", description="아이폰 판매 증가"),
        Post(title="날씨 소식", description="내일 전국 비"),
    ]


@pytest.fixture
def condition_table():
    return ConditionTable(
        {
            "애플 AND 실적": "APPLE",
            "삼성전자 AND 출시": "SAMSUNG",
        }
    )


@pytest.fixture
def monitor_state(condition_table):
    return MonitorState(condition_table)


@pytest.fixture
def mock_notifier():
    notifier = Mock()
    notifier.notify.return_value = DeliveryResult.delivered("mock")
    notifier.test_connection.return_value = True
    return notifier


@pytest.fixture
def write_workbook(tmp_path):
    """Write rows to an .xlsx file and return its path."""

    def _write(
        rows: Iterable[Sequence[object]],
        name: str = "conditions.xlsx",
        sheet_title: str = "Sheet1",
    ) -> Path:
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = sheet_title
        for row in rows:
            worksheet.append(list(row))

        path = tmp_path / name
        workbook.save(path)
        return path

    return _write
