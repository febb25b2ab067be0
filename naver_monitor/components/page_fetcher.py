"""
Page fetching components for the Naver News Keyword Monitor.

This module retrieves the news listing page over HTTP and decodes the body
with the configured legacy Korean encoding.
"""

import logging
from datetime import datetime
from typing import Optional

import requests

from ..models.config import SourceConfig
from ..utils.error_handling import DecodeError, FetchError

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetches and decodes the listing page."""

    def __init__(self, source: SourceConfig, session: Optional[requests.Session] = None):
        """
        Initialize page fetcher.

        Args:
            source: Source configuration (URL, user agent, encoding, timeout)
            session: Optional pre-built session, mainly for tests
        """
        self.source = source
        self.last_fetch_time: Optional[datetime] = None
        self.consecutive_failures = 0

        # No retry adapter: a failed tick is simply retried on the next period
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": source.user_agent})

    def close(self) -> None:
        """Release the HTTP connection pool."""
        self.session.close()

    def fetch(self) -> str:
        """
        Fetch the listing page and return decoded text.

        Raises:
            FetchError: On network failure or a non-200 status
            DecodeError: If the body is not valid in the configured encoding
        """
        body = self.fetch_bytes()
        text = self.decode(body)

        self.consecutive_failures = 0
        self.last_fetch_time = datetime.now()
        return text

    def fetch_bytes(self) -> bytes:
        logger.debug(f"Fetching listing page: {self.source.url}")

        try:
            response = self.session.get(self.source.url, timeout=self.source.timeout)
        except requests.exceptions.Timeout as e:
            self.consecutive_failures += 1
            raise FetchError(
                f"Timeout fetching {self.source.url} "
                f"(failure #{self.consecutive_failures})"
            ) from e
        except requests.exceptions.RequestException as e:
            self.consecutive_failures += 1
            raise FetchError(
                f"Network error fetching {self.source.url}: {e} "
                f"(failure #{self.consecutive_failures})"
            ) from e

        if response.status_code != 200:
            self.consecutive_failures += 1
            raise FetchError(
                f"Failed to fetch data: {response.status_code}",
                status_code=response.status_code,
            )

        return response.content

    def decode(self, body: bytes) -> str:
        try:
            return body.decode(self.source.encoding)
        except (UnicodeDecodeError, LookupError) as e:
            self.consecutive_failures += 1
            raise DecodeError(
                f"Could not decode response as {self.source.encoding}: {e}"
            ) from e
