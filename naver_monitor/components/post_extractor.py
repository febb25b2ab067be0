"""
Post extraction from the news listing markup.
"""

import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..models.config import SourceConfig
from ..models.post import Post
from ..utils.error_handling import ParseError

logger = logging.getLogger(__name__)


class PostExtractor:
    """Extracts title/description posts from listing items."""

    def __init__(self, source: SourceConfig):
        self.source = source
        self.item_selector = source.item_selector_group()

    def extract(self, markup: str) -> List[Post]:
        """
        Extract posts in document order.

        Items missing a title anchor or description yield empty strings for
        that field rather than being dropped.

        Raises:
            ParseError: If the markup cannot be parsed at all
        """
        try:
            soup = BeautifulSoup(markup, "html.parser")
            items = soup.select(self.item_selector)
        except Exception as e:
            raise ParseError(f"Could not parse listing markup: {e}") from e

        posts = [
            Post(
                title=self._text_of(item, self.source.title_selector),
                description=self._text_of(item, self.source.description_selector),
            )
            for item in items
        ]

        logger.debug(f"Extracted {len(posts)} posts from listing page")
        return posts

    @staticmethod
    def _text_of(item: Tag, selector: str) -> str:
        node: Optional[Tag] = item.select_one(selector)
        if node is None:
            return ""
        return node.get_text().strip()
