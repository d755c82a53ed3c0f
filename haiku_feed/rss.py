"""RSS Feed Processing module for News Haiku Feed."""

import asyncio
from datetime import UTC, datetime
from urllib.parse import urlparse

import feedparser
import requests
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from .logging_config import create_execution_logger
from .models import FeedItem, FeedSource


class FeedProcessor:
    """Handles concurrent RSS/Atom feed fetching and normalization."""

    def __init__(
        self,
        max_items_per_feed: int = 5,
        timeout: int = 30,
        execution_id: str | None = None,
    ):
        """Initialize FeedProcessor with configuration.

        Args:
            max_items_per_feed: Most recent items kept from each feed
            timeout: HTTP request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.max_items_per_feed = max_items_per_feed
        self.timeout = timeout
        self.logger = create_execution_logger("feed_processor", execution_id)
        self.user_agent = "News-Haiku-Feed/1.0 (World news RSS to haiku)"

        self.logger.info(
            "FeedProcessor initialized",
            timeout=timeout,
            max_items_per_feed=max_items_per_feed,
        )

    def create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({"User-Agent": self.user_agent})
        return session

    async def fetch_feeds(self, sources: list[FeedSource]) -> list[FeedItem]:
        """Fetch and parse several feeds concurrently.

        A failing source contributes no items; the others are unaffected.

        Args:
            sources: Feed sources to fetch this cycle

        Returns:
            Concatenated FeedItem lists, in source order
        """
        self.logger.log_execution_start(
            feed_count=len(sources), sources=[s.name for s in sources]
        )

        results = await asyncio.gather(
            *(self.fetch_source(source) for source in sources)
        )
        all_items = [item for items in results for item in items]

        self.logger.log_execution_end(success=True, total_items=len(all_items))
        return all_items

    async def fetch_source(self, source: FeedSource) -> list[FeedItem]:
        """Fetch one source, converting any failure into an empty list."""
        try:
            items = await asyncio.to_thread(self.parse_feed, source)
        except Exception as e:
            self.logger.error(
                f"Error fetching or parsing RSS feed from {source.name}: {e}",
                source_name=source.name,
                feed_url=source.url,
                error=str(e),
            )
            return []

        self.logger.log_feed_processing(source.name, len(items))
        return items

    def parse_feed(self, source: FeedSource) -> list[FeedItem]:
        """Download and parse a single RSS/Atom feed.

        Only entries carrying a title, link, publication date and guid are
        kept; they are sorted newest first and truncated.

        Args:
            source: Feed source to download

        Returns:
            Most recent FeedItem objects from the feed

        Raises:
            ValueError: If the feed URL is not http(s)
            requests.RequestException: If feed download fails
        """
        parsed_url = urlparse(source.url)
        if parsed_url.scheme not in ("http", "https"):
            error_msg = f"Feed URL must use HTTP(S) protocol: {source.url}"
            self.logger.error(error_msg, feed_url=source.url, scheme=parsed_url.scheme)
            raise ValueError(error_msg)

        self.logger.debug("Downloading feed content", feed_url=source.url)
        # One session per download; parse_feed runs in several worker threads at once
        session = self.create_session()
        try:
            response = session.get(source.url, timeout=self.timeout)
            response.raise_for_status()
        finally:
            session.close()

        feed = feedparser.parse(response.content)

        if feed.bozo and hasattr(feed, "bozo_exception"):
            self.logger.warning(
                f"Feed parsing warning for {source.url}: {feed.bozo_exception}",
                feed_url=source.url,
                bozo_exception=str(feed.bozo_exception),
            )

        items = []
        for entry in feed.entries:
            item = self.normalize_item(entry, source)
            if item is not None:
                items.append(item)

        items.sort(key=lambda item: item.published, reverse=True)
        items = items[: self.max_items_per_feed]

        self.logger.info(
            f"Fetched {len(feed.entries)} items from {source.name}",
            feed_url=source.url,
            source_name=source.name,
            items_count=len(items),
            total_entries=len(feed.entries),
        )
        return items

    def normalize_item(self, raw_item, source: FeedSource) -> FeedItem | None:
        """Normalize a raw feed entry into a FeedItem.

        Args:
            raw_item: Raw feed entry from feedparser
            source: Source the entry came from

        Returns:
            Normalized FeedItem, or None if a required field is missing
        """
        title = (getattr(raw_item, "title", None) or "").strip()
        link = (getattr(raw_item, "link", None) or "").strip()
        published = self.parse_published(getattr(raw_item, "published", None))

        # RSS <guid> surfaces as "id" in feedparser
        guid = getattr(raw_item, "id", None) or getattr(raw_item, "guid", None)

        if not (title and link and published and guid):
            self.logger.debug(
                "Skipping entry with missing fields",
                source_name=source.name,
                item_title=title,
            )
            return None

        content = ""
        if getattr(raw_item, "summary", None):
            content = raw_item.summary
        elif getattr(raw_item, "description", None):
            content = raw_item.description

        excerpt = self.clean_html_content(content) or None

        return FeedItem(
            title=title,
            link=link,
            published=published,
            guid=str(guid),
            source_name=source.name,
            excerpt=excerpt,
        )

    @staticmethod
    def parse_published(published_str: str | None) -> datetime | None:
        """Parse a feed date string into an aware datetime (UTC if naive)."""
        if not published_str:
            return None
        try:
            published = date_parser.parse(published_str)
        except (ValueError, TypeError, OverflowError):
            return None
        if published.tzinfo is None:
            published = published.replace(tzinfo=UTC)
        return published

    def clean_html_content(self, content: str | None) -> str:
        """Remove HTML tags from content and normalize whitespace.

        Args:
            content: Raw content that may contain HTML

        Returns:
            Clean text content without HTML tags
        """
        if not content:
            return ""

        if "<" not in content and ">" not in content:
            return " ".join(content.split())

        soup = BeautifulSoup(content, "html.parser")

        for script in soup(["script", "style"]):
            script.decompose()

        text = soup.get_text(separator=" ")
        text = text.replace("<", "").replace(">", "")

        return " ".join(text.split())
