"""Data models for News Haiku Feed."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FeedSource:
    """A named RSS feed endpoint."""

    name: str
    url: str


@dataclass
class FeedItem:
    """Represents a single normalized RSS/Atom feed item."""

    title: str
    link: str
    published: datetime
    guid: str
    source_name: str
    excerpt: str | None = None


@dataclass(frozen=True)
class Haiku:
    """A validated 5-7-5 haiku generated from a feed item."""

    id: str  # guid of the source item
    text: str  # three lines joined by "\n"
    link: str
    source: str
    timestamp: int  # ms since epoch, from the publication time
    original_title: str
    original_excerpt: str | None = None

    @classmethod
    def from_item(cls, item: FeedItem, text: str) -> "Haiku":
        """Build a haiku for a feed item."""
        return cls(
            id=item.guid,
            text=text,
            link=item.link,
            source=item.source_name,
            timestamp=int(item.published.timestamp() * 1000),
            original_title=item.title,
            original_excerpt=item.excerpt,
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON wire representation."""
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "link": self.link,
            "source": self.source,
            "timestamp": self.timestamp,
            "originalTitle": self.original_title,
        }
        if self.original_excerpt is not None:
            data["originalExcerpt"] = self.original_excerpt
        return data
