"""Registry of world-news feed sources."""

import random

from .models import FeedSource

DEFAULT_FEED_SOURCES = (
    FeedSource("The Guardian", "https://www.theguardian.com/world/rss"),
    FeedSource("BBC News", "http://feeds.bbci.co.uk/news/world/rss.xml"),
    FeedSource("CNN", "http://rss.cnn.com/rss/edition_world.rss"),
    FeedSource("NPR News", "https://feeds.npr.org/1001/rss.xml"),
    FeedSource("Al Jazeera", "https://www.aljazeera.com/xml/rss/all.xml"),
    FeedSource("ABC News", "https://abcnews.go.com/abcnews/worldnewsheadlines"),
    FeedSource("CBS News", "https://www.cbsnews.com/latest/rss/world"),
    FeedSource("NBC News", "https://feeds.nbcnews.com/nbcnews/public/world"),
    FeedSource("Washington Post", "https://feeds.washingtonpost.com/rss/world"),
    FeedSource("NYT World", "https://rss.nytimes.com/services/xml/rss/nyt/World.xml"),
)


class FeedSourceRegistry:
    """Static list of feed sources, sampled per poll cycle."""

    def __init__(
        self,
        sources: list[FeedSource] | tuple[FeedSource, ...] = DEFAULT_FEED_SOURCES,
        rng: random.Random | None = None,
    ):
        self.sources = list(sources)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.sources)

    def select(self, count: int) -> list[FeedSource]:
        """Pick ``count`` distinct sources at random (all of them if fewer)."""
        count = min(max(count, 0), len(self.sources))
        return self._rng.sample(self.sources, count)
