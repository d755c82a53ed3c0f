"""Shared fakes for the haiku feed tests."""

from datetime import UTC, datetime, timedelta

import pytest
from hypothesis import settings

from haiku_feed.models import FeedItem

# First examples pay one-off warm-up costs (e.g. dictionary loading); don't
# let Hypothesis's per-example deadline turn that into a flaky failure.
settings.register_profile("default", deadline=None)
settings.load_profile("default")

VALID_HAIKU = "the cold wind blows hard\nsnow falls on the quiet town\nwe wait for the spring"
INVALID_HAIKU = "the cold wind blows\nsnow falls\nend"


class FakeTextClient:
    """Stands in for BedrockTextClient; answers by prompt substring."""

    def __init__(self, responses=None, default=None, error=None):
        self.responses = responses or {}
        self.default = default
        self.error = error
        self.prompts = []

    async def acomplete(self, prompt, max_tokens=None, temperature=None):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        for marker, response in self.responses.items():
            if marker in prompt:
                return response
        return self.default


class FakeFetcher:
    """Stands in for FeedProcessor.fetch_feeds."""

    def __init__(self, items=None):
        self.items = list(items or [])
        self.calls = 0

    async def fetch_feeds(self, sources):
        self.calls += 1
        return list(self.items)


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self, clock=None):
        self.delays = []
        self.clock = clock

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self.clock is not None:
            self.clock.now += seconds


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def make_item(guid, title=None, excerpt=None, minutes_ago=0, source="Test Source"):
    published = datetime(2024, 5, 1, 12, 0, tzinfo=UTC) - timedelta(minutes=minutes_ago)
    return FeedItem(
        title=title or f"Headline {guid}",
        link=f"https://example.com/{guid}",
        published=published,
        guid=guid,
        source_name=source,
        excerpt=excerpt,
    )


@pytest.fixture
def fake_client():
    return FakeTextClient(default=VALID_HAIKU)


@pytest.fixture
def recording_sleep():
    return RecordingSleep()
