"""Feed-to-haiku batch processing."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from .config import PipelineConfig
from .generator import HaikuGenerator
from .logging_config import create_execution_logger
from .models import FeedItem, Haiku
from .rate_limit import FixedWindowRateLimiter
from .rss import FeedProcessor
from .sources import FeedSourceRegistry
from .store import HaikuStore


class BatchProcessor:
    """Fetch feeds, skip processed items and generate haikus in batches.

    Batches run one after another; the items of a batch run concurrently
    and are joined with ``return_exceptions=True`` so a failing item never
    cancels its siblings.
    """

    def __init__(
        self,
        registry: FeedSourceRegistry,
        fetcher: FeedProcessor,
        generator: HaikuGenerator,
        store: HaikuStore,
        limiter: FixedWindowRateLimiter,
        config: PipelineConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        execution_id: str | None = None,
    ):
        self.registry = registry
        self.fetcher = fetcher
        self.generator = generator
        self.store = store
        self.limiter = limiter
        self.config = config or PipelineConfig()
        self._sleep = sleep
        self.logger = create_execution_logger("batch_processor", execution_id)
        self.last_metrics: dict[str, Any] = {}
        # guids whose generation is running; cycles may overlap across connections
        self._in_flight: set[str] = set()

    @property
    def ledger(self):
        return self.store.ledger

    async def process_item(self, item: FeedItem) -> Haiku | None:
        """Generate and store a haiku for one item.

        The item is marked processed once generation has finished, whatever
        its outcome. A cancelled call leaves it unmarked so a later cycle
        can pick it up again.
        """
        if item.guid in self._in_flight or self.ledger.has_been_processed(item.guid):
            return None

        self.logger.info(f"Processing item: {item.title}", item_title=item.title)
        excerpt = item.excerpt or item.title
        self._in_flight.add(item.guid)

        try:
            text = await self.limiter.run(self.generator.generate, excerpt)
        except Exception as e:
            self.ledger.mark_as_processed(item.guid)
            self.logger.error(
                f"Error generating haiku for item {item.title}: {e}",
                item_title=item.title,
                error=str(e),
            )
            return None
        finally:
            self._in_flight.discard(item.guid)

        self.ledger.mark_as_processed(item.guid)
        if not text:
            self.logger.log_item_processing(item.title, "rejected", success=False)
            return None

        haiku = Haiku.from_item(item, text)
        self.store.add(haiku)
        self.logger.log_item_processing(item.title, "generated")
        return haiku

    async def process_new_feed_items(self) -> list[Haiku]:
        """Run one fetch-and-generate cycle.

        Returns:
            Haikus created by this call only
        """
        self.logger.log_execution_start()
        metrics = {
            "items_found": 0,
            "items_unprocessed": 0,
            "batches": 0,
            "haikus_generated": 0,
            "errors": 0,
        }
        self.last_metrics = metrics

        sources = self.registry.select(self.config.sources_per_cycle)
        feed_items = await self.fetcher.fetch_feeds(sources)
        metrics["items_found"] = len(feed_items)

        if not feed_items:
            self.logger.info("No feed items fetched")
            self.logger.log_execution_end(success=True, metrics=metrics)
            return []

        unprocessed = []
        seen = set()
        for item in feed_items:
            if item.guid in seen or self.ledger.has_been_processed(item.guid):
                continue
            seen.add(item.guid)
            unprocessed.append(item)
        metrics["items_unprocessed"] = len(unprocessed)
        self.logger.info(
            f"Found {len(unprocessed)} unprocessed items out of {len(feed_items)} total",
            unprocessed_count=len(unprocessed),
            total_count=len(feed_items),
        )

        new_haikus: list[Haiku] = []
        size = self.config.batch_size
        batches = [unprocessed[i : i + size] for i in range(0, len(unprocessed), size)]

        for index, batch in enumerate(batches):
            self.logger.info(
                f"Processing batch {index + 1} of {len(batches)}",
                batch_size=len(batch),
            )
            results = await asyncio.gather(
                *(self.process_item(item) for item in batch), return_exceptions=True
            )
            metrics["batches"] += 1

            for item, result in zip(batch, results):
                if isinstance(result, BaseException):
                    metrics["errors"] += 1
                    self.logger.error(
                        f"Item processing failed: {result}",
                        item_title=item.title,
                        error=str(result),
                    )
                elif result is not None:
                    new_haikus.append(result)

            if index < len(batches) - 1:
                await self._sleep(self.config.batch_delay_seconds)

        metrics["haikus_generated"] = len(new_haikus)
        self.logger.info(
            f"Feed processing finished. Generated {len(new_haikus)} new haikus.",
            new_count=len(new_haikus),
        )
        self.logger.log_execution_end(success=True, metrics=metrics)
        return new_haikus
