"""Deduplication ledger for News Haiku Feed."""

from .logging_config import create_execution_logger


class ProcessedLedger:
    """Tracks feed item guids that have already been turned into haikus.

    A guid is recorded whether generation succeeded or not, so a failing
    item is not re-submitted on every poll cycle. Entries are only ever
    removed all at once through ``reset``.
    """

    def __init__(self, execution_id: str | None = None):
        self._processed: set[str] = set()
        self.logger = create_execution_logger("deduplicator", execution_id)

    def __len__(self) -> int:
        return len(self._processed)

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._processed

    def has_been_processed(self, item_id: str) -> bool:
        """Check whether an item guid has already been attempted.

        Args:
            item_id: The feed item guid to check

        Returns:
            True if the guid was processed before, False otherwise
        """
        return item_id in self._processed

    def mark_as_processed(self, item_id: str) -> None:
        """Record an item guid as attempted."""
        self._processed.add(item_id)
        self.logger.debug("Marked item as processed", item_id=item_id)

    def reset(self) -> None:
        """Forget every processed guid."""
        count = len(self._processed)
        self._processed.clear()
        self.logger.info("Processed ledger reset", cleared_count=count)
