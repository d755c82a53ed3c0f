"""In-memory haiku store for News Haiku Feed."""

import time
from datetime import UTC, datetime

from .dedup import ProcessedLedger
from .logging_config import create_execution_logger
from .models import Haiku


class HaikuStore:
    """Keyed collection of generated haikus.

    The store owns the processed-item ledger: both are cleared together,
    otherwise cleared items could never be generated again. It also keeps
    the time of the last clear so callers can expire the whole cache.
    """

    def __init__(
        self,
        ledger: ProcessedLedger | None = None,
        lifetime_seconds: float = 3 * 60 * 60,
        execution_id: str | None = None,
    ):
        self.ledger = ledger or ProcessedLedger(execution_id)
        self.lifetime_seconds = lifetime_seconds
        self.last_cleared: float | None = None
        self._haikus: dict[str, Haiku] = {}
        self.logger = create_execution_logger("haiku_store", execution_id)

    def __len__(self) -> int:
        return len(self._haikus)

    def add(self, haiku: Haiku) -> None:
        """Store a haiku and mark its source item processed."""
        self._haikus[haiku.id] = haiku
        self.ledger.mark_as_processed(haiku.id)

    def get_all(self) -> list[Haiku]:
        """Return all haikus, newest first."""
        return sorted(self._haikus.values(), key=lambda h: h.timestamp, reverse=True)

    def get_by_id(self, haiku_id: str) -> Haiku | None:
        return self._haikus.get(haiku_id)

    def clear(self, now: float | None = None) -> None:
        """Drop every haiku and reset the processed ledger."""
        count = len(self._haikus)
        self._haikus.clear()
        self.ledger.reset()
        self.last_cleared = time.time() if now is None else now
        self.logger.info("Haiku store cleared", cleared_count=count)

    def is_expired(self, now: float | None = None) -> bool:
        if self.last_cleared is None:
            return True
        now = time.time() if now is None else now
        return now - self.last_cleared > self.lifetime_seconds

    def clear_if_expired(self, now: float | None = None) -> bool:
        """Clear the store when its lifetime has elapsed since the last clear.

        Args:
            now: Current time in epoch seconds (defaults to time.time())

        Returns:
            True if the store was cleared
        """
        now = time.time() if now is None else now
        if self.is_expired(now):
            self.logger.info("Clearing cache to get fresh news items")
            self.clear(now)
            return True

        self.logger.info(
            "Using existing cache",
            last_cleared=datetime.fromtimestamp(self.last_cleared, UTC).isoformat(),
        )
        return False
