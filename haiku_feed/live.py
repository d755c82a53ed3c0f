"""Live update channel: pushes haikus to one connected client."""

import asyncio
import enum
import json
from collections.abc import Awaitable, Callable
from typing import Any

from .logging_config import create_execution_logger
from .models import Haiku
from .processor import BatchProcessor
from .store import HaikuStore
from .translation import Translator


class ChannelState(enum.Enum):
    INITIALIZING = "initializing"
    IDLE = "idle"
    CHECKING = "checking"
    CLOSED = "closed"


def format_event(event: str, data: Any) -> str:
    """Frame one server-sent event."""
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def serialize_haikus(haikus: list[Haiku]) -> list[dict[str, Any]]:
    return [haiku.to_dict() for haiku in haikus]


class LiveUpdateChannel:
    """Event stream for a single connection.

    On open the channel sends the current store contents, then polls the
    batch processor every ``poll_interval`` seconds and sends only the new
    haikus. Processing errors are reported as ``error`` events and never
    close the channel. Pre-translation runs in separate background tasks
    whose failures are only logged.
    """

    def __init__(
        self,
        store: HaikuStore,
        processor: BatchProcessor,
        write: Callable[[str], Awaitable[None]],
        translator: Translator | None = None,
        poll_interval: float = 120.0,
        execution_id: str | None = None,
    ):
        self.store = store
        self.processor = processor
        self.translator = translator
        self.poll_interval = poll_interval
        self._write = write
        self.state = ChannelState.INITIALIZING
        self._poll_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._closed = asyncio.Event()
        self.logger = create_execution_logger("live_channel", execution_id)

    @property
    def closed(self) -> bool:
        return self.state is ChannelState.CLOSED

    async def send(self, event: str, data: Any) -> None:
        """Send one event; dropped once the channel is closed."""
        if self.closed:
            return
        try:
            await self._write(format_event(event, data))
        except (ConnectionError, RuntimeError) as e:
            self.logger.warning(
                f"Error sending SSE data for event {event}: {e}",
                event=event,
                error=str(e),
            )
            await self.close()

    async def open(self) -> None:
        """Send the initial state and start polling."""
        self.logger.info("SSE connection established")
        self.store.clear_if_expired()

        await self.send("status", {"initializing": True})
        try:
            initial = self.store.get_all()
            await self.send("initial", serialize_haikus(initial))
            self.logger.info(
                f"Sent {len(initial)} initial haikus", initial_count=len(initial)
            )
            self._spawn_translation(initial)
        except Exception as e:
            self.logger.error(
                f"Error during initial data load for SSE: {e}", error=str(e)
            )
            await self.send("error", {"message": "Failed to load initial data."})
        await self.send("status", {"initializing": False})

        if self.closed:
            return
        self.state = ChannelState.IDLE
        self._poll_task = asyncio.create_task(self._poll_loop(), name="haiku-poll")

    async def run_cycle(self) -> list[Haiku]:
        """Run one polling cycle and send its results."""
        self.state = ChannelState.CHECKING
        new_haikus: list[Haiku] = []
        try:
            await self.send("status", {"checking": True})
            # A disconnect cancels only the wait; the shared cycle runs to completion
            cycle = asyncio.create_task(
                self.processor.process_new_feed_items(), name="haiku-cycle"
            )
            self._background.add(cycle)
            cycle.add_done_callback(self._cycle_done)
            new_haikus = await asyncio.shield(cycle)
            if self.closed:
                return []
            self._spawn_translation(new_haikus)
            await self.send("status", {"checking": False})
            if new_haikus:
                self.logger.info(
                    f"Found {len(new_haikus)} new haikus. Sending update.",
                    new_count=len(new_haikus),
                )
                await self.send("update", serialize_haikus(new_haikus))
        except Exception as e:
            self.logger.error(f"Error during periodic feed check: {e}", error=str(e))
            await self.send("error", {"message": "Error checking feed."})
        finally:
            if not self.closed:
                self.state = ChannelState.IDLE
        return new_haikus

    async def _poll_loop(self) -> None:
        while not self.closed:
            await asyncio.sleep(self.poll_interval)
            if self.closed:
                break
            self.logger.info("Polling for new feed items")
            await self.run_cycle()

    def _cycle_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled() or not self.closed:
            return
        error = task.exception()
        if error is not None:
            self.logger.error(
                f"Feed check finished with an error after close: {error}",
                error=str(error),
            )
        else:
            self.logger.info(
                "Feed check finished after close; results not sent",
                new_count=len(task.result()),
            )

    def _spawn_translation(self, haikus: list[Haiku]) -> None:
        if not self.translator or not haikus:
            return
        task = asyncio.create_task(self.translator.ensure_all_translated(haikus))
        self._background.add(task)
        task.add_done_callback(self._translation_done)

    def _translation_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self.logger.error(f"Error in background pre-translation: {error}", error=str(error))
        else:
            self.logger.info("Background pre-translation completed")

    async def close(self) -> None:
        """Stop polling; later events are dropped.

        A feed check already running is left to finish so its items are
        stored and marked; only its delivery to this client is lost.
        """
        if self.closed:
            return
        self.state = ChannelState.CLOSED
        self._closed.set()
        task = self._poll_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self.logger.info("SSE connection closed")

    async def wait_closed(self) -> None:
        await self._closed.wait()
