"""
Event Dispatcher

Decouples "an event occurred" from "what handles it". Events are queued
with submit() and handled by a fixed pool of asyncio worker tasks, so the
caller never waits for handling to finish.

Usage:
    dispatcher = EventDispatcher(workers=4, queue_size=1000)
    dispatcher.register(EventKind.TRADE_SIGNAL, TradeSignalHandler(...))
    await dispatcher.start()

    dispatcher.submit(Event(EventKind.TRADE_SIGNAL, signal))

    # On shutdown - events still queued or running after the timeout are abandoned
    await dispatcher.stop(timeout=30)
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional

from market.events.base import Event, EventHandler, EventKind
from market.exceptions import DispatchQueueFull, HandleEventError

logger = logging.getLogger(__name__)


class OverflowPolicy(str, Enum):
    """What submit() does when the queue is full."""
    REJECT = "reject"  # raise DispatchQueueFull
    DROP = "drop"  # log and discard the event


class EventDispatcher:
    def __init__(
        self,
        handlers: Optional[Mapping[EventKind, EventHandler]] = None,
        workers: int = 4,
        queue_size: int = 1000,
        overflow: OverflowPolicy = OverflowPolicy.REJECT,
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._worker_count = workers
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)  # 0 = unbounded
        self._overflow = OverflowPolicy(overflow)
        self._handlers: Dict[EventKind, EventHandler] = dict(handlers or {})
        self._workers: List[asyncio.Task] = []
        self._accepting = False

        self._in_flight = 0
        self._processed = 0
        self._failed = 0
        self._dropped = 0

    @property
    def is_running(self) -> bool:
        return self._accepting

    def register(self, kind: EventKind, handler: EventHandler):
        """Register the handler for an event kind (before start())."""
        if self._workers:
            raise RuntimeError("Handlers must be registered before the dispatcher starts")
        self._handlers[kind] = handler

    async def start(self):
        if self._workers:
            return
        self._accepting = True
        self._workers = [
            asyncio.create_task(self._worker(n), name=f"dispatch-worker-{n}")
            for n in range(self._worker_count)
        ]
        logger.info(
            f"Event dispatcher started - {self._worker_count} workers, "
            f"queue size {self._queue.maxsize or 'unbounded'}, overflow={self._overflow.value}"
        )

    def submit(self, event: Event) -> bool:
        """
        Queue an event for background handling.

        Returns:
            True if queued, False if dropped (DROP overflow policy)

        Raises:
            RuntimeError: dispatcher not running
            DispatchQueueFull: queue full and overflow policy is REJECT
        """
        if not self._accepting:
            raise RuntimeError("Event dispatcher is not running")

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            if self._overflow == OverflowPolicy.DROP:
                self._dropped += 1
                logger.error(f"Dispatch queue full - dropped {event.kind.value} event {event.event_id}")
                return False
            logger.error(f"Dispatch queue full - rejected {event.kind.value} event {event.event_id}")
            raise DispatchQueueFull()

        logger.debug(f"Queued {event.kind.value} event {event.event_id} (queue depth {self._queue.qsize()})")
        return True

    async def _worker(self, number: int):
        while True:
            event = await self._queue.get()
            self._in_flight += 1
            try:
                await self._handle(event)
            finally:
                self._in_flight -= 1
                self._queue.task_done()

    async def _handle(self, event: Event):
        handler = self._handlers.get(event.kind)
        if handler is None:
            self._failed += 1
            logger.error(f"No handler registered for {event.kind.value} event {event.event_id}")
            return

        try:
            await handler.handle(event.payload)
        except HandleEventError as e:
            self._failed += 1
            logger.error(f"Failed to handle {event.kind.value} event {event.event_id}: {e.message}")
        except Exception:
            self._failed += 1
            logger.exception(f"Unexpected error handling {event.kind.value} event {event.event_id}")
        else:
            self._processed += 1
            logger.info(f"Handled {event.kind.value} event {event.event_id}")

    async def stop(self, timeout: float = 30.0) -> int:
        """
        Stop accepting events and wait up to `timeout` seconds for queued and
        running events to finish. Whatever is left is abandoned.

        Returns:
            Number of abandoned events
        """
        self._accepting = False
        abandoned = 0

        if self._workers:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=timeout)
            except asyncio.TimeoutError:
                abandoned = self._queue.qsize() + self._in_flight
                logger.warning(
                    f"Dispatcher shutdown timeout after {timeout}s - abandoning {abandoned} event(s) "
                    f"({self._in_flight} in flight, {self._queue.qsize()} queued); "
                    f"their orders may or may not have reached the broker"
                )

            for task in self._workers:
                task.cancel()
            await asyncio.gather(*self._workers, return_exceptions=True)
            self._workers = []

        logger.info(
            f"Event dispatcher stopped - processed={self._processed}, "
            f"failed={self._failed}, dropped={self._dropped}, abandoned={abandoned}"
        )
        return abandoned

    def stats(self) -> dict:
        return {
            "running": self._accepting,
            "workers": self._worker_count,
            "queued": self._queue.qsize(),
            "in_flight": self._in_flight,
            "processed": self._processed,
            "failed": self._failed,
            "dropped": self._dropped,
        }
