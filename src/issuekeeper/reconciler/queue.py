"""
Work queue for reconcile triggers.

Delivers record keys to workers with the guarantees the reconciler relies on:

- De-duplication: a key waiting in the queue is queued once.
- Per-key exclusivity: a key handed to a worker is not handed out again
  until ``done``; adds in the meantime are deferred to that point.
- Delayed adds: ``add_after`` schedules a key, keeping the earliest
  pending deadline per key.
"""

import asyncio
import logging
from typing import Optional

from issuekeeper.models.record import RecordKey

logger = logging.getLogger(__name__)


class WorkQueue:
    """Async de-duplicating work queue keyed by RecordKey."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[RecordKey]] = asyncio.Queue()
        self._dirty: set[RecordKey] = set()
        self._processing: set[RecordKey] = set()
        self._timers: dict[RecordKey, asyncio.TimerHandle] = {}
        self._shutting_down = False

    def __len__(self) -> int:
        """Number of keys waiting to be handed out."""
        return len(self._dirty - self._processing)

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def is_processing(self, key: RecordKey) -> bool:
        return key in self._processing

    def is_scheduled(self, key: RecordKey) -> bool:
        """Whether a delayed add is pending for the key."""
        return key in self._timers

    def add(self, key: RecordKey) -> None:
        """Queue a key now."""
        if self._shutting_down or key in self._dirty:
            return
        self._dirty.add(key)
        if key in self._processing:
            return
        self._queue.put_nowait(key)

    def add_after(self, key: RecordKey, delay: float) -> None:
        """Queue a key after ``delay`` seconds.

        An earlier pending add for the same key is kept; a later one is
        replaced.
        """
        if self._shutting_down:
            return
        if delay <= 0:
            self.add(key)
            return

        loop = asyncio.get_running_loop()
        when = loop.time() + delay
        existing = self._timers.get(key)
        if existing is not None:
            if existing.when() <= when:
                return
            existing.cancel()
        self._timers[key] = loop.call_at(when, self._fire, key)
        logger.debug(f"Scheduled {key} in {delay:.1f}s")

    def _fire(self, key: RecordKey) -> None:
        self._timers.pop(key, None)
        self.add(key)

    async def get(self) -> Optional[RecordKey]:
        """Wait for the next key.

        Returns:
            The key, now marked as processing, or None once shut down
        """
        while not self._shutting_down:
            key = await self._queue.get()
            if key is None or self._shutting_down:
                break
            if key in self._processing or key not in self._dirty:
                continue
            self._dirty.discard(key)
            self._processing.add(key)
            return key
        # Wake the next waiting worker too
        self._queue.put_nowait(None)
        return None

    def done(self, key: RecordKey) -> None:
        """Mark a key finished; re-queue it if it was added meanwhile."""
        self._processing.discard(key)
        if key in self._dirty and not self._shutting_down:
            self._queue.put_nowait(key)

    def shutdown(self) -> None:
        """Stop handing out keys and cancel delayed adds."""
        self._shutting_down = True
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()
        self._queue.put_nowait(None)
