"""
Controller.

Drives the reconciler from the work queue: subscribes to record changes,
periodically re-enqueues every record, and runs a pool of workers. Failed
invocations are retried with exponential backoff; each retry is a complete
invocation from a fresh read.
"""

import asyncio
import contextlib
import logging
from typing import Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from issuekeeper.config.models import IssueKeeperConfig
from issuekeeper.errors import (
    IssueKeeperError,
    PersistConflictError,
    ReconcileTimeoutError,
    TrackerError,
)
from issuekeeper.models.record import RecordKey
from issuekeeper.reconciler.engine import ReconcileResult, Reconciler
from issuekeeper.reconciler.queue import WorkQueue
from issuekeeper.store.base import RecordStore

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (TrackerError, PersistConflictError, ReconcileTimeoutError)


class Controller:
    """Runs reconcile workers over a work queue.

    Example:
        controller = Controller.from_config(config, reconciler, store)
        await controller.run(stop_event)
    """

    def __init__(
        self,
        reconciler: Reconciler,
        store: RecordStore,
        queue: Optional[WorkQueue] = None,
        workers: int = 2,
        resync_interval: float = 300.0,
        max_attempts: int = 5,
        backoff_min: float = 1.0,
        backoff_max: float = 300.0,
        backoff_multiplier: float = 1.0,
    ) -> None:
        """Initialize the controller.

        Args:
            reconciler: Engine run for each key
            store: Record store to watch
            queue: Work queue (a new one if None)
            workers: Number of concurrent workers
            resync_interval: Seconds between full re-enqueues
            max_attempts: Invocations per trigger before giving up
            backoff_min: Lower bound of the retry wait
            backoff_max: Upper bound of the retry wait; also the delay
                before a key is retried after exhausting its attempts
            backoff_multiplier: Exponential backoff multiplier
        """
        self.reconciler = reconciler
        self.store = store
        self.queue = queue or WorkQueue()
        self.workers = workers
        self.resync_interval = resync_interval
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.backoff_multiplier = backoff_multiplier
        self._subscribed = False

    @classmethod
    def from_config(
        cls,
        config: IssueKeeperConfig,
        reconciler: Reconciler,
        store: RecordStore,
    ) -> "Controller":
        return cls(
            reconciler=reconciler,
            store=store,
            workers=config.queue.workers,
            resync_interval=config.queue.resync_interval_seconds,
            max_attempts=config.queue.max_attempts,
            backoff_min=config.queue.backoff_min_seconds,
            backoff_max=config.queue.backoff_max_seconds,
            backoff_multiplier=config.queue.backoff_multiplier,
        )

    async def reconcile_key(self, key: RecordKey) -> Optional[ReconcileResult]:
        """Reconcile one key with retries, then schedule its next run.

        Returns:
            The final result, or None if every attempt failed
        """
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(
                    multiplier=self.backoff_multiplier,
                    min=self.backoff_min,
                    max=self.backoff_max,
                ),
                retry=retry_if_exception_type(RETRYABLE_ERRORS),
                reraise=True,
            ):
                with attempt:
                    attempt_num = attempt.retry_state.attempt_number
                    if attempt_num > 1:
                        logger.info(f"Reconciling {key} (attempt {attempt_num}/{self.max_attempts})")
                    result = await self.reconciler.reconcile(key)
        except IssueKeeperError as e:
            logger.error(f"Reconcile of {key} failed: {e}; retrying in {self.backoff_max}s")
            self.queue.add_after(key, self.backoff_max)
            return None

        logger.debug(f"Reconciled {key}: {result.outcome.value}")
        if result.requeue_after is not None:
            self.queue.add_after(key, result.requeue_after)
        return result

    async def resync(self) -> int:
        """Enqueue every stored record.

        Returns:
            Number of keys enqueued
        """
        keys = await self.store.list_keys()
        for key in keys:
            self.queue.add(key)
        logger.debug(f"Resync enqueued {len(keys)} records")
        return len(keys)

    async def _resync_loop(self) -> None:
        while True:
            await asyncio.sleep(self.resync_interval)
            await self.resync()

    async def _worker(self, worker_id: int) -> None:
        logger.debug(f"Worker {worker_id} started")
        while True:
            key = await self.queue.get()
            if key is None:
                break
            try:
                await self.reconcile_key(key)
            except Exception:
                logger.exception(f"Unexpected error reconciling {key}")
                self.queue.add_after(key, self.backoff_max)
            finally:
                self.queue.done(key)
        logger.debug(f"Worker {worker_id} stopped")

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Process records until ``stop_event`` is set.

        Args:
            stop_event: Event that ends the run (runs forever if None)
        """
        stop_event = stop_event or asyncio.Event()
        if not self._subscribed:
            self.store.subscribe(self.queue.add)
            self._subscribed = True

        await self.resync()
        logger.info(f"Controller started with {self.workers} workers")

        worker_tasks = [asyncio.create_task(self._worker(i)) for i in range(self.workers)]
        resync_task = asyncio.create_task(self._resync_loop())
        try:
            await stop_event.wait()
        finally:
            self.queue.shutdown()
            resync_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await resync_task
            await asyncio.gather(*worker_tasks)
            logger.info("Controller stopped")
