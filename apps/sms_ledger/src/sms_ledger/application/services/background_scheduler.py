"""Perpetual background polling of the ingestion pipeline."""

from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import Protocol

from sms_ledger.application.schemas.transactions import TransactionRecord

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0


class SchedulerState(StrEnum):
    """Lifecycle states of the background scheduler."""

    IDLE = "idle"
    RUNNING = "running"


class SyncPipeline(Protocol):
    """Subset of the ingestion pipeline driven by the scheduler."""

    def sync_since(self, watermark: int | None = None) -> list[TransactionRecord]: ...


class BackgroundScheduler:
    """Runs ``sync_since`` every ``interval_seconds`` until stopped.

    The loop waits on a stop event instead of sleeping, so ``stop()`` takes
    effect before the next iteration. An iteration already running is left
    to finish.
    """

    def __init__(
        self,
        pipeline: SyncPipeline,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("Interval must be greater than zero")
        self._pipeline = pipeline
        self._interval_seconds = interval_seconds
        self._state = SchedulerState.IDLE
        self._state_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._worker: threading.Thread | None = None
        self._iterations = 0
        self._failures = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_seconds(self) -> float:
        return self._interval_seconds

    @property
    def iterations(self) -> int:
        """Number of sync iterations started so far."""
        return self._iterations

    @property
    def failures(self) -> int:
        """Number of iterations that ended in an exception."""
        return self._failures

    def start(self) -> bool:
        """Start the loop; return ``False`` when it was already running."""
        with self._state_lock:
            if self._state == SchedulerState.RUNNING:
                return False
            stop_event = threading.Event()
            worker = threading.Thread(
                target=self._loop,
                args=(stop_event,),
                name="sms-ledger-sync",
                daemon=True,
            )
            self._stop_event = stop_event
            self._worker = worker
            self._state = SchedulerState.RUNNING
            worker.start()

        logger.info(
            "Background sync started (interval=%ss)", self._interval_seconds
        )
        return True

    def stop(self, *, wait: bool = False, timeout: float | None = None) -> bool:
        """Stop scheduling iterations; return ``False`` when already idle."""
        with self._state_lock:
            if self._state == SchedulerState.IDLE:
                return False
            self._stop_event.set()
            self._state = SchedulerState.IDLE
            worker = self._worker

        logger.info("Background sync stopped")
        if wait and worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
        return True

    def run_forever(self) -> None:
        """Run the loop in the calling thread until interrupted or stopped."""
        self.start()
        worker = self._worker
        try:
            while worker is not None and worker.is_alive():
                worker.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Interrupted; waiting for the current iteration")
        finally:
            self.stop(wait=True)

    def _loop(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            self.run_iteration()
            if stop_event.wait(self._interval_seconds):
                break

    def run_iteration(self) -> list[TransactionRecord]:
        """Run one sync, logging and swallowing any failure."""
        self._iterations += 1
        try:
            records = self._pipeline.sync_since()
        except Exception:
            self._failures += 1
            logger.exception("Background sync iteration %s failed", self._iterations)
            return []

        logger.debug(
            "Background sync iteration %s produced %s transactions",
            self._iterations,
            len(records),
        )
        return records
