#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

import polars as pl

from roombook.constants import DEFAULT_SWEEP_INTERVAL_MINUTES
from roombook.models import ReservationStatus
from roombook.reservations import ReservationStore
from roombook.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)

SweepJob = Callable[[], int]


class LifecycleSweeper:
    """Moves approved reservations whose end time has passed to `COMPLETED`.

    A sweep is a single bulk update and is idempotent: running it again
    without time passing changes nothing. Cancelled reservations are never
    touched, and a reservation in progress (ended in the future) stays
    approved.
    """

    def __init__(self, reservations: ReservationStore, clock: Clock = utc_now):
        self._reservations = reservations
        self._clock = clock

    def sweep(self, now: datetime.datetime | None = None) -> int:
        """Run one sweep and return the number of reservations completed."""
        now = now or self._clock()
        logger.debug(f"Checking for expired reservations at {now.isoformat()}")
        completed = self._reservations.bulk_update_status(
            (pl.col("status") == ReservationStatus.APPROVED.value)
            & (pl.col("end_time") < now),
            ReservationStatus.COMPLETED,
        )
        if completed > 0:
            logger.info(f"Archived {completed} expired reservation(s)")
        return completed

    __call__ = sweep


class Scheduler(ABC):
    """Invokes a sweep job periodically.

    `tick` runs the job once and is what the periodic execution calls, so
    tests can drive the schedule by hand.
    """

    def __init__(self, job: SweepJob):
        self._job = job
        self.ticks = 0
        self.failed_ticks = 0

    def tick(self) -> int | None:
        """Run the job once. A failed run is logged and reported as `None`:
        the next tick re-evaluates the same predicate, so nothing is lost."""
        self.ticks += 1
        try:
            return self._job()
        except Exception:
            self.failed_ticks += 1
            logger.exception(f"Sweep {self.ticks} failed, retrying on the next tick")
            return None

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...


class ManualScheduler(Scheduler):
    """Runs the job only when `tick` is called."""

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass


class IntervalScheduler(Scheduler):
    """Runs the job on a daemon thread every `interval`, starting immediately."""

    def __init__(
        self,
        job: SweepJob,
        interval: datetime.timedelta = datetime.timedelta(
            minutes=DEFAULT_SWEEP_INTERVAL_MINUTES
        ),
        max_ticks: int | None = None,
    ):
        super().__init__(job)
        if interval.total_seconds() <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self.interval = interval
        self.max_ticks = max_ticks
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            if self.max_ticks is not None and self.ticks >= self.max_ticks:
                break
            self._stop_event.wait(self.interval.total_seconds())
        logger.info(f"Sweeper stopped after {self.ticks} tick(s)")

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="roombook-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(f"Sweeper started, running every {self.interval}")

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)

    def join(self, timeout: float | None = None) -> None:
        """Block until the schedule ends (after `max_ticks` or `stop`)."""
        if self._thread is not None:
            self._thread.join(timeout)
