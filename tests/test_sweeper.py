#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import threading

import pytest

from roombook.exceptions import SlotUnavailable
from roombook.models import ReservationStatus
from roombook.sweeper import IntervalScheduler, ManualScheduler
from tests.booking_utils import at


@pytest.fixture
def early_clock(clock):
    clock.now = at(7)
    return clock


def test_sweep_completes_ended_reservations(service, early_clock, room_x, alice):
    reservation = service.create_reservation(room_x.room_id, at(8), at(9), "Standup", alice)
    early_clock.now = at(9, 10)
    assert service.sweep() == 1
    assert service.get_reservation(reservation.reservation_id).status == (
        ReservationStatus.COMPLETED
    )
    early_clock.now = at(9, 20)
    assert service.sweep() == 0
    assert service.get_reservation(reservation.reservation_id).status == (
        ReservationStatus.COMPLETED
    )


def test_sweep_leaves_cancelled_and_in_progress(service, early_clock, room_x, alice):
    cancelled = service.create_reservation(room_x.room_id, at(8), at(9), "A", alice)
    service.cancel_reservation(cancelled.reservation_id, alice)
    in_progress = service.create_reservation(room_x.room_id, at(9, 15), at(11), "B", alice)
    assert service.sweep(now=at(10)) == 0
    assert service.get_reservation(cancelled.reservation_id).status == (
        ReservationStatus.CANCELLED
    )
    assert service.get_reservation(in_progress.reservation_id).status == (
        ReservationStatus.APPROVED
    )


def test_sweep_at_exact_end_time(service, early_clock, room_x, alice):
    reservation = service.create_reservation(room_x.room_id, at(8), at(9), "A", alice)
    assert service.sweep(now=at(9)) == 0
    assert service.sweep(now=at(9, 1)) == 1
    assert service.get_reservation(reservation.reservation_id).status == (
        ReservationStatus.COMPLETED
    )


def test_completed_reservation_frees_nothing(service, early_clock, room_x, alice, bob):
    service.create_reservation(room_x.room_id, at(8), at(9), "A", alice)
    early_clock.now = at(9, 5)
    service.sweep()
    # completed reservations still count for conflicts inside the buffer
    with pytest.raises(SlotUnavailable):
        service.create_reservation(room_x.room_id, at(9, 10), at(10), "B", bob)


def test_manual_scheduler(service, early_clock, room_x, alice):
    service.create_reservation(room_x.room_id, at(8), at(9), "A", alice)
    scheduler = ManualScheduler(service.sweeper)
    scheduler.start()
    assert scheduler.tick() == 0
    early_clock.now = at(9, 30)
    assert scheduler.tick() == 1
    scheduler.stop()
    assert scheduler.ticks == 2
    assert scheduler.failed_ticks == 0


def test_failed_tick_is_survived():
    calls = []

    def flaky_job() -> int:
        calls.append(None)
        if len(calls) == 1:
            raise RuntimeError("store unavailable")
        return 3

    scheduler = ManualScheduler(flaky_job)
    assert scheduler.tick() is None
    assert scheduler.failed_ticks == 1
    assert scheduler.tick() == 3
    assert scheduler.ticks == 2


def test_interval_scheduler_runs_until_max_ticks():
    results = []

    def job() -> int:
        results.append(len(results))
        return 0

    scheduler = IntervalScheduler(
        job, interval=datetime.timedelta(milliseconds=5), max_ticks=3
    )
    scheduler.start()
    scheduler.join(timeout=5)
    assert not scheduler.running
    assert scheduler.ticks == 3
    assert results == [0, 1, 2]


def test_interval_scheduler_stop():
    first_tick = threading.Event()

    def job() -> int:
        first_tick.set()
        return 0

    scheduler = IntervalScheduler(job, interval=datetime.timedelta(hours=1))
    scheduler.start()
    # the first tick runs immediately on start
    assert first_tick.wait(timeout=5)
    assert scheduler.running
    scheduler.stop(timeout=5)
    assert not scheduler.running
    assert scheduler.ticks == 1


@pytest.mark.parametrize("interval", [datetime.timedelta(0), datetime.timedelta(-1)])
def test_interval_scheduler_rejects_non_positive_interval(interval):
    with pytest.raises(ValueError):
        IntervalScheduler(lambda: 0, interval=interval)
