#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging
import uuid

import polars as pl

from roombook.aliases import ReservationId, RoomId, UserId
from roombook.exceptions import ReservationNotFound
from roombook.models import Reservation, ReservationFilter, ReservationStatus
from roombook.store.database_schemas import DatabaseNamespace
from roombook.store.document_store import DocumentStore
from roombook.store.filters import (
    NOT_GIVEN,
    exact_match_filter_dataframe,
    filter_dataframe,
    gt_eq_filter_dataframe,
    lt_filter_dataframe,
)
from roombook.time_utils import Clock, TimeInterval, day_bounds, utc_now

logger = logging.getLogger(__name__)


def not_cancelled() -> pl.Expr:
    return pl.col("status") != ReservationStatus.CANCELLED.value


def overlapping(interval: TimeInterval, buffer: datetime.timedelta) -> pl.Expr:
    """Matches reservations whose interval, expanded by `buffer` on both sides,
    intersects `interval`. Abutting intervals do not match."""
    return (pl.col("start_time") < interval.end + buffer) & (
        pl.col("end_time") + buffer > interval.start
    )


class ReservationStore:
    """System of record for reservations.

    Only persistence and lookups live here; legality of a reservation is
    decided by `roombook.conflicts.ConflictResolver` and status transitions
    by the booking service and the lifecycle sweeper.
    """

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    def insert(
        self,
        room_id: RoomId,
        requester_id: UserId,
        title: str,
        start_time: datetime.datetime,
        end_time: datetime.datetime,
        status: ReservationStatus = ReservationStatus.APPROVED,
    ) -> Reservation:
        now = self._clock()
        reservation = Reservation(
            reservation_id=str(uuid.uuid4()),
            room_id=room_id,
            requester_id=requester_id,
            title=title,
            start_time=start_time,
            end_time=end_time,
            status=status,
            created_at=now,
            updated_at=now,
        )
        row = reservation.model_dump()
        row["status"] = reservation.status.value
        self._store.add_to_database(namespace=DatabaseNamespace.RESERVATIONS, rows=[row])
        return reservation

    def get(self, reservation_id: ReservationId) -> Reservation:
        records = self._store.find(
            DatabaseNamespace.RESERVATIONS,
            pl.col("reservation_id") == reservation_id,
        )
        if not records:
            raise ReservationNotFound(reservation_id)
        return Reservation(**records[0])

    def find(self, criteria: ReservationFilter | None = None) -> list[Reservation]:
        """Return the reservations matching all the given criteria, ordered by
        start time."""
        criteria = criteria or ReservationFilter()
        date_range = criteria.date_range
        if date_range is None and criteria.date is not None:
            date_range = day_bounds(criteria.date)

        def given(value):
            return NOT_GIVEN if value is None else value

        records = filter_dataframe(
            self._store.get_database(DatabaseNamespace.RESERVATIONS),
            filter_criteria=[
                ("room_id", given(criteria.room_id), exact_match_filter_dataframe),
                (
                    "requester_id",
                    given(criteria.requester_id),
                    exact_match_filter_dataframe,
                ),
                (
                    "status",
                    given(criteria.status and criteria.status.value),
                    exact_match_filter_dataframe,
                ),
                (
                    "start_time",
                    given(date_range and date_range.start),
                    gt_eq_filter_dataframe,
                ),
                ("start_time", given(date_range and date_range.end), lt_filter_dataframe),
            ],
        )
        return [Reservation(**r) for r in records.sort("start_time").to_dicts()]

    def find_overlapping(
        self,
        interval: TimeInterval,
        room_id: RoomId | None = None,
        buffer: datetime.timedelta = datetime.timedelta(0),
    ) -> list[Reservation]:
        """Non-cancelled reservations intersecting `interval` once expanded by
        `buffer`, on one room or on all rooms if `room_id` is not given."""
        predicate = not_cancelled() & overlapping(interval, buffer)
        if room_id is not None:
            predicate = predicate & (pl.col("room_id") == room_id)
        records = self._store.find(DatabaseNamespace.RESERVATIONS, predicate)
        records.sort(key=lambda r: r["start_time"])
        return [Reservation(**r) for r in records]

    def update_status(
        self,
        reservation_id: ReservationId,
        status: ReservationStatus,
        expected_status: ReservationStatus | None = None,
    ) -> Reservation | None:
        """Set the status of a reservation in a single store operation.

        If `expected_status` is given the reservation is only modified while it
        is still in that status, and `None` is returned when it is not.

        Raises
        ------
        ReservationNotFound
            If there is no reservation with this id.
        """
        predicate = pl.col("reservation_id") == reservation_id
        if expected_status is not None:
            predicate = predicate & (pl.col("status") == expected_status.value)
        updated = self._store.update_database(
            DatabaseNamespace.RESERVATIONS,
            predicate,
            {"status": status.value, "updated_at": self._clock()},
        )
        current = self.get(reservation_id)
        return current if updated else None

    def bulk_update_status(self, predicate: pl.Expr, status: ReservationStatus) -> int:
        """Set `status` on every reservation matching `predicate` in a single
        store operation. Returns the number of modified reservations."""
        return self._store.update_database(
            DatabaseNamespace.RESERVATIONS,
            predicate & (pl.col("status") != status.value),
            {"status": status.value, "updated_at": self._clock()},
        )
