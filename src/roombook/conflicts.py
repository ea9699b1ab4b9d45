#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""Decides whether a room can legally be reserved for a time interval.

A candidate interval conflicts with an existing, non-cancelled reservation
on the same room when

    existing.start < candidate.end + buffer  and  existing.end + buffer > candidate.start

where `buffer` is the room's buffer time. The buffer is applied to the bounds
of the existing reservation, so the turnover gap is enforced on both sides
whichever booking comes first, and a candidate starting exactly at
`existing.end + buffer` is legal."""

import datetime
import logging

from roombook.aliases import RoomNameOrId
from roombook.exceptions import (
    InvalidInterval,
    PastBooking,
    RoomInactive,
    RoomNotFound,
    SlotUnavailable,
)
from roombook.models import Room
from roombook.reservations import ReservationStore
from roombook.rooms import RoomRegistry
from roombook.time_utils import Clock, TimeInterval, utc_now

logger = logging.getLogger(__name__)


def validate_interval(start: datetime.datetime, end: datetime.datetime) -> TimeInterval:
    interval = TimeInterval(start=start, end=end)
    if not interval.is_valid:
        raise InvalidInterval(start, end)
    return interval


class ConflictResolver:
    def __init__(
        self,
        rooms: RoomRegistry,
        reservations: ReservationStore,
        clock: Clock = utc_now,
    ):
        self._rooms = rooms
        self._reservations = reservations
        self._clock = clock

    def check_times(
        self, start: datetime.datetime, end: datetime.datetime
    ) -> TimeInterval:
        """Reject inverted, empty and retroactive intervals."""
        interval = validate_interval(start, end)
        now = self._clock()
        if start < now:
            raise PastBooking(start, now)
        return interval

    def resolve_room(self, room: RoomNameOrId) -> Room:
        """Resolve a room reference, trying it as an id first and then as a
        case-insensitive name.

        Raises
        ------
        RoomNotFound
            If no room matches the reference.
        RoomInactive
            If the matching room has been deactivated.
        """
        try:
            resolved = self._rooms.get_room(room)
        except RoomNotFound:
            resolved = self._rooms.find_room_by_name(room)
            if resolved is None:
                resolved = self._rooms.find_room_by_name(room, active_only=False)
            if resolved is None:
                raise RoomNotFound(room, self._rooms.suggest_room_names(room))
        if not resolved.is_active:
            raise RoomInactive(resolved.name)
        return resolved

    def check(
        self,
        room: RoomNameOrId,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> Room:
        """Check that `[start, end)` can be reserved on `room`.

        Parameters
        ----------
        room
            The id or the name of the room.
        start, end
            The requested interval, as naive UTC datetimes.

        Returns
        -------
        The resolved room. The caller may then insert an `APPROVED`
        reservation, which must happen while holding the room's lock.

        Raises
        ------
        InvalidInterval
            If `start >= end`.
        PastBooking
            If `start` is before the current time.
        RoomNotFound, RoomInactive
            If the room cannot be booked.
        SlotUnavailable
            If the interval conflicts with an existing reservation once the
            room's buffer time is applied.
        """
        interval = self.check_times(start, end)
        resolved = self.resolve_room(room)
        conflicts = self._reservations.find_overlapping(
            interval, room_id=resolved.room_id, buffer=resolved.buffer
        )
        if conflicts:
            # the latest release instant among the conflicts, so that the
            # suggestion does not collide with any reservation found
            next_available = max(c.end_time for c in conflicts) + resolved.buffer
            logger.info(
                f"Rejected {start} - {end} on {resolved.name}: "
                f"{len(conflicts)} conflicting reservation(s)"
            )
            raise SlotUnavailable(
                resolved.name, resolved.buffer_time_minutes, next_available
            )
        return resolved
