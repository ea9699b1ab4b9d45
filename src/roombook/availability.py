#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
import logging

from roombook.conflicts import validate_interval
from roombook.models import Room
from roombook.reservations import ReservationStore
from roombook.rooms import RoomRegistry
from roombook.time_utils import overlaps_with_buffer

logger = logging.getLogger(__name__)


class AvailabilityQueryEngine:
    """Finds the active rooms that are free during a time window.

    By default a room is considered busy only if a non-cancelled reservation's
    raw interval intersects the window; the room's buffer time is ignored.
    This answers "is the room free for this literal window". Booking the room
    may still be rejected by the conflict resolver, which enforces the buffer.
    Set `buffer_aware` to apply the conflict resolver's rule instead.
    """

    def __init__(
        self,
        rooms: RoomRegistry,
        reservations: ReservationStore,
        buffer_aware: bool = False,
    ):
        self._rooms = rooms
        self._reservations = reservations
        self.buffer_aware = buffer_aware

    def _busy_room_ids(self, rooms: list[Room], start, end) -> set[str]:
        interval = validate_interval(start, end)
        if not self.buffer_aware:
            return {
                r.room_id for r in self._reservations.find_overlapping(interval)
            }
        # one query with the widest buffer, then narrowed per room
        widest = max(
            (room.buffer for room in rooms), default=datetime.timedelta(0)
        )
        buffers = {room.room_id: room.buffer for room in rooms}
        return {
            r.room_id
            for r in self._reservations.find_overlapping(interval, buffer=widest)
            if r.room_id in buffers
            and overlaps_with_buffer(r.interval, interval, buffers[r.room_id])
        }

    def search_available_rooms(
        self,
        start: datetime.datetime,
        end: datetime.datetime,
        min_capacity: int | None = None,
    ) -> list[Room]:
        """Return the active rooms with no conflicting reservation in `[start, end)`.

        Parameters
        ----------
        start, end
            The window to check, as naive UTC datetimes.
        min_capacity
            If specified, only rooms hosting at least this many people are returned.

        Raises
        ------
        InvalidInterval
            If `start >= end`.
        """
        rooms = self._rooms.list_active_rooms()
        busy = self._busy_room_ids(rooms, start, end)
        available = [
            room
            for room in rooms
            if room.room_id not in busy
            and (min_capacity is None or room.capacity >= min_capacity)
        ]
        logger.debug(
            f"{len(available)} of {len(rooms)} active rooms available "
            f"between {start} and {end}"
        )
        return available
