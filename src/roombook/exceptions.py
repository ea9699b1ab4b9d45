#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime

from roombook.constants import DISPLAY_TIME_FORMAT


class BookingError(Exception):
    """Base class for every rejection raised by the booking core.

    Subclasses carry a human-readable message stating what the caller
    can do about the failure."""

    pass


class InvalidInterval(BookingError):
    def __init__(self, start: datetime.datetime, end: datetime.datetime):
        self.start = start
        self.end = end
        super().__init__(
            f"Start time {start.strftime(DISPLAY_TIME_FORMAT)} must be before "
            f"end time {end.strftime(DISPLAY_TIME_FORMAT)}"
        )


class PastBooking(BookingError):
    def __init__(self, start: datetime.datetime, now: datetime.datetime):
        self.start = start
        self.now = now
        super().__init__(
            f"Cannot book a room retroactively: {start.strftime(DISPLAY_TIME_FORMAT)} "
            f"is before the current time {now.strftime(DISPLAY_TIME_FORMAT)}"
        )


class RoomNotFound(BookingError):
    def __init__(self, room: str, suggestions: list[str] | None = None):
        self.room = room
        self.suggestions = suggestions or []
        message = f"Room '{room}' not found or has been deactivated"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


class RoomInactive(BookingError):
    def __init__(self, room_name: str):
        self.room_name = room_name
        super().__init__(f"Room '{room_name}' has been deactivated and cannot be booked")


class SlotUnavailable(BookingError):
    """The requested interval collides with an existing reservation once the
    room's buffer time is applied.

    Attributes
    ----------
    next_available
        The end of the conflicting reservation plus the buffer time, i.e. the
        earliest instant at which a booking could start after it.
    """

    def __init__(
        self,
        room_name: str,
        buffer_time_minutes: int,
        next_available: datetime.datetime,
    ):
        self.room_name = room_name
        self.buffer_time_minutes = buffer_time_minutes
        self.next_available = next_available
        super().__init__(
            f"Room {room_name} is not available in this time window because it needs "
            f"a {buffer_time_minutes} minute break between bookings (the room is free "
            f"from {next_available.strftime(DISPLAY_TIME_FORMAT)})"
        )


class ReservationNotFound(BookingError):
    def __init__(self, reservation_id: str):
        self.reservation_id = reservation_id
        super().__init__(f"Reservation '{reservation_id}' not found")


class AlreadyCancelled(BookingError):
    """Raised when cancelling a reservation that is already terminal."""

    def __init__(self, reservation_id: str, status: str):
        self.reservation_id = reservation_id
        self.status = status
        super().__init__(
            f"Reservation '{reservation_id}' cannot be cancelled, its status is {status}"
        )


class Forbidden(BookingError):
    pass


class InvalidRoomSpec(BookingError):
    pass


class RoomHasUpcomingReservations(BookingError):
    def __init__(self, room_name: str, count: int):
        self.room_name = room_name
        self.count = count
        super().__init__(
            f"Room '{room_name}' cannot be deactivated, it has {count} upcoming "
            f"reservation(s). Cancel them first."
        )


class ResourceLocked(BookingError):
    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(
            f"Resource '{resource}' is being edited by someone else. Please try again."
        )
