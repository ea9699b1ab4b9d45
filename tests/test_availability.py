#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import pytest

from roombook.availability import AvailabilityQueryEngine
from roombook.exceptions import InvalidInterval
from roombook.models import RoomSpec
from tests.booking_utils import at


def _names(rooms) -> list[str]:
    return [room.name for room in rooms]


def test_all_active_rooms_free(service, room_x, room_y):
    assert _names(service.search_available_rooms(at(10), at(11))) == ["Room X", "Room Y"]


def test_overlapping_reservation_makes_room_busy(service, room_x, room_y, alice):
    service.create_reservation(room_x.room_id, at(10), at(11), "A", alice)
    assert _names(service.search_available_rooms(at(10, 30), at(12))) == ["Room Y"]


def test_cancelled_reservation_does_not_block(service, room_x, alice):
    reservation = service.create_reservation(room_x.room_id, at(10), at(11), "A", alice)
    service.cancel_reservation(reservation.reservation_id, alice)
    assert _names(service.search_available_rooms(at(10), at(11))) == ["Room X"]


def test_buffer_ignored_by_default(service, room_x, alice):
    service.create_reservation(room_x.room_id, at(10), at(11), "A", alice)
    # free for the literal window even though booking it would be rejected
    assert _names(service.search_available_rooms(at(11, 5), at(12))) == ["Room X"]
    assert _names(service.search_available_rooms(at(11), at(12))) == ["Room X"]


def test_buffer_aware_availability(service, room_x, room_y, alice):
    service.create_reservation(room_x.room_id, at(10), at(11), "A", alice)
    service.create_reservation(room_y.room_id, at(10), at(11), "B", alice)
    engine = AvailabilityQueryEngine(
        service.rooms, service.reservations, buffer_aware=True
    )
    # Room Y has no buffer, Room X needs 15 minutes after its reservation
    assert _names(engine.search_available_rooms(at(11, 5), at(12))) == ["Room Y"]
    assert _names(engine.search_available_rooms(at(11, 15), at(12))) == [
        "Room X",
        "Room Y",
    ]


def test_min_capacity(service, room_x, room_y):
    assert _names(service.search_available_rooms(at(10), at(11), min_capacity=5)) == [
        "Room X"
    ]
    assert service.search_available_rooms(at(10), at(11), min_capacity=50) == []


def test_inactive_rooms_excluded(service, admin, room_x, room_y):
    service.deactivate_room(admin, room_y.room_id)
    assert _names(service.search_available_rooms(at(10), at(11))) == ["Room X"]


def test_past_windows_can_be_searched(service, room_x):
    assert _names(service.search_available_rooms(at(7), at(8))) == ["Room X"]


def test_iso_strings(service, room_x, admin):
    service.create_room(admin, RoomSpec(name="Annex", capacity=2))
    rooms = service.search_available_rooms("2025-03-10T10:00", "2025-03-10T11:00")
    assert _names(rooms) == ["Annex", "Room X"]


@pytest.mark.parametrize("start,end", [(at(11), at(11)), (at(12), at(11))])
def test_invalid_interval(service, room_x, start, end):
    with pytest.raises(InvalidInterval):
        service.search_available_rooms(start, end)
