#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from rich.console import Console

from roombook.display import display_rooms, reservations_table
from tests.booking_utils import at


def _console() -> Console:
    return Console(record=True, width=120)


def test_display_rooms(service, room_x, room_y):
    console = _console()
    display_rooms(service.list_rooms(), title="Available rooms", console=console)
    output = console.export_text()
    assert "Available rooms" in output
    assert "Room X" in output
    assert "projector, whiteboard" in output
    assert "15 min" in output


def test_display_no_rooms():
    console = _console()
    display_rooms([], console=console)
    assert "No rooms found!" in console.export_text()


def test_reservations_table(service, room_x, alice):
    reservation = service.create_reservation(room_x.room_id, at(10), at(11), "Retro", alice)
    console = _console()
    console.print(reservations_table([reservation], {room_x.room_id: room_x.name}))
    output = console.export_text()
    assert "Retro" in output
    assert "Room X" in output
    assert "2025-03-10 10:00" in output
    assert "APPROVED" in output
