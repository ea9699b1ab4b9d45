#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from rich.console import Console
from rich.table import Table

from roombook.constants import DISPLAY_TIME_FORMAT
from roombook.models import Reservation, ReservationStatus, Room

_STATUS_STYLES = {
    ReservationStatus.PENDING: "yellow",
    ReservationStatus.APPROVED: "green",
    ReservationStatus.CANCELLED: "red",
    ReservationStatus.COMPLETED: "dim",
}


def rooms_table(rooms: list[Room], title: str | None = None) -> Table:
    """Render rooms as a rich table with the following format

    ┏━━━━━━┳━━━━━━━━━━┳━━━━━━━━━━━━┳━━━━━━━━┓
    ┃ Name ┃ Capacity ┃ Facilities ┃ Buffer ┃
    ┡━━━━━━╇━━━━━━━━━━╇━━━━━━━━━━━━╇━━━━━━━━┩
    """  # noqa
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Capacity", justify="right")
    table.add_column("Facilities", style="white")
    table.add_column("Buffer", justify="right", style="dim")
    for room in rooms:
        table.add_row(
            room.name,
            str(room.capacity),
            ", ".join(room.facilities) or "-",
            f"{room.buffer_time_minutes} min",
        )
    return table


def reservations_table(
    reservations: list[Reservation], room_names: dict[str, str] | None = None
) -> Table:
    room_names = room_names or {}
    table = Table(show_header=True, header_style="bold magenta", expand=True)
    table.add_column("Title", style="white")
    table.add_column("Room", style="cyan", no_wrap=True)
    table.add_column("Start", no_wrap=True)
    table.add_column("End", no_wrap=True)
    table.add_column("Status", justify="center", no_wrap=True)
    for reservation in reservations:
        status = reservation.status
        table.add_row(
            reservation.title,
            room_names.get(reservation.room_id, reservation.room_id),
            reservation.start_time.strftime(DISPLAY_TIME_FORMAT),
            reservation.end_time.strftime(DISPLAY_TIME_FORMAT),
            f"[{_STATUS_STYLES[status]}]{status.value}[/]",
        )
    return table


def display_rooms(rooms: list[Room], title: str | None = None, console: Console | None = None):
    console = console or Console()
    if not rooms:
        console.print("No rooms found!")
        return
    console.print(rooms_table(rooms, title=title))
