#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import logging
import uuid
from typing import Any

import polars as pl

from roombook.aliases import RoomId
from roombook.constants import DEFAULT_BUFFER_TIME_MINUTES
from roombook.exceptions import (
    InvalidRoomSpec,
    RoomHasUpcomingReservations,
    RoomNotFound,
)
from roombook.models import ReservationStatus, Room, RoomSpec, RoomUpdate
from roombook.store.database_schemas import DatabaseNamespace
from roombook.store.document_store import DocumentStore
from roombook.store.filters import (
    case_insensitive_match_filter_dataframe,
    exact_match_filter_dataframe,
    filter_dataframe,
    fuzzy_match_filter_dataframe,
)
from roombook.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


def _validate(capacity: int | None, buffer_time_minutes: int | None) -> None:
    if capacity is not None and capacity < 1:
        raise InvalidRoomSpec(f"Room capacity must be at least 1, got {capacity}")
    if buffer_time_minutes is not None and buffer_time_minutes < 0:
        raise InvalidRoomSpec(
            f"Buffer time cannot be negative, got {buffer_time_minutes} minutes"
        )


class RoomRegistry:
    """The inventory of bookable rooms.

    Rooms are never removed from the store: `deactivate_room` flips the
    `is_active` flag so that reservations referencing the room stay valid.
    Room names are not required to be unique.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = utc_now,
        default_buffer_time_minutes: int = DEFAULT_BUFFER_TIME_MINUTES,
    ):
        self._store = store
        self._clock = clock
        self.default_buffer_time_minutes = default_buffer_time_minutes

    def create_room(self, spec: RoomSpec) -> Room:
        fields = spec.model_fields_set
        buffer_time_minutes = (
            spec.buffer_time_minutes
            if "buffer_time_minutes" in fields
            else self.default_buffer_time_minutes
        )
        _validate(spec.capacity, buffer_time_minutes)
        if not spec.name:
            raise InvalidRoomSpec("Room name cannot be empty")
        now = self._clock()
        room = Room(
            room_id=str(uuid.uuid4()),
            name=spec.name,
            capacity=spec.capacity,
            facilities=list(spec.facilities),
            is_active=True,
            buffer_time_minutes=buffer_time_minutes,
            created_at=now,
            updated_at=now,
        )
        self._store.add_to_database(
            namespace=DatabaseNamespace.ROOMS, rows=[room.model_dump()]
        )
        logger.info(f"Created room {room.name} ({room.room_id})")
        return room

    def get_room(self, room_id: RoomId) -> Room:
        records = self._store.find(
            DatabaseNamespace.ROOMS, pl.col("room_id") == room_id
        )
        if not records:
            raise RoomNotFound(room_id)
        # ids are generated by `create_room` so they are unique
        assert len(records) == 1
        return Room(**records[0])

    def _active_rooms(self) -> pl.DataFrame:
        return filter_dataframe(
            self._store.get_database(DatabaseNamespace.ROOMS),
            filter_criteria=[("is_active", True, exact_match_filter_dataframe)],
        )

    def find_room_by_name(self, name: str, active_only: bool = True) -> Room | None:
        """Find a room by name, ignoring case. If several rooms share the name
        the oldest one is returned. Only active rooms are searched unless
        `active_only` is False."""
        rooms = (
            self._active_rooms()
            if active_only
            else self._store.get_database(DatabaseNamespace.ROOMS)
        )
        records = filter_dataframe(
            rooms,
            filter_criteria=[("name", name, case_insensitive_match_filter_dataframe)],
        ).to_dicts()
        if not records:
            return None
        if len(records) > 1:
            logger.warning(f"{len(records)} rooms are named '{name}'")
        return Room(**records[0])

    def suggest_room_names(self, name: str, limit: int = 3) -> list[str]:
        """Names of active rooms resembling `name`, best match first."""
        matches = fuzzy_match_filter_dataframe(
            self._active_rooms(), "name", name, threshold=70, limit=limit
        )
        return matches.get_column("name").to_list()

    def list_active_rooms(self) -> list[Room]:
        return [
            Room(**record)
            for record in self._active_rooms().sort("name").to_dicts()
        ]

    def update_room(self, room_id: RoomId, update: RoomUpdate) -> Room:
        changes: dict[str, Any] = update.changes()
        _validate(changes.get("capacity"), changes.get("buffer_time_minutes"))
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise InvalidRoomSpec("Room name cannot be empty")
        changes["updated_at"] = self._clock()
        updated = self._store.update_database(
            DatabaseNamespace.ROOMS, pl.col("room_id") == room_id, changes
        )
        if not updated:
            raise RoomNotFound(room_id)
        logger.info(f"Updated room {room_id}: {sorted(changes)}")
        return self.get_room(room_id)

    def deactivate_room(self, room_id: RoomId) -> Room:
        """Soft-delete a room.

        Raises
        ------
        RoomNotFound
            If there is no room with this id.
        RoomHasUpcomingReservations
            If a reservation that is not cancelled starts after the current time.
        """
        room = self.get_room(room_id)
        upcoming = self._store.find(
            DatabaseNamespace.RESERVATIONS,
            (pl.col("room_id") == room_id)
            & (pl.col("status") != ReservationStatus.CANCELLED.value)
            & (pl.col("start_time") > self._clock()),
        )
        if upcoming:
            raise RoomHasUpcomingReservations(room.name, len(upcoming))
        self._store.update_database(
            DatabaseNamespace.ROOMS,
            pl.col("room_id") == room_id,
            {"is_active": False, "updated_at": self._clock()},
        )
        logger.info(f"Deactivated room {room.name} ({room_id})")
        return self.get_room(room_id)
