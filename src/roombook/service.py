#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The inbound operations of the booking core.

Callers (eg an HTTP controller) authenticate the user and pass a
`RequesterContext`; administrative operations expect the caller to have
checked the requester's role already."""

import datetime
import logging
from typing import Any, Self

from omegaconf import DictConfig

from roombook.aliases import ReservationId, RoomId, RoomNameOrId
from roombook.audit import AuditAction, AuditSink, NullAuditSink, StoreAuditSink
from roombook.availability import AvailabilityQueryEngine
from roombook.conflicts import ConflictResolver
from roombook.constants import DEFAULT_BUFFER_TIME_MINUTES, DEFAULT_LOCK_TIMEOUT_SECONDS
from roombook.exceptions import AlreadyCancelled, Forbidden
from roombook.models import (
    RequesterContext,
    Reservation,
    ReservationFilter,
    ReservationStatus,
    Room,
    RoomSpec,
    RoomUpdate,
)
from roombook.reservations import ReservationStore
from roombook.rooms import RoomRegistry
from roombook.store.document_store import DocumentStore
from roombook.store.locks import ResourceLock
from roombook.sweeper import LifecycleSweeper
from roombook.time_utils import Clock, parse_instant, utc_now

logger = logging.getLogger(__name__)


def _audit_snapshot(model: Room | Reservation) -> dict[str, Any]:
    return model.model_dump(mode="json", exclude={"created_at", "updated_at"})


class BookingService:
    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = utc_now,
        audit_sink: AuditSink | None = None,
        default_buffer_time_minutes: int = DEFAULT_BUFFER_TIME_MINUTES,
        buffer_aware_availability: bool = False,
        lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS,
    ):
        self.store = store
        self._clock = clock
        self.audit_sink = audit_sink if audit_sink is not None else NullAuditSink()
        self.rooms = RoomRegistry(
            store, clock, default_buffer_time_minutes=default_buffer_time_minutes
        )
        self.reservations = ReservationStore(store, clock)
        self.resolver = ConflictResolver(self.rooms, self.reservations, clock)
        self.availability = AvailabilityQueryEngine(
            self.rooms, self.reservations, buffer_aware=buffer_aware_availability
        )
        self.sweeper = LifecycleSweeper(self.reservations, clock)
        self.room_locks = ResourceLock(timeout=lock_timeout_seconds)

    @classmethod
    def from_config(
        cls,
        cfg: DictConfig,
        store: DocumentStore | None = None,
        clock: Clock = utc_now,
    ) -> Self:
        """Build a service from the `booking` section of a config, recording
        audit events in the store."""
        store = store if store is not None else DocumentStore()
        return cls(
            store,
            clock=clock,
            audit_sink=StoreAuditSink(store, clock),
            default_buffer_time_minutes=cfg.booking.default_buffer_time_minutes,
            buffer_aware_availability=cfg.booking.buffer_aware_availability,
            lock_timeout_seconds=cfg.booking.lock_timeout_seconds,
        )

    def _record(
        self,
        requester: RequesterContext,
        action: AuditAction,
        target_id: str,
        details: str,
        old_value: Any = None,
        new_value: Any = None,
    ) -> None:
        # the operation has already been applied, a failing sink must not undo it
        try:
            self.audit_sink.record(
                requester, action, target_id, details, old_value, new_value
            )
        except Exception:
            logger.exception(f"Could not record audit event {action} for {target_id}")

    def create_reservation(
        self,
        room: RoomNameOrId,
        start: datetime.datetime | str,
        end: datetime.datetime | str,
        title: str,
        requester: RequesterContext,
    ) -> Reservation:
        """Reserve `room` for `[start, end)` on behalf of `requester`.

        Parameters
        ----------
        room
            The id or the (case-insensitive) name of an active room.
        start, end
            Datetimes or ISO-8601 strings. Aware values are converted to UTC.
        title
            Free-text label of the meeting.

        Returns
        -------
        The new reservation, in `APPROVED` status.

        Raises
        ------
        InvalidInterval, PastBooking, RoomNotFound, RoomInactive, SlotUnavailable
            See `ConflictResolver.check`.
        ResourceLocked
            If another booking on the room held its lock for too long.
        """
        start, end = parse_instant(start), parse_instant(end)
        self.resolver.check_times(start, end)
        target = self.resolver.resolve_room(room)
        with self.room_locks.hold(target.room_id):
            # checked again under the lock: only one of several concurrent
            # requests for overlapping slots may pass
            resolved = self.resolver.check(target.room_id, start, end)
            reservation = self.reservations.insert(
                room_id=resolved.room_id,
                requester_id=requester.user_id,
                title=title,
                start_time=start,
                end_time=end,
            )
        logger.info(
            f"Reservation {reservation.reservation_id} created on {resolved.name} "
            f"for {requester.user_id}"
        )
        self._record(
            requester,
            AuditAction.CREATE_BOOKING,
            reservation.reservation_id,
            f"Booked room {resolved.name} ({title}) "
            f"[Buffer: {resolved.buffer_time_minutes}m]",
            new_value=_audit_snapshot(reservation),
        )
        return reservation

    def list_reservations(
        self,
        requester: RequesterContext,
        criteria: ReservationFilter | None = None,
    ) -> list[Reservation]:
        """List reservations ordered by start time. Requesters who are not
        administrators only ever see their own reservations."""
        criteria = criteria or ReservationFilter()
        if not requester.is_admin:
            criteria = criteria.model_copy(update={"requester_id": requester.user_id})
        return self.reservations.find(criteria)

    def get_reservation(self, reservation_id: ReservationId) -> Reservation:
        return self.reservations.get(reservation_id)

    def cancel_reservation(
        self, reservation_id: ReservationId, requester: RequesterContext
    ) -> Reservation:
        """Cancel a reservation. Only its requester or an administrator may do so.

        Raises
        ------
        ReservationNotFound
            If there is no reservation with this id.
        Forbidden
            If the requester neither made the reservation nor is an administrator.
        AlreadyCancelled
            If the reservation is already cancelled or completed.
        """
        reservation = self.reservations.get(reservation_id)
        if not requester.is_admin and reservation.requester_id != requester.user_id:
            logger.warning(
                f"{requester.user_id} attempted to cancel reservation {reservation_id} "
                f"of {reservation.requester_id}"
            )
            raise Forbidden("You are not allowed to cancel other users' reservations")
        with self.room_locks.hold(reservation.room_id):
            reservation = self.reservations.get(reservation_id)
            if reservation.status.is_terminal:
                raise AlreadyCancelled(reservation_id, reservation.status.value)
            # the sweeper does not take room locks, only an approved
            # reservation may be cancelled
            cancelled = self.reservations.update_status(
                reservation_id,
                ReservationStatus.CANCELLED,
                expected_status=reservation.status,
            )
            if cancelled is None:
                current = self.reservations.get(reservation_id)
                raise AlreadyCancelled(reservation_id, current.status.value)
        logger.info(f"Reservation {reservation_id} cancelled by {requester.user_id}")
        self._record(
            requester,
            AuditAction.CANCEL_BOOKING,
            reservation_id,
            f"Cancelled booking: {reservation.title}",
            old_value={"status": reservation.status.value},
            new_value={"status": ReservationStatus.CANCELLED.value},
        )
        return cancelled

    def search_available_rooms(
        self,
        start: datetime.datetime | str,
        end: datetime.datetime | str,
        min_capacity: int | None = None,
    ) -> list[Room]:
        return self.availability.search_available_rooms(
            parse_instant(start), parse_instant(end), min_capacity=min_capacity
        )

    def list_rooms(self) -> list[Room]:
        return self.rooms.list_active_rooms()

    def get_room(self, room_id: RoomId) -> Room:
        return self.rooms.get_room(room_id)

    def create_room(self, requester: RequesterContext, spec: RoomSpec) -> Room:
        room = self.rooms.create_room(spec)
        self._record(
            requester,
            AuditAction.CREATE_ROOM,
            room.room_id,
            f"Created room: {room.name}",
            new_value=_audit_snapshot(room),
        )
        return room

    def update_room(
        self, requester: RequesterContext, room_id: RoomId, update: RoomUpdate
    ) -> Room:
        with self.room_locks.hold(room_id):
            before = self.rooms.get_room(room_id)
            after = self.rooms.update_room(room_id, update)
        self._record(
            requester,
            AuditAction.UPDATE_ROOM,
            room_id,
            f"Updated room: {after.name}",
            old_value=_audit_snapshot(before),
            new_value=_audit_snapshot(after),
        )
        return after

    def deactivate_room(self, requester: RequesterContext, room_id: RoomId) -> Room:
        # held so no reservation can be inserted between the check and the update
        with self.room_locks.hold(room_id):
            room = self.rooms.deactivate_room(room_id)
        self._record(
            requester,
            AuditAction.DEACTIVATE_ROOM,
            room_id,
            f"Deactivated room: {room.name}",
            old_value={"is_active": True},
            new_value={"is_active": False},
        )
        return room

    def sweep(self, now: datetime.datetime | None = None) -> int:
        return self.sweeper.sweep(now)

