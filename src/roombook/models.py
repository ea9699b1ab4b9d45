#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from roombook.aliases import ReservationId, RoomId, UserId
from roombook.constants import DEFAULT_BUFFER_TIME_MINUTES
from roombook.time_utils import TimeInterval


class Role(StrEnum):
    ADMIN = "ADMIN"
    HR = "HR"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class ReservationStatus(StrEnum):
    """Lifecycle of a reservation.

    `APPROVED` is the only non-terminal state in use. `PENDING` is reserved
    for a future approval workflow and is never produced by the current flows.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    @property
    def is_terminal(self) -> bool:
        return self in (ReservationStatus.CANCELLED, ReservationStatus.COMPLETED)


class RequesterContext(BaseModel, frozen=True):
    """The authenticated caller of a booking operation, as resolved by the
    authentication layer.

    Parameters
    ----------
    user_id
        The id of the user performing the operation.
    role
        The role of the user. Only administrators may act on other users'
        reservations.
    full_name
        Display name, used for the audit trail only.
    """

    user_id: UserId
    role: Role = Role.EMPLOYEE
    full_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class RoomSpec(BaseModel):
    """The fields an administrator provides when creating a room."""

    name: str
    capacity: int
    facilities: list[str] = Field(default_factory=list)
    buffer_time_minutes: int = DEFAULT_BUFFER_TIME_MINUTES

    @model_validator(mode="after")
    def strip_name(self) -> "RoomSpec":
        self.name = self.name.strip()
        return self


class RoomUpdate(BaseModel):
    """A partial update of a room. Fields left unset are not modified."""

    name: str | None = None
    capacity: int | None = None
    facilities: list[str] | None = None
    buffer_time_minutes: int | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Room(BaseModel):
    room_id: RoomId
    name: str
    capacity: int
    facilities: list[str] = Field(default_factory=list)
    is_active: bool = True
    buffer_time_minutes: int = DEFAULT_BUFFER_TIME_MINUTES
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    @property
    def buffer(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.buffer_time_minutes)

    def __str__(self) -> str:
        return f"{self.name} (capacity: {self.capacity})"


class Reservation(BaseModel):
    reservation_id: ReservationId
    room_id: RoomId
    requester_id: UserId
    title: str
    start_time: datetime.datetime
    end_time: datetime.datetime
    status: ReservationStatus = ReservationStatus.APPROVED
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None

    @model_validator(mode="after")
    def start_before_end(self) -> "Reservation":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start_time, end=self.end_time)


class ReservationFilter(BaseModel):
    """Criteria for listing reservations. Unset criteria match everything.

    Parameters
    ----------
    date_range
        Reservations *starting* within this interval are returned.
    date
        Shorthand for a `date_range` covering a whole day. Ignored if
        `date_range` is set.
    """

    requester_id: UserId | None = None
    room_id: RoomId | None = None
    date_range: TimeInterval | None = None
    date: datetime.date | None = None
    status: ReservationStatus | None = None
