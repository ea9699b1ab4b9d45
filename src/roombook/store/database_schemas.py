#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
from enum import StrEnum, auto

import polars as pl


class DatabaseNamespace(StrEnum):
    """Namespace for each database"""

    ROOMS = auto()
    RESERVATIONS = auto()
    AUDIT_LOGS = auto()


ROOMS_SCHEMA = {
    "room_id": pl.String,
    "name": pl.String,
    "capacity": pl.Int32,
    "facilities": pl.List(pl.String),
    "is_active": pl.Boolean,
    "buffer_time_minutes": pl.Int32,
    "created_at": pl.Datetime,
    "updated_at": pl.Datetime,
}
RESERVATIONS_SCHEMA = {
    "reservation_id": pl.String,
    "room_id": pl.String,
    "requester_id": pl.String,
    "title": pl.String,
    "start_time": pl.Datetime,
    "end_time": pl.Datetime,
    "status": pl.String,
    "created_at": pl.Datetime,
    "updated_at": pl.Datetime,
}
# old/new values are free-form documents, stored JSON-encoded
AUDIT_LOGS_SCHEMA = {
    "event_id": pl.String,
    "actor_id": pl.String,
    "actor_full_name": pl.String,
    "actor_role": pl.String,
    "action": pl.String,
    "target_id": pl.String,
    "details": pl.String,
    "old_value": pl.String,
    "new_value": pl.String,
    "created_at": pl.Datetime,
}
DATABASE_SCHEMAS = {
    DatabaseNamespace.ROOMS: ROOMS_SCHEMA,
    DatabaseNamespace.RESERVATIONS: RESERVATIONS_SCHEMA,
    DatabaseNamespace.AUDIT_LOGS: AUDIT_LOGS_SCHEMA,
}
