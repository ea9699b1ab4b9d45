#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
"""The audit trail of the booking core.

The core reports every state-changing operation to an `AuditSink`. What the
sink does with the event (persist it, forward it, drop it) is up to the
implementation; the core treats recording as best-effort."""

import datetime
import json
import logging
import uuid
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any

import polars as pl
from pydantic import BaseModel, Field

from roombook.aliases import UserId
from roombook.models import RequesterContext
from roombook.store.database_schemas import DatabaseNamespace
from roombook.store.document_store import DocumentStore
from roombook.time_utils import Clock, utc_now

logger = logging.getLogger(__name__)


class AuditAction(StrEnum):
    CREATE_BOOKING = "CREATE_BOOKING"
    CANCEL_BOOKING = "CANCEL_BOOKING"
    CREATE_ROOM = "CREATE_ROOM"
    UPDATE_ROOM = "UPDATE_ROOM"
    DEACTIVATE_ROOM = "DEACTIVATE_ROOM"


class ActorSummary(BaseModel, frozen=True):
    full_name: str = "System User"
    role: str = "N/A"
    user_id: UserId = "N/A"

    @classmethod
    def from_requester(cls, requester: RequesterContext) -> "ActorSummary":
        return cls(
            full_name=requester.full_name or "System User",
            role=str(requester.role),
            user_id=requester.user_id,
        )


class AuditEvent(BaseModel):
    """A single entry of the audit trail.

    Parameters
    ----------
    old_value, new_value
        JSON-serialisable snapshots of the target before and after the
        action. Either may be `None` (eg there is no old value on creation).
    """

    actor_id: UserId | None
    actor_summary: ActorSummary
    action: AuditAction
    target_id: str
    details: str = ""
    old_value: Any = None
    new_value: Any = None
    created_at: datetime.datetime | None = None
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))


class AuditSink(ABC):
    @abstractmethod
    def record_event(self, event: AuditEvent) -> None: ...

    def record(
        self,
        requester: RequesterContext,
        action: AuditAction,
        target_id: str,
        details: str,
        old_value: Any = None,
        new_value: Any = None,
    ) -> None:
        """Convenience wrapper building the event from the requester context."""
        self.record_event(
            AuditEvent(
                actor_id=requester.user_id,
                actor_summary=ActorSummary.from_requester(requester),
                action=action,
                target_id=target_id,
                details=details,
                old_value=old_value,
                new_value=new_value,
            )
        )


class NullAuditSink(AuditSink):
    def record_event(self, event: AuditEvent) -> None:
        del event


class StoreAuditSink(AuditSink):
    """Appends audit events to the `AUDIT_LOGS` namespace of a document store."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now):
        self._store = store
        self._clock = clock

    def record_event(self, event: AuditEvent) -> None:
        created_at = event.created_at or self._clock()
        self._store.add_to_database(
            namespace=DatabaseNamespace.AUDIT_LOGS,
            rows=[
                {
                    "event_id": event.event_id,
                    "actor_id": event.actor_id,
                    "actor_full_name": event.actor_summary.full_name,
                    "actor_role": event.actor_summary.role,
                    "action": event.action.value,
                    "target_id": event.target_id,
                    "details": event.details,
                    "old_value": json.dumps(event.old_value, default=str),
                    "new_value": json.dumps(event.new_value, default=str),
                    "created_at": created_at,
                }
            ],
        )
        logger.debug(f"Audit event {event.action} recorded for target {event.target_id}")

    def list_events(
        self, action: AuditAction | None = None, target_id: str | None = None
    ) -> list[AuditEvent]:
        """Return the recorded events, newest first."""
        predicate = pl.lit(True)
        if action is not None:
            predicate = predicate & (pl.col("action") == action.value)
        if target_id is not None:
            predicate = predicate & (pl.col("target_id") == target_id)
        # rows are stored in insertion order, ties on created_at keep newest first
        records = self._store.find(DatabaseNamespace.AUDIT_LOGS, predicate)[::-1]
        records.sort(key=lambda r: r["created_at"], reverse=True)
        return [
            AuditEvent(
                event_id=r["event_id"],
                actor_id=r["actor_id"],
                actor_summary=ActorSummary(
                    full_name=r["actor_full_name"],
                    role=r["actor_role"],
                    user_id=r["actor_id"] or "N/A",
                ),
                action=AuditAction(r["action"]),
                target_id=r["target_id"],
                details=r["details"] or "",
                old_value=json.loads(r["old_value"]) if r["old_value"] else None,
                new_value=json.loads(r["new_value"]) if r["new_value"] else None,
                created_at=r["created_at"],
            )
            for r in records
        ]
