#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import pytest

from roombook.audit import StoreAuditSink
from roombook.models import RequesterContext, Role, Room, RoomSpec
from roombook.service import BookingService
from roombook.store.document_store import DocumentStore
from tests.booking_utils import NOW, MutableClock


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock(NOW)


@pytest.fixture
def store() -> DocumentStore:
    return DocumentStore()


@pytest.fixture
def audit_sink(store: DocumentStore, clock: MutableClock) -> StoreAuditSink:
    return StoreAuditSink(store, clock)


@pytest.fixture
def service(
    store: DocumentStore, clock: MutableClock, audit_sink: StoreAuditSink
) -> BookingService:
    return BookingService(store, clock=clock, audit_sink=audit_sink)


@pytest.fixture
def admin() -> RequesterContext:
    return RequesterContext(user_id="u-admin", role=Role.ADMIN, full_name="Ada Admin")


@pytest.fixture
def alice() -> RequesterContext:
    return RequesterContext(user_id="u-alice", full_name="Alice")


@pytest.fixture
def bob() -> RequesterContext:
    return RequesterContext(user_id="u-bob", role=Role.MANAGER, full_name="Bob")


@pytest.fixture
def room_x(service: BookingService, admin: RequesterContext) -> Room:
    return service.create_room(
        admin,
        RoomSpec(
            name="Room X",
            capacity=8,
            facilities=["projector", "whiteboard"],
            buffer_time_minutes=15,
        ),
    )


@pytest.fixture
def room_y(service: BookingService, admin: RequesterContext) -> Room:
    return service.create_room(
        admin, RoomSpec(name="Room Y", capacity=4, buffer_time_minutes=0)
    )
