#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import polars as pl
import pytest

from roombook.store.database_schemas import DatabaseNamespace
from roombook.store.document_store import DocumentStore
from tests.booking_utils import at


def _reservation_row(reservation_id: str, status: str = "APPROVED", hour: int = 10):
    return {
        "reservation_id": reservation_id,
        "room_id": "room-1",
        "requester_id": "u-alice",
        "title": "Standup",
        "start_time": at(hour),
        "end_time": at(hour + 1),
        "status": status,
    }


@pytest.fixture
def populated_store() -> DocumentStore:
    store = DocumentStore()
    store.add_to_database(
        DatabaseNamespace.RESERVATIONS,
        [
            _reservation_row("r1", hour=10),
            _reservation_row("r2", status="CANCELLED", hour=12),
            _reservation_row("r3", hour=14),
        ],
    )
    store.add_to_database(
        DatabaseNamespace.ROOMS,
        [
            {
                "room_id": "room-1",
                "name": "Orchid",
                "capacity": 6,
                "facilities": ["tv"],
                "is_active": True,
                "buffer_time_minutes": 15,
            }
        ],
    )
    return store


def test_new_store_is_empty():
    store = DocumentStore()
    for namespace in DatabaseNamespace:
        assert store.count(namespace) == 0
        assert store.get_database(namespace).columns == list(
            DocumentStore.dbs_schemas[namespace]
        )


def test_add_rejects_unknown_columns(populated_store: DocumentStore):
    with pytest.raises(KeyError):
        populated_store.add_to_database(
            DatabaseNamespace.ROOMS, [{"room_id": "x", "colour": "blue"}]
        )


def test_find(populated_store: DocumentStore):
    records = populated_store.find(
        DatabaseNamespace.RESERVATIONS, pl.col("status") == "APPROVED"
    )
    assert [r["reservation_id"] for r in records] == ["r1", "r3"]
    assert records[0]["start_time"] == at(10)


def test_update_database_returns_count_and_keeps_order(populated_store: DocumentStore):
    updated = populated_store.update_database(
        DatabaseNamespace.RESERVATIONS,
        pl.col("reservation_id").is_in(["r1", "r3"]),
        {"status": "COMPLETED"},
    )
    assert updated == 2
    database = populated_store.get_database(DatabaseNamespace.RESERVATIONS)
    assert database.get_column("reservation_id").to_list() == ["r1", "r2", "r3"]
    assert database.get_column("status").to_list() == [
        "COMPLETED",
        "CANCELLED",
        "COMPLETED",
    ]


def test_update_database_no_match(populated_store: DocumentStore):
    assert (
        populated_store.update_database(
            DatabaseNamespace.RESERVATIONS,
            pl.col("reservation_id") == "missing",
            {"status": "COMPLETED"},
        )
        == 0
    )


def test_update_database_rejects_unknown_columns(populated_store: DocumentStore):
    with pytest.raises(KeyError):
        populated_store.update_database(
            DatabaseNamespace.RESERVATIONS, pl.lit(True), {"colour": "blue"}
        )


def test_snapshots_are_not_affected_by_later_writes(populated_store: DocumentStore):
    snapshot = populated_store.get_database(DatabaseNamespace.RESERVATIONS)
    populated_store.update_database(
        DatabaseNamespace.RESERVATIONS, pl.lit(True), {"status": "COMPLETED"}
    )
    assert "APPROVED" in snapshot.get_column("status").to_list()


def test_save_and_load(populated_store: DocumentStore, tmp_path):
    path = tmp_path / "snapshot.json"
    populated_store.save(path)
    loaded = DocumentStore.load(path)
    for namespace in DatabaseNamespace:
        assert loaded.get_database(namespace).equals(
            populated_store.get_database(namespace)
        )


def test_load_missing_snapshot_gives_empty_store(tmp_path):
    store = DocumentStore.load(tmp_path / "missing.json")
    assert store.count(DatabaseNamespace.ROOMS) == 0
