#
# For licensing see accompanying LICENSE file.
# Copyright © 2025 Apple Inc. All Rights Reserved.
#
import copy
import datetime
import json
import logging
import threading
from pathlib import Path
from typing import Any, Self

import polars as pl

from roombook.store.database_schemas import DATABASE_SCHEMAS, DatabaseNamespace

logger = logging.getLogger(__name__)

_ROW_INDEX = "__row_index"


class DocumentStore:
    """In-memory document store backing the booking core.

    Each namespace holds a polars dataframe with a fixed schema. The
    dataframes are never mutated in place: every write replaces the
    namespace's dataframe, so a dataframe returned by `get_database`
    is a consistent snapshot that later writes do not affect.

    Every primitive runs under a store-wide re-entrant lock, which makes
    a single `update_database` call atomic with respect to other writers.
    Multi-step sequences (check-then-insert) need an additional lock held
    by the caller, see `roombook.store.locks.ResourceLock`.
    """

    dbs_schemas: dict[DatabaseNamespace, dict[str, Any]] = DATABASE_SCHEMAS

    def __init__(self):
        self._lock = threading.RLock()
        self._dbs: dict[DatabaseNamespace, pl.DataFrame] = {
            namespace: pl.DataFrame(schema=self.dbs_schemas[namespace])
            for namespace in self.dbs_schemas
        }

    def to_dict(self) -> dict[str, Any]:
        """Serializes to a dictionary

        We aim to make this serialization reversible, while still somewhat readable.

        Returns:
            A serialized dict.
        """

        def convert_datetime(value: Any) -> Any:
            if isinstance(value, (datetime.date, datetime.datetime)):
                return value.isoformat()
            return value

        with self._lock:
            return {
                "_dbs": {
                    str(namespace): [
                        {k: convert_datetime(v) for k, v in record.items()}
                        for record in database.to_dicts()
                    ]
                    for namespace, database in self._dbs.items()
                },
            }

    @classmethod
    def from_dict(cls, serialized_dict: dict[str, Any]) -> Self:
        """Load a serialized dict produced by to_dict.

        Args:
            serialized_dict:    Serialized dict object.

        Returns:
            DocumentStore object.
        """

        def convert_datetime(value, schema: dict[str, Any], key: str):
            if schema[key] == pl.Datetime:
                return datetime.datetime.fromisoformat(value) if value else None
            return value

        store = cls()
        for name, records in serialized_dict["_dbs"].items():
            namespace = DatabaseNamespace(name)
            schema = cls.dbs_schemas[namespace]
            rows = [
                {k: convert_datetime(v, schema, k) for k, v in record.items()}
                for record in records
            ]
            store._dbs[namespace] = pl.DataFrame(rows, schema=schema)
        return store

    def save(self, path: Path | str) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f_out:
            json.dump(self.to_dict(), f_out, indent=2)
        logger.info(f"Store snapshot written to {path}")

    @classmethod
    def load(cls, path: Path | str) -> Self:
        """Load a snapshot written by `save`. A missing file yields an empty store."""
        path = Path(path)
        if not path.exists():
            logger.warning(f"No store snapshot found at {path}, starting empty")
            return cls()
        with open(path, "r") as f_in:
            return cls.from_dict(json.load(f_in))

    def get_database(self, namespace: DatabaseNamespace) -> pl.DataFrame:
        """Get a database given the namespace

        Parameters
        ----------
        namespace:
            Database namespace

        Returns
        -------
            The current dataframe of the namespace. Treat it as immutable;
            use `add_to_database` / `update_database` to modify the store.
        """
        with self._lock:
            return self._dbs[namespace]

    def find(
        self, namespace: DatabaseNamespace, predicate: pl.Expr
    ) -> list[dict[str, Any]]:
        """Return the rows of `namespace` matching `predicate` as dictionaries.
        Rows for which the predicate evaluates to null do not match."""
        with self._lock:
            return (
                self._dbs[namespace].filter(predicate.fill_null(False)).to_dicts()
            )

    def add_to_database(
        self,
        namespace: DatabaseNamespace,
        rows: list[dict[str, Any]],
    ) -> None:
        """Add multiple rows to a database.

        Parameters
        ----------
        namespace
            Database namespace
        rows
            List of rows to be added, each item should be a Dict of column and value.
            Columns missing from a row are stored as null.

        Raises
        ------
        KeyError:   When provided column names in rows does not match given schema
        """
        rows_column_names = {x for row in rows for x in row.keys()}
        schema_column_names = set(self.dbs_schemas[namespace].keys())
        if rows_column_names - schema_column_names:
            raise KeyError(
                f"Only column names {schema_column_names} are allowed for namespace {namespace}. "
                f"Found unknown column name {rows_column_names - schema_column_names}"
            )
        if not rows:
            return
        rows = copy.deepcopy(rows)
        with self._lock:
            self._dbs[namespace] = pl.concat(
                [
                    self._dbs[namespace],
                    pl.DataFrame(rows, schema=self.dbs_schemas[namespace]),
                ],
                how="vertical",
            )

    def update_database(
        self,
        namespace: DatabaseNamespace,
        predicate: pl.Expr,
        values: dict[str, Any],
    ) -> int:
        """Set `values` on every row matching `predicate`.

        Parameters
        ----------
        namespace
            Database namespace
        predicate
            A polars predicate that evaluates to boolean, used to identify the rows
            to update. Rows for which it evaluates to null are left unchanged.
        values
            Column name to new value mapping.

        Returns
        -------
        The number of updated rows.

        Raises
        ------
        KeyError:   When `values` contains columns missing from the namespace schema
        """
        schema = self.dbs_schemas[namespace]
        unknown = set(values) - set(schema)
        if unknown:
            raise KeyError(f"Unknown column name {unknown} for namespace {namespace}")
        mask = predicate.fill_null(False)
        with self._lock:
            indexed = self._dbs[namespace].with_row_index(_ROW_INDEX)
            matched = indexed.filter(mask)
            if matched.is_empty():
                return 0
            updated_rows = [{**row, **values} for row in matched.to_dicts()]
            updated = pl.DataFrame(
                updated_rows, schema={_ROW_INDEX: indexed.schema[_ROW_INDEX], **schema}
            )
            self._dbs[namespace] = (
                pl.concat([indexed.filter(~mask), updated], how="vertical")
                .sort(_ROW_INDEX)
                .drop(_ROW_INDEX)
            )
            return len(updated_rows)

    def count(self, namespace: DatabaseNamespace) -> int:
        with self._lock:
            return self._dbs[namespace].height
