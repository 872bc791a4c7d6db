"""
DuckDB store — embedded persistence for profiling results.

A single ``.db`` file (or ``":memory:"`` for tests), no server.

Schema:

* **``analysis``** table — one row per submitted CSV, keyed by a
  sequence-assigned ``id`` with a UNIQUE ``content_hash`` (fingerprint).
* **``column_statistics``** table — one row per column of an analysis,
  keyed by ``(analysis_id, column_index)``.

**Single connection**: every call goes through one DuckDB connection
guarded by a lock.  Two racing saves of the same fingerprint cannot both
succeed; the loser gets a :class:`~csvprofiler.errors.StoreError`.
"""

from __future__ import annotations

import contextlib
import dataclasses
import logging
import threading
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

from csvprofiler.errors import StoreError
from csvprofiler.models.result import ColumnProfile, NumericProfile, StoredRecord

if TYPE_CHECKING:
    from csvprofiler.config import ProfilerConfig

__all__ = ["DuckStore"]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_SEQUENCE = "CREATE SEQUENCE IF NOT EXISTS analysis_id_seq START 1;"

_CREATE_ANALYSIS = """
CREATE TABLE IF NOT EXISTS analysis (
    id                BIGINT  DEFAULT nextval('analysis_id_seq') PRIMARY KEY,
    content_hash      VARCHAR NOT NULL UNIQUE,
    original_data     VARCHAR NOT NULL,
    number_of_rows    BIGINT  NOT NULL,
    number_of_columns BIGINT  NOT NULL,
    total_characters  BIGINT  NOT NULL,
    created_at        TIMESTAMP NOT NULL   -- naive UTC
);
"""

_CREATE_COLUMN_STATISTICS = """
CREATE TABLE IF NOT EXISTS column_statistics (
    analysis_id        BIGINT  NOT NULL,
    column_index       INTEGER NOT NULL,
    column_name        VARCHAR NOT NULL,
    null_count         BIGINT  NOT NULL,
    unique_count       BIGINT  NOT NULL,
    is_numeric         BOOLEAN NOT NULL,
    min_value          DOUBLE,
    max_value          DOUBLE,
    mean_value         DOUBLE,
    median_value       DOUBLE,
    standard_deviation DOUBLE,
    percentiles        DOUBLE[],
    PRIMARY KEY (analysis_id, column_index)
);
"""

_SELECT_ANALYSIS = (
    "SELECT id, content_hash, original_data, number_of_rows,"
    "       number_of_columns, total_characters, created_at"
    "  FROM analysis"
)


# ---------------------------------------------------------------------------
# DuckStore
# ---------------------------------------------------------------------------

class DuckStore:
    """Embedded DuckDB implementation of :class:`~csvprofiler.store.base.RecordStore`.

    Parameters
    ----------
    db_path : str | Path
        Path to the ``.db`` file. Use ``":memory:"`` for testing.
    """

    def __init__(self, db_path: str | Path = "csvprofiler.db") -> None:
        self._db_path = str(db_path)
        self._lock = threading.Lock()
        try:
            self._con: duckdb.DuckDBPyConnection = duckdb.connect(self._db_path)
        except duckdb.Error as e:
            raise StoreError(f"Cannot open record store at {self._db_path}") from e
        self.init_tables()

    @classmethod
    def from_config(cls, config: ProfilerConfig) -> DuckStore:
        return cls(config.duckdb_path)

    # ==================================================================
    # Schema management
    # ==================================================================

    def init_tables(self, *, recreate: bool = False) -> None:
        """Create the ``analysis`` and ``column_statistics`` tables.

        If *recreate* is True, existing tables are dropped first.
        """
        with self._guard("initialise tables"):
            if recreate:
                self._con.execute("DROP TABLE IF EXISTS column_statistics;")
                self._con.execute("DROP TABLE IF EXISTS analysis;")
                self._con.execute("DROP SEQUENCE IF EXISTS analysis_id_seq;")
                logger.info("Dropped existing DuckDB tables")

            self._con.execute(_CREATE_SEQUENCE)
            self._con.execute(_CREATE_ANALYSIS)
            self._con.execute(_CREATE_COLUMN_STATISTICS)
        logger.debug("DuckDB tables ready at %s", self._db_path)

    # ==================================================================
    # RecordStore contract
    # ==================================================================

    def find_by_fingerprint(self, digest: str) -> StoredRecord | None:
        with self._guard("look up fingerprint"):
            row = self._con.execute(
                _SELECT_ANALYSIS + " WHERE content_hash = ?", [digest],
            ).fetchone()
            return self._load(row) if row else None

    def find_by_id(self, analysis_id: int) -> StoredRecord | None:
        with self._guard("look up analysis"):
            row = self._con.execute(
                _SELECT_ANALYSIS + " WHERE id = ?", [analysis_id],
            ).fetchone()
            return self._load(row) if row else None

    def save(self, record: StoredRecord) -> StoredRecord:
        """Insert *record* and its column rows in one transaction.

        Returns a copy of *record* carrying the assigned ``id``.
        """
        created_at = record.created_at.astimezone(timezone.utc).replace(tzinfo=None)

        with self._guard("save analysis"):
            self._con.execute("BEGIN TRANSACTION;")
            try:
                (analysis_id,) = self._con.execute(
                    """INSERT INTO analysis
                       (content_hash, original_data, number_of_rows,
                        number_of_columns, total_characters, created_at)
                       VALUES (?, ?, ?, ?, ?, ?)
                       RETURNING id""",
                    [
                        record.fingerprint,
                        record.original_data,
                        record.row_count,
                        record.column_count,
                        record.total_characters,
                        created_at,
                    ],
                ).fetchone()

                column_rows = [
                    _column_row(analysis_id, i, col)
                    for i, col in enumerate(record.columns)
                ]
                if column_rows:
                    self._con.executemany(
                        """INSERT INTO column_statistics
                           (analysis_id, column_index, column_name, null_count,
                            unique_count, is_numeric, min_value, max_value,
                            mean_value, median_value, standard_deviation,
                            percentiles)
                           VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                        column_rows,
                    )
                self._con.execute("COMMIT;")
            except Exception:
                self._con.execute("ROLLBACK;")
                raise

        logger.info(
            "Stored analysis %d (%d columns, fingerprint %s)",
            analysis_id, len(record.columns), record.fingerprint[:12],
        )
        return dataclasses.replace(record, id=analysis_id)

    def delete_by_id(self, analysis_id: int) -> bool:
        with self._guard("delete analysis"):
            exists = self._con.execute(
                "SELECT 1 FROM analysis WHERE id = ?", [analysis_id],
            ).fetchone()
            if not exists:
                return False

            self._con.execute("BEGIN TRANSACTION;")
            try:
                self._con.execute(
                    "DELETE FROM column_statistics WHERE analysis_id = ?",
                    [analysis_id],
                )
                self._con.execute("DELETE FROM analysis WHERE id = ?", [analysis_id])
                self._con.execute("COMMIT;")
            except Exception:
                self._con.execute("ROLLBACK;")
                raise

        logger.info("Deleted analysis %d", analysis_id)
        return True

    # ==================================================================
    # Internals
    # ==================================================================

    @contextlib.contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Serialise access to the connection and wrap DuckDB failures."""
        with self._lock:
            try:
                yield
            except duckdb.Error as e:
                logger.error("DuckDB failed to %s: %s", action, e)
                raise StoreError(f"Record store failed to {action}") from e

    def _load(self, row: tuple) -> StoredRecord:
        """Assemble a :class:`StoredRecord` from an ``analysis`` row."""
        analysis_id, digest, original, n_rows, n_cols, n_chars, created_at = row
        col_rows = self._con.execute(
            "SELECT column_name, null_count, unique_count, is_numeric,"
            "       min_value, max_value, mean_value, median_value,"
            "       standard_deviation, percentiles"
            "  FROM column_statistics"
            " WHERE analysis_id = ?"
            " ORDER BY column_index",
            [analysis_id],
        ).fetchall()

        return StoredRecord(
            id=analysis_id,
            fingerprint=digest,
            original_data=original,
            row_count=n_rows,
            column_count=n_cols,
            total_characters=n_chars,
            columns=tuple(_column_from_row(r) for r in col_rows),
            created_at=_as_utc(created_at),
        )

    def close(self) -> None:
        """Close the DuckDB connection."""
        self._con.close()

    def __enter__(self) -> DuckStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Row mapping
# ---------------------------------------------------------------------------

def _column_row(analysis_id: int, index: int, col: ColumnProfile) -> tuple:
    num = col.numeric
    return (
        analysis_id,
        index,
        col.name,
        col.null_count,
        col.unique_count,
        num is not None,
        num.min if num else None,
        num.max if num else None,
        num.mean if num else None,
        num.median if num else None,
        num.standard_deviation if num else None,
        list(num.percentiles) if num else None,
    )


def _column_from_row(row: tuple) -> ColumnProfile:
    (name, null_count, unique_count, is_numeric,
     mn, mx, mean, median, std, percentiles) = row
    numeric = None
    if is_numeric:
        numeric = NumericProfile(
            min=mn,
            max=mx,
            mean=mean,
            median=median,
            standard_deviation=std,
            percentiles=tuple(percentiles),
        )
    return ColumnProfile(
        name=name,
        null_count=null_count,
        unique_count=unique_count,
        numeric=numeric,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
