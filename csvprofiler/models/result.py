"""
Profiling result containers.

``ColumnProfile`` keeps numeric statistics in an optional
:class:`NumericProfile` so that "no statistics" (text / empty column) is
never confused with a statistic whose value happens to be zero.

``to_dict`` methods emit the camelCase wire shape used by the JSON
export (see :meth:`csvprofiler.service.ProfilingService.export_json`).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

__all__ = [
    "NumericProfile",
    "ColumnProfile",
    "AnalysisResult",
    "StoredRecord",
]


@dataclass(frozen=True)
class NumericProfile:
    """Summary statistics for a numeric column."""

    min: float
    max: float
    mean: float
    median: float
    standard_deviation: float
    """Population standard deviation (divides by ``n``)."""

    percentiles: tuple[float, ...]
    """One value per configured breakpoint, default p25/p50/p75/p90/p95/p99."""


@dataclass(frozen=True)
class ColumnProfile:
    """Complete profile for one CSV column, ordered by header position."""

    name: str
    null_count: int
    unique_count: int
    numeric: NumericProfile | None = None

    @property
    def is_numeric(self) -> bool:
        return self.numeric is not None

    @property
    def min(self) -> float | None:
        return self.numeric.min if self.numeric else None

    @property
    def max(self) -> float | None:
        return self.numeric.max if self.numeric else None

    @property
    def mean(self) -> float | None:
        return self.numeric.mean if self.numeric else None

    @property
    def median(self) -> float | None:
        return self.numeric.median if self.numeric else None

    @property
    def standard_deviation(self) -> float | None:
        return self.numeric.standard_deviation if self.numeric else None

    @property
    def percentiles(self) -> tuple[float, ...] | None:
        return self.numeric.percentiles if self.numeric else None

    def to_dict(self) -> dict[str, Any]:
        percentiles = self.percentiles
        return {
            "columnName": self.name,
            "nullCount": self.null_count,
            "uniqueCount": self.unique_count,
            "isNumeric": self.is_numeric,
            "minValue": self.min,
            "maxValue": self.max,
            "meanValue": self.mean,
            "medianValue": self.median,
            "standardDeviation": self.standard_deviation,
            "percentiles": list(percentiles) if percentiles is not None else None,
        }


@dataclass(frozen=True)
class StoredRecord:
    """A persisted analysis, as exchanged with a record store.

    ``id`` is ``None`` until :meth:`RecordStore.save` assigns one.
    """

    fingerprint: str
    original_data: str
    row_count: int
    column_count: int
    total_characters: int
    columns: tuple[ColumnProfile, ...]
    created_at: datetime
    id: int | None = None


@dataclass(frozen=True)
class AnalysisResult:
    """Aggregate output of one profiling / retrieval call."""

    id: int | None
    row_count: int
    column_count: int
    total_characters: int
    columns: tuple[ColumnProfile, ...]
    created_at: datetime
    already_exists: bool

    @classmethod
    def from_record(cls, record: StoredRecord, *, already_exists: bool) -> AnalysisResult:
        """Build a result from *record* verbatim (no recomputation)."""
        return cls(
            id=record.id,
            row_count=record.row_count,
            column_count=record.column_count,
            total_characters=record.total_characters,
            columns=record.columns,
            created_at=record.created_at,
            already_exists=already_exists,
        )

    def column(self, name: str) -> ColumnProfile:
        """Return the first column called *name*.

        Raises ``KeyError`` if no column has that name.
        """
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "numberOfRows": self.row_count,
            "numberOfColumns": self.column_count,
            "totalCharacters": self.total_characters,
            "columnStatistics": [c.to_dict() for c in self.columns],
            "createdAt": self.created_at.isoformat(),
            "alreadyExists": self.already_exists,
        }
