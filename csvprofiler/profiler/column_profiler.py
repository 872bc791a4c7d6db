"""
Column profiler — per-column type inference, null / uniqueness tracking
and numeric statistics.

One :class:`ColumnAccumulator` per header position consumes every data
row in a single pass.  A column stays a *numeric candidate* until the
first non-null value that does not parse as a number; after that its
numeric list is ignored.  Finalisation turns the running state into an
immutable :class:`~csvprofiler.models.result.ColumnProfile`.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence
from enum import Enum

import numpy as np

from csvprofiler.config import DEFAULT_PERCENTILES
from csvprofiler.models.result import ColumnProfile, NumericProfile
from csvprofiler.profiler.text_utils import is_blank, trim

__all__ = [
    "ValueKind",
    "classify_value",
    "percentile",
    "compute_numeric_stats",
    "ColumnAccumulator",
    "profile_columns",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Value classification
# ---------------------------------------------------------------------------

class ValueKind(Enum):
    """Tri-state classification of a single cell."""

    NULL = "null"
    NUMERIC = "numeric"
    TEXT = "text"


# Strict base-10 literal: sign, digits with optional fraction, exponent.
# No thousands separators, underscores, hex, or nan/inf words.
_NUMBER = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


def classify_value(cell: str) -> tuple[ValueKind, float | None]:
    """Classify *cell* as null, numeric or text.

    Returns ``(kind, number)`` where *number* is set only for
    :attr:`ValueKind.NUMERIC`.  Literals that overflow to infinity are
    treated as text.

    >>> classify_value(" 1.5e3 ")
    (<ValueKind.NUMERIC: 'numeric'>, 1500.0)
    >>> classify_value("1,000")
    (<ValueKind.TEXT: 'text'>, None)
    """
    if is_blank(cell):
        return ValueKind.NULL, None
    value = trim(cell)
    if _NUMBER.fullmatch(value) is None:
        return ValueKind.TEXT, None
    number = float(value)
    if not math.isfinite(number):
        return ValueKind.TEXT, None
    return ValueKind.NUMERIC, number


# ---------------------------------------------------------------------------
# Numeric statistics
# ---------------------------------------------------------------------------

def percentile(sorted_values: Sequence[float], p: float) -> float:
    """Linear interpolation between the two closest ranks.

    ``index = p/100 * (n - 1)``; when *index* falls between two ranks the
    result is ``lo + frac * (hi - lo)``.  *sorted_values* must be sorted
    ascending and non-empty.
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("percentile of an empty sequence")
    if n == 1:
        return float(sorted_values[0])

    index = (p / 100.0) * (n - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return float(sorted_values[lower])
    lo = float(sorted_values[lower])
    hi = float(sorted_values[upper])
    return lo + (index - lower) * (hi - lo)


def _median(sorted_values: Sequence[float]) -> float:
    n = len(sorted_values)
    mid = n // 2
    if n % 2 == 0:
        return (float(sorted_values[mid - 1]) + float(sorted_values[mid])) / 2.0
    return float(sorted_values[mid])


def compute_numeric_stats(
    values: Iterable[float],
    breakpoints: Sequence[float] = DEFAULT_PERCENTILES,
) -> NumericProfile:
    """Compute min / max / mean / median / population std / percentiles.

    The values are sorted once and the sorted array is reused for every
    order statistic.  Raises ``ValueError`` on an empty input.
    """
    arr = np.sort(np.asarray(list(values), dtype=np.float64))
    n = arr.size
    if n == 0:
        raise ValueError("numeric statistics need at least one value")

    # Sequential sum over the sorted values, not numpy's pairwise sum.
    mean = sum(arr.tolist()) / n
    deviations = arr - mean
    std = math.sqrt(float(np.dot(deviations, deviations)) / n)

    return NumericProfile(
        min=float(arr[0]),
        max=float(arr[-1]),
        mean=mean,
        median=_median(arr),
        standard_deviation=std,
        percentiles=tuple(percentile(arr, p) for p in breakpoints),
    )


# ---------------------------------------------------------------------------
# Column accumulator
# ---------------------------------------------------------------------------

class ColumnAccumulator:
    """Running state for one column across all data rows."""

    __slots__ = ("null_count", "distinct", "numeric_values", "numeric_candidate")

    def __init__(self) -> None:
        self.null_count = 0
        self.distinct: set[str] = set()
        self.numeric_values: list[float] = []
        self.numeric_candidate = True

    def add(self, cell: str) -> None:
        if is_blank(cell):
            self.null_count += 1
            return

        value = trim(cell)
        self.distinct.add(value)
        if not self.numeric_candidate:
            return

        kind, number = classify_value(value)
        if kind is ValueKind.NUMERIC:
            self.numeric_values.append(number)
        else:
            # One text value disqualifies the whole column.
            self.numeric_candidate = False
            self.numeric_values.clear()

    @property
    def is_numeric(self) -> bool:
        return self.numeric_candidate and bool(self.numeric_values)

    def finalize(
        self,
        name: str,
        breakpoints: Sequence[float] = DEFAULT_PERCENTILES,
    ) -> ColumnProfile:
        numeric = None
        if self.is_numeric:
            numeric = compute_numeric_stats(self.numeric_values, breakpoints)
        return ColumnProfile(
            name=name,
            null_count=self.null_count,
            unique_count=len(self.distinct),
            numeric=numeric,
        )


def profile_columns(
    header: Sequence[str],
    rows: Iterable[Sequence[str]],
    breakpoints: Sequence[float] = DEFAULT_PERCENTILES,
) -> tuple[ColumnProfile, ...]:
    """Run one accumulation pass over *rows* and finalise every column.

    Every row must already have ``len(header)`` cells (see
    :func:`csvprofiler.profiler.tokenizer.parse_csv`).
    """
    accumulators = [ColumnAccumulator() for _ in header]
    for row in rows:
        for acc, cell in zip(accumulators, row):
            acc.add(cell)

    profiles = tuple(
        acc.finalize(name, breakpoints) for name, acc in zip(header, accumulators)
    )
    logger.debug(
        "Profiled %d columns (%d numeric)",
        len(profiles), sum(p.is_numeric for p in profiles),
    )
    return profiles
