"""Core data-model classes used throughout csvprofiler."""

from csvprofiler.models.result import (
    AnalysisResult,
    ColumnProfile,
    NumericProfile,
    StoredRecord,
)

__all__ = [
    "AnalysisResult",
    "ColumnProfile",
    "NumericProfile",
    "StoredRecord",
]
