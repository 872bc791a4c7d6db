"""
csvprofiler — CSV profiling engine with content-addressed deduplication.

Validates a raw comma-separated blob, infers per-column types, counts
nulls and distinct values, computes numeric statistics (min, max, mean,
median, population standard deviation, interpolated percentiles) and
stores each result under a fingerprint of its normalised content, so a
resubmission is served from storage.

Quick start::

    from csvprofiler import open_service
    service = open_service()
    result = service.profile(open("scores.csv").read())
"""

from __future__ import annotations

from csvprofiler.config import ProfilerConfig
from csvprofiler.models.result import AnalysisResult, ColumnProfile, NumericProfile
from csvprofiler.service import ProfilingService
from csvprofiler.store.duck_store import DuckStore

__all__ = [
    "AnalysisResult",
    "ColumnProfile",
    "NumericProfile",
    "ProfilerConfig",
    "ProfilingService",
    "open_service",
]
__version__ = "1.0.0"


def open_service(config: ProfilerConfig | None = None) -> ProfilingService:
    """Build a :class:`ProfilingService` backed by a :class:`DuckStore`.

    Parameters
    ----------
    config : ProfilerConfig | None
        If ``None``, a default :class:`ProfilerConfig` is created and the
        database lives at its ``duckdb_path``.
    """
    if config is None:
        config = ProfilerConfig()
    return ProfilingService(DuckStore.from_config(config), config)
