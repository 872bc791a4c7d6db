"""Storage backends for profiling results."""

from csvprofiler.store.base import RecordStore
from csvprofiler.store.duck_store import DuckStore

__all__ = ["RecordStore", "DuckStore"]
