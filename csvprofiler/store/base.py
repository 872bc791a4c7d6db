"""Record-store boundary contract consumed by the profiling service."""

from __future__ import annotations

from typing import Protocol

from csvprofiler.models.result import StoredRecord

__all__ = ["RecordStore"]


class RecordStore(Protocol):
    """Protocol all record stores must satisfy.

    Implementations own their consistency discipline: the fingerprint must
    be unique, and a duplicate-create race must surface as
    :class:`~csvprofiler.errors.StoreError` rather than a second record.
    """

    def find_by_fingerprint(self, digest: str) -> StoredRecord | None:
        """Return the record whose content fingerprint is *digest*, if any."""
        ...

    def save(self, record: StoredRecord) -> StoredRecord:
        """Persist *record* and return it with its assigned ``id``."""
        ...

    def find_by_id(self, analysis_id: int) -> StoredRecord | None:
        """Return the record with *analysis_id*, if any."""
        ...

    def delete_by_id(self, analysis_id: int) -> bool:
        """Delete the record with *analysis_id*; ``False`` if it was absent."""
        ...
