"""
Error kinds raised by the profiling engine and its store boundary.

Every client-caused failure carries a stable ``status_code`` so a
transport layer can map it without inspecting messages.  Messages are
deterministic strings.
"""

from __future__ import annotations

__all__ = [
    "ProfilerError",
    "InvalidInputError",
    "InvalidCsvStructureError",
    "ForbiddenContentError",
    "PayloadTooLargeError",
    "NotFoundError",
    "StoreError",
]


class ProfilerError(Exception):
    """Base class for every error surfaced by :mod:`csvprofiler`."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(ProfilerError):
    """Empty / blank input, or a missing header row."""

    status_code = 400


class InvalidCsvStructureError(ProfilerError):
    """A data row's cell count disagrees with the header's."""

    status_code = 422

    def __init__(self, line_number: int, expected: int, actual: int) -> None:
        super().__init__(
            f"Invalid CSV: line {line_number} has {actual} cells, "
            f"expected {expected}"
        )
        self.line_number = line_number
        self.expected = expected
        self.actual = actual


class ForbiddenContentError(ProfilerError):
    """The input contains the configured forbidden substring."""

    status_code = 403


class PayloadTooLargeError(ProfilerError):
    """Byte-size or projected-cell-count guard exceeded."""

    status_code = 413


class NotFoundError(ProfilerError):
    """No stored analysis exists for the requested identifier."""

    status_code = 404

    def __init__(self, analysis_id: int) -> None:
        super().__init__(f"Analysis {analysis_id} not found")
        self.analysis_id = analysis_id


class StoreError(ProfilerError):
    """The record store failed (infrastructure, not a client error)."""

    status_code = 503
