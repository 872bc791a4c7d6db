"""
Profiling service — the orchestrator behind every entry point.

``profile`` walks a fixed pipeline::

    Received → Validated → FingerprintComputed ─┬─ cache hit  → Returned
                                                └─ cache miss → Parsed → Accumulated
                                                                → Assembled → Saved → Returned

Validation order: structure → content policy → size guards.  Any failure
there is terminal and never touches the record store.  The cache branch
is an explicit lookup, not a try/except around an insert.

Known race: two concurrent submissions of the same new content can both
miss the cache.  The store's UNIQUE fingerprint constraint lets only one
insert succeed; the other call fails with ``StoreError``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from csvprofiler.config import ProfilerConfig
from csvprofiler.errors import ForbiddenContentError, NotFoundError
from csvprofiler.models.result import AnalysisResult, StoredRecord
from csvprofiler.profiler.column_profiler import profile_columns
from csvprofiler.profiler.fingerprint import fingerprint, normalize_content
from csvprofiler.profiler.tokenizer import ParsedCsv, check_size_limits, parse_csv

if TYPE_CHECKING:
    from csvprofiler.store.base import RecordStore

__all__ = ["ProfilingService"]

logger = logging.getLogger(__name__)


class ProfilingService:
    """Profile, retrieve, delete and export CSV analyses.

    Usage::

        service = ProfilingService(DuckStore(":memory:"), ProfilerConfig())
        result = service.profile("a,b\\n1,2\\n")
        again = service.profile("a,b\\r\\n1,2\\r\\n")   # already_exists=True
    """

    def __init__(self, store: RecordStore, config: ProfilerConfig | None = None) -> None:
        self._store = store
        self._config = config if config is not None else ProfilerConfig()

    @property
    def config(self) -> ProfilerConfig:
        return self._config

    # ------------------------------------------------------------------
    # Profiling
    # ------------------------------------------------------------------

    def profile(self, raw: str) -> AnalysisResult:
        """Profile *raw* CSV text, reusing a stored result for known content.

        Raises
        ------
        InvalidInputError, InvalidCsvStructureError
            Structural validation failed.
        ForbiddenContentError
            The configured forbidden substring is present.
        PayloadTooLargeError
            A size guard was exceeded.
        StoreError
            The record store failed.
        """
        parsed, normalized = self._validate(raw)

        digest = fingerprint(raw, normalized=normalized)
        logger.debug("Content fingerprint %s", digest)

        stored = self._store.find_by_fingerprint(digest)
        if stored is not None:
            logger.info("Fingerprint %s matches analysis %s", digest[:12], stored.id)
            return AnalysisResult.from_record(stored, already_exists=True)

        return self._analyse_and_save(raw, parsed, digest)

    def _validate(self, raw: str) -> tuple[ParsedCsv, str]:
        """Run structure → content policy → size checks.

        Returns the parsed CSV and its normalised text for fingerprinting.
        """
        cfg = self._config
        parsed = parse_csv(raw, cfg.delimiter)

        normalized = normalize_content(raw)
        forbidden = cfg.forbidden_substring
        if forbidden and (forbidden in raw or forbidden in normalized):
            logger.warning("Rejected submission containing forbidden content")
            raise ForbiddenContentError("CSV data contains forbidden content")

        check_size_limits(raw, parsed, cfg)
        return parsed, normalized

    def _analyse_and_save(self, raw: str, parsed: ParsedCsv, digest: str) -> AnalysisResult:
        columns = profile_columns(
            parsed.header, parsed.rows, self._config.percentile_breakpoints,
        )
        record = StoredRecord(
            fingerprint=digest,
            original_data=raw,
            row_count=parsed.row_count,
            column_count=parsed.column_count,
            total_characters=len(raw),
            columns=columns,
            created_at=datetime.now(timezone.utc),
        )
        saved = self._store.save(record)
        logger.info(
            "Profiled analysis %s: %d rows × %d columns",
            saved.id, saved.row_count, saved.column_count,
        )
        return AnalysisResult.from_record(saved, already_exists=False)

    # ------------------------------------------------------------------
    # Retrieval / deletion / export
    # ------------------------------------------------------------------

    def get_by_id(self, analysis_id: int) -> AnalysisResult:
        """Return the stored analysis *analysis_id*.

        Stored results are always reported with ``already_exists=True``.
        Raises :class:`NotFoundError` if it does not exist.
        """
        record = self._store.find_by_id(analysis_id)
        if record is None:
            raise NotFoundError(analysis_id)
        return AnalysisResult.from_record(record, already_exists=True)

    def delete_by_id(self, analysis_id: int) -> None:
        """Delete *analysis_id*; raises :class:`NotFoundError` if absent."""
        if not self._store.delete_by_id(analysis_id):
            raise NotFoundError(analysis_id)

    def export_json(self, analysis_id: int, *, indent: int = 2) -> str:
        """Return the stored analysis as an indented JSON document."""
        result = self.get_by_id(analysis_id)
        return json.dumps(result.to_dict(), indent=indent, ensure_ascii=False)
