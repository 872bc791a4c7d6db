"""
Tests for csvprofiler.service.ProfilingService.

Covers the profile → fingerprint → cache-or-compute pipeline, the
validation order, retrieval / deletion / export, and store failures.
"""

from __future__ import annotations

import json
import random
from unittest.mock import MagicMock

import pytest

from csvprofiler.config import ProfilerConfig
from csvprofiler.errors import (
    ForbiddenContentError,
    InvalidCsvStructureError,
    InvalidInputError,
    NotFoundError,
    PayloadTooLargeError,
    StoreError,
)
from csvprofiler.profiler.fingerprint import fingerprint
from csvprofiler.service import ProfilingService
from csvprofiler.store.duck_store import DuckStore


@pytest.fixture
def store():
    s = DuckStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def service(store):
    return ProfilingService(store, ProfilerConfig())


def _scores_csv() -> str:
    scores = [85, 90, 75, 95, 80, 70, 88, 72, 92, 78]
    return "name,score\n" + "".join(f"s{i},{s}\n" for i, s in enumerate(scores))


# ======================================================================
# Fresh profiling
# ======================================================================


class TestProfile:
    def test_header_only(self, service):
        result = service.profile("driver,number,team\n")
        assert result.row_count == 0
        assert result.column_count == 3
        assert [c.name for c in result.columns] == ["driver", "number", "team"]
        for col in result.columns:
            assert (col.null_count, col.unique_count, col.is_numeric) == (0, 0, False)
            assert col.numeric is None

    def test_numeric_columns(self, service):
        result = service.profile("a,b\n1,2\n3,4\n5,6\n")
        a, b = result.columns
        assert a.is_numeric and b.is_numeric
        assert (a.min, a.max, a.mean, a.median) == (1, 5, 3, 3)
        assert (b.min, b.max, b.mean, b.median) == (2, 6, 4, 4)

    def test_scores_statistics(self, service):
        col = service.profile(_scores_csv()).column("score")
        assert col.mean == pytest.approx(82.5)
        assert col.median == pytest.approx(82.5)
        assert col.standard_deviation == pytest.approx(8.297, abs=1e-3)
        assert col.percentiles[0] == pytest.approx(75.75)
        assert col.percentiles[2] == pytest.approx(89.5)

    def test_text_column(self, service):
        col = service.profile(_scores_csv()).column("name")
        assert not col.is_numeric
        assert col.unique_count == 10
        assert col.min is None and col.percentiles is None

    def test_counts_and_characters(self, service):
        raw = "a,b\r\n\r\n1, x\r\n,x \r\n  \r\n"
        result = service.profile(raw)
        assert result.row_count == 2
        assert result.column_count == 2
        assert result.total_characters == len(raw)
        a, b = result.columns
        assert a.null_count == 1 and a.unique_count == 1 and a.is_numeric
        assert b.null_count == 0 and b.unique_count == 1 and not b.is_numeric

    def test_null_invariants(self, service):
        raw = "x,y,z\n1,,a\n,,a\n2,,b\n2,,\n"
        result = service.profile(raw)
        for col in result.columns:
            assert col.unique_count <= result.row_count - col.null_count
        x, y, z = result.columns
        assert (x.null_count, x.unique_count) == (1, 2)
        assert (y.null_count, y.unique_count, y.is_numeric) == (4, 0, False)
        assert (z.null_count, z.unique_count) == (1, 2)

    def test_fresh_result_is_saved(self, service, store):
        raw = "a\n1\n"
        result = service.profile(raw)
        assert result.already_exists is False
        assert result.id is not None
        stored = store.find_by_fingerprint(fingerprint(raw))
        assert stored.id == result.id
        assert stored.original_data == raw
        assert result.created_at.tzinfo is not None

    def test_custom_breakpoints(self, store):
        svc = ProfilingService(store, ProfilerConfig(percentile_breakpoints=(10, 50)))
        col = svc.profile("v\n1\n2\n3\n").columns[0]
        assert col.percentiles == (pytest.approx(1.2), 2.0)


# ======================================================================
# Deduplication
# ======================================================================


class TestDeduplication:
    def test_same_content_twice(self, service):
        first = service.profile("a,b\n1,2\n3,4\n")
        second = service.profile("a,b\n1,2\n3,4\n")
        assert first.already_exists is False
        assert second.already_exists is True
        assert second.id == first.id
        assert second.columns == first.columns
        assert second.created_at == first.created_at

    def test_formatting_variants_hit_the_cache(self, service):
        first = service.profile("a,b\n1,2\n3,4")
        variant = service.profile("a,b  \r\n1,2\r\n\r\n3,4\r\n\r\n")
        assert variant.already_exists is True
        assert variant.id == first.id

    def test_cache_hit_returns_stored_record_verbatim(self, service):
        # total_characters comes from the first submission, not the variant
        first = service.profile("a\n1\n")
        hit = service.profile("a\n1\n\n\n\n")
        assert hit.total_characters == first.total_characters == 4

    def test_cache_hit_skips_computation(self, store):
        svc = ProfilingService(store)
        svc.profile("a\n1\n")
        spy = MagicMock(wraps=store)
        ProfilingService(spy).profile("a\n1\n")
        spy.find_by_fingerprint.assert_called_once()
        spy.save.assert_not_called()

    def test_different_content_gets_new_record(self, service):
        first = service.profile("a\n1\n")
        second = service.profile("a\n2\n")
        assert second.already_exists is False
        assert second.id != first.id

    def test_percentiles_stable_under_row_order(self, service):
        values = list(range(1, 31))
        random.Random(3).shuffle(values)
        first = service.profile("v\n" + "\n".join(map(str, values)) + "\n")
        values.reverse()
        second = service.profile("v\n" + "\n".join(map(str, values)) + "\n")
        assert second.already_exists is False
        assert first.columns[0].percentiles == second.columns[0].percentiles


# ======================================================================
# Validation and its ordering
# ======================================================================


class TestValidation:
    def test_forbidden_content_creates_no_record(self, service, store):
        raw = "driver,team\nSonny Hayes,APXGP\n"
        with pytest.raises(ForbiddenContentError):
            service.profile(raw)
        assert store.find_by_fingerprint(fingerprint(raw)) is None

    def test_forbidden_content_is_exact_match(self, service):
        assert service.profile("driver\nsonny hayes\n").already_exists is False

    def test_forbidden_content_checked_before_cache(self, store):
        raw = "driver\nSonny Hayes\n"
        ProfilingService(store, ProfilerConfig(forbidden_substring=None)).profile(raw)
        with pytest.raises(ForbiddenContentError):
            ProfilingService(store).profile(raw)

    def test_policy_disabled(self, store):
        svc = ProfilingService(store, ProfilerConfig(forbidden_substring=None))
        assert svc.profile("driver\nSonny Hayes\n").row_count == 1

    def test_short_row(self, service):
        with pytest.raises(InvalidCsvStructureError):
            service.profile("a,b\n1,2\n3\n")

    @pytest.mark.parametrize("raw", ["", "   \n  ", "\na,b\n1,2\n"])
    def test_invalid_input(self, service, raw):
        with pytest.raises(InvalidInputError):
            service.profile(raw)

    def test_structure_checked_before_policy(self, service):
        with pytest.raises(InvalidCsvStructureError):
            service.profile("a,b\nSonny Hayes\n")

    def test_policy_checked_before_size(self, store):
        svc = ProfilingService(store, ProfilerConfig(max_cell_count=1))
        with pytest.raises(ForbiddenContentError):
            svc.profile("a,b\nSonny Hayes,1\n")

    def test_cell_limit(self, store):
        svc = ProfilingService(store, ProfilerConfig(max_cell_count=4))
        assert svc.profile("a,b\n1,2\n3,4\n").row_count == 2
        with pytest.raises(PayloadTooLargeError):
            svc.profile("a,b\n1,2\n3,4\n5,6\n")

    def test_byte_limit(self, store):
        svc = ProfilingService(store, ProfilerConfig(max_payload_bytes=10))
        with pytest.raises(PayloadTooLargeError):
            svc.profile("abc,def\n123,456\n")

    def test_size_checked_before_cache(self, store):
        raw = "a,b\n1,2\n3,4\n"
        ProfilingService(store).profile(raw)
        with pytest.raises(PayloadTooLargeError):
            ProfilingService(store, ProfilerConfig(max_cell_count=2)).profile(raw)

    def test_rejections_never_reach_the_store(self):
        store = MagicMock()
        svc = ProfilingService(store)
        for raw in ["", "a,b\n1\n", "a\nSonny Hayes\n"]:
            with pytest.raises((InvalidInputError, InvalidCsvStructureError, ForbiddenContentError)):
                svc.profile(raw)
        store.find_by_fingerprint.assert_not_called()
        store.save.assert_not_called()


# ======================================================================
# Retrieval / deletion / export
# ======================================================================


class TestRetrieval:
    def test_get_by_id(self, service):
        created = service.profile("a,b\n1,2\n")
        fetched = service.get_by_id(created.id)
        assert fetched.already_exists is True
        assert fetched.columns == created.columns
        assert fetched.row_count == created.row_count

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError) as exc_info:
            service.get_by_id(42)
        assert exc_info.value.status_code == 404

    def test_delete(self, service):
        created = service.profile("a\n1\n")
        service.delete_by_id(created.id)
        with pytest.raises(NotFoundError):
            service.get_by_id(created.id)
        # content can be profiled afresh once deleted
        assert service.profile("a\n1\n").already_exists is False

    def test_delete_missing(self, service):
        with pytest.raises(NotFoundError):
            service.delete_by_id(7)

    def test_export_json(self, service):
        created = service.profile("name,score\nx,1\ny,\n")
        doc = json.loads(service.export_json(created.id))
        assert doc["id"] == created.id
        assert doc["numberOfRows"] == 2
        assert doc["numberOfColumns"] == 2
        assert doc["alreadyExists"] is True
        name, score = doc["columnStatistics"]
        assert name["columnName"] == "name"
        assert name["isNumeric"] is False
        assert name["percentiles"] is None
        assert name["meanValue"] is None
        assert score["nullCount"] == 1
        assert score["minValue"] == 1.0
        assert score["percentiles"] == [1.0] * 6

    def test_export_missing(self, service):
        with pytest.raises(NotFoundError):
            service.export_json(1)


# ======================================================================
# Store failures
# ======================================================================


class TestStoreFailures:
    def test_lookup_failure_propagates(self):
        store = MagicMock()
        store.find_by_fingerprint.side_effect = StoreError("Record store failed to look up fingerprint")
        with pytest.raises(StoreError):
            ProfilingService(store).profile("a\n1\n")

    def test_save_failure_propagates(self):
        store = MagicMock()
        store.find_by_fingerprint.return_value = None
        store.save.side_effect = StoreError("Record store failed to save analysis")
        with pytest.raises(StoreError) as exc_info:
            ProfilingService(store).profile("a\n1\n")
        assert exc_info.value.status_code == 503

    def test_duplicate_create_race_surfaces_as_store_error(self, store):
        # Simulate a concurrent writer committing between lookup and save.
        racing = MagicMock(wraps=store)
        racing.find_by_fingerprint.return_value = None
        ProfilingService(store).profile("a\n1\n")
        with pytest.raises(StoreError):
            ProfilingService(racing).profile("a\n1\n")


# ======================================================================
# Factory
# ======================================================================


class TestOpenService:
    def test_builds_duckdb_backed_service(self, tmp_path):
        from csvprofiler import open_service

        config = ProfilerConfig(duckdb_path=str(tmp_path / "profiles.db"))
        service = open_service(config)
        assert service.config is config
        result = service.profile("a\n1\n")
        assert service.get_by_id(result.id).row_count == 1
