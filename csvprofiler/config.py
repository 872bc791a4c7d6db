"""
Central configuration for csvprofiler.

All limits and tunables live here and are passed explicitly into
:class:`~csvprofiler.service.ProfilingService`; nothing reads module-level
constants at profiling time.  Override via ``ProfilerConfig(max_cell_count=10)``
or from the environment with :meth:`ProfilerConfig.from_env`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

__all__ = ["ProfilerConfig", "DEFAULT_PERCENTILES"]

DEFAULT_PERCENTILES: tuple[float, ...] = (25, 50, 75, 90, 95, 99)

_ENV_PREFIX = "CSVPROFILER_"


@dataclass(frozen=True)
class ProfilerConfig:
    """Immutable configuration for the profiling engine and its store."""

    # ── Size guards ──────────────────────────────────────────────────
    max_payload_bytes: int = 5 * 1024 * 1024
    """Reject raw input whose UTF-8 encoding is larger than this."""

    max_cell_count: int = 1_000_000
    """Reject input whose ``data rows × columns`` exceeds this."""

    # ── Content policy ───────────────────────────────────────────────
    forbidden_substring: str | None = "Sonny Hayes"
    """Exact substring that makes a submission inadmissible.  ``None``
    disables the check."""

    # ── Parsing / statistics ─────────────────────────────────────────
    delimiter: str = ","
    percentile_breakpoints: tuple[float, ...] = DEFAULT_PERCENTILES

    # ── DuckDB ───────────────────────────────────────────────────────
    duckdb_path: str = "csvprofiler.db"

    def __post_init__(self) -> None:
        if self.max_payload_bytes <= 0:
            raise ValueError("max_payload_bytes must be positive")
        if self.max_cell_count <= 0:
            raise ValueError("max_cell_count must be positive")
        if len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")
        if not self.percentile_breakpoints:
            raise ValueError("percentile_breakpoints must not be empty")
        for p in self.percentile_breakpoints:
            if not 0 <= p <= 100:
                raise ValueError(f"percentile breakpoint out of range: {p}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ProfilerConfig:
        """Build a config from ``CSVPROFILER_*`` environment variables.

        Unset variables keep their defaults.  An empty
        ``CSVPROFILER_FORBIDDEN_SUBSTRING`` disables the content policy.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}

        for name in ("max_payload_bytes", "max_cell_count"):
            raw = env.get(_ENV_PREFIX + name.upper())
            if raw is not None and raw.strip():
                try:
                    overrides[name] = int(raw)
                except ValueError:
                    raise ValueError(
                        f"{_ENV_PREFIX}{name.upper()} must be an integer, got {raw!r}"
                    ) from None

        forbidden = env.get(_ENV_PREFIX + "FORBIDDEN_SUBSTRING")
        if forbidden is not None:
            overrides["forbidden_substring"] = forbidden or None

        db_path = env.get(_ENV_PREFIX + "DUCKDB_PATH")
        if db_path:
            overrides["duckdb_path"] = db_path

        return cls(**overrides)
