"""
Tokenizer / validator — splits a raw CSV blob into header + data rows.

The format is deliberately simple: one record per line, cells separated
by a single-character delimiter, no quoting.  Adjacent delimiters are
never merged, so ``a,,b`` has three cells and an empty header cell is a
valid (empty) column name.

Size guards live here too (:func:`check_size_limits`) so that the
projected cell count is bounded *before* any per-cell classification.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from csvprofiler.errors import (
    InvalidCsvStructureError,
    InvalidInputError,
    PayloadTooLargeError,
)
from csvprofiler.profiler.text_utils import is_blank

if TYPE_CHECKING:
    from csvprofiler.config import ProfilerConfig

__all__ = ["ParsedCsv", "split_lines", "parse_csv", "check_size_limits"]

logger = logging.getLogger(__name__)

# Every line-break sequence a Unicode-aware reader recognises.  ``\r\n``
# must come first so it is consumed as one break.
_LINE_BREAK = re.compile("\r\n|[\n\x0b\x0c\r\x85\u2028\u2029]")


@dataclass(frozen=True)
class ParsedCsv:
    """Validated CSV structure: header cells + non-blank data rows."""

    header: list[str]
    rows: list[list[str]]

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def cell_count(self) -> int:
        return self.row_count * self.column_count


def split_lines(raw: str) -> list[str]:
    """Split *raw* on any line break, keeping trailing empty entries.

    >>> split_lines("a\\r\\nb\\n")
    ['a', 'b', '']
    """
    return _LINE_BREAK.split(raw)


def parse_csv(raw: str, delimiter: str = ",") -> ParsedCsv:
    """Tokenize and structurally validate *raw*.

    Raises
    ------
    InvalidInputError
        If the input is empty / whitespace-only or its first line is blank.
    InvalidCsvStructureError
        If a non-blank data line does not have exactly as many cells as
        the header.
    """
    if is_blank(raw):
        raise InvalidInputError("Invalid CSV: input is empty")

    lines = split_lines(raw)
    if is_blank(lines[0]):
        raise InvalidInputError("Invalid CSV: missing header row")

    header = lines[0].split(delimiter)
    expected = len(header)

    rows: list[list[str]] = []
    for line_number, line in enumerate(lines[1:], start=2):
        if is_blank(line):
            continue
        cells = line.split(delimiter)
        if len(cells) != expected:
            raise InvalidCsvStructureError(line_number, expected, len(cells))
        rows.append(cells)

    logger.debug("Parsed CSV: %d columns, %d data rows", expected, len(rows))
    return ParsedCsv(header=header, rows=rows)


def check_size_limits(raw: str, parsed: ParsedCsv, config: ProfilerConfig) -> None:
    """Enforce the byte-size and projected-cell-count guards.

    Raises
    ------
    PayloadTooLargeError
        If either limit in *config* is exceeded.
    """
    n_bytes = len(raw.encode("utf-8"))
    if n_bytes > config.max_payload_bytes:
        raise PayloadTooLargeError(
            f"Payload of {n_bytes} bytes exceeds the limit of "
            f"{config.max_payload_bytes} bytes"
        )

    cells = parsed.cell_count
    if cells > config.max_cell_count:
        raise PayloadTooLargeError(
            f"CSV has {cells} cells, exceeding the limit of "
            f"{config.max_cell_count} cells"
        )
