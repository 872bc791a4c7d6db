"""
Content fingerprint — the deduplication key for submitted CSV text.

Two submissions that differ only in line-ending style, leading/trailing
whitespace on a line, or blank lines normalise to the same text and so
share a fingerprint.  This is a lookup key, not a security primitive.
"""

from __future__ import annotations

import hashlib
import re

from csvprofiler.profiler.text_utils import trim

__all__ = ["normalize_content", "fingerprint"]

_NEWLINE = re.compile(r"\r\n|\r|\n")


def normalize_content(raw: str) -> str:
    """CRLF → LF, strip every line, drop empty lines, rejoin with ``\\n``.

    >>> normalize_content("a,b \\r\\n\\r\\n 1,2\\n")
    'a,b\\n1,2'
    """
    text = raw.replace("\r\n", "\n")
    lines = (trim(line) for line in _NEWLINE.split(text))
    return "\n".join(line for line in lines if line)


def fingerprint(raw: str, *, normalized: str | None = None) -> str:
    """Return the 64-char SHA-256 hex digest of the normalised *raw* text.

    Pass *normalized* when the caller already holds
    ``normalize_content(raw)`` to skip normalising twice.
    """
    if normalized is None:
        normalized = normalize_content(raw)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
