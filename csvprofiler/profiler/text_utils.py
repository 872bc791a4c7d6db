"""
Whitespace rules shared by the tokenizer, the classifier and the
fingerprint.

Two notions are kept apart:

* **blank** — every character is whitespace, where the non-breaking
  spaces (U+00A0, U+2007, U+202F) and NEL (U+0085) do *not* count.
  A cell holding only ``"\\u00a0"`` is a present value, not a null.
* **trim** — removes leading / trailing control characters and ASCII
  space (code points up to U+0020) and nothing else.
"""

from __future__ import annotations

__all__ = ["is_blank", "trim"]

_NOT_WHITESPACE = frozenset("\x85\u00a0\u2007\u202f")
_TRIM_CHARS = "".join(chr(i) for i in range(0x21))


def is_blank(text: str) -> bool:
    """True for an empty string or one made only of breaking whitespace.

    >>> is_blank(" \\t\\u2003")
    True
    >>> is_blank("\\u00a0")
    False
    """
    return all(ch.isspace() and ch not in _NOT_WHITESPACE for ch in text)


def trim(text: str) -> str:
    """Strip code points ``<= U+0020`` from both ends of *text*."""
    return text.strip(_TRIM_CHARS)
