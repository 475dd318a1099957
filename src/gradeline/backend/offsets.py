"""Conversion between Python string indices and UTF-16 code unit offsets.

The submissions API counts offsets the way JavaScript strings do (UTF-16
code units), so characters outside the Basic Multilingual Plane (most emoji)
occupy two units on the wire but one index in Python.
"""

from __future__ import annotations


def _units(char: str) -> int:
    return 2 if ord(char) > 0xFFFF else 1


def index_to_utf16(text: str, index: int) -> int:
    """Convert a Python string index into a UTF-16 code unit offset.

    Indices beyond the end of *text* are clamped to its length.
    """
    index = max(0, min(index, len(text)))
    return sum(_units(c) for c in text[:index])


def utf16_to_index(text: str, offset: int) -> int:
    """Convert a UTF-16 code unit offset into a Python string index.

    An offset that falls in the middle of a surrogate pair resolves to the
    character containing it. Out-of-range offsets stay out of range so that
    range validation rejects them: negative offsets are returned unchanged
    and offsets past the end map to ``len(text) + 1``.
    """
    if offset <= 0:
        return offset
    units = 0
    for index, char in enumerate(text):
        units += _units(char)
        if units > offset:
            return index
        if units == offset:
            return index + 1
    return len(text) + 1


def is_bmp_only(text: str) -> bool:
    """True when every character is a single UTF-16 code unit."""
    return all(ord(c) <= 0xFFFF for c in text)
