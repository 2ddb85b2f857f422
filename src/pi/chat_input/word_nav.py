"""Word boundary helpers for option/meta word navigation."""

from __future__ import annotations


def previous_word_boundary(text: str, pos: int) -> int:
    """Return the offset of the start of the word before *pos*."""
    if pos <= 0:
        return 0

    i = min(pos, len(text)) - 1

    while i > 0 and text[i].isspace():
        i -= 1

    while i > 0 and not text[i].isspace():
        i -= 1

    if i > 0 and text[i].isspace():
        i += 1

    return max(0, i)


def next_word_boundary(text: str, pos: int) -> int:
    """Return the offset just past the word (and trailing spaces) at *pos*."""
    if pos >= len(text):
        return len(text)

    i = max(pos, 0)

    while i < len(text) and not text[i].isspace():
        i += 1

    while i < len(text) and text[i].isspace():
        i += 1

    return i
