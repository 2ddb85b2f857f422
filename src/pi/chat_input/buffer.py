"""Edit buffer: authoritative single-line text plus cursor offset."""

from __future__ import annotations

import re

NEWLINE_GLYPH = "↵"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")

_BACKSPACE_CODES = (0x08, 0x7F)


def sanitize_for_display(text: str, glyph: str = NEWLINE_GLYPH) -> str:
    """Replace each line break with a single visible glyph."""
    return _LINE_BREAK_RE.sub(glyph, text)


class EditBuffer:
    """Text and cursor, with ``0 <= cursor <= len(text)`` after every call.

    Offsets are code point indices. Out-of-range positions are clamped and
    boundary deletions are no-ops; nothing here raises for bad offsets.
    """

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._text = text
        self._cursor = len(text) if cursor is None else self._clamp(cursor)

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    def __len__(self) -> int:
        return len(self._text)

    def _clamp(self, pos: int) -> int:
        return max(0, min(pos, len(self._text)))

    def move_cursor(self, pos: int) -> int:
        self._cursor = self._clamp(pos)
        return self._cursor

    def insert_at(self, text: str, pos: int) -> None:
        pos = self._clamp(pos)
        self._text = self._text[:pos] + text + self._text[pos:]
        self._cursor = pos + len(text)

    def delete_at(self, pos: int, forward: bool) -> bool:
        """Delete one character before (or, if *forward*, at) *pos*.

        Returns ``False`` when *pos* sits on the relevant boundary.
        """
        pos = self._clamp(pos)
        if forward:
            if pos >= len(self._text):
                return False
            self._text = self._text[:pos] + self._text[pos + 1 :]
            self._cursor = pos
            return True
        if pos == 0:
            return False
        self._text = self._text[: pos - 1] + self._text[pos:]
        self._cursor = pos - 1
        return True

    def delete_range(self, start: int, end: int) -> bool:
        start, end = self._clamp(start), self._clamp(end)
        if start >= end:
            return False
        self._text = self._text[:start] + self._text[end:]
        self._cursor = start
        return True

    def replace(self, text: str, cursor: int | None = None) -> None:
        self._text = text
        self._cursor = len(text) if cursor is None else self._clamp(cursor)

    def apply_composed(self, payload: str, detached_backspace: bool = False) -> bool:
        """Apply a batch of typed characters left to right in one pass.

        A backspace reported separately from the payload is applied first,
        unless the payload already carries its own BS/DEL. Inside the payload
        BS/DEL delete backward, printable code points insert, and other
        control characters are dropped. Returns whether anything was applied.
        """
        text = self._text
        pos = self._cursor
        processed = False

        has_raw_backspace = any(ord(ch) in _BACKSPACE_CODES for ch in payload)
        if detached_backspace and not has_raw_backspace and pos > 0:
            text = text[: pos - 1] + text[pos:]
            pos -= 1
            processed = True

        for ch in payload:
            code = ord(ch)
            if code in _BACKSPACE_CODES:
                if pos > 0:
                    text = text[: pos - 1] + text[pos:]
                    pos -= 1
                processed = True
            elif code >= 32:
                text = text[:pos] + ch + text[pos:]
                pos += 1
                processed = True

        if processed:
            self._text = text
            self._cursor = pos
        return processed
