"""Decide whether inserted text goes in inline or behind a placeholder."""

from __future__ import annotations

import logging
import re
from typing import Callable, Protocol

from pi.chat_input.buffer import sanitize_for_display
from pi.chat_input.config import PasteSettings
from pi.chat_input.paste_registry import format_placeholder

logger = logging.getLogger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class PasteAllocator(Protocol):
    def allocate(self, full_text: str) -> int: ...


def count_lines(text: str) -> int:
    return len(_LINE_BREAK_RE.findall(text)) + 1


class PasteClassifier:
    """Turns inserted text into the string that actually enters the buffer.

    Text flagged as a paste, or any insertion longer than
    ``manual_paste_min_chars``, is translated (images become placeholders)
    and, when it exceeds the line or character threshold, stored in the
    registry and replaced with ``[Pasted text #<id> +<n> lines]``. Everything
    else is inserted with line breaks shown as a glyph.
    """

    def __init__(
        self,
        registry: PasteAllocator,
        translate: Callable[[str], str] | None = None,
        settings: PasteSettings | None = None,
        newline_glyph: str = "↵",
    ) -> None:
        self._registry = registry
        self._translate = translate
        self.settings = settings or PasteSettings()
        self._glyph = newline_glyph

    def is_candidate(self, text: str, is_paste: bool) -> bool:
        return is_paste or len(text) > self.settings.manual_paste_min_chars

    def is_large(self, text: str, line_count: int) -> bool:
        return len(text) > self.settings.max_chars or line_count > self.settings.max_lines

    def classify(self, text: str, is_paste: bool) -> str:
        if not self.is_candidate(text, is_paste):
            return sanitize_for_display(text, self._glyph)

        try:
            translated = self._translate(text) if self._translate else text
            line_count = count_lines(translated)
            if self.is_large(text, line_count):
                paste_id = self._registry.allocate(translated)
                return format_placeholder(paste_id, line_count)
        except Exception:
            logger.warning(
                "Paste handling failed; inserting %d chars inline", len(text), exc_info=True
            )
            return sanitize_for_display(text, self._glyph)

        return sanitize_for_display(translated, self._glyph)
