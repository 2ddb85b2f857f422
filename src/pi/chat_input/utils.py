"""Terminal text width helpers built on ``grapheme`` and ``wcwidth``."""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# SGR and other CSI sequences, OSC 8 hyperlinks, APC markers
_STRIP_RE = re.compile(
    r"\x1b\[[0-9;]*[mGKHJ]"
    r"|\x1b\]8;;[^\x07]*\x07"
    r"|\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)"
)

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def first_grapheme(text: str) -> str | None:
    """Return the first grapheme cluster of *text*, or ``None`` if empty."""
    for g in grapheme.graphemes(text):
        return g
    return None


def _grapheme_width(g: str) -> int:
    """Terminal display width of a single grapheme cluster."""
    if not g:
        return 0

    if len(g) == 1:
        cp = ord(g)
        if cp < 0x20 or (0x7F <= cp <= 0x9F):
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    for ch in g:
        cp = ord(ch)
        # VS16, ZWJ, skin tone modifiers, regional indicators
        if cp in (0xFE0F, 0x200D) or 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first_cp = ord(g[0])
    if first_cp >= 0x1F000 or 0x2600 <= first_cp <= 0x27BF:
        return 2

    cat = unicodedata.category(g[0])
    if cat.startswith("M") or cat == "Cf":
        return 0

    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Visible terminal width of *text*, ignoring escape sequences."""
    if not text:
        return 0

    stripped = _STRIP_RE.sub("", text)
    if not stripped:
        return 0

    if all(0x20 <= ord(ch) <= 0x7E for ch in stripped):
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    total = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = total
    return total


def truncate_to_width(text: str, max_width: int, ellipsis: str = "...") -> str:
    """Truncate plain *text* to *max_width* columns, appending *ellipsis*.

    Cuts at grapheme boundaries. The ellipsis counts towards the width.
    """
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    target = max_width - visible_width(ellipsis)
    if target <= 0:
        return ellipsis[:max_width]

    result: list[str] = []
    cols = 0
    for g in grapheme.graphemes(text):
        w = _grapheme_width(g)
        if cols + w > target:
            break
        result.append(g)
        cols += w
    return "".join(result) + ellipsis
