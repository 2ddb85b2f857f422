"""Host-level key decoding for raw terminal sequences.

Turns one complete terminal sequence (as split by ``StdinBuffer``) into a
literal payload plus a ``KeyFlags`` descriptor, the same shape an Ink-style
``useInput`` handler receives. Handles legacy xterm/VT sequences, the kitty
``CSI u`` encoding and ``modifyOtherKeys``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ESC = "\x1b"
DEL = "\x7f"
BS = "\x08"

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
    "super": 8,
}

LOCK_MASK = 64 + 128

CODEPOINTS: dict[str, int] = {
    "escape": 27,
    "tab": 9,
    "enter": 13,
    "space": 32,
    "backspace": 127,
    "kp_enter": 57414,
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[Z": "shift+tab",
}

# xterm modifier parameter (1 + bitmask) -> modifier prefix
_XTERM_MODIFIER_PARAMS: dict[int, str] = {
    2: "shift+",
    3: "alt+",
    4: "shift+alt+",
    5: "ctrl+",
    6: "ctrl+shift+",
    7: "ctrl+alt+",
    8: "ctrl+shift+alt+",
    # macOS terminals report option as meta (9 = meta, 10 = meta+shift)
    9: "alt+",
    10: "shift+alt+",
}

_MODIFIED_CURSOR_RE = re.compile(r"^\x1b\[1;(\d+)([ABCDHF])$")
_MODIFIED_TILDE_RE = re.compile(r"^\x1b\[(\d+);(\d+)~$")

_CURSOR_LETTERS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}

_TILDE_NUMBERS: dict[int, str] = {
    1: "home",
    2: "insert",
    3: "delete",
    4: "end",
    5: "pageUp",
    6: "pageDown",
}

# Kitty functional codepoints for the keys this layer cares about
_KITTY_FUNCTIONAL: dict[int, str] = {
    57414: "enter",
    57417: "left",
    57418: "right",
    57419: "up",
    57420: "down",
}

# ---------------------------------------------------------------------------
# Kitty protocol parsing
# ---------------------------------------------------------------------------


@dataclass
class ParsedKittySequence:
    codepoint: int
    shifted_key: Optional[int]
    base_layout_key: Optional[int]
    modifier: int
    event_type: int  # 1 = press, 2 = repeat, 3 = release


# CSI u format: \x1b[<codepoint>(:<shifted_key>(:<base_layout_key>))?(;<modifier>(:<event_type>))?u
_KITTY_CSI_U_RE = re.compile(
    r"^\x1b\[(\d+)(?::(\d*)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")


def parse_kitty_sequence(data: str) -> ParsedKittySequence | None:
    """Parse a kitty ``CSI u`` sequence, or return ``None``."""
    m = _KITTY_CSI_U_RE.match(data)
    if m is None:
        return None
    return ParsedKittySequence(
        codepoint=int(m.group(1)),
        shifted_key=int(m.group(2)) if m.group(2) else None,
        base_layout_key=int(m.group(3)) if m.group(3) else None,
        modifier=int(m.group(4)) if m.group(4) else 1,
        event_type=int(m.group(5)) if m.group(5) else 1,
    )


def _modifier_prefix(modifier: int) -> str:
    mod = (modifier - 1) & ~LOCK_MASK
    prefix = ""
    if mod & MODIFIERS["ctrl"]:
        prefix += "ctrl+"
    if mod & MODIFIERS["shift"]:
        prefix += "shift+"
    if mod & (MODIFIERS["alt"] | MODIFIERS["super"]):
        prefix += "alt+"
    return prefix


# ---------------------------------------------------------------------------
# parse_key: raw input -> key identifier
# ---------------------------------------------------------------------------


def parse_key(data: str) -> str | None:  # noqa: C901
    """Parse raw terminal input and return a key identifier, or ``None``.

    Identifiers look like ``"a"``, ``"ctrl+a"``, ``"alt+left"``, ``"enter"``.
    """
    if not data:
        return None

    parsed = parse_kitty_sequence(data)
    if parsed is not None:
        if parsed.event_type == 3:
            return None
        prefix = _modifier_prefix(parsed.modifier)
        cp = parsed.codepoint
        for name, code in CODEPOINTS.items():
            if cp == code:
                return prefix + ("enter" if name == "kp_enter" else name)
        functional = _KITTY_FUNCTIONAL.get(cp)
        if functional is not None:
            return prefix + functional
        if cp > 0 and chr(cp).isprintable():
            return prefix + chr(cp).lower()
        return None

    m = _MODIFY_OTHER_KEYS_RE.match(data)
    if m:
        prefix = _modifier_prefix(int(m.group(1)))
        keycode = int(m.group(2))
        if keycode == CODEPOINTS["enter"]:
            return prefix + "enter"
        if keycode == CODEPOINTS["backspace"]:
            return prefix + "backspace"
        if keycode > 0 and chr(keycode).isprintable():
            return prefix + chr(keycode).lower()
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]

    m = _MODIFIED_CURSOR_RE.match(data)
    if m:
        prefix = _XTERM_MODIFIER_PARAMS.get(int(m.group(1)))
        if prefix is None:
            return None
        return prefix + _CURSOR_LETTERS[m.group(2)]

    m = _MODIFIED_TILDE_RE.match(data)
    if m:
        name = _TILDE_NUMBERS.get(int(m.group(1)))
        prefix = _XTERM_MODIFIER_PARAMS.get(int(m.group(2)))
        if name is None or prefix is None:
            return None
        return prefix + name

    # --- Simple single-byte keys ---
    if data == ESC:
        return "escape"
    if data in ("\r", "\n"):
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data in (DEL, BS):
        return "backspace"
    if data == "\x00":
        return "ctrl+space"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == ESC:
        ch = data[1]
        if ch == ESC:
            return "alt+escape"
        if ch in ("\r", "\n"):
            return "alt+enter"
        if ch in (DEL, BS):
            return "alt+backspace"
        if 1 <= ord(ch) <= 26:
            return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
        if ch.isupper():
            return "shift+alt+" + ch.lower()
        if ch.isprintable():
            return "alt+" + ch.lower()

    if len(data) == 1 and data.isprintable():
        return data

    return None


# ---------------------------------------------------------------------------
# KeyFlags: the host key descriptor
# ---------------------------------------------------------------------------


@dataclass
class KeyFlags:
    """Modifier and named-key flags accompanying one input notification."""

    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    escape: bool = False
    return_: bool = False
    tab: bool = False
    left_arrow: bool = False
    right_arrow: bool = False
    up_arrow: bool = False
    down_arrow: bool = False
    backspace: bool = False
    delete: bool = False
    is_pasted: bool = False


_NAMED_FLAGS: dict[str, str] = {
    "escape": "escape",
    "enter": "return_",
    "tab": "tab",
    "left": "left_arrow",
    "right": "right_arrow",
    "up": "up_arrow",
    "down": "down_arrow",
    "backspace": "backspace",
    "delete": "delete",
}


def _is_plain_text(text: str) -> bool:
    return all(ord(ch) >= 32 and ord(ch) != 0x7F for ch in text)


def decode_key(data: str) -> tuple[str, KeyFlags]:
    """Decode one raw sequence into ``(payload, flags)``.

    Named keys produce an empty payload. Modified characters carry the
    character as payload with ``ctrl``/``meta`` set. A text run that begins
    with DEL or BS and continues with printable text is reported as a
    backspace flag plus the remaining text, the form composed-input methods
    use for corrections. Unknown escape sequences produce an empty payload and
    no flags.
    """
    flags = KeyFlags()
    if not data:
        return "", flags

    if len(data) > 1 and data[0] in (DEL, BS) and _is_plain_text(data[1:]):
        flags.backspace = True
        return data[1:], flags

    if not data.startswith(ESC) and len(data) > 1:
        # Text burst (typing speed or IME commit); may embed DEL/BS
        return data, flags

    key_id = parse_key(data)
    if key_id is None:
        return "", flags

    base = key_id
    while len(base) > 1:
        modifier, sep, rest = base.partition("+")
        if not sep or not rest or modifier not in ("ctrl", "shift", "alt"):
            break
        if modifier == "ctrl":
            flags.ctrl = True
        elif modifier == "shift":
            flags.shift = True
        else:
            flags.meta = True
        base = rest

    named = _NAMED_FLAGS.get(base)
    if named is not None:
        setattr(flags, named, True)
        return "", flags

    if base == "space":
        return " ", flags

    if base in ("home", "end", "insert", "pageUp", "pageDown"):
        return "", flags

    if flags.shift and base.isalpha() and not flags.ctrl:
        return base.upper(), flags

    return base, flags
