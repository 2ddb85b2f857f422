"""Word motion and word deletion detected on the raw input stream.

Terminals disagree on how option/meta+arrow and word deletion are encoded,
and the key decoder reduces most of those forms to plain arrows or drops
them. This listener sees each raw sequence first and claims the ones it
recognizes.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, Literal

from pi.chat_input.events import KeyEvent, WordDeleteBack, WordLeft, WordRight

if TYPE_CHECKING:
    from pi.chat_input.input_stream import InputStream

logger = logging.getLogger(__name__)

ESC = "\x1b"

WordDirection = Literal["left", "right"]

# Modifier params 3/4/7/8 are alt combinations; 9 is meta on macOS terminals
_OPTION_LEFT_RE = re.compile(r"^\x1b\[(?:1;)?(?:3|4|7|8|9)D$")
_OPTION_RIGHT_RE = re.compile(r"^\x1b\[(?:1;)?(?:3|4|7|8|9)C$")

_WORD_DELETE_SEQUENCES = frozenset({"\x1b\x7f", "\x1b\x08", "\x17"})

_MAX_SEQUENCE_LENGTH = 32


def detect_word_direction(sequence: str) -> WordDirection | None:
    if not sequence.startswith(ESC):
        return None
    if sequence in ("\x1bb", "\x1bB"):
        return "left"
    if sequence in ("\x1bf", "\x1bF"):
        return "right"
    if _OPTION_LEFT_RE.match(sequence):
        return "left"
    if _OPTION_RIGHT_RE.match(sequence):
        return "right"
    return None


def classify_raw_sequence(sequence: str) -> KeyEvent | None:
    """Map a raw sequence to a word event, or ``None`` if it is not one.

    A chunk holding several escape sequences is split on ESC and the first
    recognized fragment wins.
    """
    if not sequence:
        return None

    if sequence in _WORD_DELETE_SEQUENCES:
        return WordDeleteBack()

    if len(sequence) > _MAX_SEQUENCE_LENGTH or ESC not in sequence:
        return None

    for part in sequence.split(ESC)[1:]:
        direction = detect_word_direction(ESC + part)
        if direction == "left":
            return WordLeft()
        if direction == "right":
            return WordRight()

    return None


class RawSequenceListener:
    """Subscribes to an ``InputStream`` ahead of decoded-key handlers.

    Recognized sequences are handed to *on_event* and consumed, so the
    decoded path never sees them. Everything else passes through untouched.
    """

    def __init__(
        self,
        on_event: Callable[[KeyEvent], None],
        is_active: Callable[[], bool] | None = None,
    ) -> None:
        self._on_event = on_event
        self._is_active = is_active
        self._stream: InputStream | None = None

    @property
    def attached(self) -> bool:
        return self._stream is not None

    def attach(self, stream: InputStream) -> None:
        if self._stream is stream:
            return
        self.detach()
        stream.prepend_raw_listener(self.handle)
        self._stream = stream

    def detach(self) -> None:
        if self._stream is not None:
            self._stream.remove_raw_listener(self.handle)
            self._stream = None

    def handle(self, sequence: str) -> bool:
        if self._is_active is not None and not self._is_active():
            return False
        event = classify_raw_sequence(sequence)
        if event is None:
            return False
        logger.debug("Raw sequence %r -> %s", sequence, type(event).__name__)
        self._on_event(event)
        return True
