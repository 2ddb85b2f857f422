"""StdinBuffer buffers input and emits complete sequences.

Stdin data can arrive in partial chunks, especially for escape sequences.
Without buffering, a partial sequence can be misread as regular keypresses.
Runs of plain text are kept together so that an IME commit (which may embed
DEL/BS corrections) reaches the input handler as a single event.
"""

from __future__ import annotations

import asyncio
import re
from typing import Callable

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

# Control characters that always form their own sequence
_STANDALONE_CONTROLS = {chr(c) for c in range(32)} - {"\x08"}

_SGR_MOUSE_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")


def _is_complete_sequence(data: str) -> str:
    """Check if a string is a complete escape sequence or needs more data.

    Returns 'complete', 'incomplete', or 'not-escape'.
    """
    if not data.startswith(ESC):
        return "not-escape"

    if len(data) == 1:
        return "incomplete"

    after_esc = data[1:]

    # CSI sequences: ESC [
    if after_esc.startswith("["):
        if after_esc.startswith("[M"):
            return "complete" if len(data) >= 6 else "incomplete"
        return _is_complete_csi_sequence(data)

    # OSC sequences: ESC ]
    if after_esc.startswith("]"):
        return _is_complete_string_sequence(data, allow_bel=True)

    # DCS (ESC P) and APC (ESC _) sequences
    if after_esc.startswith("P") or after_esc.startswith("_"):
        return _is_complete_string_sequence(data, allow_bel=False)

    # SS3 sequences: ESC O
    if after_esc.startswith("O"):
        return "complete" if len(after_esc) >= 2 else "incomplete"

    # Meta key sequences: ESC followed by a single character
    return "complete"


def _is_complete_csi_sequence(data: str) -> str:
    if len(data) < 3:
        return "incomplete"

    payload = data[2:]
    last_char = payload[-1]

    if 0x40 <= ord(last_char) <= 0x7E:
        if payload.startswith("<"):
            return "complete" if _SGR_MOUSE_RE.match(payload) else "incomplete"
        return "complete"

    return "incomplete"


def _is_complete_string_sequence(data: str, *, allow_bel: bool) -> str:
    if data.endswith(f"{ESC}\\"):
        return "complete"
    if allow_bel and data.endswith("\x07"):
        return "complete"
    return "incomplete"


def _extract_complete_sequences(buffer: str) -> tuple[list[str], str]:
    """Split accumulated buffer into complete sequences.

    Returns (sequences, remainder).
    """
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        remaining = buffer[pos:]

        if remaining.startswith(ESC):
            seq_end = 1
            while seq_end <= len(remaining):
                candidate = remaining[:seq_end]
                if _is_complete_sequence(candidate) == "incomplete":
                    seq_end += 1
                    continue
                sequences.append(candidate)
                pos += seq_end
                break
            else:
                return sequences, remaining
        elif remaining[0] in _STANDALONE_CONTROLS:
            sequences.append(remaining[0])
            pos += 1
        else:
            end = 1
            while (
                end < len(remaining)
                and remaining[end] != ESC
                and remaining[end] not in _STANDALONE_CONTROLS
            ):
                end += 1
            sequences.append(remaining[:end])
            pos += end

    return sequences, ""


class StdinBuffer:
    """Buffers stdin input and emits complete sequences.

    Handles partial escape sequences that arrive across multiple chunks and
    extracts bracketed paste content.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer: str = ""
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._timeout: float = timeout
        self._paste_mode: bool = False
        self._paste_buffer: str = ""

        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        """Set callback for complete sequences."""
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        """Set callback for paste content."""
        self._on_paste = callback

    def _emit_data(self, data: str) -> None:
        if self._on_data:
            self._on_data(data)

    def _emit_paste(self, data: str) -> None:
        if self._on_paste:
            self._on_paste(data)

    def process(self, data: str) -> None:
        """Feed input data into the buffer."""
        self._cancel_timeout()

        if not data and not self._buffer:
            return

        self._buffer += data

        if not self._paste_mode:
            start_index = self._buffer.find(BRACKETED_PASTE_START)
            if start_index == -1:
                self._emit_complete()
                return

            if start_index > 0:
                sequences, _ = _extract_complete_sequences(self._buffer[:start_index])
                for sequence in sequences:
                    self._emit_data(sequence)

            self._buffer = self._buffer[start_index + len(BRACKETED_PASTE_START) :]
            self._paste_mode = True

        self._paste_buffer += self._buffer
        self._buffer = ""

        end_index = self._paste_buffer.find(BRACKETED_PASTE_END)
        if end_index == -1:
            return

        pasted_content = self._paste_buffer[:end_index]
        remaining = self._paste_buffer[end_index + len(BRACKETED_PASTE_END) :]
        self._paste_mode = False
        self._paste_buffer = ""

        self._emit_paste(pasted_content)

        if remaining:
            self.process(remaining)

    def _emit_complete(self) -> None:
        sequences, remainder = _extract_complete_sequences(self._buffer)
        self._buffer = remainder

        for sequence in sequences:
            self._emit_data(sequence)

        if self._buffer:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                # No event loop - flush immediately
                for sequence in self.flush():
                    self._emit_data(sequence)
            else:
                self._timeout_handle = loop.call_later(self._timeout, self._flush_timeout)

    def _cancel_timeout(self) -> None:
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

    def _flush_timeout(self) -> None:
        self._timeout_handle = None
        for sequence in self.flush():
            self._emit_data(sequence)

    def flush(self) -> list[str]:
        self._cancel_timeout()

        if not self._buffer:
            return []

        sequences = [self._buffer]
        self._buffer = ""
        return sequences

    def clear(self) -> None:
        self._cancel_timeout()
        self._buffer = ""
        self._paste_mode = False
        self._paste_buffer = ""

    def get_buffer(self) -> str:
        return self._buffer

    def destroy(self) -> None:
        self.clear()
        self._on_data = None
        self._on_paste = None
