"""Fan-out of terminal input to raw listeners and decoded key handlers."""

from __future__ import annotations

import logging
from typing import Callable

from pi.chat_input.keys import KeyFlags, decode_key
from pi.chat_input.stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

RawListener = Callable[[str], bool]
InputHandler = Callable[[str, KeyFlags], None]


class InputStream:
    """Splits raw chunks into sequences and dispatches them.

    Each sequence goes to raw listeners first, in order; a listener that
    returns ``True`` consumes it. Unconsumed sequences are decoded with
    ``decode_key`` and passed to every input handler. Bracketed paste content
    bypasses raw listeners and arrives with ``is_pasted`` set.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._buffer = StdinBuffer(timeout=timeout)
        self._buffer.on_data(self._dispatch_sequence)
        self._buffer.on_paste(self._dispatch_paste)
        self._raw_listeners: list[RawListener] = []
        self._handlers: list[InputHandler] = []
        self._closed = False

    def prepend_raw_listener(self, listener: RawListener) -> None:
        self._raw_listeners.insert(0, listener)

    def add_raw_listener(self, listener: RawListener) -> None:
        self._raw_listeners.append(listener)

    def remove_raw_listener(self, listener: RawListener) -> None:
        if listener in self._raw_listeners:
            self._raw_listeners.remove(listener)

    def add_input_handler(self, handler: InputHandler) -> None:
        self._handlers.append(handler)

    def remove_input_handler(self, handler: InputHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def listener_count(self) -> int:
        return len(self._raw_listeners) + len(self._handlers)

    def feed(self, data: str) -> None:
        """Feed a raw chunk as read from the terminal."""
        if self._closed:
            return
        self._buffer.process(data)

    def flush(self) -> None:
        """Emit any buffered partial sequence (e.g. a lone ESC) now."""
        for sequence in self._buffer.flush():
            self._dispatch_sequence(sequence)

    def _dispatch_sequence(self, sequence: str) -> None:
        for listener in list(self._raw_listeners):
            if listener(sequence):
                return
        payload, flags = decode_key(sequence)
        if not payload and flags == KeyFlags():
            logger.debug("Dropping unrecognized sequence %r", sequence)
            return
        for handler in list(self._handlers):
            handler(payload, flags)

    def _dispatch_paste(self, content: str) -> None:
        flags = KeyFlags(is_pasted=True)
        for handler in list(self._handlers):
            handler(content, flags)

    def close(self) -> None:
        self._closed = True
        self._buffer.destroy()
        self._raw_listeners.clear()
        self._handlers.clear()
