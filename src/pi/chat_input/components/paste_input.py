"""PasteAwareInput - single-line input that keeps large pastes out of the buffer.

Large or multi-line pastes are stored in a ``PasteRegistry`` and shown as
``[Pasted text #<id> +<n> lines]``; images become ``[Image #<id>]``. The
owner keeps the authoritative value and hands it back through
``set_props``; values that are just echoes of our own edits are ignored.
"""

from __future__ import annotations

from typing import Callable

from pi.chat_input.buffer import EditBuffer
from pi.chat_input.clipboard import ClipboardTranslator, ImageClipboardTranslator
from pi.chat_input.config import InputSettings
from pi.chat_input.echo import EchoReconciler
from pi.chat_input.events import (
    ArrowLeft,
    ArrowRight,
    Backspace,
    Character,
    Delete,
    Enter,
    Escape,
    KeyEvent,
    PasteChunk,
    WordDeleteBack,
    WordLeft,
    WordRight,
    decode_event,
)
from pi.chat_input.input_stream import InputStream
from pi.chat_input.keys import KeyFlags
from pi.chat_input.paste import PasteClassifier
from pi.chat_input.paste_registry import PasteRegistry
from pi.chat_input.raw_sequences import RawSequenceListener
from pi.chat_input.utils import first_grapheme, visible_width
from pi.chat_input.word_nav import next_word_boundary, previous_word_boundary

# Zero-width marker telling the renderer where the hardware cursor belongs
CURSOR_MARKER = "\x1b_pi:c\x07"

_UNSET = object()


class PasteAwareInput:
    """Paste-aware single-line text input."""

    def __init__(
        self,
        value: str = "",
        *,
        placeholder: str | None = None,
        focus: bool = True,
        cursor_position: int | None = None,
        paste_registry: PasteRegistry | None = None,
        translator: ClipboardTranslator | None = None,
        settings: InputSettings | None = None,
    ) -> None:
        self._buffer = EditBuffer(value, cursor_position)
        self._echo = EchoReconciler(value)

        self.placeholder = placeholder
        # Focusable interface
        self.focused: bool = focus

        self.on_change: Callable[[str], None] | None = None
        self.on_submit: Callable[[str], None] | None = None
        self.on_cursor_move: Callable[[int], None] | None = None
        self.on_escape: Callable[[], None] | None = None
        self.on_invalidate: Callable[[], None] | None = None

        self.settings = settings or InputSettings()
        self.paste_registry = paste_registry if paste_registry is not None else PasteRegistry()
        self.translator = translator if translator is not None else ImageClipboardTranslator()
        self._classifier = PasteClassifier(
            self.paste_registry,
            translate=self.translator.translate,
            settings=self.settings.paste,
            newline_glyph=self.settings.newline_glyph,
        )

        self._raw_listener = RawSequenceListener(self.handle_event, is_active=lambda: self.focused)
        self._stream: InputStream | None = None
        self._unmounted = False

    # -- state ---------------------------------------------------------------

    def get_value(self) -> str:
        return self._buffer.text

    @property
    def cursor(self) -> int:
        return self._buffer.cursor

    @property
    def last_emitted_value(self) -> str:
        return self._echo.last_emitted_value

    def get_resolved_value(self) -> str:
        """Current value with paste placeholders expanded to full text."""
        return self.paste_registry.resolve_placeholders(self._buffer.text)

    # -- owner props ---------------------------------------------------------

    def set_props(
        self,
        *,
        value: str | object = _UNSET,
        cursor_position: int | None | object = _UNSET,
        placeholder: str | None | object = _UNSET,
        focus: bool | object = _UNSET,
    ) -> None:
        """Apply owner-supplied props.

        *value* goes through echo reconciliation. *cursor_position* is a
        one-shot nudge: it positions the cursor for this update only.
        """
        if placeholder is not _UNSET:
            self.placeholder = placeholder  # type: ignore[assignment]
        if focus is not _UNSET:
            self.focused = bool(focus)

        nudge = cursor_position if isinstance(cursor_position, int) else None

        if isinstance(value, str):
            outcome = self._echo.reconcile(value, nudge)
            if outcome.replace:
                self._buffer.replace(outcome.value, outcome.cursor)
                self.invalidate()
                return

        if nudge is not None:
            self._buffer.move_cursor(nudge)
        self.invalidate()

    def set_value(self, value: str, cursor_position: int | None = None) -> None:
        self.set_props(value=value, cursor_position=cursor_position)

    # -- lifecycle -----------------------------------------------------------

    def mount(self, stream: InputStream) -> None:
        """Start listening to *stream*; raw word sequences are seen first."""
        if self._stream is not None:
            self.unmount()
        self._unmounted = False
        self._stream = stream
        stream.add_input_handler(self.handle_input)
        self._raw_listener.attach(stream)

    def unmount(self) -> None:
        self._raw_listener.detach()
        if self._stream is not None:
            self._stream.remove_input_handler(self.handle_input)
            self._stream = None
        self._unmounted = True

    # -- input ---------------------------------------------------------------

    def handle_input(self, payload: str, key: KeyFlags) -> None:
        if self._unmounted or not self.focused:
            return
        event = decode_event(payload, key, import_image=self.translator.try_import_image)
        self.handle_event(event)

    def handle_event(self, event: KeyEvent) -> None:  # noqa: C901
        if self._unmounted:
            return

        if isinstance(event, PasteChunk):
            self._insert(event.text, event.is_paste)
        elif isinstance(event, Escape):
            if self.on_escape:
                self.on_escape()
        elif isinstance(event, Enter):
            if self.on_submit:
                self.on_submit(self._buffer.text)
        elif isinstance(event, ArrowLeft):
            self._update_cursor(self._buffer.cursor - 1)
        elif isinstance(event, ArrowRight):
            self._update_cursor(self._buffer.cursor + 1)
        elif isinstance(event, Character):
            self._type(event)
        elif isinstance(event, Backspace):
            if self._buffer.delete_at(self._buffer.cursor, forward=False):
                self._commit()
        elif isinstance(event, Delete):
            if self._buffer.delete_at(self._buffer.cursor, forward=True):
                self._commit()
        elif isinstance(event, WordLeft):
            text = self._buffer.text
            self._update_cursor(previous_word_boundary(text, self._buffer.cursor))
        elif isinstance(event, WordRight):
            text = self._buffer.text
            self._update_cursor(next_word_boundary(text, self._buffer.cursor))
        elif isinstance(event, WordDeleteBack):
            pos = self._buffer.cursor
            start = previous_word_boundary(self._buffer.text, pos)
            if start != pos and self._buffer.delete_range(start, pos):
                self._commit()

    def _type(self, event: Character) -> None:
        text = event.text
        has_backspace = "\x08" in text or "\x7f" in text
        if (
            not event.detached_backspace
            and not has_backspace
            and self._classifier.is_candidate(text, is_paste=False)
        ):
            # Unbracketed paste arriving as one burst
            self._insert(text, is_paste=False)
            return
        if self._buffer.apply_composed(text, event.detached_backspace):
            self._commit()

    def _insert(self, text: str, is_paste: bool) -> None:
        insertion = self._classifier.classify(text, is_paste)
        if not insertion:
            return
        self._buffer.insert_at(insertion, self._buffer.cursor)
        self._commit()

    def _commit(self) -> None:
        value = self._buffer.text
        self._echo.record_emitted(value)
        if self.on_change:
            self.on_change(value)
        if self.on_cursor_move:
            self.on_cursor_move(self._buffer.cursor)
        self.invalidate()

    def _update_cursor(self, pos: int) -> None:
        before = self._buffer.cursor
        after = self._buffer.move_cursor(pos)
        if after == before:
            return
        if self.on_cursor_move:
            self.on_cursor_move(after)
        self.invalidate()

    # -- rendering -----------------------------------------------------------

    def invalidate(self) -> None:
        if self.on_invalidate:
            self.on_invalidate()

    def render(self, width: int) -> list[str]:
        text = self._buffer.text
        if not text and self.placeholder:
            return [f"\x1b[2m{self.placeholder}\x1b[22m"]

        cursor = self._buffer.cursor
        at_cursor = first_grapheme(text[cursor:]) or " "
        before = text[:cursor]
        after = text[cursor + len(at_cursor) :] if cursor < len(text) else ""

        marker = CURSOR_MARKER if self.focused else ""
        line = f"{before}{marker}\x1b[7m{at_cursor}\x1b[27m{after}"
        padding = " " * max(0, width - visible_width(line))
        return [line + padding]
