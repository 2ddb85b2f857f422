"""Semantic key events and the decoder that produces them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Union

from pi.chat_input.keys import KeyFlags

logger = logging.getLogger(__name__)

REFRESH_SHORTCUT = "r"


@dataclass(frozen=True)
class Character:
    text: str
    # Host reported a backspace key alongside the text (composed-input correction)
    detached_backspace: bool = False


@dataclass(frozen=True)
class Backspace:
    pass


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class ArrowLeft:
    pass


@dataclass(frozen=True)
class ArrowRight:
    pass


@dataclass(frozen=True)
class Enter:
    pass


@dataclass(frozen=True)
class Escape:
    pass


@dataclass(frozen=True)
class WordLeft:
    pass


@dataclass(frozen=True)
class WordRight:
    pass


@dataclass(frozen=True)
class WordDeleteBack:
    pass


@dataclass(frozen=True)
class PasteChunk:
    text: str
    is_paste: bool = True


@dataclass(frozen=True)
class Ignored:
    pass


KeyEvent = Union[
    Character,
    Backspace,
    Delete,
    ArrowLeft,
    ArrowRight,
    Enter,
    Escape,
    WordLeft,
    WordRight,
    WordDeleteBack,
    PasteChunk,
    Ignored,
]


def _is_paste_shortcut(payload: str, key: KeyFlags) -> bool:
    if payload not in ("v", "V"):
        return False
    return key.meta or (key.ctrl and key.shift)


def decode_event(
    payload: str,
    key: KeyFlags,
    *,
    import_image: Callable[[], str | None] | None = None,
) -> KeyEvent:
    """Classify one input notification into exactly one ``KeyEvent``.

    Rules apply in priority order; Escape and the refresh shortcut come
    before anything an owner might gate behind a loading flag.
    """
    if key.is_pasted:
        if payload:
            return PasteChunk(payload, is_paste=True)
        # Some terminals send an empty bracketed paste for image-only clipboards
        image = _try_import(import_image)
        if image:
            return PasteChunk(image, is_paste=True)
        return Ignored()

    if key.escape:
        return Escape()

    if payload == REFRESH_SHORTCUT and not (key.ctrl or key.meta):
        return Character(payload)

    if _is_paste_shortcut(payload, key):
        image = _try_import(import_image)
        if image:
            return PasteChunk(image, is_paste=True)

    if key.return_:
        return Enter()
    if key.left_arrow:
        return ArrowLeft()
    if key.right_arrow:
        return ArrowRight()

    # kitty / modifyOtherKeys encodings of the word keys reach us decoded
    word_event = _modified_word_event(payload, key)
    if word_event is not None:
        return word_event

    if key.ctrl or key.meta:
        return Ignored()

    if payload:
        return Character(payload, detached_backspace=key.backspace)

    if key.backspace:
        return Backspace()
    if key.delete:
        return Delete()

    return Ignored()


def _modified_word_event(payload: str, key: KeyFlags) -> KeyEvent | None:
    if key.ctrl and not key.meta and payload == "w":
        return WordDeleteBack()
    if not key.meta or key.ctrl:
        return None
    if key.backspace and not payload:
        return WordDeleteBack()
    if payload.lower() == "b":
        return WordLeft()
    if payload.lower() == "f":
        return WordRight()
    return None


def _try_import(import_image: Callable[[], str | None] | None) -> str | None:
    if import_image is None:
        return None
    try:
        return import_image()
    except Exception:
        logger.warning("Clipboard image import failed", exc_info=True)
        return None
