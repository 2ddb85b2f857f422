"""pi-chat-input: paste-aware terminal line editing."""

# Edit buffer
from pi.chat_input.buffer import NEWLINE_GLYPH, EditBuffer, sanitize_for_display

# Clipboard translation
from pi.chat_input.clipboard import ClipboardTranslator, ImageClipboardTranslator

# Components
from pi.chat_input.components import CURSOR_MARKER, ModelSelector, PasteAwareInput

# Settings
from pi.chat_input.config import InputSettings, PasteSettings, load_input_settings

# Echo reconciliation
from pi.chat_input.echo import EchoReconciler, EchoStatus, Reconciliation

# Decoded key events
from pi.chat_input.events import (
    ArrowLeft,
    ArrowRight,
    Backspace,
    Character,
    Delete,
    Enter,
    Escape,
    Ignored,
    KeyEvent,
    PasteChunk,
    WordDeleteBack,
    WordLeft,
    WordRight,
    decode_event,
)

# Images
from pi.chat_input.images import ImageRecord, ImageRegistry, format_image_placeholder

# Input fan-out
from pi.chat_input.input_stream import InputStream

# Keyboard input handling
from pi.chat_input.keys import KeyFlags, decode_key, parse_key

# Model selection
from pi.chat_input.models import (
    AvailableModelsCache,
    UiModel,
    get_dynamic_models,
    load_proxy_config,
)

# Paste handling
from pi.chat_input.paste import PasteClassifier
from pi.chat_input.paste_registry import PasteRecord, PasteRegistry, format_placeholder

# Raw sequence listener
from pi.chat_input.raw_sequences import (
    RawSequenceListener,
    classify_raw_sequence,
    detect_word_direction,
)

# Input buffering
from pi.chat_input.stdin_buffer import StdinBuffer

# Word navigation
from pi.chat_input.word_nav import next_word_boundary, previous_word_boundary

__all__ = [
    # Buffer
    "NEWLINE_GLYPH",
    "EditBuffer",
    "sanitize_for_display",
    # Clipboard
    "ClipboardTranslator",
    "ImageClipboardTranslator",
    # Components
    "CURSOR_MARKER",
    "ModelSelector",
    "PasteAwareInput",
    # Settings
    "InputSettings",
    "PasteSettings",
    "load_input_settings",
    # Echo
    "EchoReconciler",
    "EchoStatus",
    "Reconciliation",
    # Events
    "ArrowLeft",
    "ArrowRight",
    "Backspace",
    "Character",
    "Delete",
    "Enter",
    "Escape",
    "Ignored",
    "KeyEvent",
    "PasteChunk",
    "WordDeleteBack",
    "WordLeft",
    "WordRight",
    "decode_event",
    # Images
    "ImageRecord",
    "ImageRegistry",
    "format_image_placeholder",
    # Input stream
    "InputStream",
    # Keys
    "KeyFlags",
    "decode_key",
    "parse_key",
    # Models
    "AvailableModelsCache",
    "UiModel",
    "get_dynamic_models",
    "load_proxy_config",
    # Paste
    "PasteClassifier",
    "PasteRecord",
    "PasteRegistry",
    "format_placeholder",
    # Raw sequences
    "RawSequenceListener",
    "classify_raw_sequence",
    "detect_word_direction",
    # Stdin buffer
    "StdinBuffer",
    # Word navigation
    "next_word_boundary",
    "previous_word_boundary",
]
