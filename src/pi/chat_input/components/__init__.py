"""Chat input components."""

from pi.chat_input.components.model_selector import ModelSelector
from pi.chat_input.components.paste_input import CURSOR_MARKER, PasteAwareInput

__all__ = [
    "CURSOR_MARKER",
    "ModelSelector",
    "PasteAwareInput",
]
