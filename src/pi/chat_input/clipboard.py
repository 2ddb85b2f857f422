"""Translate pasted content that carries images into ``[Image #N]`` tokens.

Recognized forms:

* ``data:image/<type>;base64,<payload>`` URLs anywhere in the text
* iTerm2 inline images (``ESC ] 1337 ; File=<args>:<base64> BEL``)
* a paste that is exactly one path to an existing image file, optionally
  quoted, ``file://`` prefixed, or with backslash-escaped spaces

On macOS the clipboard can also be pulled directly via ``osascript``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote

from pi.chat_input.images import (
    IMAGE_EXTENSIONS,
    ImageRegistry,
    detect_mime_type,
    format_image_placeholder,
)

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(
    r"data:(image/(?:png|jpe?g|gif|webp));base64,([A-Za-z0-9+/=]+)"
)
_ITERM2_IMAGE_RE = re.compile(
    r"\x1b\]1337;File=([^:\x07\x1b]*):([A-Za-z0-9+/=\s]+?)(?:\x07|\x1b\\)"
)

_OSASCRIPT_TIMEOUT = 5.0


class ClipboardTranslator(Protocol):
    def translate(self, raw_text: str) -> str: ...

    def try_import_image(self) -> str | None: ...


def _decode_base64(payload: str) -> bytes | None:
    try:
        return base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError):
        return None


def _normalize_path_candidate(text: str) -> str | None:
    candidate = text.strip()
    if not candidate or "\n" in candidate:
        return None
    if len(candidate) >= 2 and candidate[0] == candidate[-1] and candidate[0] in "'\"":
        candidate = candidate[1:-1]
    if candidate.startswith("file://"):
        candidate = unquote(candidate[len("file://") :])
    candidate = candidate.replace("\\ ", " ")
    if candidate.startswith("~"):
        candidate = os.path.expanduser(candidate)
    return candidate


class ImageClipboardTranslator:
    """Default translator storing images in an ``ImageRegistry``."""

    def __init__(self, images: ImageRegistry | None = None) -> None:
        self.images = images if images is not None else ImageRegistry()

    def _register(self, data: bytes, source: str) -> str | None:
        mime_type = detect_mime_type(data)
        if mime_type is None:
            return None
        image_id = self.images.allocate(data, mime_type, source)
        return format_image_placeholder(image_id)

    def translate(self, raw_text: str) -> str:
        """Replace embedded images with placeholders.

        Already-translated text contains no recognizable image forms, so a
        second pass returns it unchanged.
        """
        if not raw_text:
            return raw_text

        def _iterm2(match: re.Match[str]) -> str:
            data = _decode_base64(match.group(2))
            placeholder = self._register(data, "iterm2") if data else None
            return placeholder or ""

        def _data_url(match: re.Match[str]) -> str:
            data = _decode_base64(match.group(2))
            placeholder = self._register(data, "data-url") if data else None
            return placeholder or match.group(0)

        text = _ITERM2_IMAGE_RE.sub(_iterm2, raw_text)
        text = _DATA_URL_RE.sub(_data_url, text)

        path_placeholder = self._translate_path(text)
        if path_placeholder is not None:
            return path_placeholder
        return text

    def _translate_path(self, text: str) -> str | None:
        candidate = _normalize_path_candidate(text)
        if candidate is None:
            return None
        path = Path(candidate)
        if path.suffix.lower() not in IMAGE_EXTENSIONS:
            return None
        try:
            if not path.is_file():
                return None
            data = path.read_bytes()
        except OSError:
            logger.debug("Could not read pasted image path %s", path, exc_info=True)
            return None
        return self._register(data, str(path))

    def try_import_image(self) -> str | None:
        """Pull a PNG from the macOS clipboard, if one is there."""
        if sys.platform != "darwin":
            return None

        fd, tmp_path = tempfile.mkstemp(suffix=".png", prefix="pi-clipboard-")
        os.close(fd)
        try:
            script = [
                "osascript",
                "-e",
                "set png_data to (the clipboard as «class PNGf»)",
                "-e",
                f'set fp to open for access POSIX file "{tmp_path}" with write permission',
                "-e",
                "write png_data to fp",
                "-e",
                "close access fp",
            ]
            result = subprocess.run(
                script, capture_output=True, timeout=_OSASCRIPT_TIMEOUT
            )
            if result.returncode != 0:
                return None
            data = Path(tmp_path).read_bytes()
            if not data:
                return None
            return self._register(data, "clipboard")
        except (OSError, subprocess.SubprocessError):
            logger.debug("Clipboard image import failed", exc_info=True)
            return None
        finally:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
