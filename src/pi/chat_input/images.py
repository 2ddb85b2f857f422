"""Image sniffing and the registry behind ``[Image #N]`` placeholders."""

from __future__ import annotations

import struct
from dataclasses import dataclass


@dataclass
class ImageDimensions:
    width_px: int
    height_px: int


@dataclass
class ImageRecord:
    id: int
    data: bytes
    mime_type: str
    source: str
    dimensions: ImageDimensions | None = None


IMAGE_EXTENSIONS: dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def detect_mime_type(data: bytes) -> str | None:
    """Identify an image by its magic bytes."""
    if data[0:4] == b"\x89PNG":
        return "image/png"
    if data[0:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[0:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[0:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def get_png_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 24 or data[0:4] != b"\x89PNG":
        return None
    width = struct.unpack(">I", data[16:20])[0]
    height = struct.unpack(">I", data[20:24])[0]
    return ImageDimensions(width_px=width, height_px=height)


def get_jpeg_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 2 or data[0:2] != b"\xff\xd8":
        return None
    offset = 2
    while offset < len(data) - 9:
        if data[offset] != 0xFF:
            offset += 1
            continue
        marker = data[offset + 1]
        if 0xC0 <= marker <= 0xC2:
            height = struct.unpack(">H", data[offset + 5 : offset + 7])[0]
            width = struct.unpack(">H", data[offset + 7 : offset + 9])[0]
            return ImageDimensions(width_px=width, height_px=height)
        length = struct.unpack(">H", data[offset + 2 : offset + 4])[0]
        if length < 2:
            return None
        offset += 2 + length
    return None


def get_gif_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 10 or data[0:6] not in (b"GIF87a", b"GIF89a"):
        return None
    width = struct.unpack("<H", data[6:8])[0]
    height = struct.unpack("<H", data[8:10])[0]
    return ImageDimensions(width_px=width, height_px=height)


def get_webp_dimensions(data: bytes) -> ImageDimensions | None:
    if len(data) < 30 or data[0:4] != b"RIFF" or data[8:12] != b"WEBP":
        return None
    chunk = data[12:16]
    if chunk == b"VP8 ":
        width = struct.unpack("<H", data[26:28])[0] & 0x3FFF
        height = struct.unpack("<H", data[28:30])[0] & 0x3FFF
        return ImageDimensions(width_px=width, height_px=height)
    if chunk == b"VP8L":
        bits = struct.unpack("<I", data[21:25])[0]
        return ImageDimensions(
            width_px=(bits & 0x3FFF) + 1, height_px=((bits >> 14) & 0x3FFF) + 1
        )
    if chunk == b"VP8X":
        width = (data[24] | (data[25] << 8) | (data[26] << 16)) + 1
        height = (data[27] | (data[28] << 8) | (data[29] << 16)) + 1
        return ImageDimensions(width_px=width, height_px=height)
    return None


def get_image_dimensions(data: bytes, mime_type: str) -> ImageDimensions | None:
    if mime_type == "image/png":
        return get_png_dimensions(data)
    if mime_type == "image/jpeg":
        return get_jpeg_dimensions(data)
    if mime_type == "image/gif":
        return get_gif_dimensions(data)
    if mime_type == "image/webp":
        return get_webp_dimensions(data)
    return None


def format_image_placeholder(image_id: int) -> str:
    return f"[Image #{image_id}]"


class ImageRegistry:
    """Holds imported image bytes keyed by monotonic id."""

    def __init__(self) -> None:
        self._records: dict[int, ImageRecord] = {}
        self._next_id = 1

    def allocate(self, data: bytes, mime_type: str, source: str) -> int:
        image_id = self._next_id
        self._next_id += 1
        self._records[image_id] = ImageRecord(
            id=image_id,
            data=data,
            mime_type=mime_type,
            source=source,
            dimensions=get_image_dimensions(data, mime_type),
        )
        return image_id

    def get(self, image_id: int) -> ImageRecord | None:
        return self._records.get(image_id)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
