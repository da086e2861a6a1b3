"""File lists dropped on the clipboard and preparing clipboard images."""

from __future__ import annotations

import io
import os
import struct

from PIL import Image, UnidentifiedImageError

_IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff", ".tif", ".webp", ".ico"}
)
_MAX_SIDE = 1024
_PNG_MODES = frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"})
_REPLACEMENT = "\ufffd"


def _utf16_units(data: bytes):
    """Yield (byte offset, code unit) for each complete little-endian unit."""
    usable = len(data) - len(data) % 2
    for index, (unit,) in enumerate(struct.iter_unpack("<H", data[:usable])):
        yield index * 2, unit


def _parse_wide(data: bytes) -> list[str]:
    files: list[str] = []
    current: list[str] = []
    for offset, unit in _utf16_units(data):
        if unit != 0:
            # Each code unit stands alone; lone surrogates cannot be kept.
            current.append(_REPLACEMENT if 0xD800 <= unit <= 0xDFFF else chr(unit))
            continue
        if current:
            files.append("".join(current))
            current = []
        following = data[offset + 2 : offset + 4]
        if len(following) == 2 and following == b"\x00\x00":
            break
    return files


def _parse_narrow(data: bytes) -> list[str]:
    files: list[str] = []
    current = bytearray()
    for byte in data:
        if byte != 0:
            current.append(byte)
            continue
        if current:
            files.append(current.decode("utf-8", errors="replace"))
            current = bytearray()
        if files:
            break
    return files


def parse_file_list(data: bytes, wide: bool) -> list[str]:
    """Split the null-separated file names of a dropped-files list.

    Wide lists hold UTF-16LE names ended by a double null; narrow lists yield
    only their first name. A name with no terminating null is dropped.
    """
    data = bytes(data)
    return _parse_wide(data) if wide else _parse_narrow(data)


def is_image_file(path: str) -> bool:
    """Whether the path has an image file extension."""
    return os.path.splitext(path)[1].lower() in _IMAGE_EXTENSIONS


def process_image(image_data: bytes) -> bytes:
    """Decode an image, shrink it to 1024 pixels wide if it is too large, and return PNG bytes.

    An image is too large when either side exceeds 1024 pixels; it is then
    scaled to a width of 1024 keeping its aspect ratio.
    """
    try:
        with Image.open(io.BytesIO(bytes(image_data))) as opened:
            image = opened.copy()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise ValueError(f"failed to decode image: {exc}") from exc

    width, height = image.size
    if width > _MAX_SIDE or height > _MAX_SIDE:
        new_height = max(1, int(_MAX_SIDE * height / width + 0.5))
        image = image.resize((_MAX_SIDE, new_height), Image.LANCZOS)

    if image.mode not in _PNG_MODES:
        image = image.convert("RGBA")

    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise ValueError(f"failed to encode image as PNG: {exc}") from exc
    return buffer.getvalue()