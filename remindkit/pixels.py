"""Turning raw device-independent bitmap pixel rows into RGBA images.

Bitmap rows are stored bottom to top, so every converter flips the image
vertically. Pixels that the data is too short to hold are left fully
transparent black.
"""

from __future__ import annotations

import struct

from PIL import Image

_DEFAULT_RED_MASK = 0xFF0000
_DEFAULT_GREEN_MASK = 0x00FF00
_DEFAULT_BLUE_MASK = 0x0000FF


def count_trailing_zeros(value: int) -> int:
    """Number of zero bits below the lowest set bit; 0 for a zero value."""
    if value == 0:
        return 0
    return (value & -value).bit_length() - 1


def _check_size(width: int, height: int) -> None:
    if width < 0 or height < 0:
        raise ValueError(f"invalid image size: {width}x{height}")


def _source_rows(pixel_data: bytes, width: int, height: int, stride: int, pixel_size: int):
    """Yield (destination row, complete source pixels of that row), flipped."""
    length = len(pixel_data)
    for y in range(height):
        start = (height - 1 - y) * stride
        if start < 0 or start >= length:
            yield y, b""
            continue
        end = min(start + width * pixel_size, length)
        count = (end - start) // pixel_size
        yield y, pixel_data[start : start + count * pixel_size]


def _to_image(buffer: bytearray, width: int, height: int) -> Image.Image:
    if width == 0 or height == 0:
        return Image.new("RGBA", (width, height))
    return Image.frombytes("RGBA", (width, height), bytes(buffer))


def convert_bgra(pixel_data: bytes, width: int, height: int, stride: int) -> Image.Image:
    """Convert 32-bit BGRA rows to an RGBA image."""
    _check_size(width, height)
    out = bytearray(width * height * 4)
    for y, row in _source_rows(pixel_data, width, height, stride, 4):
        count = len(row) // 4
        if not count:
            continue
        chunk = bytearray(count * 4)
        chunk[0::4] = row[2::4]
        chunk[1::4] = row[1::4]
        chunk[2::4] = row[0::4]
        chunk[3::4] = row[3::4]
        offset = y * width * 4
        out[offset : offset + len(chunk)] = chunk
    return _to_image(out, width, height)


def convert_bgr(pixel_data: bytes, width: int, height: int, stride: int) -> Image.Image:
    """Convert 24-bit BGR rows to an opaque RGBA image."""
    _check_size(width, height)
    out = bytearray(width * height * 4)
    for y, row in _source_rows(pixel_data, width, height, stride, 3):
        count = len(row) // 3
        if not count:
            continue
        chunk = bytearray(count * 4)
        chunk[0::4] = row[2::3]
        chunk[1::4] = row[1::3]
        chunk[2::4] = row[0::3]
        chunk[3::4] = b"\xff" * count
        offset = y * width * 4
        out[offset : offset + len(chunk)] = chunk
    return _to_image(out, width, height)


def convert_palette8(
    pixel_data: bytes, palette: bytes, width: int, height: int, stride: int
) -> Image.Image:
    """Convert 8-bit palette indices to an opaque RGBA image.

    The palette holds 4-byte BGR entries; indices past its end stay transparent.
    """
    _check_size(width, height)
    entries = [
        bytes((palette[i + 2], palette[i + 1], palette[i], 0xFF))
        for i in range(0, len(palette) - 3, 4)
    ]
    out = bytearray(width * height * 4)
    for y, row in _source_rows(pixel_data, width, height, stride, 1):
        offset = y * width * 4
        for x, index in enumerate(row):
            if index < len(entries):
                start = offset + x * 4
                out[start : start + 4] = entries[index]
    return _to_image(out, width, height)


def convert_rgb565(pixel_data: bytes, width: int, height: int, stride: int) -> Image.Image:
    """Convert 16-bit 5-6-5 rows to an opaque RGBA image."""
    _check_size(width, height)
    out = bytearray(width * height * 4)
    for y, row in _source_rows(pixel_data, width, height, stride, 2):
        offset = y * width * 4
        for x, (pixel,) in enumerate(struct.iter_unpack("<H", row)):
            red = (((pixel & 0xF800) >> 11) << 3) & 0xFF
            green = (((pixel & 0x07E0) >> 5) << 2) & 0xFF
            blue = ((pixel & 0x001F) << 3) & 0xFF
            start = offset + x * 4
            out[start : start + 4] = bytes((red, green, blue, 0xFF))
    return _to_image(out, width, height)


def convert_masked(
    pixel_data: bytes,
    width: int,
    height: int,
    stride: int,
    red_mask: int,
    green_mask: int,
    blue_mask: int,
    alpha_mask: int,
) -> Image.Image:
    """Convert 16- or 32-bit rows using per-channel bit masks.

    With no colour masks the usual 0xFF0000/0x00FF00/0x0000FF layout is used.
    Pixels are 32-bit when the red mask is set or the blue mask is wider than
    one byte, and 16-bit otherwise.
    """
    _check_size(width, height)
    if red_mask == 0 and green_mask == 0 and blue_mask == 0:
        red_mask, green_mask, blue_mask = _DEFAULT_RED_MASK, _DEFAULT_GREEN_MASK, _DEFAULT_BLUE_MASK

    wide = red_mask != 0 or blue_mask > 0xFF
    pixel_size, fmt = (4, "<I") if wide else (2, "<H")
    shifts = [
        (mask, count_trailing_zeros(mask)) for mask in (red_mask, green_mask, blue_mask)
    ]
    alpha_shift = count_trailing_zeros(alpha_mask)

    out = bytearray(width * height * 4)
    for y, row in _source_rows(pixel_data, width, height, stride, pixel_size):
        offset = y * width * 4
        for x, (pixel,) in enumerate(struct.iter_unpack(fmt, row)):
            red, green, blue = (((pixel & mask) >> shift) & 0xFF for mask, shift in shifts)
            alpha = ((pixel & alpha_mask) >> alpha_shift) & 0xFF if alpha_mask else 0xFF
            start = offset + x * 4
            out[start : start + 4] = bytes((red, green, blue, alpha))
    return _to_image(out, width, height)