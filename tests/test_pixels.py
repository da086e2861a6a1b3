import pytest

from remindkit.pixels import (
    convert_bgr,
    convert_bgra,
    convert_masked,
    convert_palette8,
    convert_rgb565,
    count_trailing_zeros,
)


def test_count_trailing_zeros_of_zero():
    assert count_trailing_zeros(0) == 0


@pytest.mark.parametrize("bit", range(32))
def test_count_trailing_zeros_of_powers(bit):
    assert count_trailing_zeros(1 << bit) == bit
    assert count_trailing_zeros((1 << bit) | (1 << 31)) == bit


def test_bgra_swaps_channels_and_flips_rows():
    bottom = bytes([1, 2, 3, 4])
    top = bytes([5, 6, 7, 8])
    image = convert_bgra(bottom + top, 1, 2, 4)
    assert image.mode == "RGBA"
    assert image.size == (1, 2)
    assert image.getpixel((0, 0)) == (7, 6, 5, 8)
    assert image.getpixel((0, 1)) == (3, 2, 1, 4)


def test_bgra_short_data_leaves_transparent_pixels():
    image = convert_bgra(bytes([10, 20, 30, 40]), 2, 1, 8)
    assert image.getpixel((0, 0)) == (30, 20, 10, 40)
    assert image.getpixel((1, 0)) == (0, 0, 0, 0)


def test_bgr_respects_stride_padding():
    bottom = bytes([1, 2, 3, 0])
    top = bytes([4, 5, 6, 0])
    image = convert_bgr(bottom + top, 1, 2, 4)
    assert image.getpixel((0, 0)) == (6, 5, 4, 255)
    assert image.getpixel((0, 1)) == (3, 2, 1, 255)


def test_bgr_missing_row_is_transparent():
    image = convert_bgr(bytes([1, 2, 3, 0]), 1, 2, 4)
    assert image.getpixel((0, 0)) == (0, 0, 0, 0)
    assert image.getpixel((0, 1)) == (3, 2, 1, 255)


def test_palette8_looks_up_bgr_entries():
    palette = bytes([10, 20, 30, 0, 40, 50, 60, 0])
    pixels = bytes([1, 0, 0, 0, 0, 1, 0, 0])
    image = convert_palette8(pixels, palette, 2, 2, 4)
    assert image.getpixel((0, 0)) == (30, 20, 10, 255)
    assert image.getpixel((1, 0)) == (60, 50, 40, 255)
    assert image.getpixel((0, 1)) == (60, 50, 40, 255)
    assert image.getpixel((1, 1)) == (30, 20, 10, 255)


def test_palette8_index_past_palette_is_transparent():
    palette = bytes([10, 20, 30, 0])
    image = convert_palette8(bytes([5, 0, 0, 0]), palette, 1, 1, 4)
    assert image.getpixel((0, 0)) == (0, 0, 0, 0)


def test_rgb565_black_is_opaque():
    image = convert_rgb565(bytes([0, 0, 0, 0]), 1, 1, 4)
    assert image.getpixel((0, 0)) == (0, 0, 0, 255)


def test_rgb565_red_only_sets_red():
    red_pixel = (0xF800).to_bytes(2, "little")
    image = convert_rgb565(red_pixel + b"\x00\x00", 1, 1, 4)
    red, green, blue, alpha = image.getpixel((0, 0))
    assert (green, blue, alpha) == (0, 0, 255)
    assert red > 0


def test_rgb565_channels_are_ordered():
    white = (0xFFFF).to_bytes(2, "little")
    image = convert_rgb565(white + b"\x00\x00", 1, 1, 4)
    red, green, blue, _ = image.getpixel((0, 0))
    assert red == blue
    assert green > red


def test_masked_default_masks_read_bgrx():
    image = convert_masked(bytes([11, 22, 33, 44]), 1, 1, 4, 0, 0, 0, 0)
    assert image.getpixel((0, 0)) == (33, 22, 11, 255)


def test_masked_uses_alpha_mask():
    data = bytes([11, 22, 33, 44])
    image = convert_masked(data, 1, 1, 4, 0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000)
    assert image.getpixel((0, 0)) == (33, 22, 11, 44)


def test_masked_matches_bgra_conversion():
    data = bytes(range(1, 17))
    masked = convert_masked(data, 2, 2, 8, 0x00FF0000, 0x0000FF00, 0x000000FF, 0xFF000000)
    plain = convert_bgra(data, 2, 2, 8)
    assert masked.tobytes() == plain.tobytes()


def test_masked_sixteen_bit_without_red_mask():
    pixel = (0x001F).to_bytes(2, "little")
    image = convert_masked(pixel + b"\x00\x00", 1, 1, 4, 0, 0x07E0, 0x001F, 0)
    assert image.getpixel((0, 0)) == (0, 0, 0x1F, 255)


def test_masked_flips_rows():
    bottom = bytes([1, 2, 3, 0])
    top = bytes([4, 5, 6, 0])
    image = convert_masked(bottom + top, 1, 2, 4, 0, 0, 0, 0)
    assert image.getpixel((0, 0)) == (6, 5, 4, 255)
    assert image.getpixel((0, 1)) == (3, 2, 1, 255)


def test_empty_image_has_zero_size():
    image = convert_bgra(b"", 0, 0, 0)
    assert image.size == (0, 0)


@pytest.mark.parametrize(
    "convert",
    [convert_bgra, convert_bgr, convert_rgb565],
)
def test_negative_size_is_rejected(convert):
    with pytest.raises(ValueError):
        convert(b"", -1, 1, 4)


def test_negative_size_is_rejected_for_palette():
    with pytest.raises(ValueError):
        convert_palette8(b"", b"", 1, -1, 4)