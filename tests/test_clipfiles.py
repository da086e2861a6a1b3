import io

import pytest
from PIL import Image

from remindkit.clipfiles import is_image_file, parse_file_list, process_image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _png(width, height, color=(10, 20, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_wide_list_with_two_files():
    data = "C:\\a.png\0D:\\b.txt\0\0".encode("utf-16-le")
    assert parse_file_list(data, True) == ["C:\\a.png", "D:\\b.txt"]


def test_wide_list_stops_at_double_null():
    data = "first.png\0\0second.png\0\0".encode("utf-16-le")
    assert parse_file_list(data, True) == ["first.png"]


def test_wide_list_drops_unterminated_name():
    data = "done.png\0partial".encode("utf-16-le")
    assert parse_file_list(data, True) == ["done.png"]


def test_wide_list_handles_non_ascii_names():
    data = "图片.png\0\0".encode("utf-16-le")
    assert parse_file_list(data, True) == ["图片.png"]


def test_narrow_list_returns_only_first_name():
    data = b"one.png\0two.png\0\0"
    assert parse_file_list(data, False) == ["one.png"]


def test_narrow_list_skips_leading_nulls():
    data = b"\0\0name.jpg\0"
    assert parse_file_list(data, False) == ["name.jpg"]


def test_empty_data_gives_no_files():
    assert parse_file_list(b"", True) == []
    assert parse_file_list(b"", False) == []


@pytest.mark.parametrize(
    "path",
    ["a.jpg", "b.JPEG", "c.png", "d.bmp", "e.gif", "f.tiff", "g.tif", "h.webp", "i.ico"],
)
def test_image_extensions_are_recognised(path):
    assert is_image_file(path) is True


@pytest.mark.parametrize("path", ["notes.txt", "data.json", "noext", "archive.png.zip"])
def test_other_files_are_not_images(path):
    assert is_image_file(path) is False


def test_process_image_keeps_small_image_size():
    result = process_image(_png(40, 30))
    assert result.startswith(PNG_SIGNATURE)
    with Image.open(io.BytesIO(result)) as image:
        assert image.size == (40, 30)
        assert image.convert("RGB").getpixel((5, 5)) == (10, 20, 30)


def test_process_image_shrinks_wide_image_to_1024():
    result = process_image(_png(2048, 1024))
    with Image.open(io.BytesIO(result)) as image:
        assert image.size == (1024, 512)


def test_process_image_converts_jpeg_to_png():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 8), (200, 0, 0)).save(buffer, format="JPEG")
    result = process_image(buffer.getvalue())
    assert result.startswith(PNG_SIGNATURE)
    with Image.open(io.BytesIO(result)) as image:
        assert image.size == (16, 8)


def test_process_image_rejects_garbage():
    with pytest.raises(ValueError):
        process_image(b"not an image at all")