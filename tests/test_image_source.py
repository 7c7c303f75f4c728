import numpy as np
import pytest
from PIL import Image

from src.mnist_canvas.errors import DecodeFailure, InvalidBufferSize
from src.mnist_canvas.preprocessing import image_source
from src.mnist_canvas.preprocessing.image_source import IntensityGrid


def rgba(width, height, color):
    return bytes(color) * (width * height)


def test_rgba_buffer_one_byte_short_is_rejected():
    buffer = bytes(3 * 2 * 4 - 1)
    with pytest.raises(InvalidBufferSize) as excinfo:
        image_source.from_rgba(buffer, 3, 2)
    assert excinfo.value.expected == 24
    assert excinfo.value.actual == 23


def test_rgba_buffer_too_long_is_rejected():
    with pytest.raises(InvalidBufferSize):
        image_source.from_rgba(bytes(3 * 2 * 4 + 4), 3, 2)


@pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 4)])
def test_rgba_non_positive_dimensions_are_rejected(width, height):
    with pytest.raises(InvalidBufferSize):
        image_source.from_rgba(b"", width, height)


def test_fully_transparent_buffer_reads_as_black():
    rng = np.random.default_rng(0)
    pixels = rng.integers(0, 256, size=(4, 5, 4), dtype=np.uint8)
    pixels[..., 3] = 0

    grid = image_source.from_rgba(pixels.tobytes(), 5, 4)

    assert (grid.width, grid.height) == (5, 4)
    assert not grid.data.any()


def test_opaque_white_reads_as_white():
    grid = image_source.from_rgba(rgba(6, 3, (255, 255, 255, 255)), 6, 3)
    assert (grid.data == 255).all()


def test_opaque_color_is_averaged():
    grid = image_source.from_rgba(rgba(2, 2, (200, 100, 0, 255)), 2, 2)
    assert (grid.data == 100).all()


def test_rgba_keeps_row_major_layout():
    pixels = np.zeros((2, 3, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[1, 2, :3] = 255  # bottom-right pixel white

    grid = image_source.from_rgba(pixels.tobytes(), 3, 2)

    assert grid.data[1, 2] == 255
    assert grid.data.sum() == 255


def test_rgba_accepts_bytearray():
    grid = image_source.from_rgba(bytearray(rgba(2, 2, (0, 0, 0, 255))), 2, 2)
    assert grid.data.shape == (2, 2)


def test_from_file_keeps_resolution(tmp_path):
    path = tmp_path / "wide.png"
    Image.new("RGB", (50, 20), (255, 255, 255)).save(path)

    grid = image_source.from_file(path)

    assert (grid.width, grid.height) == (50, 20)
    assert (grid.data == 255).all()


def test_from_file_uses_luma(tmp_path):
    path = tmp_path / "red.png"
    Image.new("RGB", (4, 4), (255, 0, 0)).save(path)

    grid = image_source.from_file(path)

    # ITU-R 601-2: L = R * 299/1000 + G * 587/1000 + B * 114/1000
    assert int(grid.data[0, 0]) == 76


def test_missing_file_is_a_decode_failure(tmp_path):
    with pytest.raises(DecodeFailure):
        image_source.from_file(tmp_path / "missing.png")


def test_garbage_file_is_a_decode_failure(tmp_path):
    path = tmp_path / "not_an_image.png"
    path.write_bytes(b"definitely not a png")
    with pytest.raises(DecodeFailure):
        image_source.from_file(path)


def test_grid_rejects_mismatched_data():
    with pytest.raises(ValueError):
        IntensityGrid(width=3, height=3, data=np.zeros((2, 3), dtype=np.uint8))


def test_grid_from_array_requires_2d():
    with pytest.raises(ValueError):
        IntensityGrid.from_array(np.zeros((2, 2, 3)))


def test_oversized_file_is_a_decode_failure(tmp_path, monkeypatch):
    path = tmp_path / "huge.png"
    Image.new("L", (40, 40), 255).save(path)
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(DecodeFailure):
        image_source.from_file(path)
