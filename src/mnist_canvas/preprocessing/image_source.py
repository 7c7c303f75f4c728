import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.mnist_canvas.errors import DecodeFailure, InvalidBufferSize

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class IntensityGrid:
    """Single-channel brightness grid (0 = black, 255 = white), row-major, origin top-left."""
    width: int
    height: int
    data: np.ndarray  # uint8, shape (height, width)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {self.width}x{self.height}")
        if self.data.shape != (self.height, self.width):
            raise ValueError(f"Grid data shape {self.data.shape} does not match {self.width}x{self.height}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"Grid data must be uint8, got {self.data.dtype}")

    @classmethod
    def from_array(cls, array) -> "IntensityGrid":
        data = np.ascontiguousarray(array, dtype=np.uint8)
        if data.ndim != 2:
            raise ValueError(f"Expected a 2D array, got shape {data.shape}")
        height, width = data.shape
        return cls(width=width, height=height, data=data)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.data)


def from_image(image: Image.Image) -> IntensityGrid:
    """Convert an opened Pillow image to a luminance grid at its original resolution."""
    try:
        gray = image.convert("L")
    except (OSError, ValueError) as e:
        raise DecodeFailure(f"Could not decode image: {e}") from e
    return IntensityGrid.from_array(np.array(gray, dtype=np.uint8))


def from_file(path) -> IntensityGrid:
    """
    Load an image file and reduce it to luminance.

    Args:
        path: Path of the image on disk.

    Returns:
        IntensityGrid: Grid with the same width and height as the file.
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            img.load()
            grid = from_image(img)
    except FileNotFoundError as e:
        raise DecodeFailure(f"Image not found: {path}") from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise DecodeFailure(f"Could not decode image {path}: {e}") from e

    logger.debug(f"Loaded {path} as {grid.width}x{grid.height} grid")
    return grid


def from_rgba(buffer, width: int, height: int) -> IntensityGrid:
    """
    Convert a captured RGBA canvas buffer to a luminance grid.

    Each channel is premultiplied by alpha before averaging, so transparent
    pixels read as black no matter what color the backing buffer holds.

    Args:
        buffer: Bytes-like object with 4 bytes (R, G, B, A) per pixel.
        width (int): Canvas width in pixels.
        height (int): Canvas height in pixels.

    Returns:
        IntensityGrid: Grid of width x height.
    """
    if width <= 0 or height <= 0:
        raise InvalidBufferSize(width, height, len(buffer))
    if len(buffer) != width * height * 4:
        raise InvalidBufferSize(width, height, len(buffer))

    rgba = np.frombuffer(bytes(buffer), dtype=np.uint8).reshape(height, width, 4).astype(np.float32)
    alpha = rgba[..., 3] / 255.0
    r = rgba[..., 0] * alpha
    g = rgba[..., 1] * alpha
    b = rgba[..., 2] * alpha

    gray = (r + g + b) / 3.0
    gray = np.clip(np.trunc(gray), 0, 255).astype(np.uint8)
    return IntensityGrid(width=width, height=height, data=gray)
