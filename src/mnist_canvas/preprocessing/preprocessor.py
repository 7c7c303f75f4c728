import logging

import numpy as np
from PIL import Image

from src.mnist_canvas.errors import EmptyCanvas
from src.mnist_canvas.preprocessing.image_source import IntensityGrid

logger = logging.getLogger(__name__)

INPUT_SIZE = 28
TENSOR_SHAPE = (1, 1, INPUT_SIZE, INPUT_SIZE)
DEFAULT_FALLBACK_THRESHOLD = 50

def resample(grid: IntensityGrid, size: int = INPUT_SIZE) -> np.ndarray:
    """Resize the grid to size x size with a Lanczos3 filter."""
    resized = grid.to_image().resize((size, size), Image.Resampling.LANCZOS)
    return np.array(resized, dtype=np.uint8)

def compute_threshold(pixels: np.ndarray, fallback: int = DEFAULT_FALLBACK_THRESHOLD) -> int:
    """Midpoint between the darkest and brightest pixel, or the fallback for a uniform image."""
    low, high = int(pixels.min()), int(pixels.max())
    if high > low:
        return low + (high - low) // 2
    return fallback

def binarize(pixels: np.ndarray, threshold: int) -> np.ndarray:
    return np.where(pixels > threshold, 255, 0).astype(np.uint8)

class Preprocessor:
    def __init__(self, size: int = INPUT_SIZE, fallback_threshold: int = DEFAULT_FALLBACK_THRESHOLD):
        self.size = size
        self.fallback_threshold = fallback_threshold

    def preprocess(self, grid: IntensityGrid) -> np.ndarray:
        """
        Turn an intensity grid of any size into the network input tensor.

        Args:
            grid (IntensityGrid): Luminance grid from a file or a canvas capture.

        Returns:
            np.ndarray: float32 tensor of shape (1, 1, size, size), 1.0 = ink, 0.0 = background.

        Raises:
            EmptyCanvas: The binarized image holds no stroke.
        """
        resized = resample(grid, self.size)

        threshold = compute_threshold(resized, self.fallback_threshold)
        enhanced = binarize(resized, threshold)

        bright = int(np.count_nonzero(enhanced))
        logger.debug(f"Resampled min={resized.min()} max={resized.max()} "
                     f"threshold={threshold} bright_pixels={bright}/{enhanced.size}")

        # A single binarized level means no stroke survived thresholding
        if bright == 0 or bright == enhanced.size:
            raise EmptyCanvas()

        # Invert: the network was trained on light strokes over a dark field
        normalized = 1.0 - enhanced.astype(np.float32) / 255.0

        tensor = np.zeros((1, 1, self.size, self.size), dtype=np.float32)
        rows, cols = normalized.shape
        tensor[0, 0, :min(rows, self.size), :min(cols, self.size)] = normalized[:self.size, :self.size]
        return tensor

def preprocess(grid: IntensityGrid, fallback_threshold: int = DEFAULT_FALLBACK_THRESHOLD) -> np.ndarray:
    return Preprocessor(fallback_threshold=fallback_threshold).preprocess(grid)
