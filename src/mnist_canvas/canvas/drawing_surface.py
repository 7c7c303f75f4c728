import cv2
import numpy as np

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)

class DrawingSurface:
    """
    RGBA drawing buffer owned by an interactive host.

    Strokes are black, round-capped and anti-aliased on an opaque white
    background, like the browser canvas. Classification reads a snapshot,
    never the live buffer.
    """

    def __init__(self, width: int = 280, height: int = 280, brush_width: int = 20):
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.brush_width = brush_width
        self.pixels = np.empty((height, width, 4), dtype=np.uint8)
        self._last_point = None
        self.clear()

    @property
    def is_drawing(self) -> bool:
        return self._last_point is not None

    def begin_stroke(self, x: int, y: int):
        self._last_point = (int(x), int(y))
        # A click without movement still leaves a dot
        self._draw_segment(self._last_point, self._last_point)

    def extend_stroke(self, x: int, y: int):
        if self._last_point is None:
            return
        point = (int(x), int(y))
        self._draw_segment(self._last_point, point)
        self._last_point = point

    def end_stroke(self):
        self._last_point = None

    def clear(self):
        self.pixels[:] = WHITE
        self._last_point = None

    def snapshot(self) -> bytes:
        """RGBA bytes (width * height * 4) of the surface as it is right now."""
        return self.pixels.tobytes()

    def to_bgr(self) -> np.ndarray:
        return cv2.cvtColor(self.pixels, cv2.COLOR_RGBA2BGR)

    def _draw_segment(self, start, end):
        cv2.line(self.pixels, start, end, BLACK, thickness=self.brush_width, lineType=cv2.LINE_AA)
