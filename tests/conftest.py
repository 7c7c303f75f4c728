import numpy as np
import pytest
from PIL import Image

from src.mnist_canvas.canvas.drawing_surface import DrawingSurface
from src.mnist_canvas.config import ClassifierConfig
from src.mnist_canvas.preprocessing.image_source import IntensityGrid
from src.mnist_canvas.scripts.classifier import DigitClassifier
from src.mnist_canvas.scripts.engine import InferenceEngine

ZERO_SCORES = [9.0, 1.0, 0.5, 2.0, -1.0, 0.0, 3.0, 1.5, 0.2, 0.1]

class FakeEngine(InferenceEngine):
    """Returns fixed scores and records every tensor it was fed."""

    def __init__(self, scores=ZERO_SCORES, input_name="Input3", output_name="Plus214_Output_0", error=None):
        super().__init__(input_name, output_name)
        self.scores = np.asarray(scores, dtype=np.float32).reshape(1, -1)
        self.error = error
        self.calls = []

    def run(self, named_inputs):
        self.calls.append(named_inputs)
        if self.error is not None:
            raise self.error
        return {self.output_name: self.scores.copy()}

class CountingFactory:
    def __init__(self, engine=None):
        self.engine = engine or FakeEngine()
        self.count = 0

    def __call__(self, config):
        self.count += 1
        return self.engine

def ring_pixels(size=28, thickness=3, ink=0, background=255):
    """A hand-drawn looking "0": dark elliptical ring on a light field."""
    yy, xx = np.mgrid[0:size, 0:size]
    cy, cx = (size - 1) / 2.0, (size - 1) / 2.0
    ry, rx = size * 0.35, size * 0.25
    dist = np.sqrt(((yy - cy) / ry) ** 2 + ((xx - cx) / rx) ** 2)
    band = thickness / (size * 0.3)
    pixels = np.full((size, size), background, dtype=np.uint8)
    pixels[np.abs(dist - 1.0) < band] = ink
    return pixels

@pytest.fixture
def zero_grid():
    return IntensityGrid.from_array(ring_pixels())

@pytest.fixture
def engine():
    return FakeEngine()

@pytest.fixture
def factory(engine):
    return CountingFactory(engine)

@pytest.fixture
def config():
    return ClassifierConfig()

@pytest.fixture
def classifier(config, factory):
    return DigitClassifier(config, engine_factory=factory)

@pytest.fixture
def drawn_surface():
    surface = DrawingSurface(280, 280, brush_width=20)
    points = [(140 + int(70 * np.sin(t)), 140 - int(100 * np.cos(t))) for t in np.linspace(0, 2 * np.pi, 40)]
    surface.begin_stroke(*points[0])
    for point in points[1:]:
        surface.extend_stroke(*point)
    surface.end_stroke()
    return surface

@pytest.fixture
def zero_png(tmp_path):
    path = tmp_path / "zero.png"
    Image.fromarray(ring_pixels(size=56, thickness=6)).convert("RGB").save(path)
    return path

@pytest.fixture
def blank_png(tmp_path):
    path = tmp_path / "blank.png"
    Image.new("RGB", (40, 40), "white").save(path)
    return path
