import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from src.mnist_canvas.config import ClassifierConfig
from src.mnist_canvas.errors import InferenceFailure
from src.mnist_canvas.preprocessing import image_source
from src.mnist_canvas.preprocessing.image_source import IntensityGrid
from src.mnist_canvas.preprocessing.preprocessor import Preprocessor
from src.mnist_canvas.scripts.engine import InferenceEngine, load_engine
from src.mnist_canvas.scripts.result_extractor import extract, softmax_confidence

logger = logging.getLogger(__name__)

class ModelState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"

@dataclass(frozen=True)
class Prediction:
    digit: int
    confidence: float
    scores: np.ndarray

class DigitClassifier:
    """
    Preprocessor -> inference engine -> argmax over the class scores.

    The engine is built on the first classification and reused afterwards.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None,
                 engine_factory: Optional[Callable[[ClassifierConfig], InferenceEngine]] = None,
                 preprocessor: Optional[Preprocessor] = None):
        self.config = config or ClassifierConfig()
        self.engine_factory = engine_factory or load_engine
        self.preprocessor = preprocessor or Preprocessor(fallback_threshold=self.config.fallback_threshold)

        self._engine: Optional[InferenceEngine] = None
        self._state = ModelState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def state(self) -> ModelState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is ModelState.READY

    def load(self) -> InferenceEngine:
        """Build the engine once. A failed load leaves the classifier uninitialized."""
        engine = self._engine
        if engine is not None:
            return engine

        with self._lock:
            if self._engine is None:
                self._engine = self.engine_factory(self.config)
                self._state = ModelState.READY
                logger.info("Model ready")
            return self._engine

    def close(self):
        with self._lock:
            self._engine = None
            self._state = ModelState.UNINITIALIZED

    def scores(self, grid: IntensityGrid) -> np.ndarray:
        engine = self.load()
        tensor = self.preprocessor.preprocess(grid)

        try:
            outputs = engine.run({engine.input_name: tensor})
        except InferenceFailure:
            raise
        except Exception as e:
            raise InferenceFailure(f"Inference failed: {e}") from e

        if engine.output_name not in outputs:
            raise InferenceFailure(f"Engine returned no output named {engine.output_name!r}")
        return np.asarray(outputs[engine.output_name], dtype=np.float32).reshape(-1)

    def classify(self, grid: IntensityGrid) -> int:
        digit = extract(self.scores(grid))
        logger.debug(f"Classified {grid.width}x{grid.height} grid as {digit}")
        return digit

    def predict(self, grid: IntensityGrid) -> Prediction:
        scores = self.scores(grid)
        digit = extract(scores)
        return Prediction(digit=digit, confidence=softmax_confidence(scores, digit), scores=scores)

    def classify_file(self, path) -> int:
        return self.classify(image_source.from_file(path))

    def classify_rgba(self, buffer, width: int, height: int) -> int:
        return self.classify(image_source.from_rgba(buffer, width, height))
