from .engine import InferenceEngine, OnnxEngine, TorchEngine, load_engine
from .classifier import DigitClassifier, ModelState, Prediction
from .result_extractor import extract, softmax_confidence

__all__ = [
    'DigitClassifier',
    'ModelState',
    'Prediction',
    'InferenceEngine',
    'OnnxEngine',
    'TorchEngine',
    'load_engine',
    'extract',
    'softmax_confidence'
]
