import numpy as np

from src.mnist_canvas.errors import InferenceFailure

def _flatten(scores) -> np.ndarray:
    return np.asarray(scores, dtype=np.float32).reshape(-1)

def extract(scores) -> int:
    """Index of the highest score. On ties the first (lowest) index wins."""
    values = _flatten(scores)
    if values.size == 0:
        raise InferenceFailure("Engine returned an empty score vector")

    max_index = 0
    max_value = values[0]
    for i in range(1, values.size):
        if values[i] > max_value:
            max_value = values[i]
            max_index = i
    return max_index

def softmax_confidence(scores, index: int) -> float:
    values = _flatten(scores).astype(np.float64)
    exp = np.exp(values - values.max())
    return float(exp[index] / exp.sum())
