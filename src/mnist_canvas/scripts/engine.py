import logging
import pickle
from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np
import onnxruntime as ort
import torch

from src.mnist_canvas.config import ClassifierConfig
from src.mnist_canvas.errors import InferenceFailure, ModelLoadFailure
from src.mnist_canvas.models.cnn import DigitCNN

logger = logging.getLogger(__name__)

GRAPH_OPTIMIZATION_LEVELS = {
    "disable": ort.GraphOptimizationLevel.ORT_DISABLE_ALL,
    "basic": ort.GraphOptimizationLevel.ORT_ENABLE_BASIC,
    "extended": ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED,
    "all": ort.GraphOptimizationLevel.ORT_ENABLE_ALL,
}

class InferenceEngine(ABC):
    """Opaque model handle: named float32 tensors in, named score tensors out."""

    def __init__(self, input_name: str, output_name: str):
        self.input_name = input_name
        self.output_name = output_name

    @abstractmethod
    def run(self, named_inputs: dict) -> dict:
        pass

class OnnxEngine(InferenceEngine):
    def __init__(self, model, input_name: str, output_name: str,
                 intra_op_threads: int = 4, graph_optimization: str = "all"):
        """
        Args:
            model: Path to an .onnx file or the raw model bytes.
            input_name (str): Name of the graph input fed with the image tensor.
            output_name (str): Name of the graph output holding the class scores.
            intra_op_threads (int): Threads used inside a single operator.
            graph_optimization (str): One of disable, basic, extended, all.
        """
        super().__init__(input_name, output_name)

        if graph_optimization not in GRAPH_OPTIMIZATION_LEVELS:
            raise ModelLoadFailure(f"Unknown graph optimization level: {graph_optimization}")

        options = ort.SessionOptions()
        options.graph_optimization_level = GRAPH_OPTIMIZATION_LEVELS[graph_optimization]
        options.intra_op_num_threads = intra_op_threads

        if isinstance(model, (str, Path)):
            if not Path(model).is_file():
                raise ModelLoadFailure(f"Model file not found: {model}")
            model = str(model)

        try:
            self.session = ort.InferenceSession(model, sess_options=options,
                                                providers=["CPUExecutionProvider"])
        except Exception as e:
            raise ModelLoadFailure(f"Failed to load ONNX model: {e}") from e

        inputs = [i.name for i in self.session.get_inputs()]
        outputs = [o.name for o in self.session.get_outputs()]
        if input_name not in inputs:
            raise ModelLoadFailure(f"Model has no input named {input_name!r} (available: {inputs})")
        if output_name not in outputs:
            raise ModelLoadFailure(f"Model has no output named {output_name!r} (available: {outputs})")

    def run(self, named_inputs: dict) -> dict:
        feed = {name: np.asarray(value, dtype=np.float32) for name, value in named_inputs.items()}
        try:
            results = self.session.run([self.output_name], feed)
        except Exception as e:
            raise InferenceFailure(f"Inference failed: {e}") from e
        return {self.output_name: results[0]}

class TorchEngine(InferenceEngine):
    def __init__(self, checkpoint_path, input_name: str, output_name: str, device=None):
        super().__init__(input_name, output_name)
        self.device = device or ('cuda' if torch.cuda.is_available() else 'cpu')

        self.model = DigitCNN()
        self.load_model(checkpoint_path)

    def load_model(self, checkpoint_path):
        if not Path(checkpoint_path).is_file():
            raise ModelLoadFailure(f"Checkpoint not found: {checkpoint_path}")
        try:
            state = torch.load(checkpoint_path, weights_only=True, map_location=self.device)
            # Training checkpoints wrap the weights next to optimizer state
            if isinstance(state, dict) and "model_state" in state:
                state = state["model_state"]
            self.model.load_state_dict(state)
        except (OSError, RuntimeError, KeyError, ValueError, EOFError, pickle.UnpicklingError) as e:
            raise ModelLoadFailure(f"Failed to load checkpoint {checkpoint_path}: {e}") from e

        self.model.to(self.device)
        self.model.eval()

    def run(self, named_inputs: dict) -> dict:
        if self.input_name not in named_inputs:
            raise InferenceFailure(f"Missing input tensor {self.input_name!r}")

        input_tensor = torch.from_numpy(np.asarray(named_inputs[self.input_name], dtype=np.float32))
        try:
            with torch.no_grad():
                logits = self.model(input_tensor.to(self.device))
        except RuntimeError as e:
            raise InferenceFailure(f"Inference failed: {e}") from e
        return {self.output_name: logits.cpu().numpy()}

def load_engine(config: ClassifierConfig) -> InferenceEngine:
    """Build the inference engine selected by config.backend."""
    logger.info(f"Loading {config.backend} model from {config.model_path}")
    if config.backend == "onnx":
        return OnnxEngine(
            config.model_path,
            input_name=config.input_name,
            output_name=config.output_name,
            intra_op_threads=config.intra_op_threads,
            graph_optimization=config.graph_optimization,
        )
    if config.backend == "torch":
        return TorchEngine(
            config.model_path,
            input_name=config.input_name,
            output_name=config.output_name,
            device=config.device,
        )
    raise ModelLoadFailure(f"Unknown backend: {config.backend!r} (expected 'onnx' or 'torch')")
