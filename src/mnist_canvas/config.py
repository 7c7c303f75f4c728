import os
import logging
from dataclasses import dataclass, fields, replace
from typing import Optional

LOG_FORMAT = '%(asctime)-15s %(name)-5s %(levelname)-8s %(message)s'

# Tensor names of the bundled ONNX MNIST model (mnist-12.onnx)
ONNX_INPUT_NAME = "Input3"
ONNX_OUTPUT_NAME = "Plus214_Output_0"

# Names the torch backend exposes for DigitCNN checkpoints
TORCH_INPUT_NAME = "input"
TORCH_OUTPUT_NAME = "logits"

ENV_PREFIX = "MNIST_"


@dataclass(frozen=True)
class ClassifierConfig:
    model_path: str = "assets/mnist-12.onnx"
    backend: str = "onnx"
    input_name: str = ONNX_INPUT_NAME
    output_name: str = ONNX_OUTPUT_NAME
    intra_op_threads: int = 4
    graph_optimization: str = "all"
    fallback_threshold: int = 50
    canvas_size: int = 280
    brush_width: int = 20
    image_path: str = "assets/2.png"
    device: Optional[str] = None
    log_level: str = "INFO"

    def __post_init__(self):
        # Torch checkpoints don't carry ONNX graph names, fall back to ours
        if self.backend == "torch":
            if self.input_name == ONNX_INPUT_NAME:
                object.__setattr__(self, "input_name", TORCH_INPUT_NAME)
            if self.output_name == ONNX_OUTPUT_NAME:
                object.__setattr__(self, "output_name", TORCH_OUTPUT_NAME)

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "ClassifierConfig":
        """
        Build a config from MNIST_* environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ).
            **overrides: Explicit values that win over the environment. None values are ignored.

        Returns:
            ClassifierConfig: The resolved configuration.
        """
        environ = os.environ if environ is None else environ
        values = {}
        for field in fields(cls):
            raw = environ.get(ENV_PREFIX + field.name.upper())
            if raw is None:
                continue
            if field.type in (int, "int"):
                try:
                    values[field.name] = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX + field.name.upper()} must be an integer, got {raw!r}")
            else:
                values[field.name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> "ClassifierConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def setup_logging(level="INFO", filename=None):
    """Configure the root logger once for an entry point."""
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, filename=filename)
