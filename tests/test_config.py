import logging

import pytest

from src.mnist_canvas.config import ClassifierConfig, setup_logging


def test_defaults_match_bundled_onnx_model():
    config = ClassifierConfig()
    assert config.backend == "onnx"
    assert (config.input_name, config.output_name) == ("Input3", "Plus214_Output_0")
    assert config.fallback_threshold == 50


def test_torch_backend_switches_default_tensor_names():
    config = ClassifierConfig(backend="torch")
    assert (config.input_name, config.output_name) == ("input", "logits")


def test_torch_backend_keeps_explicit_tensor_names():
    config = ClassifierConfig(backend="torch", input_name="x", output_name="y")
    assert (config.input_name, config.output_name) == ("x", "y")


def test_from_env_reads_prefixed_variables():
    environ = {
        "MNIST_MODEL_PATH": "/models/digits.onnx",
        "MNIST_INTRA_OP_THREADS": "2",
        "MNIST_INPUT_NAME": "pixels",
        "UNRELATED": "ignored",
    }

    config = ClassifierConfig.from_env(environ)

    assert config.model_path == "/models/digits.onnx"
    assert config.intra_op_threads == 2
    assert config.input_name == "pixels"


def test_overrides_win_over_environment():
    config = ClassifierConfig.from_env({"MNIST_BACKEND": "onnx"}, backend="torch", model_path=None)

    assert config.backend == "torch"
    assert config.model_path == ClassifierConfig().model_path


def test_invalid_integer_in_environment():
    with pytest.raises(ValueError):
        ClassifierConfig.from_env({"MNIST_FALLBACK_THRESHOLD": "high"})


def test_with_overrides():
    config = ClassifierConfig().with_overrides(canvas_size=140, brush_width=None)
    assert config.canvas_size == 140
    assert config.brush_width == 20


def test_setup_logging_accepts_level_names(monkeypatch):
    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    setup_logging("debug")

    assert captured["level"] == logging.DEBUG
