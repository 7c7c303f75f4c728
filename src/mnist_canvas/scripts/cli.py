import sys
import argparse
import logging

import matplotlib.pyplot as plt

from src.mnist_canvas.config import ClassifierConfig, setup_logging
from src.mnist_canvas.errors import (DecodeFailure, DigitClassifierError, EmptyCanvas,
                                     InferenceFailure, InvalidBufferSize, ModelLoadFailure)
from src.mnist_canvas.preprocessing import image_source
from src.mnist_canvas.scripts.classifier import DigitClassifier

# Render to files only, no display windows
plt.switch_backend('Agg')

logger = logging.getLogger(__name__)

EXIT_CODES = {
    DecodeFailure: 3,
    EmptyCanvas: 4,
    ModelLoadFailure: 5,
    InferenceFailure: 6,
    InvalidBufferSize: 7,
}

def exit_code_for(error: DigitClassifierError) -> int:
    for error_type, code in EXIT_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1

def save_debug_image(tensor, filepath, title="Preprocessed"):
    """Save the 28x28 network input as a grayscale PNG."""
    fig, ax = plt.subplots()
    ax.imshow(tensor.reshape(tensor.shape[-2], tensor.shape[-1]), cmap='gray', vmin=0.0, vmax=1.0)
    ax.set_title(title)
    ax.axis('off')
    fig.savefig(filepath)
    plt.close(fig)
    logger.info(f"Preprocessed image saved to {filepath}")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify a handwritten digit image (0-9)")
    parser.add_argument("paths", nargs="*", help="Image files to classify (default: configured image path)")
    parser.add_argument("--model", dest="model_path", help="Model artifact (.onnx file or DigitCNN checkpoint)")
    parser.add_argument("--backend", choices=["onnx", "torch"], help="Inference backend")
    parser.add_argument("--input-name", help="Name of the model input tensor")
    parser.add_argument("--output-name", help="Name of the model output tensor")
    parser.add_argument("--debug-image", help="Save the preprocessed 28x28 input of the first image here")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser

def main(argv=None, classifier: DigitClassifier = None) -> int:
    args = build_parser().parse_args(argv)

    config = ClassifierConfig.from_env(
        model_path=args.model_path,
        backend=args.backend,
        input_name=args.input_name,
        output_name=args.output_name,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)

    classifier = classifier or DigitClassifier(config)
    paths = args.paths or [config.image_path]

    try:
        for i, path in enumerate(paths):
            grid = image_source.from_file(path)
            if args.debug_image and i == 0:
                save_debug_image(classifier.preprocessor.preprocess(grid), args.debug_image, title=str(path))

            digit = classifier.classify(grid)
            if len(paths) == 1:
                print(digit)
            else:
                print(f"{path}: {digit}")
    except DigitClassifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        return exit_code_for(e)
    return 0

if __name__ == "__main__":
    sys.exit(main())
