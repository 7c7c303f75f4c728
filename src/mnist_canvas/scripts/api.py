import base64
import binascii
import logging

from flask import Flask, request, jsonify, render_template_string
from flask_cors import CORS
from PIL import Image, UnidentifiedImageError

from src.mnist_canvas.config import ClassifierConfig, setup_logging
from src.mnist_canvas.errors import (DecodeFailure, DigitClassifierError, EmptyCanvas,
                                     InferenceFailure, InvalidBufferSize, ModelLoadFailure)
from src.mnist_canvas.preprocessing import image_source
from src.mnist_canvas.scripts.classifier import DigitClassifier

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidBufferSize: 400,
    DecodeFailure: 400,
    EmptyCanvas: 422,
    InferenceFailure: 500,
    ModelLoadFailure: 503,
}

INDEX_HTML = r"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8" />
<title>Handwritten Digit Recognizer</title>
<style>
  body { font-family: sans-serif; display: grid; place-items: center; margin-top: 40px; }
  canvas { border: 1px solid #ccc; cursor: crosshair; touch-action: none; }
  .controls { margin: 12px 0; display: flex; gap: 10px; }
  #result { font-size: 24px; min-height: 32px; }
  #result.error { color: #b00020; font-size: 16px; }
</style>
</head>
<body>
<h2>Draw a digit (0-9)</h2>
<canvas id="canvas" width="{{ size }}" height="{{ size }}"></canvas>
<div class="controls">
  <button id="recognize-button">Recognize</button>
  <button id="clear-button">Clear</button>
</div>
<div id="result"></div>
<script>
  const canvas = document.getElementById("canvas");
  const ctx = canvas.getContext("2d");
  const result = document.getElementById("result");
  let drawing = false, lastX = 0, lastY = 0;

  function resetCanvas() {
    ctx.clearRect(0, 0, canvas.width, canvas.height);
    ctx.fillStyle = "#FFFFFF";
    ctx.globalAlpha = 1.0;
    ctx.fillRect(0, 0, canvas.width, canvas.height);
    ctx.lineWidth = {{ brush }};
    ctx.lineCap = "round";
    ctx.strokeStyle = "#000000";
  }

  canvas.addEventListener("pointerdown", e => {
    drawing = true; lastX = e.offsetX; lastY = e.offsetY;
  });
  canvas.addEventListener("pointermove", e => {
    if (!drawing) return;
    ctx.beginPath();
    ctx.moveTo(lastX, lastY);
    ctx.lineTo(e.offsetX, e.offsetY);
    ctx.stroke();
    lastX = e.offsetX; lastY = e.offsetY;
  });
  ["pointerup", "pointerleave"].forEach(name => canvas.addEventListener(name, () => { drawing = false; }));

  document.getElementById("clear-button").addEventListener("click", () => {
    resetCanvas();
    result.textContent = "";
    result.className = "";
  });

  document.getElementById("recognize-button").addEventListener("click", async () => {
    const image = ctx.getImageData(0, 0, canvas.width, canvas.height);
    let binary = "";
    const bytes = image.data;
    for (let i = 0; i < bytes.length; i += 0x8000) {
      binary += String.fromCharCode.apply(null, bytes.subarray(i, i + 0x8000));
    }
    try {
      const response = await fetch("classify", {
        method: "POST",
        headers: { "Content-Type": "application/json" },
        body: JSON.stringify({ width: image.width, height: image.height, data: btoa(binary) })
      });
      const isJson = (response.headers.get("Content-Type") || "").includes("application/json");
      const body = isJson ? await response.json() : null;
      if (response.ok && body) {
        result.className = "";
        result.textContent = "Result: " + body.digit;
      } else {
        showError((body && body.error) || response.statusText || "Recognition failed (HTTP " + response.status + ")");
      }
    } catch (err) {
      showError("Recognition failed: " + err.message);
    }
  });

  function showError(message) {
    result.className = "error";
    result.textContent = message;
  }

  resetCanvas();
</script>
</body>
</html>
"""

def _dimension(value) -> int:
    # JSON gives floats for 1.9 or 1e400 and bools for true, none of which are pixel counts
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"canvas dimensions must be integers, got {value!r}")
    return value

def _prediction_response(prediction):
    return jsonify({"digit": prediction.digit, "confidence": prediction.confidence})

def create_app(classifier: DigitClassifier = None, config: ClassifierConfig = None) -> Flask:
    """
    Build the Flask app around one classifier shared by all requests.

    Args:
        classifier: Classifier to serve. Built from config when omitted.
        config: Configuration, defaults to ClassifierConfig.from_env().
    """
    config = config or (classifier.config if classifier else ClassifierConfig.from_env())
    classifier = classifier or DigitClassifier(config)

    app = Flask(__name__)
    CORS(app, resources={r"/*": {"origins": "*"}})
    app.config["CLASSIFIER"] = classifier

    @app.errorhandler(DigitClassifierError)
    def handle_classifier_error(error):
        status = next((code for error_type, code in ERROR_STATUS.items()
                       if isinstance(error, error_type)), 500)
        if status >= 500:
            logger.error(f"{type(error).__name__}: {error}")
        else:
            logger.info(f"Rejected request: {error}")
        return jsonify({"error": str(error), "kind": type(error).__name__}), status

    @app.route("/", methods=["GET"])
    def index():
        return render_template_string(INDEX_HTML, size=config.canvas_size, brush=config.brush_width)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok", "model_loaded": classifier.is_ready})

    @app.route("/classify", methods=["POST"])
    def classify():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not {"width", "height", "data"} <= payload.keys():
            return jsonify({"error": "Expected JSON with width, height and data"}), 400

        try:
            width, height = _dimension(payload["width"]), _dimension(payload["height"])
            buffer = base64.b64decode(payload["data"], validate=True)
        except (TypeError, ValueError, binascii.Error) as e:
            return jsonify({"error": f"Malformed canvas payload: {e}"}), 400

        grid = image_source.from_rgba(buffer, width, height)
        return _prediction_response(classifier.predict(grid))

    @app.route("/predict", methods=["POST"])
    def predict():
        if "image" not in request.files:
            return jsonify({"error": "No file provided"}), 400

        try:
            image = Image.open(request.files["image"])
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise DecodeFailure(f"Invalid image: {e}") from e

        grid = image_source.from_image(image)
        return _prediction_response(classifier.predict(grid))

    return app

if __name__ == "__main__":
    config = ClassifierConfig.from_env()
    setup_logging(config.log_level)
    create_app(config=config).run(host="0.0.0.0", port=5000)
