import logging

import cv2

from src.mnist_canvas.canvas.drawing_surface import DrawingSurface
from src.mnist_canvas.config import ClassifierConfig, setup_logging
from src.mnist_canvas.errors import DigitClassifierError
from src.mnist_canvas.scripts.classifier import DigitClassifier

logger = logging.getLogger(__name__)

WINDOW_NAME = "Draw a digit - R: recognize | C: clear | Q: quit"
RECOGNIZE_KEYS = {ord('r'), ord('R'), ord(' ')}
CLEAR_KEYS = {ord('c'), ord('C')}
QUIT_KEYS = {ord('q'), ord('Q'), 27}

class DrawApp:
    """OpenCV window that owns the event loop and a single drawing surface."""

    def __init__(self, classifier: DigitClassifier, surface: DrawingSurface):
        self.classifier = classifier
        self.surface = surface
        self.message = ""

    def on_mouse(self, event, x, y, flags, param):
        if event == cv2.EVENT_LBUTTONDOWN:
            self.surface.begin_stroke(x, y)
        elif event == cv2.EVENT_MOUSEMOVE and self.surface.is_drawing:
            self.surface.extend_stroke(x, y)
        elif event == cv2.EVENT_LBUTTONUP:
            self.surface.end_stroke()

    def recognize(self) -> str:
        snapshot = self.surface.snapshot()
        try:
            digit = self.classifier.classify_rgba(snapshot, self.surface.width, self.surface.height)
            self.message = f"Result: {digit}"
        except DigitClassifierError as e:
            logger.warning(f"Recognition failed: {e}")
            self.message = str(e)
        return self.message

    def clear(self):
        self.surface.clear()
        self.message = ""

    def handle_key(self, key) -> bool:
        """Apply a key press. Returns False when the app should exit."""
        if key in QUIT_KEYS:
            return False
        if key in RECOGNIZE_KEYS:
            self.recognize()
        elif key in CLEAR_KEYS:
            self.clear()
        return True

    def render(self):
        frame = self.surface.to_bgr()
        if self.message:
            cv2.putText(frame, self.message, (8, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 128, 0), 2)
        return frame

    def run(self):
        cv2.namedWindow(WINDOW_NAME)
        cv2.setMouseCallback(WINDOW_NAME, self.on_mouse)
        try:
            while True:
                cv2.imshow(WINDOW_NAME, self.render())
                key = cv2.waitKey(20) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
        finally:
            cv2.destroyAllWindows()

def main():
    config = ClassifierConfig.from_env()
    setup_logging(config.log_level)

    surface = DrawingSurface(config.canvas_size, config.canvas_size, config.brush_width)
    DrawApp(DigitClassifier(config), surface).run()

if __name__ == "__main__":
    main()
