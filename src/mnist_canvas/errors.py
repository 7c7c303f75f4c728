class DigitClassifierError(Exception):
    """Base class for every error raised by the classification pipeline."""


class InvalidBufferSize(DigitClassifierError):
    def __init__(self, width, height, actual: int):
        self.width = width
        self.height = height
        self.expected = width * height * 4 if width > 0 and height > 0 else None
        self.actual = actual
        if self.expected is None:
            message = f"Invalid canvas dimensions: {width}x{height}"
        else:
            message = (f"Invalid canvas buffer size: {width}x{height}x4={self.expected} "
                       f"!= {actual}")
        super().__init__(message)


class EmptyCanvas(DigitClassifierError):
    def __init__(self, message: str = "Nothing was drawn. Draw a digit and try again."):
        super().__init__(message)


class DecodeFailure(DigitClassifierError):
    pass


class ModelLoadFailure(DigitClassifierError):
    pass


class InferenceFailure(DigitClassifierError):
    pass
