class InvalidDimensionsError(ValueError):
    """Raised when a field or bitmap would be created with a non-positive size."""

    def __init__(self, width: int, height: int):
        super().__init__(f"Field dimensions must be positive, got {width}x{height}.")
        self.width = width
        self.height = height


class DimensionMismatchError(ValueError):
    """Raised when the renderer is handed a field of a different size than its own."""

    def __init__(self, expected: tuple[int, int], actual: tuple[int, int]):
        super().__init__(
            f"Renderer is {expected[0]}x{expected[1]} but the field is "
            f"{actual[0]}x{actual[1]}. Resize both in the same tick."
        )
        self.expected = expected
        self.actual = actual


def validate_dimensions(width: int, height: int) -> tuple[int, int]:
    if int(width) <= 0 or int(height) <= 0:
        raise InvalidDimensionsError(width, height)
    return int(width), int(height)
