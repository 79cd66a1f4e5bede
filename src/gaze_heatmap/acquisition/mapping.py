from typing import Protocol, runtime_checkable


@runtime_checkable
class GazeMapper(Protocol):
    """
    Maps eye displacement to a point on screen.

    `displacement` is the iris offset from the eye center, normalized by the
    eye width, averaged over both eyes. Any strategy, from a fixed linear
    scale to a calibrated regression, must support this call.
    """
    def map(
        self, displacement: tuple[float, float], viewport: tuple[int, int]
    ) -> tuple[float, float, float]:
        """Returns (x_px, y_px, confidence)."""
        ...



class LinearGazeMapper:
    """
    Uncalibrated linear gaze-to-screen mapping.

    Screen position is `size * (0.5 + displacement * scale)` on each axis,
    clamped to the viewport. Confidence drops as the gaze moves away from
    the straight-ahead position, where the iris estimate is least reliable,
    and is kept within [0.1, 1.0].

    The scale is empirical. 0.5 keeps the whole screen reachable for typical
    webcam distances; larger values trade range for sensitivity.
    """

    def __init__(self, scale: float = 0.5):
        if scale <= 0:
            raise ValueError("scale must be positive.")
        self.scale = scale

    def map(
        self, displacement: tuple[float, float], viewport: tuple[int, int]
    ) -> tuple[float, float, float]:
        gx, gy = displacement
        width, height = viewport

        x = width * (0.5 + gx * self.scale)
        y = height * (0.5 + gy * self.scale)
        confidence = min(1.0, max(0.1, 1.0 - abs(gx) * 0.5 - abs(gy) * 0.5))

        return (
            max(0.0, min(float(width), x)),
            max(0.0, min(float(height), y)),
            confidence,
        )

    def __repr__(self) -> str:
        return f"LinearGazeMapper(scale={self.scale})"
