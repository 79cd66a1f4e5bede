import logging
import math
import time
from typing import Optional, Sequence

from gaze_heatmap.models import EyeLandmarks, GazeSample, Point, centroid
from .mapping import GazeMapper, LinearGazeMapper

logger = logging.getLogger(__name__)

# Eye contour positions of the two corners used to normalize displacement.
_CORNER_A = 0
_CORNER_B = 8


def _axis_ratio(offset: float, span: float) -> float:
    # Level or vertically aligned corners give no usable span on that axis.
    if abs(span) < 1e-6:
        return 0.0
    return offset / span


def eye_displacement(contour: Sequence[Point], iris: Sequence[Point]) -> tuple[float, float]:
    """Iris offset from the contour center, divided by the corner-to-corner span."""
    iris_center = centroid(iris)
    eye_center = centroid(contour)
    a, b = contour[_CORNER_A], contour[_CORNER_B]
    return (
        _axis_ratio(iris_center.x - eye_center.x, a.x - b.x),
        _axis_ratio(iris_center.y - eye_center.y, a.y - b.y),
    )


class LandmarkGazeAdapter:
    """
    Boundary between a landmark detector and the heatmap engine.

    Converts per-frame eye landmarks into a validated `GazeSample`. The
    screen mapping is delegated to a pluggable `GazeMapper`, so calibration
    schemes can replace the default linear one without touching the core.
    """

    def __init__(
        self,
        viewport: tuple[int, int],
        mapper: Optional[GazeMapper] = None,
    ):
        self.viewport = viewport
        self.mapper: GazeMapper = mapper or LinearGazeMapper()

    def set_viewport(self, viewport: tuple[int, int]) -> None:
        self.viewport = viewport
        logger.debug(f"Landmark adapter now maps onto {viewport[0]}x{viewport[1]}.")

    def displacement(self, landmarks: EyeLandmarks) -> tuple[float, float]:
        lx, ly = eye_displacement(landmarks.left_eye, landmarks.left_iris)
        rx, ry = eye_displacement(landmarks.right_eye, landmarks.right_iris)
        return (lx + rx) / 2, (ly + ry) / 2

    def to_sample(
        self,
        landmarks: EyeLandmarks,
        timestamp_ms: Optional[int] = None,
    ) -> Optional[GazeSample]:
        """
        Maps one frame's landmarks to a sample.

        Returns None when the geometry is degenerate (empty point sets or
        non-finite coordinates), which callers treat like a frame without a
        face.
        """
        try:
            gaze = self.displacement(landmarks)
        except (ValueError, IndexError) as e:
            logger.debug(f"Discarding landmarks: {e}")
            return None

        x, y, confidence = self.mapper.map(gaze, self.viewport)
        if not all(math.isfinite(v) for v in (x, y, confidence)):
            logger.debug("Discarding non-finite gaze estimate.")
            return None

        return GazeSample(
            x=x,
            y=y,
            confidence=min(1.0, max(0.0, confidence)),
            timestamp_ms=time.monotonic_ns() // 1_000_000 if timestamp_ms is None else timestamp_ms,
        )

    def from_face_mesh(
        self,
        mesh: Sequence[Sequence[float]],
        frame_size: tuple[int, int],
        timestamp_ms: Optional[int] = None,
    ) -> Optional[GazeSample]:
        """Convenience path for detectors emitting a normalized 478-point mesh."""
        try:
            landmarks = EyeLandmarks.from_face_mesh(mesh, *frame_size)
        except ValueError as e:
            logger.debug(f"Discarding face mesh: {e}")
            return None
        return self.to_sample(landmarks, timestamp_ms)
