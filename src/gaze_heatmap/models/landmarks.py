from dataclasses import dataclass
from typing import Final, Sequence

# Face mesh indices (478-point topology with refined iris landmarks).
LEFT_EYE_INDICES: Final[tuple[int, ...]] = (
    33, 7, 163, 144, 145, 153, 154, 155, 133, 173, 157, 158, 159, 160, 161, 246
)
RIGHT_EYE_INDICES: Final[tuple[int, ...]] = (
    362, 382, 381, 380, 374, 373, 390, 249, 263, 466, 388, 387, 386, 385, 384, 398
)
LEFT_IRIS_INDICES: Final[tuple[int, ...]] = (474, 475, 476, 477)
RIGHT_IRIS_INDICES: Final[tuple[int, ...]] = (469, 470, 471, 472)


@dataclass(slots=True, frozen=True)
class Point:
    x: float
    y: float


def centroid(points: Sequence[Point]) -> Point:
    if not points:
        raise ValueError("Cannot compute the centroid of an empty point set.")
    n = len(points)
    return Point(sum(p.x for p in points) / n, sum(p.y for p in points) / n)


@dataclass(slots=True, frozen=True)
class EyeLandmarks:
    """
    Eye contours and iris rings of one face, in camera frame pixels.

    Contour point 0 and point 8 are the two eye corners; the adapter uses
    their span to normalize iris displacement.
    """
    left_eye: tuple[Point, ...]
    right_eye: tuple[Point, ...]
    left_iris: tuple[Point, ...]
    right_iris: tuple[Point, ...]

    @classmethod
    def from_face_mesh(
        cls,
        landmarks: Sequence[Sequence[float]],
        frame_width: int,
        frame_height: int,
    ) -> "EyeLandmarks":
        """
        Builds eye landmarks from a normalized (0-1) face mesh.

        Args:
            landmarks: Indexable sequence of at least (x, y) per mesh point.
            frame_width: Width of the camera frame in pixels.
            frame_height: Height of the camera frame in pixels.

        Raises:
            ValueError: If the mesh lacks the refined iris points.
        """
        required = max(LEFT_IRIS_INDICES + RIGHT_IRIS_INDICES) + 1
        if len(landmarks) < required:
            raise ValueError(
                f"Face mesh has {len(landmarks)} points, at least {required} are required."
            )

        def pick(indices: Sequence[int]) -> tuple[Point, ...]:
            return tuple(
                Point(landmarks[i][0] * frame_width, landmarks[i][1] * frame_height)
                for i in indices
            )

        return cls(
            left_eye=pick(LEFT_EYE_INDICES),
            right_eye=pick(RIGHT_EYE_INDICES),
            left_iris=pick(LEFT_IRIS_INDICES),
            right_iris=pick(RIGHT_IRIS_INDICES),
        )
