import logging
import math
from dataclasses import dataclass

import numpy as np

from ..models import CellIntensity, GazeSample
from .errors import InvalidDimensionsError, validate_dimensions

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class FieldSnapshot:
    """
    Read-only view of the density field handed to the renderer.

    The view is valid for one render call. `revision` changes whenever the
    accumulator mutates or replaces the field, so consumers can skip work on
    an unchanged field.
    """
    values: np.ndarray
    width: int
    height: int
    revision: int

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


def build_kernel(radius: int) -> np.ndarray:
    """
    Gaussian falloff over a (2R+1) x (2R+1) window, zero outside the disk.

    Sigma is R / 3. Offsets exactly on the radius are inside the disk.
    """
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    dist_sq = offsets[np.newaxis, :] ** 2 + offsets[:, np.newaxis] ** 2
    sigma = radius / 3.0
    kernel = np.exp(-dist_sq / (2.0 * sigma * sigma))
    kernel[dist_sq > radius * radius] = 0.0
    return kernel.astype(np.float32)


class DensityAccumulator:
    """
    Owns the 2-D gaze intensity field and splats samples into it.

    Each accepted sample adds `confidence * 2 * falloff` to every cell within
    `kernel_radius` of its pixel, capping each cell at `max_intensity`. The
    cap makes repeated looks at one spot saturate instead of growing without
    bound, which keeps the normalization range stable for any session length.

    The accumulator is the single writer of the field. Cost per sample is
    O(R^2) and independent of the field size.
    """

    def __init__(
        self,
        width: int,
        height: int,
        kernel_radius: int = 30,
        max_intensity: float = 100.0,
        confidence_threshold: float = 0.3,
    ):
        if kernel_radius <= 0:
            raise ValueError("kernel_radius must be a positive integer.")
        if max_intensity <= 0:
            raise ValueError("max_intensity must be positive.")

        self._width, self._height = validate_dimensions(width, height)
        self._radius = int(kernel_radius)
        self._max_intensity = float(max_intensity)
        self._threshold = float(confidence_threshold)

        self._kernel = build_kernel(self._radius)
        self._field = self._allocate()
        self._revision = 0

        logger.info(
            f"DensityAccumulator initialized: {self._width}x{self._height}, "
            f"R={self._radius}, max={self._max_intensity}, threshold={self._threshold}."
        )

    def _allocate(self) -> np.ndarray:
        return np.zeros((self._height, self._width), dtype=np.float32)

    # --- Properties ---

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def kernel_radius(self) -> int:
        return self._radius

    @property
    def max_intensity(self) -> float:
        return self._max_intensity

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    @property
    def revision(self) -> int:
        return self._revision

    # --- Mutations ---

    def ingest(self, sample: GazeSample) -> bool:
        """
        Splats one sample into the field.

        Returns:
            True if the field changed, False if the sample was rejected for
            low confidence or for landing outside the viewport.
        """
        if not math.isfinite(sample.confidence) or sample.confidence < self._threshold:
            return False
        if not (math.isfinite(sample.x) and math.isfinite(sample.y)):
            return False

        cx = math.floor(sample.x)
        cy = math.floor(sample.y)
        if not (0 <= cx < self._width and 0 <= cy < self._height):
            return False

        r = self._radius
        # Clip the kernel window against the field edges.
        x0, x1 = max(cx - r, 0), min(cx + r + 1, self._width)
        y0, y1 = max(cy - r, 0), min(cy + r + 1, self._height)
        kx0, ky0 = x0 - (cx - r), y0 - (cy - r)
        kernel = self._kernel[ky0:ky0 + (y1 - y0), kx0:kx0 + (x1 - x0)]

        weight = min(sample.confidence, 1.0) * 2.0
        region = self._field[y0:y1, x0:x1]
        region += kernel * weight
        np.minimum(region, self._max_intensity, out=region)

        self._revision += 1
        return True

    def clear(self) -> None:
        """Replaces the field with an all-zero one of the same size."""
        self._field = self._allocate()
        self._revision += 1

    def resize(self, width: int, height: int) -> None:
        """
        Replaces the field with an all-zero one of the new size.

        Prior data is discarded, not resampled: a different viewport gives
        old cells a different spatial meaning.
        """
        try:
            self._width, self._height = validate_dimensions(width, height)
        except InvalidDimensionsError:
            logger.error(f"Rejected resize to {width}x{height}.")
            raise
        self._field = self._allocate()
        self._revision += 1
        logger.info(f"Density field resized to {self._width}x{self._height}.")

    # --- Reads ---

    def snapshot(self) -> FieldSnapshot:
        view = self._field.view()
        view.flags.writeable = False
        return FieldSnapshot(
            values=view,
            width=self._width,
            height=self._height,
            revision=self._revision,
        )

    def value_at(self, x: int, y: int) -> float:
        return float(self._field[y, x])

    def nonzero_cells(self) -> list[CellIntensity]:
        """Every cell with accumulated intensity, in row-major order."""
        ys, xs = np.nonzero(self._field)
        values = self._field[ys, xs]
        return [
            CellIntensity(int(x), int(y), float(v))
            for x, y, v in zip(xs, ys, values)
        ]

    def total_intensity(self) -> float:
        return float(self._field.sum(dtype=np.float64))
