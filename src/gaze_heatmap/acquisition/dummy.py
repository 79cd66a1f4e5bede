import asyncio
import logging
import math
import random
import time
from typing import Optional

from gaze_heatmap.models.gaze import GazeSample
from .base import GazeSource

logger = logging.getLogger(__name__)


class DummyGazeSource(GazeSource):
    """
    A GazeSource that simulates a noisy gaze stream for development and demos.

    This class emits `GazeSample` objects at a fixed frequency along a
    circular path across the viewport, with Gaussian positional jitter. It
    lets the heatmap engine be exercised without a camera or a landmark
    detector.
    """

    def __init__(
        self,
        *args,
        viewport: tuple[int, int],
        frequency: int = 30,
        radius: float = 0.25,
        center: tuple[float, float] = (0.5, 0.5),
        speed: float = 0.1,
        jitter_px: float = 15.0,
        confidence: float = 0.9,
        seed: Optional[int] = None,
        **kwargs,
    ):
        """
        Initializes the DummyGazeSource.

        Args:
            viewport: (width, height) of the viewport in pixels.
            frequency: The frequency in Hz to emit samples.
            radius: Radius of the circular path as a fraction of the smaller
                    viewport side.
            center: The normalized (x, y) center of the path.
            speed: Revolutions per second along the path.
            jitter_px: Standard deviation of the positional noise in pixels.
            confidence: Confidence attached to every emitted sample.
            seed: Optional seed for reproducible noise.
        """
        super().__init__(*args, **kwargs)
        if frequency <= 0:
            raise ValueError("Frequency must be positive.")

        self._frequency = frequency
        self._interval_s = 1.0 / self._frequency
        self._radius = radius
        self._center = center
        self._apply_viewport(viewport)
        self._speed = speed
        self._jitter_px = jitter_px
        self._confidence = confidence
        self._rng = random.Random(seed)

        logger.info(
            f"DummyGazeSource initialized to run at {self._frequency} Hz "
            f"over a {self._width}x{self._height} viewport."
        )

    def _apply_viewport(self, viewport: tuple[int, int]) -> None:
        self._width, self._height = viewport
        self._radius_px = self._radius * min(self._width, self._height)
        self._center_x = self._center[0] * self._width
        self._center_y = self._center[1] * self._height

    def set_viewport(self, viewport: tuple[int, int]) -> None:
        """Rescales the path to a resized viewport; takes effect on the next sample."""
        self._apply_viewport(viewport)
        logger.info(f"DummyGazeSource path rescaled to {self._width}x{self._height}.")

    def _sample_at(self, elapsed_s: float) -> GazeSample:
        angle = elapsed_s * self._speed * 2 * math.pi
        x = self._center_x + self._radius_px * math.cos(angle)
        y = self._center_y + self._radius_px * math.sin(angle)

        if self._jitter_px > 0:
            x += self._rng.gauss(0.0, self._jitter_px)
            y += self._rng.gauss(0.0, self._jitter_px)

        return GazeSample(
            x=x,
            y=y,
            confidence=self._confidence,
            timestamp_ms=time.monotonic_ns() // 1_000_000,
        )

    async def run(self) -> None:
        """
        Main execution loop for the dummy source.

        Generates and queues samples at the configured frequency until the
        stop event is set.
        """
        start_time = time.monotonic()
        frame_counter = 0

        logger.info("Starting dummy gaze sample stream...")
        try:
            while not self._stop_event.is_set():
                target_time = start_time + ((frame_counter + 1) * self._interval_s)

                self._emit(self._sample_at(time.monotonic() - start_time))

                sleep_duration = target_time - time.monotonic()
                if sleep_duration > 0:
                    await asyncio.sleep(sleep_duration)
                else:
                    # Behind schedule: still yield so the render loop gets a turn.
                    await asyncio.sleep(0)

                frame_counter += 1

        except asyncio.CancelledError:
            logger.info("Dummy source run task was cancelled.")
        finally:
            logger.info(f"DummyGazeSource has stopped after {self.emitted} samples.")
