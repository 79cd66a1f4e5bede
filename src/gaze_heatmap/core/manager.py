import logging
from asyncio import Event
from typing import Callable, Optional

import numpy as np

from .protocols import FrameCallback
from .runner import TrackingRunner
from .state import TrackingState
from ..acquisition import GazeSource, IterableGazeSource, SampleStream
from ..configs import AppSettings
from ..factories import (
    create_accumulator,
    create_renderer,
    create_sample_queue,
    create_session_source,
)
from ..field import DensityAccumulator, FieldRenderer
from ..field.errors import validate_dimensions
from ..models import GazeSample

logger = logging.getLogger(__name__)


class SessionController:
    """
    The headless core of the heatmap application.

    Owns the accumulator and renderer for the lifetime of the session and
    starts or stops a `TrackingRunner` on demand, so a UI (Qt, web, CLI)
    only has to forward user actions. The field persists across start/stop
    cycles until cleared or resized.
    """
    def __init__(
        self,
        settings: AppSettings,
        on_frame: Optional[FrameCallback] = None,
    ):
        self.settings = settings
        self.on_frame = on_frame

        self.accumulator: DensityAccumulator = create_accumulator(settings)
        self.renderer: FieldRenderer = create_renderer(settings)
        self.runner: Optional[TrackingRunner] = None
        self._state = TrackingState.IDLE
        self._last_sample: Optional[GazeSample] = None

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self.runner is not None

    @property
    def visible(self) -> bool:
        return self.renderer.visible

    @property
    def viewport(self) -> tuple[int, int]:
        return self.accumulator.width, self.accumulator.height

    @property
    def last_sample(self) -> Optional[GazeSample]:
        """Most recent sample seen, accepted or not. Drives a gaze indicator."""
        if self.runner is not None and self.runner.last_sample is not None:
            return self.runner.last_sample
        return self._last_sample

    @property
    def fps(self) -> float:
        return self.runner.fps if self.runner else 0.0

    # --- Actions ---

    def create_source(
        self,
        samples: SampleStream,
        on_viewport: Optional[Callable[[tuple[int, int]], None]] = None,
    ) -> IterableGazeSource:
        """Wraps an external sample stream in a source sized by the settings."""
        return IterableGazeSource(
            create_sample_queue(self.settings),
            Event(),
            samples=samples,
            on_viewport=on_viewport,
        )

    async def start_tracking(self, source: Optional[GazeSource] = None) -> bool:
        """
        Starts a runner over `source`, or over the configured source if None.
        Returns: True if tracking started.
        """
        if self.runner:
            logger.warning("Tracking already in progress.")
            return False

        try:
            if source is None:
                source = create_session_source(self.settings, self.viewport)
            runner = TrackingRunner(
                source,
                self.accumulator,
                self.renderer,
                render_hz=self.settings.tracking.render_hz,
                on_frame=self.on_frame,
                debug=self.settings.debug,
            )
            await runner.start()

        except Exception:
            logger.exception("Failed to start tracking session")
            return False

        self.runner = runner
        self._state = TrackingState.TRACKING
        logger.info("Tracking started.")
        return True

    async def stop_tracking(self) -> None:
        """
        Stops the active runner. The field keeps everything ingested so far.
        """
        if not self.runner:
            return

        logger.info("Stopping tracking session...")
        self._state = TrackingState.STOPPING
        try:
            await self.runner.stop()
        finally:
            self._last_sample = self.runner.last_sample or self._last_sample
            self.runner = None
            self._state = TrackingState.IDLE
        logger.info("Tracking stopped.")

    def ingest(self, sample: GazeSample) -> bool:
        """Feeds one sample directly, bypassing any runner."""
        self._last_sample = sample
        return self.accumulator.ingest(sample)

    def set_visible(self, visible: bool) -> None:
        self.renderer.set_visible(visible)

    def toggle_visible(self) -> bool:
        self.set_visible(not self.visible)
        return self.visible

    def clear(self) -> None:
        self.accumulator.clear()
        logger.info("Heatmap cleared.")

    def resize(self, width: int, height: int) -> None:
        """
        Resizes field and renderer together, discarding accumulated data.
        """
        width, height = validate_dimensions(width, height)
        self.accumulator.resize(width, height)
        self.renderer.resize(width, height)
        if self.runner is not None:
            # Keep a live source producing coordinates for the new size.
            self.runner.source.set_viewport((width, height))

    def render_frame(self) -> np.ndarray:
        return self.renderer.render_frame(self.accumulator.snapshot())

    def export_snapshot(self) -> bytes:
        return self.renderer.export_snapshot()
