import asyncio
import logging
from typing import Optional

import numpy as np

from ..acquisition import GazeSource
from ..field import DensityAccumulator, FieldRenderer
from ..models import GazeSample
from ..types import _END
from ..utils.logging import ThrottledLogger
from .protocols import FrameCallback

logger = logging.getLogger(__name__)


class TrackingRunner:
    """
    Drives one tracking session: Source -> Accumulator, and Field -> Renderer.

    Three tasks share a single event loop: the source, an ingest loop that
    applies samples in arrival order, and a fixed-rate render loop. None of
    the accumulator or renderer calls await, so a render always sees a field
    either fully before or fully after any ingest, clear or resize.

    Created fresh for every tracking session.
    """
    def __init__(
        self,
        source: GazeSource,
        accumulator: DensityAccumulator,
        renderer: FieldRenderer,
        render_hz: float = 30.0,
        on_frame: Optional[FrameCallback] = None,
        debug: bool = False,
        stop_timeout_s: float = 1.0,
    ):
        if render_hz <= 0:
            raise ValueError("render_hz must be positive.")

        self.source = source
        self.accumulator = accumulator
        self.renderer = renderer
        self._interval_s = 1.0 / render_hz
        self._on_frame = on_frame
        self._debug = debug
        self._stop_timeout_s = stop_timeout_s

        self._running = False
        self._source_task: asyncio.Task | None = None
        self._ingest_task: asyncio.Task | None = None
        self._render_task: asyncio.Task | None = None

        # Stats
        self._last_sample: Optional[GazeSample] = None
        self._ingested = 0
        self._rejected = 0
        self._frames = 0
        self._fps = 0.0
        self._fps_window_start = 0.0
        self._fps_window_frames = 0

        self._reject_logger = ThrottledLogger(logger, interval_sec=1.0)
        self._tick_error_logger = ThrottledLogger(logger, interval_sec=5.0)
        self._ingest_error_logger = ThrottledLogger(logger, interval_sec=5.0)

    # --- Stats ---

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_sample(self) -> Optional[GazeSample]:
        return self._last_sample

    @property
    def samples_ingested(self) -> int:
        return self._ingested

    @property
    def samples_rejected(self) -> int:
        return self._rejected

    @property
    def frames_rendered(self) -> int:
        return self._frames

    @property
    def fps(self) -> float:
        return self._fps

    # --- Lifecycle ---

    async def start(self) -> None:
        if self._running:
            return

        logger.info("Starting TrackingRunner...")
        self._running = True

        # Start source
        self._source_task = asyncio.create_task(self.source.run())
        self._source_task.add_done_callback(self._on_source_done)

        # Start loops
        self._ingest_task = asyncio.create_task(self._ingest_loop())
        self._render_task = asyncio.create_task(self._render_loop())
        logger.info("TrackingRunner active.")

    async def stop(self) -> None:
        """
        Halts ingestion and rendering. The field is left as last mutated.
        """
        if not self._running:
            return

        logger.info("Stopping TrackingRunner...")
        self._running = False

        # Stop source
        await self.source.stop()
        if self._source_task:
            done, _ = await asyncio.wait({self._source_task}, timeout=self._stop_timeout_s)
            if not done:
                logger.warning("Gaze source ignored the stop request; cancelling it.")
                self._source_task.cancel()
            await asyncio.gather(self._source_task, return_exceptions=True)

        # Stop ingest loop. With _running cleared it exits on the next item,
        # so a full queue needs no sentinel.
        try:
            self.source.output_queue.put_nowait(_END)
        except asyncio.QueueFull:
            pass
        if self._ingest_task:
            await self._ingest_task

        # Stop render loop
        if self._render_task:
            self._render_task.cancel()
            await asyncio.gather(self._render_task, return_exceptions=True)

        logger.info(
            f"TrackingRunner stopped. Ingested: {self._ingested:,}, "
            f"Rejected: {self._rejected:,}, Dropped: {self.source.dropped:,}, "
            f"Frames: {self._frames:,}"
        )

    @staticmethod
    def _on_source_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Rendering carries on with the last accumulated field.
            logger.error("Gaze source failed; no further samples.", exc_info=exc)

    # --- Loops ---

    async def _ingest_loop(self) -> None:
        """Hot loop."""
        queue = self.source.output_queue
        accumulator = self.accumulator

        while True:
            item = await queue.get()

            if item is _END or not self._running:
                break

            try:
                accepted = accumulator.ingest(item)
            except Exception:
                self._rejected += 1
                self._ingest_error_logger.warning(
                    "Discarding malformed gaze item %r.", item, exc_info=True
                )
                continue

            self._last_sample = item
            if accepted:
                self._ingested += 1
            else:
                self._rejected += 1
                if self._debug:
                    self._reject_logger.debug(
                        "Rejected sample at (%.0f, %.0f), confidence %.2f.",
                        item.x, item.y, item.confidence,
                    )

    def render_once(self) -> np.ndarray:
        """Renders the current field and hands the frame to the callback."""
        frame = self.renderer.render_frame(self.accumulator.snapshot())
        self._frames += 1
        if self._on_frame is not None:
            self._on_frame(frame)
        return frame

    async def _render_loop(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        self._fps_window_start = next_tick

        while self._running:
            # The next tick is booked before this one can fail.
            next_tick += self._interval_s

            try:
                self.render_once()
            except Exception:
                self._tick_error_logger.warning("Render tick failed.", exc_info=True)

            now = loop.time()
            self._update_fps(now)

            delay = next_tick - now
            if delay < 0:
                # Fell behind: drop the missed ticks instead of bursting.
                next_tick = now
                delay = 0
            await asyncio.sleep(delay)

    def _update_fps(self, now: float) -> None:
        self._fps_window_frames += 1
        elapsed = now - self._fps_window_start
        if elapsed < 1.0:
            return

        self._fps = self._fps_window_frames / elapsed
        self._fps_window_frames = 0
        self._fps_window_start = now
        if self._debug:
            logger.debug(
                f"{self._fps:.1f} FPS, {self._ingested} ingested, "
                f"{self._rejected} rejected, queue={self.source.output_queue.qsize()}"
            )
