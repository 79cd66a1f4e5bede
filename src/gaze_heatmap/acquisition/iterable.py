import asyncio
import logging
from typing import AsyncIterable, Callable, Iterable, Optional, Union

from gaze_heatmap.models.gaze import GazeSample
from .base import GazeSource

logger = logging.getLogger(__name__)

SampleStream = Union[Iterable[GazeSample], AsyncIterable[GazeSample]]


class IterableGazeSource(GazeSource):
    """
    A GazeSource that forwards samples from any iterable.

    This is the seam where an external detector plugs in: wrap its output
    (an async generator driven by camera frames, a recorded list, ...) and
    every item reaches the runner as it arrives. The iterable is consumed
    once; `None` items stand for frames without a detectable face and are
    skipped.

    `on_viewport` is told about mid-session resizes, typically the
    `set_viewport` of the `LandmarkGazeAdapter` producing the stream.
    """

    def __init__(
        self,
        *args,
        samples: SampleStream,
        on_viewport: Optional[Callable[[tuple[int, int]], None]] = None,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self._samples = samples
        self._on_viewport = on_viewport

    def set_viewport(self, viewport: tuple[int, int]) -> None:
        if self._on_viewport is not None:
            self._on_viewport(viewport)

    async def _iterate(self):
        if isinstance(self._samples, AsyncIterable):
            async for sample in self._samples:
                yield sample
        else:
            for sample in self._samples:
                yield sample
                # Sync iterables never suspend on their own.
                await asyncio.sleep(0)

    async def run(self) -> None:
        logger.info("Forwarding samples from %s.", type(self._samples).__name__)
        try:
            async for sample in self._iterate():
                if self._stop_event.is_set():
                    break
                if sample is None:
                    continue
                self._emit(sample)
            else:
                logger.info("Sample stream exhausted.")

        except asyncio.CancelledError:
            logger.info("Iterable source run task was cancelled.")
        finally:
            logger.info(f"IterableGazeSource has stopped after {self.emitted} samples.")
