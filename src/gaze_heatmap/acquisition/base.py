import asyncio
import logging
from abc import ABC, abstractmethod
from asyncio import Queue, Event
from typing import final

from gaze_heatmap.models.gaze import GazeSample
from gaze_heatmap.types import EndToken
from gaze_heatmap.utils.logging import ThrottledLogger

logger = logging.getLogger(__name__)


class GazeSource(ABC):
    """
    Abstract Base Class for all gaze sample sources.

    A GazeSource is a runnable, single-use producer: it acquires gaze samples
    from some origin (simulation, detector adapter, replay) and puts
    `GazeSample` objects into a bounded output queue until its stop event is
    set. A stopped source cannot be restarted; create a new one instead.
    """

    def __init__(self, output_queue: Queue[GazeSample | EndToken], stop_event: Event):
        self._output_queue = output_queue
        self._stop_event = stop_event
        self._emitted = 0
        self._dropped = 0
        self._drop_logger = ThrottledLogger(logger, interval_sec=1.0)

    @property
    def output_queue(self) -> Queue[GazeSample | EndToken]:
        return self._output_queue

    @property
    def emitted(self) -> int:
        return self._emitted

    @property
    def dropped(self) -> int:
        return self._dropped

    @abstractmethod
    async def run(self) -> None:
        """
        Starts producing samples.

        This method should run until the `stop_event` is set or the origin is
        exhausted, handing each sample to `_emit`. It must be implemented by
        all concrete subclasses.
        """
        raise NotImplementedError

    def set_viewport(self, viewport: tuple[int, int]) -> None:
        """
        Called when the session viewport is resized mid-session.

        Sources that produce screen coordinates override this to follow the
        new size. The default does nothing.
        """

    @final
    def _emit(self, sample: GazeSample) -> None:
        """
        Queues a sample without blocking.

        When the queue is full the oldest queued sample is discarded in favor
        of the new one, so a slow consumer always sees the most recent gaze.
        """
        try:
            self._output_queue.put_nowait(sample)
        except asyncio.QueueFull:
            try:
                self._output_queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self._output_queue.put_nowait(sample)
            self._dropped += 1
            self._drop_logger.warning("Sample queue full, dropping oldest sample.")
        self._emitted += 1

    @final
    async def stop(self) -> None:
        """
        Signals the source to stop producing samples.

        This is a final method and should not be overridden. Subclasses can
        perform cleanup in their 'run' method's finally block.
        """
        self._stop_event.set()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()
