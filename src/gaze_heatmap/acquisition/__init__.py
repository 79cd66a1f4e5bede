from .base import GazeSource
from .dummy import DummyGazeSource
from .iterable import IterableGazeSource, SampleStream
from .landmarks import LandmarkGazeAdapter, eye_displacement
from .mapping import GazeMapper, LinearGazeMapper

__all__ = [
    "GazeSource",
    "DummyGazeSource",
    "IterableGazeSource",
    "SampleStream",
    "LandmarkGazeAdapter",
    "GazeMapper",
    "LinearGazeMapper",
    "eye_displacement",
]
