from .core import SessionController, TrackingRunner, TrackingState
from .field import ColorRamp, ColorStop, DEFAULT_RAMP, DensityAccumulator, FieldRenderer
from .models import GazeSample

__all__ = [
    "SessionController",
    "TrackingRunner",
    "TrackingState",
    "ColorRamp",
    "ColorStop",
    "DEFAULT_RAMP",
    "DensityAccumulator",
    "FieldRenderer",
    "GazeSample",
]
