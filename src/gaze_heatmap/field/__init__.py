from .accumulator import DensityAccumulator, FieldSnapshot, build_kernel
from .errors import DimensionMismatchError, InvalidDimensionsError
from .ramp import DEFAULT_RAMP, DEFAULT_STOPS, ColorRamp, ColorStop
from .renderer import FieldRenderer

__all__ = [
    "DensityAccumulator",
    "FieldSnapshot",
    "build_kernel",
    "FieldRenderer",
    "ColorRamp",
    "ColorStop",
    "DEFAULT_RAMP",
    "DEFAULT_STOPS",
    "DimensionMismatchError",
    "InvalidDimensionsError",
]
