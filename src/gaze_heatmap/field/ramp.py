from dataclasses import dataclass
from typing import Final, Iterable, Sequence

import numpy as np

RGBA = tuple[float, float, float, float]


@dataclass(slots=True, frozen=True)
class ColorStop:
    """
    One control point of a color ramp.

    `color` is (r, g, b, a) with r, g, b in 0-255 and a in 0-1.
    """
    value: float
    color: RGBA


class ColorRamp:
    """
    Piecewise-linear mapping from normalized intensity (0-1) to RGBA.

    Each channel is interpolated independently between the two stops that
    bracket a value. Values outside [0, 1] are clamped, never extrapolated.
    Output colors are 8-bit RGBA with alpha scaled to 0-255.
    """

    def __init__(self, stops: Iterable[ColorStop]):
        self._stops: tuple[ColorStop, ...] = tuple(stops)
        self._validate(self._stops)

        self._xp = np.array([s.value for s in self._stops], dtype=np.float64)
        # Channel table in output units: alpha is rescaled to 0-255 up front.
        self._fp = np.array(
            [(*s.color[:3], s.color[3] * 255.0) for s in self._stops],
            dtype=np.float64,
        )

    @staticmethod
    def _validate(stops: Sequence[ColorStop]) -> None:
        if len(stops) < 2:
            raise ValueError("A color ramp needs at least two stops.")
        if stops[0].value != 0.0 or stops[-1].value != 1.0:
            raise ValueError("Color ramp must start at 0.0 and end at 1.0.")
        for prev, nxt in zip(stops, stops[1:]):
            if nxt.value <= prev.value:
                raise ValueError(
                    f"Color stop values must be strictly ascending ({prev.value} -> {nxt.value})."
                )
        for stop in stops:
            if len(stop.color) != 4:
                raise ValueError(f"Color at {stop.value} is not an RGBA tuple.")
            r, g, b, a = stop.color
            if not all(0 <= c <= 255 for c in (r, g, b)) or not 0 <= a <= 1:
                raise ValueError(f"Color at {stop.value} is out of range: {stop.color}.")
        if stops[0].color[3] != 0:
            raise ValueError("The first color stop must be fully transparent.")

    @property
    def stops(self) -> tuple[ColorStop, ...]:
        return self._stops

    def __len__(self) -> int:
        return len(self._stops)

    def __repr__(self) -> str:
        return f"ColorRamp({len(self._stops)} stops)"

    def _interpolate(self, values: np.ndarray) -> np.ndarray:
        channels = [np.interp(values, self._xp, self._fp[:, c]) for c in range(4)]
        # Round half up, matching how browsers quantize canvas colors.
        return np.floor(np.stack(channels, axis=-1) + 0.5).astype(np.uint8)

    def color_at(self, value: float) -> tuple[int, int, int, int]:
        """Exact ramp color for a single normalized value."""
        if value <= 0.0:
            return 0, 0, 0, 0
        r, g, b, a = self._interpolate(np.asarray([value], dtype=np.float64))[0]
        return int(r), int(g), int(b), int(a)

    def lookup_table(self, size: int = 1024) -> np.ndarray:
        """
        Precomputes `size` evenly spaced ramp colors over [0, 1].

        Entry 0 is fully transparent and entry `size - 1` is the last stop's
        color exactly, so the extremes survive quantization.
        """
        if size < 2:
            raise ValueError("Lookup table needs at least two entries.")
        table = self._interpolate(np.linspace(0.0, 1.0, size))
        table[0] = 0
        return table


DEFAULT_STOPS: Final[tuple[ColorStop, ...]] = (
    ColorStop(0.0, (0, 0, 0, 0.0)),
    ColorStop(0.2, (0, 0, 255, 0.3)),
    ColorStop(0.4, (0, 255, 0, 0.5)),
    ColorStop(0.6, (255, 255, 0, 0.7)),
    ColorStop(0.8, (255, 165, 0, 0.8)),
    ColorStop(1.0, (255, 0, 0, 0.9)),
)

DEFAULT_RAMP: Final[ColorRamp] = ColorRamp(DEFAULT_STOPS)
