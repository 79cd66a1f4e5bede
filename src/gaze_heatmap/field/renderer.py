import logging
from typing import Optional

import cv2
import numpy as np

from .accumulator import FieldSnapshot
from .errors import DimensionMismatchError, validate_dimensions
from .ramp import DEFAULT_RAMP, ColorRamp

logger = logging.getLogger(__name__)


class FieldRenderer:
    """
    Turns a density field into a color-coded RGBA overlay.

    Normalization is relative: every frame is scaled by its own maximum, so
    the hottest cell on screen is always the ramp's top color. This keeps the
    map legible however long tracking has run, at the cost of colors not
    being comparable between frames or sessions.

    All pixel buffers are allocated on construction and on resize and are
    reused by every render call. The array returned by `render_frame` is a
    read-only view of the renderer's output buffer and is overwritten by the
    next call; copy it to keep it.
    """

    def __init__(
        self,
        width: int,
        height: int,
        ramp: ColorRamp = DEFAULT_RAMP,
        blur_radius: float = 2.0,
        ramp_resolution: int = 1024,
    ):
        if blur_radius < 0:
            raise ValueError("blur_radius cannot be negative.")

        self._blur_radius = float(blur_radius)
        self._lut = ramp.lookup_table(ramp_resolution)
        self._lut_scale = float(ramp_resolution - 1)

        self._visible = True
        self._width, self._height = validate_dimensions(width, height)
        self._allocate()

    def _allocate(self) -> None:
        shape = (self._height, self._width)
        self._scaled = np.empty(shape, dtype=np.float32)
        self._indices = np.empty(shape, dtype=np.intp)
        self._colors = np.zeros(shape + (4,), dtype=np.uint8)
        self._bitmap = np.zeros(shape + (4,), dtype=np.uint8)
        # Premultiplied float scratch for the blur pass.
        self._premul = np.empty(shape + (4,), dtype=np.float32)
        self._blurred = np.empty(shape + (4,), dtype=np.float32)
        self._alpha = np.empty(shape + (1,), dtype=np.float32)

        # (revision, visible) of the frame currently held in _bitmap.
        self._rendered_key: Optional[tuple[int, bool]] = None
        self._last_max = 0.0

    # --- Properties ---

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def last_max_value(self) -> float:
        """Field maximum used to normalize the last rendered frame."""
        return self._last_max

    # --- Controls ---

    def set_visible(self, visible: bool) -> None:
        if visible == self._visible:
            return
        self._visible = visible
        self._rendered_key = None
        if not visible:
            self._bitmap.fill(0)
        logger.debug(f"Heatmap visibility set to {visible}.")

    def resize(self, width: int, height: int) -> None:
        """Drops the cached frame and reallocates buffers for the new size."""
        self._width, self._height = validate_dimensions(width, height)
        self._allocate()
        logger.info(f"Renderer resized to {self._width}x{self._height}.")

    # --- Rendering ---

    def _output(self) -> np.ndarray:
        view = self._bitmap.view()
        view.flags.writeable = False
        return view

    def _clear_output(self) -> np.ndarray:
        self._bitmap.fill(0)
        self._last_max = 0.0
        return self._output()

    def render_frame(self, snapshot: FieldSnapshot) -> np.ndarray:
        """
        Renders the field into an RGBA bitmap of shape (height, width, 4).

        An all-zero field, or a hidden renderer, yields a fully transparent
        bitmap. The snapshot is never written to.

        Raises:
            DimensionMismatchError: If the field and renderer sizes differ.
        """
        if snapshot.size != (self._width, self._height):
            raise DimensionMismatchError((self._width, self._height), snapshot.size)

        key = (snapshot.revision, self._visible)
        if key == self._rendered_key:
            return self._output()
        self._rendered_key = key

        if not self._visible:
            return self._clear_output()

        max_value = float(snapshot.values.max())
        if max_value <= 0.0:
            return self._clear_output()
        self._last_max = max_value

        # normalized -> LUT index, in the preallocated scratch buffers
        np.multiply(snapshot.values, self._lut_scale / max_value, out=self._scaled)
        np.rint(self._scaled, out=self._scaled)
        np.copyto(self._indices, self._scaled, casting="unsafe")
        np.take(self._lut, self._indices, axis=0, out=self._colors, mode="clip")

        if self._blur_radius > 0:
            self._blur_premultiplied()
        else:
            np.copyto(self._bitmap, self._colors)

        return self._output()

    def _blur_premultiplied(self) -> None:
        """
        Blurs `_colors` into `_bitmap` on premultiplied alpha, so transparent
        cells do not darken the colors at the edge of a hotspot.
        """
        premul, blurred, alpha = self._premul, self._blurred, self._alpha

        np.copyto(premul, self._colors)
        np.divide(premul[..., 3:], 255.0, out=alpha)
        np.multiply(premul[..., :3], alpha, out=premul[..., :3])

        cv2.GaussianBlur(
            premul,
            (0, 0),
            sigmaX=self._blur_radius,
            dst=blurred,
            sigmaY=self._blur_radius,
        )

        # Back to straight alpha. The floor only matters for cells that round
        # to alpha 0, whose color is zeroed below anyway.
        np.maximum(blurred[..., 3:], 1e-3, out=alpha)
        np.divide(blurred[..., :3], alpha, out=blurred[..., :3])
        np.multiply(blurred[..., :3], 255.0, out=blurred[..., :3])

        np.rint(blurred, out=blurred)
        np.clip(blurred, 0.0, 255.0, out=blurred)
        np.copyto(blurred[..., :3], 0.0, where=blurred[..., 3:] == 0.0)
        np.copyto(self._bitmap, blurred, casting="unsafe")

    def export_snapshot(self) -> bytes:
        """PNG encoding of the last rendered frame (transparent if none)."""
        bgra = cv2.cvtColor(self._bitmap, cv2.COLOR_RGBA2BGRA)
        ok, encoded = cv2.imencode(".png", bgra)
        if not ok:
            raise RuntimeError("PNG encoding of the heatmap snapshot failed.")
        return encoded.tobytes()
