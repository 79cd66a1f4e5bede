from typing import Callable, Protocol, runtime_checkable

import numpy as np

# Receives every rendered RGBA frame. The array is only valid during the call.
FrameCallback = Callable[[np.ndarray], None]


@runtime_checkable
class FieldView(Protocol):
    """
    What the presentation layer needs from a session.

    Whether it's a Qt widget, a web socket bridge or a CLI, it can drive the
    session through these calls.
    """
    def set_visible(self, visible: bool) -> None: ...

    def clear(self) -> None: ...

    def resize(self, width: int, height: int) -> None: ...

    def export_snapshot(self) -> bytes: ...
