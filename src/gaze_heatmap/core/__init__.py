from .manager import SessionController
from .protocols import FieldView, FrameCallback
from .runner import TrackingRunner
from .state import TrackingState

__all__ = [
    "SessionController",
    "FieldView",
    "FrameCallback",
    "TrackingRunner",
    "TrackingState",
]
