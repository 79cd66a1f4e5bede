from enum import Enum, auto


class TrackingState(Enum):
    """
    Operational states of a heatmap session.

    The controller moves IDLE -> TRACKING on start and TRACKING -> STOPPING
    -> IDLE on stop. The field survives every transition.
    """
    IDLE = auto()  # No source attached; the field can still be rendered.
    TRACKING = auto()  # Source, ingest loop and render loop are running.
    STOPPING = auto()  # Tasks are being wound down.
