from dataclasses import dataclass

@dataclass(slots=True, frozen=True)
class GazeSample:
    """
    A single, immutable estimate of where the user is looking.

    This is the only shape in which gaze data reaches the heatmap engine.
    Coordinates are viewport pixels and may lie outside the viewport; the
    accumulator clips them. Once ingested, only its aggregated effect on the
    density field survives.
    """
    x: float
    y: float
    confidence: float
    timestamp_ms: int
