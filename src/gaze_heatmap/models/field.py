from dataclasses import dataclass

@dataclass(slots=True, frozen=True)
class CellIntensity:
    """Accumulated intensity of one non-empty field cell."""
    x: int
    y: int
    value: float
