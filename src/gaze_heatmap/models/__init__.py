from .gaze import GazeSample
from .field import CellIntensity
from .landmarks import EyeLandmarks, Point, centroid

__all__ = ["GazeSample", "CellIntensity", "EyeLandmarks", "Point", "centroid"]
