from .app import (
    AppSettings,
    ColorStopConfig,
    DummySourceConfig,
    FieldSettings,
    GazeMappingConfig,
    TrackingSettings,
    ViewportSettings,
)
from .utils import LoggingConfig

__all__ = [
    "AppSettings",
    "ColorStopConfig",
    "DummySourceConfig",
    "FieldSettings",
    "GazeMappingConfig",
    "LoggingConfig",
    "TrackingSettings",
    "ViewportSettings",
]
