import logging
from importlib.metadata import version
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, PositiveFloat, PositiveInt, model_validator, Field

from .utils import LoggingConfig

logger = logging.getLogger(__name__)

class ViewportSettings(BaseModel):
    """Size of the surface the heatmap is drawn over, in pixels."""
    width_px: PositiveInt = Field(1920)
    height_px: PositiveInt = Field(1080)

    @property
    def size(self) -> tuple[int, int]:
        return self.width_px, self.height_px

class ColorStopConfig(BaseModel):
    value: float = Field(ge=0.0, le=1.0)
    color: tuple[int, int, int, float] = Field(description="(r, g, b) in 0-255, alpha in 0-1.")

def _default_color_ramp() -> list[ColorStopConfig]:
    return [
        ColorStopConfig(value=0.0, color=(0, 0, 0, 0.0)),
        ColorStopConfig(value=0.2, color=(0, 0, 255, 0.3)),
        ColorStopConfig(value=0.4, color=(0, 255, 0, 0.5)),
        ColorStopConfig(value=0.6, color=(255, 255, 0, 0.7)),
        ColorStopConfig(value=0.8, color=(255, 165, 0, 0.8)),
        ColorStopConfig(value=1.0, color=(255, 0, 0, 0.9)),
    ]

class FieldSettings(BaseModel):
    """Construction-time constants of the accumulator and renderer."""
    kernel_radius: PositiveInt = Field(30, description="Splat radius in pixels.")
    max_intensity: PositiveFloat = Field(100.0, description="Per-cell saturation cap.")
    confidence_threshold: float = Field(0.3, ge=0.0, le=1.0, description="Samples below this are discarded.")
    blur_radius: float = Field(2.0, ge=0.0, description="Sigma of the cosmetic blur, 0 disables it.")
    ramp_resolution: int = Field(1024, ge=2, le=65536, description="Entries in the color lookup table.")
    color_ramp: list[ColorStopConfig] = Field(default_factory=_default_color_ramp)

    @model_validator(mode='after')
    def validate_color_ramp(self) -> "FieldSettings":
        values = [stop.value for stop in self.color_ramp]
        if len(values) < 2 or values[0] != 0.0 or values[-1] != 1.0:
            raise ValueError('Color ramp must have at least two stops, from 0.0 to 1.0.')
        if any(b <= a for a, b in zip(values, values[1:])):
            raise ValueError('Color ramp values must be strictly ascending.')
        if self.color_ramp[0].color[3] != 0:
            raise ValueError('First color stop must be fully transparent.')
        return self

class TrackingSettings(BaseModel):
    source: Literal["dummy"] = "dummy"
    render_hz: PositiveFloat = 30.0
    queue_size: PositiveInt = 64 # ~2 seconds of samples at 30 Hz

class DummySourceConfig(BaseModel):
    frequency: PositiveInt = 30
    radius: float = Field(0.25, ge=0.0, le=0.5, description="Path radius as a fraction of the smaller viewport side.")
    speed: float = Field(0.1, description="Revolutions per second.")
    jitter_px: float = Field(15.0, ge=0.0)
    confidence: float = Field(0.9, ge=0.0, le=1.0)
    seed: int | None = None

class GazeMappingConfig(BaseModel):
    scale: PositiveFloat = Field(0.5, description="Linear displacement-to-screen scale factor.")

class AppSettings(BaseSettings):
    """
    Main application settings, loaded from environment variables and defaults.
    """
    debug: bool = False

    # Engine
    viewport: ViewportSettings = Field(default_factory=ViewportSettings)
    field: FieldSettings = Field(default_factory=FieldSettings)

    # Session
    tracking: TrackingSettings = Field(default_factory=TrackingSettings)
    dummy_source: DummySourceConfig = Field(default_factory=DummySourceConfig)
    mapping: GazeMappingConfig = Field(default_factory=GazeMappingConfig)

    # Logging
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    __version__: str = version("gaze-heatmap")

    model_config = SettingsConfigDict(
        env_prefix="HEATMAP__",
        env_file=".env",
        env_nested_delimiter='__',
        case_sensitive=False
    )

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.debug else self.logging.level
