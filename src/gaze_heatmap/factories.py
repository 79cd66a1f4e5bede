from asyncio import Event, Queue

from .acquisition import DummyGazeSource, GazeSource, LandmarkGazeAdapter, LinearGazeMapper
from .configs import AppSettings
from .field import ColorRamp, ColorStop, DensityAccumulator, FieldRenderer

def create_color_ramp(settings: AppSettings) -> ColorRamp:
    return ColorRamp(
        ColorStop(stop.value, tuple(stop.color)) for stop in settings.field.color_ramp
    )

def create_accumulator(settings: AppSettings) -> DensityAccumulator:
    width, height = settings.viewport.size
    cfg = settings.field
    return DensityAccumulator(
        width,
        height,
        kernel_radius=cfg.kernel_radius,
        max_intensity=cfg.max_intensity,
        confidence_threshold=cfg.confidence_threshold,
    )

def create_renderer(settings: AppSettings) -> FieldRenderer:
    width, height = settings.viewport.size
    return FieldRenderer(
        width,
        height,
        ramp=create_color_ramp(settings),
        blur_radius=settings.field.blur_radius,
        ramp_resolution=settings.field.ramp_resolution,
    )

def create_sample_queue(settings: AppSettings) -> Queue:
    return Queue(maxsize=settings.tracking.queue_size)

def create_session_source(
    settings: AppSettings,
    viewport: tuple[int, int],
) -> GazeSource:
    """
    Creates a fresh source for a new tracking session.
    """
    queue = create_sample_queue(settings)
    stop_event = Event()

    if settings.tracking.source == "dummy":
        cfg = settings.dummy_source
        return DummyGazeSource(
            queue,
            stop_event,
            viewport=viewport,
            frequency=cfg.frequency,
            radius=cfg.radius,
            speed=cfg.speed,
            jitter_px=cfg.jitter_px,
            confidence=cfg.confidence,
            seed=cfg.seed,
        )

    raise ValueError(f"Unknown gaze source: {settings.tracking.source!r}")

def create_landmark_adapter(
    settings: AppSettings,
    viewport: tuple[int, int] | None = None,
) -> LandmarkGazeAdapter:
    return LandmarkGazeAdapter(
        viewport or settings.viewport.size,
        mapper=LinearGazeMapper(scale=settings.mapping.scale),
    )
