import argparse
import asyncio
import logging
import sys
from pathlib import Path

from gaze_heatmap.configs.app import AppSettings
from gaze_heatmap.core import SessionController


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gaze-heatmap",
        description="Run a simulated gaze session and export the resulting heatmap."
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=5.0,
        help="Seconds to track before exporting."
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("heatmap.png"),
        help="Where to write the PNG snapshot."
    )
    parser.add_argument("--width", type=int, help="Viewport width in pixels.")
    parser.add_argument("--height", type=int, help="Viewport height in pixels.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and per-second FPS reports."
    )
    return parser.parse_args(argv)


async def run_session(settings: AppSettings, duration_s: float, output: Path) -> None:
    logger = logging.getLogger("main")
    session = SessionController(settings)

    if not await session.start_tracking():
        raise RuntimeError("Tracking session could not be started.")
    try:
        await asyncio.sleep(duration_s)
    finally:
        await session.stop_tracking()

    # One last frame so the export includes samples ingested after the final tick.
    session.render_frame()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(session.export_snapshot())
    logger.info(f"Heatmap written to {output} ({session.renderer.last_max_value:.1f} peak intensity).")


def main(argv=None):
    args = parse_args(argv)

    # 1. Load Configuration
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)

    if args.debug:
        settings.debug = True
    if args.width:
        settings.viewport.width_px = args.width
    if args.height:
        settings.viewport.height_px = args.height

    # 2. Setup Logging
    logging.basicConfig(
        level=settings.log_level,
        format=settings.logging.format,
        stream=sys.stdout
    )
    logger = logging.getLogger("main")
    logger.info(f"Starting Gaze Heatmap v{settings.__version__}")

    # 3. Run
    try:
        asyncio.run(run_session(settings, args.duration, args.output))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    except Exception:
        logger.exception("Fatal Application Error")
        sys.exit(1)
    finally:
        logger.info("Gaze Heatmap has shut down.")

if __name__ == "__main__":
    main()
