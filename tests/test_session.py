"""
Tests for the tracking runner and the session controller.
"""
import asyncio
import unittest
from asyncio import Event, Queue

import numpy as np

from gaze_heatmap.acquisition import DummyGazeSource, IterableGazeSource, LandmarkGazeAdapter
from gaze_heatmap.configs import AppSettings
from gaze_heatmap.core import FieldView, SessionController, TrackingRunner, TrackingState
from gaze_heatmap.field import DensityAccumulator, FieldRenderer
from gaze_heatmap.models import GazeSample


def sample(x, y, confidence=1.0, ts=0):
    return GazeSample(x=x, y=y, confidence=confidence, timestamp_ms=ts)


def small_settings() -> AppSettings:
    return AppSettings(
        viewport={"width_px": 200, "height_px": 150},
        tracking={"render_hz": 100.0, "queue_size": 16},
        dummy_source={"frequency": 200, "jitter_px": 0.0, "seed": 1},
    )


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time.")
        await asyncio.sleep(0.01)


class TestTrackingRunner(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.acc = DensityAccumulator(200, 150, kernel_radius=10)
        self.renderer = FieldRenderer(200, 150, blur_radius=0)
        self.frames = []

    def make_runner(self, samples, queue_size=16):
        source = IterableGazeSource(Queue(maxsize=queue_size), Event(), samples=samples)
        return TrackingRunner(
            source,
            self.acc,
            self.renderer,
            render_hz=100.0,
            stop_timeout_s=0.1,
            on_frame=lambda frame: self.frames.append(np.array(frame)),
        )

    async def test_samples_are_ingested_and_rendered(self):
        samples = [sample(50, 50), sample(150, 100), sample(-10, 20), sample(60, 60, confidence=0.1)]
        runner = self.make_runner(samples)

        await runner.start()
        await wait_until(lambda: runner.samples_ingested + runner.samples_rejected == 4)
        frames_before = runner.frames_rendered
        await wait_until(lambda: runner.frames_rendered >= frames_before + 2)
        await runner.stop()

        self.assertEqual(runner.samples_ingested, 2)
        self.assertEqual(runner.samples_rejected, 2)
        self.assertEqual(runner.last_sample, samples[-1])
        self.assertEqual(self.acc.value_at(50, 50), 2.0)
        self.assertTrue(self.frames[-1].any())
        self.assertFalse(runner.is_running)

    async def test_render_loop_keeps_ticking_without_samples(self):
        async def silent():
            await asyncio.sleep(10)
            yield sample(50, 50)

        runner = self.make_runner(silent())
        await runner.start()
        await wait_until(lambda: runner.frames_rendered >= 3)
        await runner.stop()

        self.assertEqual(runner.samples_ingested, 0)
        self.assertFalse(self.frames[-1].any())

    async def test_failing_frame_callback_does_not_stop_loop(self):
        calls = []

        def broken(frame):
            calls.append(1)
            raise RuntimeError("display gone")

        source = IterableGazeSource(Queue(), Event(), samples=[sample(50, 50)])
        runner = TrackingRunner(source, self.acc, self.renderer, render_hz=100.0, on_frame=broken)

        await runner.start()
        await wait_until(lambda: len(calls) >= 3)
        await runner.stop()

    async def test_failing_source_leaves_field_renderable(self):
        async def crashing():
            yield sample(50, 50)
            raise OSError("camera unplugged")

        runner = self.make_runner(crashing())
        with self.assertLogs("gaze_heatmap.core.runner", level="ERROR"):
            await runner.start()
            await wait_until(lambda: runner.samples_ingested == 1)
            frames_before = runner.frames_rendered
            await wait_until(lambda: runner.frames_rendered > frames_before + 2)
        await runner.stop()

        self.assertEqual(self.acc.value_at(50, 50), 2.0)

    async def test_malformed_item_does_not_stop_ingestion(self):
        samples = [sample(50, 50), GazeSample(x=10, y=10, confidence=None, timestamp_ms=0), sample(100, 100)]
        runner = self.make_runner(samples)

        with self.assertLogs("gaze_heatmap.core.runner", level="WARNING") as logs:
            await runner.start()
            await wait_until(lambda: runner.samples_ingested + runner.samples_rejected == 3)
        await runner.stop()

        self.assertIn("malformed gaze item", "\n".join(logs.output))
        self.assertEqual(runner.samples_ingested, 2)
        self.assertEqual(runner.samples_rejected, 1)
        self.assertEqual(runner.last_sample, samples[-1])
        self.assertEqual(self.acc.value_at(100, 100), 2.0)
        self.assertFalse(runner.is_running)

    async def test_stop_leaves_field_untouched(self):
        runner = self.make_runner([sample(50, 50)])
        await runner.start()
        await wait_until(lambda: runner.samples_ingested == 1)
        await runner.stop()

        before = np.array(self.acc.snapshot().values)
        await asyncio.sleep(0.05)
        self.assertTrue(np.array_equal(before, self.acc.snapshot().values))
        self.assertEqual(self.acc.value_at(50, 50), 2.0)

    async def test_full_queue_keeps_newest_samples(self):
        queue = Queue(maxsize=2)
        source = IterableGazeSource(queue, Event(), samples=[])
        for x in (10, 20, 30, 40):
            source._emit(sample(x, 10))

        self.assertEqual(source.dropped, 2)
        self.assertEqual(source.emitted, 4)
        self.assertEqual([queue.get_nowait().x, queue.get_nowait().x], [30, 40])

    def test_rejects_non_positive_render_rate(self):
        source = IterableGazeSource(Queue(), Event(), samples=[])
        with self.assertRaises(ValueError):
            TrackingRunner(source, self.acc, self.renderer, render_hz=0)


class TestSessionController(unittest.IsolatedAsyncioTestCase):

    async def test_dummy_session_accumulates_gaze(self):
        frames = []
        session = SessionController(small_settings(), on_frame=frames.append)
        self.assertEqual(session.state, TrackingState.IDLE)

        self.assertTrue(await session.start_tracking())
        self.assertEqual(session.state, TrackingState.TRACKING)
        self.assertTrue(session.is_tracking)
        await wait_until(lambda: session.accumulator.total_intensity() > 0)
        await wait_until(lambda: len(frames) > 0)
        await session.stop_tracking()

        self.assertEqual(session.state, TrackingState.IDLE)
        self.assertFalse(session.is_tracking)
        self.assertIsNotNone(session.last_sample)
        self.assertTrue(session.render_frame().any())

    async def test_double_start_is_refused(self):
        session = SessionController(small_settings())
        self.assertTrue(await session.start_tracking(session.create_source([])))
        self.assertFalse(await session.start_tracking(session.create_source([])))
        await session.stop_tracking()
        # Stopping twice is harmless.
        await session.stop_tracking()

    async def test_external_stream_session(self):
        session = SessionController(small_settings())
        stream = [sample(40, 40, ts=i) for i in range(5)]

        await session.start_tracking(session.create_source(stream))
        await wait_until(lambda: session.runner.samples_ingested == 5)
        await session.stop_tracking()

        self.assertEqual(session.accumulator.value_at(40, 40), 10.0)
        self.assertEqual(session.last_sample.timestamp_ms, 4)

    async def test_resize_while_tracking_keeps_components_in_lockstep(self):
        session = SessionController(small_settings())
        await session.start_tracking()
        await wait_until(lambda: session.runner.frames_rendered > 0)

        session.resize(120, 90)
        frames_before = session.runner.frames_rendered
        await wait_until(lambda: session.runner.frames_rendered > frames_before + 2)
        await session.stop_tracking()

        self.assertEqual(session.viewport, (120, 90))
        self.assertEqual((session.renderer.width, session.renderer.height), (120, 90))
        self.assertEqual(session.render_frame().shape, (90, 120, 4))

    async def test_resize_while_tracking_rescales_dummy_path(self):
        session = SessionController(small_settings())
        await session.start_tracking()
        await wait_until(lambda: session.runner.samples_ingested > 0)

        session.resize(120, 90)
        runner = session.runner
        seen = runner.samples_ingested + runner.samples_rejected
        # Flush whatever was queued for the old size.
        await wait_until(lambda: runner.samples_ingested + runner.samples_rejected > seen + 40)
        rejected = runner.samples_rejected
        await wait_until(lambda: runner.samples_ingested + runner.samples_rejected > seen + 80)
        last = session.last_sample
        await session.stop_tracking()

        self.assertEqual(runner.samples_rejected, rejected)
        self.assertLess(last.x, 120)
        self.assertLess(last.y, 90)

    async def test_resize_while_tracking_reaches_external_adapter(self):
        session = SessionController(small_settings())
        adapter = LandmarkGazeAdapter(session.viewport)

        async def stream():
            while True:
                await asyncio.sleep(0.01)
                yield None

        await session.start_tracking(session.create_source(stream(), on_viewport=adapter.set_viewport))
        session.resize(80, 60)
        await session.stop_tracking()

        self.assertEqual(adapter.viewport, (80, 60))
        # Resizing while idle has no source to notify.
        session.resize(40, 30)
        self.assertEqual(adapter.viewport, (80, 60))

    async def test_controls(self):
        session = SessionController(small_settings())
        self.assertIsInstance(session, FieldView)

        self.assertTrue(session.ingest(sample(100, 75)))
        self.assertEqual(session.last_sample, sample(100, 75))
        self.assertTrue(session.render_frame().any())

        self.assertFalse(session.toggle_visible())
        self.assertFalse(session.render_frame().any())
        self.assertTrue(session.toggle_visible())

        session.clear()
        self.assertFalse(session.render_frame().any())
        self.assertEqual(session.viewport, (200, 150))

        session.resize(64, 48)
        self.assertEqual(session.accumulator.snapshot().values.size, 64 * 48)
        with self.assertRaises(ValueError):
            session.resize(0, 48)
        self.assertEqual(session.viewport, (64, 48))

        self.assertTrue(session.export_snapshot().startswith(b"\x89PNG"))

    async def test_dummy_source_follows_viewport(self):
        queue = Queue(maxsize=8)
        source = DummyGazeSource(
            queue, Event(), viewport=(200, 100), frequency=500, radius=0.25, jitter_px=0.0,
        )
        task = asyncio.create_task(source.run())
        await wait_until(lambda: queue.qsize() >= 3)
        await source.stop()
        await task

        while not queue.empty():
            item = queue.get_nowait()
            self.assertLessEqual(abs(item.x - 100.0), 25.0 + 1e-6)
            self.assertLessEqual(abs(item.y - 50.0), 25.0 + 1e-6)
            self.assertEqual(item.confidence, 0.9)
        self.assertTrue(source.is_stopped)


if __name__ == '__main__':
    unittest.main()
