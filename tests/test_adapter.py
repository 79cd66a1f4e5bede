"""
Tests for the landmark-to-sample adapter and the gaze mapping strategy.
"""
import unittest

from gaze_heatmap.acquisition import GazeMapper, LandmarkGazeAdapter, LinearGazeMapper, eye_displacement
from gaze_heatmap.models import EyeLandmarks, Point
from gaze_heatmap.models.landmarks import LEFT_EYE_INDICES, LEFT_IRIS_INDICES


def contour(cx, cy, half_width=20.0, tilt=4.0):
    """16 points; point 0 and point 8 are the corners, slightly tilted."""
    points = [Point(cx + half_width, cy + tilt)]
    points += [Point(cx, cy)] * 7
    points += [Point(cx - half_width, cy - tilt)]
    points += [Point(cx, cy)] * 7
    return tuple(points)


def iris(cx, cy):
    return (Point(cx - 2, cy), Point(cx + 2, cy), Point(cx, cy - 2), Point(cx, cy + 2))


def landmarks(offset_x=0.0, offset_y=0.0):
    return EyeLandmarks(
        left_eye=contour(100, 100),
        right_eye=contour(200, 100),
        left_iris=iris(100 + offset_x, 100 + offset_y),
        right_iris=iris(200 + offset_x, 100 + offset_y),
    )


class FixedMapper:
    def map(self, displacement, viewport):
        return 10.0, 20.0, 0.75


class TestLinearGazeMapper(unittest.TestCase):

    def test_centered_gaze_maps_to_screen_center(self):
        x, y, confidence = LinearGazeMapper().map((0.0, 0.0), (1000, 800))
        self.assertEqual((x, y), (500.0, 400.0))
        self.assertEqual(confidence, 1.0)

    def test_scale_factor(self):
        x, y, _ = LinearGazeMapper(scale=0.8).map((0.25, -0.25), (1000, 800))
        self.assertAlmostEqual(x, 700.0)
        self.assertAlmostEqual(y, 240.0)

    def test_output_is_clamped_to_viewport(self):
        x, y, confidence = LinearGazeMapper().map((5.0, -5.0), (1000, 800))
        self.assertEqual((x, y), (1000.0, 0.0))
        self.assertEqual(confidence, 0.1)

    def test_confidence_drops_off_axis(self):
        _, _, confidence = LinearGazeMapper().map((0.2, 0.2), (1000, 800))
        self.assertAlmostEqual(confidence, 0.8)

    def test_rejects_non_positive_scale(self):
        with self.assertRaises(ValueError):
            LinearGazeMapper(scale=0)

    def test_satisfies_protocol(self):
        self.assertIsInstance(LinearGazeMapper(), GazeMapper)


class TestLandmarkGazeAdapter(unittest.TestCase):

    def test_eye_displacement_normalizes_by_corner_span(self):
        gx, gy = eye_displacement(contour(100, 100), iris(110, 102))
        self.assertAlmostEqual(gx, 10 / 40)
        self.assertAlmostEqual(gy, 2 / 8)

    def test_level_corners_give_zero_vertical_displacement(self):
        gx, gy = eye_displacement(contour(100, 100, tilt=0.0), iris(110, 105))
        self.assertAlmostEqual(gx, 0.25)
        self.assertEqual(gy, 0.0)

    def test_straight_ahead_gaze(self):
        adapter = LandmarkGazeAdapter((1000, 800))
        result = adapter.to_sample(landmarks(), timestamp_ms=42)

        self.assertEqual((result.x, result.y), (500.0, 400.0))
        self.assertEqual(result.confidence, 1.0)
        self.assertEqual(result.timestamp_ms, 42)

    def test_both_eyes_are_averaged(self):
        adapter = LandmarkGazeAdapter((1000, 800))
        self.assertEqual(adapter.displacement(landmarks(offset_x=8.0)), (0.2, 0.0))

    def test_mapper_is_replaceable(self):
        adapter = LandmarkGazeAdapter((1000, 800), mapper=FixedMapper())
        result = adapter.to_sample(landmarks())
        self.assertEqual((result.x, result.y, result.confidence), (10.0, 20.0, 0.75))

    def test_degenerate_landmarks_are_discarded(self):
        empty = EyeLandmarks(left_eye=(), right_eye=(), left_iris=(), right_iris=())
        self.assertIsNone(LandmarkGazeAdapter((1000, 800)).to_sample(empty))

    def test_face_mesh_extraction(self):
        mesh = [(0.5, 0.5)] * 478
        mesh[LEFT_EYE_INDICES[0]] = (0.25, 0.5)
        mesh[LEFT_IRIS_INDICES[0]] = (0.75, 0.25)

        eyes = EyeLandmarks.from_face_mesh(mesh, 640, 480)
        self.assertEqual(len(eyes.left_eye), 16)
        self.assertEqual(len(eyes.right_iris), 4)
        self.assertEqual(eyes.left_eye[0], Point(160.0, 240.0))
        self.assertEqual(eyes.left_iris[0], Point(480.0, 120.0))

    def test_short_face_mesh_is_discarded(self):
        adapter = LandmarkGazeAdapter((1000, 800))
        self.assertIsNone(adapter.from_face_mesh([(0.5, 0.5)] * 468, (640, 480)))
        with self.assertRaises(ValueError):
            EyeLandmarks.from_face_mesh([(0.5, 0.5)] * 468, 640, 480)


if __name__ == '__main__':
    unittest.main()
