"""
Tests for the host-facing API and request models

Run with:
    python -m pytest tests/test_api.py -v
"""

import math
import unittest

import numpy as np
from pydantic import ValidationError

from config import DECAYING_TLE, SAMPLE_ISS_TLE
from orbit_propagator import propagate_from_tle, trajectory_points
from orbit_propagator.errors import (
    ErrorKind,
    InvalidRequestError,
    MalformedInputError,
    TrajectoryAbortedError,
)
from orbit_propagator.gravity import GravityModel
from orbit_propagator.schemas import TrajectoryPoint, TrajectoryRequest
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.tle_parser import TLEParser
from orbit_propagator.trajectory import CancellationToken

LINE1 = SAMPLE_ISS_TLE["line1"]
LINE2 = SAMPLE_ISS_TLE["line2"]


class TestPropagateFromTle(unittest.TestCase):

    def test_flat_layout(self):
        values = propagate_from_tle(LINE1, LINE2, 2.0, 30.0)

        self.assertEqual(values.shape, (45,))
        self.assertEqual(values.dtype, np.float64)

        epoch = TLEParser().parse(LINE1, LINE2).propagate(0.0)
        np.testing.assert_array_equal(values[0:3], epoch.position)
        np.testing.assert_array_equal(values[3:6], epoch.velocity)

        rows = values.reshape(-1, 9)
        self.assertTrue(np.all(np.abs(rows[:, 6]) <= 90.0))
        self.assertTrue(np.all(rows[:, 8] > 300.0))

    def test_negative_duration_gives_epoch_sample(self):
        values = propagate_from_tle(LINE1, LINE2, -3.0, 10.0)
        self.assertEqual(values.shape, (9,))

    def test_gravity_model_selection(self):
        wgs84 = propagate_from_tle(LINE1, LINE2, 1.0, 60.0)
        wgs72 = propagate_from_tle(
            LINE1, LINE2, 1.0, 60.0, config=PropagatorConfig(gravity_model=GravityModel.WGS72)
        )
        self.assertFalse(np.array_equal(wgs84, wgs72))
        self.assertLess(np.max(np.abs(wgs84[0:3] - wgs72[0:3])), 5.0)

    def test_null_lines(self):
        with self.assertRaises(MalformedInputError):
            propagate_from_tle(None, LINE2, 2.0, 30.0)
        with self.assertRaises(MalformedInputError):
            propagate_from_tle(LINE1, None, 2.0, 30.0)

    def test_malformed_line(self):
        with self.assertRaises(MalformedInputError):
            propagate_from_tle(LINE1[:-1] + "0", LINE2, 2.0, 30.0)

    def test_invalid_request(self):
        cases = [
            (2.0, 0.0),
            (2.0, -5.0),
            (2.0, math.nan),
            (math.nan, 30.0),
            (math.inf, 30.0),
            (2.0, "thirty"),
            (1e308, 30.0),
            (2.0, 5e-324),
        ]
        for duration, step in cases:
            with self.subTest(duration=duration, step=step):
                with self.assertRaises(InvalidRequestError) as ctx:
                    propagate_from_tle(LINE1, LINE2, duration, step)
                self.assertIs(ctx.exception.kind, ErrorKind.INVALID_REQUEST)

    def test_decay_is_reported(self):
        with self.assertRaises(TrajectoryAbortedError) as ctx:
            propagate_from_tle(DECAYING_TLE["line1"], DECAYING_TLE["line2"], 720.0, 60.0)
        self.assertIs(ctx.exception.kind, ErrorKind.DECAYED)

    def test_cancellation(self):
        token = CancellationToken()
        token.cancel()
        with self.assertRaises(TrajectoryAbortedError):
            propagate_from_tle(LINE1, LINE2, 2.0, 30.0, cancel_token=token)


class TestTrajectoryPoints(unittest.TestCase):

    def test_points_match_flat_values(self):
        points = trajectory_points(LINE1, LINE2, 2.0, 30.0)
        values = propagate_from_tle(LINE1, LINE2, 2.0, 30.0).reshape(-1, 9)

        self.assertEqual(len(points), 5)
        self.assertIsInstance(points[0], TrajectoryPoint)
        self.assertEqual([p.tsince_minutes for p in points], [0.0, 30.0, 60.0, 90.0, 120.0])
        for point, row in zip(points, values):
            self.assertEqual(
                [point.x_km, point.y_km, point.z_km, point.vx_kms, point.vy_kms,
                 point.vz_kms, point.latitude_deg, point.longitude_deg, point.altitude_km],
                list(row),
            )


class TestTrajectoryRequest(unittest.TestCase):

    def test_valid(self):
        request = TrajectoryRequest(line1=LINE1, line2=LINE2, duration_hours=2, step_minutes=30)
        self.assertEqual(request.duration_hours, 2.0)
        self.assertEqual(request.step_minutes, 30.0)

    def test_step_must_be_positive(self):
        with self.assertRaises(ValidationError):
            TrajectoryRequest(line1=LINE1, line2=LINE2, duration_hours=2.0, step_minutes=0.0)

    def test_values_must_be_finite(self):
        with self.assertRaises(ValidationError):
            TrajectoryRequest(line1=LINE1, line2=LINE2, duration_hours=math.inf, step_minutes=1.0)


if __name__ == "__main__":
    unittest.main()
