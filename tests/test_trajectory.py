"""
Tests for the Trajectory Driver

Covers the sample count law, grid degeneracy, determinism, ordering, geodetic
ranges, decay, invalid steps and cooperative cancellation.

Run with:
    python -m pytest tests/test_trajectory.py -v
"""

import math
import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from config import (
    DECAYING_TLE,
    GEOSTATIONARY_TLE,
    LOW_PERIGEE_TLE,
    MOLNIYA_TLE,
    SAMPLE_ISS_TLE,
)
from orbit_propagator.errors import (
    DecayedError,
    ErrorKind,
    InvalidRequestError,
    PropagationFailureError,
    TrajectoryAbortedError,
)
from orbit_propagator.gravity import GravityModel
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.state import Frame
from orbit_propagator.tle_parser import TLEParser
from orbit_propagator.trajectory import (
    CancellationToken,
    compute_trajectory,
    sample_count,
)


class CancelAfter(CancellationToken):
    """Token that cancels itself after a number of checks."""

    def __init__(self, checks):
        super().__init__()
        self.remaining = checks

    @property
    def cancelled(self):
        if self.remaining <= 0:
            self.cancel()
        self.remaining -= 1
        return super().cancelled


class TestSampleCount(unittest.TestCase):

    def test_count_law(self):
        self.assertEqual(sample_count(2.0, 30.0), 5)
        self.assertEqual(sample_count(24.0, 1.0), 1441)
        self.assertEqual(sample_count(1.0, 7.0), 9)
        self.assertEqual(sample_count(0.5, 0.25), 121)

    def test_degenerate_grid(self):
        self.assertEqual(sample_count(1.0, 120.0), 1)
        self.assertEqual(sample_count(0.0, 10.0), 1)
        self.assertEqual(sample_count(-5.0, 10.0), 1)

    def test_invalid_step(self):
        for step in (0.0, -10.0, math.nan, math.inf):
            with self.subTest(step=step):
                with self.assertRaises(InvalidRequestError):
                    sample_count(2.0, step)

    def test_invalid_duration(self):
        for duration in (math.nan, math.inf, -math.inf):
            with self.subTest(duration=duration):
                with self.assertRaises(InvalidRequestError):
                    sample_count(duration, 10.0)

    def test_unbounded_grid(self):
        # finite inputs whose ratio overflows to infinity
        for duration, step in ((1e308, 30.0), (2.0, 5e-324)):
            with self.subTest(duration=duration, step=step):
                with self.assertRaises(InvalidRequestError):
                    sample_count(duration, step)


class TestComputeTrajectory(unittest.TestCase):

    def setUp(self):
        self.parser = TLEParser()
        self.iss = self.parser.parse(SAMPLE_ISS_TLE["line1"], SAMPLE_ISS_TLE["line2"])

    def test_two_hours_at_thirty_minutes(self):
        trajectory = compute_trajectory(self.iss, 2.0, 30.0)

        self.assertEqual(len(trajectory), 5)
        np.testing.assert_array_equal(trajectory.times, [0.0, 30.0, 60.0, 90.0, 120.0])
        self.assertEqual(trajectory.to_array().shape, (5, 9))
        self.assertEqual(trajectory.flatten().shape, (45,))
        self.assertEqual(trajectory.satnum, 25544)

    def test_step_longer_than_duration(self):
        trajectory = compute_trajectory(self.iss, 1.0, 90.0)
        self.assertEqual(len(trajectory), 1)
        self.assertEqual(trajectory[0].tsince, 0.0)

    def test_first_sample_is_epoch_state(self):
        sample = compute_trajectory(self.iss, 0.0, 1.0)[0]
        epoch = self.iss.propagate(0.0)

        np.testing.assert_array_equal(sample.teme.position, epoch.position)
        np.testing.assert_array_equal(sample.teme.velocity, epoch.velocity)
        self.assertIs(sample.teme.frame, Frame.TEME)
        self.assertIs(sample.ecef.frame, Frame.ECEF)
        self.assertEqual(sample.jdut1, self.iss.jdsatepoch + self.iss.jdsatepochF)

    def test_julian_date_per_sample(self):
        trajectory = compute_trajectory(self.iss, 3.0, 45.0)
        for sample in trajectory:
            expected = self.iss.jdsatepoch + (self.iss.jdsatepochF + sample.tsince / 1440.0)
            self.assertEqual(sample.jdut1, expected)

    def test_row_layout(self):
        sample = compute_trajectory(self.iss, 0.0, 1.0)[0]
        row = sample.as_row()

        self.assertEqual(len(row), 9)
        self.assertEqual(row[:6], sample.teme.as_tuple())
        self.assertAlmostEqual(row[6], math.degrees(sample.geodetic.latitude), places=12)
        self.assertAlmostEqual(row[7], math.degrees(sample.geodetic.longitude), places=12)
        self.assertEqual(row[8], sample.geodetic.altitude)

    def test_deterministic(self):
        first = compute_trajectory(self.iss, 6.0, 5.0).to_array()
        second = compute_trajectory(self.iss, 6.0, 5.0).to_array()
        self.assertTrue(np.array_equal(first, second))

    def test_concurrent_use_of_one_record(self):
        expected = compute_trajectory(self.iss, 3.0, 2.0).to_array()
        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(
                lambda _: compute_trajectory(self.iss, 3.0, 2.0).to_array(), range(8)
            ))
        for result in results:
            self.assertTrue(np.array_equal(result, expected))

    def test_time_ordering(self):
        times = compute_trajectory(self.iss, 12.0, 7.5).times
        self.assertTrue(np.all(np.diff(times) > 0.0))

    def test_geodetic_ranges(self):
        for tle in (SAMPLE_ISS_TLE, MOLNIYA_TLE, GEOSTATIONARY_TLE):
            record = self.parser.parse(tle["line1"], tle["line2"])
            rows = compute_trajectory(record, 24.0, 10.0).to_array()
            with self.subTest(satellite=tle["name"]):
                self.assertTrue(np.all(np.isfinite(rows)))
                self.assertTrue(np.all(rows[:, 6] >= -90.0))
                self.assertTrue(np.all(rows[:, 6] <= 90.0))
                self.assertTrue(np.all(rows[:, 7] >= -180.0))
                self.assertTrue(np.all(rows[:, 7] < 180.0))
                self.assertTrue(np.all(rows[:, 8] > 0.0))

    def test_resonant_span_matches_single_propagation(self):
        for tle in (MOLNIYA_TLE, GEOSTATIONARY_TLE):
            record = self.parser.parse(tle["line1"], tle["line2"])
            trajectory = compute_trajectory(record, 240.0, 97.0)
            with self.subTest(satellite=tle["name"]):
                for sample in trajectory:
                    state = record.propagate(sample.tsince)
                    self.assertTrue(np.array_equal(sample.teme.position, state.position))
                    self.assertTrue(np.array_equal(sample.teme.velocity, state.velocity))

    def test_iss_inclination_bounds_latitude(self):
        rows = compute_trajectory(self.iss, 24.0, 2.0).to_array()
        self.assertLess(np.max(np.abs(rows[:, 6])), 52.0)
        self.assertGreater(np.max(np.abs(rows[:, 6])), 50.0)

    def test_sample_limit(self):
        config = self.iss.config.with_overrides(max_samples=4)
        with self.assertRaises(InvalidRequestError):
            compute_trajectory(self.iss, 2.0, 30.0, config=config)

    def test_invalid_step_before_propagation(self):
        for step in (0.0, -30.0):
            with self.subTest(step=step):
                with self.assertRaises(InvalidRequestError):
                    compute_trajectory(self.iss, 2.0, step)


class TestTrajectoryAbort(unittest.TestCase):

    def setUp(self):
        parser = TLEParser()
        self.iss = parser.parse(SAMPLE_ISS_TLE["line1"], SAMPLE_ISS_TLE["line2"])
        self.decaying = parser.parse(DECAYING_TLE["line1"], DECAYING_TLE["line2"])

    def test_decay(self):
        with self.assertRaises(TrajectoryAbortedError) as ctx:
            compute_trajectory(self.decaying, 720.0, 60.0)

        error = ctx.exception
        self.assertIs(error.kind, ErrorKind.DECAYED)
        self.assertIsInstance(error.cause, DecayedError)
        self.assertEqual(error.code, 6)
        self.assertGreater(error.index, 0)
        self.assertEqual(error.samples_completed, error.index)
        self.assertEqual(error.tsince, error.index * 60.0)

    def test_decay_prefix_is_valid(self):
        with self.assertRaises(TrajectoryAbortedError) as ctx:
            compute_trajectory(self.decaying, 720.0, 60.0)
        completed = ctx.exception.samples_completed

        # the samples before the failure can be recomputed on their own
        hours = (completed - 1) * 60.0 / 60.0
        trajectory = compute_trajectory(self.decaying, hours, 60.0)
        self.assertEqual(len(trajectory), completed)
        self.assertTrue(np.all(trajectory.to_array()[:, 8] > -50.0))

    def test_propagation_failure(self):
        parser = TLEParser(PropagatorConfig(gravity_model=GravityModel.WGS72))
        record = parser.parse(LOW_PERIGEE_TLE["line1"], LOW_PERIGEE_TLE["line2"])

        result = None
        with self.assertRaises(TrajectoryAbortedError) as ctx:
            result = compute_trajectory(record, 48.0, 120.0)

        error = ctx.exception
        self.assertIsNone(result)
        self.assertIs(error.kind, ErrorKind.PROPAGATION_FAILURE)
        self.assertIsInstance(error.cause, PropagationFailureError)
        self.assertEqual(error.code, 1)
        self.assertEqual(error.index, 13)
        self.assertEqual(error.samples_completed, 13)
        self.assertEqual(error.tsince, 1560.0)
        self.assertIn("sample 13", str(error))

        # the grid up to the last good sample still completes
        self.assertEqual(len(compute_trajectory(record, 24.0, 120.0)), 13)

    def test_cancelled_before_start(self):
        token = CancellationToken()
        token.cancel()
        self.assertTrue(token.cancelled)

        with self.assertRaises(TrajectoryAbortedError) as ctx:
            compute_trajectory(self.iss, 2.0, 30.0, cancel_token=token)
        self.assertIs(ctx.exception.kind, ErrorKind.INVALID_REQUEST)
        self.assertIsInstance(ctx.exception.cause, InvalidRequestError)
        self.assertEqual(ctx.exception.index, 0)

    def test_cancelled_mid_run(self):
        with self.assertRaises(TrajectoryAbortedError) as ctx:
            compute_trajectory(self.iss, 2.0, 30.0, cancel_token=CancelAfter(3))
        self.assertEqual(ctx.exception.samples_completed, 3)
        self.assertEqual(ctx.exception.tsince, 90.0)

    def test_uncancelled_token(self):
        trajectory = compute_trajectory(self.iss, 2.0, 30.0, cancel_token=CancellationToken())
        self.assertEqual(len(trajectory), 5)


if __name__ == "__main__":
    unittest.main()
