"""
Unit Tests for the SGP4/SDP4 Propagator

Tests record initialization, the Kepler solver, immutability and the error
codes raised for physically invalid element sets.

Run with:
    python -m pytest tests/test_propagator.py -v
"""

import math
import unittest
from dataclasses import FrozenInstanceError, replace

import numpy as np

from config import DEEP_SPACE_TLE, LOW_PERIGEE_TLE, MOLNIYA_TLE, SAMPLE_ISS_TLE
from orbit_propagator.errors import (
    ErrorKind,
    InvalidElementsError,
    InvalidRequestError,
    PropagationFailureError,
)
from orbit_propagator.gravity import GravityModel
from orbit_propagator.propagator import initialize, propagate, solve_kepler
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.state import Frame
from orbit_propagator.tle_parser import TLEParser


class TestInitialization(unittest.TestCase):

    def setUp(self):
        self.parser = TLEParser()
        self.elements = self.parser.parse_tle(SAMPLE_ISS_TLE["line1"], SAMPLE_ISS_TLE["line2"])

    def test_derived_constants(self):
        record = initialize(self.elements)
        re = record.gravity.radiusearthkm

        # ISS: roughly 92.9 minute period, 410-430 km altitude
        self.assertAlmostEqual(record.period_minutes, 92.9, delta=0.3)
        self.assertGreater(record.perigee_altitude_km, 380.0)
        self.assertLess(record.apogee_altitude_km, 450.0)
        self.assertAlmostEqual(record.a * re, 6795.0, delta=15.0)
        self.assertGreaterEqual(record.gsto, 0.0)
        self.assertLess(record.gsto, 2.0 * math.pi)

    def test_eccentricity_out_of_range(self):
        with self.assertRaises(InvalidElementsError) as ctx:
            initialize(replace(self.elements, ecco=1.2))
        self.assertEqual(ctx.exception.code, 1)
        self.assertIs(ctx.exception.kind, ErrorKind.INVALID_ELEMENTS)

    def test_non_positive_mean_motion(self):
        with self.assertRaises(InvalidElementsError) as ctx:
            initialize(replace(self.elements, no_kozai=0.0))
        self.assertEqual(ctx.exception.code, 2)

    def test_suborbital_perigee(self):
        with self.assertRaises(InvalidElementsError) as ctx:
            initialize(replace(self.elements, ecco=0.5))
        self.assertEqual(ctx.exception.code, 5)


class TestPropagation(unittest.TestCase):

    def setUp(self):
        parser = TLEParser()
        self.iss = parser.parse(SAMPLE_ISS_TLE["line1"], SAMPLE_ISS_TLE["line2"])
        self.molniya = parser.parse(MOLNIYA_TLE["line1"], MOLNIYA_TLE["line2"])
        self.tdrss = parser.parse(DEEP_SPACE_TLE["line1"], DEEP_SPACE_TLE["line2"])

    def test_epoch_state_is_physical(self):
        state = self.iss.propagate(0.0)
        self.assertIs(state.frame, Frame.TEME)
        self.assertAlmostEqual(state.radius_km, 6795.0, delta=25.0)
        self.assertAlmostEqual(state.speed_kms, 7.66, delta=0.05)

    def test_repeatable(self):
        for record in (self.iss, self.molniya, self.tdrss):
            with self.subTest(satellite=record.satnum):
                first = record.propagate(1234.5)
                second = propagate(record, 1234.5)
                self.assertTrue(np.array_equal(first.position, second.position))
                self.assertTrue(np.array_equal(first.velocity, second.velocity))

    def test_out_of_order_times(self):
        # resonance integration restarts from epoch for every call
        forward = [self.molniya.propagate(t).position for t in (0.0, 1440.0, 2880.0)]
        backward = [self.molniya.propagate(t).position for t in (2880.0, 1440.0, 0.0)]
        for a, b in zip(forward, reversed(backward)):
            self.assertTrue(np.array_equal(a, b))

    def test_negative_time(self):
        state = self.iss.propagate(-90.0)
        self.assertAlmostEqual(state.radius_km, 6795.0, delta=30.0)

    def test_non_finite_time(self):
        for tsince in (math.nan, math.inf, -math.inf):
            with self.subTest(tsince=tsince):
                with self.assertRaises(InvalidRequestError):
                    self.iss.propagate(tsince)

    def test_eccentricity_leaves_range(self):
        parser = TLEParser(PropagatorConfig(gravity_model=GravityModel.WGS72))
        record = parser.parse(LOW_PERIGEE_TLE["line1"], LOW_PERIGEE_TLE["line2"])
        self.assertGreater(record.propagate(1440.0).radius_km, 6378.135)

        with self.assertRaises(PropagationFailureError) as ctx:
            record.propagate(1560.0)
        self.assertEqual(ctx.exception.code, 1)
        self.assertIs(ctx.exception.kind, ErrorKind.PROPAGATION_FAILURE)
        self.assertEqual(ctx.exception.tsince, 1560.0)

    def test_resonance_checkpoints(self):
        self.assertIsNone(self.iss.checkpoints(10000.0))
        self.assertIsNone(self.tdrss.checkpoints(10000.0))

        checkpoints = self.molniya.checkpoints(10000.0)
        self.assertEqual(len(checkpoints.states), 14)
        self.assertEqual(checkpoints.step, 720.0)
        for tsince in (0.0, 500.0, 1440.0, 4321.5, 9999.0, 15000.0, -3000.0):
            with self.subTest(tsince=tsince):
                resumed = self.molniya.propagate(tsince, checkpoints)
                direct = self.molniya.propagate(tsince)
                self.assertTrue(np.array_equal(resumed.position, direct.position))
                self.assertTrue(np.array_equal(resumed.velocity, direct.velocity))

    def test_record_is_immutable(self):
        with self.assertRaises(FrozenInstanceError):
            self.iss.cc1 = 0.0
        with self.assertRaises(FrozenInstanceError):
            self.iss.elements.bstar = 0.0

        state = self.iss.propagate(0.0)
        with self.assertRaises(ValueError):
            state.position[0] = 0.0


class TestKeplerSolver(unittest.TestCase):

    def test_circular(self):
        eo1, _, _ = solve_kepler(1.25, 0.0, 0.0)
        self.assertEqual(eo1, 1.25)

    def test_residual(self):
        for axnl, aynl in ((0.1, 0.0), (0.3, -0.2), (0.0, 0.5), (0.45, 0.1)):
            for u in np.linspace(-math.pi, math.pi, 13):
                with self.subTest(axnl=axnl, aynl=aynl, u=u):
                    eo1, _, _ = solve_kepler(u, axnl, aynl)
                    residual = eo1 - axnl * math.sin(eo1) + aynl * math.cos(eo1) - u
                    self.assertAlmostEqual(residual, 0.0, places=10)

    def test_step_is_bounded(self):
        eo1, sin_e, cos_e = solve_kepler(3.0, 0.99, 0.0, max_iter=1)
        self.assertLessEqual(abs(eo1 - 3.0), 0.95 + 1.0e-15)
        self.assertEqual(sin_e, math.sin(3.0))
        self.assertEqual(cos_e, math.cos(3.0))


if __name__ == "__main__":
    unittest.main()
