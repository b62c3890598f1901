"""
orbit_propagator: SGP4/SDP4 trajectory computation from Two-Line Element sets.

Typical use:

    from orbit_propagator import propagate_from_tle
    values = propagate_from_tle(line1, line2, duration_hours=2.0, step_minutes=30.0)
    rows = values.reshape(-1, 9)   # x, y, z, vx, vy, vz, lat, lon, alt
"""

import logging

from orbit_propagator.api import propagate_from_tle, trajectory_points
from orbit_propagator.deep_space import Resonance
from orbit_propagator.errors import (
    DecayedError,
    ErrorKind,
    InvalidElementsError,
    InvalidRequestError,
    MalformedInputError,
    OrbitPropagationError,
    PropagationError,
    PropagationFailureError,
    TrajectoryAbortedError,
)
from orbit_propagator.frames import ecef_to_geodetic, gstime, teme_to_ecef
from orbit_propagator.gravity import GravityModel, get_gravity_constants
from orbit_propagator.propagator import OrbitBranch, SatelliteRecord, initialize, propagate
from orbit_propagator.settings import DEFAULT_CONFIG, PropagatorConfig
from orbit_propagator.state import Frame, GeodeticPoint, OrbitalElements, StateVector
from orbit_propagator.tle_parser import TLEParser
from orbit_propagator.trajectory import (
    CancellationToken,
    Trajectory,
    TrajectorySample,
    compute_trajectory,
    sample_count,
)

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CancellationToken",
    "DEFAULT_CONFIG",
    "DecayedError",
    "ErrorKind",
    "Frame",
    "GeodeticPoint",
    "GravityModel",
    "InvalidElementsError",
    "InvalidRequestError",
    "MalformedInputError",
    "OrbitBranch",
    "OrbitPropagationError",
    "OrbitalElements",
    "PropagationError",
    "PropagationFailureError",
    "PropagatorConfig",
    "Resonance",
    "SatelliteRecord",
    "StateVector",
    "TLEParser",
    "Trajectory",
    "TrajectoryAbortedError",
    "TrajectorySample",
    "compute_trajectory",
    "ecef_to_geodetic",
    "get_gravity_constants",
    "gstime",
    "initialize",
    "propagate",
    "propagate_from_tle",
    "sample_count",
    "teme_to_ecef",
    "trajectory_points",
]
