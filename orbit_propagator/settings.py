"""
Propagation Settings

Runtime configuration for TLE parsing, SGP4 propagation and the trajectory
driver. Defaults reproduce the reference model; every value can be overridden
per call or read from the environment.

Environment variables:
    ORBIT_GRAVITY_MODEL     wgs72old | wgs72 | wgs84 (default: wgs84)
    ORBIT_OPSMODE           i (improved) | a (AFSPC compatible) (default: i)
    ORBIT_VERIFY_CHECKSUM   true | false (default: true)
    ORBIT_MAX_SAMPLES       upper bound on trajectory grid size (default: 1000000)
"""

import os
from dataclasses import dataclass, replace

from orbit_propagator.gravity import EarthGravity, GravityModel, get_gravity_constants

# Orbital period (minutes) at and above which the deep-space branch is used
DEEP_SPACE_PERIOD_MIN: float = 225.0

# Geocentric radius (Earth radii) below which a satellite is reported decayed
DECAY_RADIUS_ER: float = 1.0

# Kepler solver: Newton iteration stops at this correction or iteration count
KEPLER_TOLERANCE: float = 1.0e-12
KEPLER_MAX_ITER: int = 10

# Geodetic latitude iteration (radians)
GEODETIC_TOLERANCE: float = 1.0e-12
GEODETIC_MAX_ITER: int = 10

MAX_SAMPLES: int = 1_000_000

VALID_OPSMODES = ("a", "i")


@dataclass(frozen=True)
class PropagatorConfig:
    """
    Immutable configuration shared by the parser, propagator and driver.

    A single instance can be reused across threads.
    """

    gravity_model: GravityModel = GravityModel.WGS84
    opsmode: str = "i"
    deep_space_period_min: float = DEEP_SPACE_PERIOD_MIN
    decay_radius_er: float = DECAY_RADIUS_ER
    kepler_tolerance: float = KEPLER_TOLERANCE
    kepler_max_iter: int = KEPLER_MAX_ITER
    geodetic_tolerance: float = GEODETIC_TOLERANCE
    geodetic_max_iter: int = GEODETIC_MAX_ITER
    verify_checksum: bool = True
    max_samples: int = MAX_SAMPLES

    def __post_init__(self):
        object.__setattr__(self, "gravity_model", GravityModel.coerce(self.gravity_model))
        if self.opsmode not in VALID_OPSMODES:
            raise ValueError(f"opsmode must be 'a' or 'i', got {self.opsmode!r}")
        if self.deep_space_period_min <= 0.0:
            raise ValueError("deep_space_period_min must be positive")
        if self.decay_radius_er <= 0.0:
            raise ValueError("decay_radius_er must be positive")
        if self.kepler_tolerance <= 0.0 or self.geodetic_tolerance <= 0.0:
            raise ValueError("Iteration tolerances must be positive")
        if self.kepler_max_iter < 1 or self.geodetic_max_iter < 1:
            raise ValueError("Iteration limits must be at least 1")
        if self.max_samples < 1:
            raise ValueError("max_samples must be at least 1")

    @property
    def gravity(self) -> EarthGravity:
        return get_gravity_constants(self.gravity_model)

    def with_overrides(self, **changes) -> "PropagatorConfig":
        return replace(self, **changes)

    @classmethod
    def from_env(cls) -> "PropagatorConfig":
        """Build a configuration from ORBIT_* environment variables."""
        return cls(
            gravity_model=os.getenv("ORBIT_GRAVITY_MODEL", GravityModel.WGS84.value),
            opsmode=os.getenv("ORBIT_OPSMODE", "i").strip().lower(),
            verify_checksum=os.getenv("ORBIT_VERIFY_CHECKSUM", "true").lower() == "true",
            max_samples=int(os.getenv("ORBIT_MAX_SAMPLES", str(MAX_SAMPLES))),
        )


DEFAULT_CONFIG = PropagatorConfig()
