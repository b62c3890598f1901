"""
State Types

Value objects shared by the parser, propagator and frame transforms: the
decoded element set, Cartesian state vectors and geodetic points.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Tuple

import numpy as np


class Frame(Enum):
    TEME = "teme"  # True Equator Mean Equinox, the native SGP4 frame
    ECEF = "ecef"  # Earth-fixed (pseudo Earth-fixed: no polar motion)


def _frozen_vector(values) -> np.ndarray:
    vec = np.array(values, dtype=float).reshape(3)
    vec.setflags(write=False)
    return vec


@dataclass(frozen=True)
class StateVector:
    """
    Cartesian position (km) and velocity (km/s) in a named frame.

    The arrays are read-only so a state can be shared safely.
    """

    position: np.ndarray
    velocity: np.ndarray
    frame: Frame = Frame.TEME

    def __post_init__(self):
        object.__setattr__(self, "position", _frozen_vector(self.position))
        object.__setattr__(self, "velocity", _frozen_vector(self.velocity))

    @property
    def radius_km(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def speed_kms(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return tuple(float(v) for v in np.concatenate((self.position, self.velocity)))


@dataclass(frozen=True)
class GeodeticPoint:
    """
    Geodetic coordinates on the WGS-84 ellipsoid.

    Latitude and longitude are stored in radians; longitude is normalized to
    [-pi, pi). Altitude is height above the ellipsoid in km.
    """

    latitude: float
    longitude: float
    altitude: float

    @property
    def latitude_deg(self) -> float:
        return math.degrees(self.latitude)

    @property
    def longitude_deg(self) -> float:
        return math.degrees(self.longitude)

    def as_degrees(self) -> Tuple[float, float, float]:
        return self.latitude_deg, self.longitude_deg, self.altitude


XPDOTP = 1440.0 / (2.0 * math.pi)  # rev/day per rad/min


@dataclass(frozen=True)
class OrbitalElements:
    """
    Mean elements decoded from a TLE, in SGP4 working units.

    Angles are radians, mean motion is rad/min, ndot and nddot are rad/min^2
    and rad/min^3. The epoch is a split Julian date (jdsatepoch ends in .5).
    """

    satnum: int
    classification: str
    intldesg: str
    epochyr: int  # two-digit year as written in the TLE
    epochdays: float
    ndot: float
    nddot: float
    bstar: float
    ephtype: int
    elnum: int
    inclo: float
    nodeo: float
    ecco: float
    argpo: float
    mo: float
    no_kozai: float
    revnum: int
    jdsatepoch: float
    jdsatepochF: float
    epoch_datetime: datetime
    name: str = ""

    @property
    def epoch_year(self) -> int:
        return 2000 + self.epochyr if self.epochyr < 57 else 1900 + self.epochyr

    @property
    def epoch_jd(self) -> float:
        return self.jdsatepoch + self.jdsatepochF

    @property
    def mean_motion_rev_per_day(self) -> float:
        return self.no_kozai * XPDOTP

    @property
    def period_minutes(self) -> float:
        return 2.0 * math.pi / self.no_kozai

    @property
    def inclination_deg(self) -> float:
        return math.degrees(self.inclo)

    @property
    def raan_deg(self) -> float:
        return math.degrees(self.nodeo)

    @property
    def arg_perigee_deg(self) -> float:
        return math.degrees(self.argpo)

    @property
    def mean_anomaly_deg(self) -> float:
        return math.degrees(self.mo)
