"""
Earth Gravity Models

Gravitational constant sets used by the SGP4/SDP4 propagator. WGS-84 is the
default; the two WGS-72 variants are kept for comparison with historical
element sets and published test vectors.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from enum import Enum
from typing import NamedTuple, Union


class GravityModel(Enum):
    """Supported Earth gravity constant sets."""

    WGS72OLD = "wgs72old"
    WGS72 = "wgs72"
    WGS84 = "wgs84"

    @classmethod
    def coerce(cls, value: Union["GravityModel", str]) -> "GravityModel":
        """Accept an enum member or its case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown gravity model '{value}' (expected one of: {valid})")


class EarthGravity(NamedTuple):
    tumin: float  # minutes per canonical time unit
    mu: float  # km^3/s^2
    radiusearthkm: float  # km
    xke: float  # sqrt(mu) in Earth radii^1.5 per minute
    j2: float
    j3: float
    j4: float
    j3oj2: float


def _build(mu: float, radiusearthkm: float, j2: float, j3: float, j4: float,
           xke: float = None) -> EarthGravity:
    if xke is None:
        xke = 60.0 / math.sqrt(radiusearthkm ** 3 / mu)
    return EarthGravity(
        tumin=1.0 / xke,
        mu=mu,
        radiusearthkm=radiusearthkm,
        xke=xke,
        j2=j2,
        j3=j3,
        j4=j4,
        j3oj2=j3 / j2,
    )


_CONSTANTS = {
    GravityModel.WGS72OLD: _build(
        mu=398600.79964,
        radiusearthkm=6378.135,
        j2=0.001082616,
        j3=-0.00000253881,
        j4=-0.00000165597,
        xke=0.0743669161,
    ),
    GravityModel.WGS72: _build(
        mu=398600.8,
        radiusearthkm=6378.135,
        j2=0.001082616,
        j3=-0.00000253881,
        j4=-0.00000165597,
    ),
    GravityModel.WGS84: _build(
        mu=398600.5,
        radiusearthkm=6378.137,
        j2=0.00108262998905,
        j3=-0.00000253215306,
        j4=-0.00000161098761,
    ),
}


def get_gravity_constants(model: Union[GravityModel, str] = GravityModel.WGS84) -> EarthGravity:
    """
    Look up the constant set for a gravity model.

    Args:
        model: GravityModel member or its name ("wgs72old", "wgs72", "wgs84")

    Returns:
        EarthGravity tuple
    """
    return _CONSTANTS[GravityModel.coerce(model)]
