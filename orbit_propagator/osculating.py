"""
Osculating Elements

Classical two-body elements of an inertial StateVector. SGP4 states carry
short period oscillations, so these differ slightly from the TLE mean elements;
the difference is a quick sanity check on an epoch state.

Angles come from atan2 on in-plane components, so they keep full precision near
0 and pi. Degenerate geometries fall back to the usual substitutes:

    circular, inclined      true anomaly -> argument of latitude, perigee 0
    elliptical, equatorial  perigee      -> longitude of perigee, node 0
    circular, equatorial    true anomaly -> true longitude

References:
    Vallado, D. A. (2013). Fundamentals of Astrodynamics and Applications (4th ed.),
    Algorithm 9 (RV2COE).
"""

import math
from typing import NamedTuple

import numpy as np

from orbit_propagator.errors import InvalidRequestError
from orbit_propagator.gravity import GravityModel, get_gravity_constants
from orbit_propagator.state import Frame, StateVector

TWOPI = 2.0 * math.pi
MU_WGS84 = get_gravity_constants(GravityModel.WGS84).mu

# Relative size below which eccentricity or the node vector counts as zero
SMALL = 1.0e-10


class OsculatingElements(NamedTuple):
    """Two-body elements; angles in radians, mean motion in rad/min."""

    semi_major_axis_km: float  # inf for a parabola, negative for a hyperbola
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    true_anomaly: float
    mean_anomaly: float
    mean_motion: float  # 0 for a parabola

    @property
    def period_minutes(self) -> float:
        if self.eccentricity >= 1.0 or self.mean_motion == 0.0:
            return math.inf
        return TWOPI / self.mean_motion


def _wrap(angle: float) -> float:
    return angle % TWOPI


def _in_plane_angle(start: np.ndarray, end: np.ndarray, normal: np.ndarray) -> float:
    """Angle from start to end, counted positive about the unit normal."""
    return _wrap(math.atan2(float(np.dot(normal, np.cross(start, end))), float(np.dot(start, end))))


def _mean_anomaly(e: float, nu: float) -> float:
    if e < 1.0:
        ecc_anomaly = 2.0 * math.atan2(math.sqrt(1.0 - e) * math.sin(nu / 2.0),
                                       math.sqrt(1.0 + e) * math.cos(nu / 2.0))
        return _wrap(ecc_anomaly - e * math.sin(ecc_anomaly))
    if e == 1.0:
        # Barker's equation
        d = math.tan(nu / 2.0)
        return d + d ** 3 / 3.0
    hyp_anomaly = 2.0 * math.atanh(math.sqrt((e - 1.0) / (e + 1.0)) * math.tan(nu / 2.0))
    return e * math.sinh(hyp_anomaly) - hyp_anomaly


def osculating_elements(state: StateVector, mu: float = MU_WGS84) -> OsculatingElements:
    """
    Convert an inertial state to osculating two-body elements.

    Args:
        state: TEME StateVector (km, km/s)
        mu: Gravitational parameter (km^3/s^2); pass record.gravity.mu to
            match the model the state came from

    Returns:
        OsculatingElements

    Raises:
        InvalidRequestError: state is Earth-fixed, or has no angular momentum
    """
    if state.frame is not Frame.TEME:
        raise InvalidRequestError(f"Osculating elements need an inertial state, got {state.frame.value}")

    r = state.position
    v = state.velocity
    r_mag = state.radius_km
    v_sq = float(np.dot(v, v))

    h = np.cross(r, v)
    h_mag = float(np.linalg.norm(h))
    if r_mag == 0.0 or h_mag == 0.0:
        raise InvalidRequestError("Osculating elements are undefined for rectilinear motion")
    h_hat = h / h_mag

    node = np.array([-h[1], h[0], 0.0])
    equatorial = float(np.linalg.norm(node)) <= SMALL * h_mag

    rdotv = float(np.dot(r, v))
    e_vec = ((v_sq - mu / r_mag) * r - rdotv * v) / mu
    e = float(np.linalg.norm(e_vec))
    circular = e <= SMALL
    if abs(e - 1.0) <= SMALL:
        e = 1.0

    inclination = math.atan2(math.hypot(h[0], h[1]), h[2])
    x_axis = np.array([1.0, 0.0, 0.0])

    raan = 0.0 if equatorial else _wrap(math.atan2(h[0], -h[1]))
    reference = x_axis if equatorial else node

    if circular:
        arg_perigee = 0.0
        true_anomaly = _in_plane_angle(reference, r, h_hat)
    else:
        arg_perigee = _in_plane_angle(reference, e_vec, h_hat)
        true_anomaly = _in_plane_angle(e_vec, r, h_hat)

    if e == 1.0:
        a = math.inf
        n = 0.0
    else:
        a = 1.0 / (2.0 / r_mag - v_sq / mu)
        n = math.sqrt(mu / abs(a) ** 3) * 60.0

    return OsculatingElements(
        semi_major_axis_km=a,
        eccentricity=e,
        inclination=inclination,
        raan=raan,
        arg_perigee=arg_perigee,
        true_anomaly=true_anomaly,
        mean_anomaly=_mean_anomaly(e, true_anomaly),
        mean_motion=n,
    )


def state_to_orbital_elements(position, velocity, mu: float = MU_WGS84) -> OsculatingElements:
    """Osculating elements of a TEME position (km) and velocity (km/s)."""
    return osculating_elements(StateVector(np.asarray(position, dtype=float),
                                           np.asarray(velocity, dtype=float)), mu)
