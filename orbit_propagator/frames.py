"""
Frame Transforms and Time Utilities

Converts SGP4 output from the TEME frame to Earth-fixed coordinates and then
to WGS-84 geodetic latitude, longitude and altitude.

The TEME to Earth-fixed rotation uses Greenwich mean sidereal time only. The
equation of the equinoxes and polar motion are deliberately left out: TEME is
defined against the mean equinox, and sub-arcsecond frame corrections are below
the accuracy of the SGP4 model itself.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
    Bowring, B. R. (1976). Transformation from spatial to geographical
    coordinates. Survey Review, 23(181).
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Tuple

import numpy as np

from orbit_propagator.errors import InvalidRequestError
from orbit_propagator.settings import GEODETIC_MAX_ITER, GEODETIC_TOLERANCE
from orbit_propagator.state import Frame, GeodeticPoint, StateVector

TWOPI = 2.0 * math.pi
DEG2RAD = math.pi / 180.0

# WGS-84 ellipsoid
WGS84_A_KM = 6378.137
WGS84_F = 1.0 / 298.257223563
WGS84_B_KM = WGS84_A_KM * (1.0 - WGS84_F)
WGS84_E2 = WGS84_F * (2.0 - WGS84_F)
WGS84_EP2 = WGS84_E2 / (1.0 - WGS84_E2)

# Earth rotation rate (rad/s)
OMEGA_EARTH = 7.292115146706979e-5

# Below this distance from the spin axis (km) a point is treated as polar
POLAR_AXIS_DISTANCE_KM = 1.0e-9

JD_J2000 = 2451545.0


def _require_finite(values, what: str) -> None:
    if not np.all(np.isfinite(np.asarray(values, dtype=float))):
        raise InvalidRequestError(f"Non-finite {what}: {values}")


def jday(year: int, mon: int, day: int, hr: int = 0, minute: int = 0,
         sec: float = 0.0) -> Tuple[float, float]:
    """
    Julian date split into a whole-day part (ending in .5) and a fraction.

    Valid for years 1900 through 2100.

    Returns:
        Tuple of (jd, fraction)
    """
    jd = (367.0 * year
          - math.floor((7 * (year + math.floor((mon + 9) / 12.0))) * 0.25)
          + math.floor(275 * mon / 9.0)
          + day + 1721013.5)
    fraction = (sec + minute * 60.0 + hr * 3600.0) / 86400.0
    if abs(fraction) > 1.0:
        whole = math.floor(fraction)
        jd += whole
        fraction -= whole
    return jd, fraction


def days2mdhms(year: int, days: float) -> Tuple[int, int, int, int, float]:
    """
    Convert a day-of-year value (1.0 = Jan 1 00:00) to month, day and time.

    Returns:
        Tuple of (month, day, hour, minute, second)
    """
    lmonth = [31, 29 if year % 4 == 0 else 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

    dayofyr = int(math.floor(days))
    i = 1
    inttemp = 0
    while dayofyr > inttemp + lmonth[i - 1] and i < 12:
        inttemp += lmonth[i - 1]
        i += 1
    mon = i
    day = dayofyr - inttemp

    temp = (days - dayofyr) * 24.0
    hr = int(math.floor(temp))
    temp = (temp - hr) * 60.0
    minute = int(math.floor(temp))
    sec = (temp - minute) * 60.0
    return mon, day, hr, minute, sec


def invjday(jd: float, fraction: float = 0.0) -> Tuple[int, int, int, int, int, float]:
    """
    Calendar date and time from a split Julian date.

    Returns:
        Tuple of (year, month, day, hour, minute, second)
    """
    if abs(fraction) >= 1.0:
        whole = math.floor(fraction)
        jd += whole
        fraction -= whole

    # move any fraction of a day carried in jd into the fraction
    dt = jd - math.floor(jd) - 0.5
    if abs(dt) > 1.0e-8:
        jd -= dt
        fraction += dt

    temp = jd - 2415019.5
    tu = temp / 365.25
    year = 1900 + int(math.floor(tu))
    leapyrs = int(math.floor((year - 1901) * 0.25))
    days = math.floor(temp - ((year - 1900) * 365.0 + leapyrs))

    if days + fraction < 1.0:
        year -= 1
        leapyrs = int(math.floor((year - 1901) * 0.25))
        days = math.floor(temp - ((year - 1900) * 365.0 + leapyrs))

    mon, day, hr, minute, sec = days2mdhms(year, days + fraction)
    return year, mon, day, hr, minute, sec


def datetime_to_jd(dt: datetime) -> Tuple[float, float]:
    """
    Convert a datetime to a split Julian date.

    Naive datetimes are taken to be UTC.

    Args:
        dt: Datetime object

    Returns:
        Tuple of (julian_day, fraction)
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    sec = dt.second + dt.microsecond / 1.0e6
    return jday(dt.year, dt.month, dt.day, dt.hour, dt.minute, sec)


def jd_to_datetime(jd: float, fraction: float = 0.0) -> datetime:
    """Convert a split Julian date to a UTC datetime (microsecond resolution)."""
    year, mon, day, hr, minute, sec = invjday(jd, fraction)
    base = datetime(year, mon, day, tzinfo=timezone.utc)
    return base + timedelta(hours=hr, minutes=minute, microseconds=round(sec * 1.0e6))


def gstime(jdut1: float) -> float:
    """
    Greenwich mean sidereal time (IAU-82 model).

    Args:
        jdut1: Julian date, UT1

    Returns:
        GMST in radians, in [0, 2*pi)
    """
    tut1 = (jdut1 - JD_J2000) / 36525.0
    temp = (-6.2e-6 * tut1 * tut1 * tut1
            + 0.093104 * tut1 * tut1
            + (876600.0 * 3600.0 + 8640184.812866) * tut1
            + 67310.54841)  # seconds
    temp = math.fmod(temp * DEG2RAD / 240.0, TWOPI)
    if temp < 0.0:
        temp += TWOPI
    return temp


def teme_to_ecef(state: StateVector, jdut1: float) -> StateVector:
    """
    Rotate a TEME state into the Earth-fixed frame.

    Velocity is corrected for the Earth's rotation, so the result is the
    velocity seen by an observer fixed to the ground.

    Args:
        state: StateVector in the TEME frame (km, km/s)
        jdut1: Julian date (UT1) of the state

    Returns:
        StateVector in the ECEF frame
    """
    if state.frame is not Frame.TEME:
        raise InvalidRequestError(f"Expected a TEME state, got {state.frame.value}")
    _require_finite(np.concatenate((state.position, state.velocity)), "TEME state")
    _require_finite([jdut1], "Julian date")

    gmst = gstime(jdut1)
    cos_g = math.cos(gmst)
    sin_g = math.sin(gmst)

    x, y, z = state.position
    vx, vy, vz = state.velocity

    r_ecef = np.array([
        cos_g * x + sin_g * y,
        -sin_g * x + cos_g * y,
        z,
    ])
    v_ecef = np.array([
        cos_g * vx + sin_g * vy + OMEGA_EARTH * r_ecef[1],
        -sin_g * vx + cos_g * vy - OMEGA_EARTH * r_ecef[0],
        vz,
    ])
    return StateVector(r_ecef, v_ecef, Frame.ECEF)


def ecef_to_geodetic(position, tolerance: float = GEODETIC_TOLERANCE,
                     max_iter: int = GEODETIC_MAX_ITER) -> GeodeticPoint:
    """
    Earth-fixed Cartesian position to WGS-84 geodetic coordinates.

    Starts from Bowring's estimate and refines latitude by fixed-point
    iteration until the change drops below the tolerance or the iteration
    limit is reached. Points on the spin axis are handled directly.

    Args:
        position: ECEF position [x, y, z] (km)
        tolerance: Latitude convergence tolerance (rad)
        max_iter: Maximum number of refinement iterations

    Returns:
        GeodeticPoint (radians, km)
    """
    _require_finite(position, "ECEF position")
    x, y, z = (float(c) for c in position)

    lon = math.atan2(y, x)
    if lon >= math.pi:
        lon -= TWOPI

    p = math.hypot(x, y)

    if p < POLAR_AXIS_DISTANCE_KM:
        lat = math.pi / 2.0 if z >= 0.0 else -math.pi / 2.0
        return GeodeticPoint(lat, lon, abs(z) - WGS84_B_KM)

    theta = math.atan2(z * WGS84_A_KM, p * WGS84_B_KM)
    sin_t = math.sin(theta)
    cos_t = math.cos(theta)
    lat = math.atan2(
        z + WGS84_EP2 * WGS84_B_KM * sin_t * sin_t * sin_t,
        p - WGS84_E2 * WGS84_A_KM * cos_t * cos_t * cos_t,
    )

    for _ in range(max_iter):
        sin_lat = math.sin(lat)
        n = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
        new_lat = math.atan2(z + WGS84_E2 * n * sin_lat, p)
        converged = abs(new_lat - lat) < tolerance
        lat = new_lat
        if converged:
            break

    sin_lat = math.sin(lat)
    cos_lat = math.cos(lat)
    # valid at all latitudes, unlike p / cos(lat) - N
    alt = p * cos_lat + z * sin_lat - WGS84_A_KM * math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)

    return GeodeticPoint(lat, lon, alt)


def geodetic_to_ecef(point: GeodeticPoint) -> np.ndarray:
    """WGS-84 geodetic coordinates to an Earth-fixed position (km)."""
    _require_finite([point.latitude, point.longitude, point.altitude], "geodetic point")
    sin_lat = math.sin(point.latitude)
    cos_lat = math.cos(point.latitude)
    n = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
    return np.array([
        (n + point.altitude) * cos_lat * math.cos(point.longitude),
        (n + point.altitude) * cos_lat * math.sin(point.longitude),
        (n * (1.0 - WGS84_E2) + point.altitude) * sin_lat,
    ])
