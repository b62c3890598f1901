"""
Host-facing entry points.

propagate_from_tle() returns the flat layout expected by native callers: nine
values per sample (x, y, z, vx, vy, vz in km and km/s TEME, then latitude and
longitude in degrees and altitude in km).
"""

import logging
from typing import List, Optional

import numpy as np
from pydantic import ValidationError

from orbit_propagator.errors import InvalidRequestError, MalformedInputError
from orbit_propagator.schemas import TrajectoryPoint, TrajectoryRequest
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.tle_parser import TLEParser
from orbit_propagator.trajectory import CancellationToken, Trajectory, compute_trajectory

logger = logging.getLogger(__name__)


def _validate_request(line1, line2, duration_hours, step_minutes) -> TrajectoryRequest:
    if line1 is None or line2 is None:
        raise MalformedInputError("TLE lines cannot be null")
    try:
        return TrajectoryRequest(
            line1=line1,
            line2=line2,
            duration_hours=duration_hours,
            step_minutes=step_minutes,
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidRequestError(f"Invalid trajectory request: {problems}") from exc


def _run(line1, line2, duration_hours, step_minutes, config, cancel_token) -> Trajectory:
    request = _validate_request(line1, line2, duration_hours, step_minutes)
    record = TLEParser(config).parse(request.line1, request.line2)
    return compute_trajectory(record, request.duration_hours, request.step_minutes,
                              cancel_token=cancel_token, config=config)


def propagate_from_tle(line1: str, line2: str, duration_hours: float, step_minutes: float,
                       config: Optional[PropagatorConfig] = None,
                       cancel_token: Optional[CancellationToken] = None) -> np.ndarray:
    """
    Parse a TLE and propagate it over a uniform grid.

    Args:
        line1: TLE line 1
        line2: TLE line 2
        duration_hours: Total span (hours)
        step_minutes: Grid spacing (minutes)
        config: Propagation settings (default: WGS-84, improved mode)
        cancel_token: Optional cooperative cancellation token

    Returns:
        Flat float array of length 9 * N

    Raises:
        MalformedInputError, InvalidElementsError, InvalidRequestError,
        TrajectoryAbortedError
    """
    trajectory = _run(line1, line2, duration_hours, step_minutes, config, cancel_token)
    return trajectory.flatten()


def trajectory_points(line1: str, line2: str, duration_hours: float, step_minutes: float,
                      config: Optional[PropagatorConfig] = None,
                      cancel_token: Optional[CancellationToken] = None) -> List[TrajectoryPoint]:
    """Same as propagate_from_tle() but returns named points."""
    trajectory = _run(line1, line2, duration_hours, step_minutes, config, cancel_token)
    points = []
    for sample in trajectory:
        x, y, z, vx, vy, vz, lat, lon, alt = sample.as_row()
        points.append(TrajectoryPoint(
            tsince_minutes=sample.tsince,
            x_km=x, y_km=y, z_km=z,
            vx_kms=vx, vy_kms=vy, vz_kms=vz,
            latitude_deg=lat, longitude_deg=lon, altitude_km=alt,
        ))
    return points
