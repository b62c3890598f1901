"""
Trajectory Driver

Evaluates a satellite record over a uniform time grid starting at the element
epoch. Every grid point is propagated in TEME, rotated into the Earth-fixed
frame and converted to geodetic coordinates.

The first failure aborts the whole computation: no partial trajectory is ever
returned. The raised TrajectoryAbortedError records the failing index, which is
also the number of samples that had completed.
"""

import logging
import math
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import numpy as np

from orbit_propagator.deep_space import ResonanceCheckpoints
from orbit_propagator.errors import (
    InvalidRequestError,
    OrbitPropagationError,
    TrajectoryAbortedError,
)
from orbit_propagator.frames import ecef_to_geodetic, teme_to_ecef
from orbit_propagator.propagator import SatelliteRecord, propagate
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.state import GeodeticPoint, StateVector

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440.0

# x, y, z, vx, vy, vz, lat, lon, alt
VALUES_PER_SAMPLE = 9


class CancellationToken:
    """Cooperative cancellation flag, checked before every sample."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class TrajectorySample:
    tsince: float  # minutes since epoch
    jdut1: float
    teme: StateVector
    ecef: StateVector
    geodetic: GeodeticPoint

    def as_row(self) -> Tuple[float, ...]:
        """TEME position/velocity followed by latitude, longitude (deg) and altitude (km)."""
        return self.teme.as_tuple() + self.geodetic.as_degrees()


class Trajectory:
    """Ordered, immutable sequence of trajectory samples."""

    def __init__(self, satnum: int, samples: List[TrajectorySample]):
        self.satnum = satnum
        self._samples = tuple(samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[TrajectorySample]:
        return iter(self._samples)

    def __getitem__(self, index):
        return self._samples[index]

    @property
    def samples(self) -> Tuple[TrajectorySample, ...]:
        return self._samples

    @property
    def times(self) -> np.ndarray:
        return np.array([s.tsince for s in self._samples])

    def to_array(self) -> np.ndarray:
        """Samples as an (N, 9) array."""
        if not self._samples:
            return np.empty((0, VALUES_PER_SAMPLE))
        return np.array([s.as_row() for s in self._samples])

    def flatten(self) -> np.ndarray:
        """Samples as a flat array of 9N values."""
        return self.to_array().reshape(-1)


def sample_count(duration_hours: float, step_minutes: float) -> int:
    """
    Number of grid points for a duration and step.

    Args:
        duration_hours: Total span (hours); negative spans give one sample
        step_minutes: Grid spacing (minutes), must be positive and finite

    Returns:
        floor(duration * 60 / step) + 1, at least 1

    Raises:
        InvalidRequestError: step is not positive, or either value is not finite
    """
    if not math.isfinite(step_minutes) or step_minutes <= 0.0:
        raise InvalidRequestError(f"step_minutes must be a positive finite number, got {step_minutes}")
    if not math.isfinite(duration_hours):
        raise InvalidRequestError(f"duration_hours must be finite, got {duration_hours}")

    ratio = duration_hours * 60.0 / step_minutes
    if not math.isfinite(ratio):
        raise InvalidRequestError(
            f"duration_hours={duration_hours} at step_minutes={step_minutes} gives an unbounded grid"
        )

    steps = math.floor(ratio)
    return max(int(steps), 0) + 1


def _sample(record: SatelliteRecord, tsince: float, config: PropagatorConfig,
            checkpoints: Optional[ResonanceCheckpoints]) -> TrajectorySample:
    teme = propagate(record, tsince, checkpoints)
    jdut1 = record.jdsatepoch + (record.jdsatepochF + tsince / MINUTES_PER_DAY)
    ecef = teme_to_ecef(teme, jdut1)
    geodetic = ecef_to_geodetic(ecef.position, config.geodetic_tolerance, config.geodetic_max_iter)
    return TrajectorySample(tsince, jdut1, teme, ecef, geodetic)


def compute_trajectory(record: SatelliteRecord, duration_hours: float, step_minutes: float,
                       cancel_token: Optional[CancellationToken] = None,
                       config: Optional[PropagatorConfig] = None) -> Trajectory:
    """
    Propagate a record over [0, duration] at a fixed step.

    Resonant deep-space records integrate the resonance terms once over the
    whole span and resume each sample from the nearest 720-minute checkpoint,
    so the cost stays linear in the number of samples.

    Args:
        record: Initialized SatelliteRecord
        duration_hours: Total span (hours)
        step_minutes: Grid spacing (minutes)
        cancel_token: Optional token checked before each sample
        config: Overrides the record's configuration for the frame transform

    Returns:
        Trajectory with sample_count(duration_hours, step_minutes) samples

    Raises:
        InvalidRequestError: invalid step/duration or grid larger than max_samples
        TrajectoryAbortedError: propagation failed, the satellite decayed, or
            the token was cancelled
    """
    config = config or record.config
    count = sample_count(duration_hours, step_minutes)
    if count > config.max_samples:
        raise InvalidRequestError(
            f"Requested {count} samples exceeds the limit of {config.max_samples}"
        )

    checkpoints = record.checkpoints((count - 1) * step_minutes)

    logger.debug(
        f"Computing trajectory for satellite {record.satnum}: "
        f"{count} samples, duration={duration_hours} h, step={step_minutes} min"
    )

    samples: List[TrajectorySample] = []
    for index in range(count):
        tsince = index * step_minutes
        if cancel_token is not None and cancel_token.cancelled:
            cause = InvalidRequestError("Trajectory computation was cancelled")
            logger.info(f"Satellite {record.satnum}: cancelled after {index} samples")
            raise TrajectoryAbortedError(cause, index, tsince)
        try:
            samples.append(_sample(record, tsince, config, checkpoints))
        except OrbitPropagationError as exc:
            logger.warning(
                f"Satellite {record.satnum}: trajectory aborted at sample {index} "
                f"(t={tsince:.1f} min, {exc.kind.value})"
            )
            raise TrajectoryAbortedError(exc, index, tsince) from exc

    logger.debug(f"Trajectory for satellite {record.satnum} complete: {len(samples)} samples")
    return Trajectory(record.satnum, samples)
