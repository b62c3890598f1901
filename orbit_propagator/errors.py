"""
Error Taxonomy

Exceptions raised by the parser, propagator, frame transforms and trajectory
driver. Every exception carries an ErrorKind so callers can tell a corrupted
TLE apart from a satellite that has simply re-entered.

SGP4 error codes follow the reference model:

    1  mean eccentricity outside [0, 1)
    2  mean motion non-positive
    3  perturbed eccentricity outside [0, 1]
    4  semi-latus rectum negative
    5  epoch elements are sub-orbital
    6  satellite has decayed
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    MALFORMED_INPUT = "malformed_input"
    INVALID_ELEMENTS = "invalid_elements"
    PROPAGATION_FAILURE = "propagation_failure"
    DECAYED = "decayed"
    INVALID_REQUEST = "invalid_request"


SGP4_ERROR_CODES: Dict[int, str] = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or >= 1.0",
    2: "Mean motion <= 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Epoch elements are sub-orbital",
    6: "Satellite has decayed",
}

DECAY_CODE = 6


def describe_error_code(code: int) -> Dict[str, Any]:
    """
    Physical interpretation of an SGP4 error code.

    Args:
        code: SGP4 error code (1-6)

    Returns:
        Dictionary with message, physical_meaning and recommended_action
    """
    diagnostics = {
        "error_code": code,
        "message": SGP4_ERROR_CODES.get(code, f"Unknown error code {code}"),
    }

    if code == 1:
        diagnostics["physical_meaning"] = (
            "The orbital eccentricity is outside the valid range [0, 1). "
            "The element set is corrupted or the orbit is no longer bound."
        )
        diagnostics["recommended_action"] = "Obtain fresh TLE data for this satellite."
    elif code == 2:
        diagnostics["physical_meaning"] = (
            "The mean motion is zero or negative, which is physically impossible."
        )
        diagnostics["recommended_action"] = "Verify TLE data integrity and obtain updated elements."
    elif code in (3, 4):
        diagnostics["physical_meaning"] = (
            "The perturbed elements became unphysical. This happens when propagating "
            "far from the TLE epoch or for satellites with very high drag."
        )
        diagnostics["recommended_action"] = (
            "Use more recent TLE data or limit propagation to shorter time spans."
        )
    elif code == 5:
        diagnostics["physical_meaning"] = (
            "Perigee computed from the epoch elements lies below the Earth's surface."
        )
        diagnostics["recommended_action"] = "Check the mean motion and eccentricity fields."
    elif code == DECAY_CODE:
        diagnostics["physical_meaning"] = (
            "The satellite's geocentric radius fell below the Earth's surface. "
            "Atmospheric drag has removed enough orbital energy for re-entry."
        )
        diagnostics["recommended_action"] = (
            "Limit propagation to times before re-entry. No later state exists."
        )
    else:
        diagnostics["physical_meaning"] = "Unrecognised error condition."
        diagnostics["recommended_action"] = "Report the element set that produced it."

    return diagnostics


class OrbitPropagationError(Exception):
    """Base class for all errors raised by orbit_propagator."""

    kind: ErrorKind = ErrorKind.PROPAGATION_FAILURE

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class MalformedInputError(OrbitPropagationError, ValueError):
    """TLE text failed fixed-column decoding."""

    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, message: str, line_number: Optional[int] = None,
                 field: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.field = field


class InvalidElementsError(OrbitPropagationError, ValueError):
    """Decoded elements are physically invalid at initialization."""

    kind = ErrorKind.INVALID_ELEMENTS

    def __init__(self, message: str, code: int):
        super().__init__(message, code)


class PropagationError(OrbitPropagationError):
    """A single time offset could not be propagated."""

    def __init__(self, message: str, code: int, tsince: float):
        super().__init__(message, code)
        self.tsince = tsince


class PropagationFailureError(PropagationError):
    kind = ErrorKind.PROPAGATION_FAILURE


class DecayedError(PropagationError):
    kind = ErrorKind.DECAYED


class InvalidRequestError(OrbitPropagationError, ValueError):
    """Caller supplied an unusable request (bad step, non-finite value, cancellation)."""

    kind = ErrorKind.INVALID_REQUEST


class TrajectoryAbortedError(OrbitPropagationError):
    """
    A trajectory computation stopped at a grid index.

    The kind is inherited from the underlying cause, so a decayed satellite
    still reports ErrorKind.DECAYED.
    """

    def __init__(self, cause: OrbitPropagationError, index: int, tsince: float):
        super().__init__(
            f"Trajectory aborted at sample {index} (t={tsince:.3f} min): {cause.message}",
            cause.code,
        )
        self.cause = cause
        self.kind = cause.kind
        self.index = index
        self.samples_completed = index
        self.tsince = tsince


def error_for_code(code: int, tsince: float) -> PropagationError:
    """Map a propagation-time SGP4 error code to the matching exception."""
    message = f"SGP4 error {code} at t={tsince:.3f} min: {SGP4_ERROR_CODES.get(code, 'unknown')}"
    if code == DECAY_CODE:
        return DecayedError(message, code, tsince)
    return PropagationFailureError(message, code, tsince)
