"""
Orbit Propagation Demonstration

This script demonstrates the key capabilities of the orbit_propagator package:
- TLE parsing, validation and re-encoding
- SGP4/SDP4 propagation (near-Earth and deep-space branches)
- Coordinate transformations (TEME to ECEF to geodetic)
- Trajectory tables and ground-track plots
- Error reporting for decayed satellites and invalid requests

Usage:
    python demo.py [--satellite NAME] [--duration H] [--step MIN] [--plot] [--verbose]
    python demo.py --line1 "1 ..." --line2 "2 ..."

Arguments:
    --satellite: Built-in sample (iss, vanguard, sl6, molniya, tdrss, geo, decay)
    --line1/--line2: Propagate a custom TLE instead of a sample
    --duration: Trajectory span in hours
    --step: Time step in minutes
    --gravity: Gravity model (wgs72old, wgs72, wgs84)
    --opsmode: i (improved) or a (AFSPC compatible)
    --plot: Save a ground-track figure
    --verbose: Enable debug logging

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import argparse
import logging
import sys
from typing import List, Optional

import matplotlib.pyplot as plt
import numpy as np

from config import DEFAULT_DURATION_HOURS, DEFAULT_STEP_MINUTES, SAMPLE_TLES
from logging_config import configure_logging, get_logger
from orbit_propagator import (
    OrbitPropagationError,
    PropagatorConfig,
    SatelliteRecord,
    TLEParser,
    Trajectory,
    compute_trajectory,
)
from orbit_propagator.errors import TrajectoryAbortedError, describe_error_code
from orbit_propagator.osculating import osculating_elements

logger = get_logger(__name__)


def demonstrate_tle_parsing(
    parser: TLEParser, line1: str, line2: str, name: str
) -> SatelliteRecord:
    """
    Parse a TLE, report its elements and initialize it for propagation.

    Parameters
    ----------
    parser : TLEParser
        TLE parser instance
    line1 : str
        TLE line 1
    line2 : str
        TLE line 2
    name : str
        Satellite name

    Returns
    -------
    SatelliteRecord
        Initialized record
    """
    logger.info(f"Parsing TLE for {name}")
    logger.debug(f"Line 1: {line1}")
    logger.debug(f"Line 2: {line2}")

    record = parser.parse(line1, line2, name)
    elements = record.elements

    logger.info(f"NORAD ID: {elements.satnum}")
    logger.info(f"Epoch: {elements.epoch_datetime.isoformat()}")
    logger.info(f"Inclination: {elements.inclination_deg:.4f} degrees")
    logger.info(f"RAAN: {elements.raan_deg:.4f} degrees")
    logger.info(f"Eccentricity: {elements.ecco:.7f}")
    logger.info(f"Argument of Perigee: {elements.arg_perigee_deg:.4f} degrees")
    logger.info(f"Mean Anomaly: {elements.mean_anomaly_deg:.4f} degrees")
    logger.info(f"Mean Motion: {elements.mean_motion_rev_per_day:.8f} rev/day")
    logger.info(f"B* Drag: {elements.bstar:.8e}")
    logger.info(
        f"Branch: {record.branch.name} (period {record.period_minutes:.1f} min, "
        f"resonance {record.resonance.name})"
    )
    logger.info(
        f"Perigee/apogee altitude: {record.perigee_altitude_km:.1f} / "
        f"{record.apogee_altitude_km:.1f} km"
    )

    reconstructed_line1, reconstructed_line2 = parser.tle_data_to_lines(elements)
    logger.debug(f"Reconstructed Line 1: {reconstructed_line1}")
    logger.debug(f"Reconstructed Line 2: {reconstructed_line2}")

    return record


def report_epoch_state(record: SatelliteRecord) -> None:
    """Compare the osculating elements at epoch with the mean elements."""
    state = record.propagate(0.0)
    osc = osculating_elements(state, record.gravity.mu)
    logger.info(
        f"Epoch state: r={state.radius_km:.2f} km, v={state.speed_kms:.4f} km/s, "
        f"osculating e={osc.eccentricity:.6f} (mean {record.elements.ecco:.6f}), "
        f"i={np.degrees(osc.inclination):.4f} deg (mean {record.elements.inclination_deg:.4f})"
    )


def print_trajectory(trajectory: Trajectory) -> None:
    """
    Log a trajectory as a table.

    Parameters
    ----------
    trajectory : Trajectory
        Computed trajectory
    """
    logger.info(
        f"{'t (min)':>9} {'x (km)':>11} {'y (km)':>11} {'z (km)':>11} "
        f"{'lat (deg)':>10} {'lon (deg)':>11} {'alt (km)':>10}"
    )
    for sample in trajectory:
        x, y, z, _, _, _, lat, lon, alt = sample.as_row()
        logger.info(
            f"{sample.tsince:9.1f} {x:11.2f} {y:11.2f} {z:11.2f} "
            f"{lat:10.4f} {lon:11.4f} {alt:10.2f}"
        )


def plot_ground_track(trajectory: Trajectory, name: str, output_file: str) -> None:
    """
    Save a ground-track and altitude plot.

    Parameters
    ----------
    trajectory : Trajectory
        Computed trajectory
    name : str
        Satellite name for the title
    output_file : str
        PNG file path
    """
    rows = trajectory.to_array()
    lat = rows[:, 6]
    lon = rows[:, 7]
    alt = rows[:, 8]
    time_hours = trajectory.times / 60.0

    # break the line where longitude wraps
    wraps = np.where(np.abs(np.diff(lon)) > 180.0)[0]
    lon_plot = np.insert(lon, wraps + 1, np.nan)
    lat_plot = np.insert(lat, wraps + 1, np.nan)

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 10))

    ax1.plot(lon_plot, lat_plot, color="navy", linewidth=1.5)
    ax1.scatter(lon[0], lat[0], color="green", s=60, zorder=3, label="Epoch")
    ax1.set_xlim(-180, 180)
    ax1.set_ylim(-90, 90)
    ax1.set_xlabel("Longitude (deg)")
    ax1.set_ylabel("Latitude (deg)")
    ax1.set_title(f"Ground Track: {name}")
    ax1.legend(loc="upper right")
    ax1.grid(True, alpha=0.3)

    ax2.plot(time_hours, alt, color="darkred", linewidth=1.5)
    ax2.set_xlabel("Time since epoch (hours)")
    ax2.set_ylabel("Altitude (km)")
    ax2.set_title("Altitude above WGS-84 Ellipsoid")
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_file, dpi=300, bbox_inches="tight")
    logger.info(f"Saved ground track plot to {output_file}")
    plt.close(fig)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="SGP4 Orbit Propagation Demonstration"
    )
    parser.add_argument(
        "--satellite", choices=sorted(SAMPLE_TLES), default="iss",
        help="Built-in sample TLE to propagate",
    )
    parser.add_argument("--line1", help="Custom TLE line 1")
    parser.add_argument("--line2", help="Custom TLE line 2")
    parser.add_argument(
        "--duration", type=float, default=DEFAULT_DURATION_HOURS, help="Duration in hours"
    )
    parser.add_argument(
        "--step", type=float, default=DEFAULT_STEP_MINUTES, help="Time step in minutes"
    )
    parser.add_argument(
        "--gravity", choices=["wgs72old", "wgs72", "wgs84"], default="wgs84",
        help="Earth gravity model",
    )
    parser.add_argument(
        "--opsmode", choices=["i", "a"], default="i",
        help="i = improved, a = AFSPC compatible",
    )
    parser.add_argument("--plot", action="store_true", help="Save a ground-track plot")
    parser.add_argument(
        "--output", default="ground_track.png", help="Plot file name (with --plot)"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main demonstration entry point."""
    args = build_arg_parser().parse_args(argv)

    # Configure logging
    configure_logging(level=logging.DEBUG if args.verbose else None)

    if bool(args.line1) != bool(args.line2):
        logger.error("--line1 and --line2 must be given together")
        return 2

    if args.line1:
        line1, line2, name = args.line1, args.line2, "CUSTOM"
    else:
        sample = SAMPLE_TLES[args.satellite]
        line1, line2, name = sample["line1"], sample["line2"], sample["name"]

    config = PropagatorConfig(gravity_model=args.gravity, opsmode=args.opsmode)

    logger.info("SGP4 Orbit Propagation Demonstration")
    logger.info("=" * 60)

    try:
        record = demonstrate_tle_parsing(TLEParser(config), line1, line2, name)
        report_epoch_state(record)
        logger.info("")
        trajectory = compute_trajectory(record, args.duration, args.step)
    except TrajectoryAbortedError as exc:
        logger.error(f"{exc.message} after {exc.samples_completed} samples")
        if exc.code is not None:
            logger.error(describe_error_code(exc.code)["recommended_action"])
        return 1
    except OrbitPropagationError as exc:
        logger.error(f"{exc.kind.value}: {exc.message}")
        return 1

    print_trajectory(trajectory)

    if args.plot:
        plot_ground_track(trajectory, name, args.output)

    logger.info("=" * 60)
    logger.info("Demonstration complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
