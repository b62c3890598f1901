"""
TLE Parser Module

Parses Two-Line Element (TLE) sets into OrbitalElements using fixed-column
field extraction, and re-encodes element sets back into TLE lines.

Field layout (0-based columns):

    Line 1: [2:7] satnum, [7] classification, [9:17] international designator,
            [18:20] epoch year, [20:32] epoch day, [33:43] ndot/2,
            [44:52] nddot/6 (implied decimal, exponent), [53:61] B*,
            [62] ephemeris type, [64:68] element number, [68] checksum
    Line 2: [2:7] satnum, [8:16] inclination, [17:25] RAAN,
            [26:33] eccentricity (implied decimal), [34:42] argument of perigee,
            [43:51] mean anomaly, [52:63] mean motion, [63:68] revolution number,
            [68] checksum

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import logging
import math
from typing import Optional, Tuple

from orbit_propagator.errors import MalformedInputError
from orbit_propagator.frames import days2mdhms, jd_to_datetime, jday
from orbit_propagator.propagator import SatelliteRecord, initialize
from orbit_propagator.settings import DEFAULT_CONFIG, PropagatorConfig
from orbit_propagator.state import XPDOTP, OrbitalElements

logger = logging.getLogger(__name__)

DEG2RAD = math.pi / 180.0
TLE_LINE_LENGTH = 69

# Alpha-5 leading letters; I and O are skipped to avoid confusion with 1 and 0
ALPHA5_LETTERS = "ABCDEFGHJKLMNPQRSTUVWXYZ"
DIGITS = "0123456789"

# (column, expected character) pairs that fix the layout of each line
LINE1_LAYOUT = ((0, "1"), (1, " "), (8, " "), (23, "."), (32, " "), (34, "."),
                (43, " "), (52, " "), (61, " "), (63, " "))
LINE2_LAYOUT = ((0, "2"), (1, " "), (7, " "), (11, "."), (16, " "), (20, "."),
                (25, " "), (33, " "), (37, "."), (42, " "), (46, "."), (51, " "))


def checksum(line: str) -> int:
    """Mod-10 TLE checksum: digits count their value, '-' counts as 1."""
    total = 0
    for char in line[:68]:
        if char in DIGITS:
            total += int(char)
        elif char == "-":
            total += 1
    return total % 10


def decode_satnum(field: str) -> int:
    """Decode a 5-character catalog number, including Alpha-5 (e.g. 'A0001')."""
    field = field.strip()
    if field and field[0].isalpha():
        letter = field[0].upper()
        if letter not in ALPHA5_LETTERS:
            raise ValueError(f"Invalid Alpha-5 letter '{letter}'")
        return (ALPHA5_LETTERS.index(letter) + 10) * 10000 + int(field[1:])
    return int(field)


def encode_satnum(satnum: int) -> str:
    if satnum < 0 or satnum >= (len(ALPHA5_LETTERS) + 10) * 10000:
        raise ValueError(f"Catalog number {satnum} cannot be encoded in 5 characters")
    if satnum < 100000:
        return f"{satnum:05d}"
    letter = ALPHA5_LETTERS[satnum // 10000 - 10]
    return f"{letter}{satnum % 10000:04d}"


def decode_exponential(field: str) -> float:
    """
    Decode TLE exponential notation with an implied leading decimal point.

    ' 21844-3' -> 0.21844e-3, '-11606-4' -> -0.11606e-4
    """
    mantissa = float(field[0] + "." + field[1:6].replace(" ", "0"))
    exponent = int(field[6:8])
    return mantissa * 10.0 ** exponent


def encode_exponential(value: float) -> str:
    """Format a number as an 8-character TLE exponential field."""
    if value == 0.0:
        return " 00000-0"

    sign = "-" if value < 0 else " "
    abs_val = abs(value)

    exp = int(math.floor(math.log10(abs_val))) + 1
    digits = int(round(abs_val / 10.0 ** exp * 100000))
    if digits >= 100000:
        digits //= 10
        exp += 1
    if abs(exp) > 9:
        raise ValueError(f"Value {value} is out of range for TLE exponential notation")

    exp_sign = "-" if exp < 0 else "+"
    return f"{sign}{digits:05d}{exp_sign}{abs(exp):d}"


def _check_line(line: Optional[str], line_number: int, verify_checksum: bool) -> str:
    if line is None or not line.strip():
        raise MalformedInputError("TLE lines cannot be null", line_number=line_number)

    line = line.rstrip()
    if len(line) != TLE_LINE_LENGTH:
        raise MalformedInputError(
            f"TLE line {line_number} must be {TLE_LINE_LENGTH} characters, got {len(line)}",
            line_number=line_number,
            field="length",
        )

    if not line.isascii():
        raise MalformedInputError(
            f"TLE line {line_number} contains non-ASCII characters",
            line_number=line_number,
            field="encoding",
        )

    layout = LINE1_LAYOUT if line_number == 1 else LINE2_LAYOUT
    for column, expected in layout:
        if line[column] != expected:
            raise MalformedInputError(
                f"TLE line {line_number} column {column + 1}: expected {expected!r}, "
                f"found {line[column]!r}",
                line_number=line_number,
                field="layout",
            )

    if verify_checksum:
        if line[68] not in DIGITS:
            raise MalformedInputError(
                f"TLE line {line_number} checksum character {line[68]!r} is not a digit",
                line_number=line_number,
                field="checksum",
            )
        expected_sum = checksum(line)
        if int(line[68]) != expected_sum:
            raise MalformedInputError(
                f"TLE line {line_number} checksum mismatch: "
                f"expected {expected_sum}, found {line[68]}",
                line_number=line_number,
                field="checksum",
            )
    return line


def _field(line: str, line_number: int, name: str, start: int, end: int, convert):
    text = line[start:end]
    try:
        value = convert(text)
    except ValueError:
        raise MalformedInputError(
            f"TLE line {line_number} field '{name}' is not valid: {text!r}",
            line_number=line_number,
            field=name,
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedInputError(
            f"TLE line {line_number} field '{name}' is not finite: {text!r}",
            line_number=line_number,
            field=name,
        )
    return value


def _int_or_zero(text: str) -> int:
    text = text.strip()
    return int(text) if text else 0


class TLEParser:
    """
    Parser and utilities for Two-Line Element (TLE) sets.

    Provides methods for:
    - Parsing TLE lines into OrbitalElements
    - Reconstructing TLE lines from OrbitalElements
    - Parsing and initializing a SatelliteRecord in one step
    """

    def __init__(self, config: Optional[PropagatorConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def parse_tle(self, line1: str, line2: str, name: str = "") -> OrbitalElements:
        """
        Parse TLE lines into structured data.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Optional satellite name

        Returns:
            OrbitalElements in SGP4 working units

        Raises:
            MalformedInputError: wrong length, layout, checksum or numeric field
        """
        verify = self.config.verify_checksum
        line1 = _check_line(line1, 1, verify)
        line2 = _check_line(line2, 2, verify)

        satnum = _field(line1, 1, "satnum", 2, 7, decode_satnum)
        satnum2 = _field(line2, 2, "satnum", 2, 7, decode_satnum)
        if satnum != satnum2:
            raise MalformedInputError(
                f"Catalog numbers differ between lines: {satnum} vs {satnum2}",
                line_number=2,
                field="satnum",
            )

        classification = line1[7].strip() or "U"
        intldesg = line1[9:17].rstrip()
        epochyr = _field(line1, 1, "epoch_year", 18, 20, int)
        epochdays = _field(line1, 1, "epoch_day", 20, 32, float)
        ndot = _field(line1, 1, "ndot", 33, 43, float)
        nddot = _field(line1, 1, "nddot", 44, 52, decode_exponential)
        bstar = _field(line1, 1, "bstar", 53, 61, decode_exponential)
        ephtype = _field(line1, 1, "ephemeris_type", 62, 63, _int_or_zero)
        elnum = _field(line1, 1, "element_number", 64, 68, _int_or_zero)

        inclo = _field(line2, 2, "inclination", 8, 16, float)
        nodeo = _field(line2, 2, "raan", 17, 25, float)
        ecco = _field(line2, 2, "eccentricity", 26, 33,
                      lambda s: float("0." + s.replace(" ", "0")))
        argpo = _field(line2, 2, "arg_perigee", 34, 42, float)
        mo = _field(line2, 2, "mean_anomaly", 43, 51, float)
        no_kozai = _field(line2, 2, "mean_motion", 52, 63, float)
        revnum = _field(line2, 2, "revolution_number", 63, 68, _int_or_zero)

        if not 1.0 <= epochdays < 367.0:
            raise MalformedInputError(
                f"Epoch day {epochdays} is outside 1..366", line_number=1, field="epoch_day"
            )

        year = 2000 + epochyr if epochyr < 57 else 1900 + epochyr
        mon, day, hr, minute, sec = days2mdhms(year, epochdays)
        jdsatepoch, jdsatepochF = jday(year, mon, day, hr, minute, sec)

        elements = OrbitalElements(
            satnum=satnum,
            classification=classification,
            intldesg=intldesg,
            epochyr=epochyr,
            epochdays=epochdays,
            ndot=ndot / (XPDOTP * 1440.0),
            nddot=nddot / (XPDOTP * 1440.0 * 1440.0),
            bstar=bstar,
            ephtype=ephtype,
            elnum=elnum,
            inclo=inclo * DEG2RAD,
            nodeo=nodeo * DEG2RAD,
            ecco=ecco,
            argpo=argpo * DEG2RAD,
            mo=mo * DEG2RAD,
            no_kozai=no_kozai / XPDOTP,
            revnum=revnum,
            jdsatepoch=jdsatepoch,
            jdsatepochF=jdsatepochF,
            epoch_datetime=jd_to_datetime(jdsatepoch, jdsatepochF),
            name=name,
        )

        logger.debug(
            f"Parsed TLE {satnum} ({name or 'unnamed'}): epoch {elements.epoch_datetime.isoformat()}, "
            f"n={no_kozai:.8f} rev/day, e={ecco:.7f}, i={inclo:.4f} deg"
        )
        return elements

    def parse(self, line1: str, line2: str, name: str = "") -> SatelliteRecord:
        """Parse a TLE and initialize it for propagation."""
        return initialize(self.parse_tle(line1, line2, name), self.config)

    def tle_data_to_lines(self, elements: OrbitalElements) -> Tuple[str, str]:
        """
        Reconstruct TLE lines from an element set.

        Args:
            elements: OrbitalElements (for example with a modified B*)

        Returns:
            Tuple of (line1, line2) strings with valid checksums
        """
        satnum = encode_satnum(elements.satnum)

        ndot = elements.ndot * XPDOTP * 1440.0
        ndot_str = f"{abs(ndot):.8f}"
        if ndot_str.startswith("0"):
            ndot_str = ndot_str[1:]
        ndot_str = ("-" if ndot < 0 else " ") + ndot_str

        nddot = elements.nddot * XPDOTP * 1440.0 * 1440.0
        ecc_digits = int(round(elements.ecco * 1.0e7))
        if ecc_digits >= 10000000:
            raise ValueError(f"Eccentricity {elements.ecco} cannot be encoded in a TLE")

        line1 = (
            f"1 {satnum}{elements.classification[:1] or 'U'} "
            f"{elements.intldesg[:8]:<8} "
            f"{elements.epochyr:02d}{elements.epochdays:012.8f} "
            f"{ndot_str[:10]} "
            f"{encode_exponential(nddot)} "
            f"{encode_exponential(elements.bstar)} "
            f"{elements.ephtype:1d} "
            f"{elements.elnum % 10000:4d}"
        )
        line1 += str(checksum(line1))

        line2 = (
            f"2 {satnum} "
            f"{math.degrees(elements.inclo):8.4f} "
            f"{math.degrees(elements.nodeo):8.4f} "
            f"{ecc_digits:07d} "
            f"{math.degrees(elements.argpo):8.4f} "
            f"{math.degrees(elements.mo):8.4f} "
            f"{elements.no_kozai * XPDOTP:11.8f}"
            f"{elements.revnum % 100000:5d}"
        )
        line2 += str(checksum(line2))

        return line1, line2
