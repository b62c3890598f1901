"""
Unit Tests for TLE Parser

Tests fixed-column decoding, validation errors, Alpha-5 catalog numbers and
re-encoding of element sets.

Run with:
    python -m pytest tests/test_tle_parser.py -v
"""

import math
import unittest
from dataclasses import replace

from config import SAMPLE_ISS_TLE, VANGUARD_TLE
from orbit_propagator.errors import ErrorKind, MalformedInputError
from orbit_propagator.settings import PropagatorConfig
from orbit_propagator.tle_parser import (
    TLEParser,
    checksum,
    decode_exponential,
    decode_satnum,
    encode_exponential,
    encode_satnum,
)

ISS_LINE1 = SAMPLE_ISS_TLE["line1"]
ISS_LINE2 = SAMPLE_ISS_TLE["line2"]


def with_checksum(line):
    """Replace the checksum digit of a (possibly edited) TLE line."""
    return line[:68] + str(checksum(line))


class TestTLEParser(unittest.TestCase):
    """Test suite for TLE decoding."""

    def setUp(self):
        self.parser = TLEParser()

    def test_parse_iss(self):
        elements = self.parser.parse_tle(ISS_LINE1, ISS_LINE2, "ISS (ZARYA)")

        self.assertEqual(elements.satnum, 25544)
        self.assertEqual(elements.name, "ISS (ZARYA)")
        self.assertEqual(elements.classification, "U")
        self.assertEqual(elements.intldesg, "98067A")
        self.assertEqual(elements.epochyr, 23)
        self.assertEqual(elements.epoch_year, 2023)
        self.assertAlmostEqual(elements.epochdays, 259.5758, places=10)
        self.assertAlmostEqual(elements.bstar, 0.21844e-3, places=15)
        self.assertAlmostEqual(elements.ecco, 0.0004263, places=12)
        self.assertAlmostEqual(elements.inclination_deg, 51.6416, places=10)
        self.assertAlmostEqual(elements.raan_deg, 220.9944, places=10)
        self.assertAlmostEqual(elements.arg_perigee_deg, 122.0101, places=10)
        self.assertAlmostEqual(elements.mean_anomaly_deg, 312.2755, places=10)
        self.assertAlmostEqual(elements.mean_motion_rev_per_day, 15.49541986, places=10)
        self.assertEqual(elements.revnum, 41559)
        self.assertEqual(elements.elnum, 999)
        self.assertEqual(elements.ephtype, 0)

    def test_epoch(self):
        elements = self.parser.parse_tle(ISS_LINE1, ISS_LINE2)

        # day 259.5758 of 2023 is 16 September, 13:49:09.12
        epoch = elements.epoch_datetime
        self.assertEqual((epoch.year, epoch.month, epoch.day), (2023, 9, 16))
        self.assertEqual((epoch.hour, epoch.minute, epoch.second), (13, 49, 9))
        self.assertEqual(elements.jdsatepoch % 1.0, 0.5)
        self.assertGreaterEqual(elements.jdsatepochF, 0.0)
        self.assertLess(elements.jdsatepochF, 1.0)

    def test_two_digit_year_pivot(self):
        elements = self.parser.parse_tle(VANGUARD_TLE["line1"], VANGUARD_TLE["line2"])
        self.assertEqual(elements.epoch_year, 2000)

        line1 = with_checksum(VANGUARD_TLE["line1"][:18] + "58" + VANGUARD_TLE["line1"][20:])
        elements = self.parser.parse_tle(line1, VANGUARD_TLE["line2"])
        self.assertEqual(elements.epoch_year, 1958)

    def test_trailing_whitespace_ignored(self):
        elements = self.parser.parse_tle(ISS_LINE1 + "  \n", ISS_LINE2 + "\r\n")
        self.assertEqual(elements.satnum, 25544)

    def test_parse_initializes_record(self):
        record = self.parser.parse(ISS_LINE1, ISS_LINE2)
        self.assertEqual(record.satnum, 25544)
        self.assertGreater(record.no_unkozai, 0.0)
        self.assertLess(record.no_unkozai, record.elements.no_kozai)


class TestTLEValidation(unittest.TestCase):
    """Malformed lines are rejected before any propagation."""

    def setUp(self):
        self.parser = TLEParser()

    def assertMalformed(self, line1, line2, field=None, parser=None):
        with self.assertRaises(MalformedInputError) as ctx:
            (parser or self.parser).parse_tle(line1, line2)
        self.assertIs(ctx.exception.kind, ErrorKind.MALFORMED_INPUT)
        if field is not None:
            self.assertEqual(ctx.exception.field, field)
        return ctx.exception

    def test_null_lines(self):
        error = self.assertMalformed(None, ISS_LINE2)
        self.assertEqual(error.message, "TLE lines cannot be null")
        self.assertMalformed(ISS_LINE1, "")

    def test_wrong_length(self):
        self.assertMalformed(ISS_LINE1[:60], ISS_LINE2, field="length")
        self.assertMalformed(ISS_LINE1, ISS_LINE2 + "12", field="length")

    def test_bad_checksum(self):
        bad = ISS_LINE1[:68] + str((int(ISS_LINE1[68]) + 1) % 10)
        error = self.assertMalformed(bad, ISS_LINE2, field="checksum")
        self.assertEqual(error.line_number, 1)

    def test_checksum_can_be_disabled(self):
        parser = TLEParser(PropagatorConfig(verify_checksum=False))
        bad = ISS_LINE2[:68] + str((int(ISS_LINE2[68]) + 1) % 10)
        elements = parser.parse_tle(ISS_LINE1, bad)
        self.assertEqual(elements.satnum, 25544)

    def test_lines_swapped(self):
        self.assertMalformed(ISS_LINE2, ISS_LINE1, field="layout")

    def test_catalog_number_mismatch(self):
        line2 = with_checksum(ISS_LINE2[:2] + "25545" + ISS_LINE2[7:])
        self.assertMalformed(ISS_LINE1, line2, field="satnum")

    def test_unparsable_field(self):
        parser = TLEParser(PropagatorConfig(verify_checksum=False))
        line2 = ISS_LINE2[:13] + "X" + ISS_LINE2[14:]
        self.assertMalformed(ISS_LINE1, line2, field="inclination", parser=parser)

    def test_non_finite_field(self):
        parser = TLEParser(PropagatorConfig(verify_checksum=False))
        line2 = ISS_LINE2[:52] + "        nan" + ISS_LINE2[63:]
        self.assertMalformed(ISS_LINE1, line2, field="mean_motion", parser=parser)

    def test_non_ascii_character(self):
        # a superscript digit passes str.isdigit but is not a TLE digit
        line1 = ISS_LINE1[:9] + "98067\u00b2  " + ISS_LINE1[17:]
        self.assertEqual(len(line1), 69)
        self.assertMalformed(line1, ISS_LINE2, field="encoding")

    def test_unicode_digit_in_checksum_column(self):
        parser = TLEParser(PropagatorConfig(verify_checksum=False))
        line1 = ISS_LINE1[:68] + "\u00b2"
        self.assertMalformed(line1, ISS_LINE2, field="encoding", parser=parser)
        # only ASCII digits carry weight
        self.assertEqual(checksum(ISS_LINE1[:9] + "98067\u00b2  " + ISS_LINE1[17:]), checksum(ISS_LINE1))

    def test_epoch_day_out_of_range(self):
        line1 = with_checksum(ISS_LINE1[:20] + "000.57580000" + ISS_LINE1[32:])
        self.assertMalformed(line1, ISS_LINE2, field="epoch_day")


class TestFieldEncodings(unittest.TestCase):
    """Exponential fields, checksums and Alpha-5 catalog numbers."""

    def test_checksum(self):
        self.assertEqual(checksum(ISS_LINE1), int(ISS_LINE1[68]))
        self.assertEqual(checksum(ISS_LINE2), int(ISS_LINE2[68]))

    def test_decode_exponential(self):
        cases = {
            " 21844-3": 0.21844e-3,
            "-11606-4": -0.11606e-4,
            " 00000-0": 0.0,
            " 10000-1": 0.01,
            "+12345+1": 1.2345,
        }
        for field, expected in cases.items():
            with self.subTest(field=field):
                self.assertAlmostEqual(decode_exponential(field), expected, places=15)

    def test_encode_exponential(self):
        cases = {
            0.21844e-3: " 21844-3",
            -0.11606e-4: "-11606-4",
            0.0: " 00000-0",
            0.01: " 10000-1",
        }
        for value, expected in cases.items():
            with self.subTest(value=value):
                self.assertEqual(encode_exponential(value), expected)

    def test_alpha5(self):
        self.assertEqual(decode_satnum("25544"), 25544)
        self.assertEqual(decode_satnum("A0001"), 100001)
        self.assertEqual(decode_satnum("H5544"), 175544)
        self.assertEqual(decode_satnum("J0000"), 180000)
        self.assertEqual(decode_satnum("Z9999"), 339999)

        self.assertEqual(encode_satnum(25544), "25544")
        self.assertEqual(encode_satnum(100001), "A0001")
        self.assertEqual(encode_satnum(339999), "Z9999")

        with self.assertRaises(ValueError):
            decode_satnum("I0001")
        with self.assertRaises(ValueError):
            encode_satnum(340000)

    def test_alpha5_tle(self):
        line1 = with_checksum(ISS_LINE1[:2] + "T5544" + ISS_LINE1[7:])
        line2 = with_checksum(ISS_LINE2[:2] + "T5544" + ISS_LINE2[7:])
        elements = TLEParser().parse_tle(line1, line2)
        self.assertEqual(elements.satnum, 275544)


class TestTLEExport(unittest.TestCase):
    """Element sets re-encode to the original lines."""

    def setUp(self):
        self.parser = TLEParser()

    def test_roundtrip(self):
        for tle in (SAMPLE_ISS_TLE, VANGUARD_TLE):
            with self.subTest(satellite=tle["name"]):
                elements = self.parser.parse_tle(tle["line1"], tle["line2"])
                self.assertEqual(
                    self.parser.tle_data_to_lines(elements), (tle["line1"], tle["line2"])
                )

    def test_modified_bstar(self):
        elements = self.parser.parse_tle(ISS_LINE1, ISS_LINE2)
        line1, line2 = self.parser.tle_data_to_lines(replace(elements, bstar=0.5e-4))

        self.assertEqual(line1[53:61], " 50000-4")
        self.assertEqual(line2, ISS_LINE2)
        reparsed = self.parser.parse_tle(line1, line2)
        self.assertTrue(math.isclose(reparsed.bstar, 0.5e-4, rel_tol=1e-12))


if __name__ == "__main__":
    unittest.main()
